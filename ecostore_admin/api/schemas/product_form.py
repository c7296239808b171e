# ecostore_admin/api/schemas/product_form.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ecostore_admin.services.save_orchestrator import SaveOutcome
from ecostore_admin.services.sessions import ProductFormSession


class FormOpen(BaseModel):
    product_id: Optional[str] = None  # omit for a new product


class FieldUpdate(BaseModel):
    field: str = Field(..., min_length=1)
    value: Any = None


class ImageRef(BaseModel):
    ref: str = Field(..., min_length=1)


class StagedFileOut(BaseModel):
    index: int
    filename: str
    size: int
    preview_url: str
    thumbnail_url: Optional[str] = None


class FormOut(BaseModel):
    session_id: str
    mode: str
    product_id: Optional[str]
    draft: Dict[str, Any]
    current_images: List[str]
    pending_delete: List[str]
    staged: List[StagedFileOut]
    errors: Dict[str, str]
    touched: List[str]
    has_unsaved_changes: bool
    can_save: bool
    saving: bool
    notifications: List[str] = []

    @classmethod
    def from_session(cls, session: ProductFormSession, notifications: Optional[List[str]] = None) -> "FormOut":
        store = session.store
        staged = [
            StagedFileOut(
                index=i,
                filename=f.filename,
                size=f.size,
                preview_url=h.url,
                thumbnail_url=f"{h.url}?thumbnail=true" if h.variants else None,
            )
            for i, (f, h) in enumerate(store.stager.entries)
        ]
        return cls(
            session_id=session.id,
            mode=session.mode,
            product_id=session.product_id,
            draft=store.draft.to_dict(),
            current_images=list(store.images.current),
            pending_delete=list(store.images.pending_delete),
            staged=staged,
            errors=store.visible_errors,
            touched=sorted(store.touched),
            has_unsaved_changes=store.has_unsaved_changes(),
            can_save=session.can_save,
            saving=session.saving,
            notifications=list(notifications or []),
        )


class StepOut(BaseModel):
    ok: Optional[bool] = None
    error: Optional[str] = None


class SaveOutcomeOut(BaseModel):
    state: str
    mode: str
    product_id: Optional[str]
    errors: Dict[str, str]
    core: StepOut
    delete: StepOut
    upload: StepOut
    uploaded_count: int
    warnings: List[str]
    navigate_away: bool
    history: List[Dict[str, Any]]

    @classmethod
    def from_outcome(cls, outcome: SaveOutcome) -> "SaveOutcomeOut":
        return cls(
            state=outcome.state,
            mode=outcome.mode,
            product_id=outcome.product_id,
            errors=dict(outcome.errors),
            core=StepOut(ok=outcome.core.ok, error=outcome.core.error),
            delete=StepOut(ok=outcome.delete.ok, error=outcome.delete.error),
            upload=StepOut(ok=outcome.upload.ok, error=outcome.upload.error),
            uploaded_count=outcome.uploaded_count,
            warnings=list(outcome.warnings),
            navigate_away=outcome.navigate_away,
            history=list(outcome.history),
        )
