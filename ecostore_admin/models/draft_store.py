# ecostore_admin/models/draft_store.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Set

from ecostore_admin.core.validation import validate, validate_field, VALIDATED_FIELDS
from ecostore_admin.models.product import ProductDraft, ProductRecord, FLAG_FIELDS, to_bool
from ecostore_admin.services.file_stager import FileStager, StageResult
from ecostore_admin.utils.images import StagedFile


@dataclass
class ImageSet:
    current: List[str] = field(default_factory=list)
    pending_delete: List[str] = field(default_factory=list)


class DraftStore:
    """
    Owns the draft, its image collections and its error state for the
    lifetime of one product form. All mutation goes through the named
    transitions below so that a reference is never both current and pending
    deletion, and every staged file keeps exactly one preview.
    """

    def __init__(self, stager: FileStager, draft: Optional[ProductDraft] = None):
        self.draft = draft or ProductDraft()
        self.images = ImageSet()
        self.stager = stager
        self.errors: Dict[str, str] = {}
        self.touched: Set[str] = set()
        self._snapshot: Dict[str, Any] = self.draft.comparable()
        # loaded position of each existing image
        self._order: Dict[str, int] = {}

    # --- loading -------------------------------------------------------

    def load(self, record: ProductRecord) -> None:
        self.draft = ProductDraft.from_record(record)
        self.images = ImageSet(current=list(record.images))
        self._order = {ref: i for i, ref in enumerate(self.images.current)}
        self.errors = {}
        self.touched = set()
        self._snapshot = self.draft.comparable()

    # --- field edits ---------------------------------------------------

    def update(self, field_name: str, value: Any) -> Optional[str]:
        """
        Set one draft field. Only that field is re-validated so an inline
        error clears as soon as it is fixed. Returns the field's current error.
        """
        if field_name not in ProductDraft.field_names():
            raise KeyError(field_name)
        if field_name in FLAG_FIELDS:
            value = to_bool(value)
        elif field_name == "tags":
            value = "" if value is None else (", ".join(value) if isinstance(value, list) else str(value))
        setattr(self.draft, field_name, value)
        self.touched.add(field_name)

        if field_name in VALIDATED_FIELDS:
            msg = validate_field(self.draft, field_name)
            if msg:
                self.errors[field_name] = msg
            else:
                self.errors.pop(field_name, None)
        return self.errors.get(field_name)

    def validate_all(self) -> Dict[str, str]:
        self.errors = validate(self.draft)
        self.touched.update(ProductDraft.field_names())
        return dict(self.errors)

    @property
    def visible_errors(self) -> Dict[str, str]:
        return {k: v for k, v in self.errors.items() if k in self.touched}

    # --- existing images -----------------------------------------------

    def mark_for_deletion(self, ref: str) -> None:
        if ref not in self.images.current:
            raise ValueError(f"Image {ref!r} is not a current image")
        self.images.current.remove(ref)
        self.images.pending_delete.append(ref)

    def restore(self, ref: str) -> None:
        """
        Put a pending deletion back into the current images. It goes back to
        its loaded position relative to the images still current, so restores
        in any order rebuild the loaded ordering.
        """
        if ref not in self.images.pending_delete:
            raise ValueError(f"Image {ref!r} is not pending deletion")
        self.images.pending_delete.remove(ref)
        rank = self._order.get(ref)
        if rank is None:
            self.images.current.append(ref)
            return
        pos = sum(1 for r in self.images.current if self._order.get(r, len(self._order)) < rank)
        self.images.current.insert(pos, ref)

    def clear_pending_delete(self) -> None:
        self.images.pending_delete = []

    # --- staged uploads ------------------------------------------------

    def stage_files(self, files: List[StagedFile], replace: bool = False) -> StageResult:
        if replace:
            return self.stager.replace_files(files)
        return self.stager.stage_files(files)

    def remove_staged_file(self, index: int) -> StagedFile:
        return self.stager.remove_staged_file(index)

    @property
    def final_image_count(self) -> int:
        return len(self.images.current) + len(self.stager)

    # --- change tracking -----------------------------------------------

    def has_unsaved_changes(self) -> bool:
        if len(self.stager) or self.images.pending_delete:
            return True
        return self.draft.comparable() != self._snapshot

    def mark_saved(self) -> None:
        self._snapshot = self.draft.comparable()

    def build_payload(self, include_images: bool) -> Dict[str, Any]:
        payload = self.draft.to_payload()
        if include_images:
            payload["images"] = list(self.images.current)
        return payload

    def release(self) -> int:
        return self.stager.release_all()
