# ecostore_admin/api/routes/product_forms.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query
from fastapi.responses import FileResponse, JSONResponse

from ecostore_admin.api.deps import (
    get_gateway,
    get_orchestrator,
    get_registry,
    get_session,
)
from ecostore_admin.api.schemas.product_form import (
    FieldUpdate,
    FormOpen,
    FormOut,
    ImageRef,
    SaveOutcomeOut,
)
from ecostore_admin.models.product import ProductRecord
from ecostore_admin.services.gateway import RemoteGateway, RequestError
from ecostore_admin.services.save_orchestrator import SaveOrchestrator
from ecostore_admin.services.sessions import FormSessionRegistry, ProductFormSession, SaveInProgress
from ecostore_admin.utils.images import StagedFile

router = APIRouter(prefix="/api", tags=["product forms"])

# HTTP status per terminal save state
_OUTCOME_STATUS = {
    "complete": 200,
    "rejected": 422,
    "failed": 502,
}


@router.post("/forms", response_model=FormOut, status_code=201)
async def open_form(
    payload: FormOpen,
    registry: FormSessionRegistry = Depends(get_registry),
    gateway: RemoteGateway = Depends(get_gateway),
):
    """
    Open a product form. With `product_id` the product is fetched from the
    backend and the form starts in edit mode; without it the form is empty.
    """
    record = None
    if payload.product_id:
        try:
            data = await gateway.get_product(payload.product_id)
        except RequestError as e:
            code = 404 if e.status_code == 404 else 502
            raise HTTPException(status_code=code, detail=e.message)
        try:
            record = ProductRecord.from_dict(data)
        except ValueError as e:
            raise HTTPException(status_code=502, detail=f"Unexpected product response: {e}")
        if not record.id:
            record.id = payload.product_id
    session = registry.open(record)
    return FormOut.from_session(session)


@router.get("/forms/{session_id}", response_model=FormOut)
def read_form(session: ProductFormSession = Depends(get_session)):
    return FormOut.from_session(session)


@router.patch("/forms/{session_id}", response_model=FormOut)
def update_field(payload: FieldUpdate, session: ProductFormSession = Depends(get_session)):
    try:
        session.store.update(payload.field, payload.value)
    except KeyError:
        raise HTTPException(status_code=400, detail=f"Unknown field: {payload.field}")
    return FormOut.from_session(session)


@router.post("/forms/{session_id}/files", response_model=FormOut)
async def stage_files(
    files: List[UploadFile] = File(...),
    replace: bool = Query(False, description="replace the staged list instead of appending"),
    session: ProductFormSession = Depends(get_session),
):
    """
    Stage dropped/selected images. Files over the size limit are skipped and
    reported once in `notifications`; nothing is sent to the backend here.
    """
    incoming = []
    for f in files:
        content = await f.read()
        incoming.append(StagedFile(
            filename=f.filename or "upload.jpg",
            content=content,
            content_type=f.content_type or "application/octet-stream",
        ))
    result = session.store.stage_files(incoming, replace=replace)
    notes = [result.warning] if result.warning else []
    return FormOut.from_session(session, notifications=notes)


@router.delete("/forms/{session_id}/files/{index}", response_model=FormOut)
def remove_staged_file(index: int, session: ProductFormSession = Depends(get_session)):
    try:
        session.store.remove_staged_file(index)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"No staged file at index {index}")
    return FormOut.from_session(session)


@router.post("/forms/{session_id}/images/delete", response_model=FormOut)
def mark_image_for_deletion(payload: ImageRef, session: ProductFormSession = Depends(get_session)):
    try:
        session.store.mark_for_deletion(payload.ref)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FormOut.from_session(session)


@router.post("/forms/{session_id}/images/restore", response_model=FormOut)
def restore_image(payload: ImageRef, session: ProductFormSession = Depends(get_session)):
    try:
        session.store.restore(payload.ref)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FormOut.from_session(session)


@router.post("/forms/{session_id}/validate", response_model=FormOut)
def validate_form(session: ProductFormSession = Depends(get_session)):
    session.store.validate_all()
    return FormOut.from_session(session)


@router.post("/forms/{session_id}/submit", response_model=SaveOutcomeOut)
async def submit_form(
    session: ProductFormSession = Depends(get_session),
    registry: FormSessionRegistry = Depends(get_registry),
    orchestrator: SaveOrchestrator = Depends(get_orchestrator),
):
    """
    Save the form: create/update the product, then remove and upload images.
    A completed save closes the form (previews released) even when image
    steps produced warnings; a rejected or failed save keeps it open.
    """
    try:
        outcome = await session.submit(orchestrator)
    except SaveInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    if outcome.navigate_away:
        registry.close(session.id)
    body = SaveOutcomeOut.from_outcome(outcome)
    return JSONResponse(status_code=_OUTCOME_STATUS.get(outcome.state, 500), content=body.model_dump())


@router.delete("/forms/{session_id}")
def close_form(session_id: str, registry: FormSessionRegistry = Depends(get_registry)):
    """Discard the form. Staged previews are released."""
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail="Form session not found")
    return {"ok": True}


@router.get("/previews/{token}")
def get_preview(
    token: str,
    thumbnail: bool = Query(False),
    registry: FormSessionRegistry = Depends(get_registry),
):
    path = registry.find_preview(token, thumbnail=thumbnail)
    if path is None or not path.exists():
        raise HTTPException(status_code=404, detail="Preview not found")
    return FileResponse(path)
