# ecostore_admin/api/routes/products.py
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ecostore_admin.api.deps import get_gateway, get_ledger
from ecostore_admin.api.schemas.product import BulkDiscount, ProductOut, SaveWarningOut
from ecostore_admin.models.product import ProductRecord
from ecostore_admin.services.gateway import RemoteGateway, RequestError
from ecostore_admin.services.save_warnings import SaveWarningLedger

router = APIRouter(prefix="/api", tags=["products"])


def _raise_upstream(e: RequestError):
    # backend 4xx are passed through, anything else is a bad gateway
    code = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
    raise HTTPException(status_code=code, detail=e.message)


def _rows(data: Any) -> List[dict]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("products", "items", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


@router.get("/products", response_model=List[ProductOut])
async def list_products(
    q: Optional[str] = Query(None, description="search query (title)"),
    gateway: RemoteGateway = Depends(get_gateway),
):
    """
    Catalog listing for the products table. Supports optional title substring
    search via `q`.
    """
    try:
        data = await gateway.list_products()
    except RequestError as e:
        _raise_upstream(e)
    results = []
    for row in _rows(data):
        try:
            rec = ProductRecord.from_dict(row)
        except ValueError as e:
            raise HTTPException(status_code=502, detail=f"Unexpected product list response: {e}")
        if q and q.lower() not in rec.title.lower():
            continue
        results.append(ProductOut(**rec.to_dict()))
    return results


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    confirm: bool = Query(False, description="must be true; the dashboard asks before deleting"),
    gateway: RemoteGateway = Depends(get_gateway),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed (confirm=true)")
    try:
        await gateway.delete_product(product_id)
    except RequestError as e:
        _raise_upstream(e)
    return {"ok": True}


@router.patch("/products/bulk-discount")
async def apply_bulk_discount(payload: BulkDiscount, gateway: RemoteGateway = Depends(get_gateway)):
    try:
        data = await gateway.apply_bulk_discount(payload.product_ids, payload.discount_percent)
    except RequestError as e:
        _raise_upstream(e)
    return {"ok": True, "result": data}


@router.get("/save-warnings", response_model=List[SaveWarningOut])
def list_save_warnings(
    product_id: Optional[str] = Query(None),
    ledger: SaveWarningLedger = Depends(get_ledger),
):
    """Image removals/uploads that failed after their product was saved."""
    return [SaveWarningOut(**row) for row in ledger.list(product_id)]


@router.get("/save-warnings/{warning_id}", response_model=SaveWarningOut)
def read_save_warning(warning_id: str, ledger: SaveWarningLedger = Depends(get_ledger)):
    row = ledger.get(warning_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Warning not found")
    return SaveWarningOut(**row)


@router.delete("/save-warnings/{warning_id}")
def dismiss_save_warning(warning_id: str, ledger: SaveWarningLedger = Depends(get_ledger)):
    if not ledger.dismiss(warning_id):
        raise HTTPException(status_code=404, detail="Warning not found")
    return {"ok": True}
