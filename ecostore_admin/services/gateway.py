# ecostore_admin/services/gateway.py
"""
Async client for the storefront REST backend.

Every call goes through RemoteGateway._request(), which sends JSON (except
multipart uploads), and turns non-2xx responses into RequestError carrying
the server's `message` when one can be parsed.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ecostore_admin.utils.images import StagedFile

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Network response was not ok"
UNKNOWN_ERROR = "An unknown error occurred"


class RequestError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnknownRequestError(RequestError):
    """Failure whose cause could not be read from the server response."""


class RemoteGateway:
    def __init__(self, base_url: str, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, endpoint: str, json_body: Any = None,
                       files: Optional[List] = None) -> Any:
        headers = {}
        if files is None:
            headers["Content-Type"] = "application/json"
        try:
            resp = await self._client.request(method, endpoint, json=json_body, files=files, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, endpoint, exc)
            raise UnknownRequestError(UNKNOWN_ERROR) from exc

        if resp.status_code >= 400:
            try:
                err = resp.json()
            except ValueError:
                raise UnknownRequestError(UNKNOWN_ERROR, resp.status_code)
            message = err.get("message") if isinstance(err, dict) else None
            raise RequestError(message or GENERIC_ERROR, resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            raise UnknownRequestError("Invalid JSON from backend", resp.status_code)

    # --- products -------------------------------------------------------

    async def list_products(self) -> Any:
        return await self._request("GET", "/product/list")

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/product/{product_id}")

    async def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/product/create", json_body=fields)

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        # fields["images"] is the full desired image list; the backend treats it as authoritative
        return await self._request("PUT", f"/product/update/{product_id}", json_body=fields)

    async def remove_product_images(self, product_id: str, refs: List[str]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/product/{product_id}/remove-images", json_body={"images": list(refs)})

    async def upload_product_images(self, product_id: str, files: List[StagedFile]) -> Dict[str, Any]:
        parts = [("images", (f.filename, f.content, f.content_type)) for f in files]
        return await self._request("POST", f"/product/{product_id}/upload-images", files=parts)

    async def delete_product(self, product_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/product/delete/{product_id}")

    async def apply_bulk_discount(self, product_ids: List[str], discount_percent: float) -> Dict[str, Any]:
        body = {"productIds": list(product_ids), "discountPercent": discount_percent}
        return await self._request("PATCH", "/product/bulk-discount", json_body=body)
