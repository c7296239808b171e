# tests/conftest.py
import os
import sys
import io
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# point data/preview dirs at a temp location before the app modules import settings
_tmp_root = Path(tempfile.mkdtemp(prefix="test_admin_"))
from ecostore_admin import config as app_config  # noqa: E402
app_config.settings.DATA_DIR = _tmp_root / "data"
app_config.settings.PREVIEW_DIR = _tmp_root / "previews"

from ecostore_admin import database as app_database  # noqa: E402
from ecostore_admin.api import deps  # noqa: E402
from ecostore_admin.main import app  # noqa: E402
from ecostore_admin.services.gateway import RequestError  # noqa: E402
from ecostore_admin.utils.images import StagedFile  # noqa: E402


class FakeGateway:
    """
    In-memory stand-in for RemoteGateway. Every call is appended to `calls`
    as (name, args). Put an exception in `failures[name]` to make that call
    raise, or a dict in `responses[name]` to control what it returns.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.responses: Dict[str, Any] = {}
        self.products: Dict[str, Dict[str, Any]] = {}

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def calls_to(self, name: str) -> List[tuple]:
        return [c[1] for c in self.calls if c[0] == name]

    async def _call(self, name: str, *args, default=None):
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]
        if name in self.responses:
            return self.responses[name]
        return default if default is not None else {}

    async def list_products(self):
        return await self._call("list_products", default=list(self.products.values()))

    async def get_product(self, product_id: str):
        data = await self._call("get_product", product_id, default=self.products.get(product_id))
        if not data:
            raise RequestError("Product not found", 404)
        return data

    async def create_product(self, fields):
        return await self._call("create_product", dict(fields), default={"product": {"_id": "new-1", **fields}})

    async def update_product(self, product_id, fields):
        return await self._call("update_product", product_id, dict(fields), default={"ok": True})

    async def remove_product_images(self, product_id, refs):
        return await self._call("remove_product_images", product_id, list(refs), default={"ok": True})

    async def upload_product_images(self, product_id, files):
        return await self._call("upload_product_images", product_id, list(files),
                                default={"uploadedCount": len(files)})

    async def delete_product(self, product_id):
        return await self._call("delete_product", product_id, default={"ok": True})

    async def apply_bulk_discount(self, product_ids, discount_percent):
        return await self._call("apply_bulk_discount", list(product_ids), discount_percent,
                                default={"modifiedCount": len(product_ids)})


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path):
    """
    Each test gets its own data and preview directories; forms left open by a
    test are torn down afterwards.
    """
    data_dir = tmp_path / "data"
    preview_dir = tmp_path / "previews"
    app_database.db.data_dir = data_dir
    deps.registry.preview_dir = preview_dir
    try:
        yield {"data": data_dir, "previews": preview_dir}
    finally:
        deps.registry.close_all()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def client(fake_gateway):
    app.dependency_overrides[deps.get_gateway] = lambda: fake_gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_sample_jpeg_bytes():
    """
    Return a callable that generates JPEG bytes for tests that need image uploads.
    Usage: jpg = make_sample_jpeg_bytes(size=(200,200))
    """
    def _fn(size=(200, 200), color=(120, 160, 90)):
        bio = io.BytesIO()
        im = Image.new("RGB", size, color)
        im.save(bio, format="JPEG", quality=85)
        bio.seek(0)
        return bio.read()
    return _fn


@pytest.fixture
def staged_file(make_sample_jpeg_bytes):
    """
    Build a StagedFile. Pass `size` for raw bytes of that length instead of a real JPEG.
    """
    def _fn(name="photo.jpg", size: Optional[int] = None):
        content = make_sample_jpeg_bytes() if size is None else b"\x00" * size
        return StagedFile(filename=name, content=content, content_type="image/jpeg")
    return _fn


@pytest.fixture
def valid_fields():
    return {
        "title": "Seed Paper Notebook",
        "description": "Plantable cover, recycled pages",
        "original_price": "249",
        "discount_percent": "0",
        "stock": "12",
        "category": "Paper",
    }
