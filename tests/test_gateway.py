import asyncio
import json

import httpx
import pytest

from ecostore_admin.services.gateway import RemoteGateway, RequestError, UnknownRequestError
from ecostore_admin.utils.images import StagedFile


def make_gateway(handler):
    return RemoteGateway("http://backend.test", transport=httpx.MockTransport(handler))


def call(gateway, method, *args):
    async def _go():
        try:
            return await getattr(gateway, method)(*args)
        finally:
            await gateway.aclose()
    return asyncio.run(_go())


def test_json_calls_hit_api_paths_with_json_header():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, json={"product": {"_id": "abc"}})

    data = call(make_gateway(handler), "create_product", {"title": "Pen"})

    assert data == {"product": {"_id": "abc"}}
    req = seen[0]
    assert req.method == "POST"
    assert req.url.path == "/api/product/create"
    assert req.headers["content-type"] == "application/json"
    assert json.loads(req.content) == {"title": "Pen"}


@pytest.mark.parametrize("method,args,verb,path", [
    ("list_products", (), "GET", "/api/product/list"),
    ("get_product", ("p1",), "GET", "/api/product/p1"),
    ("update_product", ("p1", {"title": "x"}), "PUT", "/api/product/update/p1"),
    ("remove_product_images", ("p1", ["a.jpg"]), "PATCH", "/api/product/p1/remove-images"),
    ("delete_product", ("p1",), "DELETE", "/api/product/delete/p1"),
    ("apply_bulk_discount", (["p1", "p2"], 20), "PATCH", "/api/product/bulk-discount"),
])
def test_endpoint_routing(method, args, verb, path):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    call(make_gateway(handler), method, *args)
    assert (seen[0].method, seen[0].url.path) == (verb, path)


def test_bulk_discount_body():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={})

    call(make_gateway(handler), "apply_bulk_discount", ["p1"], 25)
    assert seen[0] == {"productIds": ["p1"], "discountPercent": 25}


def test_upload_is_multipart_without_json_header():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"uploadedCount": 2})

    files = [
        StagedFile("one.jpg", b"\xff\xd8one", "image/jpeg"),
        StagedFile("two.png", b"\x89PNGtwo", "image/png"),
    ]
    data = call(make_gateway(handler), "upload_product_images", "p9", files)

    assert data["uploadedCount"] == 2
    req = seen[0]
    assert req.url.path == "/api/product/p9/upload-images"
    assert req.headers["content-type"].startswith("multipart/form-data")
    body = req.content
    assert body.count(b'name="images"') == 2
    assert body.index(b'filename="one.jpg"') < body.index(b'filename="two.png"')


def test_server_message_is_surfaced():
    def handler(request):
        return httpx.Response(400, json={"message": "Price must be positive"})

    with pytest.raises(RequestError) as exc:
        call(make_gateway(handler), "create_product", {})
    assert exc.value.message == "Price must be positive"
    assert exc.value.status_code == 400
    assert not isinstance(exc.value, UnknownRequestError)


def test_error_without_message_gets_generic_text():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(RequestError) as exc:
        call(make_gateway(handler), "update_product", "p1", {})
    assert exc.value.message == "Network response was not ok"


def test_unparseable_error_body_is_unknown_error():
    def handler(request):
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    with pytest.raises(UnknownRequestError) as exc:
        call(make_gateway(handler), "delete_product", "p1")
    assert exc.value.message == "An unknown error occurred"
    assert exc.value.status_code == 502


def test_transport_failure_is_unknown_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UnknownRequestError):
        call(make_gateway(handler), "list_products")


def test_empty_success_body():
    def handler(request):
        return httpx.Response(204)

    assert call(make_gateway(handler), "delete_product", "p1") == {}
