import asyncio
import pytest
from fastapi import HTTPException
from starlette.datastructures import Headers

from conftest import FakeStorage, UnreadableUpload
from giftshop.api.uploads import upload_image
from giftshop.services.storage import UploadService


def test_health_and_info(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/v1/_info").json()["service"] == "giftshop"


def test_catalog_lists_all_services(client):
    services = client.get("/").json()["services"]
    assert [s["product_type"] for s in services] == ["song", "portrait", "poetry", "book"]
    assert services[1]["href"] == "/create/portrait"


def test_upload_endpoint_returns_storage_url(client, storage):
    resp = client.post("/uploads", files={"file": ("cat.png", b"\x89PNG....", "image/png")})
    assert resp.status_code == 200
    assert resp.json()["url"].startswith("http://storage.test/user-uploads/")


def test_upload_endpoint_rejects_non_images(client, storage):
    resp = client.post("/uploads", files={"file": ("cv.pdf", b"%PDF-1.7", "application/pdf")})
    assert resp.status_code == 422
    assert storage.attempts == []


def test_upload_endpoint_rejects_large_files(client, settings, storage):
    settings.MAX_UPLOAD_BYTES = 4
    resp = client.post("/uploads", files={"file": ("cat.png", b"\x89PNG....", "image/png")})
    assert resp.status_code == 413
    assert storage.attempts == []


def test_upload_endpoint_degrades_to_placeholder(client, storage):
    storage.missing = {"user-uploads", "public", "avatars"}
    resp = client.post("/uploads", files={"file": ("cat.png", b"\x89PNG....", "image/png")})
    assert resp.status_code == 200
    assert resp.json()["url"].endswith("text=cat.png")


def test_upload_size_checked_before_reading(settings):
    settings.MAX_UPLOAD_BYTES = 1024
    upload = UnreadableUpload(file=None, size=2048, filename="huge.png",
                              headers=Headers({"content-type": "image/png"}))
    storage = FakeStorage()
    with pytest.raises(HTTPException) as exc:
        asyncio.run(upload_image(file=upload, uploader=UploadService(storage, settings.bucket_order),
                                 settings=settings))
    assert exc.value.status_code == 413
    assert storage.attempts == []
