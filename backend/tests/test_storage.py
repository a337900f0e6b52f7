"""Unit tests for the object storage client and image upload checks."""

import json
from io import BytesIO

import httpx
import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from app.api.common import MAX_UPLOAD_BYTES, read_image_upload
from app.core.exceptions import StorageError
from app.services.storage import (
    CATEGORY_IMAGES,
    COVERS,
    PROFILE_PICTURES,
    StorageClient,
    asset_path,
    object_path_from_url,
)

BASE = "https://proj.supabase.test"


def client_with(handler):
    return StorageClient(
        base_url=BASE,
        service_key="service",
        bucket="store-assets",
        transport=httpx.MockTransport(handler),
    )


# ── Naming ─────────────────────────────────────────

def test_asset_path_per_prefix():
    assert asset_path(PROFILE_PICTURES, "acme", "Logo.PNG") == "profile-pictures/acme_profile_picture.png"
    assert asset_path(COVERS, "acme", "banner.webp") == "covers/acme_cover.webp"
    assert asset_path(CATEGORY_IMAGES, "travel", "x.jpeg") == "category-images/travel_category_img.jpeg"


def test_asset_path_without_extension():
    assert asset_path(COVERS, "acme", None) == "covers/acme_cover.jpg"
    assert asset_path(COVERS, "acme", "banner") == "covers/acme_cover.jpg"


def test_object_path_from_signed_url():
    url = f"{BASE}/storage/v1/object/sign/store-assets/covers/acme_cover.png?token=abc"
    assert object_path_from_url(url, "store-assets") == "covers/acme_cover.png"


def test_object_path_from_public_url():
    url = f"{BASE}/storage/v1/object/public/store-assets/covers/acme%20co_cover.png"
    assert object_path_from_url(url, "store-assets") == "covers/acme co_cover.png"


def test_object_path_from_foreign_url():
    assert object_path_from_url("https://cdn.example.com/img.png", "store-assets") is None
    assert object_path_from_url(None) is None


# ── Client ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_upload_and_sign_replaces_previous_object():
    """Old object (different extension) and target are removed, then upload + sign."""
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        assert request.headers["authorization"] == "Bearer service"
        if request.method == "DELETE":
            assert json.loads(request.content) == {
                "prefixes": ["profile-pictures/acme_profile_picture.jpg", "profile-pictures/acme_profile_picture.png"]
            }
            return httpx.Response(200, json=[])
        if request.url.path.startswith("/storage/v1/object/sign/"):
            assert json.loads(request.content)["expiresIn"] > 0
            return httpx.Response(200, json={"signedURL": "/object/sign/store-assets/profile-pictures/acme_profile_picture.png?token=t"})
        assert request.headers["x-upsert"] == "true"
        assert request.headers["content-type"] == "image/png"
        assert request.content == b"img"
        return httpx.Response(200, json={"Key": "store-assets/profile-pictures/acme_profile_picture.png"})

    previous = f"{BASE}/storage/v1/object/sign/store-assets/profile-pictures/acme_profile_picture.jpg?token=old"
    url = await client_with(handler).upload_and_sign(
        PROFILE_PICTURES, "acme", "me.png", b"img", "image/png", previous_url=previous
    )

    assert calls == [
        ("DELETE", "/storage/v1/object/store-assets"),
        ("POST", "/storage/v1/object/store-assets/profile-pictures/acme_profile_picture.png"),
        ("POST", "/storage/v1/object/sign/store-assets/profile-pictures/acme_profile_picture.png"),
    ]
    assert url == f"{BASE}/storage/v1/object/sign/store-assets/profile-pictures/acme_profile_picture.png?token=t"


@pytest.mark.asyncio
async def test_upload_failure_raises_storage_error():
    def handler(request):
        if request.method == "DELETE":
            return httpx.Response(200, json=[])
        return httpx.Response(413, json={"error": "Payload too large"})

    with pytest.raises(StorageError) as exc_info:
        await client_with(handler).upload_and_sign(COVERS, "acme", "c.png", b"img", "image/png")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_missing_signed_url():
    def handler(request):
        return httpx.Response(200, json={})

    with pytest.raises(StorageError):
        await client_with(handler).create_signed_url("covers/acme_cover.png")


@pytest.mark.asyncio
async def test_remove_urls_is_best_effort():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    # Must not raise
    await client_with(handler).remove_urls(
        [f"{BASE}/storage/v1/object/sign/store-assets/covers/acme_cover.png?token=t", None]
    )


@pytest.mark.asyncio
async def test_remove_urls_skips_foreign_urls():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    await client_with(handler).remove_urls(["https://cdn.example.com/x.png", None])

    assert calls == []


# ── Upload validation ──────────────────────────────

def make_upload(content, content_type="image/png"):
    return UploadFile(file=BytesIO(content), filename="x.png", headers=Headers({"content-type": content_type}))


@pytest.mark.asyncio
async def test_read_image_upload():
    assert await read_image_upload(make_upload(b"png-bytes")) == b"png-bytes"


@pytest.mark.asyncio
async def test_read_image_upload_rejects_type():
    with pytest.raises(HTTPException) as exc_info:
        await read_image_upload(make_upload(b"gif", "image/gif"))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_read_image_upload_rejects_empty():
    with pytest.raises(HTTPException) as exc_info:
        await read_image_upload(make_upload(b""))
    assert "empty" in exc_info.value.detail


@pytest.mark.asyncio
async def test_read_image_upload_rejects_oversize():
    with pytest.raises(HTTPException) as exc_info:
        await read_image_upload(make_upload(b"x" * (MAX_UPLOAD_BYTES + 1)))
    assert "too large" in exc_info.value.detail
