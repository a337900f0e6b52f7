"""Client for the hosted object storage (Supabase storage REST API).

Artwork lives in one bucket under fixed prefixes and is named
deterministically from its owner's slug, so a re-upload replaces the previous
file instead of piling up copies. Links handed to the dashboard are signed
URLs with a very long expiry.
"""

import logging
import urllib.parse

import httpx

from app.core.config import settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

PROFILE_PICTURES = "profile-pictures"
COVERS = "covers"
CATEGORY_IMAGES = "category-images"

# prefix -> purpose suffix used in the object name
ASSET_PURPOSES: dict[str, str] = {
    PROFILE_PICTURES: "profile_picture",
    COVERS: "cover",
    CATEGORY_IMAGES: "category_img",
}

DEFAULT_EXTENSION = "jpg"


def asset_path(prefix: str, slug: str, filename: str | None, purpose: str | None = None) -> str:
    """Object path ``{prefix}/{slug}_{purpose}.{ext}`` for an uploaded file."""
    purpose = purpose or ASSET_PURPOSES[prefix]
    ext = DEFAULT_EXTENSION
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower() or DEFAULT_EXTENSION
    return f"{prefix}/{slug}_{purpose}.{ext}"


def object_path_from_url(url: str | None, bucket: str | None = None) -> str | None:
    """Recover ``prefix/name.ext`` from a signed or public object URL."""
    if not url:
        return None
    bucket = bucket or settings.STORAGE_BUCKET
    path = urllib.parse.unquote(urllib.parse.urlparse(url).path)
    for marker in (f"/object/sign/{bucket}/", f"/object/public/{bucket}/"):
        if marker in path:
            return path.split(marker, 1)[1] or None
    return None


class StorageClient:
    """Thin async wrapper over the storage endpoints this service needs."""

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        bucket: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_KEY
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def storage_url(self) -> str:
        return f"{self.base_url}/storage/v1"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.storage_url}{path}"
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
                resp.raise_for_status()
                return resp
        except httpx.HTTPStatusError as exc:
            logger.error("Storage %s %s failed: %s", method, path, exc.response.status_code)
            raise StorageError(f"Storage rejected {method} {path}")
        except httpx.RequestError as exc:
            logger.error("Storage connection error: %s", exc)
            raise StorageError("Cannot reach object storage")

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        await self._request(
            "POST",
            f"/object/{self.bucket}/{path}",
            content=content,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        return path

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        await self._request("DELETE", f"/object/{self.bucket}", json={"prefixes": paths})

    async def create_signed_url(self, path: str, expires_in: int | None = None) -> str:
        resp = await self._request(
            "POST",
            f"/object/sign/{self.bucket}/{path}",
            json={"expiresIn": expires_in or settings.SIGNED_URL_EXPIRES_IN},
        )
        signed = resp.json().get("signedURL") or resp.json().get("signedUrl")
        if not signed:
            raise StorageError(f"No signed URL returned for {path}")
        if signed.startswith("http"):
            return signed
        return f"{self.storage_url}{signed}"

    async def upload_and_sign(
        self,
        prefix: str,
        slug: str,
        filename: str | None,
        content: bytes,
        content_type: str,
        previous_url: str | None = None,
    ) -> str:
        """Replace an owner's asset and return a long-lived signed URL.

        The previous object is removed first when its name differs (e.g. the
        extension changed), mirroring the dashboard's remove-then-upload flow.
        """
        path = asset_path(prefix, slug, filename)
        stale = object_path_from_url(previous_url, self.bucket)
        to_remove = [path] if stale in (None, path) else [stale, path]
        await self.remove(to_remove)
        await self.upload(path, content, content_type)
        url = await self.create_signed_url(path)
        logger.info("Uploaded %s (%d bytes)", path, len(content))
        return url

    async def remove_urls(self, urls: list[str | None]) -> None:
        """Best-effort removal of the objects behind previously issued URLs."""
        paths = [p for p in (object_path_from_url(u, self.bucket) for u in urls) if p]
        if not paths:
            return
        try:
            await self.remove(paths)
        except StorageError:
            logger.warning("Could not remove storage objects %s", paths)


def get_storage() -> StorageClient:
    """Dependency returning a storage client configured from settings."""
    return StorageClient()
