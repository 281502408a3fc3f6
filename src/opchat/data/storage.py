"""Image storage for NFT minting.

Images are validated locally before any network call. Uploads go to a
Greenfield-style storage provider; the public view URL follows the
``{endpoint}/view/{bucket}/{object}`` convention.
"""

import logging
import mimetypes
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import httpx

from opchat.config.settings import Settings, get_settings
from opchat.security.credentials import CredentialManager
from opchat.utils.errors import UploadError

logger = logging.getLogger(__name__)

INVALID_TYPE_ERROR = "Please upload a valid image file (JPEG, PNG, GIF, or WebP)"


@dataclass
class UploadFile:
    """An image picked by the user."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "UploadFile":
        """Read a file from disk, guessing its type from the extension."""
        path = Path(path).expanduser()
        try:
            data = path.read_bytes()
        except OSError as e:
            raise UploadError(
                f"Cannot read {path.name}", suggestion="Check the file path", original=e
            ) from e
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or "application/octet-stream",
            data=data,
        )


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None


@dataclass
class UploadResult:
    success: bool
    url: Optional[str] = None
    object_name: Optional[str] = None
    error: Optional[str] = None


class StorageService:
    """Validates and uploads NFT images."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=120.0)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def validate(self, file: UploadFile) -> ValidationResult:
        """Check type and size before anything is sent."""
        storage = self.settings.storage
        if file.content_type.lower() not in storage.allowed_types:
            return ValidationResult(valid=False, error=INVALID_TYPE_ERROR)
        if file.size > storage.max_upload_bytes:
            limit_mb = storage.max_upload_bytes // (1024 * 1024)
            return ValidationResult(valid=False, error=f"File size must be less than {limit_mb}MB")
        return ValidationResult(valid=True)

    def object_name_for(self, file_name: str) -> str:
        """Build a unique object key under ``nft-images/``."""
        safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", file_name)
        timestamp = int(datetime.now().timestamp() * 1000)
        return f"nft-images/{timestamp}-{safe_name}"

    def view_url(self, object_name: str) -> str:
        storage = self.settings.storage
        return f"{storage.sp_endpoint.rstrip('/')}/view/{storage.bucket_name}/{object_name}"

    async def upload(
        self,
        file: UploadFile,
        signing_key: Optional[str],
        file_name: Optional[str] = None,
    ) -> UploadResult:
        """Upload an image and return its public URL.

        Failures are reported in the result, never raised.
        """
        if not signing_key:
            return UploadResult(success=False, error="Wallet not connected")

        validation = self.validate(file)
        if not validation.valid:
            return UploadResult(success=False, error=validation.error)

        object_name = self.object_name_for(file_name or file.name)
        upload_url = self.settings.storage.upload_url

        if self.settings.demo_mode or not upload_url:
            logger.info(f"[demo] Stored {file.name} ({file.size} bytes) as {object_name}")
            return UploadResult(success=True, url=self.view_url(object_name), object_name=object_name)

        headers = {"Content-Type": file.content_type}
        token = CredentialManager.get_storage_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            client = await self._get_client()
            response = await client.put(
                f"{upload_url.rstrip('/')}/{self.settings.storage.bucket_name}/{object_name}",
                content=file.data,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Upload rejected: {e}")
            return UploadResult(
                success=False, error=f"Upload failed (HTTP {e.response.status_code})"
            )
        except httpx.HTTPError as e:
            logger.error(f"Upload failed: {e}")
            return UploadResult(success=False, error=f"Upload failed: {e}")

        logger.info(f"Uploaded {file.name} as {object_name}")
        return UploadResult(success=True, url=self.view_url(object_name), object_name=object_name)


def generate_nft_metadata(
    name: str,
    description: str,
    image_url: str,
    attributes: Optional[list[dict[str, Any]]] = None,
    external_url: Optional[str] = None,
) -> dict[str, Any]:
    """Build an ERC-721 style metadata document."""
    return {
        "name": name,
        "description": description,
        "image": image_url,
        "attributes": attributes or [],
        "external_url": external_url or image_url,
        "background_color": "000000",
        "animation_url": None,
    }
