import requests
from typing import Any, Dict, Optional

from doctor_portal.core.config import settings
from doctor_portal.core.errors import BlobUploadError

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud}/image/upload"


def _error_message(r: requests.Response) -> str:
    try:
        body: Dict[str, Any] = r.json()
    except ValueError:
        return r.text or f"HTTP {r.status_code}"
    err = body.get("error")
    if isinstance(err, dict):
        return err.get("message") or str(err)
    return str(err or body)


class BlobUploader:
    """Unsigned Cloudinary uploads for prescription images."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        upload_preset: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.CLOUDINARY_CLOUD_NAME
        self.upload_preset = (
            upload_preset if upload_preset is not None else settings.CLOUDINARY_UPLOAD_PRESET
        )
        self.timeout = timeout or settings.CLOUDINARY_TIMEOUT
        self.session = session or requests.Session()

    def upload(self, data: bytes, filename: str = "prescription", content_type: str = "image/jpeg") -> str:
        """Upload the bytes and return the provider's secure URL."""
        if not self.cloud_name or not self.upload_preset:
            raise BlobUploadError("Image upload is not configured (CLOUDINARY_CLOUD_NAME / CLOUDINARY_UPLOAD_PRESET)")

        url = CLOUDINARY_UPLOAD_URL.format(cloud=self.cloud_name)
        try:
            r = self.session.post(
                url,
                data={"upload_preset": self.upload_preset},
                files={"file": (filename, data, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BlobUploadError(f"Image upload failed: {e}") from e

        if not r.ok:
            raise BlobUploadError(f"Image upload failed: {_error_message(r)}")

        try:
            body = r.json()
        except ValueError as e:
            raise BlobUploadError("Image upload failed: invalid response") from e

        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        if not secure_url:
            raise BlobUploadError("Image upload failed: no secure_url in response")
        return secure_url
