"""Media store for clock-in/out photos.

Clients send photos as ``data:image/...;base64,...`` URLs; the store keeps the
bytes and hands back a stable URL that is embedded in the capture instead.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog
from PIL import Image

from ..core.exceptions import UpstreamError, ValidationError

logger = structlog.get_logger(__name__)

_DATA_URL = re.compile(r"^data:image/[\w.+-]+;base64,(?P<payload>.+)$", re.DOTALL)
_EXTENSIONS = {"jpeg": "jpg", "png": "png", "webp": "webp", "gif": "gif", "bmp": "bmp"}


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str


class MediaStore(Protocol):
    def upload_data_url(self, data_url: str) -> StoredMedia:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError


def decode_image_data_url(data_url: str) -> tuple[bytes, str]:
    """Return (raw bytes, file extension) of a base64 image data URL."""
    match = _DATA_URL.match((data_url or "").strip())
    if not match:
        raise ValidationError("Photo must be a base64 encoded image")
    try:
        raw = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Photo payload is not valid base64")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            image_format = (img.format or "").lower()
            img.verify()
    except (OSError, ValueError, SyntaxError):
        raise ValidationError("Photo payload is not a readable image")

    extension = _EXTENSIONS.get(image_format)
    if extension is None:
        raise ValidationError(f"Unsupported photo format: {image_format or 'unknown'}")
    return raw, extension


class LocalMediaStore(MediaStore):
    """Filesystem media store for development and single-node deployments."""

    def __init__(self, base_dir: str | Path, *, base_url: str, folder: str = "attendance"):
        self._base_dir = Path(base_dir)
        self._base_url = base_url.rstrip("/")
        self._folder = folder

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def upload_data_url(self, data_url: str) -> StoredMedia:
        raw, extension = decode_image_data_url(data_url)
        public_id = f"{self._folder}/{uuid.uuid4().hex}"
        path = self._base_dir / f"{public_id}.{extension}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(raw)
        except OSError as exc:
            logger.error("media_write_failed", path=str(path), error=str(exc))
            raise UpstreamError("Could not store the photo") from exc
        return StoredMedia(url=f"{self._base_url}/{public_id}.{extension}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        """Remove a stored photo; a missing file is not an error."""
        for path in self._base_dir.glob(f"{public_id}.*"):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("media_delete_failed", path=str(path), error=str(exc))
