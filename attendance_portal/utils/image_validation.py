"""
Photo checks applied before any upload.
"""
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config.settings import ALLOWED_PHOTO_TYPES, MAX_PHOTO_BYTES
from ..errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class PhotoFile:
    """An in-memory photo ready to be sent as multipart ``file``."""
    name: str
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    def as_upload(self) -> Tuple[str, bytes, str]:
        return (self.name, self.data, self.mime_type)


def guess_mime_type(name: str) -> Optional[str]:
    mime, _ = mimetypes.guess_type(name or "")
    return mime


def validate_photo(name: str, data: bytes, mime_type: Optional[str] = None) -> PhotoFile:
    """
    Validate a photo picked from disk or captured from the camera.

    Args:
        name (str): File name
        data (bytes): File content
        mime_type (str): Declared MIME type; guessed from the name if missing

    Returns:
        PhotoFile: The accepted photo

    Raises:
        ValidationError: Empty file, unsupported type or larger than 5 MB
    """
    mime_type = mime_type or guess_mime_type(name)
    if not data:
        raise ValidationError("The selected file is empty.", field="photo")
    if mime_type not in ALLOWED_PHOTO_TYPES:
        raise ValidationError("Only JPEG and PNG images are allowed.", field="photo")
    if len(data) > MAX_PHOTO_BYTES:
        limit_mb = MAX_PHOTO_BYTES // (1024 * 1024)
        raise ValidationError(f"The photo must be smaller than {limit_mb} MB.", field="photo")

    logger.debug("Accepted photo %s (%s, %d bytes)", name, mime_type, len(data))
    return PhotoFile(name=name, data=data, mime_type=mime_type)


def read_photo(path: str) -> PhotoFile:
    """Load and validate a photo from the local filesystem."""
    with open(path, "rb") as f:
        data = f.read()
    return validate_photo(os.path.basename(path), data, guess_mime_type(path))
