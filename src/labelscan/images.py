import base64
import mimetypes
import os

from .errors import ValidationError
from .logging import get_logger

LOG = get_logger("images")

# Larger images do not round-trip reliably as base64 through the vision model.
MAX_IMAGE_BYTES = 4 * 1024 * 1024


def _guess_image_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    if mime:
        return mime
    ext = os.path.splitext(path)[1].lower()
    if ext in {".jpg", ".jpeg", ".jpe", ".jfif"}:
        return "image/jpeg"
    return "image/png"


def image_data_url(path: str) -> str:
    """Read an image file and return it as a base64 data URL."""
    mime = _guess_image_mime(path)
    if not mime.startswith("image/"):
        raise ValidationError(f"Unsupported file type: {mime}")
    try:
        size = os.path.getsize(path)
    except OSError as e:
        raise ValidationError(f"Failed to read image file: {e}") from e
    if size > MAX_IMAGE_BYTES:
        raise ValidationError("Image too large. Please use an image under 4MB.")
    with open(path, "rb") as f:
        data = f.read()
    LOG.debug(f"Encoded {path} ({size} bytes, {mime})")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
