"""Image checks for uploads."""
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from batchreview.settings import settings


def open_image_from_bytes(data: bytes) -> Image.Image:
    """
    Open PIL Image from bytes.
    
    Args:
        data: Image bytes
        
    Returns:
        PIL Image object
        
    Raises:
        ValueError: If image cannot be opened
    """
    try:
        return Image.open(BytesIO(data))
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Invalid image data: {str(e)}")


def detect_image_format(data: bytes) -> Optional[str]:
    """Pillow format name of the image (e.g. "PNG"), or None if unreadable."""
    try:
        image = open_image_from_bytes(data)
    except ValueError:
        return None
    with image:
        try:
            image.verify()
        except Exception:
            # verify() raises a range of decoder errors for truncated or corrupt files
            return None
        return image.format


def has_allowed_extension(filename: str, allowed: Iterable[str] = None) -> bool:
    """True if the filename ends in one of the allowed image extensions."""
    if allowed is None:
        allowed = settings.ALLOWED_EXTENSIONS
    return Path(filename or "").suffix.lower() in set(allowed)


def is_allowed_image(filename: str, data: bytes) -> bool:
    """
    Accept an upload only when both the extension and the decoded
    format are in the allowed image types.
    """
    if not has_allowed_extension(filename):
        return False
    image_format = detect_image_format(data)
    return image_format is not None and image_format in settings.ALLOWED_IMAGE_FORMATS
