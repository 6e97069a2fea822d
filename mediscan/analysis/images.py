# ============================================
# Scan Image Validation
# ============================================
"""
Check uploaded scan files before anything is sent to the cloud store.

Validation Checks Performed:
1. Extension is one of the accepted scan formats
2. File is not empty and not larger than 10 MB
3. Raster images (JPEG, PNG) decode fully with Pillow
4. DICOM files are accepted as opaque bytes
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

RASTER_EXTENSIONS = {".jpeg", ".jpg", ".png"}
DICOM_EXTENSIONS = {".dicom", ".dcm"}
ACCEPTED_EXTENSIONS = RASTER_EXTENSIONS | DICOM_EXTENSIONS

MIME_TYPES = {
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".dicom": "application/dicom",
    ".dcm": "application/dicom",
}


@dataclass
class ImageValidationResult:
    """
    Result of scan image validation.

    Attributes:
        is_valid: Whether the file passed all checks
        error_message: Description of the failure (if any)
        size: Image dimensions for raster images
        mime_type: MIME type derived from the extension
        file_size_bytes: Size of the upload
    """
    is_valid: bool
    error_message: Optional[str] = None
    size: Optional[Tuple[int, int]] = None
    mime_type: Optional[str] = None
    file_size_bytes: int = 0


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


def validate_scan_image(content: bytes, filename: str) -> ImageValidationResult:
    """
    Validate an uploaded scan file.

    Args:
        content: Raw file bytes
        filename: Original file name (used for the extension)

    Returns:
        ImageValidationResult
    """
    extension = Path(filename).suffix.lower()
    result = ImageValidationResult(
        is_valid=False,
        mime_type=mime_type_for(filename),
        file_size_bytes=len(content),
    )

    if extension not in ACCEPTED_EXTENSIONS:
        result.error_message = f"Unsupported file type: {extension or filename}"
        return result
    if not content:
        result.error_message = "File is empty"
        return result
    if len(content) > MAX_UPLOAD_BYTES:
        result.error_message = f"File too large: {len(content) / 1024 / 1024:.1f} MB (maximum 10 MB)"
        return result

    if extension in DICOM_EXTENSIONS:
        result.is_valid = True
        return result

    try:
        image = Image.open(io.BytesIO(content))
        # load() forces full decode, catching truncated files
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        result.error_message = f"Corrupted image file: {e}"
        return result

    result.size = image.size
    result.is_valid = True
    return result
