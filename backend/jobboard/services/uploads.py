"""
Local file storage for profile documents and company logos.

Documents live under UPLOAD_DIR/<user_id>/<type>/<timestamp>-<safe name>,
logos under UPLOAD_DIR/company-logos/<company_id>/<timestamp><ext>. Returned
names are relative to UPLOAD_DIR; a document name always starts with the
owner's id.

Uploads are read in bounded chunks so an oversized body is refused without
being held in memory.
"""

import logging
import re
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from jobboard.core.config import settings

logger = logging.getLogger("uploads")

DOCUMENT_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]

ALLOWED_CONTENT_TYPES = {
    "resume": DOCUMENT_TYPES,
    "certification": DOCUMENT_TYPES + ["image/jpeg", "image/png"],
}

TYPE_NAMES = {
    "resume": "PDF, DOC, or DOCX",
    "certification": "PDF, DOC, DOCX, JPG, or PNG",
}

LOGO_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp", "image/svg+xml"]
LOGO_MAX_SIZE_MB = 5
LOGO_MAX_BYTES = LOGO_MAX_SIZE_MB * 1024 * 1024
LOGO_SIZE_ERROR = f"File too large. Maximum size is {LOGO_MAX_SIZE_MB}MB."

CHUNK_SIZE = 1024 * 1024


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR).resolve()


def validate_upload(upload_type: str, content_type: Optional[str], size: int) -> Optional[str]:
    """Return an error message, or None when the file is acceptable."""
    if upload_type not in ALLOWED_CONTENT_TYPES:
        return 'Invalid file type. Must be "resume" or "certification"'

    if size > max_upload_bytes():
        return size_error()

    if content_type not in ALLOWED_CONTENT_TYPES[upload_type]:
        return f"File must be {TYPE_NAMES[upload_type]}"
    return None


def max_upload_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


def size_error() -> str:
    return f"File size must be less than {settings.MAX_UPLOAD_SIZE_MB}MB"


async def read_limited(file: UploadFile, max_bytes: int) -> Optional[bytes]:
    """
    Read an upload, giving up as soon as it is larger than `max_bytes`.

    Args:
        file: The uploaded file
        max_bytes: The largest accepted size

    Returns:
        The file content, or None when the file is too large
    """
    if file.size is not None and file.size > max_bytes:
        return None

    chunks = []
    total = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def safe_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", Path(filename).name) or "file"


def store_upload(user_id: int, upload_type: str, filename: str, content: bytes) -> str:
    """Write the file and return its name relative to the upload root."""
    relative = f"{user_id}/{upload_type}/{int(time.time() * 1000)}-{safe_filename(filename)}"
    target = upload_root() / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)

    logger.info("File uploaded: %s by user %s", relative, user_id)
    return relative


def validate_logo(content_type: Optional[str], size: int) -> Optional[str]:
    """
    Check a company logo before reading it.

    Args:
        content_type: MIME type declared by the client
        size: Declared size in bytes (0 when unknown)

    Returns:
        An error message, or None if the logo is acceptable
    """
    if content_type not in LOGO_CONTENT_TYPES:
        return "Invalid file type. Only JPEG, PNG, WebP, and SVG are allowed."
    if size > LOGO_MAX_BYTES:
        return LOGO_SIZE_ERROR
    return None


def store_company_logo(company_id: int, filename: str, content: bytes) -> str:
    """Write a logo under company-logos/<company_id>/ and return its relative path."""
    suffix = Path(safe_filename(filename)).suffix
    relative = f"company-logos/{company_id}/{int(time.time() * 1000)}{suffix}"
    target = upload_root() / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)

    logger.info("Logo uploaded for company %s: %s", company_id, relative)
    return relative


def owns_file(user_id: int, file_name: str) -> bool:
    """True when the name resolves inside the user's own directory."""
    user_dir = upload_root() / str(user_id)
    candidate = (upload_root() / file_name).resolve()
    return file_name.startswith(f"{user_id}/") and candidate.is_relative_to(user_dir)


def delete_upload(file_name: str) -> bool:
    """Delete a stored file; returns False if it did not exist."""
    target = upload_root() / file_name
    if not target.is_file():
        return False
    target.unlink()
    logger.info("File deleted: %s", file_name)
    return True
