"""
Utility functions for filenames and drive paths.

This module provides helper functions for:
- Sanitizing user-provided filenames for safe storage
- Deriving the filename of a generated claim form
- Percent-encoding folder paths and filenames for the Graph API
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

if TYPE_CHECKING:
    from .models import FormRecord

# Pattern to match characters that are not safe for filesystem paths
# Allows: alphanumeric characters, dots, underscores, and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")

# Characters OneDrive and SharePoint refuse in item names
INVALID_DRIVE_CHARS = re.compile(r'[\\/*?:"<>|\x00-\x1f]')

GENERATED_SUFFIX = "_EDITABLE.pdf"
FALLBACK_CLAIM = "PRUEBA"

# Punctuation kept unescaped inside a path segment
_SEGMENT_SAFE = "-_.!~*'()"


def sanitize_filename(filename: str, fallback: str) -> str:
    """
    Make a client-supplied filename acceptable as a drive item name.

    Directory components are dropped along with characters the drive
    refuses. Spaces and case are preserved.

    Args:
        filename: The original filename to sanitize
        fallback: Default value to return if sanitization results in an empty name

    Returns:
        The cleaned filename or the fallback value

    Example:
        >>> sanitize_filename("../Informe final.pdf", "document.pdf")
        "Informe final.pdf"
        >>> sanitize_filename("..", "document.pdf")
        "document.pdf"
    """
    name = PurePath((filename or "").replace("\\", "/")).name
    cleaned = INVALID_DRIVE_CHARS.sub("", name).strip(" .")
    return cleaned or fallback


def _clean(value: str) -> str:
    return SANITIZE_PATTERN.sub("-", value.strip()).strip("-_.")


def claim_reference(siniestro1: str, siniestro2: str) -> str:
    parts = [part.strip() for part in (siniestro1, siniestro2) if part and part.strip()]
    return "_".join(parts) or FALLBACK_CLAIM


def build_generated_filename(record: FormRecord, now: Optional[datetime] = None) -> str:
    """
    Derive the upload filename for a generated form.

    The claim-number parts are joined with an underscore (``PRUEBA`` when
    both are blank), followed by the epoch timestamp in milliseconds.

    Example:
        >>> build_generated_filename(FormRecord(siniestro1="123", siniestro2="45"), now)
        "123_45_1760601600000_EDITABLE.pdf"
    """
    moment = now or datetime.now(timezone.utc)
    millis = int(moment.timestamp() * 1000)
    stem = _clean(claim_reference(record.siniestro1, record.siniestro2)) or FALLBACK_CLAIM
    return f"{stem}_{millis}{GENERATED_SUFFIX}"


def encode_folder_path(folder: str) -> str:
    """Percent-encode a folder path, keeping the ``/`` separators."""
    segments = [segment for segment in folder.strip("/").split("/") if segment]
    return "/".join(quote(segment, safe=_SEGMENT_SAFE) for segment in segments)


def encode_filename(filename: str) -> str:
    """Percent-encode a filename as a single path segment."""
    return quote(filename, safe=_SEGMENT_SAFE)
