"""
Exception types raised along the upload pipeline.

Every error carries the HTTP status it is reported with. The FastAPI app
registers a single handler for ``BackendError`` that turns any of these into
an ``{"error": message}`` JSON body.
"""

from __future__ import annotations


class BackendError(Exception):
    """Base class for failures reported to the caller verbatim."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BackendError):
    """Required input is missing or the request body is malformed."""

    status_code = 400


class AuthError(BackendError):
    """The identity provider refused the credentials or answered garbage."""


class UploadError(BackendError):
    """The drive API rejected the upload."""


class ImageDecodeError(BackendError):
    """The embedded image is not valid base64 or not a readable raster."""


class RenderError(BackendError):
    """The PDF document could not be assembled."""
