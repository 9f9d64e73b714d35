"""
Request-to-artifact orchestration.

The pipeline wires the PDF assembler, the token provider and the drive
uploader together for the two supported request paths:

- Path A: a ready-made file is uploaded as-is
- Path B: a form record is rendered into a PDF and then uploaded

Each call opens its own HTTP client, fetches a fresh token and only then
starts the upload. Nothing is shared between calls, so one pipeline instance
can serve concurrent requests.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import httpx
from starlette.concurrency import run_in_threadpool

from .configuration import Settings
from .drive_service import DriveUploader
from .models import FormRecord, PdfLayout, UploadResult
from .pdf_assembler import build_pdf
from .token_provider import TokenProvider
from .utils import build_generated_filename

logger = logging.getLogger(__name__)


class UploadPipeline:
    """
    Coordinates authentication and upload for incoming documents.

    Attributes:
        settings: Credentials, drive addressing and HTTP timeout
        layout: Form layout used for generated documents
    """

    def __init__(
        self,
        settings: Settings,
        layout: PdfLayout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            settings: Service settings
            layout: PDF layout for path B
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.settings = settings
        self.layout = layout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout, transport=self._transport)

    async def upload_file(self, content: bytes, filename: str, folder: Optional[str] = None) -> UploadResult:
        async with self._client() as client:
            token = await TokenProvider(self.settings, client).get_access_token()
            return await DriveUploader(self.settings, client).upload(token, content, filename, folder)

    async def generate_and_upload(self, record: FormRecord, now: Optional[datetime] = None) -> UploadResult:
        """
        Render a record into a PDF and upload it.

        The document is fully built before any network call, so image and
        render failures never leave a partial upload behind.
        """
        content = await run_in_threadpool(build_pdf, record, self.layout)
        filename = build_generated_filename(record, now)
        logger.info(f"Generated {filename}")
        return await self.upload_file(content, filename)
