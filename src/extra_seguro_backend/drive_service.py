"""
Drive service module for uploading documents through Microsoft Graph.

This module provides functionality for:
- Addressing a file inside a drive folder (drive id or SharePoint site)
- Uploading a byte buffer with a single authenticated PUT
- Extracting the web URL and final name from the Graph response

Uploads use the simple upload endpoint, which Graph limits to small files.
Requests larger than the configured body limit never reach this module.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .configuration import Settings
from .errors import AuthError, UploadError
from .models import UploadResult, UploadTarget

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class DriveUploader:
    """Uploads files into the configured drive."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client

    def target_for(self, filename: str, folder: Optional[str] = None) -> UploadTarget:
        """
        Build the upload target for a file.

        Raises:
            UploadError: If neither DRIVE_ID nor SITE_ID is configured
        """
        if not self.settings.drive_id and not self.settings.site_id:
            raise UploadError("Missing drive configuration: DRIVE_ID")
        return UploadTarget(
            drive_id=self.settings.drive_id,
            site_id=self.settings.site_id,
            folder=folder if folder is not None else self.settings.folder_path,
            filename=filename,
        )

    async def upload(
        self,
        token: str,
        content: bytes,
        filename: str,
        folder: Optional[str] = None,
        content_type: str = PDF_CONTENT_TYPE,
    ) -> UploadResult:
        """
        Upload a buffer to ``folder/filename`` in the drive.

        Args:
            token: Bearer token from the token provider
            content: File bytes sent as the request body
            filename: Target filename (percent-encoded here)
            folder: Target folder path (default: FOLDER_PATH)
            content_type: Media type of the body

        Returns:
            The web URL and name Graph reports for the stored item

        Raises:
            AuthError: If no token is given
            UploadError: If the PUT fails or the response cannot be read
        """
        if not token:
            raise AuthError("Upload attempted without an access token")

        target = self.target_for(filename, folder)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": content_type,
        }

        logger.info(f"Uploading {len(content)} bytes to {target.folder}/{target.filename}")
        try:
            response = await self.client.put(target.url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(f"Drive upload failed: {exc}")
            raise UploadError(f"Drive upload failed: {exc}") from exc

        if not response.is_success:
            logger.error(f"Drive upload rejected (status {response.status_code})")
            raise UploadError(response.text)

        try:
            payload = response.json()
            result = UploadResult(webUrl=payload["webUrl"], name=payload.get("name"))
        except (ValueError, KeyError, TypeError) as exc:
            raise UploadError(f"Unexpected drive response: {response.text}") from exc

        logger.info(f"Upload successful: {result.name} -> {result.webUrl}")
        return result
