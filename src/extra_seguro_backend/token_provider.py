"""
OAuth2 client-credentials token exchange against the Microsoft identity platform.

A token is requested on every call; nothing is cached between requests.
"""

from __future__ import annotations

import json
import logging

import httpx

from .configuration import Settings
from .errors import AuthError

logger = logging.getLogger(__name__)

TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class TokenProvider:
    """Exchanges the service credentials for a Graph bearer token."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client

    @property
    def token_url(self) -> str:
        return TOKEN_URL_TEMPLATE.format(tenant=self.settings.tenant_id)

    async def get_access_token(self) -> str:
        """
        Request a fresh access token.

        Returns:
            The bearer token string

        Raises:
            AuthError: If credentials are not configured, the request fails,
                or the identity endpoint answers with an error or malformed JSON
        """
        missing = self.settings.missing_credentials
        if missing:
            raise AuthError(f"Missing OAuth configuration: {', '.join(missing)}")

        form = {
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }

        try:
            response = await self.client.post(self.token_url, data=form)
        except httpx.HTTPError as exc:
            logger.error(f"Token request failed: {exc}")
            raise AuthError(f"Token request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(f"Token endpoint returned non-JSON body (status {response.status_code})")
            raise AuthError(f"Malformed token response: {response.text}") from exc

        if not response.is_success:
            logger.error(f"Token endpoint rejected credentials (status {response.status_code})")
            raise AuthError(json.dumps(payload))

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthError(f"Token response without access_token: {json.dumps(payload)}")
        return token
