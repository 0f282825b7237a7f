"""Token acquisition and Microsoft Graph API client."""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx
import msal

from .config import Settings
from .operations import build_request_path, get_operation

GRAPH_SCOPES = [
    "Calendars.ReadWrite",
    "Mail.Read",
    "Contacts.Read",
    "User.Read",
]

logger = logging.getLogger("msgraph_mcp")


# =============================================================================
# Authentication Manager
# =============================================================================

class AuthManager:
    """Hands out Graph access tokens from a persisted MSAL cache."""

    def __init__(self, client_id: str, client_secret: str, tenant_id: str,
                 cache_path: Path):
        self.client_id = client_id
        self.client_secret = client_secret
        self.authority = f"https://login.microsoftonline.com/{tenant_id}"
        self.cache_path = cache_path
        self._cache = msal.SerializableTokenCache()
        self._app: Optional[msal.ConfidentialClientApplication] = None
        if self.cache_path.exists():
            self._cache.deserialize(self.cache_path.read_text())

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthManager":
        return cls(
            settings.client_id,
            settings.client_secret,
            settings.tenant_id,
            settings.token_cache_path,
        )

    def _save_cache(self):
        if self._cache.has_state_changed:
            self.cache_path.write_text(self._cache.serialize())

    @property
    def app(self) -> msal.ConfidentialClientApplication:
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                client_id=self.client_id,
                client_credential=self.client_secret,
                authority=self.authority,
                token_cache=self._cache,
            )
        return self._app

    async def get_token(self) -> str:
        """Return a valid access token.

        A delegated token for the first cached account wins; otherwise an
        app-only token is requested with the client credentials.
        """
        accounts = self.app.get_accounts()
        if accounts:
            scopes = [f"https://graph.microsoft.com/{s}" for s in GRAPH_SCOPES]
            result = self.app.acquire_token_silent(scopes, account=accounts[0])
            if result and "access_token" in result:
                self._save_cache()
                return result["access_token"]
            logger.debug("Silent token acquisition failed for %s", accounts[0].get("username"))

        result = self.app.acquire_token_for_client(
            scopes=["https://graph.microsoft.com/.default"]
        )
        if result and "access_token" in result:
            self._save_cache()
            return result["access_token"]

        raise RuntimeError(
            "No valid token available: "
            f"{(result or {}).get('error_description', 'no cached account and client credentials rejected')}"
        )


# =============================================================================
# Microsoft Graph API Client
# =============================================================================

class GraphClient:
    """Async HTTP client for Microsoft Graph API."""

    def __init__(self, auth_manager, base_url: str = "https://graph.microsoft.com/v1.0",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.auth = auth_manager
        self.base_url = base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs) -> dict:
        """Make an authenticated request to the Graph API."""
        token = await self.auth.get_token()
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        logger.debug("%s %s", method, path)
        response = await client.request(method, path, headers=headers, **kwargs)
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return {"status": "success"}
        return response.json()

    async def get(self, path: str, params: Optional[dict] = None) -> dict:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_data: Optional[dict] = None) -> dict:
        return await self.request("POST", path, json=json_data)

    async def patch(self, path: str, json_data: Optional[dict] = None) -> dict:
        return await self.request("PATCH", path, json=json_data)

    async def delete(self, path: str) -> dict:
        return await self.request("DELETE", path)

    async def invoke(
        self,
        alias: str,
        path_params: Optional[Mapping[str, Any]] = None,
        id_params: Optional[Mapping[str, Any]] = None,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ) -> dict:
        """Run a named operation from the operation table.

        The request path is resolved right before the call: placeholders from
        ``path_params``, then qualification by ``id_params`` (``calendarId``...).
        """
        operation = get_operation(alias)
        path = build_request_path(operation, path_params, id_params)
        kwargs = {}
        if params:
            kwargs["params"] = params
        if json_data is not None:
            kwargs["json"] = json_data
        return await self.request(operation.method, path, **kwargs)
