"""Environment-driven settings."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TOKEN_CACHE = Path.home() / ".msgraph_mcp_token_cache.json"

logger = logging.getLogger("msgraph_mcp")


def _log_level(raw) -> str:
    level = (raw or "INFO").upper()
    # getLevelName maps registered names to their numeric level
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Unknown MSGRAPH_LOG_LEVEL %r, using INFO", raw)
        return "INFO"
    return level


@dataclass(frozen=True)
class Settings:
    client_id: str = ""
    client_secret: str = ""
    tenant_id: str = "common"
    token_cache_path: Path = DEFAULT_TOKEN_CACHE
    base_url: str = DEFAULT_BASE_URL
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Read settings from ``MSGRAPH_*`` environment variables."""
        env = os.environ if environ is None else environ
        cache = env.get("MSGRAPH_TOKEN_CACHE")
        return cls(
            client_id=env.get("MSGRAPH_CLIENT_ID", ""),
            client_secret=env.get("MSGRAPH_CLIENT_SECRET", ""),
            tenant_id=env.get("MSGRAPH_TENANT_ID") or "common",
            token_cache_path=Path(cache).expanduser() if cache else DEFAULT_TOKEN_CACHE,
            base_url=(env.get("MSGRAPH_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            log_level=_log_level(env.get("MSGRAPH_LOG_LEVEL")),
        )
