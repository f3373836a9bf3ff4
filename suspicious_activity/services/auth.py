"""Bearer token sources for authenticated backend calls."""

import logging
from pathlib import Path
from typing import Optional, Protocol

from suspicious_activity.config import Settings

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    """Supplies the bearer token for the current session."""

    def get_token(self) -> Optional[str]: ...


class StaticTokenAuthenticator:
    """Token fixed at construction (tests, scripted use)."""

    def __init__(self, token: Optional[str]):
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token or None


class SettingsAuthenticator:
    """Token from settings: ``access_token`` first, then ``token_file``.

    The token file is re-read on every call so a login flow that rewrites it
    takes effect without rebuilding the client.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def get_token(self) -> Optional[str]:
        if self.settings.access_token:
            return self.settings.access_token
        if self.settings.token_file is not None:
            return _read_token_file(self.settings.token_file)
        return None


def _read_token_file(path: Path) -> Optional[str]:
    try:
        token = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Could not read token file {path}: {e}")
        return None
    return token or None
