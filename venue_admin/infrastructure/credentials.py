"""
Bearer credential storage for the remote authority.
"""

from typing import Callable, Optional

from venue_admin.core.logging import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """
    Holds the bearer token attached to every request.

    ``on_cleared`` is the re-authentication hook: it fires whenever the
    credential is dropped because the authority answered 401.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        on_cleared: Optional[Callable[[], None]] = None,
    ):
        self._token = token
        self._on_cleared = on_cleared

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        had_token = self._token is not None
        self._token = None
        logger.warning("credential_cleared", had_token=had_token)
        if self._on_cleared is not None:
            self._on_cleared()

    def auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}
