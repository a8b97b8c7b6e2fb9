"""Session affinity — remembers the collector's cookies and echoes them back."""

import logging
from http.cookies import SimpleCookie

logger = logging.getLogger(__name__)


class SessionAffinity:
    """A single cookie token plus an enabled flag.

    The token is replaced wholesale by every response that carries cookies;
    when two responses race, whichever completes last wins.
    """

    def __init__(self, enabled: bool = False):
        self._enabled = enabled
        self._token = ""

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def token(self) -> str:
        return self._token

    def headers(self) -> dict[str, str]:
        """Headers to attach to the next outgoing request."""
        if self._enabled and self._token:
            return {"Cookie": self._token}
        return {}

    def update(self, cookies: SimpleCookie) -> bool:
        """Overwrite the token from a response's cookies.

        Returns True when the token was replaced.
        """
        if not self._enabled or not cookies:
            return False
        token = "; ".join(f"{morsel.key}={morsel.value}" for morsel in cookies.values())
        if token != self._token:
            logger.debug("Session affinity token updated: %s", token)
        self._token = token
        return True
