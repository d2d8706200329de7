"""Curator authorization.

The store does not know about users or passwords.  It is handed an
:data:`Authorizer`, a zero-argument predicate, and calls it before every
mutation.  :class:`CuratorGate` is the default source of such predicates:
it checks the configured curator credential and hands out session tokens.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable

logger = logging.getLogger(__name__)

Authorizer = Callable[[], bool]


def allow_all() -> bool:
    """Authorizer that permits every mutation (trusted local use)."""
    return True


def deny_all() -> bool:
    """Authorizer that refuses every mutation (read-only access)."""
    return False


class CuratorGate:
    """Credential check plus an in-process set of curator sessions.

    Sessions live only as long as the process, mirroring a login flag kept
    in browser session storage.
    """

    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password
        self._sessions: set[str] = set()

    def login(self, username: str, password: str) -> str | None:
        """Check a credential and open a session.

        Args:
            username: Submitted user name
            password: Submitted password

        Returns:
            A new session token, or None if the credential is wrong
        """
        user_ok = hmac.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if not (user_ok and pass_ok):
            logger.warning(f"Rejected curator login for {username!r}")
            return None

        token = secrets.token_urlsafe(32)
        self._sessions.add(token)
        logger.info("Curator session opened")
        return token

    def logout(self, token: str | None) -> bool:
        """Close a session. Returns True if the token was active."""
        if token and token in self._sessions:
            self._sessions.discard(token)
            logger.info("Curator session closed")
            return True
        return False

    def is_authenticated(self, token: str | None) -> bool:
        return bool(token) and token in self._sessions

    def authorizer_for(self, token: str | None) -> Authorizer:
        """Return a predicate bound to one session token.

        The predicate is evaluated at mutation time, so a session closed
        after the store was built no longer authorizes writes.
        """
        return lambda: self.is_authenticated(token)
