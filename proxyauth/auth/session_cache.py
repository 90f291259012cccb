"""
Session-scoped cache of the resolved principal.

Once a request has been authenticated, later requests in the same session
return the cached principal without touching the user directory.
"""
import logging
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional, Protocol

logger = logging.getLogger(__name__)

PRINCIPAL_SESSION_KEY = "_proxyauth_principal"


@dataclass(frozen=True)
class Principal:
    username: str
    pk: Any = None

    def to_session(self) -> dict:
        # Sessions are JSON encoded; UUID and other pk types go in as text
        return {"username": self.username, "pk": None if self.pk is None else str(self.pk)}

    @classmethod
    def from_session(cls, data) -> Optional["Principal"]:
        if not isinstance(data, dict) or not data.get("username"):
            return None
        return cls(username=data["username"], pk=data.get("pk"))


class SessionCache(Protocol):
    def get(self, session: MutableMapping) -> Optional[Principal]: ...

    def put(self, session: MutableMapping, principal: Principal) -> None: ...

    def clear(self, session: MutableMapping) -> None: ...


class SessionPrincipalCache:
    """SessionCache storing the principal inside the Django session."""

    def __init__(self, session_key: str = PRINCIPAL_SESSION_KEY):
        self.session_key = session_key

    def get(self, session: MutableMapping) -> Optional[Principal]:
        if session is None:
            return None
        return Principal.from_session(session.get(self.session_key))

    def put(self, session: MutableMapping, principal: Principal) -> None:
        if session is None:
            logger.debug(f"No session available, not caching {principal.username}")
            return
        session[self.session_key] = principal.to_session()

    def clear(self, session: MutableMapping) -> None:
        if session is not None:
            session.pop(self.session_key, None)
