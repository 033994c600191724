"""Bearer token authentication."""

from abc import ABC, abstractmethod
from typing import Dict, Optional


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class Authenticator(ABC):
    """Resolves a bearer token to a user id."""

    @abstractmethod
    def authenticate(self, token: str) -> Optional[str]:
        """Return the user id for ``token``, or None if it is not valid."""
        pass


class StaticTokenAuthenticator(Authenticator):
    """Authenticator backed by a fixed token to user id mapping."""

    def __init__(self, tokens: Dict[str, str]) -> None:
        self._tokens = dict(tokens)

    def authenticate(self, token: str) -> Optional[str]:
        return self._tokens.get(token)
