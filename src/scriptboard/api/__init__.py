"""HTTP service for script generation, storyboards, sharing and export."""

from .app import create_app
from .services import Services
from .auth import Authenticator, StaticTokenAuthenticator, bearer_token

__all__ = [
    "Services",
    "create_app",
    "Authenticator",
    "StaticTokenAuthenticator",
    "bearer_token",
]
