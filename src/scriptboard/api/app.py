"""FastAPI application factory."""

import logging
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Config, config as default_config
from .auth import StaticTokenAuthenticator
from .errors import install_error_handlers
from .routes import router
from .services import Services

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, **overrides: Any) -> FastAPI:
    """Build the HTTP service.

    Args:
        config: Configuration to use. Defaults to the environment config.
        **overrides: Replacement :class:`Services` fields, e.g. a fake
            ``script_writer_factory`` or a ``rate_limiter`` with a test clock.

    Returns:
        The configured FastAPI application.
    """
    config = config or default_config

    overrides.setdefault("authenticator", StaticTokenAuthenticator(config.api_tokens))
    services = Services(config=config, **overrides)

    app = FastAPI(title="Scriptboard", version=__version__)
    app.state.services = services

    origins = config.allowed_origins if config.is_production else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
        expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    install_error_handlers(app)
    app.include_router(router)

    if not config.api_tokens and isinstance(services.authenticator, StaticTokenAuthenticator):
        logger.warning("No API tokens configured; every authenticated request will be rejected")
    logger.info(f"Scriptboard API ready ({config.environment}, CORS origins: {origins})")
    return app
