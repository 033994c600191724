"""Collaborators shared by the request handlers."""

from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Optional

from ..agents import ScriptWriterAgent
from ..config import Config
from ..guards.rate_limit import RateLimiter
from ..services.anthropic import AnthropicClient
from ..services.images import ImageLoader, StoryboardImageClient, load_image_bytes
from ..storage import ProjectStore, ShareStore
from .auth import Authenticator


def build_script_writer(config: Config) -> ScriptWriterAgent:
    """Script writer using the credentials and model of ``config``."""
    config.validate_required()
    client = AnthropicClient(api_key=config.anthropic_api_key, model=config.default_model)
    return ScriptWriterAgent(client=client, model=config.default_model)


def build_image_client(config: Config) -> StoryboardImageClient:
    """Image gateway client using the settings of ``config``."""
    config.validate_image_required()
    return StoryboardImageClient(
        api_key=config.image_gateway_api_key,
        url=config.image_gateway_url,
        model=config.image_model,
    )


@dataclass
class Services:
    """Everything a handler needs besides the request itself.

    The AI clients are built per request through factories so that missing
    credentials surface as a configuration error on the request that needs
    them instead of at startup. Unset factories and the image loader are
    bound to ``config``.
    """

    config: Config
    authenticator: Authenticator
    rate_limiter: RateLimiter = field(default_factory=RateLimiter)
    projects: ProjectStore = field(default_factory=ProjectStore)
    shares: ShareStore = field(default_factory=ShareStore)
    script_writer_factory: Optional[Callable[[], ScriptWriterAgent]] = None
    image_client_factory: Optional[Callable[[], StoryboardImageClient]] = None
    image_loader: Optional[ImageLoader] = None

    def __post_init__(self) -> None:
        if self.script_writer_factory is None:
            self.script_writer_factory = partial(build_script_writer, self.config)
        if self.image_client_factory is None:
            self.image_client_factory = partial(build_image_client, self.config)
        if self.image_loader is None:
            # Project image URLs come from API callers; never read server files.
            self.image_loader = partial(
                load_image_bytes, timeout=self.config.image_timeout, allow_local_paths=False
            )
