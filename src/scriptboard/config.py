"""Configuration management."""

import os
from typing import Dict, List

from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables
load_dotenv()

DEFAULT_ALLOWED_ORIGINS = "http://localhost:8080,http://localhost:3000"


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_api_tokens(value: str) -> Dict[str, str]:
    """Parse ``token:user_id`` pairs separated by commas."""
    tokens: Dict[str, str] = {}
    for pair in _split_list(value):
        token, sep, user_id = pair.partition(":")
        if not sep or not token.strip() or not user_id.strip():
            raise ConfigurationError(f"Malformed API token entry: {pair!r}")
        tokens[token.strip()] = user_id.strip()
    return tokens


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key"
    )
    image_gateway_api_key: str = Field(
        default_factory=lambda: os.getenv("IMAGE_GATEWAY_API_KEY", ""),
        description="API key for the storyboard image gateway"
    )

    # Endpoints
    image_gateway_url: str = Field(
        default_factory=lambda: os.getenv(
            "IMAGE_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions"
        ),
        description="OpenAI-compatible chat completions endpoint that returns images"
    )

    # Model settings
    default_model: str = Field(
        default_factory=lambda: os.getenv("SCRIPTBOARD_MODEL", "claude-sonnet-4-20250514"),
        description="Default Claude model"
    )
    image_model: str = Field(
        default_factory=lambda: os.getenv("IMAGE_MODEL", "google/gemini-2.5-flash-image-preview"),
        description="Image generation model"
    )
    image_timeout: float = Field(
        default_factory=lambda: float(os.getenv("SCRIPTBOARD_IMAGE_TIMEOUT", "15")),
        description="Seconds to wait when loading a storyboard image"
    )

    # Service
    environment: str = Field(
        default_factory=lambda: os.getenv("SCRIPTBOARD_ENV", "development"),
        description="development, production or test"
    )
    allowed_origins: List[str] = Field(
        default_factory=lambda: _split_list(
            os.getenv("SCRIPTBOARD_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)
        ),
        description="CORS origins accepted in production"
    )
    api_tokens: Dict[str, str] = Field(
        default_factory=lambda: parse_api_tokens(os.getenv("SCRIPTBOARD_API_TOKENS", "")),
        description="Bearer token to user id mapping"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate_required(self) -> None:
        """Validate that script generation credentials are set."""
        if not self.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY not set")

    def validate_image_required(self) -> None:
        """Validate that the image gateway is configured.

        Raises:
            ConfigurationError: If any required gateway setting is missing.
        """
        missing: list[str] = []

        if not self.image_gateway_api_key:
            missing.append("IMAGE_GATEWAY_API_KEY")
        if not self.image_gateway_url:
            missing.append("IMAGE_GATEWAY_URL")

        if missing:
            raise ConfigurationError(
                f"Missing required image gateway configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

        if not self.image_gateway_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"IMAGE_GATEWAY_URL must be an http(s) URL. "
                f"Got: {self.image_gateway_url}"
            )


# Global config instance
config = Config()
