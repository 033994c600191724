"""Storyboard image generation and loading."""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote

import requests

from ..config import config
from ..errors import (
    ConfigurationError,
    ImageLoadError,
    MalformedUpstreamResponse,
    UpstreamError,
)
from ..models import Scene

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], bytes]

DEFAULT_LOAD_TIMEOUT = 15.0

# Schemes an image URL from an API caller may use.
REMOTE_IMAGE_PREFIXES = ("data:", "http://", "https://")


@dataclass
class ImageResult:
    """Result of a storyboard image generation."""

    scene_number: int
    image_url: str
    created_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)


def build_storyboard_prompt(scene: Scene) -> str:
    """Prompt asking for one storyboard frame of a scene."""
    return (
        f"Create a professional video storyboard frame: {scene.visual_description}.\n"
        "Style: Clean, professional video production storyboard aesthetic.\n"
        "Composition: Cinematic framing, clear subject focus.\n"
        "Quality: High quality, detailed, suitable for video production planning."
    )


class StoryboardImageClient:
    """Client for an OpenAI-compatible chat completions gateway that returns images."""

    DEFAULT_TIMEOUT = 120.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the image client.

        Args:
            api_key: Gateway API key. Defaults to IMAGE_GATEWAY_API_KEY.
            url: Chat completions endpoint. Defaults to IMAGE_GATEWAY_URL.
            model: Image model name.
            timeout: Request timeout in seconds.
            session: Optional requests session (shared connection pool).
        """
        self._api_key = api_key or config.image_gateway_api_key
        self._url = url or config.image_gateway_url
        if not self._api_key:
            raise ConfigurationError(
                "Image gateway API key not provided. Set IMAGE_GATEWAY_API_KEY env var."
            )
        self._model = model or config.image_model
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        return self._model

    def generate_image(self, scene: Scene) -> ImageResult:
        """Generate a storyboard frame for a scene.

        Returns:
            ImageResult whose URL is normally a base64 ``data:`` URI.

        Raises:
            UpstreamError: If the gateway is unreachable or answers non-2xx.
            MalformedUpstreamResponse: If the answer carries no image.
        """
        request_body = {
            "model": self._model,
            "messages": [
                {"role": "user", "content": build_storyboard_prompt(scene)}
            ],
            "modalities": ["image", "text"],
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"Generating storyboard image for scene {scene.scene_number}")
        try:
            response = self._session.post(
                self._url, json=request_body, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.error(f"Image gateway request failed: {e}")
            raise UpstreamError(f"Image generation failed: {e}") from e

        if not response.ok:
            logger.error(f"Image gateway error {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                f"Image generation failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            image_url = data["choices"][0]["message"]["images"][0]["image_url"]["url"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected image gateway response: {e}")
            raise MalformedUpstreamResponse("No image URL in response") from e

        if not image_url:
            raise MalformedUpstreamResponse("No image URL in response")

        logger.debug(f"Received image for scene {scene.scene_number} ({len(image_url)} chars)")
        return ImageResult(
            scene_number=scene.scene_number,
            image_url=image_url,
            created_at=datetime.now(),
            metadata={"model": self._model},
        )


def _decode_data_uri(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URI")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return unquote(payload).encode("latin-1")
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Malformed data URI: {e}") from e


def load_image_bytes(
    url: str,
    timeout: float = DEFAULT_LOAD_TIMEOUT,
    session: Optional[requests.Session] = None,
    allow_local_paths: bool = True,
) -> bytes:
    """Fetch image bytes from a data URI, an http(s) URL or a local path.

    Args:
        url: Where the image lives.
        timeout: Seconds to wait for an http(s) fetch.
        session: Optional requests session for http(s) fetches.
        allow_local_paths: Whether a plain filesystem path may be read.
            Off for URLs supplied by API callers.

    Raises:
        ImageLoadError: If the image cannot be fetched or the URL is not allowed.
    """
    if url.startswith("data:"):
        return _decode_data_uri(url)

    if url.startswith(("http://", "https://")):
        getter = session.get if session is not None else requests.get
        try:
            response = getter(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageLoadError(f"Failed to fetch {url}: {e}") from e
        return response.content

    if not allow_local_paths:
        raise ImageLoadError("Image URL must be an http(s) URL or a data URI")

    path = Path(url)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Failed to read {path}: {e}") from e


def save_image(url: str, output_path: Path, timeout: float = DEFAULT_LOAD_TIMEOUT) -> Path:
    """Write the image behind ``url`` to ``output_path``."""
    data = load_image_bytes(url, timeout=timeout)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(data)
    logger.info(f"Saved image to {output_path}")
    return output_path
