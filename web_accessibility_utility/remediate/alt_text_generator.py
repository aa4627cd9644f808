# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Alt text generator module.

This module suggests alt text for web images. Images are fetched over HTTP
and described by an image classifier; whenever that is impossible (animated
images, fetch errors, classifier errors or timeouts) a deterministic phrase is
derived from the image URL instead. Suggestions are memoized per absolute URL
for the life of the process, and concurrent requests for the same URL share a
single analysis.
"""

import asyncio
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

import aiohttp

from web_accessibility_utility.remediate.services.bedrock_client import (
    BedrockClient,
    get_media_type,
)
from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.image_utils import is_animated
from web_accessibility_utility.utils.logging_helper import (
    ClassificationFailure,
    setup_logger,
)

# Set up module-level logger
logger = setup_logger(__name__)

ANIMATED_LABEL = "Animated GIF"
GENERIC_LABEL = "Website image"
UNPARSEABLE_LABEL = "Web page content"

# File names that say nothing about the picture
UNINFORMATIVE_TOKENS = {
    "image", "img", "images", "photo", "picture", "pic", "default", "placeholder",
    "thumb", "thumbnail", "untitled", "file", "download", "blank", "spacer",
}

# Absolute image URL -> suggested text, shared by every service instance
_alt_text_memo: Dict[str, str] = {}
# Suggestions still being worked out; concurrent callers share one task
_in_flight: Dict[str, "asyncio.Future[str]"] = {}

Fetcher = Callable[[str], Awaitable[Tuple[bytes, str]]]


def clear_alt_text_memo() -> None:
    """Forget every memoized suggestion."""
    _alt_text_memo.clear()
    _in_flight.clear()


def fallback_alt_text(image_url: str) -> str:
    """
    Derive alt text from an image URL without looking at the image.

    Args:
        image_url: Absolute URL of the image

    Returns:
        ``Image related to: <Words>`` built from the file name with its
        extension, digits and separators removed; ``Website image`` when
        nothing meaningful is left; ``Web page content`` for unparseable URLs
    """
    try:
        parsed = urlparse(image_url)
    except ValueError:
        return UNPARSEABLE_LABEL
    if not parsed.scheme or not parsed.netloc:
        return UNPARSEABLE_LABEL

    parts = [part for part in parsed.path.split("/") if part]
    file_name = unquote(parts[-1]) if parts else ""

    name = re.sub(r"\.[^/.]+$", "", file_name)
    name = re.sub(r"[_\-.+]", " ", name)
    name = re.sub(r"\d+", "", name)
    # Split camelCase into words
    name = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", name)
    words = name.split()

    if len("".join(words)) <= 1 or " ".join(words).lower() in UNINFORMATIVE_TOKENS:
        return GENERIC_LABEL

    return "Image related to: " + " ".join(word[0].upper() + word[1:] for word in words)


async def fetch_image(
    image_url: str, timeout_seconds: float = 10.0
) -> Tuple[bytes, str]:
    """
    Download an image.

    Args:
        image_url: Absolute URL of the image
        timeout_seconds: Total time allowed for the request

    Returns:
        Tuple of (image bytes, media type)

    Raises:
        aiohttp.ClientError: If the request fails or returns an error status
        asyncio.TimeoutError: If the request exceeds the timeout
    """
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(image_url) as response:
            response.raise_for_status()
            data = await response.read()
            media_type = response.headers.get("Content-Type", "").split(";")[0].strip()
    if not media_type.startswith("image/"):
        media_type = get_media_type(image_url)
    return data, media_type


class AltTextService:
    """
    Suggests alt text for images, never failing.

    Attributes:
        options: Resolved ``alt_text`` configuration section
    """

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        classifier: Optional[BedrockClient] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        """
        Initialize the service.

        Args:
            options: Overrides for the ``alt_text`` configuration section
            classifier: Image classifier; a BedrockClient is created on first use
            fetcher: Coroutine returning (bytes, media type) for a URL
        """
        self.options = config_manager.get_config(options, section="alt_text")
        self._classifier = classifier
        self._fetcher = fetcher

    def _get_classifier(self) -> BedrockClient:
        if self._classifier is None:
            try:
                self._classifier = BedrockClient(
                    model_id=self.options["model_id"], profile=self.options["profile"]
                )
            except Exception as e:
                raise ClassificationFailure(f"Image classifier unavailable: {e}") from e
        return self._classifier

    async def _fetch(self, image_url: str) -> Tuple[bytes, str]:
        if self._fetcher is not None:
            return await asyncio.wait_for(
                self._fetcher(image_url), self.options["fetch_timeout_seconds"]
            )
        return await fetch_image(image_url, self.options["fetch_timeout_seconds"])

    async def _classify(self, image_bytes: bytes, media_type: str) -> List[str]:
        classifier = self._get_classifier()
        return await asyncio.wait_for(
            asyncio.to_thread(
                classifier.classify_image,
                image_bytes,
                media_type,
                self.options["max_labels"],
            ),
            self.options["classifier_timeout_seconds"],
        )

    async def _describe(self, image_url: str) -> str:
        path = urlparse(image_url).path.lower()
        if path.endswith(".gif"):
            return ANIMATED_LABEL

        if self.options["disable_ai"]:
            return fallback_alt_text(image_url)

        image_bytes, media_type = await self._fetch(image_url)
        if is_animated(image_bytes):
            return ANIMATED_LABEL

        labels = await self._classify(image_bytes, media_type)
        labels = [label for label in labels if label][: self.options["max_labels"]]
        if not labels:
            raise ClassificationFailure(f"No labels for {image_url}")
        return ", ".join(labels)

    async def suggest(self, image_url: str) -> str:
        """
        Suggest alt text for an image.

        Args:
            image_url: Absolute URL of the image

        Returns:
            Classifier labels joined with ", ", or the URL-derived fallback
        """
        if image_url in _alt_text_memo:
            return _alt_text_memo[image_url]

        pending = _in_flight.get(image_url)
        if pending is None:
            pending = asyncio.ensure_future(self._suggest_uncached(image_url))
            _in_flight[image_url] = pending

            def forget(task):
                if _in_flight.get(image_url) is task:
                    del _in_flight[image_url]

            pending.add_done_callback(forget)
        # A cancelled caller must not cancel the others waiting on the same image
        return await asyncio.shield(pending)

    async def _suggest_uncached(self, image_url: str) -> str:
        try:
            text = await self._describe(image_url)
        except (
            ClassificationFailure,
            aiohttp.ClientError,
            asyncio.TimeoutError,
            ValueError,
            OSError,
        ) as e:
            logger.info(f"Image analysis failed for {image_url}, using fallback: {e}")
            text = fallback_alt_text(image_url)
        except Exception as e:
            logger.warning(f"Unexpected error describing {image_url}, using fallback: {e}")
            text = fallback_alt_text(image_url)

        _alt_text_memo[image_url] = text
        return text
