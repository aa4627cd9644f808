"""
Tests for alt text suggestions.
"""

import asyncio
import io
import time

import aiohttp
import pytest
from PIL import Image

from web_accessibility_utility.remediate import alt_text_generator
from web_accessibility_utility.remediate.alt_text_generator import (
    ANIMATED_LABEL,
    GENERIC_LABEL,
    UNPARSEABLE_LABEL,
    AltTextService,
    fallback_alt_text,
)

BARN_URL = "https://example.com/images/red-barn_2.jpg"


def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), "red").save(buffer, format="PNG")
    return buffer.getvalue()


def animated_gif_bytes():
    frames = [Image.new("RGB", (8, 8), color) for color in ("red", "blue")]
    buffer = io.BytesIO()
    frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])
    return buffer.getvalue()


class StubClassifier:
    """Returns fixed labels, optionally after a delay."""

    def __init__(self, labels=None, delay=0.0):
        self.labels = labels if labels is not None else ["Red barn", "Field"]
        self.delay = delay
        self.calls = 0

    def classify_image(self, image_bytes, media_type="image/png", max_labels=7):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return list(self.labels)


def stub_fetcher(data=None, error=None):
    requested = []

    async def fetch(url):
        requested.append(url)
        if error is not None:
            raise error
        return (data if data is not None else png_bytes()), "image/png"

    fetch.requested = requested
    return fetch


def service(classifier=None, fetcher=None, **options):
    return AltTextService(
        {"disable_ai": False, **options},
        classifier=classifier or StubClassifier(),
        fetcher=fetcher or stub_fetcher(),
    )


class TestFallbackAltText:
    """Test cases for fallback_alt_text."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            (BARN_URL, "Image related to: Red Barn"),
            ("https://cdn.example.com/photos/sunsetOverLake.webp", "Image related to: Sunset Over Lake"),
            ("https://example.com/assets/team%20photo.png?v=3", "Image related to: Team Photo"),
            ("https://example.com/img/image.png", GENERIC_LABEL),
            ("https://example.com/a/12.jpg", GENERIC_LABEL),
            ("https://example.com/", GENERIC_LABEL),
            ("not a url", UNPARSEABLE_LABEL),
            ("/relative/path.png", UNPARSEABLE_LABEL),
        ],
    )
    def test_fallbacks(self, url, expected):
        assert fallback_alt_text(url) == expected


class TestAltTextService:
    """Test cases for AltTextService.suggest."""

    async def test_labels_are_joined(self):
        classifier = StubClassifier(["Red barn", "", "Field"])
        assert await service(classifier).suggest(BARN_URL) == "Red barn, Field"

    async def test_labels_are_capped(self):
        classifier = StubClassifier(["Barn", "Field", "Sky", "Tree"])
        assert await service(classifier, max_labels=2).suggest(BARN_URL) == "Barn, Field"

    async def test_slow_classifier_falls_back(self):
        classifier = StubClassifier(delay=0.5)
        text = await service(classifier, classifier_timeout_seconds=0.05).suggest(BARN_URL)
        assert text == "Image related to: Red Barn"

    async def test_gif_extension_skips_analysis(self):
        fetcher = stub_fetcher()
        text = await service(fetcher=fetcher).suggest("https://example.com/dancing-cat.GIF")
        assert text == ANIMATED_LABEL
        assert fetcher.requested == []

    async def test_animated_content_is_detected(self):
        classifier = StubClassifier()
        fetcher = stub_fetcher(data=animated_gif_bytes())
        text = await service(classifier, fetcher).suggest("https://example.com/banner.png")
        assert text == ANIMATED_LABEL
        assert classifier.calls == 0

    async def test_disabled_ai_uses_the_url(self):
        fetcher = stub_fetcher()
        text = await service(fetcher=fetcher, disable_ai=True).suggest(BARN_URL)
        assert text == "Image related to: Red Barn"
        assert fetcher.requested == []

    @pytest.mark.parametrize(
        "fetcher,classifier",
        [
            (stub_fetcher(error=aiohttp.ClientError("404")), StubClassifier()),
            (stub_fetcher(), StubClassifier(labels=[])),
            (stub_fetcher(error=RuntimeError("unexpected")), StubClassifier()),
        ],
    )
    async def test_failures_fall_back(self, fetcher, classifier):
        assert await service(classifier, fetcher).suggest(BARN_URL) == "Image related to: Red Barn"

    async def test_unavailable_classifier_falls_back(self, monkeypatch):
        class Unavailable:
            def __init__(self, *args, **kwargs):
                raise RuntimeError("no credentials")

        monkeypatch.setattr(alt_text_generator, "BedrockClient", Unavailable)
        generator = AltTextService({"disable_ai": False}, fetcher=stub_fetcher())
        assert await generator.suggest(BARN_URL) == "Image related to: Red Barn"

    async def test_suggestions_are_memoized_per_url(self):
        classifier = StubClassifier()
        first = await service(classifier).suggest(BARN_URL)
        second = await service(StubClassifier(["Other"])).suggest(BARN_URL)
        assert first == second == "Red barn, Field"
        assert classifier.calls == 1

    async def test_concurrent_requests_share_one_analysis(self):
        classifier = StubClassifier(delay=0.05)
        fetcher = stub_fetcher()
        generator = service(classifier, fetcher)

        results = await asyncio.gather(*(generator.suggest(BARN_URL) for _ in range(5)))

        assert results == ["Red barn, Field"] * 5
        assert classifier.calls == 1
        assert fetcher.requested == [BARN_URL]
        assert not alt_text_generator._in_flight

    async def test_concurrent_requests_from_separate_services_share_one_analysis(self):
        classifier = StubClassifier(delay=0.05)
        other = StubClassifier(["Other"])

        first, second = await asyncio.gather(
            service(classifier).suggest(BARN_URL), service(other).suggest(BARN_URL)
        )

        assert first == second == "Red barn, Field"
        assert (classifier.calls, other.calls) == (1, 0)
