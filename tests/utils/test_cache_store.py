"""
Tests for the scan result cache.
"""

import os

import pytest

from web_accessibility_utility.utils.cache_store import ScanCache, cache_key
from web_accessibility_utility.utils.report_models import ChangeRecord, ScanResult

URL = "https://Example.com/path?q=1"
DAY = 24 * 60 * 60


@pytest.fixture
def result():
    return ScanResult(
        url=URL,
        fixed_html="<html></html>",
        fixes={"title": [ChangeRecord(element="title", action="Set document title to: Example")]},
    )


@pytest.fixture
def cache(tmp_path):
    return ScanCache(directory=str(tmp_path / "cache"), ttl_seconds=DAY)


class TestCacheKey:
    """Test cases for cache_key."""

    def test_non_alphanumerics_become_underscores(self):
        assert cache_key(URL) == "https___example_com_path_q_1"

    def test_key_uses_url_as_supplied(self):
        assert cache_key("https://example.com") != cache_key("https://example.com/")


class TestScanCache:
    """Test cases for ScanCache."""

    def test_miss_on_empty_cache(self, cache):
        assert cache.get(URL, now=1000.0) is None

    def test_fresh_entry_is_served(self, cache, result):
        cache.put(URL, result, now=1000.0)
        cached = cache.get(URL, now=1000.0 + DAY - 1)
        assert cached == result

    def test_entry_expires_after_ttl(self, cache, result):
        cache.put(URL, result, now=1000.0)
        assert cache.get(URL, now=1000.0 + DAY) is None
        # Expired entries are discarded from disk too
        assert not os.path.exists(os.path.join(cache.directory, f"{cache_key(URL)}.json"))

    def test_entry_survives_restart(self, cache, result):
        cache.put(URL, result, now=1000.0)
        restarted = ScanCache(directory=cache.directory, ttl_seconds=DAY)
        cached = restarted.get(URL, now=2000.0)
        assert cached is not None
        assert cached.fixed_html == "<html></html>"
        assert cached.fixes["title"][0].action == "Set document title to: Example"

    def test_unreadable_file_is_a_miss(self, cache):
        os.makedirs(cache.directory, exist_ok=True)
        with open(os.path.join(cache.directory, f"{cache_key(URL)}.json"), "w") as f:
            f.write("{not json")
        assert cache.get(URL, now=1000.0) is None

    def test_invalidate(self, cache, result):
        cache.put(URL, result, now=1000.0)
        cache.invalidate(URL)
        assert cache.get(URL, now=1000.0) is None

    def test_disk_failure_keeps_memory_entry(self, tmp_path, result):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where the cache directory should be")
        cache = ScanCache(directory=str(blocker / "cache"), ttl_seconds=DAY)
        cache.put(URL, result, now=1000.0)
        assert cache.get(URL, now=1000.0) == result
