"""
Tests for the public API: cached URL scans and markup remediation.
"""

import pytest

from web_accessibility_utility import api
from web_accessibility_utility.api import remediate_html, scan_url_async
from web_accessibility_utility.remediate.orchestrator import RemediationOrchestrator
from web_accessibility_utility.utils.cache_store import ScanCache
from web_accessibility_utility.utils.logging_helper import WebAccessibilityError

PAGE_URL = "https://example.com/shop"
PAGE = "<html><head><title>Shop</title></head><body><h1>Shop</h1><p>Open</p></body></html>"


@pytest.fixture
def scan_setup(fakes, fast_options, tmp_path):
    factory = fakes.session_factory(PAGE)
    orchestrator = RemediationOrchestrator(
        fast_options, fakes.engine([], [], [], []), fakes.alt_text(), factory
    )
    return factory.session, orchestrator, ScanCache(str(tmp_path / "cache"), 3600)


class TestScanUrl:
    """Test cases for scan_url_async."""

    async def test_cached_result_is_served(self, scan_setup):
        session, orchestrator, cache = scan_setup

        first = await scan_url_async(PAGE_URL, cache=cache, orchestrator=orchestrator)
        second = await scan_url_async(PAGE_URL, cache=cache, orchestrator=orchestrator)

        assert session.navigations == 1
        assert second == first
        assert first["url"] == PAGE_URL
        assert first["warning"] is False
        assert "fixedHtml" in first and "originalIssues" in first

    async def test_force_refresh_rescans(self, scan_setup):
        session, orchestrator, cache = scan_setup
        await scan_url_async(PAGE_URL, cache=cache, orchestrator=orchestrator)
        await scan_url_async(PAGE_URL, force_refresh=True, cache=cache, orchestrator=orchestrator)
        assert session.navigations == 2

    async def test_disk_cache_survives_a_new_instance(self, scan_setup, tmp_path):
        session, orchestrator, cache = scan_setup
        first = await scan_url_async(PAGE_URL, cache=cache, orchestrator=orchestrator)

        reopened = ScanCache(str(tmp_path / "cache"), 3600)
        again = await scan_url_async(PAGE_URL, cache=reopened, orchestrator=orchestrator)
        assert session.navigations == 1
        assert again["fixedHtml"] == first["fixedHtml"]


class TestRemediateHtml:
    """Test cases for remediate_html."""

    def test_response_shape(self):
        result = remediate_html(
            '<html><body><p style="color: #aaaaaa">Faint</p><img src="x.png"></body></html>',
            "https://example.com/page",
        )
        assert result["url"] == "https://example.com/page"
        assert 'lang="en"' in result["fixedHtml"]
        assert result["fixesByCategory"]["contrast"] == 1
        contrast = result["fixes"]["contrast"][0]
        assert contrast["action"] == "Fixed color contrast"
        assert contrast["oldContrast"] < contrast["newContrast"]
        # Alt text needs image analysis, which only URL scans perform
        assert "imageAltTexts" not in result["fixes"]

    def test_failures_are_wrapped(self, monkeypatch):
        async def broken(document, waves=None):
            raise RuntimeError("tree exploded")

        monkeypatch.setattr(api, "run_fixer_waves", broken)
        with pytest.raises(WebAccessibilityError, match="Error remediating markup"):
            remediate_html("<p>x</p>")
