"""
Tests for issue detection: the axe-core engine and the retry wrapper.
"""

import asyncio
import logging

import pytest
from playwright.async_api import Error as PlaywrightError

from web_accessibility_utility.audit.axe_engine import (
    HAS_AXE_SCRIPT,
    RUN_AXE_SCRIPT,
    AxeAuditEngine,
)
from web_accessibility_utility.audit.detection import detect_with_retry
from web_accessibility_utility.utils.logging_helper import (
    ConfigurationError,
    DetectionFailure,
)

VIOLATIONS = {
    "violations": [
        {
            "id": "image-alt",
            "help": "Images must have alternate text",
            "impact": "critical",
            "tags": ["wcag2a"],
            "nodes": [
                {"target": ["img.hero"], "html": "<img class=\"hero\">"},
                {"target": [["iframe#ad", "img"]], "html": "<img>"},
            ],
        }
    ]
}


class AxePage:
    """Page stand-in that records injected scripts and answers axe calls."""

    def __init__(self, results=None, error=None):
        self.results = results
        self.error = error
        self.injected = []
        self.run_args = None

    async def evaluate(self, script, arg=None):
        if self.error is not None:
            raise self.error
        if script == HAS_AXE_SCRIPT:
            return bool(self.injected)
        if script == RUN_AXE_SCRIPT:
            self.run_args = arg
            return self.results
        return None

    async def add_script_tag(self, content=None):
        self.injected.append(content)


@pytest.fixture
def axe_file(tmp_path):
    path = tmp_path / "axe.min.js"
    path.write_text("window.axe = {};", encoding="utf-8")
    return str(path)


class TestAxeAuditEngine:
    """Test cases for AxeAuditEngine."""

    async def test_injects_once_and_converts_violations(self, axe_file):
        engine = AxeAuditEngine({"axe_script_paths": [axe_file], "rule_tags": ["wcag2a"]})
        page = AxePage(VIOLATIONS)

        issues = await engine.analyze(page)
        await engine.analyze(page)

        assert page.injected == ["window.axe = {};"]
        assert page.run_args == ["wcag2a"]
        assert issues[0].id == "image-alt"
        assert [node.target for node in issues[0].nodes] == [["img.hero"], ["iframe#ad img"]]

    async def test_missing_script_is_reported_once(self, tmp_path, caplog):
        missing = str(tmp_path / "missing.js")
        with caplog.at_level(logging.ERROR, logger="web_accessibility_utility.audit.axe_engine"):
            engine = AxeAuditEngine({"axe_script_paths": [missing]})
            page = AxePage()
            for _ in range(3):
                with pytest.raises(ConfigurationError):
                    await engine.analyze(page)

        assert not engine.available
        assert page.injected == []
        errors = [record for record in caplog.records if record.levelno == logging.ERROR]
        assert len(errors) == 1
        assert missing in errors[0].getMessage()

    def test_script_is_read_when_the_engine_is_created(self, axe_file):
        engine = AxeAuditEngine({"axe_script_paths": ["/nonexistent/axe.min.js", axe_file]})
        assert engine.available

    async def test_browser_errors_become_detection_failures(self, axe_file):
        engine = AxeAuditEngine({"axe_script_paths": [axe_file]})
        with pytest.raises(DetectionFailure):
            await engine.analyze(AxePage(error=PlaywrightError("Execution context was destroyed")))

    async def test_empty_results(self, axe_file):
        engine = AxeAuditEngine({"axe_script_paths": [axe_file]})
        assert await engine.analyze(AxePage(None)) == []


class SlowEngine:
    async def analyze(self, page):
        await asyncio.sleep(1)
        return []


class TestDetectWithRetry:
    """Test cases for detect_with_retry."""

    async def test_success_after_failures(self, fakes, fast_options):
        page = fakes.page("<p>x</p>")
        engine = fakes.engine(RuntimeError("busy"), [fakes.image_alt_issue("img")])
        issues, ok = await detect_with_retry(engine, page, fast_options)
        assert ok
        assert issues[0].id == "image-alt"
        assert page.reloads == 1

    async def test_exhaustion_returns_empty_and_not_ok(self, fakes, fast_options):
        page = fakes.page("<p>x</p>")
        engine = fakes.engine(*[DetectionFailure("no axe")] * 3)
        assert await detect_with_retry(engine, page, fast_options) == ([], False)
        assert engine.calls == 3
        assert page.reloads == 2

    async def test_custom_reload_and_failing_reload(self, fakes, fast_options):
        calls = []

        async def reload():
            calls.append(1)
            raise RuntimeError("reload failed")

        engine = fakes.engine(RuntimeError("a"), [])
        issues, ok = await detect_with_retry(engine, fakes.page(""), fast_options, reload=reload)
        assert (issues, ok) == ([], True)
        assert calls == [1]

    async def test_missing_axe_is_not_retried(self, fakes, fast_options):
        page = fakes.page("<p>x</p>")
        engine = fakes.engine(ConfigurationError("axe-core script is not installed"), [])
        assert await detect_with_retry(engine, page, fast_options) == ([], False)
        assert engine.calls == 1
        assert page.reloads == 0

    async def test_engine_timeout(self, fakes):
        options = {"detection": {"max_attempts": 2, "backoff_seconds": 0, "engine_timeout_ms": 10}}
        assert await detect_with_retry(SlowEngine(), fakes.page(""), options) == ([], False)
