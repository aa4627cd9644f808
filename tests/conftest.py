"""
Test configuration and fixtures for the web accessibility utility.

Provides document builders and in-memory fakes for the browser session, the
audit engine and the alt text service so the scan pipeline can run without a
browser, axe-core or network access.
"""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from web_accessibility_utility.browser.session import BrowserSession
from web_accessibility_utility.remediate.alt_text_generator import clear_alt_text_memo
from web_accessibility_utility.remediate.document import CAPTURE_SCRIPT, Document
from web_accessibility_utility.remediate.overlay_dismissal import DISMISS_SCRIPT
from web_accessibility_utility.utils.logging_helper import NavigationFailure
from web_accessibility_utility.utils.report_models import Issue

# No waiting, no backoff
FAST_OPTIONS = {
    "stabilize": {"ready_timeout_ms": 1000, "network_idle_ms": 0, "settle_ms": 0},
    "overlays": {"timeout_ms": 1000},
    "detection": {"max_attempts": 3, "backoff_seconds": 0, "engine_timeout_ms": 1000},
    "scan": {"max_attempts": 3, "backoff_seconds": 0},
    "alt_text": {"disable_ai": True},
}


def make_document(html: str, url: str = "https://example.com/page", styles=None) -> Document:
    """Build a Document from markup without a browser."""
    return Document.from_html(html, url, styles)


@pytest.fixture
def build_document():
    return make_document


@pytest.fixture(autouse=True)
def reset_alt_text_memo():
    """Suggestions are memoized per process; start every test clean."""
    clear_alt_text_memo()
    yield
    clear_alt_text_memo()


@pytest.fixture
def fast_options() -> Dict[str, Any]:
    return {section: dict(values) for section, values in FAST_OPTIONS.items()}


class FakePage:
    """Stands in for a Playwright page serving fixed markup."""

    def __init__(self, html: str, dismissed: Optional[List[Dict[str, str]]] = None):
        self.html = html
        self.dismissed = list(dismissed or [])
        self.reloads = 0

    async def evaluate(self, script, arg=None):
        if script == CAPTURE_SCRIPT:
            return {}
        if script == DISMISS_SCRIPT:
            # Overlay dismissal: report once, then nothing is left
            dismissed, self.dismissed = self.dismissed, []
            return dismissed
        return True

    async def wait_for_function(self, script, timeout=None):
        return True

    async def wait_for_load_state(self, state, timeout=None):
        return None

    async def content(self) -> str:
        return self.html

    async def reload(self, wait_until=None, timeout=None):
        self.reloads += 1


class FakeSession:
    """Async context manager mimicking BrowserSession."""

    def __init__(
        self,
        options=None,
        html: str = "<html><body></body></html>",
        fail_navigation: int = 0,
    ):
        self.options = options
        self.page = FakePage(html)
        self.fail_navigation = fail_navigation
        self.navigations = 0
        self.loaded_html: Optional[str] = None
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    async def navigate(self, url: str) -> Dict[str, str]:
        self.navigations += 1
        if self.navigations <= self.fail_navigation:
            raise NavigationFailure(f"Could not load {url}")
        return {"content-language": "en-GB"}

    async def load_remediated(self, html: str, url: str) -> None:
        self.loaded_html = html
        self.page.html = html


class RouteRequest:
    def __init__(self, resource_type: str, url: str):
        self.resource_type = resource_type
        self.url = url


class FakeRoute:
    """One intercepted request; records how the handlers settled it."""

    def __init__(self, resource_type: str, url: str):
        self.request = RouteRequest(resource_type, url)
        self.outcome: Optional[str] = None
        self.body: Optional[str] = None

    async def fulfill(self, status=200, content_type=None, body=None):
        self.outcome, self.body = "fulfill", body

    async def abort(self):
        self.outcome = "abort"

    async def continue_(self):
        self.outcome = "continue"

    async def fallback(self):
        self.outcome = "fallback"


class RoutingPage(FakePage):
    """
    Page that runs its documents through registered route handlers.

    Every executable script of a document that ends up shown is recorded in
    ``script_runs``, the way a browser would run it.
    """

    def __init__(self, html: str):
        super().__init__(html)
        self.handlers: List[Any] = []
        self.script_runs: List[str] = []
        self.url = "about:blank"

    async def route(self, pattern, handler):
        self.handlers.append(handler)

    async def unroute(self, pattern, handler):
        self.handlers.remove(handler)

    async def _dispatch(self, resource_type: str, url: str) -> FakeRoute:
        # Newest handler first; fallback hands the request to the next one
        for handler in reversed(self.handlers):
            route = FakeRoute(resource_type, url)
            await handler(route)
            if route.outcome != "fallback":
                return route
        route = FakeRoute(resource_type, url)
        route.outcome = "continue"
        return route

    async def goto(self, url, wait_until=None, timeout=None):
        route = await self._dispatch("document", url)
        if route.outcome == "abort":
            raise PlaywrightError(f"net::ERR_FAILED at {url}")
        if route.outcome == "fulfill":
            self.html = route.body
        self.url = url

        soup = BeautifulSoup(self.html, "html.parser")
        for script in soup.find_all("script"):
            if (script.get("type") or "").lower() not in ("", "text/javascript", "module"):
                continue
            if script.has_attr("src"):
                loaded = await self._dispatch("script", script["src"])
                if loaded.outcome == "abort":
                    continue
            self.script_runs.append(script.get("src") or script.get_text())
        return None


class RoutingSession(BrowserSession):
    """A real BrowserSession driving a RoutingPage instead of Chromium."""

    def __init__(self, options=None, html: str = ""):
        super().__init__(options)
        self.routing_page = RoutingPage(html)

    async def start(self) -> None:
        self.page = self.routing_page
        await self.page.route("**/*", self._intercept)

    async def close(self) -> None:
        self.closed = True


def session_factory(html: str, fail_navigation: int = 0):
    """Factory returning one shared FakeSession, so tests can inspect it."""
    session = FakeSession(html=html, fail_navigation=fail_navigation)

    def factory(options):
        session.options = options
        return session

    factory.session = session
    return factory


class FakeEngine:
    """Audit engine returning scripted results; exceptions are raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def analyze(self, page) -> List[Issue]:
        self.calls += 1
        result = self.results.pop(0) if self.results else []
        if isinstance(result, Exception):
            raise result
        return result


class FakeAltText:
    """Alt text service returning a fixed label per URL."""

    def __init__(self, text: str = "Red barn, Field"):
        self.text = text
        self.requested: List[str] = []

    async def suggest(self, image_url: str) -> str:
        self.requested.append(image_url)
        return self.text


def image_alt_issue(*selectors: str) -> Issue:
    return Issue.from_axe(
        {
            "id": "image-alt",
            "help": "Images must have alternate text",
            "impact": "critical",
            "tags": ["wcag2a"],
            "nodes": [{"target": [selector], "html": "<img>"} for selector in selectors],
        }
    )


@pytest.fixture
def fakes() -> SimpleNamespace:
    """The in-memory stand-ins, for tests that drive the scan pipeline."""
    return SimpleNamespace(
        page=FakePage,
        session=FakeSession,
        routing_session=RoutingSession,
        session_factory=session_factory,
        engine=FakeEngine,
        alt_text=FakeAltText,
        image_alt_issue=image_alt_issue,
    )
