"""
Tests for the headless browser session helpers.
"""

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from web_accessibility_utility.browser import session as session_module
from web_accessibility_utility.browser.session import (
    INERT_SCRIPT_TYPE,
    BrowserSession,
    inert_markup,
    should_block,
)
from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import NavigationFailure


@pytest.fixture
def browser_options():
    return config_manager.get_config(section="browser")


class FakeResponse:
    async def all_headers(self):
        return {"content-language": "fr"}


class FlakyPage:
    """Fails the first ``failures`` navigations."""

    def __init__(self, failures):
        self.failures = failures
        self.attempts = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.attempts.append(wait_until)
        if len(self.attempts) <= self.failures:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded")
        return FakeResponse()


class FakeRoute:
    def __init__(self, resource_type, url):
        self.request = type("Request", (), {"resource_type": resource_type, "url": url})()
        self.outcome = None

    async def abort(self):
        self.outcome = "abort"

    async def continue_(self):
        self.outcome = "continue"


class LaunchFailingPlaywright:
    """Driver whose browser launch fails; records whether it was stopped."""

    def __init__(self):
        self.stopped = 0
        self.chromium = self

    def __call__(self):
        return self

    async def start(self):
        return self

    async def launch(self, **kwargs):
        raise RuntimeError("Executable doesn't exist")

    async def stop(self):
        self.stopped += 1


class TestRequestBlocking:
    """Test cases for should_block."""

    @pytest.mark.parametrize(
        "resource_type,url,blocked",
        [
            ("document", "https://example.com/", False),
            ("script", "https://example.com/app.js", False),
            ("media", "https://example.com/intro.mp4", True),
            ("font", "https://fonts.example.com/a.woff2", True),
            ("image", "https://example.com/logo.png", False),
            ("image", "https://example.com/logo.PNG?v=2", False),
            ("image", "https://example.com/pixel?id=7", True),
            ("script", "https://www.google-analytics.com/ga.js", True),
            ("xhr", "https://ads.doubleclick.net/x", True),
        ],
    )
    def test_should_block(self, browser_options, resource_type, url, blocked):
        assert should_block(resource_type, url, browser_options) is blocked

    def test_unrecognized_images_can_be_allowed(self, browser_options):
        browser_options["block_unrecognized_images"] = False
        assert not should_block("image", "https://example.com/pixel", browser_options)

    async def test_interception(self):
        session = BrowserSession()
        blocked, allowed = FakeRoute("media", "https://x.com/a.mp4"), FakeRoute("document", "https://x.com/")
        await session._intercept(blocked)
        await session._intercept(allowed)
        assert (blocked.outcome, allowed.outcome) == ("abort", "continue")


class TestInertMarkup:
    """Test cases for inert_markup."""

    def test_executable_scripts_are_disabled(self):
        html = (
            '<html><head><script src="/app.js"></script>'
            '<script type="module">render()</script>'
            '<script type="application/ld+json">{"@type": "Organization"}</script></head>'
            '<body onload="boot()"><button onclick="go()">Go</button></body></html>'
        )
        soup = BeautifulSoup(inert_markup(html), "html.parser")
        external, module, data = soup.find_all("script")

        assert external["type"] == INERT_SCRIPT_TYPE
        assert not external.has_attr("src")
        assert external["data-src"] == "/app.js"
        assert module["type"] == INERT_SCRIPT_TYPE
        assert data["type"] == "application/ld+json"
        assert not soup.body.has_attr("onload")
        assert not soup.button.has_attr("onclick")
        assert soup.button.string == "Go"

    def test_markup_without_scripts_is_unchanged(self):
        html = '<p class="lead">Hello <a href="/x">world</a></p>'
        assert inert_markup(html) == html


class TestNavigation:
    """Test cases for escalating navigation strategies."""

    async def test_escalates_until_one_succeeds(self):
        session = BrowserSession()
        session.page = FlakyPage(failures=2)
        headers = await session.navigate("https://example.com/")
        assert headers == {"content-language": "fr"}
        assert session.page.attempts == ["domcontentloaded", "load", "networkidle"]

    async def test_all_strategies_failing_raises(self):
        session = BrowserSession({"navigation": {"dom_timeout_ms": 1, "load_timeout_ms": 2, "network_idle_timeout_ms": 3}})
        session.page = FlakyPage(failures=3)
        with pytest.raises(NavigationFailure) as excinfo:
            await session.navigate("https://example.com/")
        assert len(session.page.attempts) == 3
        assert excinfo.value.url == "https://example.com/"

    async def test_remediated_markup_runs_no_scripts(self, fakes):
        original = '<html><body><p>Old</p><script src="/render.js"></script></body></html>'
        remediated = (
            '<html lang="en"><body><p>Fixed</p><script src="/render.js"></script>'
            "<script>document.body.innerHTML = ''</script></body></html>"
        )
        session = fakes.routing_session(html=original)
        async with session:
            await session.navigate("https://example.com/page")
            assert session.page.script_runs == ["/render.js"]

            await session.load_remediated(remediated, "https://example.com/page#top")

            assert session.page.script_runs == ["/render.js"]
            assert "<p>Fixed</p>" in session.page.html
            assert INERT_SCRIPT_TYPE in session.page.html
            # Only the interception handler stays registered
            assert session.page.handlers == [session._intercept]

    async def test_remediated_load_aborts_script_requests(self, fakes):
        session = fakes.routing_session(html="<p>x</p>")
        async with session:
            served = []

            async def goto(url, wait_until=None, timeout=None):
                for resource_type, request_url in (
                    ("document", url),
                    ("script", "https://example.com/late.js"),
                    ("stylesheet", "https://example.com/site.css"),
                ):
                    served.append(await session.page._dispatch(resource_type, request_url))

            session.page.goto = goto
            await session.load_remediated("<p>Fixed</p>", "https://example.com/")

        assert [route.outcome for route in served] == ["fulfill", "abort", "continue"]
        assert served[0].body == "<p>Fixed</p>"


class TestLifecycle:
    """Test cases for starting and closing sessions."""

    async def test_failed_launch_stops_the_driver(self, monkeypatch):
        driver = LaunchFailingPlaywright()
        monkeypatch.setattr(session_module, "async_playwright", driver)

        with pytest.raises(RuntimeError, match="Executable"):
            async with BrowserSession():
                pass

        assert driver.stopped == 1

    async def test_close_is_safe_before_start(self):
        session = BrowserSession()
        await session.close()
        assert session.page is None
