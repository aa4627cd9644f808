# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Headless browser session.

Owns one Playwright Chromium browser with a single page for the duration of a
scan: request interception, escalating navigation strategies and loading
remediated markup back into the page, with its scripts disabled, for re-auditing.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urldefrag

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import (
    NavigationFailure,
    setup_logger,
)

# Set up module-level logger
logger = setup_logger(__name__)

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(png|jpe?g|gif|webp|svg)(\?.*)?$", re.IGNORECASE)

EXECUTABLE_SCRIPT_TYPES = {
    "", "text/javascript", "application/javascript", "application/ecmascript",
    "text/ecmascript", "module",
}
INERT_SCRIPT_TYPE = "text/x-inert-script"


def should_block(
    resource_type: str, url: str, options: Dict[str, Any]
) -> bool:
    """
    Decide whether a request is aborted during a scan.

    Args:
        resource_type: Playwright resource type of the request
        url: Request URL
        options: Resolved ``browser`` configuration section

    Returns:
        True for blocked resource types, unrecognized image requests and
        URLs containing a blocked fragment
    """
    if resource_type in options["blocked_resource_types"]:
        return True
    if resource_type == "image" and not IMAGE_EXTENSION_PATTERN.search(url):
        return options.get("block_unrecognized_images", True)
    lowered = url.lower()
    return any(fragment in lowered for fragment in options["blocked_url_fragments"])


def inert_markup(html: str) -> str:
    """
    Disable everything in ``html`` that would run on load.

    Executable scripts get a non-executable type and inline event handlers are
    dropped, so the page shows exactly the markup it was given. Data scripts
    such as JSON-LD are left alone.

    Args:
        html: Markup to neutralize

    Returns:
        The markup with scripts and handlers disabled
    """
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script"):
        script_type = (script.get("type") or "").strip().lower()
        if script_type in EXECUTABLE_SCRIPT_TYPES:
            script["type"] = INERT_SCRIPT_TYPE
            if script.has_attr("src"):
                script["data-src"] = script["src"]
                del script["src"]
    for element in soup.find_all(True):
        for attr in [name for name in element.attrs if name.lower().startswith("on")]:
            del element[attr]
    return str(soup)


class BrowserSession:
    """
    Async context manager around one headless Chromium page.

    Attributes:
        page: The Playwright page, available once the session started
        response_headers: Headers of the last successful navigation
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = config_manager.get_config(options, section="browser")
        self.navigation = config_manager.get_config(options, section="navigation")
        self.page = None
        self.response_headers: Dict[str, str] = {}
        self._playwright = None
        self._browser = None
        self._context = None

    async def __aenter__(self) -> "BrowserSession":
        try:
            await self.start()
        except BaseException:
            # A half-started session still owns a driver process
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch the browser and open the page."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.options["headless"], args=self.options["launch_args"]
        )
        self._context = await self._browser.new_context(
            viewport={
                "width": self.options["viewport_width"],
                "height": self.options["viewport_height"],
            },
            user_agent=self.options["user_agent"],
            extra_http_headers={"Accept-Language": self.options["accept_language"]},
        )
        self.page = await self._context.new_page()
        await self.page.route("**/*", self._intercept)
        logger.debug("Browser session started")

    async def _intercept(self, route) -> None:
        request = route.request
        try:
            if should_block(request.resource_type, request.url, self.options):
                await route.abort()
            else:
                await route.continue_()
        except PlaywrightError as e:
            logger.debug(f"Request interception error for {request.url}: {e}")

    def _strategies(self) -> List[Tuple[str, int]]:
        return [
            ("domcontentloaded", self.navigation["dom_timeout_ms"]),
            ("load", self.navigation["load_timeout_ms"]),
            ("networkidle", self.navigation["network_idle_timeout_ms"]),
        ]

    async def navigate(self, url: str) -> Dict[str, str]:
        """
        Load a URL, escalating the wait condition after each failure.

        Args:
            url: Address to load

        Returns:
            Response headers of the main document

        Raises:
            NavigationFailure: If every strategy failed
        """
        last_error: Optional[BaseException] = None
        for wait_until, timeout in self._strategies():
            try:
                response = await self.page.goto(url, wait_until=wait_until, timeout=timeout)
                self.response_headers = await response.all_headers() if response else {}
                logger.info(f"Navigated to {url} (wait_until={wait_until})")
                return self.response_headers
            except PlaywrightError as e:
                last_error = e
                logger.warning(f"Navigation to {url} with wait_until={wait_until} failed: {e}")

        raise NavigationFailure(
            f"All navigation strategies failed for {url}: {last_error}", url=url
        )

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self.page.evaluate(expression, arg)

    async def content(self) -> str:
        return await self.page.content()

    async def load_remediated(self, html: str, url: str) -> None:
        """
        Show remediated markup in a fresh document at the scanned URL.

        The main document request is answered with the markup, made inert, so
        none of the page's scripts run again and rewrite it before the audit.
        Relative URLs keep resolving against the page URL.

        Args:
            html: Remediated markup
            url: URL the markup belongs to
        """
        target = urldefrag(url)[0]
        body = inert_markup(html)

        async def serve(route) -> None:
            request = route.request
            if request.resource_type == "document" and urldefrag(request.url)[0] == target:
                await route.fulfill(
                    status=200, content_type="text/html; charset=utf-8", body=body
                )
            elif request.resource_type == "script":
                await route.abort()
            else:
                await route.fallback()

        await self.page.route("**/*", serve)
        try:
            await self.page.goto(
                url, wait_until="load", timeout=self.navigation["load_timeout_ms"]
            )
        finally:
            await self.page.unroute("**/*", serve)
        logger.debug(f"Loaded remediated markup for {url}")

    async def reload(self) -> None:
        await self.page.reload(
            wait_until="domcontentloaded", timeout=self.navigation["dom_timeout_ms"]
        )

    async def close(self) -> None:
        """Close the page, browser and driver, ignoring shutdown errors."""
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                await closer.close()
            except PlaywrightError as e:
                logger.debug(f"Error while closing browser: {e}")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.debug(f"Error while stopping the browser driver: {e}")
        self._context = self._browser = self._playwright = None
        self.page = None
