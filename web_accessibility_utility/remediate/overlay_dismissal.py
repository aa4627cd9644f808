# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Overlay dismissal.

Cookie banners, newsletter popups, welcome screens and modal dialogs hide the
page from the audit engine. This module waits for the page to settle and
clicks whatever control closes them, one selector family at a time.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import setup_logger

# Set up module-level logger
logger = setup_logger(__name__)

READY_STATE_SCRIPT = (
    "() => document.readyState === 'complete' || document.readyState === 'interactive'"
)

# Resolves true once no resource has finished loading for idleMs, false when
# the page is still busy after timeoutMs.
NETWORK_QUIET_SCRIPT = """
({ idleMs, timeoutMs }) => new Promise((resolve) => {
    const started = performance.now();
    let last = started;
    const observer = new PerformanceObserver(() => { last = performance.now(); });
    observer.observe({ type: 'resource', buffered: false });
    const check = () => {
        const now = performance.now();
        if (now - last >= idleMs || now - started >= timeoutMs) {
            observer.disconnect();
            resolve(now - last >= idleMs);
            return;
        }
        setTimeout(check, Math.min(100, idleMs));
    };
    check();
})
"""

_CLOSE_KEYWORDS = ["close", "dismiss", "cancel", "no thanks", "×", "✕"]

# Each family: candidate selectors, keyword patterns that identify the control
# to click, whether aria-label/title count, and (for containers) which
# descendants are candidate controls.
OVERLAY_FAMILIES: List[Dict[str, Any]] = [
    {
        "type": "cookie",
        "selectors": [
            "#cookie-banner", ".cookie-banner", "#cookie-consent", ".cookie-consent",
            "#cookie-notice", ".cookie-notice", "#cookie-policy", ".cookie-policy",
            "#cookieBanner", ".cookieBanner", "#cookieConsent", ".cookieConsent",
            "#cookieNotice", ".cookieNotice", "#gdpr-banner", ".gdpr-banner",
            "#gdpr-consent", ".gdpr-consent", "#gdpr-notice", ".gdpr-notice",
            '[aria-label*="cookie" i]', '[aria-label*="consent" i]',
            'button[id*="accept" i]', 'button[class*="accept" i]',
            'button[id*="agree" i]', 'button[class*="agree" i]',
            'button[id*="consent" i]', 'button[class*="consent" i]',
            'button[id*="cookie" i]', 'button[class*="cookie" i]',
            'a[id*="accept" i]', 'a[class*="accept" i]',
            'a[id*="agree" i]', 'a[class*="agree" i]',
            'a[id*="consent" i]', 'a[class*="consent" i]',
            'a[id*="cookie" i]', 'a[class*="cookie" i]',
        ],
        "keywords": ["accept", "agree", "consent", "allow", "got it", r"\bok\b"],
        "matchAttributes": False,
        "controls": None,
    },
    {
        "type": "popup",
        "selectors": [
            "#newsletter-popup", ".newsletter-popup", "#subscribe-popup", ".subscribe-popup",
            "#popup", ".popup", "#modal", ".modal", "#overlay", ".overlay",
            '[aria-label*="newsletter" i]', '[aria-label*="subscribe" i]',
            '[aria-label*="popup" i]', '[aria-label*="modal" i]',
            'button[aria-label*="close" i]', 'button[title*="close" i]',
            "button.close", "button.dismiss", "button.cancel",
            "a.close", "a.dismiss", "a.cancel",
            "span.close", "span.dismiss", "span.cancel",
            "div.close", "div.dismiss", "div.cancel",
            "button:has(svg)", "a:has(svg)", "span:has(svg)",
            'button:has(img[alt*="close" i])', 'a:has(img[alt*="close" i])',
        ],
        "keywords": _CLOSE_KEYWORDS,
        "matchAttributes": True,
        "controls": None,
    },
    {
        "type": "welcome",
        "selectors": [
            "#welcome", ".welcome", "#intro", ".intro",
            "#welcome-screen", ".welcome-screen", "#intro-screen", ".intro-screen",
            "#welcome-overlay", ".welcome-overlay", "#intro-overlay", ".intro-overlay",
            'button[id*="continue" i]', 'button[class*="continue" i]',
            'button[id*="skip" i]', 'button[class*="skip" i]',
            'button[id*="start" i]', 'button[class*="start" i]',
            'button[id*="begin" i]', 'button[class*="begin" i]',
            'a[id*="continue" i]', 'a[class*="continue" i]',
            'a[id*="skip" i]', 'a[class*="skip" i]',
            'a[id*="start" i]', 'a[class*="start" i]',
            'a[id*="begin" i]', 'a[class*="begin" i]',
        ],
        "keywords": ["continue", "skip", "start", "begin", "got it", "next"],
        "matchAttributes": False,
        "controls": None,
    },
    {
        "type": "modal",
        "selectors": [
            ".modal", ".popup", ".overlay", ".dialog", '[role="dialog"]', '[aria-modal="true"]',
        ],
        "keywords": _CLOSE_KEYWORDS,
        "matchAttributes": True,
        "controls": "button, a, span, div, svg, img",
    },
]

# Clicks at most one matching control per selector and reports what it clicked
DISMISS_SCRIPT = """
(families) => {
    const dismissed = [];

    const isVisible = (el) => {
        if (!el) return false;
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return style.display !== 'none' &&
            style.visibility !== 'hidden' &&
            style.opacity !== '0' &&
            rect.width > 0 &&
            rect.height > 0;
    };

    const describe = (el) => (el.textContent || '').trim() ||
        el.getAttribute('aria-label') || el.getAttribute('title') || '';

    const matches = (el, patterns, useAttributes) => {
        const haystack = [(el.textContent || '').toLowerCase()];
        if (useAttributes) {
            haystack.push((el.getAttribute('aria-label') || '').toLowerCase());
            haystack.push((el.getAttribute('title') || '').toLowerCase());
        }
        return patterns.some((pattern) => {
            const re = new RegExp(pattern, 'i');
            return haystack.some((text) => re.test(text));
        });
    };

    const click = (el) => {
        if (typeof el.click === 'function') {
            el.click();
        } else {
            el.dispatchEvent(new MouseEvent('click', { bubbles: true, cancelable: true }));
        }
    };

    for (const family of families) {
        for (const selector of family.selectors) {
            let elems;
            try {
                elems = document.querySelectorAll(selector);
            } catch (e) {
                continue;
            }

            for (const elem of elems) {
                if (!isVisible(elem)) continue;

                let target = null;
                if (family.controls) {
                    for (const control of elem.querySelectorAll(family.controls)) {
                        if (isVisible(control) && matches(control, family.keywords, family.matchAttributes)) {
                            target = control;
                            break;
                        }
                    }
                } else if (matches(elem, family.keywords, family.matchAttributes)) {
                    target = elem;
                }

                if (target) {
                    const text = describe(target).slice(0, 100);
                    click(target);
                    dismissed.push({ type: family.type, selector: selector, text: text });
                    break;
                }
            }
        }
    }

    return dismissed;
}
"""


async def wait_for_page_ready(page, options: Optional[Dict[str, Any]] = None) -> bool:
    """
    Wait for the page to become interactive and its network to go quiet.

    After Playwright's own network idle state, no resource may finish loading
    for ``network_idle_ms`` (skipped when zero); then ``settle_ms`` more pass.

    Args:
        page: Playwright page
        options: Configuration overrides (``stabilize`` section)

    Returns:
        True when every wait completed, False when one of them timed out or failed
    """
    opts = config_manager.get_config(options, section="stabilize")
    try:
        await page.wait_for_function(READY_STATE_SCRIPT, timeout=opts["ready_timeout_ms"])
        await page.wait_for_load_state("networkidle", timeout=opts["ready_timeout_ms"])
        quiet = True
        if opts["network_idle_ms"] > 0:
            quiet = await page.evaluate(
                NETWORK_QUIET_SCRIPT,
                {"idleMs": opts["network_idle_ms"], "timeoutMs": opts["ready_timeout_ms"]},
            )
            if not quiet:
                logger.info(
                    f"Network did not stay quiet for {opts['network_idle_ms']}ms "
                    f"within {opts['ready_timeout_ms']}ms"
                )
        await asyncio.sleep(opts["settle_ms"] / 1000)
        return bool(quiet)
    except PlaywrightError as e:
        logger.warning(f"Error waiting for page ready: {e}")
        return False


async def _dismiss_once(page, options: Optional[Dict[str, Any]]) -> List[Dict[str, str]]:
    await wait_for_page_ready(page, options)
    dismissed = await page.evaluate(DISMISS_SCRIPT, OVERLAY_FAMILIES)
    return list(dismissed or [])


async def dismiss_overlays(
    page, options: Optional[Dict[str, Any]] = None
) -> Tuple[List[Dict[str, str]], bool]:
    """
    Close overlays covering the page.

    A second pass runs when the first one dismissed something, since closing
    one overlay often reveals another. Each pass is bounded by the configured
    timeout.

    Args:
        page: Playwright page
        options: Configuration overrides (``overlays`` and ``stabilize`` sections)

    Returns:
        Tuple of (dismissed overlay descriptions, ok); ok is False when the
        first pass timed out or failed
    """
    opts = config_manager.get_config(options, section="overlays")
    timeout = opts["timeout_ms"] / 1000

    try:
        dismissed = await asyncio.wait_for(_dismiss_once(page, options), timeout)
    except (asyncio.TimeoutError, PlaywrightError) as e:
        logger.warning(f"Error during overlay dismissal: {e or 'timed out'}")
        return [], False

    if dismissed:
        logger.info(f"Dismissed {len(dismissed)} overlays, checking for more")
        try:
            dismissed.extend(await asyncio.wait_for(_dismiss_once(page, options), timeout))
        except (asyncio.TimeoutError, PlaywrightError) as e:
            logger.warning(f"Error during second overlay dismissal pass: {e or 'timed out'}")

    return dismissed, True
