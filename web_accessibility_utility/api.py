# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Web Accessibility API.

This module provides the main entry points: scanning and remediating a live
URL (with result caching), and remediating a markup string directly.
"""

import asyncio
from typing import Any, Dict, Optional

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.remediate.orchestrator import (
    RemediationOrchestrator,
    run_fixer_waves,
)
from web_accessibility_utility.utils.cache_store import ScanCache
from web_accessibility_utility.utils.logging_helper import (
    WebAccessibilityError,
    handle_exception,
    setup_logger,
)
from web_accessibility_utility.utils.report_models import count_fixes

# Set up module-level logger
logger = setup_logger(__name__)

_default_cache: Optional[ScanCache] = None


def get_default_cache() -> ScanCache:
    """Process-wide scan cache built from the ``cache`` configuration section."""
    global _default_cache
    if _default_cache is None:
        _default_cache = ScanCache()
    return _default_cache


async def scan_url_async(
    url: str,
    force_refresh: bool = False,
    options: Optional[Dict[str, Any]] = None,
    cache: Optional[ScanCache] = None,
    orchestrator: Optional[RemediationOrchestrator] = None,
) -> Dict[str, Any]:
    """
    Scan and remediate a URL, serving fresh cached results when available.

    Args:
        url: Address to scan
        force_refresh: Skip the cache lookup and replace any stored result
        options: Configuration overrides, keyed by section
        cache: Scan cache (defaults to the process-wide one)
        orchestrator: Orchestrator to run the scan with

    Returns:
        The scan result in response shape

    Raises:
        ScanExhausted: If every scan attempt failed
    """
    cache = cache or get_default_cache()

    if not force_refresh:
        cached = cache.get(url)
        if cached is not None:
            logger.info(f"Using cached result for {url}")
            return cached.to_response()

    orchestrator = orchestrator or RemediationOrchestrator(options)
    result = await orchestrator.run_scan(url)
    cache.put(url, result)
    return result.to_response()


def scan_url(
    url: str,
    force_refresh: bool = False,
    options: Optional[Dict[str, Any]] = None,
    cache: Optional[ScanCache] = None,
) -> Dict[str, Any]:
    """
    Synchronous wrapper around :func:`scan_url_async`.

    Args:
        url: Address to scan
        force_refresh: Skip the cache lookup and replace any stored result
        options: Configuration overrides, keyed by section
        cache: Scan cache (defaults to the process-wide one)

    Returns:
        The scan result in response shape
    """
    return asyncio.run(scan_url_async(url, force_refresh, options, cache))


def remediate_html(html: str, url: str = "") -> Dict[str, Any]:
    """
    Run the fixer waves over markup without a browser.

    Without computed styles, colors and sizes come from inline styles and
    defaults only.

    Args:
        html: Page markup
        url: Page URL, used to resolve relative links and derive titles

    Returns:
        Dict with ``fixedHtml``, ``fixes`` (category to change records) and
        ``fixesByCategory`` counts

    Raises:
        WebAccessibilityError: If the remediation passes could not run
    """
    document = Document.from_html(html, url)
    try:
        fixes = asyncio.run(run_fixer_waves(document))
    except Exception as e:
        handle_exception(
            e,
            logger,
            custom_message=f"Error remediating markup for {url or 'inline HTML'}",
            custom_exception=WebAccessibilityError,
        )
    logger.info(f"Remediated markup with {sum(count_fixes(fixes).values())} changes")
    return {
        "url": url,
        "fixedHtml": document.to_html(),
        "fixes": {
            category: [record.model_dump(by_alias=True, mode="json") for record in records]
            for category, records in fixes.items()
        },
        "fixesByCategory": count_fixes(fixes),
    }
