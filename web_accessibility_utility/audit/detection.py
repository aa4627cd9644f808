# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Issue detection with retries.

Wraps an audit engine so a failing analysis is retried with linearly growing
backoff and a page reload in between. Exhausting every attempt is not an
error: the caller receives an empty issue list and a flag to degrade the scan.
A misconfigured engine is not retried at all.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import (
    ConfigurationError,
    log_exception,
    setup_logger,
)
from web_accessibility_utility.utils.report_models import Issue

# Set up module-level logger
logger = setup_logger(__name__)


async def detect_with_retry(
    engine,
    page,
    options: Optional[Dict[str, Any]] = None,
    reload: Optional[Callable[[], Awaitable[Any]]] = None,
) -> Tuple[List[Issue], bool]:
    """
    Run the audit engine until it succeeds or attempts run out.

    Args:
        engine: Object with an async ``analyze(page)`` returning issues
        page: Page to analyze
        options: Configuration overrides (``detection`` section)
        reload: Coroutine function restoring the page between attempts;
            defaults to reloading the page

    Returns:
        Tuple of (issues, ok); ``([], False)`` once every attempt failed
    """
    opts = config_manager.get_config(options, section="detection")
    attempts = opts["max_attempts"]
    timeout = opts["engine_timeout_ms"] / 1000

    if reload is None:

        async def reload():
            await page.reload(wait_until="domcontentloaded", timeout=opts["reload_timeout_ms"])

    for attempt in range(1, attempts + 1):
        try:
            issues = await asyncio.wait_for(engine.analyze(page), timeout)
            return issues, True
        except ConfigurationError as e:
            log_exception(
                logger, e, "Detection is unavailable", include_traceback=False
            )
            return [], False
        except Exception as e:
            # Any engine error is absorbed here; the scan degrades instead
            log_exception(
                logger,
                e,
                f"Detection attempt {attempt}/{attempts} failed",
                level=logging.WARNING,
                include_traceback=False,
            )

        if attempt < attempts:
            await asyncio.sleep(opts["backoff_seconds"] * attempt)
            try:
                await reload()
            except Exception as reload_error:
                logger.warning(f"Page reload before detection retry failed: {reload_error}")

    logger.error(f"Detection failed after {attempts} attempts, continuing without issues")
    return [], False
