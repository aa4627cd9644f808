# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Remediation orchestrator.

This module drives one scan of a URL end to end:

1. Navigate with escalating wait strategies.
2. Wait for the page to settle.
3. Dismiss overlays (a failure degrades the scan).
4. Detect issues (retried; exhaustion degrades the scan).
5. Run the fixer waves over a snapshot of the page.
6. Suggest alt text for images reported without it.
7. Load the remediated markup back and detect again.
8. Assemble the ScanResult.

Only navigation failures abort an attempt; the whole attempt is retried from
scratch with linear backoff.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from web_accessibility_utility.audit.axe_engine import AxeAuditEngine
from web_accessibility_utility.audit.detection import detect_with_retry
from web_accessibility_utility.browser.session import BrowserSession
from web_accessibility_utility.remediate.alt_text_generator import AltTextService
from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.remediate.overlay_dismissal import (
    dismiss_overlays,
    wait_for_page_ready,
)
from web_accessibility_utility.remediate.remediation_strategies import (
    FIXER_WAVES,
    Fixer,
)
from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.html_utils import describe_element
from web_accessibility_utility.utils.logging_helper import (
    FixerFailure,
    ScanExhausted,
    log_exception,
    setup_logger,
)
from web_accessibility_utility.utils.report_models import (
    AuditLog,
    ChangeRecord,
    FixCategory,
    Issue,
    ScanResult,
    count_fixes,
)

# Set up module-level logger
logger = setup_logger(__name__)

ALT_TEXT_RULES = ("image-alt",)

# Lazy-loading attributes win over the rendered source
IMAGE_SOURCE_ATTRIBUTES = ("data-src", "data-original", "data-lazy-src", "src")


@dataclass(frozen=True)
class FixerOutcome:
    """Either the changes one fixer made or the reason it failed."""

    category: str
    changes: Tuple[ChangeRecord, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_fixer_isolated(
    category: str, fixer: Fixer, document: Document
) -> FixerOutcome:
    """
    Run one fixer, converting any exception into a failed outcome.

    The fixer runs start to finish without yielding, so other fixers of the
    same wave never observe it half done.

    Args:
        category: Fix category the fixer reports under
        fixer: The fixer function
        document: Document to remediate

    Returns:
        FixerOutcome with the fixer's changes, or with an error and no changes
    """
    try:
        changes = fixer(document)
    except Exception as e:
        failure = FixerFailure(f"Fixer '{category}' failed: {e}", category=_category_key(category))
        log_exception(logger, e, str(failure), level=logging.WARNING)
        return FixerOutcome(category=category, error=str(failure))
    return FixerOutcome(category=category, changes=tuple(changes or ()))


def _category_key(category: Any) -> str:
    return category.value if isinstance(category, FixCategory) else str(category)


async def run_fixer_waves(
    document: Document, waves: Optional[List[List[Tuple[Any, Fixer]]]] = None
) -> Dict[str, List[ChangeRecord]]:
    """
    Run the fixer waves over a document.

    Fixers of one wave are launched together; the next wave starts only after
    every fixer of the previous one finished.

    Args:
        document: Document to remediate
        waves: Fixer waves to run (defaults to the registered waves)

    Returns:
        Mapping of category to the change records its fixer produced
    """
    fixes: Dict[str, List[ChangeRecord]] = {}
    for index, wave in enumerate(waves if waves is not None else FIXER_WAVES, start=1):
        outcomes = await asyncio.gather(
            *(run_fixer_isolated(_category_key(category), fixer, document) for category, fixer in wave)
        )
        for outcome in outcomes:
            fixes[outcome.category] = list(outcome.changes)
        failed = [outcome.category for outcome in outcomes if not outcome.ok]
        logger.debug(
            f"Wave {index}: {sum(len(o.changes) for o in outcomes)} changes"
            + (f", failed: {', '.join(failed)}" if failed else "")
        )
    return fixes


def image_source(image: Tag, base_url: str) -> Optional[str]:
    """
    Absolute URL of the image an element shows.

    Args:
        image: The image element
        base_url: Page URL relative sources resolve against

    Returns:
        The resolved URL, or None when no usable source exists
    """
    for attr in IMAGE_SOURCE_ATTRIBUTES:
        value = (image.get(attr) or "").strip()
        if not value or value.startswith("data:"):
            continue
        resolved = urljoin(base_url, value) if base_url else value
        if resolved.startswith(("http://", "https://")):
            return resolved
    return None


def resolve_alt_text_targets(
    document: Document, issues: List[Issue]
) -> List[Tuple[str, Tag]]:
    """
    Find the elements reported as images without alt text.

    Must run before the fixers change the tree, while the audit engine's
    selectors still match.

    Args:
        document: Freshly captured document
        issues: Issues from the initial detection

    Returns:
        (selector, element) pairs in report order
    """
    targets = []
    for issue in issues:
        if issue.id not in ALT_TEXT_RULES:
            continue
        for node in issue.nodes:
            if not node.target:
                continue
            try:
                element = document.soup.select_one(node.target[0])
            except SelectorSyntaxError as e:
                logger.debug(f"Cannot resolve selector {node.target[0]}: {e}")
                continue
            if element is not None:
                targets.append((node.target[0], element))
    return targets


class RemediationOrchestrator:
    """
    Runs scans of URLs.

    Attributes:
        options: Fully resolved configuration
        engine: Audit engine used for both detections
        alt_text: Alt text service
    """

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        engine=None,
        alt_text: Optional[AltTextService] = None,
        session_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
        waves: Optional[List[List[Tuple[Any, Fixer]]]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            options: Configuration overrides, keyed by section
            engine: Audit engine (defaults to axe-core)
            alt_text: Alt text service (defaults to the Bedrock-backed one)
            session_factory: Callable returning an async context manager
                browser session for the given options
            waves: Fixer waves (defaults to the registered waves)
        """
        self.options = config_manager.get_config(options)
        self.engine = engine or AxeAuditEngine(self.options)
        self.alt_text = alt_text or AltTextService(self.options)
        self.session_factory = session_factory or BrowserSession
        self.waves = waves if waves is not None else FIXER_WAVES

    async def run_scan(self, url: str) -> ScanResult:
        """
        Scan a URL, retrying the whole pipeline on failure.

        Args:
            url: Address to scan

        Returns:
            The assembled ScanResult

        Raises:
            ScanExhausted: If every attempt failed
        """
        attempts = self.options["scan"]["max_attempts"]
        backoff = self.options["scan"]["backoff_seconds"]
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                return await self.perform_scan(url)
            except Exception as e:
                last_error = e
                log_exception(
                    logger,
                    e,
                    f"Scan attempt {attempt}/{attempts} for {url} failed",
                    level=logging.WARNING,
                    include_traceback=False,
                )
            if attempt < attempts:
                await asyncio.sleep(backoff * attempt)

        raise ScanExhausted(
            f"Scan of {url} failed after {attempts} attempts: {last_error}", last_error
        ) from last_error

    async def perform_scan(self, url: str) -> ScanResult:
        """
        Run one scan attempt.

        Args:
            url: Address to scan

        Returns:
            The assembled ScanResult

        Raises:
            NavigationFailure: If the page could not be loaded
        """
        degraded = False

        async with self.session_factory(self.options) as session:
            headers = await session.navigate(url)
            page = session.page

            if not await wait_for_page_ready(page, self.options):
                logger.info(f"Page {url} did not fully settle, continuing")

            dismissed, ok = await dismiss_overlays(page, self.options)
            degraded = degraded or not ok

            original_issues, ok = await detect_with_retry(self.engine, page, self.options)
            degraded = degraded or not ok

            document = await Document.capture(page, url, headers)
            alt_targets = resolve_alt_text_targets(document, original_issues)

            fixes = await run_fixer_waves(document, self.waves)

            alt_changes, suggestions = await self.augment_alt_text(document, alt_targets)
            fixes[FixCategory.IMAGE_ALT_TEXTS.value] = alt_changes

            fixed_html = document.to_html()
            final_issues, ok = await self._detect_remediated(session, fixed_html, url)
            degraded = degraded or not ok

        original_issues = [
            issue.with_suggestions(suggestions) if issue.id in ALT_TEXT_RULES else issue
            for issue in original_issues
        ]

        audit_log = AuditLog(
            url=url,
            total_issues_detected=len(original_issues),
            remaining_issues=len(final_issues),
            fixes_by_category=count_fixes(fixes),
        )
        logger.info(
            f"Scan of {url} complete: {len(original_issues)} issues found, "
            f"{len(final_issues)} remaining, {sum(audit_log.fixes_by_category.values())} fixes"
            + (" (degraded)" if degraded else "")
        )

        return ScanResult(
            url=url,
            original_issues=original_issues,
            issues=final_issues,
            fixes=fixes,
            fixed_html=fixed_html,
            degraded=degraded,
            dismissed_overlays=dismissed,
            audit_log=audit_log,
        )

    async def _detect_remediated(
        self, session, fixed_html: str, url: str
    ) -> Tuple[List[Issue], bool]:
        async def load():
            await session.load_remediated(fixed_html, url)

        try:
            await load()
        except Exception as e:
            log_exception(
                logger, e, "Could not load remediated markup", level=logging.WARNING,
                include_traceback=False,
            )
            return [], False

        return await detect_with_retry(self.engine, session.page, self.options, reload=load)

    async def augment_alt_text(
        self, document: Document, targets: List[Tuple[str, Tag]]
    ) -> Tuple[List[ChangeRecord], Dict[str, str]]:
        """
        Apply suggested alt text to images reported without it.

        Suggestions are requested in fixed-size concurrent batches.

        Args:
            document: Document being remediated
            targets: (selector, image) pairs from the initial detection

        Returns:
            Tuple of (change records, suggestion by selector)
        """
        jobs = []
        for selector, image in targets:
            image_url = image_source(image, document.url)
            if image_url is None:
                logger.debug(f"No usable source for image {selector}")
                continue
            jobs.append((selector, image, image_url))

        batch_size = max(1, self.options["alt_text"]["batch_size"])
        changes: List[ChangeRecord] = []
        suggestions: Dict[str, str] = {}

        for start in range(0, len(jobs), batch_size):
            batch = jobs[start : start + batch_size]
            texts = await asyncio.gather(*(self.alt_text.suggest(url) for _, _, url in batch))
            for (selector, image, image_url), text in zip(batch, texts):
                image["alt"] = text
                suggestions[selector] = text
                changes.append(
                    ChangeRecord(
                        element=describe_element(image),
                        action="Added alt text",
                        text=text,
                        details={"src": image_url},
                    )
                )

        if changes:
            logger.info(f"Added alt text to {len(changes)} images")
        return changes, suggestions
