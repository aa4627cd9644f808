# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
axe-core audit engine.

Injects the axe-core script into a live page, runs it with the configured rule
tags and converts its violations into Issue records. The script is located once,
when the engine is created.
"""

import os
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import (
    ConfigurationError,
    DetectionFailure,
    setup_logger,
)
from web_accessibility_utility.utils.report_models import Issue

# Set up module-level logger
logger = setup_logger(__name__)

HAS_AXE_SCRIPT = "() => typeof window.axe !== 'undefined'"

RUN_AXE_SCRIPT = """
async (tags) => {
    const results = await window.axe.run(document, {
        runOnly: { type: 'tag', values: tags },
        resultTypes: ['violations'],
        selectors: true,
        elementRef: false
    });
    return {
        violations: results.violations.map((v) => ({
            id: v.id,
            help: v.help,
            description: v.description,
            impact: v.impact,
            helpUrl: v.helpUrl,
            tags: v.tags,
            nodes: v.nodes.map((n) => ({
                target: n.target,
                html: n.html,
                failureSummary: n.failureSummary
            }))
        }))
    };
}
"""


class AxeAuditEngine:
    """
    Audit engine backed by axe-core.

    Attributes:
        options: Resolved ``detection`` configuration section
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = config_manager.get_config(options, section="detection")
        self._source = self._load_source()

    @property
    def available(self) -> bool:
        """Whether the axe-core script was found."""
        return self._source is not None

    def _load_source(self) -> Optional[str]:
        for path in self.options["axe_script_paths"]:
            if os.path.isfile(path):
                with open(path, "r", encoding="utf-8") as f:
                    source = f.read()
                logger.debug(f"Loaded axe-core from {path}")
                return source

        logger.error(
            "axe-core script not found in any of: "
            f"{', '.join(self.options['axe_script_paths'])}; detection is disabled "
            "until axe.min.js is installed (npm install axe-core)"
        )
        return None

    async def analyze(self, page) -> List[Issue]:
        """
        Run axe-core against the page.

        Args:
            page: Playwright page

        Returns:
            Issues for every violated rule

        Raises:
            ConfigurationError: If the axe-core script is not installed
            DetectionFailure: If axe-core cannot be injected or run
        """
        if self._source is None:
            raise ConfigurationError("axe-core script is not installed")
        source = self._source
        try:
            if not await page.evaluate(HAS_AXE_SCRIPT):
                await page.add_script_tag(content=source)
            results = await page.evaluate(RUN_AXE_SCRIPT, self.options["rule_tags"])
        except PlaywrightError as e:
            raise DetectionFailure(f"axe-core analysis failed: {e}") from e

        violations = (results or {}).get("violations", [])
        logger.debug(f"axe-core reported {len(violations)} violated rules")
        return [Issue.from_axe(violation) for violation in violations]
