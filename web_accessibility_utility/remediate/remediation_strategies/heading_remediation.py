# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Heading remediation strategies.

This module normalizes the heading outline of a page: exactly one level-1
heading, no empty headings and no skipped levels.
"""

import re
from typing import List, Optional, Tuple

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.remediate.remediation_strategies.document_structure_remediation import (
    site_name,
)
from web_accessibility_utility.utils.html_utils import text_content
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def heading_level(heading: Tag) -> int:
    return int(heading.name[1])


def _snippet(heading: Tag) -> str:
    text = text_content(heading)
    return text[:50] + ("..." if len(text) > 50 else "")


def retag_heading(heading: Tag, level: int, keep_id: bool = True) -> None:
    """
    Change a heading's level in place, keeping its content and attributes.

    Args:
        heading: Heading element to retag
        level: New level, 1 to 6
        keep_id: Whether the heading keeps its id attribute
    """
    heading.name = f"h{level}"
    if not keep_id and "id" in heading.attrs:
        del heading["id"]


def _level_one_text(document: Document) -> str:
    title = document.soup.find("title")
    if title is not None and text_content(title):
        return text_content(title)

    meta = document.soup.find("meta", attrs={"property": "og:title"}) or document.soup.find(
        "meta", attrs={"name": "title"}
    )
    if meta is not None and meta.get("content", "").strip():
        return meta["content"].strip()

    return site_name(document.url) or "Page Title"


def _main_region(document: Document) -> Optional[Tag]:
    return document.soup.find("main") or document.soup.find(attrs={"role": "main"})


def _has_content(heading: Tag) -> bool:
    text = heading.get_text()
    if re.sub(r"[\s ]+", "", text):
        return True
    return heading.find(["img", "svg", "canvas"]) is not None


def fix_headings(document: Document) -> List[ChangeRecord]:
    """
    Normalize the heading hierarchy.

    Steps, in order: synthesize a level-1 heading when none exists, remove
    empty headings, demote extra level-1 headings, promote the first heading
    when no level-1 heading remains, then walk the headings closing skipped
    levels. Each heading is placed one level below the nearest preceding
    heading of higher original rank, so siblings stay siblings.

    Args:
        document: The document to remediate

    Returns:
        Change records for every heading touched
    """
    changes = []
    soup = document.soup

    if soup.find("h1") is None:
        text = _level_one_text(document)
        h1 = document.new_tag("h1")
        h1.string = text
        container = _main_region(document) or document.body
        container.insert(0, h1)
        changes.append(
            ChangeRecord(
                element="Heading: H1",
                action="Added missing level-one heading",
                text=text,
            )
        )

    removed = 0
    for heading in soup.find_all(HEADING_TAGS):
        if not _has_content(heading):
            changes.append(
                ChangeRecord(
                    element=f"Heading: {heading.name.upper()}",
                    action="Removed empty heading",
                )
            )
            heading.decompose()
            removed += 1

    headings = soup.find_all(HEADING_TAGS)
    if not headings:
        return changes

    level_ones = [h for h in headings if h.name == "h1"]
    for h1 in level_ones[1:]:
        retag_heading(h1, 2, keep_id=False)
        changes.append(
            ChangeRecord(
                element="Heading: H1",
                action="Fixed duplicate level-one headings",
                text=_snippet(h1),
                details={"original": "H1", "new": "H2"},
            )
        )

    if not level_ones:
        first = headings[0]
        original = first.name.upper()
        retag_heading(first, 1)
        changes.append(
            ChangeRecord(
                element=f"Heading: {original}",
                action="Added level-one heading",
                text=_snippet(first),
                details={"original": original, "new": "H1"},
            )
        )

    # (original level, new level) of the open ancestors of the next heading
    ancestors: List[Tuple[int, int]] = []
    skips = 0

    for heading in soup.find_all(HEADING_TAGS):
        level = heading_level(heading)
        while ancestors and ancestors[-1][0] >= level:
            ancestors.pop()
        parent_level = ancestors[-1][1] if ancestors else 1
        new_level = min(level, parent_level + 1)

        if new_level != level:
            original = heading.name.upper()
            retag_heading(heading, new_level)
            skips += 1
            changes.append(
                ChangeRecord(
                    element=f"Heading: {original}",
                    action=f"Fixed skipped heading level from {original} to H{new_level}",
                    text=_snippet(heading),
                    details={"original": original, "new": f"H{new_level}"},
                )
            )

        ancestors.append((level, new_level))

    if removed or skips:
        logger.debug(f"Removed {removed} empty headings, fixed {skips} skipped heading levels")

    return changes
