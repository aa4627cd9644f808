# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
List structure remediation strategies.

This module repairs lists whose children are not list items and converts runs
of paragraphs that imitate a list with typed markers into real lists.
"""

import re
from typing import List, Optional, Tuple

from bs4 import NavigableString, Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import describe_element
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

BULLET_PATTERN = re.compile(r"^[•\-\*]\s+")
NUMBER_PATTERN = re.compile(r"^\d+[.)\]]\s+")

# Children a list may hold besides list items
ALLOWED_LIST_CHILDREN = {"li", "script", "template"}

BLOCK_TAGS = ["p", "div", "ul", "ol", "table", "section", "article"]


def _marker_family(element: Tag) -> Optional[str]:
    text = element.get_text().strip()
    if BULLET_PATTERN.match(text):
        return "bullet"
    if NUMBER_PATTERN.match(text):
        return "number"
    return None


def _strip_marker(li: Tag, family: str) -> None:
    """Remove the typed marker from the first text run of a new list item."""
    pattern = BULLET_PATTERN if family == "bullet" else NUMBER_PATTERN
    for string in li.find_all(string=True):
        if not string.strip():
            continue
        string.replace_with(NavigableString(pattern.sub("", str(string).lstrip(), count=1)))
        return


def _wrap_stray_children(document: Document) -> List[ChangeRecord]:
    changes = []
    for list_element in document.soup.find_all(["ul", "ol"]):
        stray = [
            child
            for child in list_element.find_all(recursive=False)
            if child.name not in ALLOWED_LIST_CHILDREN
        ]
        if not stray:
            continue

        for child in stray:
            child.wrap(document.new_tag("li"))

        changes.append(
            ChangeRecord(
                element=f"List: {list_element.name.upper()}",
                action=f"Fixed {len(stray)} non-list items",
                details={"list_id": list_element.get("id", "")},
            )
        )
    return changes


def _pseudo_list_runs(document: Document) -> List[Tuple[str, List[Tag]]]:
    runs = []
    current: List[Tag] = []
    current_family = None

    for element in document.soup.find_all(["p", "div"]):
        if element.find(BLOCK_TAGS) is not None:
            continue
        family = _marker_family(element)
        if family is None:
            continue

        adjacent = bool(current) and element.find_previous_sibling() is current[-1]
        if adjacent and family == current_family:
            current.append(element)
            continue

        if len(current) >= 2:
            runs.append((current_family, current))
        current = [element]
        current_family = family

    if len(current) >= 2:
        runs.append((current_family, current))
    return runs


def fix_list_structures(document: Document) -> List[ChangeRecord]:
    """
    Repair list markup.

    Non-``li`` children of ``ul``/``ol`` are wrapped in list items, and runs of
    at least two adjacent paragraphs starting with the same marker family
    (bullets ``•``, ``-``, ``*`` or numbers ``1.``, ``1)``, ``1]``) become a
    ``ul`` or ``ol``.

    Args:
        document: The document to remediate

    Returns:
        Change records for every list repaired or created
    """
    changes = _wrap_stray_children(document)

    for family, items in _pseudo_list_runs(document):
        list_type = "ol" if family == "number" else "ul"
        new_list = document.new_tag(list_type)
        items[0].insert_before(new_list)

        for item in items:
            li = document.new_tag("li")
            for child in list(item.contents):
                li.append(child.extract())
            _strip_marker(li, family)
            new_list.append(li)
            item.decompose()

        changes.append(
            ChangeRecord(
                element=f"List: {list_type.upper()}",
                action="Converted elements to proper list",
                details={"items": len(items), "marker": family, "container": describe_element(new_list.parent)},
            )
        )

    if changes:
        logger.debug(f"Applied {len(changes)} list structure fixes")
    return changes
