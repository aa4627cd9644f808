# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
HTML Utility Functions.

This module provides BeautifulSoup helpers shared by the remediation passes:
text extraction, element descriptions, nearby-context lookups and a simplified
accessible name computation.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

HEADING_PATTERN = re.compile(r"^h[1-6]$")

FOCUSABLE_SELECTOR = (
    "a, button, input, select, textarea, [tabindex]:not([tabindex='-1']), "
    "[contenteditable='true'], [role='button'], [role='link'], [role='checkbox'], "
    "[role='radio'], [role='combobox'], [role='textbox'], [role='switch']"
)


def text_content(element: Tag) -> str:
    """Whitespace-normalized text of an element."""
    return " ".join(element.get_text(" ", strip=True).split())


def own_text(element: Tag) -> str:
    """Text held directly by the element, excluding descendants' text."""
    return " ".join(
        str(child).strip()
        for child in element.children
        if type(child) is NavigableString and str(child).strip()
    )


def describe_element(element: Tag) -> str:
    """
    Short selector-like description used in change records.

    Args:
        element: The element to describe

    Returns:
        E.g. ``a#home`` or ``div.hero.dark``
    """
    description = element.name
    if element.get("id"):
        description += f"#{element['id']}"
    classes = element.get("class") or []
    if classes:
        description += "." + ".".join(classes[:2])
    return description


def humanize(name: str) -> str:
    """Turn an identifier like ``user_email`` or ``userEmail`` into ``User Email``."""
    name = re.sub(r"([a-z])([A-Z])", r"\1 \2", name)
    words = [word for word in re.split(r"[\s_\-\.]+", name) if word]
    return " ".join(word.capitalize() for word in words)


def find_near_heading(element: Tag) -> Optional[Tag]:
    """
    Find the heading that introduces an element.

    Looks at preceding siblings, then at the preceding siblings of the parent.

    Args:
        element: Element to look around

    Returns:
        The nearest preceding heading, or None
    """
    heading = element.find_previous_sibling(HEADING_PATTERN)
    if heading is not None:
        return heading

    parent = element.parent
    if isinstance(parent, Tag) and parent.name not in ("body", "html", "[document]"):
        return parent.find_previous_sibling(HEADING_PATTERN)
    return None


def find_near_text(element: Tag, min_length: int = 2, max_length: int = 49) -> str:
    """
    Find short descriptive text near an element.

    Checks preceding siblings, then the parent's preceding siblings, then
    labels, headings and paragraphs elsewhere in the parent.

    Args:
        element: Element to look around
        min_length: Shortest acceptable text
        max_length: Longest acceptable text

    Returns:
        The first acceptable text, or an empty string
    """

    def acceptable(node: Tag) -> str:
        text = text_content(node)
        return text if min_length <= len(text) <= max_length else ""

    for sibling in element.find_previous_siblings():
        text = acceptable(sibling)
        if text:
            return text

    parent = element.parent
    if not isinstance(parent, Tag) or parent.name in ("html", "[document]"):
        return ""

    for sibling in parent.find_previous_siblings():
        text = acceptable(sibling)
        if text:
            return text

    for candidate in parent.find_all(["label", "h1", "h2", "h3", "h4", "h5", "h6", "p"]):
        if any(node is candidate for node in element.descendants):
            continue
        text = acceptable(candidate)
        if text:
            return text

    return ""


def in_hidden_region(element: Tag) -> bool:
    """True when an ancestor is ``aria-hidden`` or presentational."""
    for parent in element.parents:
        if not isinstance(parent, Tag):
            continue
        if parent.get("aria-hidden") == "true" or parent.get("role") in ("presentation", "none"):
            return True
    return False


def _text_by_ids(soup: BeautifulSoup, ids: str) -> str:
    parts = []
    for ref in ids.split():
        target = soup.find(id=ref)
        if target is not None and text_content(target):
            parts.append(text_content(target))
    return " ".join(parts)


def accessible_name(soup: BeautifulSoup, element: Tag) -> str:
    """
    Simplified accessible name of an element.

    Args:
        soup: The document containing the element
        element: Element to name

    Returns:
        The name, or an empty string when the element has none
    """
    aria_label = element.get("aria-label", "").strip()
    if aria_label:
        return aria_label

    labelledby = element.get("aria-labelledby", "").strip()
    if labelledby:
        text = _text_by_ids(soup, labelledby)
        if text:
            return text

    if element.name in ("input", "select", "textarea", "meter", "output", "progress"):
        wrapping = element.find_parent("label")
        if wrapping is not None and text_content(wrapping):
            return text_content(wrapping)
        if element.get("id"):
            for label in soup.find_all("label", attrs={"for": element["id"]}):
                if text_content(label):
                    return text_content(label)

    input_type = (element.get("type") or "").lower()
    if element.name == "input" and input_type in ("submit", "reset", "button"):
        value = element.get("value", "").strip()
        if value:
            return value
    if element.name == "input" and input_type == "image":
        alt = element.get("alt", "").strip()
        if alt:
            return alt

    if element.name in ("a", "button") or element.get("role") in ("button", "link"):
        text = text_content(element)
        if text:
            return text
        for img in element.find_all("img"):
            if img.get("alt", "").strip():
                return img["alt"].strip()
        for svg_title in element.select("svg title"):
            if text_content(svg_title):
                return text_content(svg_title)

    title = element.get("title", "").strip()
    if title:
        return title

    placeholder = element.get("placeholder", "").strip()
    if placeholder:
        return placeholder

    return ""
