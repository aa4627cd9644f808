# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Interactive element remediation strategies.

This module names links and buttons that have no discernible text and makes
keyboard focus visible.
"""

import re
from typing import List
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import (
    accessible_name,
    describe_element,
    in_hidden_region,
    text_content,
)
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

FOCUS_STYLE_ID = "a11y-focus-indicators"

FOCUS_STYLE_RULES = (
    "a:focus, button:focus, input:focus, select:focus, textarea:focus, "
    "[tabindex]:focus { outline: 3px solid #2563eb !important; "
    "outline-offset: 2px !important; }"
)

VISUALLY_HIDDEN_STYLE = (
    "position: absolute; width: 1px; height: 1px; padding: 0; margin: -1px; "
    "overflow: hidden; clip: rect(0, 0, 0, 0); white-space: nowrap; border: 0"
)

# Action name and the class/content fragments that identify its icon
ICON_PATTERNS = [
    ("Close", ["close", "dismiss", "times", "×", "✕"]),
    ("Search", ["search", "find", "lookup"]),
    ("Menu", ["menu", "navbar", "hamburger", "☰"]),
    ("Previous", ["prev", "previous", "back", "←", "◄"]),
    ("Next", ["next", "forward", "→", "►"]),
    ("Play", ["play"]),
    ("Pause", ["pause", "❚❚"]),
    ("Edit", ["edit", "modify", "pencil", "✎"]),
    ("Delete", ["delete", "remove", "trash"]),
    ("Add", ["add", "plus", "new"]),
    ("Share", ["share", "social"]),
    ("Settings", ["settings", "config", "gear", "⚙"]),
]

CONTEXT_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "label"]


def label_from_href(href: str, base_url: str = "") -> str:
    """
    Derive a readable label from a link target.

    Args:
        href: The link's href
        base_url: Page URL used to resolve relative links

    Returns:
        Title-cased last path segment, the bare hostname for root links, or ""
    """
    try:
        parsed = urlparse(urljoin(base_url, href) if base_url else href)
    except ValueError:
        return ""

    if parsed.scheme not in ("http", "https", ""):
        return ""

    parts = [part for part in parsed.path.split("/") if part]
    if parts:
        last = re.sub(r"\.[^/.]+$", "", parts[-1])
        last = re.sub(r"[-_]", " ", last)
        last = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", last)
        words = [word for word in last.lower().split() if word]
        return " ".join(word.capitalize() for word in words)

    hostname = parsed.hostname or ""
    return hostname[4:] if hostname.startswith("www.") else hostname


def _context_label(element: Tag) -> str:
    for tag_name in CONTEXT_TAGS:
        for sibling in element.find_previous_siblings(tag_name):
            text = text_content(sibling)
            if text:
                return text
    return ""


def _icon_label(element: Tag) -> str:
    classes = [c.lower() for c in element.get("class") or []]
    content = element.decode_contents().lower()
    for action, patterns in ICON_PATTERNS:
        for pattern in patterns:
            if any(pattern in c for c in classes) or pattern in content:
                return action
    return ""


def _add_hidden_text(document: Document, element: Tag, label: str) -> None:
    """Icon-only controls also get screen-reader text inside them."""
    if text_content(element):
        return
    if element.find(["i", "img", "svg"]) is None and not element.select(".icon"):
        return
    span = document.new_tag(
        "span", attrs={"class": "visually-hidden", "style": VISUALLY_HIDDEN_STYLE}
    )
    span.string = label
    element.append(span)


def fix_interactive_elements(document: Document) -> List[ChangeRecord]:
    """
    Give links and buttons without discernible text an accessible name.

    Links are named from their target path; buttons from their form role,
    icon class names or content; both fall back to nearby headings,
    paragraphs or labels, then to an ordinal.

    Args:
        document: The document to remediate

    Returns:
        One change record per element named
    """
    changes = []
    soup = document.soup

    links = soup.find_all("a", href=True)
    for index, link in enumerate(links, start=1):
        if accessible_name(soup, link):
            continue

        label = (
            label_from_href(link["href"], document.url)
            or _context_label(link)
            or f"Link {index}"
        )
        link["aria-label"] = label
        _add_hidden_text(document, link, label)
        changes.append(
            ChangeRecord(
                element=f"Link: {describe_element(link)}",
                action="Added accessible name to link",
                label=label,
            )
        )

    buttons = soup.select('button, [role="button"]')
    for index, button in enumerate(buttons, start=1):
        if accessible_name(soup, button):
            continue

        label = ""
        form = button.find_parent("form")
        button_type = (button.get("type") or "").lower()
        if form is not None:
            if button_type == "submit" or (button.name == "button" and not button_type):
                heading = form.find(["legend", "h1", "h2", "h3", "h4", "h5", "h6"])
                heading_text = text_content(heading) if heading is not None else ""
                label = f"Submit {heading_text}" if heading_text else "Submit"
            elif button_type == "reset":
                label = "Reset"

        label = label or _icon_label(button) or _context_label(button) or f"Button {index}"
        button["aria-label"] = label
        _add_hidden_text(document, button, label)
        changes.append(
            ChangeRecord(
                element=f"Button: {describe_element(button)}",
                action="Added accessible name to button",
                label=label,
            )
        )

    return changes


def fix_focus_indicators(document: Document) -> List[ChangeRecord]:
    """
    Make keyboard focus visible and reachable.

    Adds one stylesheet with a focus outline rule and removes
    ``tabindex="-1"`` from links and buttons outside hidden regions.

    Args:
        document: The document to remediate

    Returns:
        Change records (empty once the stylesheet exists and nothing is unreachable)
    """
    changes = []

    if document.soup.find("style", id=FOCUS_STYLE_ID) is None:
        style = document.new_tag("style", attrs={"id": FOCUS_STYLE_ID})
        style.string = FOCUS_STYLE_RULES
        document.head.append(style)
        changes.append(
            ChangeRecord(
                element="Focus Indicators",
                action="Added focus styles for keyboard navigation",
            )
        )

    restored = 0
    for element in document.soup.select('a[tabindex="-1"], button[tabindex="-1"]'):
        if element.get("aria-hidden") == "true" or in_hidden_region(element):
            continue
        del element["tabindex"]
        restored += 1

    if restored:
        changes.append(
            ChangeRecord(
                element="Tabindex Elements",
                action=f'Removed tabindex="-1" from {restored} elements',
                details={"count": restored},
            )
        )

    return changes
