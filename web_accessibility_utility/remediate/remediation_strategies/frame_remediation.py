# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Frame remediation strategies.

This module gives untitled iframes and frames a descriptive title.
"""

import re
from typing import List
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import (
    describe_element,
    find_near_heading,
    text_content,
)
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)


def title_from_src(src: str, base_url: str = "") -> str:
    """
    Describe a frame by the address it embeds.

    Args:
        src: The frame's src attribute
        base_url: Page URL used to resolve relative sources

    Returns:
        E.g. ``Youtube.com Intro Video content`` for ``/embed/intro-video``, or "" when src is unusable
    """
    src = (src or "").strip()
    if not src or src.startswith(("about:", "javascript:", "data:")):
        return ""

    try:
        parsed = urlparse(urljoin(base_url, src) if base_url else src)
    except ValueError:
        return ""

    host = parsed.hostname or ""
    if host.startswith("www."):
        host = host[4:]

    parts = [part for part in parsed.path.split("/") if part]
    words = []
    if parts:
        last = re.sub(r"\.[a-z0-9]+$", "", parts[-1], flags=re.IGNORECASE)
        words = [word.capitalize() for word in re.split(r"[-_.+]+", last) if word]

    if not host and not words:
        return ""
    pieces = ([host.capitalize()] if host else []) + words
    return " ".join(pieces) + " content"


def _frame_title(document: Document, frame: Tag, index: int) -> str:
    title = title_from_src(frame.get("src", ""), document.url)
    if title:
        return title

    identifier = (frame.get("id") or frame.get("name") or "").strip()
    if identifier:
        return f"Content: {identifier}"

    heading = find_near_heading(frame)
    if heading is not None and text_content(heading):
        return f"Embedded content: {text_content(heading)}"
    return f"Embedded content for frame {index}"


def fix_inaccessible_frames(document: Document) -> List[ChangeRecord]:
    """
    Title every iframe and frame that has no title.

    Args:
        document: The document to remediate

    Returns:
        One change record per titled frame
    """
    changes = []
    for index, frame in enumerate(document.soup.find_all(["iframe", "frame"]), start=1):
        if frame.get("title", "").strip():
            continue

        title = _frame_title(document, frame, index)
        frame["title"] = title
        if not frame.get("aria-label", "").strip():
            frame["aria-label"] = title

        changes.append(
            ChangeRecord(
                element=describe_element(frame),
                action="Added title to frame",
                label=title,
            )
        )
    return changes
