# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Document structure remediation strategies.

This module provides remediation for page-level metadata: the document
language, the document title and the viewport zoom settings.
"""

import re
from typing import List
from urllib.parse import urlparse

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import text_content
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)


def site_name(url: str) -> str:
    """
    Capitalized hostname of a URL without a leading ``www.``.

    Args:
        url: Page URL

    Returns:
        E.g. ``Example.com``, or an empty string when the URL has no host
    """
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname[:1].upper() + hostname[1:]


def fix_language_attribute(document: Document) -> List[ChangeRecord]:
    """
    Add a ``lang`` attribute to the root element when missing.

    The language comes from the Content-Language response header, then a
    language meta tag, and defaults to ``en``.

    Args:
        document: The document to remediate

    Returns:
        Change records (empty when the root already declares a language)
    """
    html = document.html_element
    if html.get("lang", "").strip():
        return []

    lang = None
    header = document.headers.get("content-language")
    if header:
        lang = header.split(",")[0].strip()

    if not lang:
        meta = document.soup.find(
            "meta",
            attrs={"http-equiv": re.compile("^content-language$", re.I)},
        ) or document.soup.find("meta", attrs={"name": re.compile("^language$", re.I)})
        if meta and meta.get("content", "").strip():
            lang = meta["content"].split(",")[0].strip()

    lang = lang or "en"
    html["lang"] = lang
    logger.debug(f"Set document language to {lang}")

    return [
        ChangeRecord(
            element="html",
            action=f"Added language attribute: {lang}",
            text=lang,
        )
    ]


def fix_document_title(document: Document) -> List[ChangeRecord]:
    """
    Ensure the document has a non-empty title.

    Args:
        document: The document to remediate

    Returns:
        Change records (empty when a title is already present)
    """
    title = document.head.find("title") or document.soup.find("title")
    if title is not None and text_content(title):
        return []

    h1 = document.soup.find("h1")
    if h1 is not None and text_content(h1):
        new_title = text_content(h1)
    else:
        new_title = site_name(document.url) or "Web Page"

    if title is None:
        title = document.new_tag("title")
        document.head.append(title)
    title.string = new_title

    return [
        ChangeRecord(
            element="title",
            action=f"Set document title to: {new_title}",
            text=new_title,
        )
    ]


def fix_zoom_and_scale(document: Document) -> List[ChangeRecord]:
    """
    Re-enable user zoom in the viewport meta tag.

    ``user-scalable=no`` becomes ``yes`` (appended when absent), a
    ``maximum-scale`` below 2 becomes 5.0 and a ``minimum-scale`` above 1
    becomes 1.0.

    Args:
        document: The document to remediate

    Returns:
        Change records (empty when zoom is already unrestricted)
    """
    meta = document.soup.find("meta", attrs={"name": re.compile("^viewport$", re.I)})
    if meta is None:
        return []

    content = meta.get("content", "")
    new_content = content

    if re.search(r"user-scalable\s*=", content, re.I):
        new_content = re.sub(
            r"user-scalable\s*=\s*(no|0)\b", "user-scalable=yes", new_content, flags=re.I
        )
    else:
        new_content = f"{new_content}, user-scalable=yes" if new_content.strip() else "user-scalable=yes"

    match = re.search(r"maximum-scale\s*=\s*([0-9]*\.?[0-9]+)", new_content, re.I)
    if match and float(match.group(1)) < 2:
        new_content = new_content.replace(match.group(0), "maximum-scale=5.0")

    match = re.search(r"minimum-scale\s*=\s*([0-9]*\.?[0-9]+)", new_content, re.I)
    if match and float(match.group(1)) > 1:
        new_content = new_content.replace(match.group(0), "minimum-scale=1.0")

    if new_content == content:
        return []

    meta["content"] = new_content
    return [
        ChangeRecord(
            element="meta[name=viewport]",
            action="Enabled zooming and scaling in viewport meta tag",
            details={"old_content": content, "new_content": new_content},
        )
    ]
