# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Mutable document model shared by the remediation passes.

A Document wraps a BeautifulSoup tree of one page together with a snapshot of
the browser's computed styles. When captured from a live page every element is
stamped with a transient node index so style lookups survive re-parsing; the
index attribute is stripped again on serialization.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Doctype, Tag

from web_accessibility_utility.utils.color_utils import Color, parse_color
from web_accessibility_utility.utils.logging_helper import setup_logger

# Set up module-level logger
logger = setup_logger(__name__)

NODE_ATTR = "data-a11y-node"

_NODE_ATTR_PATTERN = re.compile(r'\s' + NODE_ATTR + r'="[^"]*"')

# Stamps every element with its index and returns the computed style snapshot
CAPTURE_SCRIPT = """
() => {
    const styles = {};
    let index = 0;
    for (const el of document.querySelectorAll('*')) {
        const id = String(index++);
        el.setAttribute('%s', id);
        const cs = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        styles[id] = {
            color: cs.color,
            backgroundColor: cs.backgroundColor,
            backgroundImage: cs.backgroundImage,
            fontSize: cs.fontSize,
            fontWeight: cs.fontWeight,
            display: cs.display,
            visibility: cs.visibility,
            opacity: cs.opacity,
            width: rect.width,
            height: rect.height
        };
    }
    return styles;
}
""" % NODE_ATTR

# User-agent default font sizes in px
HEADING_FONT_SIZES = {
    "h1": 32.0,
    "h2": 24.0,
    "h3": 18.72,
    "h4": 16.0,
    "h5": 13.28,
    "h6": 10.72,
}

BOLD_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6", "b", "strong", "th"}

DEFAULT_FONT_SIZE = 16.0


@dataclass
class ComputedStyle:
    """The subset of an element's computed style used by remediation."""

    color: Optional[Color]
    background_color: Optional[Color]
    background_image: Optional[str]
    font_size_px: float
    font_weight: int
    visible: bool


def parse_declarations(style: Optional[str]) -> Dict[str, str]:
    """
    Parse an inline ``style`` attribute into an ordered property map.

    Args:
        style: Contents of a ``style`` attribute

    Returns:
        Dict of lower-cased property name to raw value (``!important`` kept)
    """
    declarations = {}
    if not style:
        return declarations

    for part in style.split(";"):
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        prop = prop.strip().lower()
        if prop:
            declarations[prop] = value.strip()
    return declarations


def _strip_important(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.replace("!important", "").strip()


def parse_font_size(value: Optional[str]) -> Optional[float]:
    """Convert a CSS font size to px; relative units assume a 16px base."""
    value = _strip_important(value)
    if not value:
        return None

    match = re.match(r"^([\d.]+)\s*(px|pt|em|rem|%)?$", value.lower())
    if not match:
        return None

    number = float(match.group(1))
    unit = match.group(2) or "px"
    if unit == "pt":
        return number * 4 / 3
    if unit in ("em", "rem"):
        return number * DEFAULT_FONT_SIZE
    if unit == "%":
        return number / 100 * DEFAULT_FONT_SIZE
    return number


def parse_font_weight(value: Optional[str]) -> Optional[int]:
    value = _strip_important(value)
    if not value:
        return None

    value = value.lower()
    if value in ("bold", "bolder"):
        return 700
    if value in ("normal", "lighter"):
        return 400
    try:
        return int(float(value))
    except ValueError:
        return None


class Document:
    """
    Exclusive handle over one page's markup during a scan.

    Attributes:
        soup: The mutable BeautifulSoup tree
        url: Address the markup was loaded from
        styles: Computed style snapshot keyed by node index
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        url: str = "",
        styles: Optional[Dict[str, Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.soup = soup
        self.url = url
        self.styles = styles or {}
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self._ensure_structure()

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str = "",
        styles: Optional[Dict[str, Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "Document":
        """
        Build a document from markup.

        Args:
            html: Page markup
            url: Page URL, used for relative resolution and titles
            styles: Optional computed style snapshot keyed by node index
            headers: Optional response headers (e.g. Content-Language)

        Returns:
            A new Document
        """
        return cls(BeautifulSoup(html, "html.parser"), url, styles, headers)

    @classmethod
    async def capture(
        cls, page, url: str, headers: Optional[Dict[str, str]] = None
    ) -> "Document":
        """
        Snapshot a live page.

        Args:
            page: Playwright page (or anything exposing ``evaluate``/``content``)
            url: Page URL
            headers: Optional main-document response headers

        Returns:
            A Document whose elements carry node indexes into the style snapshot
        """
        styles = await page.evaluate(CAPTURE_SCRIPT)
        html = await page.content()
        logger.debug(f"Captured {len(styles or {})} computed styles from {url}")
        return cls.from_html(html, url, styles, headers)

    def _ensure_structure(self) -> None:
        """Guarantee html, head and body elements exist."""
        soup = self.soup
        html = soup.find("html")
        if html is None:
            html = soup.new_tag("html")
            for child in list(soup.contents):
                if isinstance(child, Doctype):
                    continue
                html.append(child.extract())
            soup.append(html)

        body = html.find("body")
        if body is None:
            body = soup.new_tag("body")
            for child in list(html.contents):
                if isinstance(child, Tag) and child.name == "head":
                    continue
                body.append(child.extract())
            html.append(body)

        if html.find("head") is None:
            html.insert(0, soup.new_tag("head"))

    @property
    def html_element(self) -> Tag:
        return self.soup.find("html")

    @property
    def head(self) -> Tag:
        return self.soup.find("head")

    @property
    def body(self) -> Tag:
        return self.soup.find("body")

    def new_tag(self, name: str, attrs: Optional[Dict[str, str]] = None) -> Tag:
        return self.soup.new_tag(name, attrs=dict(attrs or {}))

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def _snapshot(self, element: Tag) -> Dict[str, Any]:
        index = element.get(NODE_ATTR)
        if index is None:
            return {}
        return self.styles.get(index, {})

    def inline_style(self, element: Tag) -> Dict[str, str]:
        return parse_declarations(element.get("style"))

    def set_style(
        self, element: Tag, prop: str, value: str, important: bool = False
    ) -> None:
        """
        Set one inline style declaration, keeping the others in order.

        Args:
            element: Element to modify
            prop: CSS property name
            value: CSS value
            important: Whether to append ``!important``
        """
        declarations = parse_declarations(element.get("style"))
        declarations[prop.lower()] = f"{value} !important" if important else value
        element["style"] = "; ".join(f"{k}: {v}" for k, v in declarations.items())

    def _resolve_color(self, element: Tag) -> Optional[Color]:
        inline = self.inline_style(element).get("color")
        if inline:
            color = parse_color(inline)
            if color is not None:
                return color

        parent = element.parent if isinstance(element.parent, Tag) else None
        own = self._snapshot(element).get("color")
        if own:
            # Inherited values may be stale once an ancestor was recolored
            if parent is not None and self._snapshot(parent).get("color") == own:
                return self._resolve_color(parent)
            return parse_color(own)

        if parent is not None and parent.name != "[document]":
            return self._resolve_color(parent)
        return None

    def _resolve_font_size(self, element: Tag) -> float:
        size = parse_font_size(self.inline_style(element).get("font-size"))
        if size is None:
            size = parse_font_size(self._snapshot(element).get("fontSize"))
        if size is None:
            size = HEADING_FONT_SIZES.get(element.name)
        if size is None:
            parent = element.parent
            if isinstance(parent, Tag) and parent.name != "[document]":
                return self._resolve_font_size(parent)
            return DEFAULT_FONT_SIZE
        return size

    def _resolve_font_weight(self, element: Tag) -> int:
        weight = parse_font_weight(self.inline_style(element).get("font-weight"))
        if weight is None:
            weight = parse_font_weight(str(self._snapshot(element).get("fontWeight") or ""))
        if weight is None and element.name in BOLD_TAGS:
            weight = 700
        if weight is None:
            parent = element.parent
            if isinstance(parent, Tag) and parent.name != "[document]":
                return self._resolve_font_weight(parent)
            return 400
        return weight

    def background_color(self, element: Tag) -> Optional[Color]:
        """The element's own declared background color, if any."""
        inline = self.inline_style(element)
        value = inline.get("background-color")
        if value is None and "background" in inline:
            color = parse_color(inline["background"].split()[0])
            if color is not None:
                return color
        if value is None:
            value = self._snapshot(element).get("backgroundColor")
        return parse_color(value)

    def background_image(self, element: Tag) -> Optional[str]:
        """The element's background image, or None when there is none."""
        inline = self.inline_style(element)
        value = inline.get("background-image")
        if value is None and "url(" in inline.get("background", ""):
            value = inline["background"]
        if value is None:
            value = self._snapshot(element).get("backgroundImage")
        value = _strip_important(value)
        if not value or value == "none":
            return None
        return value

    def _hidden_by_itself(self, element: Tag) -> bool:
        if element.has_attr("hidden"):
            return True

        inline = self.inline_style(element)
        snapshot = self._snapshot(element)

        display = _strip_important(inline.get("display")) or snapshot.get("display")
        visibility = _strip_important(inline.get("visibility")) or snapshot.get("visibility")
        opacity = _strip_important(inline.get("opacity"))
        if opacity is None and snapshot.get("opacity") is not None:
            opacity = str(snapshot.get("opacity"))

        if display == "none" or visibility == "hidden":
            return True
        try:
            return opacity is not None and float(opacity) == 0
        except ValueError:
            return False

    def is_visible(self, element: Tag) -> bool:
        """
        Whether the element is rendered.

        Args:
            element: Element to check

        Returns:
            False when it or an ancestor is hidden by style or the ``hidden`` attribute
        """
        node = element
        while isinstance(node, Tag) and node.name != "[document]":
            if self._hidden_by_itself(node):
                return False
            node = node.parent
        return True

    def computed_style(self, element: Tag) -> ComputedStyle:
        """
        Resolve the style values remediation needs for one element.

        Inline declarations win over the captured snapshot; text color, font
        size and weight fall back to ancestors when neither defines them.

        Args:
            element: Element to inspect

        Returns:
            ComputedStyle for the element
        """
        return ComputedStyle(
            color=self._resolve_color(element),
            background_color=self.background_color(element),
            background_image=self.background_image(element),
            font_size_px=self._resolve_font_size(element),
            font_weight=self._resolve_font_weight(element),
            visible=self.is_visible(element),
        )

    def existing_ids(self) -> set:
        return {tag["id"] for tag in self.soup.find_all(id=True)}

    def unique_id(self, base: str) -> str:
        """
        Generate an id of the form ``base-N`` not present in the document.

        Args:
            base: Prefix for the new id

        Returns:
            The first free ``base-N`` with N counting from 1
        """
        ids = self.existing_ids()
        n = 1
        while f"{base}-{n}" in ids:
            n += 1
        return f"{base}-{n}"

    def to_html(self) -> str:
        """Serialize the document without transient node indexes."""
        return _NODE_ATTR_PATTERN.sub("", str(self.soup))
