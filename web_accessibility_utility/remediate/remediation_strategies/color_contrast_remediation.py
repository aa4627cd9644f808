# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Color contrast remediation strategies.

This module finds text whose color does not contrast enough with its
effective background and repairs it, trying in turn: a text color searched from
pure white or black (links: from the link tint), then the background color,
and finally a black/white pair that always passes.
"""

from typing import List, Optional, Tuple

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.color_utils import (
    BLACK,
    WHITE,
    Color,
    brightness,
    contrast_ratio,
    darken,
    is_dark,
    is_transparent,
    lighten,
    parse_color,
    to_css,
)
from web_accessibility_utility.utils.html_utils import (
    HEADING_PATTERN,
    describe_element,
    in_hidden_region,
    own_text,
    text_content,
)
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

NORMAL_TEXT_RATIO = 4.5
LARGE_TEXT_RATIO = 3.0

# 18pt, and 14pt when bold
LARGE_TEXT_PX = 24.0
LARGE_BOLD_TEXT_PX = 18.66

SEARCH_STEPS = 5
STEP_AMOUNT = 20

LINK_COLOR_ON_DARK = parse_color("#4dabf7")
LINK_COLOR_ON_LIGHT = parse_color("#0056b3")

# Stand-ins for an image background, picked by the text color's brightness
DARK_IMAGE_BACKGROUND = Color(0, 0, 0, 0.8)
LIGHT_IMAGE_BACKGROUND = Color(255, 255, 255, 0.8)

LINK_FOCUS_CLASS = "a11y-focus-visible"
LINK_FOCUS_STYLE_ID = "a11y-link-focus"
LINK_FOCUS_RULE = (
    f".{LINK_FOCUS_CLASS}:focus-visible {{ outline: 2px solid #2563eb !important; "
    "outline-offset: 2px !important; }"
)

SKIPPED_TAGS = {"script", "style", "noscript", "template", "head", "title", "meta", "option"}
CONTROL_TAGS = {"button", "input", "select", "textarea"}
CONTROL_ROLES = {"button", "checkbox", "radio", "switch", "tab", "menuitem", "combobox", "textbox"}

# Screen-reader-only text is clipped out of view
VISUALLY_HIDDEN_CLASSES = {"visually-hidden", "sr-only", "screen-reader-text"}


def _is_link(element: Tag) -> bool:
    return (element.name == "a" and element.has_attr("href")) or element.get("role") == "link"


def _is_control(element: Tag) -> bool:
    return element.name in CONTROL_TAGS or element.get("role") in CONTROL_ROLES


def required_ratio(element: Tag, font_size_px: float, font_weight: int) -> float:
    """
    Minimum contrast ratio for an element's text.

    Args:
        element: Element holding the text
        font_size_px: Resolved font size
        font_weight: Resolved numeric font weight

    Returns:
        4.5 for links and normal text, 3.0 for controls and large text
    """
    if _is_link(element):
        return NORMAL_TEXT_RATIO
    if _is_control(element):
        return LARGE_TEXT_RATIO
    if font_size_px >= LARGE_TEXT_PX or (font_size_px >= LARGE_BOLD_TEXT_PX and font_weight >= 700):
        return LARGE_TEXT_RATIO
    return NORMAL_TEXT_RATIO


def effective_background(document: Document, element: Tag, text_color: Color) -> Color:
    """
    Resolve the background an element's text is painted on.

    Walks up from the element to the first opaque background color or
    background image. An image counts as near-black when the text is bright
    and near-white otherwise; with nothing found the page default is white.

    Args:
        document: The document holding the element
        element: Element whose background to resolve
        text_color: The element's text color

    Returns:
        The effective background color
    """
    node = element
    while isinstance(node, Tag) and node.name != "[document]":
        if document.background_image(node) is not None:
            if brightness(text_color) > 200:
                return DARK_IMAGE_BACKGROUND
            return LIGHT_IMAGE_BACKGROUND
        color = document.background_color(node)
        if not is_transparent(color):
            return color
        node = node.parent
    return WHITE


def _has_checkable_text(element: Tag) -> bool:
    if own_text(element):
        return True
    if element.name == "input":
        input_type = (element.get("type") or "text").lower()
        if input_type == "hidden":
            return False
        return bool(element.get("value", "").strip()) or input_type in (
            "text", "email", "search", "tel", "url", "number", "password"
        )
    if element.name in ("select", "textarea"):
        return True
    if element.name in ("a", "button") or HEADING_PATTERN.match(element.name):
        return bool(text_content(element))
    return False


def _candidates(document: Document) -> List[Tag]:
    body = document.body
    candidates = []
    for element in body.find_all(True):
        if element.name in SKIPPED_TAGS or element.find_parent(list(SKIPPED_TAGS)) is not None:
            continue
        if element.get("aria-hidden") == "true" or in_hidden_region(element):
            continue
        if VISUALLY_HIDDEN_CLASSES.intersection(element.get("class") or []):
            continue
        if not _has_checkable_text(element):
            continue
        candidates.append(element)
    return candidates


def _search(start: Color, fixed: Color, lighter: bool, ratio: float) -> Optional[Color]:
    """Step ``start`` towards white or black until it contrasts with ``fixed``.

    The first candidate is ``start`` itself.
    """
    shift = lighten if lighter else darken
    for step in range(SEARCH_STEPS):
        candidate = shift(Color(start.r, start.g, start.b), step * STEP_AMOUNT)
        if contrast_ratio(candidate, fixed) >= ratio:
            return candidate
    return None


def _fallback_pair(background: Color) -> Tuple[Color, Color]:
    """White on black for dark backgrounds, black on white otherwise."""
    return (WHITE, BLACK) if is_dark(background) else (BLACK, WHITE)


def _repair_text(
    document: Document, element: Tag, text: Color, background: Color, ratio: float
) -> Tuple[Color, Color, str]:
    dark_background = is_dark(background)

    base = WHITE if dark_background else BLACK
    new_text = _search(base, background, dark_background, ratio)
    if new_text is not None:
        document.set_style(element, "color", to_css(new_text), important=True)
        return new_text, background, "text"

    # Move the background away from the text color
    new_background = _search(background, text, is_dark(text), ratio)
    if new_background is not None:
        document.set_style(element, "background-color", to_css(new_background), important=True)
        return text, new_background, "background"

    new_text, new_background = _fallback_pair(background)
    document.set_style(element, "color", to_css(new_text), important=True)
    document.set_style(element, "background-color", to_css(new_background), important=True)
    return new_text, new_background, "fallback"


def _ensure_link_focus_style(document: Document) -> None:
    if document.soup.find("style", id=LINK_FOCUS_STYLE_ID) is not None:
        return
    style = document.new_tag("style", attrs={"id": LINK_FOCUS_STYLE_ID})
    style.string = LINK_FOCUS_RULE
    document.head.append(style)


def _repair_link(
    document: Document, element: Tag, text: Color, background: Color, ratio: float
) -> Tuple[Color, Color, str]:
    dark_background = is_dark(background)
    tint = LINK_COLOR_ON_DARK if dark_background else LINK_COLOR_ON_LIGHT

    new_text = _search(tint, background, dark_background, ratio)
    if new_text is not None:
        new_background, strategy = background, "link"
        document.set_style(element, "color", to_css(new_text), important=True)
    else:
        new_background = _search(background, text, is_dark(text), ratio)
        if new_background is not None:
            new_text, strategy = text, "background"
            document.set_style(
                element, "background-color", to_css(new_background), important=True
            )
        else:
            new_text, new_background = _fallback_pair(background)
            strategy = "fallback"
            document.set_style(element, "color", to_css(new_text), important=True)
            document.set_style(
                element, "background-color", to_css(new_background), important=True
            )
            document.set_style(element, "padding", "2px 4px")

    document.set_style(element, "text-decoration", "underline", important=True)
    classes = element.get("class") or []
    if LINK_FOCUS_CLASS not in classes:
        element["class"] = classes + [LINK_FOCUS_CLASS]
    _ensure_link_focus_style(document)
    return new_text, new_background, strategy


def fix_color_contrast(document: Document) -> List[ChangeRecord]:
    """
    Repair text that fails its required contrast ratio.

    Elements are visited in document order so that an ancestor's repair is
    visible to the descendants that inherit from it.

    Args:
        document: The document to remediate

    Returns:
        One change record per repaired element with the before and after ratios
    """
    changes = []

    for element in _candidates(document):
        style = document.computed_style(element)
        if not style.visible:
            continue

        text = style.color or BLACK
        if text.a == 0:
            continue
        background = effective_background(document, element, text)
        ratio = required_ratio(element, style.font_size_px, style.font_weight)

        old_contrast = contrast_ratio(text, background)
        if old_contrast >= ratio:
            continue

        if _is_link(element):
            new_text, new_background, strategy = _repair_link(
                document, element, text, background, ratio
            )
            action = "Fixed link color contrast"
        else:
            new_text, new_background, strategy = _repair_text(
                document, element, text, background, ratio
            )
            action = "Fixed color contrast"

        new_contrast = contrast_ratio(new_text, new_background)
        changes.append(
            ChangeRecord(
                element=describe_element(element),
                action=action,
                old_contrast=round(old_contrast, 2),
                new_contrast=round(new_contrast, 2),
                details={
                    "strategy": strategy,
                    "required": ratio,
                    "old_color": to_css(Color(text.r, text.g, text.b)),
                    "new_color": to_css(Color(new_text.r, new_text.g, new_text.b)),
                    "background": to_css(Color(new_background.r, new_background.g, new_background.b)),
                },
            )
        )

    if changes:
        logger.debug(f"Repaired contrast on {len(changes)} elements")
    return changes
