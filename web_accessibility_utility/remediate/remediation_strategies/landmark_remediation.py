# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Landmark remediation strategies.

This module makes sure a page exposes exactly one main region, keeps
complementary regions at the top level, adds banner/contentinfo/navigation
roles to obvious containers, and labels repeated landmarks so each one can be
told apart.
"""

from typing import Dict, List, Optional

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.remediate.remediation_strategies.aria_remediation import role_allowed
from web_accessibility_utility.utils.html_utils import describe_element, text_content
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

MAIN_SELECTOR = 'main, [role="main"]'

# Containers whose class or id marks them as the main content
MAIN_HINT_SELECTOR = "article, .content, #content, #main, .main"

LANDMARK_TAGS = ["main", "header", "footer", "nav", "aside"]
LANDMARK_ROLES = ["main", "banner", "contentinfo", "navigation", "complementary"]

# Landmark role and the element that carries it implicitly
LANDMARK_ELEMENTS = {
    "banner": "header",
    "contentinfo": "footer",
    "navigation": "nav",
    "complementary": "aside",
    "main": "main",
    "search": None,
    "region": None,
    "form": None,
}

ROLE_HINTS = {
    "banner": (".header, #header, .site-header", 'header, [role="banner"]'),
    "contentinfo": (".footer, #footer, .site-footer", 'footer, [role="contentinfo"]'),
    "navigation": (
        ".nav, #nav, .menu, #menu, .navigation, #navigation",
        'nav, [role="navigation"]',
    ),
}


def _ensure_level_one_heading(document: Document) -> List[ChangeRecord]:
    if document.soup.find("h1") is not None:
        return []

    source = document.soup.select_one('title, meta[property="og:title"], meta[name="title"]')
    text = ""
    if source is not None:
        text = (source.get("content") or text_content(source)).strip()
    text = text or "Web Page"

    h1 = document.new_tag("h1")
    h1.string = text
    container = document.soup.select_one(
        'main, [role="main"], article, .content, #content'
    ) or document.body
    container.insert(0, h1)

    return [
        ChangeRecord(element="H1", action="Added missing level-one heading", text=text)
    ]


def _eligible_for_main(block: Tag) -> bool:
    """A block outside every landmark that holds no landmark itself."""
    if block.has_attr("role") or block.name in LANDMARK_TAGS:
        return False
    if block.find_parent(LANDMARK_TAGS) is not None:
        return False
    if block.find_parent(attrs={"role": LANDMARK_ROLES}) is not None:
        return False
    return (
        block.find(LANDMARK_TAGS) is None
        and block.find(attrs={"role": LANDMARK_ROLES}) is None
    )


def _qualifies_as_main(block: Tag) -> bool:
    return _eligible_for_main(block) and (
        len(text_content(block)) > 100
        or len(block.find_all(["p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "table"])) >= 2
    )


def _wrap_in_main(document: Document, block: Tag) -> Tag:
    main = document.new_tag("main")
    block.wrap(main)
    return main


def _top_level(document: Document, element: Tag) -> Tag:
    """The ancestor of ``element`` (or itself) that is a direct child of body."""
    body = document.body
    node = element
    while node.parent is not None and node.parent is not body:
        node = node.parent
    return node


def _fix_missing_main(document: Document) -> List[ChangeRecord]:
    soup = document.soup

    hints = [hint for hint in soup.select(MAIN_HINT_SELECTOR) if _eligible_for_main(hint)]
    hint_ids = {id(hint) for hint in hints}

    # Document order, each block once
    ordered = [
        block
        for block in soup.find_all(["div", "section", "article"])
        if id(block) in hint_ids or _qualifies_as_main(block)
    ]
    ordered_ids = {id(block) for block in ordered}
    ordered.extend(hint for hint in hints if id(hint) not in ordered_ids)

    if ordered:
        best = min(
            enumerate(ordered),
            key=lambda item: (
                -len(text_content(item[1])),
                id(item[1]) not in hint_ids,
                item[0],
            ),
        )[1]
        _wrap_in_main(document, best)
        return [
            ChangeRecord(
                element="Main",
                action="Added main landmark to largest content block",
                text=text_content(best)[:50],
                details={"wrapped": describe_element(best)},
            )
        ]

    body = document.body
    main = document.new_tag("main")
    header = soup.select_one('header, [role="banner"]')
    movable = [
        child
        for child in body.find_all(recursive=False)
        if child.name not in ("header", "footer", "nav", "aside", "main", "script", "noscript", "template")
        and not child.has_attr("role")
    ]

    if header is not None and header.parent is body:
        header.insert_after(main)
    else:
        body.insert(0, main)

    for child in movable:
        main.append(child.extract())

    return [
        ChangeRecord(
            element="Main",
            action="Created main landmark albeit with no content",
            details={"moved": len(movable)},
        )
    ]


def _fix_duplicate_mains(document: Document, mains: List[Tag]) -> List[ChangeRecord]:
    explicit = [m for m in mains if m.name == "main"]
    if explicit:
        keeper = explicit[0]
    else:
        keeper = max(
            enumerate(mains), key=lambda item: (len(text_content(item[1])), -item[0])
        )[1]

    changes = []
    for main in mains:
        if main is keeper:
            continue
        element = describe_element(main)
        if main.get("role") == "main":
            del main["role"]
        if main.name == "main":
            main.name = "div"
        changes.append(ChangeRecord(element=element, action="Removed duplicate main landmark"))
    return changes


def _fix_complementary(document: Document) -> List[ChangeRecord]:
    changes = []
    body = document.body

    asides = [
        el
        for el in document.soup.select('aside, [role="complementary"]')
        if _landmark_role(el) == "complementary"
    ]
    for aside in asides:
        container = aside.find_parent(
            lambda tag: tag.name in ("main", "article", "nav")
            or tag.get("role") in ("main", "navigation")
            or (tag.name == "section" and tag.has_attr("role"))
        )
        if container is None:
            continue

        main = document.soup.select_one(MAIN_SELECTOR)
        aside.extract()
        if main is not None:
            _top_level(document, main).insert_after(aside)
        else:
            footer = document.soup.select_one('footer, [role="contentinfo"]')
            if footer is not None and footer.parent is body:
                footer.insert_before(aside)
            else:
                body.append(aside)

        if aside.name != "aside":
            aside["role"] = "complementary"

        changes.append(
            ChangeRecord(
                element=describe_element(aside),
                action="Moved complementary landmark to appropriate location",
            )
        )
    return changes


def _fix_role_hints(document: Document) -> List[ChangeRecord]:
    changes = []
    for role, (hint_selector, existing_selector) in ROLE_HINTS.items():
        if document.soup.select_one(existing_selector) is not None:
            continue
        candidate = next(
            (
                el
                for el in document.soup.select(hint_selector)
                if not el.has_attr("role") and role_allowed(el, role)
            ),
            None,
        )
        if candidate is None:
            continue
        candidate["role"] = role
        changes.append(
            ChangeRecord(
                element=describe_element(candidate),
                action=f"Added {role} role to {candidate.name} element",
                details={"role": role},
            )
        )
    return changes


def _landmark_role(element: Tag) -> Optional[str]:
    role = element.get("role")
    if role in LANDMARK_ELEMENTS:
        return role
    if role:
        return None
    for landmark, tag_name in LANDMARK_ELEMENTS.items():
        if tag_name == element.name:
            return landmark
    return None


def _fix_duplicate_landmarks(document: Document) -> List[ChangeRecord]:
    groups: Dict[str, List[Tag]] = {}
    for element in document.soup.find_all(True):
        role = _landmark_role(element)
        if role is None:
            continue
        # Header and footer inside sectioning content are not page landmarks
        if element.find_parent(["article", "section"]) is not None:
            continue
        groups.setdefault(role, []).append(element)

    changes = []
    for role, elements in groups.items():
        unlabeled = [
            el
            for el in elements
            if not el.get("aria-label")
            and not el.get("aria-labelledby")
            and not el.get("title")
        ]
        if len(elements) < 2 or len(unlabeled) < 2:
            continue

        for ordinal, element in enumerate(unlabeled[1:], start=2):
            label = f"{role.capitalize()} {ordinal}"
            element["aria-label"] = label
            changes.append(
                ChangeRecord(
                    element=describe_element(element),
                    action=f"Added aria-label to duplicate landmark ({role})",
                    label=label,
                )
            )
    return changes


def fix_landmarks(document: Document) -> List[ChangeRecord]:
    """
    Normalize page landmarks.

    Args:
        document: The document to remediate

    Returns:
        Change records for every landmark added, removed, moved or labelled
    """
    changes = _ensure_level_one_heading(document)

    mains = document.soup.select(MAIN_SELECTOR)
    if not mains:
        changes.extend(_fix_missing_main(document))
    elif len(mains) > 1:
        changes.extend(_fix_duplicate_mains(document, mains))

    changes.extend(_fix_complementary(document))
    changes.extend(_fix_role_hints(document))
    changes.extend(_fix_duplicate_landmarks(document))

    if changes:
        logger.debug(f"Applied {len(changes)} landmark fixes")
    return changes
