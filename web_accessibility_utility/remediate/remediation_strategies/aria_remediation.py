# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
ARIA remediation strategies.

This module repairs ARIA usage: unknown or disallowed roles, roles missing
their required parent or child roles, roles missing required states, unnamed
dialogs and icon buttons, and focusable content hidden from assistive
technology.
"""

from typing import Dict, List, Optional

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import (
    FOCUSABLE_SELECTOR,
    describe_element,
    find_near_text,
    text_content,
)
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

ARIA_ROLES = {
    "alert", "alertdialog", "application", "article", "banner", "button", "cell",
    "checkbox", "columnheader", "combobox", "complementary", "contentinfo",
    "definition", "dialog", "directory", "document", "feed", "figure", "form",
    "grid", "gridcell", "group", "heading", "img", "link", "list", "listbox",
    "listitem", "log", "main", "marquee", "math", "menu", "menubar", "menuitem",
    "menuitemcheckbox", "menuitemradio", "navigation", "none", "note", "option",
    "presentation", "progressbar", "radio", "radiogroup", "region", "row",
    "rowgroup", "rowheader", "scrollbar", "search", "searchbox", "separator",
    "slider", "spinbutton", "status", "switch", "tab", "table", "tablist",
    "tabpanel", "term", "textbox", "timer", "toolbar", "tooltip", "tree",
    "treegrid", "treeitem",
}

# Roles an element may take on explicitly; tags not listed accept any role
ALLOWED_ROLES: Dict[str, List[str]] = {
    "a": ["button", "checkbox", "link", "menuitem", "menuitemcheckbox", "menuitemradio",
          "option", "radio", "switch", "tab", "treeitem"],
    "article": ["application", "document", "feed", "main", "region"],
    "aside": ["note", "complementary", "search", "region"],
    "button": ["checkbox", "link", "menuitem", "menuitemcheckbox", "menuitemradio",
               "option", "radio", "switch", "tab"],
    "footer": ["contentinfo", "region"],
    "form": ["search", "region"],
    "h1": ["tab", "none", "presentation"],
    "h2": ["tab", "none", "presentation"],
    "h3": ["tab", "none", "presentation"],
    "h4": ["tab", "none", "presentation"],
    "h5": ["tab", "none", "presentation"],
    "h6": ["tab", "none", "presentation"],
    "header": ["banner", "region"],
    "img": ["button", "checkbox", "link", "menuitem", "menuitemcheckbox", "menuitemradio",
            "option", "radio", "scrollbar", "separator", "slider", "switch", "tab",
            "treeitem", "none", "presentation"],
    "li": ["menuitem", "menuitemcheckbox", "menuitemradio", "option", "none",
           "presentation", "radio", "separator", "tab", "treeitem"],
    "main": ["none", "presentation"],
    "menu": ["listbox", "menu", "menubar", "radiogroup", "tablist", "toolbar", "tree"],
    "nav": ["navigation", "region"],
    "ol": ["directory", "group", "listbox", "menu", "menubar", "radiogroup", "tablist",
           "toolbar", "tree", "presentation", "none"],
    "section": ["alert", "alertdialog", "application", "banner", "complementary",
                "contentinfo", "dialog", "document", "feed", "log", "main", "marquee",
                "navigation", "region", "search", "status", "tabpanel"],
    "select": ["menu"],
    "table": ["grid", "none", "presentation"],
    "tbody": ["rowgroup", "none", "presentation"],
    "td": ["cell", "gridcell", "columnheader", "rowheader", "none", "presentation"],
    "th": ["columnheader", "rowheader", "none", "presentation"],
    "tr": ["row", "none", "presentation"],
    "ul": ["directory", "group", "listbox", "menu", "menubar", "radiogroup", "tablist",
           "toolbar", "tree", "presentation", "none"],
}

INPUT_ALLOWED_ROLES: Dict[str, List[str]] = {
    "button": ["link", "menuitem", "menuitemcheckbox", "menuitemradio", "radio", "switch", "tab"],
    "checkbox": ["button", "menuitemcheckbox", "option", "switch"],
    "image": ["link", "menuitem", "menuitemcheckbox", "menuitemradio", "radio", "switch"],
    "radio": ["menuitemradio"],
    "text": ["combobox", "searchbox", "spinbutton"],
}

# Elements that must not carry any role
NO_ROLE_TAGS = {"html", "head", "meta", "script", "style", "title", "base", "link",
                "br", "col", "colgroup", "template", "source", "track", "param"}

IMPLICIT_ROLES = {
    "article": "article",
    "aside": "complementary",
    "button": "button",
    "dialog": "dialog",
    "footer": "contentinfo",
    "form": "form",
    "h1": "heading", "h2": "heading", "h3": "heading",
    "h4": "heading", "h5": "heading", "h6": "heading",
    "header": "banner",
    "hr": "separator",
    "img": "img",
    "li": "listitem",
    "main": "main",
    "menu": "list",
    "nav": "navigation",
    "ol": "list",
    "option": "option",
    "progress": "progressbar",
    "section": "region",
    "table": "table",
    "tbody": "rowgroup",
    "tfoot": "rowgroup",
    "thead": "rowgroup",
    "td": "cell",
    "th": "columnheader",
    "textarea": "textbox",
    "tr": "row",
    "ul": "list",
}

INPUT_IMPLICIT_ROLES = {
    "button": "button",
    "checkbox": "checkbox",
    "email": "textbox",
    "image": "button",
    "number": "spinbutton",
    "radio": "radio",
    "range": "slider",
    "reset": "button",
    "search": "searchbox",
    "submit": "button",
    "tel": "textbox",
    "text": "textbox",
    "url": "textbox",
}

# Role and the parent roles it needs
REQUIRED_PARENTS = {
    "listitem": ["list"],
    "option": ["listbox"],
    "menuitem": ["menu", "menubar"],
    "menuitemcheckbox": ["menu", "menubar"],
    "menuitemradio": ["menu", "menubar"],
    "tab": ["tablist"],
    "treeitem": ["tree"],
    "row": ["grid", "rowgroup", "table", "treegrid"],
    "gridcell": ["row"],
    "columnheader": ["row"],
    "rowheader": ["row"],
}

# Role and the child roles it needs
REQUIRED_CHILDREN = {
    "list": ["listitem"],
    "listbox": ["option"],
    "menu": ["menuitem", "menuitemcheckbox", "menuitemradio"],
    "menubar": ["menuitem", "menuitemcheckbox", "menuitemradio"],
    "tablist": ["tab"],
    "tree": ["treeitem"],
    "grid": ["row"],
    "table": ["row"],
    "treegrid": ["row"],
    "rowgroup": ["row"],
}

REQUIRED_ATTRIBUTES = {
    "combobox": ["aria-expanded", "aria-controls"],
    "slider": ["aria-valuemin", "aria-valuemax", "aria-valuenow"],
    "progressbar": ["aria-valuemin", "aria-valuemax", "aria-valuenow"],
    "scrollbar": ["aria-controls", "aria-valuemin", "aria-valuemax", "aria-valuenow"],
    "spinbutton": ["aria-valuemin", "aria-valuemax", "aria-valuenow"],
    "checkbox": ["aria-checked"],
    "radio": ["aria-checked"],
    "switch": ["aria-checked"],
    "textbox": ["aria-multiline"],
    "listbox": ["aria-multiselectable"],
    "grid": ["aria-multiselectable", "aria-readonly"],
    "tablist": ["aria-multiselectable"],
}

ATTRIBUTE_DEFAULTS = {
    "aria-expanded": "false",
    "aria-checked": "false",
    "aria-valuemin": "0",
    "aria-valuemax": "100",
    "aria-valuenow": "50",
}

INTERACTIVE_ROLES = {
    "button", "link", "menuitem", "tab", "radio", "checkbox", "menuitemcheckbox",
    "combobox", "textbox", "searchbox", "spinbutton", "slider", "switch",
}

HANDLER_ATTRIBUTES = ("onclick", "onfocus", "onkeydown", "onkeyup", "onkeypress")

ICON_BUTTON_LABELS = [
    ("Close", ("close", "dismiss")),
    ("Submit", ("submit", "send")),
    ("Cancel", ("cancel",)),
    ("Menu", ("menu",)),
    ("Search", ("search",)),
]


def _explicit_role(element: Tag) -> Optional[str]:
    role = (element.get("role") or "").strip().split()
    return role[0].lower() if role else None


def implicit_role(element: Tag) -> Optional[str]:
    """The role an element has without a role attribute, if any."""
    if element.name == "input":
        return INPUT_IMPLICIT_ROLES.get((element.get("type") or "text").lower())
    if element.name == "a":
        return "link" if element.has_attr("href") else None
    if element.name == "select":
        return "listbox" if element.has_attr("multiple") else "combobox"
    return IMPLICIT_ROLES.get(element.name)


def effective_role(element: Tag) -> Optional[str]:
    return _explicit_role(element) or implicit_role(element)


def role_allowed(element: Tag, role: str) -> bool:
    """
    Whether an element may carry the given role.

    The element's own implicit role is always allowed; tags without a
    restriction entry accept any role.
    """
    if element.name in NO_ROLE_TAGS:
        return False
    if implicit_role(element) == role:
        return True
    if element.name == "input":
        input_type = (element.get("type") or "text").lower()
        return role in INPUT_ALLOWED_ROLES.get(input_type, [])
    if element.name in ALLOWED_ROLES:
        return role in ALLOWED_ROLES[element.name]
    return True


def _has_native_parent(element: Tag, role: str) -> bool:
    if role == "listitem":
        return element.find_parent(["ul", "ol", "menu"]) is not None
    if role == "option":
        return element.find_parent(["select", "datalist"]) is not None
    if role == "row":
        return element.find_parent(["table", "thead", "tbody", "tfoot"]) is not None
    if role in ("gridcell", "columnheader", "rowheader"):
        return element.find_parent("tr") is not None
    return False


def _fix_required_parent(element: Tag, role: str) -> List[ChangeRecord]:
    parents = REQUIRED_PARENTS[role]
    if element.find_parent(lambda tag: _explicit_role(tag) in parents) is not None:
        return []
    if _has_native_parent(element, role):
        return []

    for ancestor in element.parents:
        if not isinstance(ancestor, Tag) or ancestor.name in ("body", "html", "[document]"):
            break
        if ancestor.has_attr("role"):
            continue
        if role_allowed(ancestor, parents[0]):
            ancestor["role"] = parents[0]
            return [
                ChangeRecord(
                    element=describe_element(ancestor),
                    action=f"Added necessary parent role ({parents[0]}) for {role}",
                    details={"role": parents[0]},
                )
            ]

    del element["role"]
    return [
        ChangeRecord(
            element=describe_element(element),
            action=f"Removed role ({role}) that requires parent role",
            details={"role": role},
        )
    ]


def _fix_required_children(element: Tag, role: str) -> List[ChangeRecord]:
    needed = REQUIRED_CHILDREN[role]
    if "row" in needed and element.find(lambda tag: effective_role(tag) == "row") is not None:
        return []

    children = element.find_all(recursive=False)
    if not children or any(effective_role(child) in needed for child in children):
        return []

    for child in children:
        if child.has_attr("role"):
            continue
        if role_allowed(child, needed[0]):
            child["role"] = needed[0]
            return [
                ChangeRecord(
                    element=describe_element(child),
                    action=f"Added necessary child role ({needed[0]}) for {role}",
                    details={"role": needed[0]},
                )
            ]
    return []


def _fix_roles(document: Document) -> List[ChangeRecord]:
    changes = []

    for element in document.soup.find_all(attrs={"role": True}):
        role = _explicit_role(element)
        if role is None:
            continue

        if role not in ARIA_ROLES:
            del element["role"]
            changes.append(
                ChangeRecord(
                    element=describe_element(element),
                    action="Removed invalid ARIA role",
                    details={"invalid_role": role},
                )
            )
            continue

        if not role_allowed(element, role):
            del element["role"]
            changes.append(
                ChangeRecord(
                    element=describe_element(element),
                    action="Removed inappropriate ARIA role",
                    details={"invalid_role": role},
                )
            )
            continue

        if role in REQUIRED_PARENTS:
            changes.extend(_fix_required_parent(element, role))

    # Parents synthesized above may themselves need children
    for element in document.soup.find_all(attrs={"role": True}):
        role = _explicit_role(element)
        if role in REQUIRED_CHILDREN:
            changes.extend(_fix_required_children(element, role))

    return changes


def _fix_dialogs(document: Document) -> List[ChangeRecord]:
    changes = []
    for dialog in document.soup.find_all(
        lambda tag: _explicit_role(tag) in ("dialog", "alertdialog")
    ):
        if dialog.get("aria-label", "").strip() or dialog.get("aria-labelledby", "").strip():
            continue

        role = _explicit_role(dialog)
        heading = dialog.find(["h1", "h2", "h3", "h4", "h5", "h6"])
        if heading is not None and text_content(heading):
            if not heading.get("id"):
                heading["id"] = document.unique_id("dialog-title")
            dialog["aria-labelledby"] = heading["id"]
            changes.append(
                ChangeRecord(
                    element=describe_element(dialog),
                    action=f"Added aria-labelledby to role {role}",
                    details={"role": role},
                )
            )
            continue

        first_text = dialog.find(["p", "div"])
        if first_text is not None and text_content(first_text):
            text = text_content(first_text)
            label = text[:50] + ("..." if len(text) > 50 else "")
        else:
            label = find_near_text(dialog) or ("Dialog" if role == "dialog" else "Alert Dialog")

        dialog["aria-label"] = label
        changes.append(
            ChangeRecord(
                element=describe_element(dialog),
                action=f"Added aria-label to role {role}: {label}",
                label=label,
                details={"role": role},
            )
        )
    return changes


def _fix_empty_icon_buttons(document: Document) -> List[ChangeRecord]:
    changes = []
    for button in document.soup.select('button[role="button"], a[role="button"]'):
        if (
            text_content(button)
            or button.get("aria-label", "").strip()
            or button.get("aria-labelledby", "").strip()
        ):
            continue
        if button.find(["svg", "img", "i"]) is None and not button.select("span.icon"):
            continue

        classes = [c.lower() for c in button.get("class") or []]
        label = ""
        for candidate, fragments in ICON_BUTTON_LABELS:
            if any(fragment in c for c in classes for fragment in fragments):
                label = candidate
                break
        label = label or find_near_text(button) or "Button"

        button["aria-label"] = label
        changes.append(
            ChangeRecord(
                element=describe_element(button),
                action=f"Added aria-label to empty button ({label})",
                label=label,
            )
        )
    return changes


def _fix_required_attributes(document: Document) -> List[ChangeRecord]:
    changes = []
    for role, required in REQUIRED_ATTRIBUTES.items():
        for element in document.soup.find_all(lambda tag: _explicit_role(tag) == role):
            added = []
            for attr in required:
                if element.has_attr(attr):
                    continue
                # Native checkboxes and radios expose their checked state themselves
                if attr == "aria-checked" and element.name == "input" and (
                    element.get("type") or ""
                ).lower() in ("checkbox", "radio"):
                    continue
                if attr == "aria-controls":
                    target = element.find_next_sibling()
                    if target is None:
                        continue
                    if not target.get("id"):
                        target["id"] = document.unique_id(f"{role}-content")
                    element[attr] = target["id"]
                elif attr == "aria-multiline":
                    element[attr] = "true" if element.name == "textarea" else "false"
                else:
                    element[attr] = ATTRIBUTE_DEFAULTS.get(attr, "false")
                added.append(attr)

            if added:
                changes.append(
                    ChangeRecord(
                        element=describe_element(element),
                        action=f"Added missing required ARIA attributes for role {role}: {', '.join(added)}",
                        details={"role": role, "missing_attributes": added},
                    )
                )
    return changes


def _neutralize(element: Tag) -> None:
    element["tabindex"] = "-1"
    element["aria-hidden"] = "true"
    for attr in HANDLER_ATTRIBUTES + ("contenteditable",):
        if element.has_attr(attr):
            del element[attr]
    if element.name in ("input", "select", "textarea") and (
        element.get("type") or ""
    ).lower() != "hidden":
        element["readonly"] = "readonly"
        element["disabled"] = "disabled"
    if _explicit_role(element) in INTERACTIVE_ROLES:
        del element["role"]


def _is_natively_focusable(element: Tag) -> bool:
    if element.name == "a":
        return element.has_attr("href")
    return element.name in ("button", "input", "select", "textarea")


def _fix_hidden_focusables(document: Document) -> List[ChangeRecord]:
    changes = []

    for container in document.soup.find_all(attrs={"aria-hidden": "true"}):
        focusable = [
            el
            for el in container.select(FOCUSABLE_SELECTOR)
            if not (el.get("tabindex") == "-1" and el.get("aria-hidden") == "true")
        ]
        if not focusable:
            continue
        for element in focusable:
            _neutralize(element)
        document.set_style(container, "pointer-events", "none")
        changes.append(
            ChangeRecord(
                element=describe_element(container),
                action=f"Fixed {len(focusable)} focusable elements inside presentational element",
                details={"count": len(focusable)},
            )
        )

    # A presentational role is ignored on focusable elements, so drop it
    for element in document.soup.find_all(attrs={"role": ["presentation", "none"]}):
        tabindex = element.get("tabindex")
        focusable = (
            _is_natively_focusable(element)
            or (tabindex is not None and tabindex.strip() != "-1")
        )
        if focusable and element.get("aria-hidden") != "true":
            role = element["role"]
            del element["role"]
            changes.append(
                ChangeRecord(
                    element=describe_element(element),
                    action=f"Removed conflicting {role} role from focusable element",
                )
            )

    return changes


def fix_aria_elements(document: Document) -> List[ChangeRecord]:
    """
    Repair ARIA roles, states and names.

    Args:
        document: The document to remediate

    Returns:
        Change records for every ARIA repair
    """
    changes = []
    changes.extend(_fix_roles(document))
    changes.extend(_fix_dialogs(document))
    changes.extend(_fix_empty_icon_buttons(document))
    changes.extend(_fix_required_attributes(document))
    changes.extend(_fix_hidden_focusables(document))

    if changes:
        logger.debug(f"Applied {len(changes)} ARIA fixes")
    return changes
