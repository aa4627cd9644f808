# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Form accessibility remediation strategies.

This module provides remediation strategies for form-related accessibility issues:
unlabelled form controls and required fields without validation semantics.
"""

from typing import List

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import (
    accessible_name,
    describe_element,
    humanize,
    own_text,
    text_content,
)
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

FORM_CONTROL_SELECTOR = (
    'input:not([type="hidden"]):not([type="submit"]):not([type="button"])'
    ':not([type="reset"]):not([type="image"]), select, textarea, [role="textbox"], '
    '[role="combobox"], [role="listbox"], [role="slider"], [role="spinbutton"], '
    '[role="searchbox"]'
)

NATIVE_CONTROLS = ("input", "select", "textarea")

# Preceding elements whose short text reads as a visual label
LABEL_LIKE_TAGS = ("span", "div", "p", "strong", "b")

DEFAULT_LABELS = {
    "email": "Email Address",
    "password": "Password",
    "tel": "Phone Number",
    "url": "Website URL",
    "text": "Text Input",
    "number": "Number Input",
    "search": "Search",
    "date": "Date",
    "time": "Time",
    "color": "Color Picker",
    "range": "Range Slider",
    "file": "File Upload",
    "checkbox": "Checkbox",
    "radio": "Radio Button",
}

VALIDATION_MESSAGES = {
    "email": "Please enter a valid email address.",
    "url": "Please enter a valid URL.",
    "number": "Please enter a valid number.",
}

REQUIRED_MESSAGE = "This field is required."


def _label_text(control: Tag) -> str:
    previous = control.find_previous_sibling()
    if previous is not None and previous.name in LABEL_LIKE_TAGS:
        text = text_content(previous)
        if text and len(text) < 50:
            return text

    if control.get("placeholder", "").strip():
        return control["placeholder"].strip()
    if control.get("name", "").strip():
        return humanize(control["name"])

    parent = control.parent
    if isinstance(parent, Tag):
        text = own_text(parent)
        if text:
            return text

    if control.name == "select":
        return "Select Option"
    if control.name == "textarea":
        return "Text Area"
    return DEFAULT_LABELS.get((control.get("type") or "text").lower(), "Input")


def fix_form_labels(document: Document) -> List[ChangeRecord]:
    """
    Give every unnamed form control a label.

    Native controls get a visible ``<label for>`` inserted before them;
    role-based widgets get an ``aria-label``.

    Args:
        document: The document to remediate

    Returns:
        One change record per labelled control
    """
    changes = []

    for control in document.soup.select(FORM_CONTROL_SELECTOR):
        if accessible_name(document.soup, control):
            continue

        text = _label_text(control)

        if control.name in NATIVE_CONTROLS and not control.has_attr("role"):
            if not control.get("id"):
                control["id"] = document.unique_id(f"input-{control.name}")
            label = document.new_tag("label", attrs={"for": control["id"]})
            label.string = text
            document.set_style(label, "display", "block")
            document.set_style(label, "margin-bottom", "5px")
            document.set_style(label, "font-weight", "bold")
            control.insert_before(label)
            changes.append(
                ChangeRecord(
                    element=f"Label: {describe_element(control)}",
                    action="Added visible label",
                    label=text,
                )
            )
        else:
            control["aria-label"] = text
            changes.append(
                ChangeRecord(
                    element=f"Label: {describe_element(control)}",
                    action="Added aria-label for accessibility",
                    label=text,
                )
            )

    return changes


def fix_form_validation(document: Document) -> List[ChangeRecord]:
    """
    Expose required-field semantics and an error message region per field.

    Each required field inside a form gets ``aria-required="true"`` and, unless
    it already references a description, a hidden ``aria-live`` error element
    linked through ``aria-errormessage``.

    Args:
        document: The document to remediate

    Returns:
        One change record per form with fixed fields
    """
    changes = []

    for form in document.soup.find_all("form"):
        fixed = 0
        for field in form.select("input[required], select[required], textarea[required]"):
            touched = False
            if not field.has_attr("aria-required"):
                field["aria-required"] = "true"
                touched = True

            if not field.has_attr("aria-errormessage") and not field.has_attr("aria-describedby"):
                base = field.get("id") or field.get("name") or "input"
                error_id = document.unique_id(f"error-{base}")
                message = document.new_tag(
                    "div",
                    attrs={"id": error_id, "class": "error-message", "aria-live": "assertive"},
                )
                message.string = VALIDATION_MESSAGES.get(
                    (field.get("type") or "").lower(), REQUIRED_MESSAGE
                )
                document.set_style(message, "display", "none")
                document.set_style(message, "color", "#b91c1c")
                document.set_style(message, "font-size", "0.9em")
                document.set_style(message, "margin-top", "0.25em")
                field.insert_after(message)
                field["aria-errormessage"] = error_id
                touched = True

            if touched:
                fixed += 1

        if fixed:
            changes.append(
                ChangeRecord(
                    element=describe_element(form),
                    action=f"Fixed {fixed} form validation issues",
                    details={"fixed_fields": fixed},
                )
            )

    return changes
