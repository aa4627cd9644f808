# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Duplicate id remediation strategies.

This module renames repeated element ids so every id in the document is unique,
retargeting the label and ARIA references that belong to a renamed element.
"""

from collections import OrderedDict
from typing import Dict, List

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)

# Attributes holding space separated id references
IDREF_ATTRIBUTES = ("aria-labelledby", "aria-describedby", "aria-controls", "aria-owns")

LABELABLE_TAGS = {"input", "select", "textarea", "button", "meter", "output", "progress"}


def _owner(
    reference: Tag, candidates: List[Tag], positions: Dict[int, int], is_label: bool
) -> Tag:
    """
    Pick which of several same-id elements a reference points at.

    A label wrapping one of them wins. Otherwise labels prefer form controls,
    then an element sharing the reference's form, then the nearest element in
    document order.
    """
    if is_label:
        for candidate in candidates:
            if any(node is candidate for node in reference.descendants):
                return candidate
        labelable = [c for c in candidates if c.name in LABELABLE_TAGS]
        if labelable:
            candidates = labelable

    scope = reference.find_parent("form")
    if scope is not None:
        same_form = [c for c in candidates if c.find_parent("form") is scope]
        if same_form:
            candidates = same_form

    # Equal distances go to the element after the reference
    where = positions.get(id(reference), 0)
    return min(
        candidates,
        key=lambda c: (abs(positions.get(id(c), 0) - where), positions.get(id(c), 0) < where),
    )


def fix_duplicate_ids(document: Document) -> List[ChangeRecord]:
    """
    Rename every repeated id after its first occurrence.

    Args:
        document: The document to remediate

    Returns:
        One change record per renamed element
    """
    changes = []

    by_id = OrderedDict()
    positions = {}
    for position, element in enumerate(document.soup.find_all(True)):
        positions[id(element)] = position
        if element.has_attr("id"):
            by_id.setdefault(element["id"], []).append(element)

    for old_id, elements in by_id.items():
        if len(elements) < 2:
            continue

        # Resolve every reference before any element is renamed
        label_owners = [
            (label, _owner(label, elements, positions, True))
            for label in document.soup.find_all("label", attrs={"for": old_id})
        ]
        idref_owners = [
            (reference, attr, _owner(reference, elements, positions, False))
            for attr in IDREF_ATTRIBUTES
            for reference in document.soup.find_all(attrs={attr: True})
            if old_id in reference[attr].split()
        ]

        renamed = {}
        for element in elements[1:]:
            new_id = document.unique_id(old_id or "id")
            element["id"] = new_id
            renamed[id(element)] = new_id

            changes.append(
                ChangeRecord(
                    element=f"Element with ID: {element.name}",
                    action="Fixed duplicate ID",
                    old_id=old_id,
                    new_id=new_id,
                )
            )

        for label, owner in label_owners:
            if id(owner) in renamed:
                label["for"] = renamed[id(owner)]

        for reference, attr, owner in idref_owners:
            if id(owner) in renamed:
                reference[attr] = " ".join(
                    renamed[id(owner)] if token == old_id else token
                    for token in reference[attr].split()
                )

    if changes:
        logger.debug(f"Renamed {len(changes)} duplicate ids")
    return changes
