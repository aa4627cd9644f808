# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Remediation strategies for accessibility issues.

This package contains one fixer per category of accessibility issue. Every
fixer takes a Document, mutates it in place and returns the list of changes
it made; running a fixer again on its own output returns an empty list.

Fixers are grouped in waves. Waves run one after another because later
waves rely on what earlier ones establish (unique ids before anything that
references elements by id); fixers inside a wave touch disjoint concerns.
"""

from typing import Callable, List, Tuple

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.remediate.remediation_strategies.aria_remediation import (
    fix_aria_elements,
)
from web_accessibility_utility.remediate.remediation_strategies.color_contrast_remediation import (
    fix_color_contrast,
)
from web_accessibility_utility.remediate.remediation_strategies.document_structure_remediation import (
    fix_document_title,
    fix_language_attribute,
    fix_zoom_and_scale,
)
from web_accessibility_utility.remediate.remediation_strategies.duplicate_id_remediation import (
    fix_duplicate_ids,
)
from web_accessibility_utility.remediate.remediation_strategies.form_remediation import (
    fix_form_labels,
    fix_form_validation,
)
from web_accessibility_utility.remediate.remediation_strategies.frame_remediation import (
    fix_inaccessible_frames,
)
from web_accessibility_utility.remediate.remediation_strategies.heading_remediation import (
    fix_headings,
)
from web_accessibility_utility.remediate.remediation_strategies.interactive_remediation import (
    fix_focus_indicators,
    fix_interactive_elements,
)
from web_accessibility_utility.remediate.remediation_strategies.landmark_remediation import (
    fix_landmarks,
)
from web_accessibility_utility.remediate.remediation_strategies.list_remediation import (
    fix_list_structures,
)
from web_accessibility_utility.remediate.remediation_strategies.table_remediation import (
    fix_table_headers,
)
from web_accessibility_utility.utils.report_models import ChangeRecord, FixCategory

Fixer = Callable[[Document], List[ChangeRecord]]

FIXER_WAVES: List[List[Tuple[FixCategory, Fixer]]] = [
    # Document identity
    [
        (FixCategory.LANGUAGE, fix_language_attribute),
        (FixCategory.TITLE, fix_document_title),
        (FixCategory.DUPLICATE_IDS, fix_duplicate_ids),
    ],
    # Structure
    [
        (FixCategory.HEADINGS, fix_headings),
        (FixCategory.LANDMARKS, fix_landmarks),
        (FixCategory.LIST_STRUCTURE, fix_list_structures),
        (FixCategory.TABLE_HEADERS, fix_table_headers),
    ],
    # Interaction
    [
        (FixCategory.LABELS, fix_form_labels),
        (FixCategory.INTERACTIVE_ELEMENTS, fix_interactive_elements),
        (FixCategory.FOCUS_INDICATORS, fix_focus_indicators),
        (FixCategory.ARIA_ELEMENTS, fix_aria_elements),
        (FixCategory.FORM_VALIDATION, fix_form_validation),
    ],
    # Presentation
    [
        (FixCategory.CONTRAST, fix_color_contrast),
        (FixCategory.VIEWPORT, fix_zoom_and_scale),
        (FixCategory.FRAMES, fix_inaccessible_frames),
    ],
]


def all_fixers() -> List[Tuple[FixCategory, Fixer]]:
    """Every registered fixer in execution order."""
    return [entry for wave in FIXER_WAVES for entry in wave]


__all__ = [
    "FIXER_WAVES",
    "Fixer",
    "all_fixers",
    "fix_aria_elements",
    "fix_color_contrast",
    "fix_document_title",
    "fix_duplicate_ids",
    "fix_focus_indicators",
    "fix_form_labels",
    "fix_form_validation",
    "fix_headings",
    "fix_inaccessible_frames",
    "fix_interactive_elements",
    "fix_landmarks",
    "fix_language_attribute",
    "fix_list_structures",
    "fix_table_headers",
    "fix_zoom_and_scale",
]
