# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Pydantic models for scan results, detected issues and remediation changes.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class FixCategory(str, Enum):
    """Remediation categories, in the order they appear in a report."""

    CONTRAST = "contrast"
    LABELS = "labels"
    INTERACTIVE_ELEMENTS = "interactiveElements"
    HEADINGS = "headings"
    DUPLICATE_IDS = "duplicateIds"
    TABLE_HEADERS = "tableHeaders"
    LIST_STRUCTURE = "listStructure"
    FOCUS_INDICATORS = "focusIndicators"
    ARIA_ELEMENTS = "ariaElements"
    FRAMES = "frames"
    FORM_VALIDATION = "formValidation"
    VIEWPORT = "viewport"
    LANGUAGE = "language"
    TITLE = "title"
    LANDMARKS = "landmarks"
    IMAGE_ALT_TEXTS = "imageAltTexts"


class _ReportModel(BaseModel):
    """Shared configuration: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True


class Occurrence(_ReportModel):
    """One concrete element location where an issue manifests."""

    target: List[str] = Field(default_factory=list)
    html: Optional[str] = None
    failure_summary: Optional[str] = None
    suggestion: Optional[str] = None

    class Config:
        frozen = True


class Issue(_ReportModel):
    """An accessibility violation reported by the audit engine."""

    id: str
    help: str = ""
    description: str = ""
    impact: Optional[str] = None
    help_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    nodes: List[Occurrence] = Field(default_factory=list)

    class Config:
        frozen = True

    @classmethod
    def from_axe(cls, violation: Dict[str, Any]) -> "Issue":
        """
        Build an Issue from one axe-core violation record.

        Args:
            violation: A single entry of axe-core's ``violations`` list

        Returns:
            The equivalent Issue
        """
        nodes = []
        for node in violation.get("nodes", []) or []:
            targets = []
            for target in node.get("target", []) or []:
                # Frame and shadow DOM targets arrive as nested selector lists
                if isinstance(target, list):
                    targets.append(" ".join(str(part) for part in target))
                else:
                    targets.append(str(target))
            nodes.append(
                Occurrence(
                    target=targets,
                    html=node.get("html"),
                    failure_summary=node.get("failureSummary"),
                )
            )

        return cls(
            id=violation.get("id", "unknown"),
            help=violation.get("help", ""),
            description=violation.get("description", ""),
            impact=violation.get("impact"),
            help_url=violation.get("helpUrl"),
            tags=list(violation.get("tags", []) or []),
            nodes=nodes,
        )

    def with_suggestions(self, suggestions: Dict[str, str]) -> "Issue":
        """
        Return a copy whose occurrences carry the given suggestions.

        Args:
            suggestions: Mapping of first target selector to suggested text

        Returns:
            A new Issue; this one is left untouched
        """
        nodes = [
            node.model_copy(update={"suggestion": suggestions[node.target[0]]})
            if node.target and node.target[0] in suggestions
            else node
            for node in self.nodes
        ]
        return self.model_copy(update={"nodes": nodes})


class ChangeRecord(_ReportModel):
    """A single change applied to the document by one fixer."""

    element: str
    action: str
    text: Optional[str] = None
    old_contrast: Optional[float] = None
    new_contrast: Optional[float] = None
    label: Optional[str] = None
    old_id: Optional[str] = None
    new_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True


class AuditLog(_ReportModel):
    """Summary counts recorded alongside a scan result."""

    timestamp: datetime = Field(default_factory=datetime.now)
    url: str
    total_issues_detected: int = 0
    remaining_issues: int = 0
    fixes_by_category: Dict[str, int] = Field(default_factory=dict)


class ScanResult(_ReportModel):
    """The outcome of one scan; the unit stored in the scan cache."""

    url: str
    original_issues: List[Issue] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)
    fixes: Dict[str, List[ChangeRecord]] = Field(default_factory=dict)
    fixed_html: str = ""
    degraded: bool = False
    dismissed_overlays: List[Dict[str, Any]] = Field(default_factory=list)
    audit_log: Optional[AuditLog] = None

    class Config:
        frozen = True

    def to_response(self) -> Dict[str, Any]:
        """
        Serialize to the response shape consumed by the reporting layer.

        Returns:
            JSON-compatible dict with camelCase keys; ``warning`` mirrors ``degraded``
        """
        data = self.model_dump(by_alias=True, mode="json")
        data["warning"] = self.degraded
        return data


class CacheEntry(_ReportModel):
    """A stored scan result and the time it was produced."""

    timestamp: float
    result: ScanResult

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        """Return True while the entry is younger than the freshness window."""
        return (now - self.timestamp) < ttl_seconds


def count_fixes(fixes: Dict[str, List[ChangeRecord]]) -> Dict[str, int]:
    """
    Count change records per category.

    Args:
        fixes: Mapping of category to its change records

    Returns:
        Mapping of category to number of records
    """
    return {category: len(records) for category, records in fixes.items()}
