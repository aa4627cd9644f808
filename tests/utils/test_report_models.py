"""
Tests for the report models.
"""

from web_accessibility_utility.utils.report_models import (
    AuditLog,
    CacheEntry,
    ChangeRecord,
    FixCategory,
    Issue,
    ScanResult,
    count_fixes,
)

AXE_VIOLATION = {
    "id": "image-alt",
    "help": "Images must have alternate text",
    "description": "Ensures <img> elements have alternate text",
    "impact": "critical",
    "helpUrl": "https://dequeuniversity.com/rules/axe/4.8/image-alt",
    "tags": ["wcag2a", "wcag111"],
    "nodes": [
        {"target": ["#hero > img"], "html": '<img src="barn.jpg">', "failureSummary": "Fix any"},
        {"target": [["iframe", "img.logo"]], "html": "<img>"},
    ],
}


class TestIssue:
    """Test cases for Issue."""

    def test_from_axe(self):
        issue = Issue.from_axe(AXE_VIOLATION)
        assert issue.id == "image-alt"
        assert issue.impact == "critical"
        assert issue.help_url.endswith("image-alt")
        assert issue.nodes[0].target == ["#hero > img"]
        assert issue.nodes[0].failure_summary == "Fix any"
        assert issue.nodes[1].target == ["iframe img.logo"]

    def test_with_suggestions_returns_copy(self):
        issue = Issue.from_axe(AXE_VIOLATION)
        suggested = issue.with_suggestions({"#hero > img": "Red barn"})
        assert suggested.nodes[0].suggestion == "Red barn"
        assert suggested.nodes[1].suggestion is None
        assert issue.nodes[0].suggestion is None

    def test_serializes_camel_case(self):
        data = Issue.from_axe(AXE_VIOLATION).model_dump(by_alias=True)
        assert "helpUrl" in data
        assert "failureSummary" in data["nodes"][0]


class TestScanResult:
    """Test cases for ScanResult."""

    def test_to_response_shape(self):
        fixes = {
            FixCategory.TITLE.value: [ChangeRecord(element="title", action="Set document title to: X")],
            FixCategory.CONTRAST.value: [],
        }
        result = ScanResult(
            url="https://example.com",
            original_issues=[Issue.from_axe(AXE_VIOLATION)],
            fixes=fixes,
            fixed_html="<html></html>",
            degraded=True,
            audit_log=AuditLog(url="https://example.com", fixes_by_category=count_fixes(fixes)),
        )
        response = result.to_response()

        assert response["warning"] is True
        assert response["degraded"] is True
        assert response["fixedHtml"] == "<html></html>"
        assert response["originalIssues"][0]["id"] == "image-alt"
        assert response["issues"] == []
        assert response["fixes"]["title"][0]["action"] == "Set document title to: X"
        assert response["auditLog"]["fixesByCategory"] == {"title": 1, "contrast": 0}

    def test_change_record_contrast_fields(self):
        record = ChangeRecord(element="a", action="Fixed link color contrast", old_contrast=4.48, new_contrast=7.04)
        data = record.model_dump(by_alias=True)
        assert data["oldContrast"] == 4.48
        assert data["newContrast"] == 7.04


class TestCacheEntry:
    """Test cases for CacheEntry freshness."""

    def test_is_fresh(self):
        entry = CacheEntry(timestamp=100.0, result=ScanResult(url="https://example.com"))
        assert entry.is_fresh(150.0, 60)
        assert not entry.is_fresh(160.0, 60)

    def test_round_trips_through_json(self):
        entry = CacheEntry(timestamp=100.0, result=ScanResult(url="https://example.com", degraded=True))
        restored = CacheEntry.model_validate_json(entry.model_dump_json(by_alias=True))
        assert restored.result.degraded is True
