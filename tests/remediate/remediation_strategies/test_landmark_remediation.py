"""
Tests for landmark remediation.
"""

from web_accessibility_utility.remediate.remediation_strategies.landmark_remediation import (
    fix_landmarks,
)

LONG_TEXT = "Fresh produce from the valley, delivered every morning. " * 4


def actions(changes):
    return [change.action for change in changes]


class TestMainLandmark:
    """Test cases for the main region."""

    def test_largest_block_is_wrapped_in_main(self, build_document):
        document = build_document(
            "<header><p>Logo</p></header>"
            f'<div class="sidebar"><p>Links</p><p>More links</p></div>'
            f'<div class="content"><p>{LONG_TEXT}</p></div>'
            "<footer>Contact</footer>"
        )
        changes = fix_landmarks(document)

        main = document.soup.find("main")
        assert main is not None
        assert main.find("div", class_="content") is not None
        assert main.find("div", class_="sidebar") is None
        assert "Added main landmark to largest content block" in actions(changes)
        assert "Added missing level-one heading" in actions(changes)
        assert main.find("h1") is not None

    def test_hint_breaks_ties(self, build_document):
        document = build_document(
            "<h1>Title</h1>"
            f"<section><p>{LONG_TEXT}</p></section>"
            f'<div id="content"><p>{LONG_TEXT}</p></div>'
        )
        fix_landmarks(document)
        assert document.soup.find("main").div["id"] == "content"

    def test_empty_main_is_created(self, build_document):
        document = build_document("<header>Top</header><h1>Hi</h1><p>Short</p>")
        changes = fix_landmarks(document)

        main = document.soup.find("main")
        assert main.previous_sibling.name == "header"
        assert [child.name for child in main.find_all(recursive=False)] == ["h1", "p"]
        assert actions(changes) == ["Created main landmark albeit with no content"]

    def test_duplicate_main_roles_are_removed(self, build_document):
        document = build_document(
            '<h1>Hi</h1><main><p>Primary</p></main><div role="main"><p>Secondary</p></div>'
        )
        changes = fix_landmarks(document)
        assert document.soup.find("div").get("role") is None
        assert len(document.soup.select('main, [role="main"]')) == 1
        assert actions(changes) == ["Removed duplicate main landmark"]


class TestOtherLandmarks:
    """Test cases for complementary, role hints and duplicate labels."""

    def test_nested_complementary_moves_after_main(self, build_document):
        document = build_document(
            "<h1>Hi</h1><main><p>Story</p><aside>Related</aside></main><footer>End</footer>"
        )
        changes = fix_landmarks(document)
        aside = document.soup.find("aside")
        assert aside.find_parent("main") is None
        assert aside.previous_sibling.name == "main"
        assert "Moved complementary landmark to appropriate location" in actions(changes)

    def test_role_hints(self, build_document):
        document = build_document(
            '<h1>Hi</h1><main><p>Body</p></main>'
            '<div class="site-header">Brand</div>'
            '<ul class="menu"><li>Home</li></ul><div id="nav">Links</div>'
            '<div class="footer">Legal</div>'
        )
        fix_landmarks(document)
        assert document.soup.find(class_="site-header")["role"] == "banner"
        assert document.soup.find(class_="footer")["role"] == "contentinfo"
        # Lists may not be navigation landmarks
        assert document.soup.find("ul").get("role") is None
        assert document.soup.find(id="nav")["role"] == "navigation"

    def test_repeated_landmarks_get_ordinal_labels(self, build_document):
        document = build_document(
            "<h1>Hi</h1><nav>Top</nav><main><p>Body</p></main>"
            '<nav>Bottom</nav><nav aria-label="Social">Social</nav>'
        )
        changes = fix_landmarks(document)
        navs = document.soup.find_all("nav")
        assert navs[0].get("aria-label") is None
        assert navs[1]["aria-label"] == "Navigation 2"
        assert changes[-1].label == "Navigation 2"

    def test_rerun_is_a_no_op(self, build_document):
        document = build_document(
            f'<div class="header">Brand</div><div class="content"><p>{LONG_TEXT}</p></div>'
            "<nav>a</nav><nav>b</nav>"
        )
        assert fix_landmarks(document)
        assert fix_landmarks(document) == []
