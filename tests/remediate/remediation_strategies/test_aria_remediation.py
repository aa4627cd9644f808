"""
Tests for ARIA remediation.
"""

import pytest

from web_accessibility_utility.remediate.remediation_strategies.aria_remediation import (
    effective_role,
    fix_aria_elements,
    implicit_role,
    role_allowed,
)


def actions(changes):
    return [change.action for change in changes]


class TestRoleMatrix:
    """Test cases for the role helpers."""

    @pytest.mark.parametrize(
        "markup,role",
        [
            ('<a href="/">x</a>', "link"),
            ("<a>x</a>", None),
            ('<input type="checkbox">', "checkbox"),
            ("<input>", "textbox"),
            ("<select multiple></select>", "listbox"),
            ("<select></select>", "combobox"),
            ("<ul></ul>", "list"),
            ("<div></div>", None),
        ],
    )
    def test_implicit_role(self, build_document, markup, role):
        element = build_document(markup).body.find(True)
        assert implicit_role(element) == role

    def test_explicit_role_wins(self, build_document):
        element = build_document('<ul role="menu"></ul>').body.ul
        assert effective_role(element) == "menu"

    def test_role_allowed(self, build_document):
        document = build_document(
            '<ul></ul><div></div><h2></h2><input type="checkbox"><a>x</a><br><nav></nav>'
        )
        soup = document.soup
        assert role_allowed(soup.ul, "menu")
        assert not role_allowed(soup.ul, "navigation")
        assert role_allowed(soup.div, "navigation")
        assert role_allowed(soup.h2, "tab")
        assert not role_allowed(soup.h2, "button")
        assert role_allowed(soup.input, "switch")
        assert role_allowed(soup.a, "link")
        assert not role_allowed(soup.br, "separator")
        assert role_allowed(soup.nav, "navigation")


class TestRoles:
    """Test cases for role validation and role relationships."""

    def test_invalid_and_inappropriate_roles_are_removed(self, build_document):
        document = build_document('<div role="fancy">a</div><h2 role="button">b</h2>')
        changes = fix_aria_elements(document)
        assert not document.soup.div.has_attr("role")
        assert not document.soup.h2.has_attr("role")
        assert actions(changes) == ["Removed invalid ARIA role", "Removed inappropriate ARIA role"]
        assert changes[0].details["invalid_role"] == "fancy"

    def test_missing_parent_role_is_added(self, build_document):
        document = build_document(
            '<div class="tabs"><span role="tab" aria-selected="true">One</span></div>'
        )
        changes = fix_aria_elements(document)
        assert document.soup.div["role"] == "tablist"
        assert "Added necessary parent role (tablist) for tab" in actions(changes)

    def test_role_without_possible_parent_is_removed(self, build_document):
        document = build_document('<span role="option">Only</span>')
        changes = fix_aria_elements(document)
        assert not document.soup.span.has_attr("role")
        assert actions(changes) == ["Removed role (option) that requires parent role"]

    def test_native_parents_count(self, build_document):
        document = build_document(
            '<ul><li role="listitem">a</li></ul><table><tr role="row"><td>1</td></tr></table>'
        )
        assert fix_aria_elements(document) == []

    def test_missing_child_role_is_added(self, build_document):
        document = build_document('<div role="listbox"><div>Red</div><div>Blue</div></div>')
        changes = fix_aria_elements(document)
        first, second = document.soup.div.find_all("div")
        assert first["role"] == "option"
        assert not second.has_attr("role")
        assert "Added necessary child role (option) for listbox" in actions(changes)

    def test_grid_rows_may_be_nested(self, build_document):
        document = build_document(
            '<div role="grid" aria-multiselectable="false" aria-readonly="true">'
            '<div role="rowgroup"><div role="row"><span role="gridcell">1</span></div></div></div>'
        )
        assert fix_aria_elements(document) == []


class TestNamesAndStates:
    """Test cases for dialog names, icon buttons and required attributes."""

    def test_dialog_labelled_by_its_heading(self, build_document):
        document = build_document('<div role="dialog"><h2>Sign in</h2><p>Welcome</p></div>')
        changes = fix_aria_elements(document)
        heading = document.soup.h2
        assert heading["id"] == "dialog-title-1"
        assert document.soup.div["aria-labelledby"] == "dialog-title-1"
        assert actions(changes) == ["Added aria-labelledby to role dialog"]

    def test_dialog_labelled_by_its_text(self, build_document):
        document = build_document('<section role="alertdialog"><p>Your session expires soon</p></section>')
        changes = fix_aria_elements(document)
        assert document.soup.section["aria-label"] == "Your session expires soon"
        assert actions(changes) == ["Added aria-label to role alertdialog: Your session expires soon"]

    def test_empty_icon_button(self, build_document):
        document = build_document('<a role="button" class="modal-close"><svg></svg></a>')
        changes = fix_aria_elements(document)
        assert document.soup.a["aria-label"] == "Close"
        assert actions(changes) == ["Added aria-label to empty button (Close)"]

    def test_required_attributes(self, build_document):
        document = build_document(
            '<div role="slider">Volume</div>'
            '<div role="combobox">Pick</div><ul id="choices"><li>A</li></ul>'
            '<button role="switch">Dark mode</button>'
        )
        changes = fix_aria_elements(document)
        slider = document.soup.find(attrs={"role": "slider"})
        combobox = document.soup.find(attrs={"role": "combobox"})
        switch = document.soup.find(attrs={"role": "switch"})

        assert (slider["aria-valuemin"], slider["aria-valuemax"], slider["aria-valuenow"]) == ("0", "100", "50")
        assert combobox["aria-expanded"] == "false"
        assert combobox["aria-controls"] == "choices"
        assert switch["aria-checked"] == "false"
        assert any(a.startswith("Added missing required ARIA attributes for role slider") for a in actions(changes))

    def test_native_checkbox_keeps_its_own_state(self, build_document):
        document = build_document('<input type="checkbox" role="checkbox">')
        assert fix_aria_elements(document) == []
        assert not document.soup.input.has_attr("aria-checked")

    def test_combobox_controls_a_new_id(self, build_document):
        document = build_document('<div role="combobox" aria-expanded="true">x</div><div>popup</div>')
        fix_aria_elements(document)
        popup = document.soup.find_all("div")[1]
        assert popup["id"] == "combobox-content-1"
        assert document.soup.div["aria-controls"] == "combobox-content-1"


class TestHiddenFocusables:
    """Test cases for focusable content that assistive technology cannot reach."""

    def test_focusables_in_hidden_container_are_neutralized(self, build_document):
        document = build_document(
            '<div aria-hidden="true"><a href="/x" onclick="go()">Go</a>'
            '<input type="text"><span role="button" tabindex="0">B</span></div>'
        )
        changes = fix_aria_elements(document)

        link = document.soup.a
        assert link["tabindex"] == "-1"
        assert link["aria-hidden"] == "true"
        assert not link.has_attr("onclick")
        assert document.soup.input.has_attr("disabled")
        assert not document.soup.span.has_attr("role")
        assert "pointer-events: none" in document.soup.div["style"]
        assert "Fixed 3 focusable elements inside presentational element" in actions(changes)
        assert fix_aria_elements(document) == []

    def test_presentation_role_on_focusable_is_dropped(self, build_document):
        document = build_document(
            '<div role="presentation" tabindex="0">Card</div>'
            '<table role="presentation"><tr><td><a href="/in-layout">Inside</a></td></tr></table>'
        )
        changes = fix_aria_elements(document)
        assert not document.soup.div.has_attr("role")
        assert document.soup.table["role"] == "presentation"
        # Layout tables keep their links reachable
        assert not document.soup.a.has_attr("tabindex")
        assert actions(changes) == ["Removed conflicting presentation role from focusable element"]

    def test_links_cannot_be_presentational(self, build_document):
        document = build_document('<a href="/" role="presentation">Home</a>')
        changes = fix_aria_elements(document)
        assert not document.soup.a.has_attr("role")
        assert actions(changes) == ["Removed inappropriate ARIA role"]
