# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Table remediation strategies.

This module provides remediation for data tables: header cells, header scope
and captions.
"""

from typing import List

from bs4 import Tag

from web_accessibility_utility.remediate.document import Document
from web_accessibility_utility.utils.html_utils import find_near_heading, text_content
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import ChangeRecord

# Set up module-level logger
logger = setup_logger(__name__)


def _own(table: Tag, name: str) -> List[Tag]:
    """Elements of the given name that belong to this table, not a nested one."""
    return [el for el in table.find_all(name) if el.find_parent("table") is table]


def _is_presentational(table: Tag) -> bool:
    return table.get("role") in ("presentation", "none")


def fix_table_headers(document: Document) -> List[ChangeRecord]:
    """
    Give data tables header cells, header scope and a caption.

    A table without any header cell has its first row promoted to column
    headers. Header cells lacking ``scope`` get ``col`` when they sit in a
    ``thead`` or an all-header row, ``row`` otherwise. A missing caption is
    taken from the nearest preceding heading, else ``Table N``.

    Args:
        document: The document to remediate

    Returns:
        Change records for every table touched
    """
    changes = []

    for index, table in enumerate(document.soup.find_all("table"), start=1):
        if _is_presentational(table):
            continue

        headers = _own(table, "th")
        rows = _own(table, "tr")

        if not headers and rows:
            cells = rows[0].find_all("td", recursive=False)
            for cell in cells:
                cell.name = "th"
                cell["scope"] = "col"
            if cells:
                changes.append(
                    ChangeRecord(
                        element="Table Header",
                        action="Converted first row cells to table headers",
                        details={"table_index": index, "cells": len(cells)},
                    )
                )
        else:
            scopes_added = 0
            for th in headers:
                if th.has_attr("scope"):
                    continue
                row = th.parent
                in_thead = row is not None and row.parent is not None and row.parent.name == "thead"
                all_headers = row is not None and all(
                    cell.name == "th" for cell in row.find_all(["td", "th"], recursive=False)
                )
                th["scope"] = "col" if in_thead or all_headers else "row"
                scopes_added += 1

            if scopes_added:
                changes.append(
                    ChangeRecord(
                        element="Table Header",
                        action=f"Added scope attribute to {scopes_added} table headers",
                        details={"table_index": index},
                    )
                )

        if table.find("caption", recursive=False) is None:
            heading = find_near_heading(table)
            text = text_content(heading) if heading is not None else ""
            caption = document.new_tag("caption")
            caption.string = text or f"Table {index}"
            table.insert(0, caption)
            changes.append(
                ChangeRecord(
                    element="Table Caption",
                    action="Added missing caption to table",
                    text=str(caption.string),
                    details={"table_index": index},
                )
            )

    if changes:
        logger.debug(f"Applied {len(changes)} table fixes")
    return changes
