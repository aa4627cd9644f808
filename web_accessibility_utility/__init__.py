# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Web Accessibility Package.

This package provides tools for auditing live web pages for accessibility
issues, remediating them in place and re-auditing the result.

Main Components:
- Browser session and overlay dismissal
- axe-core issue detection
- Remediation fixer waves and alt text suggestions
- Scan result caching
"""

__version__ = "0.1.0"
