# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Command-line interface for the web_accessibility_utility package.

This module provides a command-line interface for scanning and remediating
live web pages and for remediating saved HTML files.
"""

import json
import logging
import os
import sys
import argparse
from typing import Any, Dict

from web_accessibility_utility import __version__
from web_accessibility_utility.api import remediate_html, scan_url
from web_accessibility_utility.utils.config import (
    ConfigurationError,
    config_manager,
    load_config_file,
    validate_options,
)
from web_accessibility_utility.utils.logging_helper import (
    ScanExhausted,
    set_package_level,
    setup_logger,
)

# Set up module-level logger
logger = setup_logger(__name__)

CONFIG_SECTIONS = [
    "browser", "navigation", "stabilize", "overlays", "detection", "scan", "alt_text", "cache",
]


def configure_logging(debug: bool = False, quiet: bool = False) -> None:
    """Configure logging based on debug and quiet flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(level=level)
    set_package_level(level)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments shared by every command."""
    parser.add_argument(
        "--output", "-o", help="Output file path. If not provided, prints to stdout"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output results, suppress other output",
    )
    parser.add_argument("--config", "-c", help="Path to configuration file")


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Scan web pages for accessibility issues and remediate them.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    scan_parser = subparsers.add_parser(
        "scan",
        help="Scan and remediate a live URL",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    scan_parser.add_argument("url", help="URL to scan")
    scan_parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Ignore any cached result and scan again",
    )
    scan_parser.add_argument(
        "--profile", help="AWS profile name to use for the image classifier"
    )
    scan_parser.add_argument(
        "--no-ai", action="store_true", help="Derive alt text from image URLs only"
    )
    _add_common_arguments(scan_parser)

    fix_parser = subparsers.add_parser(
        "fix",
        help="Remediate a saved HTML file without a browser",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    fix_parser.add_argument("file", help="HTML file to remediate")
    fix_parser.add_argument(
        "--url", default="", help="URL the file was saved from, for resolving links"
    )
    fix_parser.add_argument(
        "--report", help="Also write the change records as JSON to this path"
    )
    _add_common_arguments(fix_parser)

    parser.add_argument(
        "--version", action="store_true", help="Show version information"
    )
    return parser


def parse_arguments(argv=None) -> Dict[str, Any]:
    """Parse command-line arguments and apply any configuration file."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Web Accessibility v{__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(debug=args.debug, quiet=args.quiet)

    args_dict = vars(args)

    if args_dict.get("config"):
        config_path = args_dict["config"]
        try:
            logger.info(f"Loading configuration from {config_path}")
            config_data = load_config_file(config_path)
            validate_options(
                config_data, optional_fields={section: dict for section in CONFIG_SECTIONS}
            )
            for section in CONFIG_SECTIONS:
                if section in config_data:
                    config_manager.set_user_config(config_data[section], section)
                    logger.debug(f"Applied configuration for section: {section}")
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            print(f"Error: {e}")
            sys.exit(1)

    return args_dict


def _write_output(data: str, output_path: str = None) -> None:
    if not output_path:
        print(data)
        return
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(data)


def run_scan_command(args: Dict[str, Any]) -> int:
    """Run the scan command."""
    options: Dict[str, Any] = {}
    if args.get("profile"):
        options.setdefault("alt_text", {})["profile"] = args["profile"]
    if args.get("no_ai"):
        options.setdefault("alt_text", {})["disable_ai"] = True

    try:
        if not args.get("quiet"):
            logger.info(f"Scanning {args['url']}")

        result = scan_url(
            args["url"], force_refresh=args.get("force_refresh", False), options=options
        )
        _write_output(json.dumps(result, indent=2), args.get("output"))

        if not args.get("quiet") and args.get("output"):
            print("\nScan Results:")
            print(f"  Issues found: {len(result['originalIssues'])}")
            print(f"  Issues remaining: {len(result['issues'])}")
            print(f"  Fixes applied: {sum(len(v) for v in result['fixes'].values())}")
            if result["warning"]:
                print("  Warning: the scan was degraded, results may be incomplete")
            print(f"  Report: {args['output']}")
        return 0

    except ScanExhausted as e:
        logger.error(f"Scan failed: {e}")
        if not args.get("quiet"):
            print(f"Error: {e}")
        return 1


def run_fix_command(args: Dict[str, Any]) -> int:
    """Run the fix command."""
    try:
        with open(args["file"], "r", encoding="utf-8") as f:
            html = f.read()
    except OSError as e:
        logger.error(f"Cannot read {args['file']}: {e}")
        print(f"Error: {e}")
        return 1

    result = remediate_html(html, args.get("url", ""))
    _write_output(result["fixedHtml"], args.get("output"))

    if args.get("report"):
        _write_output(json.dumps(result["fixes"], indent=2), args["report"])

    if not args.get("quiet") and args.get("output"):
        print("\nRemediation Results:")
        for category, count in result["fixesByCategory"].items():
            if count:
                print(f"  {category}: {count}")
        print(f"  Remediated HTML: {args['output']}")
    return 0


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    try:
        args = parse_arguments(argv)

        if args["command"] == "scan":
            return run_scan_command(args)
        elif args["command"] == "fix":
            return run_fix_command(args)
        else:
            print("No command specified")
            return 1

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
