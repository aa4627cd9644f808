# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Logging and error handling for the scan pipeline.

Every module obtains its logger through ``setup_logger(__name__)``. Failures are
reported through ``log_exception`` so a stage that gives up, retries or degrades
always leaves the same shape of log line behind.

Only ``NavigationFailure`` is allowed to escape its stage; the whole-scan retry
loop turns repeated failures into ``ScanExhausted``. Every other failure is logged
and absorbed where it happens.
"""

import logging
import sys
from typing import Optional, Type

PACKAGE_LOGGER = "web_accessibility_utility"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class WebAccessibilityError(Exception):
    """Base exception class for all web_accessibility_utility errors."""


class NavigationFailure(WebAccessibilityError):
    """Raised when every navigation strategy failed to load the page."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class DetectionFailure(WebAccessibilityError):
    """Raised when the audit engine could not analyze the page."""


class FixerFailure(WebAccessibilityError):
    """Describes a remediation pass that raised; recorded, never propagated."""

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.category = category


class ClassificationFailure(WebAccessibilityError):
    """Raised when the image classifier errors, times out or returns nothing."""


class ConfigurationError(WebAccessibilityError):
    """Raised for unreadable or malformed configuration."""


class ScanExhausted(WebAccessibilityError):
    """Raised when every whole-scan attempt failed."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.last_error = last_error


def _default_level() -> int:
    # The CLI puts the root logger in debug mode for --debug
    return logging.DEBUG if logging.getLogger().level <= logging.DEBUG else logging.INFO


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger writing to stdout in the package format.

    Args:
        name: The logger name, typically __name__ of the calling module
        level: Explicit level; defaults to DEBUG when the root logger is in
            debug mode and INFO otherwise

    Returns:
        The configured logger
    """
    logger_obj = logging.getLogger(name)
    logger_obj.setLevel(level if level is not None else _default_level())
    logger_obj.propagate = True

    if not logger_obj.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger_obj.addHandler(handler)

    return logger_obj


def set_package_level(level: int) -> None:
    """Apply ``level`` to the root logger and every package logger created so far."""
    logging.getLogger().setLevel(level)
    for name in list(logging.Logger.manager.loggerDict):
        if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
            logging.getLogger(name).setLevel(level)


def describe_exception(exception: BaseException) -> str:
    """``Type - message``, followed by the chain of causes."""
    parts = [f"{type(exception).__name__} - {exception}"]
    cause = exception.__cause__
    while cause is not None:
        parts.append(f"caused by {type(cause).__name__} - {cause}")
        cause = cause.__cause__
    return "; ".join(parts)


def log_exception(
    logger: logging.Logger,
    exception: BaseException,
    message: str = "An error occurred",
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    """
    Log an exception with consistent formatting.

    Args:
        logger: The logger instance to use
        exception: The exception to log
        message: What was being attempted
        level: The logging level to use
        include_traceback: Whether to attach the traceback
    """
    log_msg = f"{message}: {describe_exception(exception)}"
    if include_traceback:
        logger.log(level, log_msg, exc_info=exception)
    else:
        logger.log(level, log_msg)


def handle_exception(
    exc: Exception,
    logger: logging.Logger,
    custom_message: Optional[str] = None,
    custom_exception: Optional[Type[Exception]] = None,
) -> None:
    """
    Log a failure at a public entry point and raise it again.

    Args:
        exc: The caught exception
        logger: Logger to use for recording the error
        custom_message: Message for the log line and the wrapping exception
        custom_exception: Exception type to raise instead of the original;
            package errors pass through unwrapped

    Raises:
        The original exception, or ``custom_exception`` chained to it
    """
    message = custom_message or str(exc)
    log_exception(logger, exc, message)

    if custom_exception is None or isinstance(exc, WebAccessibilityError):
        raise exc
    raise custom_exception(message) from exc
