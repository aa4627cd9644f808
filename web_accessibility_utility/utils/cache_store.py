# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Scan result cache.

Results are held in memory for the life of the process and mirrored to one
JSON file per URL so they survive restarts. Entries older than the
configured freshness window are treated as absent and discarded.
"""

import json
import os
import re
import time
from typing import Dict, Optional

from pydantic import ValidationError

from web_accessibility_utility.utils.config import config_manager
from web_accessibility_utility.utils.logging_helper import setup_logger
from web_accessibility_utility.utils.report_models import CacheEntry, ScanResult

# Set up module-level logger
logger = setup_logger(__name__)


def cache_key(url: str) -> str:
    """
    Derive the storage key for a URL.

    Args:
        url: The scanned URL, used exactly as supplied

    Returns:
        Lower-cased key with every non-alphanumeric character replaced by ``_``
    """
    return re.sub(r"[^a-z0-9]", "_", url, flags=re.IGNORECASE).lower()


class ScanCache:
    """Two-tier (memory, then disk) store of scan results keyed by URL."""

    def __init__(
        self, directory: Optional[str] = None, ttl_seconds: Optional[float] = None
    ):
        options = config_manager.get_config(section="cache")
        self.directory = directory or options["directory"]
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else options["ttl_seconds"]
        )
        self._memory: Dict[str, CacheEntry] = {}

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def get(self, url: str, now: Optional[float] = None) -> Optional[ScanResult]:
        """
        Look up a fresh result for the URL.

        Args:
            url: The scanned URL
            now: Current time in epoch seconds (defaults to ``time.time()``)

        Returns:
            The cached ScanResult, or None when absent or expired
        """
        now = time.time() if now is None else now
        key = cache_key(url)

        entry = self._memory.get(key)
        if entry is None:
            entry = self._read_file(key)
            if entry is not None:
                self._memory[key] = entry

        if entry is None:
            return None

        if not entry.is_fresh(now, self.ttl_seconds):
            logger.info(f"Cache entry for {url} expired, discarding")
            self._discard(key)
            return None

        logger.debug(f"Cache hit for {url}")
        return entry.result

    def put(self, url: str, result: ScanResult, now: Optional[float] = None) -> None:
        """
        Store a result in memory and on disk.

        Disk failures are logged; the in-memory entry is kept regardless.

        Args:
            url: The scanned URL
            result: Result of the scan
            now: Time to stamp the entry with (defaults to ``time.time()``)
        """
        key = cache_key(url)
        entry = CacheEntry(
            timestamp=time.time() if now is None else now, result=result
        )
        self._memory[key] = entry

        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(self._path(key), "w", encoding="utf-8") as f:
                f.write(entry.model_dump_json(by_alias=True))
            logger.debug(f"Cached scan result for {url} at {self._path(key)}")
        except OSError as e:
            logger.warning(f"Failed to write cache file for {url}: {e}")

    def invalidate(self, url: str) -> None:
        """Remove any stored result for the URL."""
        self._discard(cache_key(url))

    def _discard(self, key: str) -> None:
        self._memory.pop(key, None)
        path = self._path(key)
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to remove cache file {path}: {e}")

    def _read_file(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return CacheEntry.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None
