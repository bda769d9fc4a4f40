"""
A simple, file-based JSON cache with a time-to-live (TTL) for storing API responses.

Every search costs API quota, and browsing tends to revisit the same queries
and the same "related" seeds, so responses are kept on disk for a while.
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


class CacheManager:
    """Manages a JSON-based file cache with TTL."""

    MAX_CACHE_VALUE_KB = 500

    def __init__(self, cache_dir_path: Path, max_age_hours: int = 24):
        """
        Initializes the cache manager.

        Args:
            cache_dir_path: The directory under which a `responses` folder is kept.
            max_age_hours: Age in hours after which an entry is considered stale.
        """
        self.cache_dir = cache_dir_path / "responses"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.max_age_seconds = max_age_hours * 3600

    def _get_cache_path(self, key: str) -> Path:
        """Generates a safe filename for a given cache key."""
        hashed_key = hashlib.md5(key.encode("utf-8")).hexdigest()  # noqa: S324
        return self.cache_dir / f"{hashed_key}.json"

    def prune(self) -> int:
        """Removes expired files and returns how many were deleted."""
        now = time.time()
        cleaned_count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                if now - cache_file.stat().st_mtime > self.max_age_seconds:
                    cache_file.unlink()
                    cleaned_count += 1
            except OSError as e:
                log.warning(
                    f"Failed to remove expired cache file {cache_file.name}: {e}"
                )
        if cleaned_count > 0:
            log.debug(f"Cache cleanup: removed {cleaned_count} expired entries.")
        return cleaned_count

    def get(self, key: str) -> Any | None:
        """
        Retrieves a value from the cache. Returns None if the key is not found or
        expired.
        """
        cache_path = self._get_cache_path(key)
        if not cache_path.is_file():
            return None

        try:
            if time.time() - cache_path.stat().st_mtime > self.max_age_seconds:
                cache_path.unlink()
                return None

            with open(cache_path, encoding="utf-8") as f:
                data = json.load(f)
            if data.get("key") != key:
                return None
            return data.get("value")
        except (json.JSONDecodeError, OSError) as e:
            log.debug(f"Cache read failed for key '{key}': {e}")
            return None

    def set(self, key: str, value: Any) -> bool:
        """Saves a value to the cache, with a size limit check."""
        cache_path = self._get_cache_path(key)
        try:
            payload = {
                "key": key,
                "timestamp": time.time(),
                "value": value,
            }
            serialized_payload = json.dumps(payload)
            size_kb = len(serialized_payload) / 1024

            if size_kb > self.MAX_CACHE_VALUE_KB:
                log.debug(
                    f"Cache value for key '{key}' is too large ({size_kb:.1f} KB), "
                    "skipping."
                )
                return False

            with open(cache_path, "w", encoding="utf-8") as f:
                f.write(serialized_payload)
            return True
        except (TypeError, OSError) as e:
            log.warning(f"Cache write failed for key '{key}': {e}")
            return False

    def clear(self) -> int:
        """Removes all items from the cache and returns how many were deleted."""
        removed = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                cache_file.unlink()
                removed += 1
            except OSError as e:
                log.error(f"Failed to remove cache file {cache_file.name}: {e}")
        return removed
