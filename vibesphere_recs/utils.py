"""
Utility Functions
=================

Common utilities used across the VibeSphere Recs system.
"""

import hashlib
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Optional, Union

from .config import LOG_FORMAT, LOG_LEVEL

logger = logging.getLogger(__name__)


class Cache:
    """Simple file-based cache with TTL support."""

    def __init__(self, cache_dir: Union[str, Path] = ".cache", ttl_hours: float = 24):
        """
        Initialize cache.

        Args:
            cache_dir: Directory for cache files
            ttl_hours: Time-to-live in hours
        """
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_hours * 3600
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def make_key(self, prefix: str, data: Any) -> str:
        """Generate cache key from data."""
        data_str = json.dumps(data, sort_keys=True, default=str)
        return f"{prefix}_{hashlib.md5(data_str.encode()).hexdigest()[:12]}"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        cache_file = self.cache_dir / f"{key}.json"

        if not cache_file.exists():
            return None

        try:
            with open(cache_file, 'r', encoding='utf-8') as f:
                cached = json.load(f)

            # Check TTL
            if time.time() - cached.get('timestamp', 0) > self.ttl_seconds:
                cache_file.unlink()
                return None

            return cached.get('data')
        except (json.JSONDecodeError, IOError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", cache_file, e)
            return None

    def set(self, key: str, data: Any) -> None:
        """Set value in cache."""
        cache_file = self.cache_dir / f"{key}.json"

        try:
            with open(cache_file, 'w', encoding='utf-8') as f:
                json.dump({
                    'timestamp': time.time(),
                    'data': data
                }, f)
        except IOError as e:
            logger.warning("Could not write cache entry %s: %s", cache_file, e)

    def clear(self) -> int:
        """Clear all cache files. Returns number of files deleted."""
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                cache_file.unlink()
                count += 1
            except IOError as e:
                logger.warning("Could not delete cache entry %s: %s", cache_file, e)
        return count


def setup_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """
    Configure package logging to stderr.

    Args:
        level: Log level name or number (defaults to VIBESPHERE_LOG_LEVEL)

    Returns:
        The package logger
    """
    level = level if level is not None else LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    return logging.getLogger("vibesphere_recs")
