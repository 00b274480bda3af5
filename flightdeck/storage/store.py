"""
Config Store — Single JSON Document Persistence

The whole dashboard state (endpoint, admin token, bucket records, active
bucket) lives in one JSON document on disk.

Contracts:
- read() is fail-open: missing or corrupt file reads as {}
- write() replaces the file atomically (temp file + os.replace)
- every read-modify-write runs under a per-path lock, so concurrent
  update() calls inside this process cannot lose each other's changes
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Union


logger = logging.getLogger(__name__)

Config = Dict[str, Any]


class ConfigStoreError(Exception):
    """Raised when the config document cannot be written."""
    pass


class ConfigStore:
    """
    Read/write access to the config document.

    Instances pointing at the same file share one lock.
    """

    _locks: Dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)
        key = str(self.path.resolve())
        with self._locks_guard:
            self._lock = self._locks.setdefault(key, threading.RLock())

    def read(self) -> Config:
        """
        Return the current document.

        Never raises: a missing, unreadable or non-object document reads as {}.
        """
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Config file {self.path} unreadable, using empty config: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Config file {self.path} is not a JSON object, using empty config")
            return {}
        return data

    def write(self, config: Config) -> None:
        """
        Replace the document atomically.

        Raises:
            ConfigStoreError: If the file cannot be written
        """
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(config, fh, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise ConfigStoreError(f"Failed to write config {self.path}: {e}") from e

    def mutate(self, fn: Callable[[Config], None]) -> Config:
        """
        Serialized read-modify-write.

        `fn` edits the document in place; the result is written and returned.
        """
        with self._lock:
            config = self.read()
            fn(config)
            self.write(config)
            return config

    def update(self, partial: Config) -> Config:
        """Shallow-merge top-level keys into the document."""
        return self.mutate(lambda config: config.update(partial))

    def remove_keys(self, keys: Iterable[str]) -> Config:
        """Delete the named top-level keys (missing keys are ignored)."""
        keys = list(keys)

        def _remove(config: Config) -> None:
            for key in keys:
                config.pop(key, None)

        return self.mutate(_remove)

    # ------------------------------------------------------------------
    # Bucket record helpers
    # ------------------------------------------------------------------

    def get_bucket(self, name: str) -> Optional[Dict[str, Any]]:
        """Return the stored record for a bucket, if any."""
        buckets = self.read().get("buckets") or {}
        record = buckets.get(name)
        return record if isinstance(record, dict) else None

    def merge_bucket(
        self,
        name: str,
        fields: Dict[str, Any],
        defaults: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Merge fields into one bucket record, creating it if needed.

        Sibling fields of the record are left untouched. `defaults` only
        apply when the record is created.
        """
        result: Dict[str, Any] = {}

        def _merge(config: Config) -> None:
            buckets = config.get("buckets")
            if not isinstance(buckets, dict):
                buckets = config["buckets"] = {}
            record = buckets.get(name)
            if not isinstance(record, dict):
                record = {"name": name, **(defaults or {})}
                buckets[name] = record
            record.update(fields)
            result.update(record)

        self.mutate(_merge)
        return result

    def drop_bucket_fields(self, name: str, fields: Iterable[str]) -> bool:
        """Remove fields from a bucket record. Returns True if anything changed."""
        fields = list(fields)
        changed = False

        def _drop(config: Config) -> None:
            nonlocal changed
            record = (config.get("buckets") or {}).get(name)
            if not isinstance(record, dict):
                return
            for field in fields:
                if field in record:
                    del record[field]
                    changed = True

        self.mutate(_drop)
        return changed

    def remove_bucket(self, name: str) -> bool:
        """Delete a bucket record. Returns True if it existed."""
        removed = False

        def _remove(config: Config) -> None:
            nonlocal removed
            buckets = config.get("buckets")
            if isinstance(buckets, dict) and name in buckets:
                del buckets[name]
                removed = True

        self.mutate(_remove)
        return removed


# ============================================================================
# Endpoint helpers
# ============================================================================

def format_endpoint_url(url: Optional[str]) -> str:
    """Ensure the endpoint URL ends with a trailing slash."""
    if not url:
        return ""
    return url if url.endswith("/") else f"{url}/"


def get_formatted_endpoint(config: Config) -> Optional[str]:
    """Return the configured endpoint with a trailing slash, or None."""
    endpoint = config.get("influxEndpoint")
    if not endpoint:
        return None
    return format_endpoint_url(endpoint)


def has_valid_credentials(config: Config) -> bool:
    """True when both endpoint and admin token are configured."""
    return bool(config.get("influxEndpoint") and config.get("adminToken"))


def mask_token(token: Optional[str]) -> Optional[str]:
    """Mask a credential for display: first 8 ... last 8 characters."""
    if not token:
        return token
    return f"{token[:8]}...{token[-8:]}"
