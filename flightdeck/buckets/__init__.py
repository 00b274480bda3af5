"""
Buckets Module — Bucket Lifecycle, Selection and Provisioning

Public API:
- BucketLifecycleResolver: online/offline check + last-value-cache provisioning
- ActiveBucketSelector: active-bucket policy and persistence
- BucketService: bucket and token provisioning
- BucketWatcher: resolve-all + reconcile pass, optionally on a timer
"""

from .lifecycle import (
    BucketLifecycleResolver,
    FLIGHT_TABLE,
    ONLINE_CHECK_SQL,
    cache_name_for,
    default_cache_record,
)
from .selector import ActiveBucketSelector, Selection
from .service import BucketService, format_token
from .watcher import BucketWatcher

__all__ = [
    "BucketLifecycleResolver",
    "FLIGHT_TABLE",
    "ONLINE_CHECK_SQL",
    "cache_name_for",
    "default_cache_record",
    "ActiveBucketSelector",
    "Selection",
    "BucketService",
    "format_token",
    "BucketWatcher",
]
