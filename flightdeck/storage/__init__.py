"""
Storage Module — JSON Config Document

Public API:
- ConfigStore: fail-open read, atomic write, serialized read-modify-write
- BucketRecord / CacheRecord / BucketStatus: record models
- Endpoint helpers: format_endpoint_url, get_formatted_endpoint, ...
"""

from .schemas import (
    BucketRecord,
    BucketState,
    BucketStatus,
    CacheRecord,
    INFINITE_RETENTION,
)
from .store import (
    Config,
    ConfigStore,
    ConfigStoreError,
    format_endpoint_url,
    get_formatted_endpoint,
    has_valid_credentials,
    mask_token,
)

__all__ = [
    "BucketRecord",
    "BucketState",
    "BucketStatus",
    "CacheRecord",
    "INFINITE_RETENTION",
    "Config",
    "ConfigStore",
    "ConfigStoreError",
    "format_endpoint_url",
    "get_formatted_endpoint",
    "has_valid_credentials",
    "mask_token",
]
