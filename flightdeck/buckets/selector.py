"""
Active Bucket Selector — Which Bucket Feeds the Live Dashboards

States: Unselected (activeBucket is None) or Selected(bucket).
Transitions are driven by the bucket status map:

- the reserved internal bucket is never considered
- an active bucket whose status is known and not live (online + hasTable)
  is demoted to the first live bucket, or to None when there is none
- with no active bucket, the first live bucket is selected

A manual pin goes through the same persistence path and is not sticky:
the next demotion overrides it.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from flightdeck.storage.schemas import BucketStatus
from flightdeck.storage.store import ConfigStore


logger = logging.getLogger(__name__)

DEFAULT_RESERVED_BUCKET = "_internal"


@dataclass(frozen=True)
class Selection:
    """Result of one reconciliation pass."""
    previous: Optional[str]
    active: Optional[str]

    @property
    def changed(self) -> bool:
        return self.previous != self.active


class ActiveBucketSelector:
    """Applies the selection policy and persists the result."""

    def __init__(self, store: ConfigStore, reserved_bucket: str = DEFAULT_RESERVED_BUCKET):
        self.store = store
        self.reserved_bucket = reserved_bucket

    def choose(
        self,
        statuses: Mapping[str, BucketStatus],
        active: Optional[str],
    ) -> Optional[str]:
        """Pure policy: the bucket that should be active given `statuses`."""
        candidates = {
            name: status for name, status in statuses.items()
            if name != self.reserved_bucket
        }
        first_live = next(
            (name for name, status in candidates.items() if status.is_live),
            None,
        )

        if active is not None and active in candidates:
            if candidates[active].is_live:
                return active
            # Demote: first other live bucket, else nothing
            return next(
                (name for name, status in candidates.items()
                 if name != active and status.is_live),
                None,
            )

        if active is None:
            return first_live

        # Active bucket has no status in this pass; leave it alone
        return active

    def reconcile(self, statuses: Mapping[str, BucketStatus]) -> Selection:
        """Apply the policy to the stored active bucket and persist any change."""
        previous = self.store.read().get("activeBucket")
        chosen = self.choose(statuses, previous)
        selection = Selection(previous=previous, active=chosen)
        if selection.changed:
            logger.info(f"Active bucket: {previous} -> {chosen}")
            self._persist(chosen)
        return selection

    def pin(self, bucket_name: Optional[str]) -> Selection:
        """Manually select a bucket (or clear the selection with None)."""
        previous = self.store.read().get("activeBucket")
        self._persist(bucket_name)
        return Selection(previous=previous, active=bucket_name)

    def _persist(self, bucket_name: Optional[str]) -> None:
        self.store.update({"activeBucket": bucket_name})
