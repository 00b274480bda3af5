"""
Active Bucket Selector Tests — Selection Policy and Persistence

Tests cover:
- the reserved bucket is never selected
- a non-live active bucket is demoted
- an unknown active bucket is left alone
- reconcile() persists only real changes; pin() always persists
"""

import pytest

from flightdeck.buckets import ActiveBucketSelector, Selection
from flightdeck.storage import BucketState, BucketStatus


LIVE = BucketStatus(status=BucketState.ONLINE, hasTable=True)
OFFLINE = BucketStatus(status=BucketState.OFFLINE, hasTable=True)
NO_TABLE = BucketStatus(status=BucketState.ONLINE, hasTable=False)


@pytest.fixture
def selector(store):
    return ActiveBucketSelector(store)


class TestChoose:
    """Pure policy."""

    def test_selects_first_live_when_unselected(self, selector):
        statuses = {"a": OFFLINE, "b": LIVE, "c": LIVE}
        assert selector.choose(statuses, None) == "b"

    def test_nothing_live_stays_unselected(self, selector):
        assert selector.choose({"a": OFFLINE}, None) is None

    def test_live_active_is_kept(self, selector):
        statuses = {"a": LIVE, "b": LIVE}
        assert selector.choose(statuses, "b") == "b"

    def test_offline_active_demoted_to_other_live(self, selector):
        statuses = {"a": OFFLINE, "b": LIVE}
        assert selector.choose(statuses, "a") == "b"

    def test_offline_active_demoted_to_none(self, selector):
        statuses = {"a": OFFLINE, "b": OFFLINE}
        assert selector.choose(statuses, "a") is None

    def test_online_without_table_is_not_live(self, selector):
        statuses = {"a": NO_TABLE, "b": LIVE}
        assert selector.choose(statuses, "a") == "b"

    def test_reserved_bucket_never_selected(self, selector):
        statuses = {"_internal": LIVE, "a": OFFLINE}
        assert selector.choose(statuses, None) is None

    def test_unknown_active_left_alone(self, selector):
        assert selector.choose({"a": LIVE}, "gone") == "gone"

    def test_result_is_live_or_none(self, selector):
        statuses = {"a": OFFLINE, "b": NO_TABLE, "c": LIVE, "_internal": LIVE}
        for active in [None, "a", "b", "c"]:
            chosen = selector.choose(statuses, active)
            assert chosen is None or statuses[chosen].is_live
            assert chosen != "_internal"


class TestReconcile:
    """Persistence."""

    def test_change_is_persisted(self, selector, store):
        selection = selector.reconcile({"a": LIVE})

        assert selection == Selection(previous=None, active="a")
        assert selection.changed
        assert store.read()["activeBucket"] == "a"

    def test_demotion_clears_active(self, selector, store):
        store.update({"activeBucket": "a"})
        selection = selector.reconcile({"a": OFFLINE})

        assert selection.active is None
        assert store.read()["activeBucket"] is None

    def test_no_change_does_not_write(self, selector, store):
        store.update({"activeBucket": "a"})
        before = store.path.stat().st_mtime_ns
        selection = selector.reconcile({"a": LIVE})

        assert not selection.changed
        assert store.path.stat().st_mtime_ns == before

    def test_other_keys_survive(self, selector, store):
        selector.reconcile({"a": LIVE})
        assert store.read()["adminToken"]

    def test_pin_then_demote(self, selector, store):
        selector.pin("a")
        assert store.read()["activeBucket"] == "a"

        selection = selector.reconcile({"a": OFFLINE, "b": LIVE})
        assert selection.active == "b"

    def test_pin_none_clears(self, selector, store):
        store.update({"activeBucket": "a"})
        selection = selector.pin(None)
        assert selection == Selection(previous="a", active=None)
        assert store.read()["activeBucket"] is None
