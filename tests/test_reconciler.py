"""Tests for realtime change reconciliation."""

import pytest

from level4_realtime.events import ChangeEvent, ChangeType
from level4_realtime.reconciler import RealtimeReconciler
from level4_realtime.sync import dataset_from_remote, remote_dataset_id


def _rows(store, table="orders"):
    dataset = store.get(remote_dataset_id(table))
    return None if dataset is None else dataset.rows


class TestChangeEvent:
    def test_remote_payload_names(self):
        event = ChangeEvent.from_payload(
            {"table": "orders", "eventType": "UPDATE", "new": {"id": 1}, "old": {}}
        )
        assert event.type == ChangeType.UPDATE
        assert event.new_row == {"id": 1}
        assert event.old_row is None

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            ChangeEvent.from_payload({"table": "orders", "type": "upsert"})


class TestReconciler:
    def test_update_replaces_matching_row(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply({"table": "orders", "type": "update", "new_row": {"id": 1, "v": "z"}})
        assert _rows(orders_store) == [{"id": 1, "v": "z"}, {"id": 2, "v": "b"}]

    def test_update_then_delete_removes_dataset(self, store):
        store.register(dataset_from_remote("orders", [{"id": 1, "v": "a"}]))
        reconciler = RealtimeReconciler(store)

        reconciler.apply({"table": "orders", "eventType": "UPDATE", "new": {"id": 1, "v": "b"}})
        assert _rows(store) == [{"id": 1, "v": "b"}]

        reconciler.apply({"table": "orders", "eventType": "DELETE", "old": {"id": 1}})
        assert _rows(store) is None
        assert len(store) == 0

    def test_update_without_match_is_dropped(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply({"table": "orders", "type": "update", "new_row": {"id": 99, "v": "z"}})
        assert _rows(orders_store) == [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]

    def test_identity_compares_normalized(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply({"table": "orders", "type": "update", "new_row": {"id": "2", "v": "z"}})
        assert _rows(orders_store)[1] == {"id": "2", "v": "z"}

    def test_delete_is_idempotent(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        event = {"table": "orders", "type": "delete", "old_row": {"id": 1}}
        reconciler.apply(event)
        once = list(_rows(orders_store))
        reconciler.apply(event)
        assert _rows(orders_store) == once == [{"id": 2, "v": "b"}]

    def test_delete_falls_back_to_new_row(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply({"table": "orders", "type": "delete", "new_row": {"id": 2}})
        assert _rows(orders_store) == [{"id": 1, "v": "a"}]

    def test_insert_into_tracked_table_prepends(self, orders_store):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply({"table": "orders", "type": "insert", "new_row": {"id": 3, "v": "c"}})
        assert _rows(orders_store)[0] == {"id": 3, "v": "c"}
        assert len(_rows(orders_store)) == 3

    def test_insert_into_untracked_table_resyncs(self, orders_store):
        calls = []
        reconciler = RealtimeReconciler(orders_store, resync=lambda: calls.append("resync"))
        reconciler.apply({"table": "shipments", "type": "insert", "new_row": {"id": 1}})
        assert calls == ["resync"]
        assert _rows(orders_store, "shipments") is None

    def test_failing_resync_does_not_raise(self, orders_store):
        def resync():
            raise RuntimeError("remote down")

        reconciler = RealtimeReconciler(orders_store, resync=resync)
        reconciler.apply({"table": "shipments", "type": "insert", "new_row": {"id": 1}})

    @pytest.mark.parametrize(
        "payload",
        [
            {"table": "orders", "type": "upsert", "new_row": {"id": 1}},
            {"type": "insert", "new_row": {"id": 1}},
            {"table": "orders", "type": "update", "new_row": {"v": "no id"}},
            {"table": "orders", "type": "delete"},
            {"table": "orders", "type": "insert"},
        ],
    )
    def test_malformed_events_are_dropped(self, orders_store, payload):
        reconciler = RealtimeReconciler(orders_store)
        reconciler.apply(payload)
        assert _rows(orders_store) == [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]

    def test_custom_identity_column(self, store):
        store.register(dataset_from_remote("orders", [{"uuid": "x", "v": 1}, {"uuid": "y", "v": 2}]))
        reconciler = RealtimeReconciler(store, identity_column="uuid")
        reconciler.apply({"table": "orders", "type": "delete", "old_row": {"uuid": "x"}})
        assert _rows(store) == [{"uuid": "y", "v": 2}]
