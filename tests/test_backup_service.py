import logging
from datetime import datetime, timezone

from auradhom.services.backup_service import BackupService


def test_every_lifecycle_step_is_backed_up(order_service, backup_gateway, customer, items):
    order = order_service.create_order(customer, items, "msg").order
    assert backup_gateway.get_one("orders_backup", order.id)["status"] == "pending"

    order_service.validate_order(order.id, "Alice")
    backed_up = backup_gateway.get_all("orders_backup")
    assert len(backed_up) == 1
    assert backed_up[0]["status"] == "validated"
    assert backed_up[0]["validated_by"] == "Alice"


def test_same_order_number_replaces_entry(backup_service, backup_gateway, order_service, customer, items):
    order = order_service.create_order(customer, items, "msg", order_number="ADH-5-5").order
    twin = order.model_copy(update={"id": "other-id"})

    assert backup_service.backup_order(twin)

    records = backup_gateway.get_all("orders_backup")
    assert [r["id"] for r in records] == ["other-id"]


def test_backup_failure_does_not_block_checkout(order_service, order_repo, backup_store, customer, items, caplog):
    backup_store.failing = True

    with caplog.at_level(logging.ERROR):
        result = order_service.create_order(customer, items, "msg")

    assert result.warning is None
    assert order_repo.get(result.order.id) is not None
    assert "Backup of order" in caplog.text


def test_backup_order_reports_failure(backup_service, backup_store, order_service, customer, items):
    order = order_service.create_order(customer, items, "msg").order
    backup_store.failing = True

    assert backup_service.backup_order(order) is False


def test_export_all_buckets_by_status(order_service, backup_service, customer, items):
    a = order_service.create_order(customer, items, "msg").order
    b = order_service.create_order(customer, items, "msg").order
    order_service.create_order(customer, items, "msg")
    order_service.validate_order(a.id, "Alice")
    order_service.reject_order(b.id, "Alice", "Client injoignable")

    now = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
    snapshot = backup_service.export_all(now=now)

    assert snapshot["exportDate"] == "2026-10-18T09:30:00+00:00"
    assert snapshot["totalOrders"] == 3
    assert (snapshot["pending"], snapshot["validated"], snapshot["rejected"]) == (1, 1, 1)
    assert [o["id"] for o in snapshot["orders"]["validated"]] == [a.id]
    assert [o["id"] for o in snapshot["orders"]["rejected"]] == [b.id]
    assert snapshot["orders"]["rejected"][0]["rejection_reason"] == "Client injoignable"


def test_export_of_empty_cache(backup_gateway):
    snapshot = BackupService(backup_gateway).export_all()

    assert snapshot["totalOrders"] == 0
    assert snapshot["orders"] == {"pending": [], "validated": [], "rejected": []}


def test_export_filename():
    now = datetime(2026, 10, 18, tzinfo=timezone.utc)
    assert BackupService.export_filename(now) == "commandes-auradhom-2026-10-18.json"


def test_list_unsynced_only_returns_unacknowledged_orders(backup_service, order_service, store, customer, items):
    order_service.create_order(customer, items, "msg")
    store.failing = True
    local_only = order_service.create_order(customer, items, "msg").order

    assert [o.id for o in backup_service.list_unsynced()] == [local_only.id]


def test_list_unsynced_with_backup_down(backup_service, backup_store):
    backup_store.failing = True

    assert backup_service.list_unsynced() == []
