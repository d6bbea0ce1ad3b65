from __future__ import annotations

from datetime import datetime, timezone

from log_shipper.metrics import ShipperMetrics


def test_counters_and_exposition() -> None:
    depth = {"value": 4}
    metrics = ShipperMetrics(depth=lambda: depth["value"])

    metrics.record_shipped(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    metrics.record_failed()
    metrics.record_failed()
    metrics.record_dropped(3, "retries_exhausted")
    metrics.record_dropped(0, "overflow")

    assert metrics.batches_shipped == 1
    assert metrics.batches_failed == 2
    assert metrics.entries_dropped == 3
    assert metrics.last_flush_iso() == "2024-05-01T12:00:00.000Z"

    text = metrics.exposition().decode()
    assert "log_ship_batches_shipped_total 1.0" in text
    assert "log_ship_batches_failed_total 2.0" in text
    assert 'log_ship_entries_dropped_total{reason="retries_exhausted"} 3.0' in text
    assert "log_ship_buffer_depth 4.0" in text


def test_separate_instances_do_not_share_registries() -> None:
    first = ShipperMetrics(depth=lambda: 0)
    second = ShipperMetrics(depth=lambda: 0)

    first.record_shipped()

    assert second.batches_shipped == 0
    assert second.last_flush_iso() is None
    assert "log_ship_batches_shipped_total 0.0" in second.exposition().decode()
