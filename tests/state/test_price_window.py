"""Tests for the fixed-capacity price snapshot ring buffer."""

from __future__ import annotations

import pytest

from feegate.state.price_window import (
    LITE_SNAPSHOT_INTERVAL,
    MIN_SNAPSHOT_INTERVAL,
    PriceSnapshot,
    PriceWindow,
    snapshot_interval,
)


def test_empty_window() -> None:
    w = PriceWindow()
    assert len(w) == 0
    assert w.oldest() is None
    assert w.newest() is None
    assert w.snapshots() == []


def test_push_until_full_keeps_oldest_first() -> None:
    w = PriceWindow()
    for i in range(4):
        assert w.push(PriceSnapshot(price=100 + i, timestamp=i * 900)) is None
    assert w.is_full
    assert [s.price for s in w] == [100, 101, 102, 103]
    assert w.oldest() == PriceSnapshot(price=100, timestamp=0)
    assert w.newest() == PriceSnapshot(price=103, timestamp=2700)


def test_fifth_push_evicts_exactly_the_oldest() -> None:
    w = PriceWindow()
    for i in range(4):
        w.push(PriceSnapshot(price=100 + i, timestamp=i * 900))
    evicted = w.push(PriceSnapshot(price=200, timestamp=3600))
    assert evicted == PriceSnapshot(price=100, timestamp=0)
    assert len(w) == 4
    assert [s.price for s in w] == [101, 102, 103, 200]


def test_wraparound_many_times() -> None:
    w = PriceWindow()
    for i in range(11):
        w.push(PriceSnapshot(price=1 + i, timestamp=i))
    assert [s.price for s in w] == [8, 9, 10, 11]


def test_out_of_order_push_rejected() -> None:
    w = PriceWindow()
    w.push(PriceSnapshot(price=1, timestamp=10))
    with pytest.raises(ValueError):
        w.push(PriceSnapshot(price=1, timestamp=9))


def test_maybe_record_respects_min_interval() -> None:
    w = PriceWindow()
    assert w.maybe_record(100, 0) is True
    assert w.maybe_record(101, MIN_SNAPSHOT_INTERVAL - 1) is False
    assert w.maybe_record(102, MIN_SNAPSHOT_INTERVAL) is True
    assert [s.price for s in w] == [100, 102]


def test_maybe_record_with_lite_interval() -> None:
    w = PriceWindow()
    w.maybe_record(100, 0, LITE_SNAPSHOT_INTERVAL)
    assert w.maybe_record(101, 900, LITE_SNAPSHOT_INTERVAL) is False
    assert w.maybe_record(101, LITE_SNAPSHOT_INTERVAL, LITE_SNAPSHOT_INTERVAL) is True


def test_snapshot_interval_gate() -> None:
    assert snapshot_interval(1_000, 1_000) == MIN_SNAPSHOT_INTERVAL
    assert snapshot_interval(999, 1_000) == LITE_SNAPSHOT_INTERVAL


def test_snapshot_rejects_non_positive_price() -> None:
    with pytest.raises(ValueError):
        PriceSnapshot(price=0, timestamp=0)
    with pytest.raises(TypeError):
        PriceSnapshot(price=1.5, timestamp=0)  # type: ignore[arg-type]
