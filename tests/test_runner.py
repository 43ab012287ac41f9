"""Tests for the deadline-bounded driving loop."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from blockfill.config import BlockfillConfig
from blockfill.exceptions import MalformedRecordError
from blockfill.runner import run_selection, select_from_file
from blockfill.selector.engine import CapacityBoundedSelector
from blockfill.selector.models import StopReason


def make_records(n: int, seed: int = 3) -> list[list[str]]:
    rng = random.Random(seed)
    return [[f"t{i}", str(rng.randint(1, 20)), str(rng.randint(1, 50))] for i in range(n)]


class TestRunSelection:
    def test_runs_to_exhaustion(self, frozen_clock):
        records = [["a", "4", "8"], ["b", "4", "4"], ["c", "4", "20"]]
        selector = CapacityBoundedSelector(10)
        result = run_selection(records, selector, 1000, clock=frozen_clock)

        assert result.stopped_by is StopReason.EXHAUSTED
        assert [t.id for t in result.items] == ["a", "c"]
        assert result.used_capacity == 8
        assert result.total_fee == 28
        assert result.count == 2
        assert result.stats.offered == 3
        assert result.stats.replaced == 1
        assert result.stats.evicted == 1

    def test_counts_invalid_records(self, frozen_clock):
        records = [["a", "0", "8"], ["b", "x", "4"], ["c", "11", "20"], ["d", "1", "1"]]
        result = run_selection(records, CapacityBoundedSelector(10), 1000, clock=frozen_clock)
        assert result.stats.invalid == 3
        assert result.stats.offered == 1
        assert [t.id for t in result.items] == ["d"]

    def test_deadline_stops_pulling(self, fake_clock):
        pulled = []

        def records():
            for i in range(100):
                pulled.append(i)
                yield [f"t{i}", "1", "1"]

        # One clock second per candidate, five second budget
        result = run_selection(records(), CapacityBoundedSelector(1000), 5000, clock=fake_clock)
        assert result.stopped_by is StopReason.DEADLINE
        assert len(pulled) == 5
        assert result.count == 5

    def test_zero_budget_processes_one_candidate(self, fake_clock):
        result = run_selection(make_records(10), CapacityBoundedSelector(100), 0, clock=fake_clock)
        assert result.stopped_by is StopReason.DEADLINE
        assert result.stats.offered + result.stats.invalid == 1

    @pytest.mark.parametrize("k", [1, 7, 20, 49])
    def test_truncation_matches_prefix(self, fake_clock, frozen_clock, k: int):
        records = make_records(50)
        truncated = run_selection(records, CapacityBoundedSelector(40), k * 1000, clock=fake_clock)

        reference = run_selection(
            records[:k], CapacityBoundedSelector(40), 10**9, clock=frozen_clock
        )
        assert truncated.stopped_by is StopReason.DEADLINE
        assert truncated.items == reference.items
        assert truncated.used_capacity == reference.used_capacity
        assert truncated.total_fee == reference.total_fee

    def test_elapsed_reported(self, fake_clock):
        result = run_selection([["a", "1", "1"]], CapacityBoundedSelector(10), 1000, clock=fake_clock)
        assert result.elapsed_ms > 0
        assert result.time_budget_ms == 1000

    def test_negative_budget(self):
        with pytest.raises(ValueError):
            run_selection([], CapacityBoundedSelector(10), -1)

    def test_empty_source(self):
        result = run_selection([], CapacityBoundedSelector(10), 1000)
        assert result.count == 0
        assert result.stopped_by is StopReason.EXHAUSTED

    def test_check_invariants_each_offer(self, frozen_clock):
        result = run_selection(
            make_records(200), CapacityBoundedSelector(60), 1000,
            clock=frozen_clock, check_invariants=True,
        )
        assert result.used_capacity <= 60

    def test_malformed_attaches_partial_result(self, frozen_clock):
        def records():
            yield ["a", "4", "8"]
            yield ["b", "4", "4"]
            raise MalformedRecordError("expected 3 fields, got 4", line=4)

        selector = CapacityBoundedSelector(10)
        with pytest.raises(MalformedRecordError) as exc_info:
            run_selection(records(), selector, 1000, clock=frozen_clock)

        partial = exc_info.value.result
        assert partial.stopped_by is StopReason.MALFORMED
        assert [t.id for t in partial.items] == ["b", "a"]
        assert partial.total_fee == 12
        assert len(selector) == 2


class TestSelectFromFile:
    def test_file_run(self, tx_csv: Path):
        result = select_from_file(tx_csv, BlockfillConfig())
        assert [t.id for t in result.items] == ["d", "a", "c"]
        assert result.used_capacity == 10
        assert result.total_fee == 29
        assert result.stats.invalid == 3
        assert result.stats.admitted == 3
        assert result.stats.replaced == 1

    def test_capacity_from_config(self, tx_csv: Path):
        config = BlockfillConfig()
        config.block.capacity = 100
        result = select_from_file(tx_csv, config)
        # Nothing contends and "huge" now fits
        assert {t.id for t in result.items} == {"a", "b", "c", "huge", "d"}

    def test_malformed_file(self, malformed_csv: Path):
        with pytest.raises(MalformedRecordError) as exc_info:
            select_from_file(malformed_csv, BlockfillConfig())
        assert exc_info.value.line == 4
        assert exc_info.value.result.used_capacity == 8

    def test_summary(self, tx_csv: Path):
        lines = select_from_file(tx_csv, BlockfillConfig()).summary().splitlines()
        assert "Transactions: 3" in lines
        assert "Size: 10 / 10 (100%)" in lines
        assert "Fee: 29" in lines
        assert "Offered: 4, admitted: 3, replaced: 1, rejected: 0, invalid: 3, evicted: 1" in lines
        start = lines.index("Selected transactions:") + 1
        assert lines[start:] == [
            "  d size=2 fee=1 density=0.500",
            "  a size=4 fee=8 density=2.000",
            "  c size=4 fee=20 density=5.000",
        ]

    def test_to_dict(self, tx_csv: Path):
        data = select_from_file(tx_csv, BlockfillConfig()).to_dict()
        assert data["count"] == 3
        assert data["stopped_by"] == "exhausted"
        assert data["items"][0] == {"id": "d", "size": 2, "fee": 1}
