"""Deadline-bounded driving loop.

Pulls records one at a time, validates them, offers them to the selector and
samples the clock after each candidate. Whatever the selector holds when the
loop stops is the answer.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from blockfill.config import BlockfillConfig
from blockfill.exceptions import InvalidTransactionError, MalformedRecordError
from blockfill.selector.engine import CapacityBoundedSelector
from blockfill.selector.models import RunStats, SelectionResult, StopReason
from blockfill.source import CandidateSource, parse_record

logger = logging.getLogger("blockfill.runner")

Clock = Callable[[], float]


def _snapshot(
    selector: CapacityBoundedSelector,
    stats: RunStats,
    elapsed_s: float,
    time_budget_ms: int,
    stopped_by: StopReason,
) -> SelectionResult:
    return SelectionResult(
        items=list(selector.items),
        capacity=selector.capacity,
        used_capacity=selector.used_capacity,
        total_fee=selector.accumulated_value,
        elapsed_ms=round(elapsed_s * 1000, 3),
        time_budget_ms=time_budget_ms,
        stopped_by=stopped_by,
        stats=stats,
    )


def run_selection(
    records: Iterable[list[str]],
    selector: CapacityBoundedSelector,
    time_budget_ms: int,
    clock: Clock = time.monotonic,
    check_invariants: bool = False,
) -> SelectionResult:
    """Feed records to the selector until the source ends or the budget is spent.

    The clock is sampled once at the start and once after each candidate;
    the loop stops as soon as the elapsed time meets or exceeds the budget.
    A budget of 0 therefore processes exactly one candidate.

    Args:
        records: Raw ``[id, size, fee]`` records.
        selector: The selector to fill. It keeps its state after the run.
        time_budget_ms: Wall-clock budget in milliseconds.
        clock: Returns the current time in seconds.
        check_invariants: Verify the selector state after every offer.

    Raises:
        MalformedRecordError: a record had the wrong shape. The partial
            result is attached as ``error.result``.
    """
    if time_budget_ms < 0:
        raise ValueError(f"time budget must be non-negative, got {time_budget_ms}")

    budget_s = time_budget_ms / 1000
    stats = RunStats()
    stopped_by = StopReason.EXHAUSTED
    start = clock()

    try:
        for record in records:
            try:
                tx = parse_record(record, selector.capacity)
            except InvalidTransactionError as e:
                stats.invalid += 1
                logger.debug(f"Skipped invalid record: {e}")
            else:
                stats.record(selector.offer(tx))
                if check_invariants:
                    selector.check_invariants()

            if clock() - start >= budget_s:
                stopped_by = StopReason.DEADLINE
                break
    except MalformedRecordError as e:
        logger.error(f"Aborting run on malformed record: {e}")
        e.result = _snapshot(
            selector, stats, clock() - start, time_budget_ms, StopReason.MALFORMED
        )
        raise

    result = _snapshot(selector, stats, clock() - start, time_budget_ms, stopped_by)
    logger.info(
        f"Selected {result.count} transactions (size {result.used_capacity}/"
        f"{result.capacity}, fee {result.total_fee}) in {result.elapsed_ms:.1f}ms, "
        f"stopped by {stopped_by.value}"
    )
    return result


def select_from_file(
    path: Path | str,
    config: BlockfillConfig,
    clock: Clock = time.monotonic,
) -> SelectionResult:
    """Run a full selection over a delimited file using project settings."""
    source = CandidateSource(path, delimiter=config.run.delimiter, has_header=config.run.has_header)
    selector = CapacityBoundedSelector(config.block.capacity)
    return run_selection(
        source,
        selector,
        config.run.time_budget_ms,
        clock=clock,
        check_invariants=config.run.check_invariants,
    )
