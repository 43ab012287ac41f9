"""Capacity-bounded transaction selection.

Usage:
    from blockfill.selector import CapacityBoundedSelector, Transaction

    selector = CapacityBoundedSelector(capacity=10)
    selector.offer(Transaction(id="a", size=4, fee=8))
    print(selector.items)
"""

from blockfill.selector.engine import CapacityBoundedSelector
from blockfill.selector.models import (
    Decision,
    DecisionKind,
    RunStats,
    SelectionResult,
    StopReason,
    Transaction,
)

__all__ = [
    "CapacityBoundedSelector",
    "Decision",
    "DecisionKind",
    "RunStats",
    "SelectionResult",
    "StopReason",
    "Transaction",
]
