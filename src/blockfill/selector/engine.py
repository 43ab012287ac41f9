"""Capacity-bounded transaction selection.

Formulation:
  Given a block capacity C and a stream of transactions t_1, t_2, ... each
  with size s(t) > 0 and fee f(t) > 0, maintain a set X such that

    Σ s(t) ≤ C  for t ∈ X

  while greedily increasing Σ f(t). Each transaction is seen exactly once and
  never reconsidered after it is rejected or evicted.

Algorithm (per offered transaction t):
  1. If t fits in the free space, insert it.
  2. Otherwise, if the lowest-density member of X is denser than t, reject.
  3. Otherwise sweep X from the lowest density upward, accumulating the
     evicted size and fee. Reject as soon as the evicted fee reaches f(t);
     stop as soon as free space plus evicted size covers s(t).
  4. Remove the swept prefix and insert t.

X is kept sorted ascending by density d(t) = f(t) / s(t), so the cheapest
eviction candidate is always X[0]. Ties keep admission order.

The state after any number of offers is a valid answer, which makes the
selection an anytime algorithm when it is driven under a deadline.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Iterator
from fractions import Fraction

from blockfill.exceptions import SelectorStateError
from blockfill.selector.models import Decision, Transaction

logger = logging.getLogger("blockfill.selector")

REASON_TOO_LARGE = "exceeds capacity"
REASON_LOW_DENSITY = "not worth displacing the least valuable member"
REASON_EVICTION_COST = "eviction cost exceeds candidate value"


class CapacityBoundedSelector:
    """Fee-ordered working set bounded by a fixed capacity.

    Usage:
        selector = CapacityBoundedSelector(capacity=10)
        decision = selector.offer(Transaction(id="a", size=4, fee=8))
        selector.items  # ascending density
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._items: list[Transaction] = []
        # Parallel to _items; cached density keys for binary search
        self._keys: list[Fraction] = []
        self._used = 0
        self._fee = 0

    # -------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def used_capacity(self) -> int:
        return self._used

    @property
    def accumulated_value(self) -> int:
        return self._fee

    @property
    def free_capacity(self) -> int:
        return self._capacity - self._used

    @property
    def items(self) -> tuple[Transaction, ...]:
        """Members in ascending density order."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._items))

    # -------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------

    def offer(self, tx: Transaction) -> Decision:
        """Admit, admit-by-replacement or reject a transaction.

        Either the whole admission/replacement is committed or nothing
        changes at all.
        """
        if tx.size > self._capacity:
            logger.debug(f"Rejected {tx.id}: size {tx.size} > capacity {self._capacity}")
            return Decision.rejected(REASON_TOO_LARGE)

        if self._used + tx.size <= self._capacity:
            self._insert(tx)
            logger.debug(f"Admitted {tx.id} (used {self._used}/{self._capacity})")
            return Decision.admitted()

        return self._contend(tx)

    # -------------------------------------------------------------------
    # Contention path
    # -------------------------------------------------------------------

    def _contend(self, tx: Transaction) -> Decision:
        """Try to make room for `tx` by evicting the lowest-density prefix."""
        key = tx.density_key
        if self._keys[0] > key:
            logger.debug(f"Rejected {tx.id}: {REASON_LOW_DENSITY}")
            return Decision.rejected(REASON_LOW_DENSITY)

        free = self._capacity - self._used
        lost_size = 0
        lost_fee = 0
        # Running off the end evicts everything
        cut = len(self._items)

        for index, member in enumerate(self._items):
            lost_size += member.size
            lost_fee += member.fee

            if lost_fee >= tx.fee:
                logger.debug(
                    f"Rejected {tx.id}: evicting would lose {lost_fee} >= {tx.fee}"
                )
                return Decision.rejected(REASON_EVICTION_COST)
            if lost_size + free >= tx.size:
                cut = index + 1
                break

        evicted = self._items[:cut]
        del self._items[:cut]
        del self._keys[:cut]
        self._used -= lost_size
        self._fee -= lost_fee

        self._insert(tx)

        evicted_ids = [member.id for member in evicted]
        logger.debug(
            f"Replaced {evicted_ids} with {tx.id} "
            f"(lost fee {lost_fee}, gained {tx.fee}, used {self._used}/{self._capacity})"
        )
        return Decision.replaced(evicted_ids)

    def _insert(self, tx: Transaction) -> None:
        """Insert after every member of lower or equal density.

        Members before the insertion point keep their positions.
        """
        key = tx.density_key
        pos = bisect_right(self._keys, key)
        self._items.insert(pos, tx)
        self._keys.insert(pos, key)
        self._used += tx.size
        self._fee += tx.fee

    # -------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise SelectorStateError if ordering or totals have drifted."""
        for left, right in zip(self._items, self._items[1:]):
            if left.density_key > right.density_key:
                raise SelectorStateError(
                    f"Order violated: {left.id} ({left.density:.4f}) before "
                    f"{right.id} ({right.density:.4f})"
                )
        size = sum(tx.size for tx in self._items)
        fee = sum(tx.fee for tx in self._items)
        if size != self._used or fee != self._fee:
            raise SelectorStateError(
                f"Totals drifted: used={self._used} (actual {size}), "
                f"fee={self._fee} (actual {fee})"
            )
        if self._used > self._capacity:
            raise SelectorStateError(
                f"Capacity exceeded: {self._used} > {self._capacity}"
            )
