#!/usr/bin/env python3
"""Demo: Using Blockfill as a Python library.

This shows how to drive the selector programmatically, not just as a CLI tool.
"""

import random

from blockfill.runner import run_selection
from blockfill.selector import CapacityBoundedSelector, Transaction


def main():
    # 1. Offer transactions one by one
    print("Offering transactions...")
    selector = CapacityBoundedSelector(capacity=10)
    for tx in [
        Transaction(id="a", size=4, fee=8),
        Transaction(id="b", size=4, fee=4),
        Transaction(id="c", size=4, fee=20),
    ]:
        decision = selector.offer(tx)
        print(f"  {tx.id}: {decision.kind.value} {list(decision.evicted_ids) or ''}")

    print(f"  Block: {[tx.id for tx in selector.items]}")
    print(f"  Size: {selector.used_capacity}/{selector.capacity}")
    print(f"  Fee: {selector.accumulated_value}")

    # 2. Run a synthetic mempool under a 50ms budget
    print("\nFilling a block from a synthetic mempool...")
    rng = random.Random(42)
    records = (
        [f"tx{i}", str(rng.randint(150, 2000)), str(rng.randint(100, 50_000))]
        for i in range(200_000)
    )
    result = run_selection(records, CapacityBoundedSelector(1_000_000), time_budget_ms=50)
    print(f"  Stopped by: {result.stopped_by.value} after {result.elapsed_ms:.1f}ms")
    print(f"  Offered: {result.stats.offered}, selected: {result.count}")
    print(f"  Size: {result.used_capacity:,} / {result.capacity:,}")
    print(f"  Fee: {result.total_fee:,}")


if __name__ == "__main__":
    main()
