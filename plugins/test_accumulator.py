#!/usr/bin/env python3
"""
Tests for the histogram accumulator.

Verifies:
1. (x, y) addressing and bounds
2. Batched deposits match one-by-one deposits exactly
3. Reuse, resize and clear
"""

import numpy as np

from chaos_flame.accumulator import Accumulator


def test_deposit_addressing():
    print("Testing deposit addressing...")
    acc = Accumulator(8, 4)
    assert acc.shape == (4, 8)
    assert acc.deposit(6, 1, (0.5, 0.25, 1.0))
    assert acc.hits[1, 6] == 1, "Arrays are indexed [y, x]"
    assert acc.alpha_count[1, 6] == 1
    assert tuple(acc.color_sum[1, 6]) == (0.5, 0.25, 1.0)
    assert acc.hits.sum() == 1
    print("  ✓ deposit(x, y) lands at [y, x]")


def test_out_of_bounds_dropped():
    print("Testing out-of-bounds deposits...")
    acc = Accumulator(8, 4)
    for x, y in [(-1, 0), (8, 0), (0, 4), (0, -1)]:
        assert not acc.deposit(x, y, (1.0, 1.0, 1.0))
    assert acc.hits.sum() == 0
    assert not acc.in_bounds(8, 3) and acc.in_bounds(7, 3)
    print("  ✓ Outside cells ignored")


def test_deposit_many_matches_sequential():
    print("Testing batched deposits...")
    rng = np.random.default_rng(4)
    xs = rng.integers(-2, 10, size=500)
    ys = rng.integers(-2, 6, size=500)
    colors = rng.random((500, 3))

    batched = Accumulator(8, 4)
    recorded = batched.deposit_many(xs.tolist(), ys.tolist(), colors.tolist())

    sequential = Accumulator(8, 4)
    count = sum(sequential.deposit(int(x), int(y), c) for x, y, c in zip(xs, ys, colors))

    assert recorded == count
    assert np.array_equal(batched.hits, sequential.hits)
    assert np.array_equal(batched.alpha_count, sequential.alpha_count)
    assert np.array_equal(batched.color_sum, sequential.color_sum), \
        "Repeated cells must sum in the same order"
    assert batched.deposit_many([], [], []) == 0
    print(f"  ✓ {recorded} visits identical to sequential deposits")


def test_resize_and_clear():
    print("Testing ensure_size and clear...")
    acc = Accumulator(8, 4)
    acc.deposit(1, 1, (1.0, 1.0, 1.0))
    hits = acc.hits
    assert acc.ensure_size(8, 4) is False
    assert acc.hits is hits, "Same size must reuse the buffers"

    acc.clear()
    assert acc.hits is hits
    assert acc.hits.sum() == 0 and acc.color_sum.sum() == 0 and acc.alpha_count.sum() == 0

    acc.deposit(1, 1, (1.0, 1.0, 1.0))
    assert acc.ensure_size(6, 6) is True
    assert acc.shape == (6, 6)
    assert acc.hits.sum() == 0, "Resize starts from zero"
    print("  ✓ Buffers reused until the size changes")


def test_stats_and_snapshot():
    print("Testing stats and snapshot...")
    acc = Accumulator(4, 4)
    acc.deposit_many([0, 0, 3], [0, 0, 2], [(1, 0, 0)] * 3)
    stats = acc.stats
    assert stats["visits"] == 3
    assert stats["touched"] == 2
    assert stats["max_hits"] == 2
    assert stats["size"] == "4x4"

    hits, color_sum, alpha = acc.snapshot()
    acc.clear()
    assert hits.sum() == 3 and color_sum[0, 0, 0] == 2.0 and alpha.sum() == 3
    assert Accumulator().stats["touched_pct"] == 0.0
    print("  ✓ Stats correct, snapshot detached")


if __name__ == "__main__":
    print("\n=== Testing Accumulator ===\n")

    test_deposit_addressing()
    test_out_of_bounds_dropped()
    test_deposit_many_matches_sequential()
    test_resize_and_clear()
    test_stats_and_snapshot()

    print("\n✓ All tests passed!\n")
