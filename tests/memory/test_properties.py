"""Property checks over randomised operation sequences.

Each test replays a seeded random workload and checks an invariant
after every step:

- free ranges and allocated blocks exactly tile the address space,
- no two free ranges are address-adjacent,
- an allocate followed by a free of the returned block restores the
  free ranges.
"""

import random

import pytest

from py_memsim.memory.allocator import Allocator, Grant
from py_memsim.memory.errors import AllocatorError

SPACE_SIZE = 256
STEPS = 400
SEEDS = range(8)
MAX_PID = 6
MAX_REQUEST = 64


def _random_step(allocator: Allocator, rng: random.Random) -> None:
    """Apply one random operation, ignoring recoverable failures."""
    roll = rng.random()
    pid = rng.randint(1, MAX_PID)
    try:
        if roll < 0.45:
            allocator.allocate(pid, rng.randint(-2, MAX_REQUEST))
        elif roll < 0.85:
            blocks = allocator.process_table.blocks()
            if blocks and rng.random() < 0.9:
                block = rng.choice(blocks)
                allocator.free(block.owner, block.start)
            else:
                allocator.free(pid, rng.randrange(SPACE_SIZE))
        elif roll < 0.92:
            allocator.create(pid)
        else:
            allocator.terminate(pid)
    except AllocatorError:
        pass


def _assert_tiles(allocator: Allocator) -> None:
    """Free ranges plus blocks must cover [0, size) with no gaps or overlaps."""
    cursor = 0
    for entry in allocator.memory_map():
        assert entry.size > 0
        assert entry.start == cursor
        cursor = entry.end
    assert cursor == allocator.memory_size


def _assert_no_adjacent_free(allocator: Allocator) -> None:
    """No free range may end where another begins."""
    ranges = allocator.free_ranges
    starts = {r.start for r in ranges}
    assert all(r.end not in starts for r in ranges)


class TestInvariants:
    """Verify invariants hold across random workloads."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_coverage_and_coalescing(self, seed: int) -> None:
        """Every reachable state should tile the space with merged free ranges."""
        rng = random.Random(seed)
        allocator = Allocator(memory_size=SPACE_SIZE)
        for _ in range(STEPS):
            _random_step(allocator, rng)
            _assert_tiles(allocator)
            _assert_no_adjacent_free(allocator)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_round_trip_restores_free_ranges(self, seed: int) -> None:
        """allocate then free of the same block should restore the free ranges."""
        rng = random.Random(seed)
        allocator = Allocator(memory_size=SPACE_SIZE)
        # Build a fragmented layout without queuing anything.
        for _ in range(STEPS // 4):
            size = rng.randint(1, MAX_REQUEST)
            if allocator.address_space.find_fit(size) is not None:
                allocator.allocate(rng.randint(1, MAX_PID), size)
            blocks = allocator.process_table.blocks()
            if blocks and rng.random() < 0.5:
                block = rng.choice(blocks)
                allocator.free(block.owner, block.start)
        assert allocator.queue == []

        before = sorted((r.start, r.size) for r in allocator.free_ranges)
        size = rng.randint(1, max(1, allocator.address_space.largest_free))
        outcome = allocator.allocate(MAX_PID + 1, size)
        if not isinstance(outcome, Grant):
            pytest.skip("address space full for this seed")
        allocator.free(outcome.pid, outcome.start)
        after = sorted((r.start, r.size) for r in allocator.free_ranges)
        assert after == before
