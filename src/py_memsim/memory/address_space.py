"""Address space — the free list of a variable-partition memory.

The simulated memory is the address range ``[0, size)``.  Whatever is
not owned by a process sits in the **free list**: a sequence of
``FreeRange`` records, each a contiguous run of unowned addresses.

Three operations keep the list honest:

- **find_fit** — first-fit search.  Walk the list *in list order* and
  stop at the first range large enough for the request.
- **reserve** — carve the request off the low end of the chosen range.
  The range shrinks from the front; a fully consumed range disappears.
- **release** — return a range to the head of the list, then
  **coalesce**: any two ranges whose spans touch are merged into one.

List order is not address order.  Released ranges go to the head, so
the most recently freed space is searched first.  Coalescing keeps the
surviving range at the position of the lower-addressed partner.
"""

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass
class FreeRange:
    """A contiguous run of unowned addresses.

    Attributes:
        start: First address in the range.
        size: Number of addresses in the range (always > 0).

    """

    start: int
    size: int

    @property
    def end(self) -> int:
        """Return the first address *after* the range."""
        return self.start + self.size


class AddressSpace:
    """Own the free list for an address space of a fixed size."""

    def __init__(self, *, size: int) -> None:
        """Create an address space that is entirely free.

        Args:
            size: Total number of addressable units.

        Raises:
            ValueError: If size is not positive.

        """
        if size <= 0:
            msg = f"Address space size must be positive, got {size}"
            raise ValueError(msg)
        self._size = size
        self._free: list[FreeRange] = [FreeRange(start=0, size=size)]

    @property
    def size(self) -> int:
        """Return the total number of addressable units."""
        return self._size

    @property
    def ranges(self) -> list[FreeRange]:
        """Return copies of the free ranges in list (search) order."""
        return [FreeRange(start=r.start, size=r.size) for r in self._free]

    @property
    def total_free(self) -> int:
        """Return the number of unowned addresses."""
        return sum(r.size for r in self._free)

    @property
    def largest_free(self) -> int:
        """Return the size of the largest free range (0 when full)."""
        return max((r.size for r in self._free), default=0)

    def __len__(self) -> int:
        """Return the number of free ranges."""
        return len(self._free)

    def __iter__(self) -> Iterator[FreeRange]:
        """Iterate over copies of the free ranges in list order."""
        return iter(self.ranges)

    def find_fit(self, size: int) -> int | None:
        """Return the start of the first range that can hold *size* units.

        Args:
            size: Number of units requested.

        Returns:
            The start address of the first fitting range, or None.

        """
        for free_range in self._free:
            if free_range.size >= size:
                return free_range.start
        return None

    def reserve(self, address: int, size: int) -> None:
        """Consume *size* units from the front of the range at *address*.

        Args:
            address: Start of a free range (as returned by ``find_fit``).
            size: Number of units to take.

        Raises:
            ValueError: If no free range starts at *address* or it is
                too small.

        """
        index = self._index_of(address)
        free_range = self._free[index]
        if free_range.size < size:
            msg = f"Free range at {address} holds {free_range.size} units, cannot reserve {size}"
            raise ValueError(msg)
        free_range.start += size
        free_range.size -= size
        if free_range.size == 0:
            del self._free[index]

    def release(self, address: int, size: int) -> int:
        """Return a range to the head of the free list and coalesce.

        Args:
            address: First address of the range being returned.
            size: Number of units being returned.

        Returns:
            The number of merges performed while coalescing.

        """
        self._free.insert(0, FreeRange(start=address, size=size))
        return self._coalesce()

    def _coalesce(self) -> int:
        """Merge address-adjacent ranges until none touch."""
        merges = 0
        pair = self._adjacent_pair()
        while pair is not None:
            low, high = pair
            self._free[low].size += self._free[high].size
            del self._free[high]
            merges += 1
            pair = self._adjacent_pair()
        return merges

    def _adjacent_pair(self) -> tuple[int, int] | None:
        """Return list indices (low, high) of two touching ranges, if any."""
        by_start = {r.start: i for i, r in enumerate(self._free)}
        for i, free_range in enumerate(self._free):
            j = by_start.get(free_range.end)
            if j is not None:
                return i, j
        return None

    def _index_of(self, address: int) -> int:
        """Return the list index of the range starting at *address*."""
        for i, free_range in enumerate(self._free):
            if free_range.start == address:
                return i
        msg = f"No free range starts at address {address}"
        raise ValueError(msg)
