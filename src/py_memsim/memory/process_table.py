"""Process table — which process owns which address ranges.

Each live process is a ``Process`` record holding the blocks it owns.
Process ids are supplied from outside and are not required to be
unique: ``create`` always registers a fresh entry, and lookups return
the **most recently created** entry for an id.  An older entry with the
same id becomes visible again once the newer one is deregistered.

The table is ordered newest-first, and so is each process's block list:
the block allocated last is the first one visited by ``blocks``.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from py_memsim.memory.errors import BlockNotFoundError, ProcessNotFoundError


@dataclass(frozen=True)
class AllocatedBlock:
    """A contiguous range of addresses owned by one process.

    Attributes:
        start: First address in the block.
        size: Number of addresses in the block.
        owner: Pid of the owning process.

    """

    start: int
    size: int
    owner: int

    @property
    def end(self) -> int:
        """Return the first address *after* the block."""
        return self.start + self.size


@dataclass(eq=False)
class Process:
    """A simulated process: an id plus the blocks it owns.

    Equality is identity, so two entries sharing a pid stay distinct.
    """

    pid: int
    _blocks: list[AllocatedBlock] = field(default_factory=list, repr=False)

    @property
    def blocks(self) -> list[AllocatedBlock]:
        """Return a snapshot of the owned blocks, newest first."""
        return list(self._blocks)

    @property
    def allocated(self) -> int:
        """Return the total number of addresses owned."""
        return sum(b.size for b in self._blocks)

    def add_block(self, start: int, size: int) -> AllocatedBlock:
        """Record a newly allocated block and return it."""
        block = AllocatedBlock(start=start, size=size, owner=self.pid)
        self._blocks.insert(0, block)
        return block

    def find_block(self, start: int) -> AllocatedBlock | None:
        """Return the block starting at *start*, or None."""
        return next((b for b in self._blocks if b.start == start), None)

    def remove_block(self, start: int) -> AllocatedBlock:
        """Remove and return the block starting at *start*.

        Raises:
            BlockNotFoundError: If no owned block starts there.

        """
        block = self.find_block(start)
        if block is None:
            msg = f"Address {start} not allocated to process {self.pid}"
            raise BlockNotFoundError(msg)
        self._blocks.remove(block)
        return block


class ProcessTable:
    """Registry of live processes, searched newest-first."""

    def __init__(self) -> None:
        """Create an empty table."""
        self._processes: list[Process] = []

    @property
    def processes(self) -> list[Process]:
        """Return the live processes in lookup order (newest first)."""
        return list(self._processes)

    def __len__(self) -> int:
        """Return the number of registered entries."""
        return len(self._processes)

    def __iter__(self) -> Iterator[Process]:
        """Iterate over the live processes in lookup order."""
        return iter(self.processes)

    def __contains__(self, pid: object) -> bool:
        """Return True if some live process has this pid."""
        return any(p.pid == pid for p in self._processes)

    def find(self, pid: int) -> Process | None:
        """Return the most recently created process with *pid*, or None."""
        return next((p for p in self._processes if p.pid == pid), None)

    def get(self, pid: int) -> Process:
        """Return the process with *pid*.

        Raises:
            ProcessNotFoundError: If no live process has that pid.

        """
        process = self.find(pid)
        if process is None:
            msg = f"Process {pid} not found"
            raise ProcessNotFoundError(msg)
        return process

    def create(self, pid: int) -> Process:
        """Register a new, empty process even if *pid* is already live."""
        process = Process(pid=pid)
        self._processes.insert(0, process)
        return process

    def get_or_create(self, pid: int) -> Process:
        """Return the live process with *pid*, registering one if needed."""
        process = self.find(pid)
        if process is None:
            process = self.create(pid)
        return process

    def add_block(self, pid: int, start: int, size: int) -> AllocatedBlock:
        """Record a block for *pid*, registering the process if needed."""
        return self.get_or_create(pid).add_block(start, size)

    def remove_block(self, pid: int, start: int) -> int:
        """Remove a block and return its size.

        A process left without blocks is deregistered.

        Raises:
            ProcessNotFoundError: If no live process has that pid.
            BlockNotFoundError: If the process owns no block at *start*.

        """
        process = self.get(pid)
        block = process.remove_block(start)
        if not process.blocks:
            self.deregister(process)
        return block.size

    def deregister(self, process: Process) -> bool:
        """Remove this exact entry from the table.

        Returns:
            True if the entry was registered, False if it was already gone.

        """
        for i, entry in enumerate(self._processes):
            if entry is process:
                del self._processes[i]
                return True
        return False

    def blocks(self) -> list[AllocatedBlock]:
        """Return every allocated block across all live processes."""
        return [b for p in self._processes for b in p.blocks]
