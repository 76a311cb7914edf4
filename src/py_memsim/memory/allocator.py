"""Allocator — first-fit allocation with a retry-on-free admission queue.

The allocator composes the three bookkeeping structures:

- ``AddressSpace`` — the free list (first-fit search, split, coalesce).
- ``ProcessTable`` — which process owns which blocks.
- ``AdmissionQueue`` — requests that did not fit, oldest first.

Every state change goes through one of four entry points:

``allocate``
    Find the first free range that fits, carve the block off its low
    end, and hand it to the process (creating the process on first
    use).  If nothing fits, the request joins the queue and the caller
    gets a ``Pending`` outcome back.
``free``
    Return one block to the free list, then give **exactly one** queued
    request another chance.  A retry that still does not fit goes to
    the back of the queue.
``create``
    Register a process that owns nothing yet.
``terminate``
    Free every block a process owns, one ``free`` at a time, so a
    process with k blocks can admit up to k queued requests.

Each operation validates its arguments before touching any state, so a
failed call leaves the simulation exactly as it was.
"""

from dataclasses import dataclass
from typing import TypeAlias

from py_memsim.logging import Logger, LogLevel
from py_memsim.memory.address_space import AddressSpace, FreeRange
from py_memsim.memory.admission import AdmissionQueue, PendingRequest
from py_memsim.memory.errors import AllocatorError, BlockNotFoundError, InvalidSizeError
from py_memsim.memory.process_table import Process, ProcessTable

DEFAULT_MEMORY_SIZE = 65536

_SOURCE = "allocator"


@dataclass(frozen=True)
class Grant:
    """A satisfied allocation.

    Attributes:
        pid: The process that received the block.
        start: First address of the block.
        size: Number of addresses in the block.
        from_queue: True when the request was served by a retry.

    """

    pid: int
    start: int
    size: int
    from_queue: bool = False


@dataclass(frozen=True)
class Pending:
    """A deferred allocation: the request is waiting in the queue."""

    pid: int
    size: int
    from_queue: bool = False


AllocationOutcome: TypeAlias = Grant | Pending


@dataclass(frozen=True)
class FreeResult:
    """What happened during one ``free`` call.

    Attributes:
        pid: The process that released the block.
        start: First address of the released block.
        size: Number of addresses released.
        process_removed: True if this was the process's last block.
        retry: Outcome of the queued request retried afterwards, if any.

    """

    pid: int
    start: int
    size: int
    process_removed: bool
    retry: AllocationOutcome | None = None


@dataclass(frozen=True)
class TerminateResult:
    """Every block released while terminating a process."""

    pid: int
    freed: tuple[FreeResult, ...]

    @property
    def retries(self) -> list[AllocationOutcome]:
        """Return the queue retries triggered, in order."""
        return [f.retry for f in self.freed if f.retry is not None]


@dataclass(frozen=True)
class MapEntry:
    """One row of the memory map: a free range or an allocated block."""

    start: int
    size: int
    owner: int | None = None

    @property
    def end(self) -> int:
        """Return the first address *after* the entry."""
        return self.start + self.size

    @property
    def is_free(self) -> bool:
        """Return True if no process owns this range."""
        return self.owner is None


class Allocator:
    """Variable-partition memory allocator over ``[0, memory_size)``."""

    def __init__(
        self,
        *,
        memory_size: int = DEFAULT_MEMORY_SIZE,
        logger: Logger | None = None,
    ) -> None:
        """Create an allocator whose whole address space is free.

        Args:
            memory_size: Number of addressable units.  Defaults to
                DEFAULT_MEMORY_SIZE (65536).
            logger: Optional event log to record every operation in.

        """
        self._space = AddressSpace(size=memory_size)
        self._table = ProcessTable()
        self._queue = AdmissionQueue()
        self._logger = logger

    @property
    def memory_size(self) -> int:
        """Return the total number of addressable units."""
        return self._space.size

    @property
    def address_space(self) -> AddressSpace:
        """Return the free-list manager."""
        return self._space

    @property
    def process_table(self) -> ProcessTable:
        """Return the process table."""
        return self._table

    @property
    def queue(self) -> list[PendingRequest]:
        """Return the waiting requests, oldest first."""
        return self._queue.entries

    @property
    def processes(self) -> list[Process]:
        """Return the live processes in lookup order."""
        return self._table.processes

    @property
    def free_ranges(self) -> list[FreeRange]:
        """Return the free ranges in search order."""
        return self._space.ranges

    def create(self, pid: int) -> Process:
        """Register a new process that owns no memory yet.

        Duplicate pids are allowed; the newest entry shadows older ones.
        """
        shadowing = pid in self._table
        process = self._table.create(pid)
        note = " (shadows an existing entry)" if shadowing else ""
        self._log(LogLevel.INFO, f"Process {pid} created{note}", pid=pid)
        return process

    def allocate(self, pid: int, size: int) -> AllocationOutcome:
        """Allocate *size* units to *pid* using first-fit.

        Args:
            pid: The requesting process (created if not yet live).
            size: Number of units requested.

        Returns:
            ``Grant`` with the block's start address, or ``Pending`` if
            the request was queued.

        Raises:
            InvalidSizeError: If size is zero or negative.

        """
        if size <= 0:
            msg = f"Invalid size {size}: allocation size must be positive"
            self._log(LogLevel.ERROR, msg, pid=pid)
            raise InvalidSizeError(msg)
        return self._place(pid, size)

    def free(self, pid: int, address: int) -> FreeResult:
        """Release the block of *pid* starting at *address*.

        After the range is back on the free list, the oldest queued
        request (if any) is retried once.

        Raises:
            ProcessNotFoundError: If no live process has that pid.
            BlockNotFoundError: If the process owns no block at *address*.

        """
        try:
            process = self._table.get(pid)
            if process.find_block(address) is None:
                msg = f"Address {address} not allocated to process {pid}"
                raise BlockNotFoundError(msg)
        except AllocatorError as e:
            self._log(LogLevel.ERROR, str(e), pid=pid)
            raise
        return self._release(process, address)

    def terminate(self, pid: int) -> TerminateResult:
        """Free every block of *pid* and deregister it.

        Blocks are freed from a snapshot of the process's block list,
        each through the normal free path with its own single retry.
        Retries that hand this same entry new blocks are freed as well,
        so the process never leaves the table still owning memory.

        Raises:
            ProcessNotFoundError: If no live process has that pid.

        """
        try:
            process = self._table.get(pid)
        except AllocatorError as e:
            self._log(LogLevel.ERROR, str(e), pid=pid)
            raise
        freed: list[FreeResult] = []
        while snapshot := process.blocks:
            freed.extend(self._release(process, block.start) for block in snapshot)
        self._table.deregister(process)
        self._log(LogLevel.INFO, f"Process {pid} terminated", pid=pid)
        return TerminateResult(pid=pid, freed=tuple(freed))

    def memory_map(self) -> list[MapEntry]:
        """Return free ranges and allocated blocks ordered by address."""
        entries = [MapEntry(start=r.start, size=r.size) for r in self._space.ranges]
        entries.extend(
            MapEntry(start=b.start, size=b.size, owner=b.owner) for b in self._table.blocks()
        )
        return sorted(entries, key=lambda e: e.start)

    # -- internals ---------------------------------------------------------

    def _place(self, pid: int, size: int, *, from_queue: bool = False) -> AllocationOutcome:
        """Run first-fit for a validated request; queue it on failure."""
        start = self._space.find_fit(size)
        if start is None:
            self._queue.enqueue(pid, size)
            self._log(
                LogLevel.WARNING,
                f"No free range holds {size} units; process {pid} queued "
                f"(queue length {len(self._queue)})",
                pid=pid,
            )
            return Pending(pid=pid, size=size, from_queue=from_queue)
        self._space.reserve(start, size)
        self._table.add_block(pid, start, size)
        self._log(
            LogLevel.INFO,
            f"Allocated {size} units to process {pid} at address {start}",
            pid=pid,
        )
        return Grant(pid=pid, start=start, size=size, from_queue=from_queue)

    def _release(self, process: Process, address: int) -> FreeResult:
        """Free one validated block, coalesce, then retry one queued request."""
        block = process.remove_block(address)
        removed = not process.blocks
        if removed:
            self._table.deregister(process)
        merges = self._space.release(block.start, block.size)
        self._log(
            LogLevel.INFO,
            f"Freed {block.size} units of process {process.pid} at address {block.start}",
            pid=process.pid,
        )
        if merges:
            self._log(
                LogLevel.DEBUG,
                f"Coalesced {merges} adjacent free range(s); "
                f"{len(self._space)} free range(s) remain",
                pid=process.pid,
            )
        return FreeResult(
            pid=process.pid,
            start=block.start,
            size=block.size,
            process_removed=removed,
            retry=self._retry_one(),
        )

    def _retry_one(self) -> AllocationOutcome | None:
        """Take the oldest queued request and run it through first-fit once."""
        request = self._queue.dequeue()
        if request is None:
            return None
        if self._logger is not None:
            self._logger.log(
                LogLevel.INFO,
                f"Retrying queued request of process {request.pid} for {request.size} units",
                source="queue",
                pid=request.pid,
            )
        return self._place(request.pid, request.size, from_queue=True)

    def _log(self, level: LogLevel, message: str, *, pid: int | None = None) -> None:
        """Record an allocator event when a logger is attached."""
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE, pid=pid)
