"""The simulator session — lifecycle owner of all allocator state.

All mutable state (free list, process table, admission queue, event
log) lives in one ``Simulator`` object instead of module globals.  The
shell, the reports, the REPL and the web UI are all handed the same
session explicitly.

The session follows an explicit state machine:

    SHUTDOWN  →  BOOTING  →  RUNNING  →  SHUTTING_DOWN  →  SHUTDOWN

Boot sequence (order matters):
    0. Logger — capture events from the start.
    1. Allocator — free list covering the whole address space.

Shutdown releases everything in reverse order.  Nothing survives a
shutdown; the next boot starts from an empty address space.
"""

from enum import StrEnum
from time import monotonic

from py_memsim.logging import Logger, LogLevel
from py_memsim.memory.allocator import DEFAULT_MEMORY_SIZE, Allocator

_SOURCE = "simulator"


class SimulatorState(StrEnum):
    """Represent the lifecycle phases of a simulator session."""

    SHUTDOWN = "shutdown"
    BOOTING = "booting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Simulator:
    """A single simulation session over a fixed-size address space.

    Subsystem references are None when the session is not running,
    and are initialised during boot.
    """

    def __init__(self, *, memory_size: int = DEFAULT_MEMORY_SIZE) -> None:
        """Create a simulator in the SHUTDOWN state.

        Args:
            memory_size: Number of addressable units, fixed for the
                lifetime of the session.  Defaults to
                DEFAULT_MEMORY_SIZE (65536).

        Raises:
            ValueError: If memory_size is not positive.

        """
        if memory_size <= 0:
            msg = f"Memory size must be positive, got {memory_size}"
            raise ValueError(msg)
        self._state = SimulatorState.SHUTDOWN
        self._memory_size = memory_size
        self._boot_time: float | None = None
        self._allocator: Allocator | None = None
        self._logger: Logger | None = None
        self._boot_log: list[str] = []

    @property
    def state(self) -> SimulatorState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def memory_size(self) -> int:
        """Return the configured address-space size."""
        return self._memory_size

    @property
    def uptime(self) -> float:
        """Return seconds elapsed since boot, or 0.0 if not running."""
        if self._boot_time is None:
            return 0.0
        return monotonic() - self._boot_time

    @property
    def allocator(self) -> Allocator | None:
        """Return the allocator, or None if not booted."""
        return self._allocator

    @property
    def logger(self) -> Logger | None:
        """Return the event log, or None if not booted."""
        return self._logger

    def dmesg(self) -> list[str]:
        """Return the boot log messages."""
        return list(self._boot_log)

    def require_allocator(self) -> Allocator:
        """Return the allocator of a running session.

        Raises:
            RuntimeError: If the simulator is not running.

        """
        if self._state is not SimulatorState.RUNNING or self._allocator is None:
            msg = f"Simulator is not running (state: {self._state})"
            raise RuntimeError(msg)
        return self._allocator

    def boot(self) -> None:
        """Transition the simulator from SHUTDOWN → RUNNING.

        Raises:
            RuntimeError: If the simulator is not in the SHUTDOWN state.

        """
        if self._state is not SimulatorState.SHUTDOWN:
            msg = f"Cannot boot: simulator is {self._state}, expected shutdown"
            raise RuntimeError(msg)

        self._state = SimulatorState.BOOTING
        self._boot_time = monotonic()

        # 0. Logger — capture events from the start
        self._logger = Logger()
        self._boot_log.append("[OK] Event log")

        # 1. Allocator — one free range spanning the whole space
        self._allocator = Allocator(memory_size=self._memory_size, logger=self._logger)
        self._boot_log.append(f"[OK] Address space (0..{self._memory_size - 1}, first-fit)")
        self._boot_log.append("[OK] Admission queue (FIFO, one retry per free)")

        self._state = SimulatorState.RUNNING
        self._logger.log(LogLevel.INFO, "Simulator boot complete", source=_SOURCE)

    def shutdown(self) -> None:
        """Transition the simulator from RUNNING → SHUTDOWN, dropping all state.

        Raises:
            RuntimeError: If the simulator is not in the RUNNING state.

        """
        if self._state is not SimulatorState.RUNNING:
            msg = f"Cannot shutdown: simulator is {self._state}, expected running"
            raise RuntimeError(msg)

        self._state = SimulatorState.SHUTTING_DOWN
        self._allocator = None
        self._boot_log.clear()
        self._logger = None
        self._boot_time = None
        self._state = SimulatorState.SHUTDOWN

    def stats(self) -> dict[str, int]:
        """Return a summary of the address space and queue.

        Raises:
            RuntimeError: If the simulator is not running.

        """
        allocator = self.require_allocator()
        space = allocator.address_space
        return {
            "memory_size": space.size,
            "free": space.total_free,
            "used": space.size - space.total_free,
            "free_ranges": len(space),
            "largest_free": space.largest_free,
            "processes": len(allocator.process_table),
            "queued": len(allocator.queue),
        }
