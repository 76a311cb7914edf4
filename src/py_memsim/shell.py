"""The shell — command interpreter for the simulator.

The shell reads a command string, parses it into a command name and
arguments, dispatches to the appropriate handler, and returns a string
result.  It is the only place that turns text into calls on the
allocator, and the place where every ``AllocatorError`` is caught and
reported, so a bad command never stops the session.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable and separates concerns (the caller decides how to
      display output).
    - **Command dispatch via a dict.**  Adding a new command means
      writing a method and adding one dict entry.
    - **Malformed input stops here.**  Missing or non-integer arguments
      are answered with a usage or error message before the allocator
      is touched.
"""

from collections.abc import Callable
from typing import TypeAlias

from py_memsim.logging import LogLevel
from py_memsim.memory.allocator import AllocationOutcome, Allocator, Grant
from py_memsim.memory.errors import AllocatorError
from py_memsim.report import render_memory, render_processes, render_queue
from py_memsim.simulator import Simulator, SimulatorState

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

SHOW_TARGETS = ("memory", "queue", "processes")


class Shell:
    """Command interpreter that operates on a running simulator."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, simulator: Simulator) -> None:
        """Create a shell attached to a running simulator.

        Args:
            simulator: A booted simulator session.

        Raises:
            RuntimeError: If the simulator is not in the RUNNING state.

        """
        if simulator.state is not SimulatorState.RUNNING:
            msg = f"Shell requires a running simulator (state: {simulator.state}, not running)"
            raise RuntimeError(msg)

        self._simulator = simulator
        self._history: list[str] = []

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "create": self._cmd_create,
            "terminate": self._cmd_terminate,
            "allocate": self._cmd_allocate,
            "free": self._cmd_free,
            "show": self._cmd_show,
            "stats": self._cmd_stats,
            "log": self._cmd_log,
            "history": self._cmd_history,
            "exit": self._cmd_exit,
        }

    @property
    def simulator(self) -> Simulator:
        """Return the simulator this shell drives."""
        return self._simulator

    @property
    def command_names(self) -> list[str]:
        """Return the names of all commands, sorted."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. "allocate 1 100").

        Returns:
            The command output as a string, or an error message.

        """
        stripped = command.strip()
        if not stripped:
            return ""
        self._history.append(stripped)

        name, *args = stripped.split()
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        if self._simulator.state is not SimulatorState.RUNNING:
            return "Error: simulator is not running"
        return handler(args)

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "\n".join(
            [
                "Available commands:",
                "create <process_id>: Create a new process",
                "terminate <process_id>: Terminate an existing process",
                "allocate <process_id> <size>: Allocate memory for a process",
                "free <process_id> <address>: Free memory allocated to a process",
                "show memory|queue|processes: Display simulator state",
                "stats: Summarise free space and the waiting queue",
                "log: Show the event log",
                "history: Show command history",
                "exit: Exit the simulator",
            ]
        )

    def _cmd_create(self, args: list[str]) -> str:
        """Register a new process."""
        if len(args) != 1:
            return "Usage: create <process_id>"
        pid = _parse_int(args[0], "process_id")
        if isinstance(pid, str):
            return pid
        self._allocator().create(pid)
        return f"Process {pid} created."

    def _cmd_terminate(self, args: list[str]) -> str:
        """Free all memory of a process and remove it."""
        if len(args) != 1:
            return "Usage: terminate <process_id>"
        pid = _parse_int(args[0], "process_id")
        if isinstance(pid, str):
            return pid
        try:
            result = self._allocator().terminate(pid)
        except AllocatorError as e:
            return f"Error: {e}."
        lines = [_describe_retry(r) for r in result.retries]
        lines.append(f"Process {pid} terminated.")
        return "\n".join(lines)

    def _cmd_allocate(self, args: list[str]) -> str:
        """Allocate a block of memory to a process."""
        expected_args = 2
        if len(args) != expected_args:
            return "Usage: allocate <process_id> <size>"
        pid = _parse_int(args[0], "process_id")
        if isinstance(pid, str):
            return pid
        size = _parse_int(args[1], "size")
        if isinstance(size, str):
            return size
        try:
            outcome = self._allocator().allocate(pid, size)
        except AllocatorError as e:
            return f"Error: {e}."
        return _describe_outcome(outcome)

    def _cmd_free(self, args: list[str]) -> str:
        """Release a block owned by a process."""
        expected_args = 2
        if len(args) != expected_args:
            return "Usage: free <process_id> <address>"
        pid = _parse_int(args[0], "process_id")
        if isinstance(pid, str):
            return pid
        address = _parse_int(args[1], "address")
        if isinstance(address, str):
            return address
        try:
            result = self._allocator().free(pid, address)
        except AllocatorError as e:
            return f"Error: {e}."
        lines = [f"Freed {result.size} bytes of process {pid} at address {address}."]
        if result.retry is not None:
            lines.append(_describe_retry(result.retry))
        return "\n".join(lines)

    def _cmd_show(self, args: list[str]) -> str:
        """Render the memory map, the queue, or the process list."""
        if len(args) != 1 or args[0] not in SHOW_TARGETS:
            return "Usage: show memory|queue|processes"
        allocator = self._allocator()
        match args[0]:
            case "memory":
                return render_memory(allocator.memory_map())
            case "queue":
                return render_queue(allocator.queue)
            case _:
                return render_processes(allocator.processes)

    def _cmd_stats(self, _args: list[str]) -> str:
        """Summarise the address space and the queue."""
        stats = self._simulator.stats()
        return "\n".join(f"{key:<14} {value}" for key, value in stats.items())

    def _cmd_log(self, _args: list[str]) -> str:
        """Show log entries at INFO and above."""
        logger = self._simulator.logger
        entries = logger.filter(min_level=LogLevel.INFO) if logger is not None else []
        return "\n".join(str(e) for e in entries) if entries else "No log entries."

    def _cmd_history(self, _args: list[str]) -> str:
        """Show command history."""
        if not self._history:
            return "No history."
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_exit(self, _args: list[str]) -> str:
        """Shut down the simulator and signal the REPL to stop."""
        self._simulator.shutdown()
        return self.EXIT_SENTINEL

    def _allocator(self) -> Allocator:
        """Return the allocator of the running session."""
        return self._simulator.require_allocator()


def _parse_int(text: str, name: str) -> int | str:
    """Parse an integer argument, or return the error message for it."""
    try:
        return int(text)
    except ValueError:
        return f"Error: invalid {name} '{text}'"


def _describe_outcome(outcome: AllocationOutcome) -> str:
    """Return the message for a direct allocate call."""
    if isinstance(outcome, Grant):
        return f"Allocated {outcome.size} bytes to process {outcome.pid} at address {outcome.start}."
    return (
        f"Not enough contiguous memory: process {outcome.pid} "
        f"is waiting for {outcome.size} bytes."
    )


def _describe_retry(outcome: AllocationOutcome) -> str:
    """Return the message for a queued request retried after a free."""
    if isinstance(outcome, Grant):
        return (
            f"Process {outcome.pid} is no longer waiting and is being allocated memory.\n"
            + _describe_outcome(outcome)
        )
    return f"Process {outcome.pid} is still waiting for {outcome.size} bytes."
