"""Tests for the shell (command dispatcher).

The shell turns a line of text into a call on the allocator and turns
the outcome, or any allocator error, into a message.  It never lets an
error end the session.
"""

import pytest

from py_memsim.shell import Shell
from py_memsim.simulator import Simulator, SimulatorState

SPACE_SIZE = 100


def _booted_shell() -> tuple[Simulator, Shell]:
    """Create a booted simulator and shell for testing."""
    simulator = Simulator(memory_size=SPACE_SIZE)
    simulator.boot()
    return simulator, Shell(simulator=simulator)


class TestShellBasics:
    """Verify dispatch and input rejection."""

    def test_requires_running_simulator(self) -> None:
        """A shell cannot be attached to a stopped simulator."""
        with pytest.raises(RuntimeError, match="running simulator"):
            Shell(simulator=Simulator())

    def test_blank_line(self) -> None:
        """An empty line should produce no output."""
        _simulator, shell = _booted_shell()
        assert shell.execute("   ") == ""

    def test_unknown_command(self) -> None:
        """An unknown command should be reported."""
        _simulator, shell = _booted_shell()
        assert shell.execute("defrag") == "Unknown command: defrag"

    def test_help_lists_commands(self) -> None:
        """Help should mention every core command."""
        _simulator, shell = _booted_shell()
        output = shell.execute("help")
        for name in ("create", "terminate", "allocate", "free", "show memory", "exit"):
            assert name in output

    def test_command_names(self) -> None:
        """command_names should expose the dispatch table sorted."""
        _simulator, shell = _booted_shell()
        assert shell.command_names == sorted(shell.command_names)
        assert "allocate" in shell.command_names

    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("create", "Usage: create <process_id>"),
            ("terminate 1 2", "Usage: terminate <process_id>"),
            ("allocate 1", "Usage: allocate <process_id> <size>"),
            ("free 1", "Usage: free <process_id> <address>"),
            ("show", "Usage: show memory|queue|processes"),
            ("show disk", "Usage: show memory|queue|processes"),
        ],
    )
    def test_usage_messages(self, command: str, expected: str) -> None:
        """Wrong argument counts should produce usage text."""
        _simulator, shell = _booted_shell()
        assert shell.execute(command) == expected

    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("create abc", "Error: invalid process_id 'abc'"),
            ("allocate x 5", "Error: invalid process_id 'x'"),
            ("allocate 1 big", "Error: invalid size 'big'"),
            ("free 1 0x10", "Error: invalid address '0x10'"),
        ],
    )
    def test_non_integer_arguments(self, command: str, expected: str) -> None:
        """Malformed numbers should be rejected before reaching the allocator."""
        simulator, shell = _booted_shell()
        assert shell.execute(command) == expected
        assert simulator.require_allocator().processes == []


class TestShellMemoryCommands:
    """Verify the allocator commands and their messages."""

    def test_allocate_message(self) -> None:
        """A grant should report size, pid, and address."""
        _simulator, shell = _booted_shell()
        assert shell.execute("allocate 1 60") == "Allocated 60 bytes to process 1 at address 0."

    def test_allocate_pending_message(self) -> None:
        """A queued request should say the process is waiting."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 60")
        output = shell.execute("allocate 2 50")
        assert output == "Not enough contiguous memory: process 2 is waiting for 50 bytes."

    def test_free_serves_waiting_process(self) -> None:
        """Freeing should report the queued process being served."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 60")
        shell.execute("allocate 2 50")
        output = shell.execute("free 1 0")
        assert output.splitlines() == [
            "Freed 60 bytes of process 1 at address 0.",
            "Process 2 is no longer waiting and is being allocated memory.",
            "Allocated 50 bytes to process 2 at address 0.",
        ]

    def test_free_with_retry_still_waiting(self) -> None:
        """A retried request that still does not fit should be reported."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 10")
        shell.execute("allocate 2 90")
        shell.execute("allocate 3 95")
        output = shell.execute("free 1 0")
        assert output.splitlines()[-1] == "Process 3 is still waiting for 95 bytes."

    def test_free_unknown_process(self) -> None:
        """Freeing for an unknown process should use the original wording."""
        _simulator, shell = _booted_shell()
        assert shell.execute("free 3 10") == "Error: Process 3 not found."

    def test_free_unknown_address(self) -> None:
        """Freeing an unowned address should name the address and process."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 10")
        assert shell.execute("free 1 5") == "Error: Address 5 not allocated to process 1."

    def test_invalid_size(self) -> None:
        """A negative size should be reported and nothing queued."""
        simulator, shell = _booted_shell()
        output = shell.execute("allocate 1 -5")
        assert output.startswith("Error: Invalid size -5")
        assert simulator.require_allocator().queue == []

    def test_create_and_terminate(self) -> None:
        """Create then terminate should report both steps."""
        _simulator, shell = _booted_shell()
        assert shell.execute("create 5") == "Process 5 created."
        assert shell.execute("terminate 5") == "Process 5 terminated."

    def test_terminate_unknown(self) -> None:
        """Terminating an unknown process should report it."""
        _simulator, shell = _booted_shell()
        assert shell.execute("terminate 9") == "Error: Process 9 not found."

    def test_terminate_reports_served_requests(self) -> None:
        """Requests served while terminating should be listed first."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 100")
        shell.execute("allocate 2 40")
        output = shell.execute("terminate 1")
        assert output.splitlines() == [
            "Process 2 is no longer waiting and is being allocated memory.",
            "Allocated 40 bytes to process 2 at address 0.",
            "Process 1 terminated.",
        ]

    def test_errors_do_not_stop_session(self) -> None:
        """The shell should keep working after an error."""
        simulator, shell = _booted_shell()
        shell.execute("free 3 10")
        assert simulator.state is SimulatorState.RUNNING
        assert shell.execute("allocate 1 10").startswith("Allocated")


class TestShellReports:
    """Verify show, stats, and history."""

    def test_show_memory(self) -> None:
        """The memory table should show owners and free ranges."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 60")
        output = shell.execute("show memory")
        assert "|             0 |            59 | Process 1       |" in output
        assert "|            60 |            99 | Free            |" in output

    def test_show_queue(self) -> None:
        """The queue report should list waiting processes in order."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 100")
        shell.execute("allocate 2 10")
        shell.execute("allocate 3 20")
        lines = shell.execute("show queue").splitlines()
        assert lines.index("Process 2 (10 bytes)") < lines.index("Process 3 (20 bytes)")

    def test_show_processes(self) -> None:
        """The process report should list each process's ranges."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 4 10")
        shell.execute("allocate 4 5")
        output = shell.execute("show processes")
        assert "[0, 10), [10, 15)" in output

    def test_stats(self) -> None:
        """Stats should show the free total."""
        _simulator, shell = _booted_shell()
        shell.execute("allocate 1 30")
        assert "free           70" in shell.execute("stats")

    def test_history(self) -> None:
        """History should list earlier commands in order."""
        _simulator, shell = _booted_shell()
        assert shell.execute("history") == "  1  history"
        shell.execute("create 1")
        assert "2  create 1" in shell.execute("history")


class TestShellExit:
    """Verify the exit command."""

    def test_exit_returns_sentinel(self) -> None:
        """The exit command should return the EXIT sentinel."""
        _simulator, shell = _booted_shell()
        assert shell.execute("exit") == Shell.EXIT_SENTINEL

    def test_exit_shuts_down(self) -> None:
        """The exit command should release all state."""
        simulator, shell = _booted_shell()
        shell.execute("allocate 1 10")
        shell.execute("exit")
        assert simulator.state is SimulatorState.SHUTDOWN
        assert simulator.allocator is None

    def test_commands_after_exit(self) -> None:
        """Commands after exit should be refused."""
        _simulator, shell = _booted_shell()
        shell.execute("exit")
        assert shell.execute("show memory") == "Error: simulator is not running"
