"""Context-aware tab completer for the simulator shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)`` which analyses the input
context and returns a list of candidate strings.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

from py_memsim.shell import SHOW_TARGETS

if TYPE_CHECKING:
    from py_memsim.shell import Shell

# Commands that accept subcommands as a second word.
_SUBCOMMANDS: dict[str, tuple[str, ...]] = {
    "show": SHOW_TARGETS,
}

# Commands whose first argument is the pid of a live process.
_PID_COMMANDS: frozenset[str] = frozenset(["terminate", "free"])

# Commands whose third word is an address owned by the process in word two.
_ADDRESS_COMMANDS: frozenset[str] = frozenset(["free"])

_PID_POSITION = 2
_ADDRESS_POSITION = 3


class Completer:
    """Context-aware tab completer for the simulator shell."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance.

        Args:
            shell: The shell whose commands and simulator are used to
                   generate completion candidates.

        """
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Args:
            text: The partial word being completed.
            state: Index into the candidate list (0, 1, 2, …).

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Sorted list of matching candidates.

        """
        words = line.lstrip().split()

        # No words yet, or still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

        # Position of the word being completed (1-based)
        position = len(words) + 1 if line.endswith(" ") else len(words)
        cmd = words[0]

        if cmd in _SUBCOMMANDS and position == _PID_POSITION:
            return sorted(sub for sub in _SUBCOMMANDS[cmd] if sub.startswith(text))
        if cmd in _PID_COMMANDS and position == _PID_POSITION:
            return self._complete_pids(text)
        if cmd in _ADDRESS_COMMANDS and position == _ADDRESS_POSITION:
            return self._complete_addresses(words[1], text)
        return []

    def _complete_pids(self, text: str) -> list[str]:
        """Complete pids of live processes."""
        allocator = self._shell.simulator.allocator
        if allocator is None:
            return []
        pids = {str(p.pid) for p in allocator.processes}
        return sorted(pid for pid in pids if pid.startswith(text))

    def _complete_addresses(self, pid_text: str, text: str) -> list[str]:
        """Complete block start addresses owned by the given pid."""
        allocator = self._shell.simulator.allocator
        if allocator is None:
            return []
        try:
            pid = int(pid_text)
        except ValueError:
            return []
        process = allocator.process_table.find(pid)
        if process is None:
            return []
        starts = sorted(b.start for b in process.blocks)
        return [str(s) for s in starts if str(s).startswith(text)]
