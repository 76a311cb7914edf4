"""Interactive REPL (Read-Eval-Print Loop) for the simulator.

The REPL boots a simulator session, creates a shell, and enters the
classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The shell is fully testable (returns strings, no I/O); the REPL is the
thin I/O wrapper that connects it to ``stdin``/``stdout``.  The helper
functions (``build_prompt``, ``format_banner``) are pure and testable.
"""

import readline

from py_memsim.completer import Completer
from py_memsim.shell import Shell
from py_memsim.simulator import Simulator, SimulatorState

_BANNER_WIDTH = 42


def format_banner(boot_log: list[str], help_text: str) -> str:
    """Format the welcome banner shown before the first prompt.

    Args:
        boot_log: Boot messages from the simulator.
        help_text: The shell's command summary.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n   Welcome to Memory Management Simulator!\n  {border}\n\n"
    body = "\n".join(f"  {msg}" for msg in boot_log)
    return f"{header}{body}\n\n{help_text}\n"


def build_prompt(simulator: Simulator) -> str:
    """Build the prompt, showing free space while the session runs."""
    if simulator.state is not SimulatorState.RUNNING or simulator.allocator is None:
        return "memsim $ "
    space = simulator.allocator.address_space
    return f"memsim [{space.total_free}/{space.size} free] $ "


def run() -> None:
    """Boot the simulator and run the interactive REPL.

    This is the ``py-memsim`` console entry point.  It handles:
    - Session boot and shell creation.
    - The read-eval-print loop.
    - Graceful handling of Ctrl+C and Ctrl+D.
    - Clean shutdown.
    """
    simulator = Simulator()
    simulator.boot()
    shell = Shell(simulator=simulator)

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(simulator.dmesg(), shell.execute("help")))  # noqa: T201

    try:
        while simulator.state is SimulatorState.RUNNING:
            try:
                command = input(build_prompt(simulator))
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        if simulator.state is SimulatorState.RUNNING:
            simulator.shutdown()
        print("Simulator stopped.")  # noqa: T201
