"""Report generators — render allocator state as text tables.

These functions are read-only views: they take the data the allocator
exposes and return strings, never touching the allocator itself.
"""

from collections.abc import Iterable

from py_memsim.memory.admission import PendingRequest
from py_memsim.memory.allocator import MapEntry
from py_memsim.memory.process_table import Process

_MEMORY_RULE = "-" * 51
_QUEUE_RULE = "-" * 15


def format_status(entry: MapEntry) -> str:
    """Return the Status column text for a memory-map row."""
    return "Free" if entry.owner is None else f"Process {entry.owner}"


def render_memory(entries: Iterable[MapEntry]) -> str:
    """Render the memory map as a table with inclusive end addresses.

    Args:
        entries: Map rows ordered by address.

    """
    lines = [
        "Memory Status:",
        _MEMORY_RULE,
        "| Start Address | End Address   | Status          |",
        _MEMORY_RULE,
    ]
    lines.extend(
        f"| {e.start:>13} | {e.end - 1:>13} | {format_status(e):<15} |" for e in entries
    )
    lines.append(_MEMORY_RULE)
    return "\n".join(lines)


def render_queue(requests: Iterable[PendingRequest]) -> str:
    """Render the admission queue in FIFO order."""
    lines = ["Process Queue:", _QUEUE_RULE]
    lines.extend(f"Process {r.pid} ({r.size} bytes)" for r in requests)
    lines.append(_QUEUE_RULE)
    return "\n".join(lines)


def render_processes(processes: Iterable[Process]) -> str:
    """Render live processes with their blocks, in lookup order."""
    lines = ["PID    BLOCKS  BYTES   RANGES"]
    for p in processes:
        blocks = sorted(p.blocks, key=lambda b: b.start)
        spans = ", ".join(f"[{b.start}, {b.end})" for b in blocks) or "-"
        lines.append(f"{p.pid:<6} {len(blocks):<7} {p.allocated:<7} {spans}")
    return "\n".join(lines)
