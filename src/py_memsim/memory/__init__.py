"""Memory subsystem — free list, process table, admission queue, allocator.

Re-exports public symbols so callers can write::

    from py_memsim.memory import Allocator, Grant, Pending
"""

from py_memsim.memory.address_space import AddressSpace, FreeRange
from py_memsim.memory.admission import AdmissionQueue, PendingRequest
from py_memsim.memory.allocator import (
    DEFAULT_MEMORY_SIZE,
    AllocationOutcome,
    Allocator,
    FreeResult,
    Grant,
    MapEntry,
    Pending,
    TerminateResult,
)
from py_memsim.memory.errors import (
    AllocatorError,
    BlockNotFoundError,
    InvalidSizeError,
    ProcessNotFoundError,
)
from py_memsim.memory.process_table import AllocatedBlock, Process, ProcessTable

__all__ = [
    "DEFAULT_MEMORY_SIZE",
    "AddressSpace",
    "AdmissionQueue",
    "AllocatedBlock",
    "AllocationOutcome",
    "Allocator",
    "AllocatorError",
    "BlockNotFoundError",
    "FreeRange",
    "FreeResult",
    "Grant",
    "InvalidSizeError",
    "MapEntry",
    "Pending",
    "PendingRequest",
    "Process",
    "ProcessNotFoundError",
    "ProcessTable",
    "TerminateResult",
]
