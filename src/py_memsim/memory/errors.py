"""Exceptions raised by the allocator core.

Every failure the core can report is an ``AllocatorError``, so the shell
can recover from all of them at one place.  A deferred allocation is
*not* an error: it comes back as a ``Pending`` outcome instead.
"""


class AllocatorError(Exception):
    """Base class for recoverable allocator failures."""


class InvalidSizeError(AllocatorError):
    """Raise when an allocation asks for zero or negative units."""


class ProcessNotFoundError(AllocatorError):
    """Raise when no live process has the requested pid."""


class BlockNotFoundError(AllocatorError):
    """Raise when a process owns no block at the given address."""
