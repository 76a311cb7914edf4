"""Admission queue — allocation requests waiting for memory.

When no free range can hold a request, the request is parked here
instead of failing.  Every successful ``free`` takes exactly one entry
from the front and tries it again.  The queue is strictly FIFO: no
priorities, no de-duplication, and a small late request never jumps
ahead of a large early one.
"""

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class PendingRequest:
    """An allocation request that could not be satisfied yet."""

    pid: int
    size: int


class AdmissionQueue:
    """FIFO of pending allocation requests."""

    def __init__(self) -> None:
        """Create an empty queue."""
        self._entries: deque[PendingRequest] = deque()

    def __len__(self) -> int:
        """Return the number of waiting requests."""
        return len(self._entries)

    def __iter__(self) -> Iterator[PendingRequest]:
        """Iterate over waiting requests, oldest first."""
        return iter(list(self._entries))

    @property
    def entries(self) -> list[PendingRequest]:
        """Return the waiting requests, oldest first."""
        return list(self._entries)

    def enqueue(self, pid: int, size: int) -> PendingRequest:
        """Append a request to the back of the queue and return it."""
        request = PendingRequest(pid=pid, size=size)
        self._entries.append(request)
        return request

    def dequeue(self) -> PendingRequest | None:
        """Remove and return the oldest request, or None if empty."""
        if not self._entries:
            return None
        return self._entries.popleft()

    def peek(self) -> PendingRequest | None:
        """Return the oldest request without removing it."""
        return self._entries[0] if self._entries else None

    def clear(self) -> None:
        """Drop every waiting request."""
        self._entries.clear()
