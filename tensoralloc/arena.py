"""A bump-pointer arena handing out slices of one large buffer."""

from __future__ import annotations

ARENA_SIZE = 10 * 1024 * 1024


class ArenaExhaustedError(MemoryError):
    """Raised when an allocation does not fit in the arena's remaining space."""


def round_size(size: int) -> int:
    """Return the number of bytes the arena reserves for a request of ``size``."""
    return (size + 7) & -7


class Arena:
    """A linear allocator over a single buffer, freed all at once by ``reset``.

    The buffer is created on the first allocation and released by ``close``;
    allocating after ``close`` creates a fresh buffer.
    """

    def __init__(self, size: int = ARENA_SIZE) -> None:
        if size <= 0:
            raise ValueError("arena size must be positive")
        self.total_size = size
        self.used = 0
        self._memory: bytearray | None = None

    @property
    def initialized(self) -> bool:
        return self._memory is not None

    @property
    def available(self) -> int:
        return self.total_size - self.used

    def allocate(self, size: int) -> memoryview:
        """Reserve ``size`` bytes and return a writable view of them."""
        if size < 0:
            raise ValueError("allocation size must be non-negative")
        if self._memory is None:
            self._memory = bytearray(self.total_size)
            self.used = 0
        reserved = round_size(size)
        if self.used + reserved > self.total_size:
            raise ArenaExhaustedError(
                f"arena out of memory: {reserved} bytes requested, {self.available} left"
            )
        start = self.used
        self.used += reserved
        return memoryview(self._memory)[start:start + size]

    def reset(self) -> None:
        """Make the whole arena available again; earlier views alias new ones."""
        self.used = 0

    def close(self) -> None:
        """Release the buffer."""
        self._memory = None
        self.used = 0

    def __enter__(self) -> Arena:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()