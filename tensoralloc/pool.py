"""A fixed-size block pool with a LIFO free list."""

from __future__ import annotations

from dataclasses import dataclass, field

HEADER_SIZE = 8


class PoolExhaustedError(MemoryError):
    """Raised when every block of the pool is in use."""


@dataclass(frozen=True, eq=False)
class PoolBlock:
    """One block of a pool: its byte offset and a writable view of its memory."""

    pool: MemoryPool = field(repr=False)
    offset: int
    buffer: memoryview = field(repr=False)


class MemoryPool:
    """Hands out equally sized blocks carved from one buffer."""

    def __init__(self, block_size: int, num_blocks: int) -> None:
        if num_blocks < 1:
            raise ValueError("a pool needs at least one block")
        self.block_size = max(block_size, HEADER_SIZE)
        self.total_blocks = num_blocks
        self._memory: bytearray | None = bytearray(self.block_size * num_blocks)
        view = memoryview(self._memory)
        self._blocks = [
            PoolBlock(self, offset, view[offset:offset + self.block_size])
            for offset in range(0, self.block_size * num_blocks, self.block_size)
        ]
        self._free: list[PoolBlock] = []
        self._free_offsets: set[int] = set()
        self.reset()

    @property
    def free_blocks(self) -> int:
        return len(self._free)

    @property
    def closed(self) -> bool:
        return self._memory is None

    def _check_open(self) -> None:
        if self._memory is None:
            raise ValueError("pool is closed")

    def alloc(self) -> PoolBlock:
        """Take the block at the head of the free list."""
        self._check_open()
        if not self._free:
            raise PoolExhaustedError(f"all {self.total_blocks} blocks are in use")
        block = self._free.pop()
        self._free_offsets.discard(block.offset)
        return block

    def free(self, block: PoolBlock | None) -> None:
        """Return a block to the head of the free list; foreign blocks are ignored."""
        if block is None or block.pool is not self or self._memory is None:
            return
        if block.offset in self._free_offsets:
            raise ValueError(f"block at offset {block.offset} is already free")
        self._free.append(block)
        self._free_offsets.add(block.offset)

    def reset(self) -> None:
        """Mark every block free, restoring the original allocation order."""
        self._check_open()
        self._free = list(reversed(self._blocks))
        self._free_offsets = {block.offset for block in self._blocks}

    def close(self) -> None:
        """Release the pool's memory."""
        self._memory = None
        self._blocks = []
        self._free = []
        self._free_offsets = set()

    def __enter__(self) -> MemoryPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()