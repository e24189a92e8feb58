"""A slab cache: fixed-size objects carved from page-sized slabs grown on demand."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

HEADER_SIZE = 8
PAGE_SIZE = 4096
LARGE_OBJECT = 1024

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SlabObject:
    """One object slot: the slab holding it, its offset and a view of its bytes."""

    slab: Slab = field(repr=False)
    offset: int
    buffer: memoryview = field(repr=False)


class Slab:
    """One contiguous slab divided into object slots with a LIFO free list."""

    def __init__(self, obj_size: int, size: int) -> None:
        self.size = size
        self.obj_size = obj_size
        self.total_objects = size // obj_size
        self.memory = bytearray(size)
        view = memoryview(self.memory)
        slots = [
            SlabObject(self, offset, view[offset:offset + obj_size])
            for offset in range(0, self.total_objects * obj_size, obj_size)
        ]
        self._free = list(reversed(slots))
        self._free_offsets = {slot.offset for slot in slots}

    @property
    def free_objects(self) -> int:
        return len(self._free)

    def _take(self) -> SlabObject:
        obj = self._free.pop()
        self._free_offsets.discard(obj.offset)
        return obj

    def _give(self, obj: SlabObject) -> None:
        if obj.offset in self._free_offsets:
            raise ValueError(f"object at offset {obj.offset} is already free")
        self._free.append(obj)
        self._free_offsets.add(obj.offset)


class SlabCache:
    """Allocates objects of one size, adding a slab whenever all are full."""

    def __init__(self, obj_size: int) -> None:
        if obj_size < 0:
            raise ValueError("object size must be non-negative")
        self.obj_size = max(obj_size, HEADER_SIZE)
        if obj_size > LARGE_OBJECT:
            self.slab_size = PAGE_SIZE * (obj_size // PAGE_SIZE + 1)
            logger.info("Using larger slab size: %d bytes", self.slab_size)
        else:
            self.slab_size = PAGE_SIZE
        self._slabs: list[Slab] = []
        self.closed = False

    @property
    def slabs(self) -> tuple[Slab, ...]:
        """The cache's slabs, most recently created first."""
        return tuple(self._slabs)

    def alloc(self) -> SlabObject:
        """Take a free object from the first slab that has one, growing if needed."""
        if self.closed:
            raise ValueError("slab cache is closed")
        slab = next((s for s in self._slabs if s.free_objects), None)
        if slab is None:
            slab = Slab(self.obj_size, self.slab_size)
            self._slabs.insert(0, slab)
        return slab._take()

    def free(self, obj: SlabObject | None) -> None:
        """Return an object to its slab; objects from other caches are ignored."""
        if obj is None or not any(slab is obj.slab for slab in self._slabs):
            return
        obj.slab._give(obj)

    def close(self) -> None:
        """Drop every slab."""
        self._slabs.clear()
        self.closed = True

    def __enter__(self) -> SlabCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()