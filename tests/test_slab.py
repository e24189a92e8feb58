import pytest

from tensoralloc.slab import HEADER_SIZE, PAGE_SIZE, SlabCache, SlabObject


def test_small_objects_use_one_page():
    cache = SlabCache(64)
    assert cache.slab_size == PAGE_SIZE == 4096
    assert cache.obj_size == 64


def test_object_size_minimum():
    assert SlabCache(2).obj_size == HEADER_SIZE


@pytest.mark.parametrize("obj_size", [1025, 4096, 5000, 32 * 784 * 4])
def test_large_objects_get_larger_slabs(obj_size):
    cache = SlabCache(obj_size)
    assert cache.slab_size % PAGE_SIZE == 0
    assert obj_size < cache.slab_size <= obj_size + PAGE_SIZE
    obj = cache.alloc()
    assert len(obj.buffer) == obj_size
    assert cache.slabs[0].total_objects == cache.slab_size // obj_size


def test_no_slab_until_first_alloc():
    cache = SlabCache(64)
    assert cache.slabs == ()
    obj = cache.alloc()
    assert isinstance(obj, SlabObject)
    assert len(cache.slabs) == 1
    assert obj.offset == 0


def test_allocation_order_within_slab():
    cache = SlabCache(128)
    offsets = [cache.alloc().offset for _ in range(3)]
    assert offsets == [0, 128, 256]


def test_full_slab_grows_new_slab_at_front():
    cache = SlabCache(1024)
    first = [cache.alloc() for _ in range(cache.slab_size // 1024)]
    old_slab = cache.slabs[0]
    assert old_slab.free_objects == 0
    extra = cache.alloc()
    assert len(cache.slabs) == 2
    assert cache.slabs[0] is extra.slab
    assert cache.slabs[1] is old_slab
    assert all(obj.slab is old_slab for obj in first)


def test_search_starts_with_newest_slab():
    cache = SlabCache(1024)
    first = [cache.alloc() for _ in range(cache.slab_size // 1024)]
    newest = cache.alloc().slab
    cache.free(first[0])
    assert cache.alloc().slab is newest


def test_free_returns_slot_lifo():
    cache = SlabCache(64)
    a, b = cache.alloc(), cache.alloc()
    slab = a.slab
    before = slab.free_objects
    cache.free(a)
    assert slab.free_objects == before + 1
    assert cache.alloc() is a
    cache.free(b)
    assert cache.alloc() is b


def test_free_foreign_object_ignored():
    cache = SlabCache(64)
    other = SlabCache(64)
    cache.alloc()
    before = cache.slabs[0].free_objects
    cache.free(other.alloc())
    cache.free(None)
    assert cache.slabs[0].free_objects == before


def test_double_free_rejected():
    cache = SlabCache(64)
    obj = cache.alloc()
    cache.free(obj)
    with pytest.raises(ValueError):
        cache.free(obj)


def test_objects_do_not_overlap():
    cache = SlabCache(16)
    a, b = cache.alloc(), cache.alloc()
    a.buffer[:] = b"\x01" * 16
    b.buffer[:] = b"\x02" * 16
    assert bytes(a.buffer) == b"\x01" * 16


def test_close_drops_slabs():
    with SlabCache(64) as cache:
        cache.alloc()
    assert cache.slabs == ()
    with pytest.raises(ValueError):
        cache.alloc()