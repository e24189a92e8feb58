# tensoralloc

Three simple memory-management strategies. Each one hands out the buffers for
a small fully connected network, and each is timed against allocating a fresh
buffer for every tensor.

- **Arena** (`tensoralloc.arena.Arena`): a bump allocator over one region of
  10 MiB by default. The region is created on the first `allocate(size)`.
  Every request is rounded up by `round_size` (to a multiple of 8 bytes), and
  the caller gets a writable `memoryview` of exactly `size` bytes. `reset()`
  makes the whole region free again at once. `close()` drops the region. A
  request that does not fit raises `ArenaExhaustedError`, which is a
  `MemoryError`.
- **Pool** (`tensoralloc.pool.MemoryPool`): `num_blocks` blocks of equal size
  (at least 8 bytes each), kept on a last-in, first-out free list.
  - `alloc()` returns a `PoolBlock` with its `offset` and a writable `buffer`.
  - `free(block)` puts the block back. Blocks from another pool, and `None`, are ignored. Freeing a block twice raises `ValueError`.
  - `reset()` marks every block free again.
  - When the pool is empty, `alloc()` raises `PoolExhaustedError`.
- **Slab cache** (`tensoralloc.slab.SlabCache`): objects of one size carved
  from `Slab`s.
  - A slab is 4096 bytes. For objects over 1024 bytes it is the next multiple of 4096 above the object size. That larger size is logged at INFO level.
  - `alloc()` returns a `SlabObject` from the first slab that has room, and adds a new slab when none does.
  - `free(obj)` returns the object to its slab.

All three allocators work as context managers, and they call `close()` on exit.

The network side lives in `tensoralloc.tensor`. It has a row-major `Tensor`,
which is a view over a list, an `array('f')` or a float `memoryview`, with
`to_rows()`. It also has the in-place operations `matmul(a, b, out)`,
`add_bias(out, bias)` and `relu(t)`. Mismatched shapes raise `ValueError`.

## Installation

```
pip install .
```

Install with the `test` extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Running the benchmark

```
tensoralloc-bench [arena|pool|slab] [--iterations N] [--batch-size N]
                  [--input-dim N] [--hidden-dim N] [--output-dim N] [--seed N]
```

The defaults are:

| Setting | Default |
| --- | --- |
| allocator | `pool` |
| iterations | 100 |
| batch size | 32 |
| network | 784 inputs, 128 hidden units, 10 outputs |

The command builds a network with random weights. They are drawn from
[-5, 5] for `arena` and from [-0.5, 0.5] otherwise.

It then repeats the following for each iteration:

1. It runs a forward pass with plain allocation.
2. It runs a forward pass with the chosen allocator.
3. It evicts caches before each run by touching a 32 MiB buffer.
4. It measures each run in process CPU time.

A pool benchmark uses 10 blocks and resets the pool after each run. At the
end the command prints:

- the time of every run,
- the average time for each side,
- the percentage of time the allocator saved.

The input dimension must be at least the hidden dimension. The three hidden
layers reuse the leading rows of the first weight matrix.

## Using it from Python

```python
import random

from tensoralloc.arena import Arena
from tensoralloc.benchmark import Network, compare, run_arena, run_standard

rng = random.Random(0)
network = Network.random(8, 5, 3, 5.0, rng)

with Arena() as arena:
    rows = run_arena(network, arena, 2, rng)  # 2 rows of 3 outputs
    result = compare(
        "Custom",
        lambda: run_standard(network, 2, rng),
        lambda: run_arena(network, arena, 2, rng),
        10,
    )

print(result.baseline_average, result.candidate_average, result.improvement)
```

`run_pool` and `run_slab` take a `MemoryPool` or a `SlabCache` in the same
way, and they return every block or object to it after the pass.
`Network.forward(allocate, batch_size, rng)` accepts any callable
`allocate(rows, cols)` that returns a float buffer. `compare` returns a
`BenchmarkResult` with the per-iteration `baseline_times` and
`candidate_times`.

## Limits

The allocators manage buffers inside Python objects (`bytearray` slices). They
do not reserve or return memory at the operating-system level. The timings
therefore compare the Python-level bookkeeping of each strategy, and they do
not reflect native allocator performance.