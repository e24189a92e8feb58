"""Forward passes of a small dense network under different allocators, timed side by side."""

from __future__ import annotations

import argparse
import math
import random
import statistics
import time
from array import array
from collections.abc import Callable, MutableSequence, Sequence
from dataclasses import dataclass, field

from .arena import Arena
from .pool import MemoryPool
from .slab import SlabCache
from .tensor import Tensor, add_bias, matmul, relu

FLOAT_SIZE = 4
INPUT_RANGE = 5.0
HIDDEN_LAYERS = 4
POOL_BLOCKS = 10
CACHE_FLUSH_BYTES = 32 * 1024 * 1024

Allocate = Callable[[int, int], MutableSequence[float]]


def _floats(buffer: memoryview) -> memoryview:
    """View a byte buffer as float32 values, ignoring any trailing partial value."""
    whole = len(buffer) // FLOAT_SIZE * FLOAT_SIZE
    return buffer[:whole].cast("f")


def _tensor_bytes(batch_size: int, input_dim: int, hidden_dim: int) -> int:
    """Size of the largest activation tensor of a forward pass."""
    return FLOAT_SIZE * batch_size * max(input_dim, hidden_dim)


@dataclass
class Network:
    """Weights of a network with one input layer, three hidden layers and an output layer.

    The hidden-to-hidden layers reuse the leading ``hidden_dim`` rows of ``w1``,
    so ``w1`` must have at least as many rows as columns.
    """

    w1: Tensor
    b1: Sequence[float]
    w2: Tensor
    b2: Sequence[float]

    def __post_init__(self) -> None:
        if min(self.w1.rows, self.w1.cols, self.w2.cols) < 1:
            raise ValueError("network dimensions must be positive")
        if self.w1.rows < self.w1.cols:
            raise ValueError("input dimension must be at least the hidden dimension")
        if self.w2.rows != self.w1.cols:
            raise ValueError("output weights must have one row per hidden unit")
        if len(self.b1) != self.w1.cols or len(self.b2) != self.w2.cols:
            raise ValueError("bias lengths must match the layer widths")

    @property
    def input_dim(self) -> int:
        return self.w1.rows

    @property
    def hidden_dim(self) -> int:
        return self.w1.cols

    @property
    def output_dim(self) -> int:
        return self.w2.cols

    @classmethod
    def random(
        cls,
        input_dim: int,
        hidden_dim: int,
        output_dim: int,
        scale: float = 0.5,
        rng: random.Random | None = None,
    ) -> Network:
        """Build a network whose weights and biases are uniform in ``[-scale, scale]``."""
        rng = random.Random() if rng is None else rng

        def draw(count: int) -> array:
            return array("f", (rng.uniform(-scale, scale) for _ in range(count)))

        w1 = Tensor(draw(input_dim * hidden_dim), input_dim, hidden_dim)
        b1 = draw(hidden_dim)
        w2 = Tensor(draw(hidden_dim * output_dim), hidden_dim, output_dim)
        b2 = draw(output_dim)
        return cls(w1, b1, w2, b2)

    def forward(
        self,
        allocate: Allocate,
        batch_size: int,
        rng: random.Random | None = None,
    ) -> list[list[float]]:
        """Run one pass on a random input batch, taking every buffer from ``allocate``.

        ``allocate(rows, cols)`` returns a float buffer of at least ``rows * cols``
        values. The input is drawn uniformly from ``[-5, 5]``.
        """
        if batch_size < 1:
            raise ValueError("batch size must be positive")
        rng = random.Random() if rng is None else rng
        hidden = self.hidden_dim

        source = Tensor(allocate(batch_size, self.input_dim), batch_size, self.input_dim)
        layers = [
            Tensor(allocate(batch_size, hidden), batch_size, hidden)
            for _ in range(HIDDEN_LAYERS)
        ]
        output = Tensor(allocate(batch_size, self.output_dim), batch_size, self.output_dim)

        for index in range(source.size):
            source.data[index] = rng.uniform(-INPUT_RANGE, INPUT_RANGE)

        square = Tensor(self.w1.data, hidden, hidden)
        previous, weights = source, self.w1
        for layer in layers:
            matmul(previous, weights, layer)
            add_bias(layer, self.b1)
            relu(layer)
            previous, weights = layer, square

        matmul(previous, self.w2, output)
        add_bias(output, self.b2)
        return output.to_rows()


@dataclass
class BenchmarkResult:
    """Per-iteration timings of a baseline and a candidate, in seconds."""

    name: str
    baseline_times: list[float] = field(default_factory=list)
    candidate_times: list[float] = field(default_factory=list)

    @property
    def iterations(self) -> int:
        return len(self.baseline_times)

    @property
    def baseline_average(self) -> float:
        return statistics.fmean(self.baseline_times)

    @property
    def candidate_average(self) -> float:
        return statistics.fmean(self.candidate_times)

    @property
    def improvement(self) -> float:
        """Percentage of the baseline's total time saved by the candidate."""
        total = sum(self.baseline_times)
        saved = total - sum(self.candidate_times)
        if total == 0:
            return math.nan if saved == 0 else math.copysign(math.inf, saved)
        return 100.0 * saved / total


def run_standard(
    network: Network, batch_size: int, rng: random.Random | None = None
) -> list[list[float]]:
    """One forward pass with a fresh buffer for every tensor."""

    def allocate(rows: int, cols: int) -> MutableSequence[float]:
        return array("f", bytes(FLOAT_SIZE * rows * cols))

    return network.forward(allocate, batch_size, rng)


def run_arena(
    network: Network, arena: Arena, batch_size: int, rng: random.Random | None = None
) -> list[list[float]]:
    """One forward pass with every tensor carved from ``arena``, reset beforehand."""
    arena.reset()

    def allocate(rows: int, cols: int) -> MutableSequence[float]:
        return arena.allocate(FLOAT_SIZE * rows * cols).cast("f")

    return network.forward(allocate, batch_size, rng)


def run_pool(
    network: Network, pool: MemoryPool, batch_size: int, rng: random.Random | None = None
) -> list[list[float]]:
    """One forward pass with every tensor in a block of ``pool``; blocks are returned after."""
    taken = []

    def allocate(rows: int, cols: int) -> MutableSequence[float]:
        block = pool.alloc()
        taken.append(block)
        return _floats(block.buffer)

    try:
        return network.forward(allocate, batch_size, rng)
    finally:
        for block in taken:
            pool.free(block)


def run_slab(
    network: Network, cache: SlabCache, batch_size: int, rng: random.Random | None = None
) -> list[list[float]]:
    """One forward pass with every tensor in an object of ``cache``; objects are returned after."""
    taken = []

    def allocate(rows: int, cols: int) -> MutableSequence[float]:
        obj = cache.alloc()
        taken.append(obj)
        return _floats(obj.buffer)

    try:
        return network.forward(allocate, batch_size, rng)
    finally:
        for obj in taken:
            cache.free(obj)


def _clear_cpu_cache() -> None:
    """Touch a buffer larger than typical CPU caches to evict earlier data."""
    flush = bytearray(CACHE_FLUSH_BYTES)
    flush[::4096] = b"\x01" * len(range(0, CACHE_FLUSH_BYTES, 4096))
    del flush


def _timed(action: Callable[[], object]) -> float:
    start = time.process_time()
    action()
    return time.process_time() - start


def compare(
    name: str,
    baseline: Callable[[], object],
    candidate: Callable[[], object],
    iterations: int,
) -> BenchmarkResult:
    """Time ``baseline`` and ``candidate`` alternately, flushing caches before each run."""
    if iterations < 1:
        raise ValueError("iterations must be positive")
    result = BenchmarkResult(name)
    for _ in range(iterations):
        _clear_cpu_cache()
        result.baseline_times.append(_timed(baseline))
        _clear_cpu_cache()
        result.candidate_times.append(_timed(candidate))
        time.sleep(0.001)
    return result


_LABELS = {"arena": "Custom", "pool": "Pool", "slab": "Slab"}
_SCALES = {"arena": 5.0, "pool": 0.5, "slab": 0.5}


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tensoralloc",
        description="Compare a custom allocator with plain allocation on a small network.",
    )
    parser.add_argument("allocator", nargs="?", choices=sorted(_LABELS), default="pool")
    parser.add_argument("--iterations", type=int, default=100)
    parser.add_argument("--batch-size", type=int, default=32)
    parser.add_argument("--input-dim", type=int, default=784)
    parser.add_argument("--hidden-dim", type=int, default=128)
    parser.add_argument("--output-dim", type=int, default=10)
    parser.add_argument("--seed", type=int, default=None)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the benchmark for the chosen allocator and print the timings."""
    parser = _parser()
    args = parser.parse_args(argv)
    if args.iterations < 1:
        parser.error("--iterations must be positive")
    if args.batch_size < 1:
        parser.error("--batch-size must be positive")

    rng = random.Random(args.seed)
    try:
        network = Network.random(
            args.input_dim, args.hidden_dim, args.output_dim, _SCALES[args.allocator], rng
        )
    except ValueError as error:
        parser.error(str(error))

    label = _LABELS[args.allocator]
    batch = args.batch_size
    max_size = _tensor_bytes(batch, args.input_dim, args.hidden_dim)

    def baseline() -> None:
        run_standard(network, batch, rng)

    if args.allocator == "arena":
        allocator = Arena()

        def candidate() -> None:
            run_arena(network, allocator, batch, rng)

    elif args.allocator == "pool":
        allocator = MemoryPool(max_size, POOL_BLOCKS)

        def candidate() -> None:
            run_pool(network, allocator, batch, rng)
            allocator.reset()

    else:
        allocator = SlabCache(max_size)

        def candidate() -> None:
            run_slab(network, allocator, batch, rng)

    print("Running benchmarks...")
    with allocator:
        result = compare(label, baseline, candidate, args.iterations)

    for standard_time, candidate_time in zip(result.baseline_times, result.candidate_times):
        print(f"Standard allocator took {standard_time:f} seconds")
        print(f"{label} allocator took {candidate_time:f} seconds")

    print(f"\n--- BENCHMARK RESULTS ({result.iterations} iterations) ---")
    print(f"Standard allocator average: {result.baseline_average:f} seconds")
    print(f"{label} allocator average: {result.candidate_average:f} seconds")
    if args.allocator == "arena":
        print(f"Improvement: {result.improvement:f}%")
    else:
        print(f"Improvement: {result.improvement:.2f}%")
    return 0