"""Arena, pool and slab allocators, dense tensor operations and a benchmark comparing them."""

__version__ = "0.1.0"

__all__ = ["arena", "benchmark", "pool", "slab", "tensor"]