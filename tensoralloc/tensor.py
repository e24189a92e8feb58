"""Dense row-major float tensors and the layer operations applied to them."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from itertools import islice


@dataclass
class Tensor:
    """A row-major matrix view over a mutable sequence of floats.

    ``data`` may be a list, an ``array('f')`` or a float-cast ``memoryview``
    handed out by one of the allocators; it may be longer than
    ``rows * cols``, in which case only the leading elements are used.
    """

    data: MutableSequence[float]
    rows: int
    cols: int

    def __post_init__(self) -> None:
        if self.rows < 0 or self.cols < 0:
            raise ValueError("tensor dimensions must be non-negative")
        if len(self.data) < self.rows * self.cols:
            raise ValueError(
                f"buffer holds {len(self.data)} values, "
                f"{self.rows}x{self.cols} tensor needs {self.rows * self.cols}"
            )

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def to_rows(self) -> list[list[float]]:
        """Return the tensor's contents as a list of row lists."""
        flat = list(islice(self.data, self.size))
        return [flat[start:start + self.cols] for start in range(0, self.size, self.cols or 1)][: self.rows] \
            if self.cols else [[] for _ in range(self.rows)]


def matmul(a: Tensor, b: Tensor, out: Tensor) -> Tensor:
    """Write the matrix product ``a @ b`` into ``out`` and return ``out``."""
    if a.cols != b.rows:
        raise ValueError(f"cannot multiply {a.rows}x{a.cols} by {b.rows}x{b.cols}")
    if out.rows != a.rows or out.cols != b.cols:
        raise ValueError(
            f"output is {out.rows}x{out.cols}, product is {a.rows}x{b.cols}"
        )
    b_rows = b.to_rows()
    b_columns = [[row[j] for row in b_rows] for j in range(b.cols)]
    products = (
        sum(x * y for x, y in zip(a_row, column))
        for a_row in a.to_rows()
        for column in b_columns
    )
    for index, value in enumerate(products):
        out.data[index] = value
    return out


def add_bias(out: Tensor, bias: Sequence[float]) -> Tensor:
    """Add ``bias[j]`` to every element of column ``j`` of ``out``, in place."""
    if len(bias) < out.cols:
        raise ValueError(f"bias has {len(bias)} values, tensor has {out.cols} columns")
    for index in range(out.size):
        out.data[index] += bias[index % out.cols]
    return out


def relu(t: Tensor) -> Tensor:
    """Clamp every negative element of ``t`` to zero, in place."""
    for index, value in enumerate(islice(t.data, t.size)):
        if value < 0:
            t.data[index] = 0.0
    return t