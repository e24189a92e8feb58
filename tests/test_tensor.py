from array import array

import pytest

from tensoralloc.tensor import Tensor, add_bias, matmul, relu


def test_to_rows_splits_row_major():
    t = Tensor([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], 2, 3)
    assert t.to_rows() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]


def test_to_rows_ignores_trailing_buffer():
    t = Tensor([1.0, 2.0, 3.0, 4.0, 9.0, 9.0], 2, 2)
    assert t.to_rows() == [[1.0, 2.0], [3.0, 4.0]]


def test_buffer_too_small_rejected():
    with pytest.raises(ValueError):
        Tensor([1.0, 2.0], 2, 2)


def test_negative_dimension_rejected():
    with pytest.raises(ValueError):
        Tensor([], -1, 2)


def test_matmul_known_product():
    a = Tensor([1.0, 2.0, 3.0, 4.0], 2, 2)
    b = Tensor([5.0, 6.0, 7.0, 8.0], 2, 2)
    out = Tensor([0.0] * 4, 2, 2)
    matmul(a, b, out)
    assert out.to_rows() == [[19.0, 22.0], [43.0, 50.0]]


def test_matmul_identity_keeps_values():
    values = [1.5, -2.0, 3.25, 0.5, 7.0, -1.0]
    a = Tensor(list(values), 2, 3)
    identity = Tensor([1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0], 3, 3)
    out = Tensor([0.0] * 6, 2, 3)
    matmul(a, identity, out)
    assert list(out.data) == values


def test_matmul_overwrites_previous_output():
    a = Tensor([1.0, 2.0], 1, 2)
    zero = Tensor([0.0, 0.0], 2, 1)
    out = Tensor([42.0], 1, 1)
    matmul(a, zero, out)
    assert out.data == [0.0]


def test_matmul_on_float_array_buffer():
    a = Tensor(array("f", [1.0, 2.0, 3.0, 4.0]), 2, 2)
    identity = Tensor(array("f", [1.0, 0.0, 0.0, 1.0]), 2, 2)
    out = Tensor(memoryview(bytearray(16)).cast("f"), 2, 2)
    matmul(a, identity, out)
    assert out.to_rows() == a.to_rows()


def test_matmul_shape_mismatch():
    a = Tensor([0.0] * 6, 2, 3)
    b = Tensor([0.0] * 4, 2, 2)
    with pytest.raises(ValueError):
        matmul(a, b, Tensor([0.0] * 4, 2, 2))


def test_matmul_wrong_output_shape():
    a = Tensor([0.0] * 4, 2, 2)
    b = Tensor([0.0] * 4, 2, 2)
    with pytest.raises(ValueError):
        matmul(a, b, Tensor([0.0] * 4, 1, 4))


def test_add_bias_then_negated_bias_restores():
    values = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    t = Tensor(list(values), 2, 3)
    bias = [0.5, -1.0, 2.0]
    add_bias(t, bias)
    assert t.data != values
    add_bias(t, [-x for x in bias])
    assert t.data == values


def test_add_bias_is_per_column():
    t = Tensor([0.0] * 6, 3, 2)
    add_bias(t, [1.0, 2.0])
    assert all(row == [1.0, 2.0] for row in t.to_rows())


def test_add_bias_too_short():
    with pytest.raises(ValueError):
        add_bias(Tensor([0.0] * 4, 2, 2), [1.0])


def test_relu_clamps_negatives_only():
    values = [-1.0, 2.0, -0.5, 0.0, 3.0, -7.0]
    t = Tensor(list(values), 2, 3)
    relu(t)
    assert all(v >= 0 for v in t.data)
    assert [v for v in t.data if v > 0] == [v for v in values if v > 0]


def test_relu_leaves_tail_untouched():
    t = Tensor([-1.0, -2.0, -3.0], 1, 2)
    relu(t)
    assert t.data[2] == -3.0
    assert t.data[:2] == [0.0, 0.0]