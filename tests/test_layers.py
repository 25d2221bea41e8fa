import numpy as np
import pytest

from nnkernels.layers import forward_maxpool, leaky_activate, transpose_block

FLT_MAX = np.float32(np.finfo(np.float32).max)


def test_transpose_block_matches_numpy_transpose():
    a = np.arange(15, dtype=np.float32)
    b = np.zeros(15, dtype=np.float32)
    result = transpose_block(a, b, 3, 5, 5, 3, 2)
    assert result is b
    np.testing.assert_array_equal(b.reshape(5, 3), a.reshape(3, 5).T)


@pytest.mark.parametrize("block_size", [1, 2, 3, 8])
def test_transpose_block_independent_of_block_size(block_size):
    rng = np.random.default_rng(1)
    a = rng.random(7 * 6).astype(np.float32)
    b = np.zeros(7 * 6, dtype=np.float32)
    transpose_block(a, b, 7, 6, 6, 7, block_size)
    np.testing.assert_array_equal(b.reshape(6, 7), a.reshape(7, 6).T)


def test_transpose_block_round_trip_with_list():
    a = [float(v) for v in range(12)]
    b = [0.0] * 12
    transpose_block(a, b, 3, 4, 4, 3, 4)
    back = [0.0] * 12
    transpose_block(b, back, 4, 3, 3, 4, 4)
    assert back == a


def test_transpose_block_rejects_zero_block():
    with pytest.raises(ValueError):
        transpose_block([1.0], [0.0], 1, 1, 1, 1, 0)


def test_maxpool_two_by_two_stride_two():
    src = np.arange(16, dtype=np.float32)
    dst, idx = forward_maxpool(src, 2, 4, 4, 2, 2, 1, 0, 2, 1)
    np.testing.assert_array_equal(dst, [5, 7, 13, 15])
    np.testing.assert_array_equal(idx, [5, 7, 13, 15])


def test_maxpool_indexes_point_at_maxima():
    rng = np.random.default_rng(3)
    src = rng.standard_normal(2 * 3 * 5 * 5).astype(np.float32)
    dst, idx = forward_maxpool(src, 2, 5, 5, 5, 5, 3, 1, 1, 2)
    assert dst.shape == (2 * 3 * 25,)
    assert np.all(idx >= 0)
    np.testing.assert_array_equal(src[idx], dst)


def test_maxpool_window_outside_image_gives_sentinel():
    src = np.ones(4, dtype=np.float32)
    dst, idx = forward_maxpool(src, 1, 2, 2, 3, 1, 1, 0, 1, 1)
    assert dst[2] == -FLT_MAX
    assert idx[2] == -1
    np.testing.assert_array_equal(dst[:2], [1, 1])


def test_maxpool_first_of_equal_values_wins():
    src = np.full(4, 2.0, dtype=np.float32)
    dst, idx = forward_maxpool(src, 2, 2, 2, 1, 1, 1, 0, 2, 1)
    assert dst[0] == np.float32(2.0)
    assert idx[0] == 0


def test_maxpool_rejects_short_input():
    with pytest.raises(ValueError):
        forward_maxpool(np.zeros(3), 2, 2, 2, 1, 1, 1, 0, 2, 1)


def test_maxpool_rejects_negative_dimension():
    with pytest.raises(ValueError):
        forward_maxpool(np.zeros(4), -1, 2, 2, 1, 1, 1, 0, 2, 1)


def test_leaky_activate_values():
    out = leaky_activate([2.0, -1.0, 0.0])
    assert out.dtype == np.float32
    assert out[0] == np.float32(2.0)
    assert out[1] == np.float32(-0.1)
    assert out[2] == np.float32(0.0)


def test_leaky_activate_keeps_positive_and_shrinks_negative():
    rng = np.random.default_rng(5)
    values = rng.standard_normal(100).astype(np.float32)
    out = leaky_activate(values)
    pos = values > 0
    np.testing.assert_array_equal(out[pos], values[pos])
    assert np.all(np.abs(out[~pos]) <= np.abs(values[~pos]))
    assert np.all(np.sign(out[~pos]) == np.sign(values[~pos]))
    np.testing.assert_allclose(out[~pos], values[~pos] * 0.1, rtol=1e-6)