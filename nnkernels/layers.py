"""Layer kernels on flat float32 buffers: block transpose, max pooling, leaky ReLU."""

from __future__ import annotations

from typing import MutableSequence, Tuple

import numpy as np

_FLT_MAX = np.float32(np.finfo(np.float32).max)


def _check_dims(**dims: int) -> None:
    for name, value in dims.items():
        if value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def transpose_block(
    a,
    b: MutableSequence[float],
    n: int,
    m: int,
    lda: int,
    ldb: int,
    block_size: int,
) -> MutableSequence[float]:
    """Transpose an n x m matrix into ``b`` and return ``b``.

    Element ``(i, j)`` is read from ``a[i*lda + j]`` and written to
    ``b[j*ldb + i]``. ``block_size`` is the tile edge used to walk the matrix;
    it must be positive. ``b`` is updated in place.
    """
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    _check_dims(n=n, m=m)
    if n == 0 or m == 0:
        return b
    rows = np.arange(n)[:, None]
    cols = np.arange(m)[None, :]
    src = np.asarray(a, dtype=np.float32).ravel()
    sources = (rows * lda + cols).ravel()
    if sources.max() >= src.size:
        raise IndexError("a is too short for the given dimensions")
    values = src[sources]
    targets = (cols * ldb + rows).ravel()
    if isinstance(b, np.ndarray):
        flat = b.reshape(-1)
        if targets.max() >= flat.size:
            raise IndexError("b is too short for the given dimensions")
        flat[targets] = values
        if not np.shares_memory(flat, b):
            b[...] = flat.reshape(b.shape)
    else:
        if targets.max() >= len(b):
            raise IndexError("b is too short for the given dimensions")
        for target, value in zip(targets.tolist(), values.tolist()):
            b[target] = value
    return b


def forward_maxpool(
    src,
    size: int,
    w: int,
    h: int,
    out_w: int,
    out_h: int,
    c: int,
    pad: int,
    stride: int,
    batch: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Max-pool a batch of CHW images and return ``(output, indexes)``.

    The window of output position ``(i, j)`` starts at row
    ``i*stride - pad/2`` and column ``j*stride - pad/2`` (division rounding
    toward zero). Positions outside the image count as ``-FLT_MAX``. Each
    index is the flat position in ``src`` of the first strictly greatest value
    in window order (rows, then columns), or -1 when no value beat ``-FLT_MAX``.
    """
    _check_dims(size=size, w=w, h=h, out_w=out_w, out_h=out_h, c=c,
                stride=stride, batch=batch)
    planes = batch * c
    shape = (planes, out_h, out_w)
    best = np.full(shape, _FLT_MAX * -1, dtype=np.float32)
    best_idx = np.full(shape, -1, dtype=np.int64)
    if planes == 0 or out_h == 0 or out_w == 0:
        return best.ravel(), best_idx.ravel()

    needed = planes * h * w
    arr = np.asarray(src, dtype=np.float32).ravel()
    if arr.size < needed:
        raise ValueError(f"src holds {arr.size} values, {needed} are needed")

    offset = _trunc_div(-pad, 2)
    if h == 0 or w == 0:
        return best.ravel(), best_idx.ravel()
    image = arr[:needed].reshape(planes, h, w)
    base = (np.arange(planes) * h * w)[:, None, None]
    ii = np.arange(out_h)[:, None]
    jj = np.arange(out_w)[None, :]

    for dy in range(size):
        cur_h = offset + ii * stride + dy
        for dx in range(size):
            cur_w = offset + jj * stride + dx
            valid = (cur_h >= 0) & (cur_h < h) & (cur_w >= 0) & (cur_w < w)
            rows, cols = np.broadcast_arrays(
                np.clip(cur_h, 0, h - 1), np.clip(cur_w, 0, w - 1)
            )
            vals = np.where(valid, image[:, rows, cols], _FLT_MAX * -1).astype(np.float32)
            update = vals > best
            best = np.where(update, vals, best)
            best_idx = np.where(update, base + cur_w + w * cur_h, best_idx)
    return best.ravel(), best_idx.ravel()


def leaky_activate(values) -> np.ndarray:
    """Leaky ReLU: keep positive values, scale the rest by 0.1; returns float32."""
    arr = np.asarray(values, dtype=np.float32)
    scaled = (arr.astype(np.float64) * 0.1).astype(np.float32)
    return np.where(arr > 0, arr, scaled).astype(np.float32)