"""Direct convolution and column unfolding, including a bit-packed variant."""

from __future__ import annotations

from typing import MutableSequence

import numpy as np

from nnkernels.bits import set_bit
from nnkernels.im2col import im2col_cpu


def _check_dims(**dims: int) -> None:
    for name, value in dims.items():
        if value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")


def _flat(values, needed: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float32).ravel()
    if arr.size < needed:
        raise ValueError(f"{name} holds {arr.size} values, {needed} are needed")
    return arr


def _write_back(buf, flat: np.ndarray):
    if isinstance(buf, np.ndarray):
        buf[...] = flat.reshape(buf.shape)
    else:
        buf[:] = flat.tolist()
    return buf


def _col_dim(size: int, pad: int, ksize: int, stride: int) -> int:
    span = size + 2 * pad - ksize
    quotient = abs(span) // stride
    return (-quotient if span < 0 else quotient) + 1


def convolution_2d(
    w: int,
    h: int,
    ksize: int,
    n: int,
    c: int,
    pad: int,
    weights,
    inputs,
    output,
):
    """Add a same-size, stride-1 convolution of a CHW input to ``output``.

    ``weights`` holds ``n`` filters of ``c x ksize x ksize`` values and
    ``output`` holds ``n`` planes of ``h x w`` values. For each filter and
    channel the kernel taps that fall inside the image are summed, and that
    per-channel sum is added to ``output[fil*w*h + y*w + x]``. The buffer is
    updated in place and returned.
    """
    _check_dims(w=w, h=h, ksize=ksize, n=n, c=c)
    plane = w * h
    out = _flat(output, n * plane, "output").copy()
    if n == 0 or plane == 0:
        return _write_back(output, out)

    image = _flat(inputs, c * plane, "inputs")[: c * plane].reshape(c, h, w)
    kernel_size = ksize * ksize
    wts = _flat(weights, n * c * kernel_size, "weights")[: n * c * kernel_size]
    wts = wts.reshape(n, c, ksize, ksize)

    ys = np.arange(h)[:, None]
    xs = np.arange(w)[None, :]
    taps = []
    for f_y in range(ksize):
        iy = ys + f_y - pad
        for f_x in range(ksize):
            ix = xs + f_x - pad
            valid = (iy >= 0) & (iy < h) & (ix >= 0) & (ix < w)
            if valid.any():
                rows = np.clip(iy, 0, h - 1)
                cols = np.clip(ix, 0, w - 1)
                taps.append((f_y, f_x, rows, cols, valid))

    for fil in range(n):
        target = out[fil * plane:(fil + 1) * plane].reshape(h, w)
        for chan in range(c):
            channel = image[chan]
            total = np.zeros((h, w), dtype=np.float32)
            for f_y, f_x, rows, cols, valid in taps:
                product = channel[rows, cols] * wts[fil, chan, f_y, f_x]
                total += np.where(valid, product, np.float32(0)).astype(np.float32)
            target += total
        out[fil * plane:(fil + 1) * plane] = target.ravel()
    return _write_back(output, out)


def im2col_cpu_custom(
    data_im,
    channels: int,
    height: int,
    width: int,
    ksize: int,
    stride: int,
    pad: int,
) -> np.ndarray:
    """Unfold a CHW image into columns; same layout as :func:`im2col_cpu`."""
    return im2col_cpu(data_im, channels, height, width, ksize, stride, pad)


def im2col_cpu_custom_bin(
    data_im,
    channels: int,
    height: int,
    width: int,
    ksize: int,
    stride: int,
    pad: int,
    data_col: MutableSequence[int],
    bit_align: int,
) -> MutableSequence[int]:
    """Unfold a CHW image into a bit buffer holding ``value > 0`` per column entry.

    Row ``c`` of the unfolded matrix starts at bit ``c*bit_align``; the entry
    for output position ``(h, w)`` is bit ``c*bit_align + h*width + w``. Bits
    are only ever set, never cleared. Only the shape-preserving case
    (stride 1, pad 1, output as large as the input) is supported; anything else
    raises ValueError. ``data_col`` is updated in place and returned.
    """
    if stride <= 0:
        raise ValueError("stride must be positive")
    height_col = _col_dim(height, pad, ksize, stride)
    width_col = _col_dim(width, pad, ksize, stride)
    if not (height_col == height and width_col == width and stride == 1 and pad == 1):
        raise ValueError(
            "binary unfolding supports only stride 1 and pad 1 "
            "with an output as large as the input"
        )
    channels_col = channels * ksize * ksize
    if channels_col <= 0 or height_col <= 0 or width_col <= 0:
        return data_col

    columns = im2col_cpu(data_im, channels, height, width, ksize, stride, pad)
    columns = columns.reshape(channels_col, height_col * width_col)
    rows, positions = np.nonzero(columns > 0)
    for index in (rows * bit_align + positions).tolist():
        set_bit(data_col, index)
    return data_col