"""Image-to-column transforms used to express convolutions as matrix products."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _output_dim(size: int, pad: int, extent: int, stride: int) -> int:
    """Number of output positions along one axis, with truncating division."""
    if stride <= 0:
        raise ValueError("stride must be positive")
    span = size + 2 * pad - extent
    quotient = abs(span) // stride
    if span < 0:
        quotient = -quotient
    return quotient + 1


def _as_image(data_im, channels: int, height: int, width: int) -> np.ndarray:
    flat = np.asarray(data_im, dtype=np.float32).ravel()
    needed = channels * height * width
    if flat.size < needed:
        raise ValueError(
            f"image holds {flat.size} values, {needed} are needed "
            f"for {channels}x{height}x{width}"
        )
    return flat[:needed].reshape(channels, height, width)


def _gather(
    image: np.ndarray,
    chan: np.ndarray,
    rows: np.ndarray,
    cols: np.ndarray,
) -> np.ndarray:
    """Read image[chan, rows, cols] with zeros wherever the position is outside."""
    _, height, width = image.shape
    valid = (rows >= 0) & (rows < height) & (cols >= 0) & (cols < width)
    if height == 0 or width == 0:
        return np.zeros(valid.shape, dtype=np.float32)
    values = image[chan, np.clip(rows, 0, height - 1), np.clip(cols, 0, width - 1)]
    return np.where(valid, values, np.float32(0)).astype(np.float32)


def im2col_get_pixel(
    im: Sequence[float],
    height: int,
    width: int,
    channels: int,
    row: int,
    col: int,
    channel: int,
    pad: int,
) -> float:
    """Return the pixel at a padded position, or 0 when it falls in the padding."""
    row -= pad
    col -= pad
    if row < 0 or col < 0 or row >= height or col >= width:
        return 0.0
    return float(im[col + width * (row + height * channel)])


def im2col_cpu(
    data_im,
    channels: int,
    height: int,
    width: int,
    ksize: int,
    stride: int,
    pad: int,
) -> np.ndarray:
    """Unfold a CHW image into columns of shape (channels*ksize*ksize, out_h*out_w).

    The result is returned flattened in row-major order.
    """
    height_col = _output_dim(height, pad, ksize, stride)
    width_col = _output_dim(width, pad, ksize, stride)
    channels_col = channels * ksize * ksize
    if height_col <= 0 or width_col <= 0 or channels_col <= 0:
        return np.zeros(0, dtype=np.float32)

    image = _as_image(data_im, channels, height, width)
    c = np.arange(channels_col)
    w_offset = c % ksize
    h_offset = (c // ksize) % ksize
    c_im = c // ksize // ksize

    rows = (
        h_offset[:, None, None]
        + (np.arange(height_col) * stride)[None, :, None]
        - pad
    )
    cols = (
        w_offset[:, None, None]
        + (np.arange(width_col) * stride)[None, None, :]
        - pad
    )
    chan = c_im[:, None, None]
    return _gather(image, chan, rows, cols).ravel()


def im2col_cpu_ext(
    data_im,
    channels: int,
    height: int,
    width: int,
    kernel_h: int,
    kernel_w: int,
    pad_h: int,
    pad_w: int,
    stride_h: int,
    stride_w: int,
    dilation_h: int,
    dilation_w: int,
) -> np.ndarray:
    """Unfold a CHW image with separate kernel, padding, stride and dilation per axis.

    The result has layout (channels, kernel_h, kernel_w, out_h, out_w), flattened.
    """
    output_h = _output_dim(height, pad_h, dilation_h * (kernel_h - 1) + 1, stride_h)
    output_w = _output_dim(width, pad_w, dilation_w * (kernel_w - 1) + 1, stride_w)
    if output_h <= 0 or output_w <= 0 or channels <= 0 or kernel_h <= 0 or kernel_w <= 0:
        return np.zeros(0, dtype=np.float32)

    image = _as_image(data_im, channels, height, width)
    chan = np.arange(channels)[:, None, None, None, None]
    rows = (
        -pad_h
        + (np.arange(kernel_h) * dilation_h)[None, :, None, None, None]
        + (np.arange(output_h) * stride_h)[None, None, None, :, None]
    )
    cols = (
        -pad_w
        + (np.arange(kernel_w) * dilation_w)[None, None, :, None, None]
        + (np.arange(output_w) * stride_w)[None, None, None, None, :]
    )
    rows, cols, chan = np.broadcast_arrays(rows, cols, chan)
    return _gather(image, chan, rows, cols).ravel()