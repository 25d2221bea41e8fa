"""XNOR/popcount matrix products and convolutions over bit-packed operands.

Each function adds to or writes into the flat output buffer ``c`` (or
``output``), which may be a numpy array or a list. The buffer is updated in
place and also returned.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

_CHUNK_BITS = 64


def _check_dims(**dims: int) -> None:
    for name, value in dims.items():
        if value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")


def _float_buffer(c) -> np.ndarray:
    return np.asarray(c, dtype=np.float32).ravel().copy()


def _write_back(c, flat: np.ndarray):
    if isinstance(c, np.ndarray):
        c[...] = flat.reshape(c.shape)
    else:
        c[:] = flat.tolist()
    return c


def _words(values) -> np.ndarray:
    return np.asarray(values, dtype=np.uint32).ravel()


def _bits(buf) -> np.ndarray:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(bytes(buf), dtype=np.uint8)
    else:
        arr = np.asarray(buf, dtype=np.uint8).ravel()
    return np.unpackbits(arr, bitorder="little")


def _padded(bits: np.ndarray, needed: int) -> np.ndarray:
    if bits.size >= needed:
        return bits
    return np.concatenate([bits, np.zeros(needed - bits.size, dtype=np.uint8)])


def _popcount(words: np.ndarray) -> np.ndarray:
    """Per-element count of set bits of a uint32 array."""
    arr = np.ascontiguousarray(words, dtype=np.uint32)
    flat = arr.ravel()
    counts = np.unpackbits(flat.view(np.uint8)).reshape(flat.size, 32).sum(axis=1)
    return counts.reshape(arr.shape)


def _xnor_score(a, b, mean_val: np.float32) -> np.ndarray:
    """(2 * popcount(~(a ^ b)) - 32) * mean, in float32."""
    xnor = np.invert(np.bitwise_xor(a, b)).astype(np.uint32)
    count = _popcount(xnor).astype(np.int64)
    return (2 * count - 32).astype(np.float32) * mean_val


def gemm_nn_custom_bin_mean_transposed(
    m: int,
    n: int,
    k: int,
    a,
    lda: int,
    b,
    ldb: int,
    c,
    ldc: int,
    mean_arr: Sequence[float],
):
    """Binary product of bit rows of ``a`` with bit rows of ``b``.

    Row ``i`` of ``a`` starts at bit ``i*lda`` and row ``j`` of ``b`` at bit
    ``j*ldb``. Bits are compared in 64-bit chunks read from the byte holding the
    chunk's first bit; bits past ``k`` in the last chunk are assumed equal and
    taken off the count. The result ``(2*count - k) * mean_arr[i]`` is written
    (not added) to ``c[i*ldc + j]``.
    """
    _check_dims(m=m, n=n, k=k)
    out = _float_buffer(c)
    if m == 0 or n == 0:
        return _write_back(c, out)

    starts = np.arange(0, max(k, 0), _CHUNK_BITS)
    window = np.arange(_CHUNK_BITS)
    if starts.size:
        last = int(starts[-1])
        extra = _CHUNK_BITS - (k - last) if k - last < _CHUNK_BITS else 0
        a_bits = _padded(_bits(a), ((m - 1) * lda + last) // 8 * 8 + _CHUNK_BITS)
        b_bits = _padded(_bits(b), ((n - 1) * ldb + last) // 8 * 8 + _CHUNK_BITS)
    else:
        extra = 0
        a_bits = b_bits = np.zeros(0, dtype=np.uint8)

    b_rows = []
    for j in range(n):
        if starts.size:
            offs = ((j * ldb + starts) // 8 * 8)[:, None] + window
            b_rows.append(b_bits[offs])
        else:
            b_rows.append(None)

    for i in range(m):
        mean_val = np.float32(mean_arr[i])
        a_seg = a_bits[((i * lda + starts) // 8 * 8)[:, None] + window] if starts.size else None
        for j, b_seg in enumerate(b_rows):
            count = int(np.count_nonzero(a_seg == b_seg)) - extra if starts.size else 0
            out[i * ldc + j] = np.float32(2 * count - k) * mean_val
    return _write_back(c, out)


def gemm_nn_bin_32bit_packed(
    m: int,
    n: int,
    k: int,
    a,
    lda: int,
    b,
    ldb: int,
    c,
    ldc: int,
    mean_arr: Sequence[float],
):
    """Add ``sum_s (2*popcount(~(A[i,s] ^ B[s,j])) - 32) * mean_arr[i]`` to ``C[i,j]``.

    ``A[i,s]`` is ``a[i*lda + s]``, ``B[s,j]`` is ``b[s*ldb + j]`` and ``C[i,j]``
    is ``c[i*ldc + j]``; all of ``a`` and ``b`` are 32-bit words.
    """
    _check_dims(m=m, n=n, k=k)
    out = _float_buffer(c)
    a_words = _words(a)
    b_words = _words(b)
    cols = np.arange(n)
    for i in range(m):
        mean_val = np.float32(mean_arr[i])
        targets = i * ldc + cols
        row = out[targets]
        for s in range(k):
            a_part = a_words[i * lda + s]
            row += _xnor_score(a_part, b_words[s * ldb + cols], mean_val)
        out[targets] = row
    return _write_back(c, out)


def gemm_nn_bin_transposed_32bit_packed(
    m: int,
    n: int,
    k: int,
    a,
    lda: int,
    b,
    ldb: int,
    c,
    ldc: int,
    mean_arr: Sequence[float],
):
    """Like :func:`gemm_nn_bin_32bit_packed` with ``B[j,s]`` read at ``b[j*ldb + s]``.

    The per-element sum over ``s`` is formed first and then added to ``c``.
    """
    _check_dims(m=m, n=n, k=k)
    out = _float_buffer(c)
    a_words = _words(a)
    b_words = _words(b)
    cols = np.arange(n)
    for i in range(m):
        mean_val = np.float32(mean_arr[i])
        vals = np.zeros(n, dtype=np.float32)
        for s in range(k):
            vals += _xnor_score(a_words[i * lda + s], b_words[cols * ldb + s], mean_val)
        targets = i * ldc + cols
        out[targets] = out[targets] + vals
    return _write_back(c, out)


def convolution_repacked(
    packed_input,
    packed_weights,
    output,
    w: int,
    h: int,
    c: int,
    n: int,
    size: int,
    pad: int,
    new_lda: int,
    mean_arr: Sequence[float],
):
    """Binary convolution over inputs and weights packed 32 channels per word.

    Word ``chan*w*h + y*w + x`` of ``packed_input`` holds channels
    ``32*chan .. 32*chan+31`` at pixel ``(y, x)``; the weight word for filter
    ``fil`` is ``packed_weights[fil*new_lda//32 + chan*size*size + f_y*size + f_x]``.
    Each output pixel ``output[fil*w*h + y*w + x]`` gains, per channel group,
    the sum over in-image kernel taps of ``(2*popcount(xnor) - 32) * mean_arr[fil]``.
    """
    _check_dims(w=w, h=h, c=c, n=n, size=size)
    out = _float_buffer(output)
    in_words = _words(packed_input)
    wt_words = _words(packed_weights)
    plane = w * h
    ys = np.arange(h)[:, None]
    xs = np.arange(w)[None, :]

    for fil in range(n):
        mean_val = np.float32(mean_arr[fil])
        base = fil * new_lda // 32
        for chan in range(c // 32):
            image = in_words[chan * plane:(chan + 1) * plane]
            if image.size != plane:
                raise IndexError("packed_input is too short for the given dimensions")
            image = image.reshape(h, w)
            total = np.zeros((h, w), dtype=np.float32)
            for f_y in range(size):
                iy = ys + f_y - pad
                for f_x in range(size):
                    ix = xs + f_x - pad
                    valid = (iy >= 0) & (iy < h) & (ix >= 0) & (ix < w)
                    if not valid.any():
                        continue
                    pixels = image[np.clip(iy, 0, h - 1), np.clip(ix, 0, w - 1)]
                    weight = wt_words[base + chan * size * size + f_y * size + f_x]
                    score = _xnor_score(pixels, weight, mean_val)
                    total += np.where(valid, score, np.float32(0)).astype(np.float32)
            targets = slice(fil * plane, (fil + 1) * plane)
            out[targets] = out[targets] + total.ravel()
    return _write_back(output, out)