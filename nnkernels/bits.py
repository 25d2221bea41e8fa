"""Bit-level helpers for binary (XNOR) networks: packing, reversal and transposes."""

from __future__ import annotations

from typing import MutableSequence, Sequence

import numpy as np

_MASK32 = 0xFFFFFFFF

# (shift, mask) stages of the 32x32 bit-matrix transpose network.
_TRANSPOSE_STAGES = (
    (16, 0x0000FFFF),
    (8, 0x00FF00FF),
    (4, 0x0F0F0F0F),
    (2, 0x33333333),
    (1, 0x55555555),
)


def set_bit(buf: MutableSequence[int], index: int) -> None:
    """Set bit ``index`` of a byte buffer, counting from the low bit of byte 0."""
    if index < 0:
        raise IndexError("bit index must not be negative")
    byte, shift = divmod(index, 8)
    buf[byte] = int(buf[byte]) | (1 << shift)


def get_bit(buf: Sequence[int], index: int) -> int:
    """Return bit ``index`` of a byte buffer as 0 or 1."""
    if index < 0:
        raise IndexError("bit index must not be negative")
    byte, shift = divmod(index, 8)
    return (int(buf[byte]) >> shift) & 1


def float_to_bit(values) -> bytes:
    """Pack ``value > 0`` of each element into bits; the result has len//8 + 1 bytes."""
    arr = np.asarray(values, dtype=np.float32).ravel()
    size = arr.size
    packed = np.packbits(arr > 0, bitorder="little").tobytes()
    return packed + bytes(size // 8 + 1 - len(packed))


def reverse_8_bit(value: int) -> int:
    """Reverse the order of the bits of an 8-bit value."""
    a = value & 0xFF
    return ((((a * 0x0802) & 0x22110) | ((a * 0x8020) & 0x88440)) * 0x10101 >> 16) & 0xFF


def reverse_32_bit(value: int) -> int:
    """Reverse the order of the bits of a 32-bit value."""
    value &= _MASK32
    return (
        reverse_8_bit(value >> 24)
        | (reverse_8_bit(value >> 16) << 8)
        | (reverse_8_bit(value >> 8) << 16)
        | (reverse_8_bit(value) << 24)
    )


def _block_starts(j: int):
    """Indices k paired with k + j in one stage of the transpose network."""
    k = 0
    while k < 32:
        yield k
        k = (k + j + 1) & ~j


def transpose32(words: Sequence[int]) -> list:
    """Transpose a 32x32 bit matrix held as 32 words.

    Bit ``b`` of word ``k`` in the result is bit ``k`` of word ``b`` in the input.
    """
    a = [int(w) & _MASK32 for w in words]
    if len(a) != 32:
        raise ValueError(f"expected 32 words, got {len(a)}")
    for j, m in _TRANSPOSE_STAGES:
        for k in _block_starts(j):
            t = (a[k] ^ (a[k + j] >> j)) & m
            a[k] ^= t
            a[k + j] = (a[k + j] ^ (t << j)) & _MASK32
    top, bottom = a[:16], a[16:]
    return [reverse_32_bit(w) for w in reversed(bottom)] + [
        reverse_32_bit(w) for w in reversed(top)
    ]


def _transpose_block(a: Sequence[int], a_start: int, a_stride: int,
                     b: MutableSequence[int], b_start: int, b_stride: int) -> None:
    block = transpose32([a[a_start + r * a_stride] for r in range(32)])
    for r, word in enumerate(block):
        b[b_start + r * b_stride] = word


def transpose_bin(a: Sequence[int], b: MutableSequence[int], n: int, m: int,
                  lda: int, ldb: int) -> MutableSequence[int]:
    """Transpose an n x m bit matrix stored in 32-bit words, in blocks of 32x32.

    Bit ``(r, c)`` of ``a`` sits at bit index ``r*lda + c``; it is written to bit
    index ``c*ldb + r`` of ``b``. Whole 32x32 blocks are processed, so both
    buffers must cover the dimensions rounded up to a multiple of 32. ``b`` is
    updated in place and returned.
    """
    words = [int(w) for w in np.asarray(a, dtype=np.uint32).ravel()]
    for i in range(0, n, 32):
        for j in range(0, m, 32):
            a_index = i * lda + j
            b_index = j * ldb + i
            _transpose_block(words, a_index // 32, lda // 32, b, b_index // 32, ldb // 32)
    return b


def transpose_uint32(src: Sequence[int], dst: MutableSequence[int], src_h: int,
                     src_w: int, src_align: int, dst_align: int) -> MutableSequence[int]:
    """Transpose a src_h x src_w word matrix into ``dst`` and return ``dst``.

    Element ``(i, j)`` is read from ``src[i*src_align + j]`` and written to
    ``dst[j*dst_align//32 + i]``.
    """
    if src_h <= 0 or src_w <= 0:
        return dst
    rows = np.arange(src_h)[:, None]
    cols = np.arange(src_w)[None, :]
    src_arr = np.asarray(src, dtype=np.uint32).ravel()
    values = src_arr[rows * src_align + cols].ravel()
    targets = ((cols * dst_align) // 32 + rows).ravel()
    if isinstance(dst, np.ndarray):
        dst[targets] = values
    else:
        for target, value in zip(targets.tolist(), values.tolist()):
            dst[target] = value
    return dst


def repack_input(values, w: int, h: int, c: int) -> np.ndarray:
    """Interleave channels in groups of 32 so each pixel holds 32 consecutive values.

    Element ``(chan + p, i)`` of the CHW input lands at ``chan*w*h + i*32 + p``.
    """
    items = w * h
    groups = -(-c // 32) if c > 0 else 0
    needed = groups * 32 * items
    arr = np.asarray(values, dtype=np.float32).ravel()
    if arr.size < needed:
        raise ValueError(f"input holds {arr.size} values, {needed} are needed")
    return arr[:needed].reshape(groups, 32, items).transpose(0, 2, 1).ravel().copy()


def popcount32(value: int) -> int:
    """Number of set bits in the low 32 bits of ``value``."""
    return bin(value & _MASK32).count("1")