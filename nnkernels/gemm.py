"""Dense and sign-binary general matrix multiplication on float32 arrays."""

from __future__ import annotations

import time
from typing import Optional

import numpy as np


def _as_matrix(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float32)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got {arr.ndim} dimension(s)")
    return arr


def gemm(
    a,
    b,
    c=None,
    trans_a: bool = False,
    trans_b: bool = False,
    alpha: float = 1.0,
    beta: float = 1.0,
) -> np.ndarray:
    """Return ``beta * c + alpha * op(a) @ op(b)`` as a new float32 matrix.

    ``op(x)`` is ``x`` or its transpose, chosen by ``trans_a`` and ``trans_b``.
    When ``c`` is omitted it is taken as zeros of the result's shape. As in the
    reference behaviour, ``c`` is only scaled when ``beta`` differs from 1.
    """
    a_mat = _as_matrix(a, "a")
    b_mat = _as_matrix(b, "b")
    op_a = a_mat.T if trans_a else a_mat
    op_b = b_mat.T if trans_b else b_mat
    m, k = op_a.shape
    k_b, n = op_b.shape
    if k != k_b:
        raise ValueError(
            f"inner dimensions differ: op(a) is {m}x{k}, op(b) is {k_b}x{n}"
        )

    if c is None:
        result = np.zeros((m, n), dtype=np.float32)
    else:
        result = _as_matrix(c, "c").copy()
        if result.shape != (m, n):
            raise ValueError(f"c must be {m}x{n}, got {result.shape[0]}x{result.shape[1]}")

    if beta != 1:
        result *= np.float32(beta)
    result += (np.float32(alpha) * op_a) @ op_b
    return result.astype(np.float32, copy=False)


def gemm_bin(a_signs, b, c=None) -> np.ndarray:
    """Return ``c`` plus the product of a sign matrix with ``b``.

    Each non-zero entry of ``a_signs`` counts as +1 and each zero entry as -1,
    so row ``k`` of ``b`` is added to or subtracted from the output row.
    """
    signs = np.asarray(a_signs)
    if signs.ndim != 2:
        raise ValueError("a_signs must be a 2-D matrix")
    b_mat = _as_matrix(b, "b")
    m, k = signs.shape
    if b_mat.shape[0] != k:
        raise ValueError(
            f"inner dimensions differ: a_signs is {m}x{k}, b is "
            f"{b_mat.shape[0]}x{b_mat.shape[1]}"
        )
    n = b_mat.shape[1]
    if c is None:
        result = np.zeros((m, n), dtype=np.float32)
    else:
        result = _as_matrix(c, "c").copy()
        if result.shape != (m, n):
            raise ValueError(f"c must be {m}x{n}")
    weights = np.where(signs != 0, np.float32(1), np.float32(-1)).astype(np.float32)
    result += weights @ b_mat
    return result


def random_matrix(rows: int, cols: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Return a rows x cols float32 matrix of values drawn uniformly from [0, 1)."""
    if rows < 0 or cols < 0:
        raise ValueError("matrix dimensions must not be negative")
    generator = rng if rng is not None else np.random.default_rng()
    return generator.random((rows, cols)).astype(np.float32)


def time_random_matrix(trans_a: bool, trans_b: bool, m: int, k: int, n: int) -> float:
    """Time ten multiplications of random matrices, print a summary, return seconds."""
    a = random_matrix(k, m) if trans_a else random_matrix(m, k)
    b = random_matrix(n, k) if trans_b else random_matrix(k, n)
    c = random_matrix(m, n)

    start = time.process_time()
    for _ in range(10):
        c = gemm(a, b, c, trans_a, trans_b, 1.0, 1.0)
    elapsed = time.process_time() - start

    print(
        f"Matrix Multiplication {m}x{k} * {k}x{n}, TA={int(bool(trans_a))}, "
        f"TB={int(bool(trans_b))}: {elapsed:f} ms"
    )
    return elapsed