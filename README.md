# nnkernels

Plain-Python reference implementations of CPU kernels used for
convolutional neural-network inference, built on NumPy, plus a little
polygon geometry for region-of-interest logic.

## Install

```
pip install nnkernels
```

To run the tests:

```
pip install "nnkernels[test]"
pytest
```

## Modules

### `nnkernels.im2col`

- `im2col_get_pixel(im, height, width, channels, row, col, channel, pad)`
  returns the value at a padded position of a flat CHW image, or `0.0` when
  the position lies in the padding.
- `im2col_cpu(data_im, channels, height, width, ksize, stride, pad)` unfolds a
  CHW image into a `(channels*ksize*ksize, out_h*out_w)` matrix, returned
  flattened as a float32 array.
- `im2col_cpu_ext(...)` does the same with separate kernel size, padding,
  stride and dilation for each axis.

### `nnkernels.gemm`

- `gemm(a, b, c=None, trans_a=False, trans_b=False, alpha=1.0, beta=1.0)`
  returns a new float32 matrix `beta * c + alpha * op(a) @ op(b)`, where
  `op` optionally transposes its operand. Without `c`, zeros are used.
  Mismatched shapes raise `ValueError`.
- `gemm_bin(a_signs, b, c=None)` multiplies with a sign matrix: non-zero
  entries count as +1, zero entries as -1.
- `random_matrix(rows, cols, rng=None)` gives a float32 matrix of uniform
  values in [0, 1).
- `time_random_matrix(trans_a, trans_b, m, k, n)` times ten multiplications
  of random matrices, prints a one-line summary and returns the elapsed CPU
  time in seconds.

### `nnkernels.bits`

Bit-level helpers for binary networks: `set_bit` and `get_bit` on byte
buffers (low bit of byte 0 first), `float_to_bit` (packs `value > 0` into
`len // 8 + 1` bytes), `reverse_8_bit`, `reverse_32_bit`, `transpose32`
(32x32 bit-matrix transpose of 32 words), `transpose_bin` (block transpose
of a bit matrix stored in 32-bit words), `transpose_uint32`, `repack_input`
(interleaves channels in groups of 32) and `popcount32`.

### `nnkernels.binary`

XNOR/popcount products over bit-packed operands:
`gemm_nn_custom_bin_mean_transposed`, `gemm_nn_bin_32bit_packed`,
`gemm_nn_bin_transposed_32bit_packed` and `convolution_repacked`. Each
scales its scores by a per-row mean, updates the given flat output buffer
(NumPy array or list) in place and returns it.

### `nnkernels.conv`

- `convolution_2d(w, h, ksize, n, c, pad, weights, inputs, output)` adds a
  same-size, stride-1 direct convolution to `output` in place.
- `im2col_cpu_custom(...)` unfolds an image with the same layout as
  `im2col_cpu`.
- `im2col_cpu_custom_bin(..., data_col, bit_align)` unfolds into a bit
  buffer holding `value > 0`; only stride 1, pad 1 with an output as large
  as the input is supported, other settings raise `ValueError`.

### `nnkernels.layers`

- `transpose_block(a, b, n, m, lda, ldb, block_size)` transposes an
  `n x m` matrix into `b` in place.
- `forward_maxpool(src, size, w, h, out_w, out_h, c, pad, stride, batch)`
  returns `(output, indexes)`: the pooled values and the flat source index of
  each maximum (-1 where none was found).
- `leaky_activate(values)` returns the leaky ReLU (negative values times
  0.1) as a new float32 array.

### `nnkernels.geometry`

- `segment_intersection(p0, p1, p2, p3)` returns the crossing point of two
  segments or `None`.
- `is_in_polygon(poly, pt)` is a ray-casting point-in-polygon test.
- `polygon_area(poly)` gives the absolute shoelace area (0 for fewer than
  three vertices).
- `PolyInfo(name, poly)` is a named polygon with a `bbox` of
  `(centre x, centre y, width, height)` and a `contains(pt)` method.
- `load_regions(path)` reads `<polygons>` XML and returns
  `(parking_lots, handovers)` as lists of `PolyInfo`: regions whose name
  starts with `P` and regions named `HANDOVER`. A missing or unparsable file
  yields two empty lists.

## Example

```python
import numpy as np
from nnkernels.gemm import gemm
from nnkernels.geometry import is_in_polygon, polygon_area

a = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32)
b = np.eye(2, dtype=np.float32)
print(gemm(a, b))                         # [[1. 2.] [3. 4.]]

square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
print(polygon_area(square))               # 1.0
print(is_in_polygon(square, (0.5, 0.5)))  # True
```

## What it does not do

This is a library of kernels only. It has no command-line program, does not
load or run whole networks, has no GPU or SIMD-accelerated paths, and its
regions do no drawing on images and no tracking of objects over time; the
geometry module only loads regions and answers geometric questions about
them.