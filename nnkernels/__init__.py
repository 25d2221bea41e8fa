"""Reference CPU kernels for neural-network inference and planar region geometry."""

__version__ = "0.1.0"

__all__ = ["binary", "bits", "conv", "gemm", "geometry", "im2col", "layers"]