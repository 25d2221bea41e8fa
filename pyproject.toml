[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nnkernels"
version = "0.1.0"
description = "Reference CPU kernels for neural-network inference (GEMM, im2col, binary XNOR products, convolution, pooling) and planar region geometry."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "gemm",
    "im2col",
    "xnor",
    "binary neural network",
    "convolution",
    "maxpool",
    "polygon",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nnkernels"]

[tool.pytest.ini_options]
addopts = "-ra"
