[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tensoralloc"
version = "0.1.0"
description = "Arena, pool and slab allocators timed against plain allocation on a small dense-network forward pass"
requires-python = ">=3.10"
dependencies = []
keywords = ["allocator", "arena", "memory pool", "slab", "benchmark", "tensor"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tensoralloc-bench = "tensoralloc.benchmark:main"

[tool.hatch.build.targets.wheel]
packages = ["tensoralloc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
