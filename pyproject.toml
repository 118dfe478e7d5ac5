[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "buriedpipe"
version = "0.1.0"
description = "Discrete-element simulation of a deformable pipe buried in a periodic granular packing of disks"
requires-python = ">=3.10"
dependencies = []
keywords = ["discrete element method", "granular", "buried pipe", "periodic cell", "mechanics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
buriedpipe = "buriedpipe.run:main"

[tool.setuptools.packages.find]
include = ["buriedpipe*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
