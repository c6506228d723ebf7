[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rekortiles"
version = "0.1.0"
description = "Signed notes, checkpoints, signing-algorithm policy and a tile-reading client for a tile-based transparency log"
requires-python = ">=3.10"
keywords = [
    "transparency-log",
    "checkpoint",
    "signed-note",
    "tiles",
    "signature",
    "supply-chain",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["rekortiles"]

[tool.hatch.build.targets.sdist]
include = [
    "rekortiles",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
