[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ttrunksdb"
version = "0.1.0"
description = "A small log-structured merge-tree key-value store with a JSON-over-TCP server, client and tools"
requires-python = ">=3.10"
keywords = [
    "database",
    "key-value",
    "lsm-tree",
    "sstable",
    "memtable",
    "bloom-filter",
    "red-black-tree",
    "write-ahead-log",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = [
    "python-dotenv",
    "rich",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ttrunksdb-server = "ttrunksdb.server:main"
ttrunksdb-cli = "ttrunksdb.cli:main"
ttrunksdb-datagen = "ttrunksdb.datagen:main"
ttrunksdb-debug = "ttrunksdb.debug_tool:main"

[tool.hatch.build.targets.wheel]
packages = ["ttrunksdb"]

[tool.hatch.build.targets.sdist]
include = [
    "ttrunksdb",
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
