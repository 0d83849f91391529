[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "firestarter"
version = "0.1.0"
description = "Optimisation and measurement core of a processor stress test: NSGA-II search over payload instruction groups, metric collection and run configuration."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "stress-test",
    "benchmark",
    "power",
    "energy",
    "rapl",
    "nsga2",
    "multi-objective",
    "optimization",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["firestarter"]

[tool.hatch.build.targets.sdist]
include = ["firestarter", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
