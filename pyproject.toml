[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webmonitor"
version = "0.1.0"
description = "In-process counters, states, delay histograms, counter diffs and handler tables for monitoring daemons"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "monitoring",
    "metrics",
    "counters",
    "prometheus",
    "histogram",
    "daemon",
    "reload",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["webmonitor"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
