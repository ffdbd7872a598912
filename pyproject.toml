[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rotolog"
version = "0.1.0"
description = "Building blocks for log output to rotating files (by size or age, with cleanup of old files), with direct, buffered or threaded writing, and a syslog writer."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log rotation", "log files", "syslog", "buffered output"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rotolog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
