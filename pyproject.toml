[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "linetrail"
version = "0.1.0"
description = "Lazily indexed, bidirectional line access to large and growing logs"
requires-python = ">=3.10"
dependencies = []
keywords = ["log", "index", "lines", "tail", "reverse", "iterator", "timestamp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
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
packages = ["linetrail"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
