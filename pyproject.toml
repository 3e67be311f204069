[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edline"
version = "0.1.0"
description = "Command history storage, search and navigation, with hinting and highlighting for interactive line editors"
requires-python = ">=3.10"
keywords = ["line-editor", "history", "readline", "shell", "autosuggestion", "highlighting"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals",
]
dependencies = [
    "filelock",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["edline"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
