[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fat16fs"
version = "0.1.0"
description = "A small FAT16-style file system kept in a single image file, with a command shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["fat16", "filesystem", "disk image", "shell"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fat16fs = "fat16fs.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["fat16fs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
