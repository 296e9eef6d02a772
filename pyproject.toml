[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sectorfs"
version = "0.1.0"
description = "A small flat file system stored on a simulated sector disk kept in a host file"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "disk", "simulation", "sectors", "education"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
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
sectorfs = "sectorfs.fstest:main"

[tool.hatch.build.targets.wheel]
packages = ["sectorfs"]

[tool.pytest.ini_options]
addopts = "-ra"
