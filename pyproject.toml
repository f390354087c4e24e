[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "livoxkit"
version = "0.1.0"
description = "Configuration, parameter checks, firmware packages and on-disk log handling for Livox LiDAR devices"
requires-python = ">=3.10"
keywords = ["lidar", "livox", "mid-360", "firmware", "configuration", "logging"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["livoxkit"]

[tool.pytest.ini_options]
addopts = "-ra"
