[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "akazefeat"
version = "0.7.0"
description = "AKAZE feature detection and M-LDB binary descriptor extraction for computer vision"
requires-python = ">=3.10"
keywords = ["keypoint", "descriptor", "vision", "sfm", "slam", "akaze", "features"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
    "pillow",
]

[tool.hatch.build.targets.wheel]
packages = ["akazefeat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
