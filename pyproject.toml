[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swblend"
version = "0.1.0"
description = "Software pixel blending for RGB565 and ARGB8888 framebuffers: colour fills and image blits with opacity, masks and blend modes"
requires-python = ">=3.10"
dependencies = []
keywords = ["blending", "framebuffer", "rgb565", "argb8888", "graphics", "alpha", "compositing"]
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
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["swblend"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
