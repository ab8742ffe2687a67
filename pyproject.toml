[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "macropad-tool"
version = "1.5.4"
description = "Command-line tool for programming key mappings into small CH57x-based USB macro keypads"
requires-python = ">=3.10"
keywords = ["keyboard", "keypad", "macropad", "macro", "key-mapping", "ch57x", "hidraw"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
macropad-tool = "macropad_tool.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["macropad_tool"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
