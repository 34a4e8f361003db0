[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goodfirstbot"
version = "0.1.0"
description = "Core of a Telegram bot that tracks GitHub repositories and notifies chats about new issues with chosen labels"
requires-python = ">=3.10"
dependencies = [
    "aiosqlite",
    "httpx",
]
keywords = ["telegram", "bot", "github", "issues", "labels", "good first issue"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["goodfirstbot"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
