[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "steamsalebot"
version = "0.1.0"
description = "Telegram bot that tracks Steam games and announces daily deals and seasonal sales"
requires-python = ">=3.10"
keywords = ["telegram", "bot", "steam", "discounts", "sales"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Natural Language :: Russian",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "requests>=2.28",
    "beautifulsoup4>=4.11",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.23",
]

[project.scripts]
steamsalebot = "steamsalebot.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["steamsalebot"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
