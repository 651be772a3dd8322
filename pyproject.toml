[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kncode"
version = "0.1.0"
description = "Session storage, transcript compaction, recovery and a headless event protocol for a coding agent"
requires-python = ">=3.10"
dependencies = []
keywords = ["agent", "session", "transcript", "jsonl", "sse", "rate-limit", "headless"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["kncode"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
