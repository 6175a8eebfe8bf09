[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slashkit"
version = "0.1.0"
description = "Declare Discord application commands as plain Python functions and answer their interactions from gateway events or signed webhook requests."
requires-python = ">=3.11"
keywords = ["discord", "slash commands", "interactions", "bot", "webhook", "ed25519"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "aiohttp>=3.8",
    "pynacl>=1.5",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[project.scripts]
slashkit-webhook = "slashkit.examples.webhook:main"

[tool.hatch.build.targets.wheel]
packages = ["slashkit"]

[tool.hatch.build.targets.sdist]
include = ["slashkit", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
