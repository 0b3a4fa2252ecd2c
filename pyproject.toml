[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "laic"
version = "0.2.0"
description = "LAIC wire protocol: fixed 40-byte message headers, framed messages over async streams, and a shared-memory IPC transport"
requires-python = ">=3.10"
dependencies = []
keywords = ["protocol", "framing", "messaging", "ipc", "shared-memory", "asyncio"]
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
    "Framework :: AsyncIO",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "cryptography",
]

[tool.hatch.build.targets.wheel]
packages = ["laic"]

[tool.hatch.build.targets.sdist]
include = ["laic", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
files = ["laic"]
