[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swapsession"
version = "0.1.0"
description = "Session bookkeeping for block-exchange protocols: wants, peer selection, interest tracking and session management"
requires-python = ">=3.10"
dependencies = []
keywords = ["block exchange", "content addressing", "peer-to-peer", "sessions", "wantlist"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["swapsession"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
