[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evloopkit"
version = "0.1.0"
description = "A reactor-style event loop with timers, channels, pollers and thread primitives"
requires-python = ">=3.10"
dependencies = []
keywords = ["event-loop", "reactor", "networking", "timers", "threads", "poller"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evloopkit"]

[tool.pytest.ini_options]
addopts = "-ra"
