[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "auraed"
version = "0.1.0"
description = "Runtime daemon that detects the context it runs in, listens over mutual TLS and shuts down gracefully."
requires-python = ">=3.10"
dependencies = []
keywords = ["runtime", "daemon", "oci", "cgroups", "mtls", "sr-iov", "distributed-systems"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
auraed = "auraed.daemon:main"

[tool.hatch.build.targets.wheel]
packages = ["auraed"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
