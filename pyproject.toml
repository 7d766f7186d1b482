[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pktforge"
version = "0.1.0"
description = "Layered packet templates, packet buffers and header matchers for testing network code."
requires-python = ">=3.10"
dependencies = []
keywords = ["packet", "ethernet", "ipv4", "ipv6", "tcp", "testing", "matcher", "descriptor"]
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
    "Topic :: Software Development :: Testing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pktforge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
