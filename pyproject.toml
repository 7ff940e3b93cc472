[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swarmcell"
version = "0.3.0"
description = "Swarm node protocol: pheromone packets, compact radio frames, platform profiles and distributed compute jobs"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "swarm",
    "gossip",
    "mesh",
    "packets",
    "distributed-computing",
    "mapreduce",
    "lora",
    "ethernet",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["swarmcell"]

[tool.hatch.build.targets.sdist]
include = ["swarmcell", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
