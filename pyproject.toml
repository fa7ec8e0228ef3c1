[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rescuesim"
version = "0.1.0"
description = "Grid-world search-and-rescue simulation planned with the PAT model checker"
requires-python = ">=3.10"
dependencies = []
keywords = ["search and rescue", "grid world", "planning", "model checking", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rescuesim = "rescuesim.mission:main"

[tool.hatch.build.targets.wheel]
packages = ["rescuesim"]

[tool.pytest.ini_options]
addopts = "-ra"
