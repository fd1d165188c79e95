[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mrflp"
version = "0.1.0"
description = "Factors, UAI model parsing and cycle-inequality separation for LP relaxations of pairwise Markov random fields"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "markov random field",
    "map inference",
    "lp relaxation",
    "cycle inequalities",
    "uai",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mrflp"]

[tool.pytest.ini_options]
addopts = "-ra"
