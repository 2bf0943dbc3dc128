[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "hfloadgen"
version = "0.1.0"
description = "Workload generator and load driver for serverless function platforms"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["load testing", "benchmark", "faas", "serverless", "workload", "traffic generation"]
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
    "Topic :: Software Development :: Testing :: Traffic Generation",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["hfloadgen*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
