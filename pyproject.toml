[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "go2proto"
version = "0.1.0"
description = "Generate Protocol Buffer definitions from Go source code"
requires-python = ">=3.10"
dependencies = []
keywords = ["protobuf", "proto3", "grpc", "go", "code generation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
go2proto = "go2proto.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["go2proto"]

[tool.pytest.ini_options]
addopts = "-ra"
