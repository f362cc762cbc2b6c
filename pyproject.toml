[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wasmpkg"
version = "0.1.0"
description = "Read Cargo manifests and lock files, write package.json files and run npm for crates compiled to WebAssembly"
requires-python = ">=3.11"
dependencies = []
keywords = ["wasm", "webassembly", "cargo", "npm", "package.json", "packaging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wasmpkg"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
