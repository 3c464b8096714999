[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wasmpack"
version = "0.1.0"
description = "Packaging helpers for Rust crates compiled to WebAssembly: Cargo manifest reading, package.json generation, lockfile inspection and npm tooling."
requires-python = ">=3.11"
dependencies = []
keywords = ["wasm", "webassembly", "cargo", "npm", "package.json", "build"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
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

[project.scripts]
wasmpack-install = "wasmpack.installer:main"

[tool.hatch.build.targets.wheel]
packages = ["wasmpack"]

[tool.pytest.ini_options]
addopts = "-ra"
