"""Helpers for packaging Rust crates compiled to WebAssembly as npm packages."""

__version__ = "0.1.0"