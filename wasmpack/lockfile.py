"""Reading the ``Cargo.lock`` lock file of a crate's workspace."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class LockfileError(Exception):
    """Raised when the lock file is missing, unreadable or malformed."""


@dataclass(frozen=True)
class LockedPackage:
    """A single ``[[package]]`` entry of ``Cargo.lock``."""

    name: str
    version: str


def _parse_packages(document: dict[str, Any]) -> tuple[LockedPackage, ...]:
    if "package" not in document:
        raise ValueError("missing field `package`")
    entries = document["package"]
    if not isinstance(entries, list):
        raise ValueError("invalid type for `package`: expected an array of tables")
    packages = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("invalid type for package entry: expected a table")
        name = entry.get("name")
        version = entry.get("version")
        if not isinstance(name, str):
            raise ValueError("missing or invalid field `name`")
        if not isinstance(version, str):
            raise ValueError("missing or invalid field `version`")
        packages.append(LockedPackage(name=name, version=version))
    return tuple(packages)


@dataclass(frozen=True)
class Lockfile:
    """The package entries of a ``Cargo.lock`` file."""

    packages: tuple[LockedPackage, ...]

    @classmethod
    def parse(cls, text: str) -> "Lockfile":
        """Parse the text of a lock file."""
        try:
            return cls(packages=_parse_packages(tomllib.loads(text)))
        except ValueError as exc:
            raise LockfileError(str(exc)) from exc

    @classmethod
    def from_crate(cls, crate_data: Any) -> "Lockfile":
        """Read the lock file at the root of the crate's workspace."""
        lock_path = Path(crate_data.workspace_root) / "Cargo.lock"
        if not lock_path.is_file():
            raise LockfileError(f'Could not find lockfile at "{lock_path}"')
        try:
            text = lock_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LockfileError(f"failed to read: {lock_path}") from exc
        try:
            return cls.parse(text)
        except LockfileError as exc:
            raise LockfileError(f"failed to parse: {lock_path}: {exc}") from exc

    def _package_version(self, name: str) -> str | None:
        return next((p.version for p in self.packages if p.name == name), None)

    def wasm_bindgen_version(self) -> str | None:
        """Locked version of ``wasm-bindgen``, if it is a dependency."""
        return self._package_version("wasm-bindgen")

    def require_wasm_bindgen(self) -> str:
        """Locked version of ``wasm-bindgen``; raises if it is not a dependency."""
        version = self.wasm_bindgen_version()
        if version is None:
            raise LockfileError(
                'Ensure that you have "wasm-bindgen" as a dependency in your Cargo.toml file:\n'
                "[dependencies]\n"
                'wasm-bindgen = "0.2"'
            )
        return version

    def wasm_bindgen_test_version(self) -> str | None:
        """Locked version of ``wasm-bindgen-test``, if it is a dependency."""
        return self._package_version("wasm-bindgen-test")