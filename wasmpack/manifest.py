"""Reading ``Cargo.toml`` and crate metadata, and writing ``package.json``."""

from __future__ import annotations

import enum
import json
import os
import subprocess
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from wasmpack.npm_package import (
    CommonJSPackage,
    ESModulesPackage,
    NoModulesPackage,
    NpmPackage,
    Repository,
    to_json,
)
from wasmpack.profile import BuildProfile, WasmPackProfile, WasmPackProfiles
from wasmpack.progress import PBAR

WASM_PACK_METADATA_KEY = "package.metadata.wasm-pack"
LEVENSHTEIN_THRESHOLD = 1


class ManifestError(Exception):
    """Raised when a crate's manifest or metadata is missing or invalid."""


class Target(enum.Enum):
    """The kind of JavaScript output a build produces."""

    BUNDLER = "bundler"
    NODEJS = "nodejs"
    WEB = "web"
    NO_MODULES = "no-modules"


@dataclass
class CargoPackage:
    """The parts of ``[package]`` in ``Cargo.toml`` that matter here."""

    name: str
    description: str | None = None
    license: str | None = None
    license_file: str | None = None
    repository: str | None = None
    homepage: str | None = None
    profiles: WasmPackProfiles = field(default_factory=lambda: WasmPackProfiles.from_table(None))


@dataclass
class ManifestAndUnusedKeys:
    """A parsed manifest with the unknown wasm-pack keys found in it."""

    manifest: CargoPackage
    unused_keys: list[str]


_PROFILE_SCHEMA: dict[str, Any] = {
    "wasm-bindgen": {
        "debug-js-glue": None,
        "demangle-name-section": None,
        "dwarf-debug-info": None,
    },
    "wasm-opt": None,
}

_MANIFEST_SCHEMA: dict[str, Any] = {
    "package": {
        "name": None,
        "description": None,
        "license": None,
        "license-file": None,
        "repository": None,
        "homepage": None,
        "metadata": {
            "wasm-pack": {
                "profile": {
                    "dev": _PROFILE_SCHEMA,
                    "release": _PROFILE_SCHEMA,
                    "profiling": _PROFILE_SCHEMA,
                }
            }
        },
    }
}

_STRING_FIELDS = {
    "description": "description",
    "license": "license",
    "license-file": "license_file",
    "repository": "repository",
    "homepage": "homepage",
}


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def _ignored_paths(value: Any, schema: dict[str, Any] | None, prefix: str) -> Iterator[str]:
    if schema is None or not isinstance(value, dict):
        return
    for key, item in value.items():
        path = f"{prefix}.{key}" if prefix else key
        if key not in schema:
            yield path
        else:
            yield from _ignored_paths(item, schema[key], path)


def _is_relevant_unused_key(path: str) -> bool:
    return path.startswith("package.metadata") and (
        "wasm-pack" in path or levenshtein(WASM_PACK_METADATA_KEY, path) <= LEVENSHTEIN_THRESHOLD
    )


def _table(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"invalid type for `{where}`: expected a table")
    return value


def _parse_package(document: dict[str, Any]) -> CargoPackage:
    if "package" not in document:
        raise ValueError("missing field `package`")
    package = _table(document["package"], "package")
    name = package.get("name")
    if not isinstance(name, str):
        raise ValueError("missing or invalid field `name`")
    strings: dict[str, str | None] = {}
    for key, attr in _STRING_FIELDS.items():
        value = package.get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"invalid type for `{key}`: expected a string")
        strings[attr] = value
    metadata = _table(package.get("metadata"), "metadata")
    wasm_pack = _table(metadata.get("wasm-pack"), "wasm-pack")
    profiles = WasmPackProfiles.from_table(wasm_pack.get("profile"))
    return CargoPackage(name=name, profiles=profiles, **strings)


def parse_crate_data(manifest_path: Path) -> ManifestAndUnusedKeys:
    """Parse a ``Cargo.toml`` and collect unknown wasm-pack metadata keys."""
    path = Path(manifest_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"failed to read: {path}") from exc
    try:
        document = tomllib.loads(text)
        manifest = _parse_package(document)
    except ValueError as exc:
        raise ManifestError(f"failed to parse manifest: {path}: {exc}") from exc
    unused = {p for p in _ignored_paths(document, _MANIFEST_SCHEMA, "") if _is_relevant_unused_key(p)}
    return ManifestAndUnusedKeys(manifest=manifest, unused_keys=sorted(unused))


def warn_for_unused_keys(manifest_and_keys: ManifestAndUnusedKeys) -> None:
    """Warn about every unknown key in the manifest."""
    for path in manifest_and_keys.unused_keys:
        PBAR.warn(f'"{path}" is an unknown key and will be ignored. Please check your Cargo.toml.')


def _cargo_metadata(manifest_path: Path) -> dict[str, Any]:
    cargo = os.environ.get("CARGO", "cargo")
    command = [cargo, "metadata", "--format-version", "1", "--manifest-path", str(manifest_path)]
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ManifestError(f"failed to run `cargo metadata`: {exc}") from exc
    if result.returncode != 0:
        raise ManifestError(f"`cargo metadata` exited with an error: {result.stderr.strip()}")
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ManifestError("`cargo metadata` produced invalid JSON") from exc


def _is_same_path(path1: Path, path2: Path) -> bool:
    try:
        return path1.resolve(strict=True) == path2.resolve(strict=True)
    except OSError:
        return path1 == path2


@dataclass
class _NpmData:
    name: str
    files: list[str]
    dts_file: str | None
    main: str
    homepage: str | None
    keywords: list[str] | None


@dataclass
class CrateData:
    """What is known about a crate: its cargo metadata entry and its manifest."""

    package: dict[str, Any]
    manifest: CargoPackage
    workspace_root: Path
    target_directory: Path
    out_name: str | None = None

    @classmethod
    def from_path(cls, crate_path: Path, out_name: str | None = None) -> "CrateData":
        """Read all metadata for the crate whose ``Cargo.toml`` is in ``crate_path``."""
        crate_path = Path(crate_path)
        manifest_path = crate_path / "Cargo.toml"
        if not manifest_path.is_file():
            raise ManifestError(
                f"crate directory is missing a `Cargo.toml` file; is `{crate_path}` "
                "the wrong directory?"
            )
        metadata = _cargo_metadata(manifest_path)
        parsed = parse_crate_data(manifest_path)
        warn_for_unused_keys(parsed)
        manifest = parsed.manifest
        package = next(
            (
                pkg
                for pkg in metadata.get("packages", [])
                if pkg.get("name") == manifest.name
                and _is_same_path(Path(pkg.get("manifest_path", "")), manifest_path)
            ),
            None,
        )
        if package is None:
            raise ManifestError("failed to find package in metadata")
        return cls(
            package=package,
            manifest=manifest,
            workspace_root=Path(metadata["workspace_root"]),
            target_directory=Path(metadata["target_directory"]),
            out_name=out_name,
        )

    def configured_profile(self, profile: BuildProfile) -> WasmPackProfile:
        """The wasm-pack configuration of ``profile``."""
        return self.manifest.profiles.get(profile)

    def check_crate_config(self) -> None:
        """Raise unless the crate builds a ``cdylib``."""
        if any(
            "cdylib" in target.get("kind", []) and "cdylib" in target.get("crate_types", [])
            for target in self.package.get("targets", [])
        ):
            return
        raise ManifestError(
            "crate-type must be cdylib to compile to wasm32-unknown-unknown. Add the following "
            'to your Cargo.toml file:\n\n[lib]\ncrate-type = ["cdylib", "rlib"]'
        )

    def crate_name(self) -> str:
        """The library name, with dashes turned into underscores."""
        lib = next(
            (t for t in self.package.get("targets", []) if "cdylib" in t.get("kind", [])),
            None,
        )
        name = lib["name"] if lib is not None else self.package["name"]
        return name.replace("-", "_")

    def name_prefix(self) -> str:
        """Prefix of the generated file names."""
        return self.out_name if self.out_name is not None else self.crate_name()

    def license(self) -> str | None:
        """The npm ``license`` value derived from the manifest."""
        if self.manifest.license is not None:
            return self.manifest.license
        if self.manifest.license_file is not None:
            return f"SEE LICENSE IN {self.manifest.license_file}"
        return None

    def _npm_data(
        self, scope: str | None, add_js_bg: bool, disable_dts: bool, out_dir: Path
    ) -> _NpmData:
        prefix = self.name_prefix()
        js_file = f"{prefix}.js"
        files = [f"{prefix}_bg.wasm", js_file]
        if add_js_bg:
            files.append(f"{prefix}_bg.js")

        pkg_name = self.package["name"]
        npm_name = f"@{scope}/{pkg_name}" if scope is not None else pkg_name

        dts_file = None
        if not disable_dts:
            dts_file = f"{prefix}.d.ts"
            files.append(dts_file)

        keywords = list(self.package.get("keywords") or []) or None

        if out_dir.is_dir():
            files.extend(
                sorted(
                    entry.name
                    for entry in out_dir.iterdir()
                    if entry.is_file() and entry.name.startswith("LICENSE") and entry.name != "LICENSE"
                )
            )

        return _NpmData(
            name=npm_name,
            files=files,
            dts_file=dts_file,
            main=js_file,
            homepage=self.manifest.homepage,
            keywords=keywords,
        )

    def _check_optional_fields(self) -> None:
        missing = []
        if self.manifest.description is None:
            missing.append("description")
        if self.manifest.repository is None:
            missing.append("repository")
        if self.manifest.license is None and self.manifest.license_file is None:
            missing.append("license")

        match missing:
            case [one]:
                PBAR.info(
                    f"Optional field missing from Cargo.toml: '{one}'. "
                    "This is not necessary, but recommended"
                )
            case [first, second]:
                PBAR.info(
                    f"Optional fields missing from Cargo.toml: '{first}', '{second}'. "
                    "These are not necessary, but recommended"
                )
            case [first, second, third]:
                PBAR.info(
                    f"Optional fields missing from Cargo.toml: '{first}', '{second}', and "
                    f"'{third}'. These are not necessary, but recommended"
                )

    def package_for(
        self, target: Target, scope: str | None, disable_dts: bool, out_dir: Path
    ) -> NpmPackage:
        """Build the ``package.json`` content for ``target``."""
        data = self._npm_data(scope, target is Target.BUNDLER, disable_dts, Path(out_dir))
        self._check_optional_fields()
        repository = (
            Repository(url=self.manifest.repository) if self.manifest.repository is not None else None
        )
        common: dict[str, Any] = {
            "name": data.name,
            "collaborators": list(self.package.get("authors") or []),
            "description": self.manifest.description,
            "version": str(self.package.get("version", "")),
            "license": self.license(),
            "repository": repository,
            "files": data.files,
            "homepage": data.homepage,
            "types": data.dts_file,
            "keywords": data.keywords,
        }
        match target:
            case Target.NODEJS:
                return CommonJSPackage(main=data.main, **common)
            case Target.NO_MODULES:
                return NoModulesPackage(browser=data.main, **common)
            case _:
                return ESModulesPackage(module=data.main, side_effects=False, **common)

    def write_package_json(
        self, out_dir: Path, scope: str | None, disable_dts: bool, target: Target
    ) -> None:
        """Write ``package.json`` into ``out_dir``."""
        out_dir = Path(out_dir)
        pkg_file = out_dir / "package.json"
        content = to_json(self.package_for(target, scope, disable_dts, out_dir))
        try:
            pkg_file.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"failed to write: {pkg_file}") from exc