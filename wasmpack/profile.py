"""Per-profile tool configuration from ``[package.metadata.wasm-pack.profile]``."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class BuildProfile(enum.Enum):
    """Build profile selecting compiler and tool settings."""

    DEV = "dev"
    RELEASE = "release"
    PROFILING = "profiling"


WasmOpt = bool | list[str] | None

_BINDGEN_KEYS = {
    "debug-js-glue": "debug_js_glue",
    "demangle-name-section": "demangle_name_section",
    "dwarf-debug-info": "dwarf_debug_info",
}


def _expect_table(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"invalid type for `{where}`: expected a table")
    return value


def _parse_wasm_opt(value: Any) -> WasmOpt:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ValueError("invalid value for `wasm-opt`: expected a boolean or a list of strings")


@dataclass
class WasmPackProfile:
    """Settings for wasm-bindgen and wasm-opt in one build profile."""

    debug_js_glue: bool
    demangle_name_section: bool
    dwarf_debug_info: bool
    wasm_opt: WasmOpt = None

    @classmethod
    def default_for(cls, profile: BuildProfile) -> "WasmPackProfile":
        """The built-in defaults of a profile."""
        if profile is BuildProfile.DEV:
            return cls(True, True, False, None)
        return cls(False, True, False, True)

    @classmethod
    def from_table(cls, table: dict[str, Any] | None, profile: BuildProfile) -> "WasmPackProfile":
        """Read a profile table, filling unset values from the profile's defaults."""
        table = _expect_table(table, f"profile.{profile.value}")
        defaults = cls.default_for(profile)
        bindgen = _expect_table(table.get("wasm-bindgen"), "wasm-bindgen")
        values: dict[str, Any] = {}
        for key, attr in _BINDGEN_KEYS.items():
            value = bindgen.get(key)
            if value is None:
                value = getattr(defaults, attr)
            elif not isinstance(value, bool):
                raise ValueError(f"invalid type for `wasm-bindgen.{key}`: expected a boolean")
            values[attr] = value
        wasm_opt = _parse_wasm_opt(table.get("wasm-opt"))
        if wasm_opt is None:
            wasm_opt = defaults.wasm_opt
        return cls(wasm_opt=wasm_opt, **values)

    def wasm_opt_args(self) -> list[str] | None:
        """Arguments for ``wasm-opt``, or None when it is disabled."""
        if self.wasm_opt is None or self.wasm_opt is False:
            return None
        if self.wasm_opt is True:
            return ["-O"]
        return list(self.wasm_opt)


@dataclass
class WasmPackProfiles:
    """The dev, release and profiling profiles of a crate."""

    dev: WasmPackProfile
    release: WasmPackProfile
    profiling: WasmPackProfile

    @classmethod
    def from_table(cls, table: dict[str, Any] | None) -> "WasmPackProfiles":
        """Read the ``profile`` table; missing profiles take their defaults."""
        table = _expect_table(table, "profile")
        return cls(
            **{
                profile.value: WasmPackProfile.from_table(table.get(profile.value), profile)
                for profile in BuildProfile
            }
        )

    def get(self, profile: BuildProfile) -> WasmPackProfile:
        """The configuration for ``profile``."""
        return getattr(self, profile.value)