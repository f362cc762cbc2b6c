"""Per-profile wasm-pack configuration from ``Cargo.toml`` metadata."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

PROFILES_PATH = "package.metadata.wasm-pack.profile"
PROFILE_NAMES = ("dev", "release", "profiling")
WASM_BINDGEN_KEY = "wasm-bindgen"
WASM_BINDGEN_OPTIONS = ("debug-js-glue", "demangle-name-section", "dwarf-debug-info")

_OPTION_FIELDS = {
    "debug-js-glue": "wasm_bindgen_debug_js_glue",
    "demangle-name-section": "wasm_bindgen_demangle_name_section",
    "dwarf-debug-info": "wasm_bindgen_dwarf_debug_info",
}


class ProfileError(ValueError):
    """Raised when profile configuration has the wrong shape or types."""


class BuildProfile(Enum):
    """The build profile a crate is compiled with."""

    DEV = "dev"
    RELEASE = "release"
    PROFILING = "profiling"


def _type_name(value: Any) -> str:
    if isinstance(value, str):
        return f"string {value!r}"
    if isinstance(value, Mapping):
        return "table"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


@dataclass(frozen=True)
class CargoWasmPackProfile:
    """Settings for the tools wasm-pack runs, for one profile."""

    wasm_bindgen_debug_js_glue: bool
    wasm_bindgen_demangle_name_section: bool
    wasm_bindgen_dwarf_debug_info: bool

    @classmethod
    def default_dev(cls) -> CargoWasmPackProfile:
        """Defaults for the dev profile."""
        return cls(True, True, False)

    @classmethod
    def default_release(cls) -> CargoWasmPackProfile:
        """Defaults for the release profile."""
        return cls(False, True, False)

    @classmethod
    def default_profiling(cls) -> CargoWasmPackProfile:
        """Defaults for the profiling profile."""
        return cls(False, True, False)

    @classmethod
    def from_table(
        cls,
        table: Mapping[str, Any] | None,
        defaults: CargoWasmPackProfile,
        path: str,
    ) -> CargoWasmPackProfile:
        """Read a profile table, filling unset options from ``defaults``.

        ``path`` is the dotted key of the table, used in error messages.
        """
        if table is None:
            return defaults
        if not isinstance(table, Mapping):
            raise ProfileError(f"{path}: invalid type: {_type_name(table)}, expected a table")
        bindgen = table.get(WASM_BINDGEN_KEY)
        if bindgen is None:
            return defaults
        bindgen_path = f"{path}.{WASM_BINDGEN_KEY}"
        if not isinstance(bindgen, Mapping):
            raise ProfileError(
                f"{bindgen_path}: invalid type: {_type_name(bindgen)}, expected a table"
            )
        overrides: dict[str, bool] = {}
        for key, attr in _OPTION_FIELDS.items():
            if key not in bindgen:
                continue
            value = bindgen[key]
            if not isinstance(value, bool):
                raise ProfileError(
                    f"{bindgen_path}.{key}: invalid type: {_type_name(value)}, expected a boolean"
                )
            overrides[attr] = value
        return dataclasses.replace(defaults, **overrides)


@dataclass(frozen=True)
class CargoWasmPackProfiles:
    """The dev, release and profiling profiles of a crate."""

    dev: CargoWasmPackProfile = field(default_factory=CargoWasmPackProfile.default_dev)
    release: CargoWasmPackProfile = field(default_factory=CargoWasmPackProfile.default_release)
    profiling: CargoWasmPackProfile = field(
        default_factory=CargoWasmPackProfile.default_profiling
    )

    @classmethod
    def from_table(
        cls, table: Mapping[str, Any] | None, path: str = PROFILES_PATH
    ) -> CargoWasmPackProfiles:
        """Read the ``profile`` table of the wasm-pack metadata."""
        if table is None:
            return cls()
        if not isinstance(table, Mapping):
            raise ProfileError(f"{path}: invalid type: {_type_name(table)}, expected a table")
        return cls(
            dev=CargoWasmPackProfile.from_table(
                table.get("dev"), CargoWasmPackProfile.default_dev(), f"{path}.dev"
            ),
            release=CargoWasmPackProfile.from_table(
                table.get("release"), CargoWasmPackProfile.default_release(), f"{path}.release"
            ),
            profiling=CargoWasmPackProfile.from_table(
                table.get("profiling"),
                CargoWasmPackProfile.default_profiling(),
                f"{path}.profiling",
            ),
        )

    def get(self, profile: BuildProfile) -> CargoWasmPackProfile:
        """Return the configuration for ``profile``."""
        match BuildProfile(profile):
            case BuildProfile.DEV:
                return self.dev
            case BuildProfile.RELEASE:
                return self.release
            case BuildProfile.PROFILING:
                return self.profiling