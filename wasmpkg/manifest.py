"""Reading ``Cargo.toml`` and writing ``package.json`` manifests."""

from __future__ import annotations

import json
import os
import subprocess
import tomllib
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from wasmpkg.package_json import (
    CommonJSPackage,
    ESModulesPackage,
    NoModulesPackage,
    NpmPackage,
    Repository,
    to_json,
)
from wasmpkg.profile import (
    PROFILE_NAMES,
    PROFILES_PATH,
    WASM_BINDGEN_KEY,
    WASM_BINDGEN_OPTIONS,
    BuildProfile,
    CargoWasmPackProfile,
    CargoWasmPackProfiles,
    ProfileError,
)
from wasmpkg.progress import PBAR

WASM_PACK_METADATA_KEY = "package.metadata.wasm-pack"
LEVENSHTEIN_THRESHOLD = 1

_PACKAGE_KEYS = frozenset(
    {"name", "description", "license", "license-file", "repository", "homepage", "metadata"}
)

_CDYLIB_MESSAGE = (
    "crate-type must be cdylib to compile to wasm32-unknown-unknown. Add the following to your "
    "Cargo.toml file:\n\n"
    "[lib]\n"
    'crate-type = ["cdylib", "rlib"]'
)


class ManifestError(Exception):
    """Raised when a crate's manifest or metadata cannot be read or is invalid."""


class Target(Enum):
    """The JavaScript environment the package is generated for."""

    BUNDLER = "bundler"
    NODEJS = "nodejs"
    WEB = "web"
    NO_MODULES = "no-modules"


def _type_name(value: Any) -> str:
    if isinstance(value, str):
        return f"string {value!r}"
    if isinstance(value, Mapping):
        return "table"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def _optional_str(table: Mapping[str, Any], key: str, path: str) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise ManifestError(f"{path}.{key}: invalid type: {_type_name(value)}, expected a string")
    return value


def _require_table(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ManifestError(f"{path}: invalid type: {_type_name(value)}, expected a table")
    return value


def _report_unknown(
    table: Mapping[str, Any],
    known: Iterable[str],
    prefix: str,
    report: Callable[[str], None],
) -> None:
    known_keys = set(known)
    for key in table:
        if key not in known_keys:
            report(f"{prefix}{key}")


def _read_profiles(metadata: Any, report: Callable[[str], None]) -> CargoWasmPackProfiles:
    if metadata is None:
        return CargoWasmPackProfiles()
    metadata = _require_table(metadata, "package.metadata")
    _report_unknown(metadata, {"wasm-pack"}, "package.metadata.", report)
    wasm_pack = metadata.get("wasm-pack")
    if wasm_pack is None:
        return CargoWasmPackProfiles()
    wasm_pack = _require_table(wasm_pack, WASM_PACK_METADATA_KEY)
    _report_unknown(wasm_pack, {"profile"}, f"{WASM_PACK_METADATA_KEY}.", report)
    profiles = wasm_pack.get("profile")
    if isinstance(profiles, Mapping):
        _report_unknown(profiles, PROFILE_NAMES, f"{PROFILES_PATH}.", report)
        for name in PROFILE_NAMES:
            profile = profiles.get(name)
            if not isinstance(profile, Mapping):
                continue
            profile_path = f"{PROFILES_PATH}.{name}"
            _report_unknown(profile, {WASM_BINDGEN_KEY}, f"{profile_path}.", report)
            bindgen = profile.get(WASM_BINDGEN_KEY)
            if isinstance(bindgen, Mapping):
                _report_unknown(
                    bindgen,
                    WASM_BINDGEN_OPTIONS,
                    f"{profile_path}.{WASM_BINDGEN_KEY}.",
                    report,
                )
    try:
        return CargoWasmPackProfiles.from_table(profiles, PROFILES_PATH)
    except ProfileError as exc:
        raise ManifestError(str(exc)) from exc


@dataclass(frozen=True)
class CargoPackage:
    """The ``[package]`` section of a ``Cargo.toml``, as far as it is used."""

    name: str
    description: str | None = None
    license: str | None = None
    license_file: str | None = None
    repository: str | None = None
    homepage: str | None = None
    profiles: CargoWasmPackProfiles = field(default_factory=CargoWasmPackProfiles)


@dataclass(frozen=True)
class CargoManifest:
    """The parts of a ``Cargo.toml`` this tool reads."""

    package: CargoPackage

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        on_unused: Callable[[str], None] | None = None,
    ) -> CargoManifest:
        """Build a manifest from parsed TOML.

        ``on_unused`` is called with the dotted path of every key that is
        present in ``data`` but not read.
        """
        report = on_unused if on_unused is not None else (lambda _path: None)
        data = _require_table(data, "manifest")
        _report_unknown(data, {"package"}, "", report)
        if "package" not in data:
            raise ManifestError("missing field `package`")
        package = _require_table(data["package"], "package")
        _report_unknown(package, _PACKAGE_KEYS, "package.", report)
        name = _optional_str(package, "name", "package")
        if name is None:
            raise ManifestError("package: missing field `name`")
        return cls(
            CargoPackage(
                name=name,
                description=_optional_str(package, "description", "package"),
                license=_optional_str(package, "license", "package"),
                license_file=_optional_str(package, "license-file", "package"),
                repository=_optional_str(package, "repository", "package"),
                homepage=_optional_str(package, "homepage", "package"),
                profiles=_read_profiles(package.get("metadata"), report),
            )
        )


@dataclass(frozen=True)
class ManifestAndUnusedKeys:
    """A parsed manifest with the wasm-pack related keys it left unread."""

    manifest: CargoManifest
    unused_keys: tuple[str, ...] = ()


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance between two strings, counted in characters."""
    if not a:
        return len(b)
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


def parse_crate_data(manifest_path: str | os.PathLike[str]) -> ManifestAndUnusedKeys:
    """Read and parse a ``Cargo.toml``, collecting unknown wasm-pack keys."""
    manifest_path = Path(manifest_path)
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"failed to read: {manifest_path}") from exc

    unused: set[str] = set()

    def collect(path: str) -> None:
        if path.startswith("package.metadata") and (
            "wasm-pack" in path
            or levenshtein(WASM_PACK_METADATA_KEY, path) <= LEVENSHTEIN_THRESHOLD
        ):
            unused.add(path)

    try:
        data = tomllib.loads(text)
        manifest = CargoManifest.from_dict(data, collect)
    except (tomllib.TOMLDecodeError, ManifestError) as exc:
        raise ManifestError(f"failed to parse manifest: {manifest_path}: {exc}") from exc

    return ManifestAndUnusedKeys(manifest, tuple(sorted(unused)))


def warn_for_unused_keys(manifest_and_keys: ManifestAndUnusedKeys) -> None:
    """Print a warning for each unknown key."""
    for path in manifest_and_keys.unused_keys:
        PBAR.warn(
            f'"{path}" is an unknown key and will be ignored. Please check your Cargo.toml.'
        )


def _run_cargo_metadata(manifest_path: Path) -> dict[str, Any]:
    command = [
        "cargo",
        "metadata",
        "--format-version",
        "1",
        "--manifest-path",
        str(manifest_path),
    ]
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ManifestError(f"failed to run `cargo metadata`: {exc}") from exc
    if result.returncode != 0:
        detail = (result.stderr or "").strip()
        raise ManifestError(f"`cargo metadata` failed: {detail}" if detail else "`cargo metadata` failed")
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"failed to parse `cargo metadata` output: {exc}") from exc


@dataclass(frozen=True)
class _NpmData:
    name: str
    files: list[str]
    dts_file: str | None
    main: str
    homepage: str | None


class CrateData:
    """What is known about a crate: its cargo metadata and its manifest."""

    def __init__(
        self,
        metadata: Mapping[str, Any],
        manifest: CargoManifest,
        out_name: str | None = None,
    ) -> None:
        self.metadata = metadata
        self.manifest = manifest
        self.out_name = out_name
        name = manifest.package.name
        package = next(
            (pkg for pkg in metadata.get("packages", []) if pkg.get("name") == name), None
        )
        if package is None:
            raise ManifestError("failed to find package in metadata")
        self._package: Mapping[str, Any] = package

    @classmethod
    def new(
        cls, crate_path: str | os.PathLike[str], out_name: str | None = None
    ) -> CrateData:
        """Read all metadata for the crate whose manifest is in ``crate_path``."""
        crate_path = Path(crate_path)
        manifest_path = crate_path / "Cargo.toml"
        if not manifest_path.is_file():
            raise ManifestError(
                f"crate directory is missing a `Cargo.toml` file; is `{crate_path}` "
                "the wrong directory?"
            )
        metadata = _run_cargo_metadata(manifest_path)
        manifest_and_keys = parse_crate_data(manifest_path)
        warn_for_unused_keys(manifest_and_keys)
        return cls(metadata, manifest_and_keys.manifest, out_name)

    def configured_profile(self, profile: BuildProfile) -> CargoWasmPackProfile:
        """Return the configuration for the given build profile."""
        return self.manifest.package.profiles.get(profile)

    def _targets(self) -> list[Mapping[str, Any]]:
        return list(self._package.get("targets", []))

    def check_crate_config(self) -> None:
        """Raise ManifestError unless the crate builds a ``cdylib``."""
        if any(
            "cdylib" in target.get("kind", []) and "cdylib" in target.get("crate_types", [])
            for target in self._targets()
        ):
            return
        raise ManifestError(_CDYLIB_MESSAGE)

    def crate_name(self) -> str:
        """The crate's library name, with dashes turned into underscores."""
        lib = next((t for t in self._targets() if "cdylib" in t.get("kind", [])), None)
        name = lib["name"] if lib is not None else self._package["name"]
        return name.replace("-", "_")

    def name_prefix(self) -> str:
        """The prefix of output file names."""
        return self.out_name if self.out_name is not None else self.crate_name()

    def crate_license(self) -> str | None:
        """The ``license`` field of the manifest."""
        return self.manifest.package.license

    def crate_license_file(self) -> str | None:
        """The ``license-file`` field of the manifest."""
        return self.manifest.package.license_file

    def target_directory(self) -> Path:
        """The directory cargo puts build artifacts in."""
        return Path(self.metadata["target_directory"])

    def workspace_root(self) -> Path:
        """The root directory of the crate's workspace."""
        return Path(self.metadata["workspace_root"])

    def npm_license(self) -> str | None:
        """The license as written in package.json."""
        package = self.manifest.package
        if package.license is not None:
            return package.license
        if package.license_file is not None:
            return f"SEE LICENSE IN {package.license_file}"
        return None

    def _npm_data(
        self,
        scope: str | None,
        include_commonjs_shim: bool,
        disable_dts: bool,
        out_dir: Path,
    ) -> _NpmData:
        prefix = self.name_prefix()
        js_file = f"{prefix}.js"
        files = [f"{prefix}_bg.wasm", js_file]
        if include_commonjs_shim:
            files.append(f"{prefix}_bg.js")

        name = self._package["name"]
        npm_name = f"@{scope}/{name}" if scope is not None else name

        dts_file = None
        if not disable_dts:
            dts_file = f"{prefix}.d.ts"
            files.append(dts_file)

        try:
            entries = sorted(os.scandir(out_dir), key=lambda entry: entry.name)
        except OSError:
            entries = []
        files.extend(
            entry.name
            for entry in entries
            if entry.name.startswith("LICENSE") and entry.name != "LICENSE" and entry.is_file()
        )

        return _NpmData(
            name=npm_name,
            files=files,
            dts_file=dts_file,
            main=js_file,
            homepage=self.manifest.package.homepage,
        )

    def _check_optional_fields(self) -> None:
        package = self.manifest.package
        missing = [
            label
            for label, value in (
                ("description", package.description),
                ("repository", package.repository),
                ("license", package.license),
            )
            if value is None
        ]
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
                    f"Optional fields missing from Cargo.toml: '{first}', '{second}', "
                    f"and '{third}'. These are not necessary, but recommended"
                )

    def package_for(
        self,
        scope: str | None,
        disable_dts: bool,
        target: Target,
        out_dir: str | os.PathLike[str],
    ) -> NpmPackage:
        """Build the package.json document for ``target``."""
        target = Target(target)
        data = self._npm_data(scope, target is Target.NODEJS, disable_dts, Path(out_dir))
        self._check_optional_fields()
        package = self.manifest.package
        common: dict[str, Any] = dict(
            name=data.name,
            collaborators=list(self._package.get("authors", [])),
            description=package.description,
            version=self._package["version"],
            license=self.npm_license(),
            repository=Repository(url=package.repository)
            if package.repository is not None
            else None,
            files=data.files,
            homepage=data.homepage,
            types=data.dts_file,
        )
        match target:
            case Target.NODEJS:
                return CommonJSPackage(main=data.main, **common)
            case Target.NO_MODULES:
                return NoModulesPackage(browser=data.main, **common)
            case Target.BUNDLER | Target.WEB:
                return ESModulesPackage(module=data.main, side_effects="false", **common)

    def write_package_json(
        self,
        out_dir: str | os.PathLike[str],
        scope: str | None,
        disable_dts: bool,
        target: Target,
    ) -> None:
        """Write ``package.json`` into ``out_dir``."""
        out_dir = Path(out_dir)
        pkg_file_path = out_dir / "package.json"
        document = to_json(self.package_for(scope, disable_dts, target, out_dir))
        try:
            pkg_file_path.write_text(document, encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"failed to write: {pkg_file_path}") from exc