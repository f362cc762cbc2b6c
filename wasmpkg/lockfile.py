"""Reading the ``Cargo.lock`` lock file."""

from __future__ import annotations

import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from wasmpkg.manifest import CrateData


class LockfileError(Exception):
    """Raised when the lock file is missing, unreadable or malformed."""


def lockfile_path(crate_data: CrateData) -> Path:
    """Return the path of the workspace's ``Cargo.lock``, which must exist."""
    path = crate_data.workspace_root() / "Cargo.lock"
    if not path.is_file():
        raise LockfileError(f'Could not find lockfile at "{path}"')
    return path


def _parse_packages(data: Any) -> list[tuple[str, str]]:
    if "package" not in data:
        raise LockfileError("missing field `package`")
    entries = data["package"]
    if not isinstance(entries, list):
        raise LockfileError("package: expected an array of tables")
    packages = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise LockfileError("package: expected an array of tables")
        name, version = entry.get("name"), entry.get("version")
        if not isinstance(name, str):
            raise LockfileError("package: missing field `name`")
        if not isinstance(version, str):
            raise LockfileError("package: missing field `version`")
        packages.append((name, version))
    return packages


class Lockfile:
    """The packages and versions listed in a ``Cargo.lock``."""

    def __init__(self, packages: Iterable[tuple[str, str]]) -> None:
        self.packages = list(packages)

    @classmethod
    def new(cls, crate_data: CrateData) -> Lockfile:
        """Read the lock file of the workspace the crate belongs to."""
        path = lockfile_path(crate_data)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LockfileError(f"failed to read: {path}") from exc
        try:
            return cls.from_str(text)
        except LockfileError as exc:
            raise LockfileError(f"failed to parse: {path}: {exc}") from exc

    @classmethod
    def from_str(cls, text: str) -> Lockfile:
        """Parse the text of a lock file."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise LockfileError(str(exc)) from exc
        return cls(_parse_packages(data))

    def _package_version(self, package: str) -> str | None:
        return next((version for name, version in self.packages if name == package), None)

    def wasm_bindgen_version(self) -> str | None:
        """The locked version of ``wasm-bindgen``, if any."""
        return self._package_version("wasm-bindgen")

    def require_wasm_bindgen(self) -> str:
        """Like ``wasm_bindgen_version``, but raises when it is missing."""
        version = self.wasm_bindgen_version()
        if version is None:
            raise LockfileError(
                'Ensure that you have "wasm-bindgen" as a dependency in your Cargo.toml file:\n'
                "[dependencies]\n"
                'wasm-bindgen = "0.2"'
            )
        return version

    def wasm_bindgen_test_version(self) -> str | None:
        """The locked version of ``wasm-bindgen-test``, if any."""
        return self._package_version("wasm-bindgen-test")