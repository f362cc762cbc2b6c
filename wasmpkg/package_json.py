"""The ``package.json`` documents written for the packaged wasm."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, kw_only=True)
class Repository:
    """The ``repository`` entry of a package.json."""

    url: str
    type: str = "git"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this entry."""
        return {"type": self.type, "url": self.url}


@dataclass(frozen=True, kw_only=True)
class _NpmPackageBase:
    name: str
    version: str
    collaborators: list[str] = field(default_factory=list)
    description: str | None = None
    license: str | None = None
    repository: Repository | None = None
    files: list[str] = field(default_factory=list)
    homepage: str | None = None
    types: str | None = None

    def _build(self, entry_key: str, entry: str) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.collaborators:
            data["collaborators"] = list(self.collaborators)
        if self.description is not None:
            data["description"] = self.description
        data["version"] = self.version
        if self.license is not None:
            data["license"] = self.license
        if self.repository is not None:
            data["repository"] = self.repository.to_dict()
        if self.files:
            data["files"] = list(self.files)
        data[entry_key] = entry
        if self.homepage is not None:
            data["homepage"] = self.homepage
        if self.types is not None:
            data["types"] = self.types
        return data


@dataclass(frozen=True, kw_only=True)
class CommonJSPackage(_NpmPackageBase):
    """A package.json for the Node.js target."""

    main: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object, leaving out empty optional fields."""
        return self._build("main", self.main)


@dataclass(frozen=True, kw_only=True)
class ESModulesPackage(_NpmPackageBase):
    """A package.json for the bundler and web targets."""

    module: str
    side_effects: str = "false"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object, leaving out empty optional fields."""
        data = self._build("module", self.module)
        data["sideEffects"] = self.side_effects
        return data


@dataclass(frozen=True, kw_only=True)
class NoModulesPackage(_NpmPackageBase):
    """A package.json for the no-modules target."""

    browser: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object, leaving out empty optional fields."""
        return self._build("browser", self.browser)


NpmPackage = Union[CommonJSPackage, ESModulesPackage, NoModulesPackage]


def to_json(package: NpmPackage) -> str:
    """Serialize a package.json document as pretty-printed JSON."""
    return json.dumps(package.to_dict(), indent=2, ensure_ascii=False)