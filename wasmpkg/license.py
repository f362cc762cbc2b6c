"""Copying ``LICENSE`` files for the packaged wasm."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from wasmpkg.manifest import CrateData
from wasmpkg.progress import PBAR

_NO_LICENSE = "origin crate has no LICENSE"


def _require_dir(path: Path, what: str) -> None:
    if not path.is_dir():
        raise NotADirectoryError(f"{what} should exist: {path}")


def _glob_license_files(path: Path) -> list[str]:
    return sorted(entry.name for entry in path.glob("LICENSE*"))


def _copy(source: Path, destination: Path) -> bool:
    try:
        shutil.copy(source, destination)
    except OSError:
        return False
    return True


def copy_from_crate(
    crate_data: CrateData,
    path: str | os.PathLike[str],
    out_dir: str | os.PathLike[str],
) -> None:
    """Copy the crate's license file(s) into ``out_dir``."""
    path = Path(path)
    out_dir = Path(out_dir)
    _require_dir(path, "crate directory")
    _require_dir(out_dir, "crate's pkg directory")

    license_file = crate_data.crate_license_file()
    if crate_data.crate_license() is not None:
        files = _glob_license_files(path)
        if not files:
            PBAR.info(
                "License key is set in Cargo.toml but no LICENSE file(s) were found; "
                "Please add the LICENSE file(s) to your project directory"
            )
            return
        for name in files:
            if not _copy(path / name, out_dir / name):
                PBAR.info(_NO_LICENSE)
    elif license_file is not None:
        if not _copy(path / license_file, out_dir / license_file):
            PBAR.info(_NO_LICENSE)