"""Copying the ``README`` file for the packaged wasm."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from wasmpkg.progress import PBAR

README = "README.md"


def copy_from_crate(path: str | os.PathLike[str], out_dir: str | os.PathLike[str]) -> None:
    """Copy the crate's README into ``out_dir``, warning if there is none."""
    path = Path(path)
    out_dir = Path(out_dir)
    if not path.is_dir():
        raise NotADirectoryError(f"crate directory should exist: {path}")
    if not out_dir.is_dir():
        raise NotADirectoryError(f"crate's pkg directory should exist: {out_dir}")

    source = path / README
    if not source.exists():
        PBAR.warn("origin crate has no README")
        return
    try:
        shutil.copy(source, out_dir / README)
    except OSError as exc:
        raise OSError(f"failed to copy README: {exc}") from exc