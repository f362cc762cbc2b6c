"""Looking up the newest published version, cached in a stamp file."""

from __future__ import annotations

import json
import os
import sys
import urllib.error
import urllib.request
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

CRATES_API_URL = "https://crates.io/api/v1/crates/wasm-pack"
USER_AGENT = "wasmpkg"
STAMP_MAX_AGE_HOURS = 24
_TIMEOUT_SECONDS = 10


def stamp_file_value(contents: str, word: str) -> str | None:
    """Return the value of the first line of ``contents`` that starts with ``word``.

    The value is the second whitespace-separated field of that line.
    """
    line = next((line for line in contents.splitlines() if line.startswith(word)), None)
    if line is None:
        return None
    fields = line.split()
    return fields[1] if len(fields) > 1 else None


def read_stamp_file(stamp_path: str | os.PathLike[str]) -> str | None:
    """Return the contents of the stamp file, or None if it cannot be read."""
    try:
        return Path(stamp_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def write_stamp_file(
    stamp_path: str | os.PathLike[str], current_time: datetime, version: str
) -> None:
    """Replace the stamp file with the given time and version."""
    Path(stamp_path).write_text(
        f"created {current_time.isoformat()}\nversion {version}", encoding="utf-8"
    )


def fetch_latest_version() -> str | None:
    """Ask the crates registry for the newest version; None if that fails."""
    request = urllib.request.Request(
        CRATES_API_URL, headers={"User-Agent": USER_AGENT}, method="GET"
    )
    try:
        with urllib.request.urlopen(request, timeout=_TIMEOUT_SECONDS) as response:
            body = response.read()
        document = json.loads(body.decode("utf-8", errors="replace"))
        version = document["crate"]["max_version"]
    except (OSError, ValueError, KeyError, TypeError):
        return None
    return version if isinstance(version, str) else None


def _default_stamp_path() -> Path:
    executable = Path(sys.argv[0] or sys.executable).resolve()
    return executable.with_suffix(".stamp")


def _parse_created(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def latest_version(
    stamp_path: str | os.PathLike[str] | None = None,
    fetch: Callable[[], str | None] | None = None,
) -> str | None:
    """Return the newest version, from the stamp file if it is recent enough.

    When the stamp is missing, unreadable or older than a day, ``fetch`` is
    called and a successful answer is written back to the stamp file.
    """
    path = Path(stamp_path) if stamp_path is not None else _default_stamp_path()
    fetcher = fetch if fetch is not None else fetch_latest_version
    now = datetime.now().astimezone()

    contents = read_stamp_file(path)
    if contents is not None:
        created = stamp_file_value(contents, "created")
        last_updated = _parse_created(created) if created is not None else None
        cached = stamp_file_value(contents, "version")
        if last_updated is not None and cached is not None:
            age_hours = int((now - last_updated).total_seconds() / 3600)
            if age_hours <= STAMP_MAX_AGE_HOURS:
                return cached

    version = fetcher()
    if version is not None:
        try:
            write_stamp_file(path, now, version)
        except OSError:
            pass
    return version