"""Packing and publishing to npm."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Any

DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org/"

logger = logging.getLogger(__name__)


class NpmError(Exception):
    """Raised when an npm command fails."""


def _run(args: list[str], cwd: str | os.PathLike[str], label: str, context: str) -> None:
    logger.info("Running %s", args)
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise NpmError(f"{context}: failed to execute `{label}`: {exc}") from exc
    if result.returncode != 0:
        detail = (result.stderr or "").strip()
        message = f"{context}: `{label}` exited with status {result.returncode}"
        raise NpmError(f"{message}\n{detail}" if detail else message)


def npm_pack(path: str | os.PathLike[str]) -> None:
    """Run ``npm pack`` in ``path``."""
    _run(["npm", "pack"], path, "npm pack", "Packaging up your code failed")


def npm_publish(path: str | os.PathLike[str], access: Any = None) -> None:
    """Run ``npm publish`` in ``path``, passing ``access`` as an argument if given."""
    args = ["npm", "publish"]
    if access is not None:
        args.append(str(access))
    _run(args, path, "npm publish", "Publishing to npm failed")


def npm_login(
    registry: str = DEFAULT_NPM_REGISTRY,
    scope: str | None = None,
    always_auth: bool = False,
    auth_type: str | None = None,
) -> None:
    """Run ``npm login`` interactively against ``registry``."""
    args = ["npm", "login", f"--registry={registry}"]
    if scope is not None:
        args.append(f"--scope={scope}")
    if always_auth:
        args.append("--always_auth")
    if auth_type is not None:
        args.append(f"--auth_type={auth_type}")

    logger.info("Running %s", args)
    try:
        result = subprocess.run(args, check=False)
    except OSError as exc:
        raise NpmError(f"failed to execute `npm login`: {exc}") from exc
    if result.returncode != 0:
        raise NpmError(f"Login to registry {registry} failed")