"""Packing, publishing and logging in to the npm registry."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any

DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org/"

log = logging.getLogger(__name__)


class NpmError(Exception):
    """Raised when an npm command cannot be run or fails."""


def _run(args: list[str], cwd: str | Path | None, name: str) -> None:
    log.info("Running %s", args)
    try:
        result = subprocess.run(args, cwd=cwd, check=False)
    except OSError as exc:
        raise NpmError(f"failed to execute `{name}`: {exc}") from exc
    if result.returncode != 0:
        raise NpmError(f"failed to execute `{name}`: exited with {result.returncode}")


def npm_pack(path: str | Path) -> None:
    """Run ``npm pack`` in ``path``."""
    try:
        _run(["npm", "pack"], path, "npm pack")
    except NpmError as exc:
        raise NpmError("Packaging up your code failed") from exc


def npm_publish(path: str | Path, access: Any = None, tag: str | None = None) -> None:
    """Run ``npm publish`` in ``path`` with an optional access flag and tag."""
    args = ["npm", "publish"]
    if access is not None:
        args.append(str(access))
    if tag is not None:
        args += ["--tag", tag]
    try:
        _run(args, path, "npm publish")
    except NpmError as exc:
        raise NpmError("Publishing to npm failed") from exc


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

    log.info("Running %s", args)
    try:
        result = subprocess.run(args, check=False)
    except OSError as exc:
        raise NpmError(f"failed to execute `npm login`: {exc}") from exc
    if result.returncode != 0:
        raise NpmError(f"Login to registry {registry} failed")