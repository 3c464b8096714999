"""Self-installation of the running executable next to ``rustup``."""

from __future__ import annotations

import platform
import shutil
import sys
from pathlib import Path
from typing import TextIO

_MACHINE = platform.machine().lower()

LINUX = sys.platform.startswith("linux")
MACOS = sys.platform == "darwin"
WINDOWS = sys.platform == "win32"
X86_64 = _MACHINE in {"x86_64", "amd64"}
X86 = _MACHINE in {"x86", "i386", "i486", "i586", "i686"}

EXE_SUFFIX = ".exe" if WINDOWS else ""


class InstallError(Exception):
    """Raised when the installation cannot be completed."""


def destination_for(rustup_path: Path) -> Path:
    """Where wasm-pack is installed, given the location of ``rustup``."""
    rustup_path = Path(rustup_path)
    parent = rustup_path.parent
    if parent == rustup_path:
        raise InstallError("can't install when `rustup` is at the root of the filesystem")
    return parent / f"wasm-pack{EXE_SUFFIX}"


def confirm_can_overwrite(dst: Path, force: bool, stdin: TextIO) -> None:
    """Raise unless an existing installation at ``dst`` may be overwritten."""
    if force:
        return
    isatty = getattr(stdin, "isatty", None)
    if isatty is None or not isatty():
        raise InstallError(
            f"existing wasm-pack installation found at `{dst}`, pass `-f` to force "
            "installation over this file, otherwise aborting installation now"
        )
    print(f"info: existing wasm-pack installation found at `{dst}`", file=sys.stderr)
    print("info: would you like to overwrite this file? [y/N]: ", end="", file=sys.stderr, flush=True)
    try:
        line = stdin.readline()
    except OSError as exc:
        raise InstallError("failed to read stdin") from exc
    if line.startswith(("y", "Y")):
        return
    raise InstallError("aborting installation")


def do_install(force: bool = False, executable: Path | None = None) -> Path:
    """Copy ``executable`` next to ``rustup`` and return where it went."""
    rustup = shutil.which("rustup")
    if rustup is None:
        raise InstallError(
            "failed to find an installation of `rustup` in `PATH`, is rustup already installed?"
        )
    destination = destination_for(Path(rustup))
    if destination.exists():
        confirm_can_overwrite(destination, force, sys.stdin)

    source = Path(executable) if executable is not None else Path(sys.argv[0]).resolve()
    try:
        shutil.copy(source, destination)
    except OSError as exc:
        raise InstallError(f"failed to copy executable to `{destination}`") from exc
    print(f"info: successfully installed wasm-pack to `{destination}`")
    return destination


def main(argv: list[str] | None = None) -> int:
    """Run the installer, reporting any error; always succeeds."""
    args = sys.argv[1:] if argv is None else argv
    try:
        do_install(force="-f" in args)
    except InstallError as exc:
        print(exc, file=sys.stderr)
        cause = exc.__cause__
        while cause is not None:
            print(f"Caused by: {cause}", file=sys.stderr)
            cause = cause.__cause__

    # A console window opened for the installer would close before the
    # output could be read.
    if WINDOWS:
        print("Press enter to close this window...")
        sys.stdin.readline()
    return 0