"""Copying the crate's README into the package directory."""

from __future__ import annotations

import shutil
from pathlib import Path

from wasmpack.progress import PBAR


def copy_from_crate(path: Path, out_dir: Path) -> None:
    """Copy ``README.md`` from the crate directory into ``out_dir``."""
    path = Path(path)
    out_dir = Path(out_dir)
    if not path.is_dir():
        raise NotADirectoryError("crate directory should exist")
    if not out_dir.is_dir():
        raise NotADirectoryError("crate's pkg directory should exist")

    crate_readme = path / "README.md"
    if crate_readme.exists():
        try:
            shutil.copyfile(crate_readme, out_dir / "README.md")
        except OSError as exc:
            raise OSError(f"failed to copy README: {exc}") from exc
    else:
        PBAR.warn("origin crate has no README")