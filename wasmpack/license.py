"""Copying the crate's ``LICENSE`` file(s) into the package directory."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from wasmpack.progress import PBAR


def glob_license_files(path: Path) -> list[str]:
    """Names of the ``LICENSE*`` files in ``path``, sorted."""
    return sorted(entry.name for entry in Path(path).glob("LICENSE*"))


def _copy_or_report(source: Path, destination: Path) -> None:
    try:
        shutil.copyfile(source, destination)
    except OSError:
        PBAR.info("origin crate has no LICENSE")


def copy_from_crate(crate_data: Any, path: Path, out_dir: Path) -> None:
    """Copy the license file(s) named by the crate's manifest into ``out_dir``."""
    path = Path(path)
    out_dir = Path(out_dir)
    if not path.is_dir():
        raise NotADirectoryError("crate directory should exist")
    if not out_dir.is_dir():
        raise NotADirectoryError("crate's pkg directory should exist")

    manifest = crate_data.manifest
    if manifest.license is not None:
        files = glob_license_files(path)
        if not files:
            PBAR.info(
                "License key is set in Cargo.toml but no LICENSE file(s) were found; "
                "Please add the LICENSE file(s) to your project directory"
            )
            return
        for name in files:
            _copy_or_report(path / name, out_dir / name)
    elif manifest.license_file is not None:
        license_file = manifest.license_file
        _copy_or_report(path / license_file, out_dir / license_file)