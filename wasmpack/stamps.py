"""Key-value store kept in a ``*.stamps`` JSON file next to the executable."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any


class StampsError(Exception):
    """Raised when the stamps store cannot be read, written or queried."""


def get_stamps_file_path() -> Path:
    """Path of the ``*.stamps`` file used as the store."""
    exe = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    if not exe:
        raise StampsError("cannot get stamps file path")
    return Path(exe).resolve().with_suffix(".stamps")


def read_stamps_file_to_json(path: Path | None = None) -> Any:
    """Read the stamps file and return its parsed JSON content."""
    stamps_path = Path(path) if path is not None else get_stamps_file_path()
    try:
        content = stamps_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise StampsError("cannot find or read stamps file") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise StampsError("stamps file doesn't contain valid JSON") from exc


def get_stamp_value(key: str, data: Any) -> str:
    """Get the string stored under ``key`` in data read from the stamps file."""
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise StampsError(f"cannot get stamp value for key '{key}'")
    return value


def save_stamp_value(key: str, value: str, path: Path | None = None) -> None:
    """Store ``value`` under ``key``, creating the stamps file if needed."""
    stamps_path = Path(path) if path is not None else get_stamps_file_path()
    try:
        data = read_stamps_file_to_json(stamps_path)
    except StampsError:
        data = {}
    if not isinstance(data, dict):
        raise StampsError("stamps file doesn't contain JSON object")
    data[key] = value
    try:
        stamps_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise StampsError("cannot write to stamps file") from exc