"""Looking up the newest published wasm-pack version, rate limited by a stamp file."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from wasmpack.stamps import StampsError, get_stamps_file_path

CRATES_IO_URL = "https://crates.io/api/v1/crates/wasm-pack"
USER_AGENT = "wasm-pack/unknown"
STAMP_MAX_AGE_HOURS = 24


class VersionCheckError(Exception):
    """Raised when the latest version cannot be fetched."""


def parse_stamp_value(contents: str, word: str) -> str | None:
    """Second word of the first line of ``contents`` that starts with ``word``."""
    line = next((line for line in contents.splitlines() if line.startswith(word)), None)
    if line is None:
        return None
    parts = line.split()
    return parts[1] if len(parts) > 1 else None


def write_stamp_file(path: Path, created: datetime, version: str | None = None) -> None:
    """Replace the stamp file with the check time and, if known, the version."""
    text = f"created {created.isoformat()}"
    if version is not None:
        text += f"\nversion {version}"
    Path(path).write_text(text, encoding="utf-8")


def fetch_latest_version() -> str:
    """Ask the crates registry for the newest wasm-pack version."""
    request = urllib.request.Request(CRATES_IO_URL, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=30) as response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise VersionCheckError(_bad_status(exc.code)) from exc
    except urllib.error.URLError as exc:
        raise VersionCheckError(
            f"failed to check for newer wasm-pack version at {CRATES_IO_URL}: {exc.reason}"
        ) from exc
    if not 200 <= status < 300:
        raise VersionCheckError(_bad_status(status))
    try:
        version = json.loads(body.decode("utf-8", errors="replace"))["crate"]["max_version"]
    except (ValueError, KeyError, TypeError) as exc:
        raise VersionCheckError("unexpected response when checking for newer wasm-pack version") from exc
    if not isinstance(version, str):
        raise VersionCheckError("unexpected response when checking for newer wasm-pack version")
    return version


def _bad_status(code: int) -> str:
    return (
        f"Received a bad HTTP status code ({code}) when checking for newer "
        f"wasm-pack version at: {CRATES_IO_URL}"
    )


def _parse_time(text: str | None) -> datetime | None:
    if text is None:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else None


def _whole_hours(delta: timedelta) -> int:
    return int(delta.total_seconds() / 3600)


def _record(path: Path | None, now: datetime, version: str | None) -> None:
    if path is None:
        return
    try:
        write_stamp_file(path, now, version)
    except OSError:
        pass


def _fetch_and_record(path: Path | None, fetch: Callable[[], str], now: datetime) -> str:
    # The stamp is refreshed even on failure so the check is rate limited either way.
    try:
        version = fetch()
    except Exception:
        _record(path, now, None)
        raise
    _record(path, now, version)
    return version


def latest_version(
    stamp_path: Path | None = None,
    fetch: Callable[[], str] | None = None,
    now: datetime | None = None,
) -> str | None:
    """The newest wasm-pack version, fetched at most once a day.

    Returns None when the stamp file is unreadable in a way that gives no
    answer; raises whatever ``fetch`` raises when a fetch is needed and fails.
    """
    fetch = fetch if fetch is not None else fetch_latest_version
    now = now if now is not None else datetime.now().astimezone()
    if now.tzinfo is None:
        now = now.astimezone()

    path: Path | None
    if stamp_path is not None:
        path = Path(stamp_path)
    else:
        try:
            path = get_stamps_file_path().with_suffix(".stamp")
        except StampsError:
            path = None

    try:
        contents = path.read_text(encoding="utf-8") if path is not None else None
    except OSError:
        contents = None
    if contents is None:
        return _fetch_and_record(path, fetch, now)

    last_updated = _parse_time(parse_stamp_value(contents, "created"))
    if last_updated is None:
        return None
    if _whole_hours(now - last_updated) > STAMP_MAX_AGE_HOURS:
        return _fetch_and_record(path, fetch, now)
    return parse_stamp_value(contents, "version")