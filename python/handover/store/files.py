"""JSON record and line-log helpers for the data directory."""

import json
import logging
import os
import tempfile
from typing import Any

logger = logging.getLogger(__name__)


def ensure_dir(dir_path: str) -> None:
    if not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)


def read_record(path: str) -> Any | None:
    """Read a JSON record. Missing and unparseable files both yield None."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as err:
        logger.debug("Unreadable record %s: %s", path, err)
        return None


def write_record(path: str, data: Any) -> None:
    """Write a JSON record atomically.

    The payload goes to a temp file in the same directory which then
    replaces the target, so readers see either the old or the new content.
    """
    dir_path = os.path.dirname(path) or "."
    ensure_dir(dir_path)

    fd, tmp_path = tempfile.mkstemp(
        dir=dir_path, prefix=f".{os.path.basename(path)}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def append_line(path: str, line: str) -> None:
    """Append one newline-terminated record to a line log."""
    ensure_dir(os.path.dirname(path) or ".")
    with open(path, "a", encoding="utf-8") as f:
        f.write(line + "\n")


def read_lines(path: str) -> list[str]:
    """Non-empty lines of a line log, [] if it does not exist."""
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as err:
        logger.debug("Unreadable log %s: %s", path, err)
        return []
    return [line for line in raw.split("\n") if line.strip()]


def read_json_lines(path: str) -> list[dict]:
    """Parse a JSONL log, skipping malformed lines."""
    records: list[dict] = []
    for line in read_lines(path):
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue  # skip malformed lines
        if isinstance(record, dict):
            records.append(record)
    return records


def list_record_files(dir_path: str) -> list[str]:
    """JSON record filenames in a directory, [] if it does not exist."""
    if not os.path.isdir(dir_path):
        return []
    return sorted(
        name
        for name in os.listdir(dir_path)
        if name.endswith(".json") and not name.startswith(".")
    )


def record_path(dir_path: str, record_id: str) -> str | None:
    """``<dir_path>/<record_id>.json``, or None for an id that is not a plain name."""
    if not record_id or record_id.startswith("."):
        return None
    if any(sep in record_id for sep in ("/", "\\", "\0", os.sep)):
        return None
    return os.path.join(dir_path, f"{record_id}.json")
