"""Data directory resolution for handover storage."""

import os
from pathlib import Path

HANDOVER_DIR = ".handover"
GLOBAL_DIR = os.path.join(str(Path.home()), HANDOVER_DIR)


def detect_project_root(cwd: str | None = None) -> str | None:
    """Nearest ancestor of ``cwd`` holding a .handover directory."""
    current = os.path.abspath(cwd or os.getcwd())

    while True:
        if os.path.isdir(os.path.join(current, HANDOVER_DIR)):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def resolve_data_dir(data_dir: str, cwd: str | None = None) -> str:
    """Resolve a configured data dir against the project root (or cwd)."""
    if os.path.isabs(data_dir):
        return data_dir
    root = detect_project_root(cwd) or os.path.abspath(cwd or os.getcwd())
    return os.path.join(root, data_dir)
