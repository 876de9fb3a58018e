#!/usr/bin/env python3
"""Handover hook handler for SessionStart events.

When the working directory has a .handover directory, prints a one-line
summary of the knowledge base so the assistant knows the plugin is active.

Usage: echo '{"cwd":"..."}' | python -m handover.hooks.session_context
"""

import json
import os
import sys

from ..store.files import list_record_files, read_record
from ..store.scope import HANDOVER_DIR


def summarize(cwd: str) -> str | None:
    """Summary line for the handover data under ``cwd``, or None."""
    handover_dir = os.path.join(cwd, HANDOVER_DIR)
    if not os.path.isdir(handover_dir):
        return None

    profile = read_record(os.path.join(handover_dir, "profile.json"))
    profile_info = ""
    if isinstance(profile, dict) and profile.get("name"):
        profile_info = f'"{profile["name"]}" ({profile.get("type", "project")} handover)'

    entry_count = len(list_record_files(os.path.join(handover_dir, "knowledge", "entries")))
    if entry_count == 0:
        return None

    index = read_record(os.path.join(handover_dir, "knowledge", "index.json"))
    categories = set()
    if isinstance(index, dict):
        categories = {e.get("category") for e in index.get("entries") or [] if isinstance(e, dict)}

    return " | ".join([
        f"Handover plugin active: {profile_info or 'initialized'}",
        f"Knowledge base: {entry_count} entries across {len(categories)} categories",
        "Use /handover:ask to query, /handover:gaps to find missing topics.",
    ])


def main() -> None:
    try:
        raw = sys.stdin.read().strip() if not sys.stdin.isatty() else ""
        hook_data = json.loads(raw) if raw else {}
        cwd = hook_data.get("cwd") or os.getcwd()
        message = summarize(cwd)
    except Exception as err:
        # hooks must never break the session
        print(f"handover-session-context: {err}", file=sys.stderr)
        return

    if message:
        sys.stdout.write(message)


if __name__ == "__main__":
    main()
