#!/usr/bin/env python3
"""Handover hook handler for UserPromptSubmit events.

Suggests the handover plugin when a prompt sounds like onboarding and the
project has no .handover directory yet.

Usage: echo '{"prompt":"...","cwd":"..."}' | python -m handover.hooks.detect_handover
"""

import json
import os
import sys

from ..store.scope import HANDOVER_DIR

TRIGGER_PHRASES = (
    "new to this codebase",
    "new to this project",
    "just joined",
    "taking over",
    "handover",
    "hand over",
    "knowledge transfer",
    "onboarding",
    "inherited this",
    "picking up this project",
    "new team member",
    "getting up to speed",
    "unfamiliar with this",
    "first time seeing this",
    "need to understand this",
    "what does this project do",
    "how does this codebase work",
    "project takeover",
)

SUGGESTION = "\n".join([
    "It sounds like you might be going through a handover or onboarding.",
    "The **handover** plugin can help! It extracts and organizes project knowledge to accelerate your understanding.",
    "",
    "Try: `/handover:init` to get started, then `/handover:extract .` to analyze this codebase.",
])


def suggestion_for(prompt: str, cwd: str) -> str | None:
    if os.path.exists(os.path.join(cwd, HANDOVER_DIR)):
        return None
    lowered = prompt.lower()
    if any(phrase in lowered for phrase in TRIGGER_PHRASES):
        return SUGGESTION
    return None


def main() -> None:
    try:
        raw = sys.stdin.read().strip()
        hook_data = json.loads(raw) if raw else {}
        prompt = hook_data.get("prompt") or hook_data.get("content") or ""
        message = suggestion_for(prompt, hook_data.get("cwd") or os.getcwd())
    except Exception as err:
        # hooks must never break the session
        print(f"handover-detect: {err}", file=sys.stderr)
        return

    if message:
        sys.stdout.write(message)


if __name__ == "__main__":
    main()
