"""Load agent prompts from prompts.md (SSOT)."""

import os
import re

_PROMPTS_PATH = os.path.join(os.path.dirname(__file__), "prompts.md")

_prompts: dict[str, str] | None = None


def _load_prompts() -> dict[str, str]:
    """Parse prompts.md into {section name: fenced block}."""
    with open(_PROMPTS_PATH, "r", encoding="utf-8") as f:
        content = f.read()

    sections = re.findall(r"^## (\w+)\s*\n+```\n(.*?)```", content, re.DOTALL | re.MULTILINE)
    if not sections:
        raise RuntimeError(f"Failed to parse prompts from {_PROMPTS_PATH}")
    return {name: block.strip() for name, block in sections}


def get_prompt(name: str) -> str:
    global _prompts
    if _prompts is None:
        _prompts = _load_prompts()
    try:
        return _prompts[name]
    except KeyError:
        raise RuntimeError(f"Unknown prompt: {name}") from None


def render_prompt(name: str, **values: object) -> str:
    """Substitute ``{{KEY}}`` placeholders in a named prompt."""
    result = get_prompt(name)
    for key, value in values.items():
        result = result.replace("{{" + key.upper() + "}}", str(value))
    return result
