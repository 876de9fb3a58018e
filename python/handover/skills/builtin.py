"""Skills that ship with the handover agent. Never persisted or mutated."""

import copy
from datetime import datetime, timezone

from ..store.types import SkillDefinition, SkillMetadata, SkillTrigger

_LOADED_AT = datetime.now(timezone.utc).isoformat()


def _built_in(
    id_: str,
    name: str,
    description: str,
    keywords: list[str],
    categories: list[str],
    prompt: list[str],
    examples: list[str],
) -> SkillDefinition:
    return SkillDefinition(
        id=id_,
        name=name,
        description=description,
        version="1.0.0",
        trigger=SkillTrigger(keywords=keywords, categories=categories, min_confidence=0.3),
        prompt="\n".join(prompt),
        examples=examples,
        metadata=SkillMetadata(
            created_at=_LOADED_AT,
            updated_at=_LOADED_AT,
            usage_count=0,
            success_rate=1.0,
            source="built-in",
        ),
    )


_BUILT_IN_SKILLS: tuple[SkillDefinition, ...] = (
    _built_in(
        "codebase-overview",
        "Codebase Overview",
        "Generates a high-level overview of the project structure, tech stack, and architecture.",
        ["overview", "structure", "architecture", "codebase", "project"],
        ["architecture", "codebase"],
        [
            "You are a handover assistant. Using the knowledge base entries provided, generate a clear and concise overview of this project.",
            "Cover the following aspects:",
            "1. What the project does (purpose and goals)",
            "2. Technology stack and key dependencies",
            "3. High-level architecture (main components and how they interact)",
            "4. Directory/file structure summary",
            "",
            "Keep it structured with headings and bullet points. Only state what the knowledge base supports.",
        ],
        ["Give me a codebase overview", "What is the project structure?", "Describe the architecture"],
    ),
    _built_in(
        "onboarding-checklist",
        "Onboarding Checklist",
        "Creates a step-by-step onboarding checklist for getting started with the project.",
        ["checklist", "getting started", "setup", "onboarding", "first steps"],
        ["process", "tool"],
        [
            "You are a handover assistant. Using the knowledge base entries provided, generate a practical onboarding checklist.",
            "The checklist should include:",
            "1. Environment setup steps (tools, dependencies, accounts)",
            "2. Key repositories to clone and how to build/run them",
            "3. Important documentation to read first",
            "4. Key people to meet or contact",
            "5. Common workflows and processes to learn",
            "",
            "Format as a numbered checklist of actionable items, most critical first.",
        ],
        ["Create an onboarding checklist", "How do I get started?", "What should I set up first?"],
    ),
    _built_in(
        "key-decisions",
        "Key Decisions",
        "Summarizes important architectural and technical decisions and their rationale.",
        ["decisions", "why", "rationale", "choices", "reasoning", "trade-offs"],
        ["decision", "architecture"],
        [
            "You are a handover assistant. Using the knowledge base entries provided, summarize the key architectural and technical decisions made in this project.",
            "For each decision:",
            "1. What was decided",
            "2. Why it was decided that way",
            "3. What alternatives were considered (if known)",
            "4. Any trade-offs or consequences",
            "",
            "Focus on decisions a new team member needs to understand. Group by category if there are many.",
        ],
        ["What key decisions were made?", "Why was this architecture chosen?", "What is the design rationale?"],
    ),
    _built_in(
        "team-contacts",
        "Team Contacts",
        "Lists key people, their roles, and areas of responsibility.",
        ["who", "team", "contacts", "people", "roles", "owner", "responsible"],
        ["people"],
        [
            "You are a handover assistant. Using the knowledge base entries provided, list the key people involved in this project.",
            "For each person:",
            "1. Name and role/title",
            "2. Areas of responsibility or expertise",
            "3. When to contact them",
            "",
            "If the knowledge base lacks people information, say so and suggest adding it.",
        ],
        ["Who should I talk to?", "Who is on the team?", "Who owns the backend?"],
    ),
)

BUILT_IN_IDS = frozenset(skill.id for skill in _BUILT_IN_SKILLS)


def get_built_in_skills() -> list[SkillDefinition]:
    """Fresh copies, so callers cannot alter the shared definitions."""
    return copy.deepcopy(list(_BUILT_IN_SKILLS))
