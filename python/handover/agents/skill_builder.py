"""Create and improve skills from question patterns and weak areas."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..feedback.analyzer import QuestionPattern, WeakArea
from ..store.types import CATEGORIES, SkillDefinition, SkillMetadata, SkillTrigger
from .base import AgentResult, run_agent
from .claude import ChatFn
from .output import parse_structured_output
from .prompts import get_prompt

MAX_NEW_SKILLS = 3
MAX_IMPROVEMENTS = 3
MIN_PATTERN_FREQUENCY = 2


@dataclass
class SkillImprovement:
    id: str
    changes: str
    improved_prompt: str


@dataclass
class SkillBuildInput:
    question_patterns: list[QuestionPattern]
    weak_areas: list[WeakArea]
    existing_skills: list[SkillDefinition] = field(default_factory=list)


@dataclass
class SkillBuildResult:
    new_skills: list[SkillDefinition]
    improved_skills: list[SkillImprovement]
    summary: str


def is_pattern_covered(pattern: QuestionPattern, skills: list[SkillDefinition]) -> bool:
    pattern_terms = [t.lower() for t in (pattern.pattern, *pattern.categories)]
    for skill in skills:
        skill_terms = [
            t.lower()
            for t in (*skill.trigger.keywords, skill.name, *skill.trigger.categories)
        ]
        for pt in pattern_terms:
            if any(st in pt or pt in st for st in skill_terms):
                return True
    return False


def find_skill_for_weak_area(area: WeakArea, skills: list[SkillDefinition]) -> SkillDefinition | None:
    topic = area.topic.lower()
    for skill in skills:
        keywords = [k.lower() for k in skill.trigger.keywords]
        if any(k in topic or topic in k for k in keywords) or topic in skill.name.lower():
            return skill
    return None


def _bump_minor(version: str) -> str:
    parts = version.split(".")
    try:
        major, minor = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        return "1.1.0"
    return f"{major}.{minor + 1}.0"


class SkillBuilder:
    name = "skill-builder"

    def __init__(self, chat: ChatFn) -> None:
        self.chat = chat

    async def run(self, input_: SkillBuildInput) -> AgentResult[SkillBuildResult]:
        return await run_agent("Skill builder", self._build(input_))

    async def _build(self, input_: SkillBuildInput) -> SkillBuildResult:
        uncovered = [
            p for p in input_.question_patterns
            if p.frequency >= MIN_PATTERN_FREQUENCY
            and not is_pattern_covered(p, input_.existing_skills)
        ]

        new_skills: list[SkillDefinition] = []
        for pattern in uncovered[:MAX_NEW_SKILLS]:
            skill = await self.build_skill_for_pattern(pattern)
            if skill:
                new_skills.append(skill)

        improvements: list[SkillImprovement] = []
        for area in input_.weak_areas[:MAX_IMPROVEMENTS]:
            skill = find_skill_for_weak_area(area, input_.existing_skills)
            if skill is None:
                continue
            improvement = await self.improve_skill(skill, area)
            if improvement:
                improvements.append(improvement)

        parts: list[str] = []
        if new_skills:
            names = ", ".join(s.name for s in new_skills)
            parts.append(f"Created {len(new_skills)} new skill(s): {names}")
        if improvements:
            parts.append(f"Improved {len(improvements)} existing skill(s)")
        if not parts:
            parts.append("No new skills needed - existing skills cover current question patterns well.")

        return SkillBuildResult(
            new_skills=new_skills,
            improved_skills=improvements,
            summary=". ".join(parts),
        )

    async def build_skill_for_pattern(self, pattern: QuestionPattern) -> SkillDefinition | None:
        content = "\n".join([
            "Create a new skill for the following recurring question pattern:",
            "",
            f"Theme: {pattern.pattern}",
            f"Frequency: {pattern.frequency} occurrences",
            f"Related categories: {', '.join(pattern.categories)}",
            "",
            "Example questions:",
            *(f'  - "{q}"' for q in pattern.example_questions),
        ])
        text = await self.chat(
            [{"role": "user", "content": content}],
            system=get_prompt("skill_builder_system"),
            temperature=0.4,
        )
        parsed = parse_structured_output(text, "object")
        if not parsed or not isinstance(parsed.get("prompt"), str) or not parsed.get("name"):
            return None

        categories = [c for c in parsed.get("categories") or [] if c in CATEGORIES]
        keywords = [k for k in parsed.get("keywords") or [] if isinstance(k, str)]
        examples = [e for e in parsed.get("examples") or [] if isinstance(e, str)]
        now = datetime.now(timezone.utc).isoformat()

        return SkillDefinition(
            id=f"gen-{uuid.uuid4().hex[:8]}",
            name=str(parsed["name"]),
            description=str(parsed.get("description") or ""),
            version="1.0.0",
            trigger=SkillTrigger(
                keywords=keywords or [pattern.pattern],
                categories=categories or ["other"],
                min_confidence=0.3,
            ),
            prompt=parsed["prompt"],
            examples=examples or list(pattern.example_questions),
            metadata=SkillMetadata(
                created_at=now,
                updated_at=now,
                usage_count=0,
                success_rate=0.0,
                source="generated",
            ),
        )

    async def improve_skill(self, skill: SkillDefinition, area: WeakArea) -> SkillImprovement | None:
        content = "\n".join([
            "Improve this underperforming skill:",
            "",
            f"Skill: {skill.name}",
            f"Current prompt: {skill.prompt}",
            "",
            "Problem area:",
            f"  Topic: {area.topic}",
            f"  Negative feedback: {area.negative_count} out of {area.total_count} interactions",
            "",
            "Sample questions that received negative feedback:",
            *(f'  - "{q}"' for q in area.sample_questions),
        ])
        text = await self.chat(
            [{"role": "user", "content": content}],
            system=get_prompt("skill_improver_system"),
            temperature=0.4,
        )
        parsed = parse_structured_output(text, "object")
        if not parsed or not isinstance(parsed.get("improvedPrompt"), str):
            return None

        return SkillImprovement(
            id=skill.id,
            changes=str(parsed.get("changes") or ""),
            improved_prompt=parsed["improvedPrompt"],
        )


def improvement_updates(skill: SkillDefinition, improvement: SkillImprovement) -> dict:
    """Registry update payload applying an improvement to a skill."""
    return {"prompt": improvement.improved_prompt, "version": _bump_minor(skill.version)}
