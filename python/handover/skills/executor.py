"""Run a skill's prompt template against the knowledge base."""

import logging
from dataclasses import dataclass

from ..agents.claude import ChatFn
from ..store.types import KnowledgeEntry, SkillDefinition
from .registry import SkillRegistry

logger = logging.getLogger(__name__)


@dataclass
class SkillExecutionResult:
    output: str
    skill_id: str
    success: bool

    def to_dict(self) -> dict:
        return {"output": self.output, "skillId": self.skill_id, "success": self.success}


def format_knowledge_context(entries: list[KnowledgeEntry]) -> str:
    if not entries:
        return "No knowledge entries available."

    blocks: list[str] = []
    for entry in entries:
        source = (
            f"{entry.source.type}: {entry.source.path}"
            if entry.source.path
            else entry.source.type
        )
        blocks.append(
            f"--- [{entry.id}] {entry.title} ---\n"
            f"Category: {entry.category} | Source: {source} | "
            f"Confidence: {round(entry.confidence * 100)}%\n\n"
            f"{entry.content}"
        )
    return "\n\n".join(blocks)


async def execute_skill(
    chat: ChatFn,
    skill: SkillDefinition,
    entries: list[KnowledgeEntry],
    query: str | None = None,
) -> SkillExecutionResult:
    system = (
        f"{skill.prompt}\n\n"
        "Use only the knowledge base entries provided below. If the knowledge "
        "base lacks information on a topic, say so explicitly."
    )
    content = f"Knowledge Base:\n\n{format_knowledge_context(entries)}\n\n---\n\n"
    if query:
        content += f"User Query: {query}"
    else:
        content += "Please generate the output based on the knowledge base above."

    try:
        output = await chat([{"role": "user", "content": content}], system=system, temperature=0.3)
    except Exception as err:
        logger.warning("Skill %s failed: %s", skill.id, err)
        return SkillExecutionResult(
            output=f"Skill execution failed: {err}", skill_id=skill.id, success=False
        )
    return SkillExecutionResult(output=output, skill_id=skill.id, success=True)


async def auto_execute_skill(
    chat: ChatFn,
    registry: SkillRegistry,
    query: str,
    entries: list[KnowledgeEntry],
) -> SkillExecutionResult | None:
    """Execute the best-matching skill, or return None when none match."""
    matches = registry.match(query)
    if not matches:
        return None

    best = matches[0]
    result = await execute_skill(chat, best, entries, query)
    if not best.is_built_in:
        registry.record_usage(best.id, result.success)
    return result
