"""Skill registry: built-in skills plus generated/manual skills on disk."""

import logging
import os
from datetime import datetime, timezone

from ..store.files import ensure_dir, list_record_files, read_record, record_path, write_record
from ..store.ranking import query_terms
from ..store.types import SkillDefinition
from .builtin import BUILT_IN_IDS, get_built_in_skills

logger = logging.getLogger(__name__)

KEYWORD_IN_QUERY = 3
TERM_KEYWORD_OVERLAP = 1
CATEGORY_MATCH = 2
TERM_IN_NAME = 2
TERM_IN_DESCRIPTION = 1


def score_skill(skill: SkillDefinition, query: str, category: str | None = None) -> int:
    query_lower = query.lower()
    terms = query_terms(query)
    score = 0

    for keyword in skill.trigger.keywords:
        keyword_lower = keyword.lower()
        if keyword_lower in query_lower:
            score += KEYWORD_IN_QUERY
        for term in terms:
            if keyword_lower in term or term in keyword_lower:
                score += TERM_KEYWORD_OVERLAP

    if category and category in skill.trigger.categories:
        score += CATEGORY_MATCH

    name = skill.name.lower()
    description = skill.description.lower()
    for term in terms:
        if term in name:
            score += TERM_IN_NAME
        if term in description:
            score += TERM_IN_DESCRIPTION

    return score


class SkillRegistry:
    """Skills persisted under ``<data_dir>/skills/<id>.json``."""

    def __init__(self, data_dir: str) -> None:
        self.skills_dir = os.path.join(data_dir, "skills")

    def _path(self, skill_id: str) -> str | None:
        return record_path(self.skills_dir, skill_id)

    def init(self) -> None:
        ensure_dir(self.skills_dir)

    def _load(self, path: str | None) -> SkillDefinition | None:
        if path is None:
            return None
        data = read_record(path)
        if not isinstance(data, dict):
            return None
        try:
            return SkillDefinition.from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed skill file %s", path)
            return None

    def load_dynamic(self) -> list[SkillDefinition]:
        skills: list[SkillDefinition] = []
        for name in list_record_files(self.skills_dir):
            skill = self._load(os.path.join(self.skills_dir, name))
            if skill and skill.id not in BUILT_IN_IDS:
                skills.append(skill)
        return skills

    def load_all(self) -> list[SkillDefinition]:
        """Built-in skills first, then persisted ones."""
        return [*get_built_in_skills(), *self.load_dynamic()]

    def get(self, skill_id: str) -> SkillDefinition | None:
        for skill in get_built_in_skills():
            if skill.id == skill_id:
                return skill
        return self._load(self._path(skill_id))

    def register(self, skill: SkillDefinition) -> None:
        if skill.id in BUILT_IN_IDS or skill.is_built_in:
            raise ValueError(f"Cannot register over built-in skill {skill.id}")
        path = self._path(skill.id)
        if path is None:
            raise ValueError(f"Invalid skill id: {skill.id!r}")
        self.init()
        write_record(path, skill.to_dict())

    def update(self, skill_id: str, updates: dict) -> SkillDefinition | None:
        """Apply a partial update to a persisted skill.

        ``updates`` may carry ``prompt``, ``version``, ``description``,
        ``examples`` and a ``metadata`` dict of snake_case fields. Built-in
        skills are never updated; returns None for them and for unknown ids.
        """
        if skill_id in BUILT_IN_IDS:
            return None
        skill = self._load(self._path(skill_id))
        if skill is None or skill.is_built_in:
            return None

        for name in ("name", "description", "version", "prompt", "examples"):
            if name in updates:
                setattr(skill, name, updates[name])
        for name, value in (updates.get("metadata") or {}).items():
            if name != "source" and hasattr(skill.metadata, name):
                setattr(skill.metadata, name, value)
        skill.id = skill_id
        skill.metadata.updated_at = datetime.now(timezone.utc).isoformat()

        write_record(self._path(skill_id), skill.to_dict())
        return skill

    def record_usage(self, skill_id: str, succeeded: bool) -> SkillDefinition | None:
        """Bump the usage count and fold the outcome into the success rate."""
        skill = None if skill_id in BUILT_IN_IDS else self._load(self._path(skill_id))
        if skill is None or skill.is_built_in:
            return None

        prior = skill.metadata
        usage_count = prior.usage_count + 1
        successes = prior.success_rate * prior.usage_count + (1 if succeeded else 0)
        return self.update(
            skill_id,
            {"metadata": {"usage_count": usage_count, "success_rate": successes / usage_count}},
        )

    def delete(self, skill_id: str) -> bool:
        if skill_id in BUILT_IN_IDS:
            return False
        path = self._path(skill_id)
        if path is None or not os.path.exists(path):
            return False
        os.unlink(path)
        return True

    def match(self, query: str, category: str | None = None) -> list[SkillDefinition]:
        """Skills scoring above zero, best first."""
        scored = [(score_skill(skill, query, category), skill) for skill in self.load_all()]
        ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda p: p[0], reverse=True)
        return [skill for _, skill in ranked]
