"""Extract knowledge entries from a codebase, its docs, or its git history."""

import os
import subprocess
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from ..store.types import CATEGORIES, KnowledgeEntry, KnowledgeSource, SourceType
from .base import AgentResult, run_agent
from .claude import ChatFn
from .output import parse_structured_output
from .prompts import get_prompt, render_prompt

ExtractionType = Literal["codebase", "docs", "git"]
ExtractionDepth = Literal["shallow", "deep"]

MAX_KEY_FILE_CHARS = 50_000
MAX_DOC_CHARS = 20_000
MAX_DOC_FILES = 30
MAX_TREE_FILES = 200
GIT_TIMEOUT_SECONDS = 10

SKIP_DIRS = {
    "node_modules", ".git", "dist", "build", ".next", ".cache",
    "coverage", "__pycache__", ".venv", "venv",
}

BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg",
    ".woff", ".woff2", ".ttf", ".eot",
    ".zip", ".tar", ".gz", ".bz2",
    ".pdf", ".doc", ".docx",
    ".mp3", ".mp4", ".avi", ".mov",
    ".exe", ".dll", ".so", ".dylib",
    ".lock",
}

KEY_FILES = {
    "package.json", "tsconfig.json", "README.md", "readme.md", "Makefile",
    "Dockerfile", "docker-compose.yml", "docker-compose.yaml", ".env.example",
    "pyproject.toml", "setup.py", "setup.cfg", "Cargo.toml", "go.mod",
    "pom.xml", "build.gradle",
}

ENTRY_POINT_NAMES = {
    "index.ts", "index.js", "main.ts", "main.js", "app.ts", "app.js",
    "server.ts", "server.js", "main.py", "app.py", "__main__.py", "server.py",
}

CONFIG_SUFFIXES = (".config.ts", ".config.js", ".config.json")
CONFIG_NAMES = {".eslintrc.json", ".prettierrc"}

CODEBASE_FOCUS = """1. Project architecture and structure
2. Key technologies and dependencies
3. Build and development setup
4. Important conventions and patterns
5. Entry points and main modules"""

DOCS_FOCUS = """1. Processes and workflows described
2. Architectural decisions documented
3. Domain concepts explained
4. Setup and onboarding guides
5. Team conventions"""

GIT_FOCUS = """1. Key contributors and their roles/areas
2. Development patterns (branching strategy, commit conventions)
3. Recent major changes or decisions visible in history
4. Project activity level and pace
5. Notable milestones or releases"""


@dataclass
class ExtractionInput:
    path: str
    type: ExtractionType = "codebase"
    depth: ExtractionDepth = "shallow"


@dataclass
class ExtractionResult:
    entries: list[KnowledgeEntry] = field(default_factory=list)
    summary: str = ""
    sources_processed: int = 0


def _is_skipped_dir(name: str) -> bool:
    return name in SKIP_DIRS or name.startswith(".")


def _is_binary(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in BINARY_EXTENSIONS


def list_files(base_path: str, suffix: str | None = None) -> list[str]:
    """Relative paths of files under base_path, skipping vendored dirs."""
    results: list[str] = []
    for root, dirs, files in os.walk(base_path):
        dirs[:] = [d for d in dirs if not _is_skipped_dir(d)]
        for name in files:
            if suffix and not name.endswith(suffix):
                continue
            rel = os.path.relpath(os.path.join(root, name), base_path)
            results.append(rel.replace(os.sep, "/"))
    return sorted(results)


def _safe_read(path: str, max_chars: int) -> str | None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError):
        return None
    if len(content) > max_chars:
        return content[:max_chars] + "\n... [truncated]"
    return content


def _fenced(text: str) -> str:
    return f"```\n{text}\n```"


def parse_extracted_entries(text: str, source: KnowledgeSource) -> list[KnowledgeEntry]:
    """Turn the model's JSON array into entries, dropping invalid items."""
    parsed = parse_structured_output(text, "array")
    if not parsed:
        return []

    now = datetime.now(timezone.utc).isoformat()
    entries: list[KnowledgeEntry] = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        title = item.get("title")
        content = item.get("content")
        category = item.get("category")
        if not isinstance(title, str) or not title.strip():
            continue
        if not isinstance(content, str) or category not in CATEGORIES:
            continue
        confidence = item.get("confidence", 0.5)
        if not isinstance(confidence, (int, float)):
            confidence = 0.5
        tags = [t for t in item.get("tags") or [] if isinstance(t, str)]

        entries.append(
            KnowledgeEntry(
                id=str(uuid.uuid4()),
                title=title.strip(),
                content=content,
                category=category,
                tags=tags,
                source=KnowledgeSource(type=source.type, path=source.path, ref=source.ref),
                confidence=max(0.0, min(1.0, float(confidence))),
                created_at=now,
                updated_at=now,
            )
        )
    return entries


class KnowledgeExtractor:
    """Analyzes a path and asks the model for knowledge entries."""

    name = "knowledge-extractor"

    def __init__(self, chat: ChatFn) -> None:
        self.chat = chat

    async def run(self, input_: ExtractionInput) -> AgentResult[ExtractionResult]:
        return await run_agent("Extraction", self._extract(input_))

    async def _extract(self, input_: ExtractionInput) -> ExtractionResult:
        if input_.type == "codebase":
            return await self._from_codebase(input_)
        if input_.type == "docs":
            return await self._from_docs(input_)
        if input_.type == "git":
            return await self._from_git(input_)
        raise ValueError(f"Unknown extraction type: {input_.type}")

    async def _call(self, prompt: str, focus: str, source_type: SourceType, path: str) -> list[KnowledgeEntry]:
        instructions = render_prompt(
            "extraction_instructions",
            categories=", ".join(f'"{c}"' for c in CATEGORIES),
            focus=focus,
        )
        text = await self.chat(
            [{"role": "user", "content": f"{prompt}\n\n{instructions}"}],
            system=get_prompt("extraction_system"),
            temperature=0.3,
        )
        return parse_extracted_entries(text, KnowledgeSource(type=source_type, path=path))

    async def _from_codebase(self, input_: ExtractionInput) -> ExtractionResult:
        base = input_.path
        files = [f for f in list_files(base) if not _is_binary(f)]

        key_files: list[str] = []
        source_files: list[str] = []
        for rel in files:
            (key_files if os.path.basename(rel) in KEY_FILES else source_files).append(rel)

        key_sections: list[str] = []
        for rel in key_files:
            content = _safe_read(os.path.join(base, rel), MAX_KEY_FILE_CHARS)
            if content:
                key_sections.append(f"--- {rel} ---\n{content}")

        additional: list[str] = []
        if input_.depth == "deep":
            entry_points = [f for f in source_files if os.path.basename(f) in ENTRY_POINT_NAMES]
            for rel in entry_points[:10]:
                content = _safe_read(os.path.join(base, rel), 10_000)
                if content:
                    additional.append(f"--- {rel} ---\n{content}")

            config_files = [
                f for f in source_files
                if os.path.basename(f).endswith(CONFIG_SUFFIXES)
                or os.path.basename(f) in CONFIG_NAMES
            ]
            for rel in config_files[:10]:
                content = _safe_read(os.path.join(base, rel), 5_000)
                if content:
                    additional.append(f"--- {rel} ---\n{content}")

        prompt = render_prompt(
            "extraction_codebase",
            file_tree=_fenced("\n".join(files[:MAX_TREE_FILES])),
            key_files="\n\n".join(key_sections) or "(none)",
            additional=(
                "\n## Additional Source Files\n" + "\n\n".join(additional)
                if additional
                else ""
            ),
        )
        entries = await self._call(prompt, CODEBASE_FOCUS, "file", base)

        processed = len(key_files) + (len(source_files) if input_.depth == "deep" else 0)
        return ExtractionResult(
            entries=entries,
            summary=(
                f"Extracted {len(entries)} entries from codebase analysis "
                f"({len(files)} files found, {len(key_files)} key files analyzed)"
            ),
            sources_processed=processed,
        )

    async def _from_docs(self, input_: ExtractionInput) -> ExtractionResult:
        base = input_.path
        md_files = list_files(base, suffix=".md")
        if not md_files:
            return ExtractionResult(summary="No markdown documentation files found.")

        sections: list[str] = []
        for rel in md_files[:MAX_DOC_FILES]:
            content = _safe_read(os.path.join(base, rel), MAX_DOC_CHARS)
            if content:
                sections.append(f"--- {rel} ---\n{content}")

        prompt = render_prompt("extraction_docs", docs="\n\n".join(sections))
        entries = await self._call(prompt, DOCS_FOCUS, "doc", base)

        return ExtractionResult(
            entries=entries,
            summary=f"Extracted {len(entries)} entries from {len(md_files)} documentation files",
            sources_processed=len(md_files),
        )

    async def _from_git(self, input_: ExtractionInput) -> ExtractionResult:
        base = input_.path
        log = _git(base, "log", "--oneline", "-50")
        if log is None:
            return ExtractionResult(summary="Not a git repository or git is not available.")

        graph = _git(base, "log", "--all", "--oneline", "--graph", "-20")
        contributors = _git(base, "shortlog", "-sn", "HEAD")

        prompt = render_prompt(
            "extraction_git",
            log=_fenced(log),
            graph=_fenced(graph if graph is not None else "(graph unavailable)"),
            contributors=_fenced(
                contributors if contributors is not None else "(contributors unavailable)"
            ),
        )
        entries = await self._call(prompt, GIT_FOCUS, "git", base)

        return ExtractionResult(
            entries=entries,
            summary=f"Extracted {len(entries)} entries from git history analysis",
            sources_processed=1,
        )


def _git(cwd: str, *args: str) -> str | None:
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return completed.stdout
