"""Command-line entry point over HandoverAgent.

Each command is an ``async def cmd_*(agent, args) -> str`` returning JSON
text, the same shape as the MCP tool handlers.

Usage: handover <command> [options]   (see ``handover --help``)
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from .agent import HandoverAgent
from .analysis.coverage import build_knowledge_map
from .config import get_config_value, load_config, set_config_value
from .errors import HandoverError
from .feedback.analyzer import analyze_feedback
from .store.scope import resolve_data_dir


def _dump(data) -> str:
    return json.dumps(data, indent=2)


async def cmd_init(agent: HandoverAgent, args: argparse.Namespace) -> str:
    profile = agent.initialize(args.name, args.type, args.description)
    return _dump(profile.to_dict())


async def cmd_extract(agent: HandoverAgent, args: argparse.Namespace) -> str:
    type_ = "docs" if args.docs else "git" if args.git else "codebase"
    outcome = await agent.extract_knowledge(args.path, type_, "deep" if args.deep else "shallow")
    return _dump({
        "summary": outcome.summary,
        "added": outcome.added,
        "deduplicated": outcome.deduplicated,
        "entries": [{"title": e.title, "category": e.category} for e in outcome.entries],
    })


async def cmd_ask(agent: HandoverAgent, args: argparse.Namespace) -> str:
    result = await agent.ask(args.question, args.session)
    payload = result.to_dict()
    payload["sessionId"] = agent.current_session.id if agent.current_session else None
    return _dump(payload)


async def cmd_status(agent: HandoverAgent, args: argparse.Namespace) -> str:
    return _dump(agent.get_status())


async def cmd_gaps(agent: HandoverAgent, args: argparse.Namespace) -> str:
    result = await agent.analyze_gaps()
    report = result.report.to_dict()
    report["gaps"] = [g.to_dict() for g in result.report.sorted_gaps()]
    return _dump(report)


async def cmd_map(agent: HandoverAgent, args: argparse.Namespace) -> str:
    """Knowledge map computed locally, without calling the model."""
    profile = agent.get_profile()
    knowledge_map = build_knowledge_map(
        agent.get_knowledge_entries(),
        agent.get_sessions(),
        profile.type if profile else "project",
    )
    return _dump([item.to_dict() for item in knowledge_map])


async def cmd_skills(agent: HandoverAgent, args: argparse.Namespace) -> str:
    if args.run:
        result = await agent.run_skill(args.run, args.query)
        if result is None:
            return _dump({"error": f"Skill not found: {args.run}"})
        return _dump(result.to_dict())

    payload: dict = {}
    if args.evolve:
        outcome = await agent.evolve_skills()
        payload["created"] = [s.name for s in outcome.new_skills]
        payload["improved"] = outcome.improved
    payload["skills"] = [
        {
            "id": s.id,
            "name": s.name,
            "source": s.metadata.source,
            "usageCount": s.metadata.usage_count,
        }
        for s in agent.get_skills()
    ]
    return _dump(payload)


async def cmd_feedback(agent: HandoverAgent, args: argparse.Namespace) -> str:
    if args.rate:
        if args.session:
            agent.current_session = agent.sessions.get(args.session)
        feedback = agent.add_feedback(args.rate, args.comment)
        return _dump({"success": True, "feedback": feedback.to_dict()})

    summary = analyze_feedback(agent.feedback.load_history(), agent.get_sessions())
    return _dump(summary.to_dict())


async def cmd_config(agent: HandoverAgent, args: argparse.Namespace) -> str:
    if args.key and args.value is not None:
        set_config_value(args.key, args.value, global_=args.global_)
        return _dump({args.key: get_config_value(args.key)})
    if args.key:
        return _dump({args.key: get_config_value(args.key)})

    values = asdict(load_config())
    if values["api_key"]:
        values["api_key"] = values["api_key"][:7] + "..."
    return _dump(values)


COMMANDS = {
    "init": cmd_init,
    "extract": cmd_extract,
    "ask": cmd_ask,
    "status": cmd_status,
    "gaps": cmd_gaps,
    "map": cmd_map,
    "skills": cmd_skills,
    "feedback": cmd_feedback,
    "config": cmd_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="handover", description="Knowledge handover assistant")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Initialize a new handover")
    init.add_argument("name")
    init.add_argument("-t", "--type", default="project", choices=["project", "role", "team"])
    init.add_argument("--description", default="")

    extract = sub.add_parser("extract", help="Extract knowledge from files or directories")
    extract.add_argument("path")
    source = extract.add_mutually_exclusive_group()
    source.add_argument("-d", "--docs", action="store_true", help="Extract from documentation files")
    source.add_argument("-g", "--git", action="store_true", help="Extract from git history")
    extract.add_argument("--deep", action="store_true", help="Read file contents, not just structure")

    ask = sub.add_parser("ask", help="Ask a question about the handover")
    ask.add_argument("question")
    ask.add_argument("--session", help="Continue an earlier session")

    sub.add_parser("status", help="Show handover progress and statistics")
    sub.add_parser("gaps", help="Show knowledge gaps analysis")
    sub.add_parser("map", help="Show knowledge map")

    skills = sub.add_parser("skills", help="List, run or evolve skills")
    skills.add_argument("-e", "--evolve", action="store_true", help="Evolve skills from usage patterns")
    skills.add_argument("--run", metavar="SKILL_ID", help="Execute one skill")
    skills.add_argument("--query", help="Query passed to --run")

    feedback = sub.add_parser("feedback", help="View feedback summary or rate the last answer")
    feedback.add_argument("--rate", choices=["positive", "negative"])
    feedback.add_argument("--comment")
    feedback.add_argument("--session", help="Session whose last answer is rated")

    config = sub.add_parser("config", help="View or edit configuration")
    config.add_argument("key", nargs="?")
    config.add_argument("value", nargs="?")
    config.add_argument("-g", "--global", dest="global_", action="store_true", help="Use global configuration")

    return parser


async def run_command(args: argparse.Namespace, agent: HandoverAgent | None = None) -> str:
    if agent is None:
        agent = HandoverAgent(resolve_data_dir(load_config().data_dir))
    return await COMMANDS[args.command](agent, args)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(stream=sys.stderr, level=logging.WARNING)
    args = build_parser().parse_args(argv)
    try:
        output = asyncio.run(run_command(args))
    except (HandoverError, ValueError) as err:
        print(f"handover: {err}", file=sys.stderr)
        sys.exit(1)
    print(output)


if __name__ == "__main__":
    main()
