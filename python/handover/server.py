#!/usr/bin/env python3
"""Handover MCP Server: knowledge store, search, profile and feedback tools."""

import asyncio
import json
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import load_config
from .store.scope import resolve_data_dir
from .store.types import CATEGORIES, HANDOVER_TYPES, SOURCE_TYPES
from .tools.feedback import handle_feedback_stats, handle_log_feedback, handle_log_interaction
from .tools.migrate import handle_migrate
from .tools.profile import handle_create_profile, handle_get_profile, handle_status
from .tools.search import handle_search, handle_topic_summary
from .tools.store import (
    handle_add_entry,
    handle_delete_entry,
    handle_get_entry,
    handle_init,
    handle_list_entries,
    handle_rebuild_index,
    handle_update_entry,
)

logger = logging.getLogger(__name__)

server = Server("handover")

_ID_SCHEMA = {
    "type": "object",
    "properties": {"id": {"type": "string", "description": "Entry ID"}},
    "required": ["id"],
}
_EMPTY_SCHEMA = {"type": "object", "properties": {}}


def data_dir() -> str:
    return resolve_data_dir(load_config().data_dir)


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="handover_init",
            description="Initialize .handover directory structure",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_add_entry",
            description="Add a knowledge entry to the store",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Entry title"},
                    "content": {"type": "string", "description": "Entry content"},
                    "category": {
                        "type": "string",
                        "enum": list(CATEGORIES),
                        "description": "Knowledge category",
                    },
                    "tags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Tags for categorization",
                    },
                    "source": {
                        "type": "object",
                        "properties": {
                            "type": {"type": "string", "enum": list(SOURCE_TYPES)},
                            "path": {"type": "string"},
                            "ref": {"type": "string"},
                        },
                        "required": ["type"],
                        "description": "Knowledge source",
                    },
                    "confidence": {
                        "type": "number",
                        "minimum": 0,
                        "maximum": 1,
                        "description": "Confidence score (default: 0.8)",
                    },
                },
                "required": ["title", "content", "category", "source"],
            },
        ),
        Tool(
            name="handover_get_entry",
            description="Get a knowledge entry by ID",
            inputSchema=_ID_SCHEMA,
        ),
        Tool(
            name="handover_update_entry",
            description="Update fields of a knowledge entry",
            inputSchema={
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "Entry ID"},
                    "title": {"type": "string"},
                    "content": {"type": "string"},
                    "category": {"type": "string", "enum": list(CATEGORIES)},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                },
                "required": ["id"],
            },
        ),
        Tool(
            name="handover_delete_entry",
            description="Delete a knowledge entry by ID",
            inputSchema=_ID_SCHEMA,
        ),
        Tool(
            name="handover_list_entries",
            description="List all knowledge entries, optionally filtered by category",
            inputSchema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "enum": list(CATEGORIES),
                        "description": "Filter by category",
                    },
                },
            },
        ),
        Tool(
            name="handover_rebuild_index",
            description="Rebuild the knowledge index from entry files",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_search",
            description="Search knowledge entries with ranked relevance",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"},
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 100,
                        "description": "Max results (default: 10)",
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="handover_topic_summary",
            description="Get entry counts per category",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_create_profile",
            description="Create a handover profile",
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "enum": list(HANDOVER_TYPES),
                        "description": "Profile type",
                    },
                    "name": {"type": "string", "description": "Profile name"},
                    "description": {"type": "string", "description": "Profile description"},
                },
                "required": ["type", "name"],
            },
        ),
        Tool(
            name="handover_get_profile",
            description="Get the current handover profile",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_get_status",
            description="Get overview stats about the handover knowledge base",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_log_interaction",
            description="Log a Q&A interaction with the knowledge base",
            inputSchema={
                "type": "object",
                "properties": {
                    "question": {"type": "string", "description": "User question"},
                    "answer": {"type": "string", "description": "System answer"},
                    "confidence": {
                        "type": "number",
                        "minimum": 0,
                        "maximum": 1,
                        "description": "Answer confidence (0-1)",
                    },
                    "citations": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Entry IDs used to generate the answer",
                    },
                },
                "required": ["question", "answer", "confidence"],
            },
        ),
        Tool(
            name="handover_log_feedback",
            description="Record user feedback on an interaction",
            inputSchema={
                "type": "object",
                "properties": {
                    "rating": {
                        "type": "string",
                        "enum": ["positive", "negative"],
                        "description": "Feedback rating",
                    },
                    "comment": {"type": "string", "description": "Optional feedback comment"},
                    "interactionId": {
                        "type": "string",
                        "description": "Optional interaction ID reference",
                    },
                },
                "required": ["rating"],
            },
        ),
        Tool(
            name="handover_feedback_stats",
            description="Get aggregate feedback statistics",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(
            name="handover_migrate",
            description="Import data from a legacy .handover/data directory",
            inputSchema={
                "type": "object",
                "properties": {
                    "oldDataDir": {
                        "type": "string",
                        "description": "Path to old .handover/data directory",
                    },
                },
                "required": ["oldDataDir"],
            },
        ),
    ]


async def dispatch(name: str, arguments: dict, base: str) -> str:
    if name == "handover_init":
        return await handle_init(base)
    if name == "handover_add_entry":
        return await handle_add_entry(
            base,
            title=arguments["title"],
            content=arguments["content"],
            category=arguments["category"],
            source=arguments["source"],
            tags=arguments.get("tags"),
            confidence=arguments.get("confidence", 0.8),
        )
    if name == "handover_get_entry":
        return await handle_get_entry(base, arguments["id"])
    if name == "handover_update_entry":
        updates = {k: v for k, v in arguments.items() if k != "id"}
        return await handle_update_entry(base, arguments["id"], updates)
    if name == "handover_delete_entry":
        return await handle_delete_entry(base, arguments["id"])
    if name == "handover_list_entries":
        return await handle_list_entries(base, arguments.get("category"))
    if name == "handover_rebuild_index":
        return await handle_rebuild_index(base)
    if name == "handover_search":
        return await handle_search(base, arguments["query"], arguments.get("limit"))
    if name == "handover_topic_summary":
        return await handle_topic_summary(base)
    if name == "handover_create_profile":
        return await handle_create_profile(
            base,
            type_=arguments["type"],
            name=arguments["name"],
            description=arguments.get("description", ""),
        )
    if name == "handover_get_profile":
        return await handle_get_profile(base)
    if name == "handover_get_status":
        return await handle_status(base)
    if name == "handover_log_interaction":
        return await handle_log_interaction(
            base,
            question=arguments["question"],
            answer=arguments["answer"],
            confidence=arguments["confidence"],
            citations=arguments.get("citations"),
        )
    if name == "handover_log_feedback":
        return await handle_log_feedback(
            base,
            rating=arguments["rating"],
            comment=arguments.get("comment"),
            interaction_id=arguments.get("interactionId"),
        )
    if name == "handover_feedback_stats":
        return await handle_feedback_stats(base)
    if name == "handover_migrate":
        return await handle_migrate(base, arguments["oldDataDir"])
    return f"Unknown tool: {name}"


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    try:
        result = await dispatch(name, arguments or {}, data_dir())
    except KeyError as err:
        result = json.dumps({"error": f"Missing argument: {err.args[0]}"})
    return [TextContent(type="text", text=result)]


async def main() -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Serving handover data from %s", data_dir())
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
