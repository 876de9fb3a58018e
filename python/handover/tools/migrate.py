"""Migrate tool: import a legacy .handover/data directory."""

import json

from ..store.knowledge import KnowledgeStore
from ..store.migrate import migrate_legacy
from ..store.types import MigrationReport


async def handle_migrate(data_dir: str, old_data_dir: str) -> str:
    try:
        report = await migrate_legacy(KnowledgeStore(data_dir), data_dir, old_data_dir)
    except Exception as err:
        report = MigrationReport(errors=[f"Migration failed: {err}"])
    return json.dumps(report.to_dict())
