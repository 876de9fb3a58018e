"""Import a legacy ``.handover/data`` directory into the current layout."""

import logging
import os
import shutil

from ..errors import HandoverError
from .files import ensure_dir, list_record_files, read_record
from .knowledge import KnowledgeStore
from .types import KnowledgeEntry, MigrationReport

logger = logging.getLogger(__name__)


async def migrate_legacy(store: KnowledgeStore, data_dir: str, old_data_dir: str) -> MigrationReport:
    """Copy entries, profile and feedback history out of ``old_data_dir``.

    Entries go through ``add_entry`` so duplicates of existing entries are
    counted as skipped. Profile and feedback history are only copied when
    the destination has none. Per-item failures land in ``errors``.
    """
    report = MigrationReport()

    old_entries_dir = os.path.join(old_data_dir, "knowledge", "entries")
    for name in list_record_files(old_entries_dir):
        try:
            data = read_record(os.path.join(old_entries_dir, name))
            if not isinstance(data, dict):
                continue
            result = await store.add_entry(KnowledgeEntry.from_dict(data))
        except (KeyError, TypeError, ValueError, OSError, HandoverError) as err:
            report.errors.append(f"Failed to migrate entry {name}: {err}")
            continue
        if result.deduplicated:
            report.entries_skipped += 1
        else:
            report.entries_migrated += 1

    old_profile = os.path.join(old_data_dir, "profile.json")
    new_profile = os.path.join(data_dir, "profile.json")
    if os.path.exists(old_profile) and not os.path.exists(new_profile):
        try:
            if read_record(old_profile) is not None:
                ensure_dir(data_dir)
                shutil.copyfile(old_profile, new_profile)
                report.profile_migrated = True
        except OSError as err:
            report.errors.append(f"Failed to migrate profile: {err}")

    old_feedback = os.path.join(old_data_dir, "feedback", "history.jsonl")
    new_feedback = os.path.join(data_dir, "feedback", "history.jsonl")
    if os.path.exists(old_feedback) and not os.path.exists(new_feedback):
        try:
            ensure_dir(os.path.dirname(new_feedback))
            shutil.copyfile(old_feedback, new_feedback)
            report.feedback_migrated = True
        except OSError as err:
            report.errors.append(f"Failed to migrate feedback: {err}")

    if report.entries_migrated > 0:
        try:
            await store.rebuild_index()
        except HandoverError as err:
            report.errors.append(f"Failed to rebuild index: {err}")

    logger.info(
        "Migrated %d entries (%d skipped) from %s",
        report.entries_migrated,
        report.entries_skipped,
        old_data_dir,
    )
    return report
