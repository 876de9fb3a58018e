"""Handover profile persistence."""

import os
import uuid
from datetime import datetime, timezone

from .files import read_record, write_record
from .types import HANDOVER_TYPES, HandoverProfile, HandoverType


class ProfileStore:
    """The single handover profile at ``<data_dir>/profile.json``."""

    def __init__(self, data_dir: str) -> None:
        self.path = os.path.join(data_dir, "profile.json")

    def load(self) -> HandoverProfile | None:
        data = read_record(self.path)
        if not isinstance(data, dict):
            return None
        try:
            return HandoverProfile.from_dict(data)
        except (KeyError, TypeError):
            return None

    def save(self, profile: HandoverProfile) -> None:
        write_record(self.path, profile.to_dict())

    def create(self, name: str, type_: HandoverType, description: str = "") -> HandoverProfile:
        if type_ not in HANDOVER_TYPES:
            raise ValueError(
                f"Invalid handover type: {type_}. Must be project, role, or team."
            )
        if not name.strip():
            raise ValueError("Handover name is required.")

        now = datetime.now(timezone.utc).isoformat()
        profile = HandoverProfile(
            id=str(uuid.uuid4()),
            type=type_,
            name=name.strip(),
            description=description.strip(),
            created_at=now,
            updated_at=now,
        )
        self.save(profile)
        return profile

    def add_source(self, source_path: str) -> HandoverProfile | None:
        """Record an extraction source once. Returns the profile, if any."""
        profile = self.load()
        if profile is None:
            return None
        if source_path not in profile.sources:
            profile.sources.append(source_path)
            profile.updated_at = datetime.now(timezone.utc).isoformat()
            self.save(profile)
        return profile
