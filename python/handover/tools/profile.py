"""Profile tools: create and view the handover profile, and overall status."""

import json

from ..store.profile import ProfileStore
from ..store.status import get_status


async def handle_create_profile(data_dir: str, type_: str, name: str, description: str = "") -> str:
    try:
        profile = ProfileStore(data_dir).create(name, type_, description)  # type: ignore[arg-type]
        return json.dumps(profile.to_dict())
    except Exception as err:
        return json.dumps({"error": str(err)})


async def handle_get_profile(data_dir: str) -> str:
    try:
        profile = ProfileStore(data_dir).load()
        return json.dumps(profile.to_dict() if profile else {"profile": None})
    except Exception as err:
        return json.dumps({"error": str(err)})


async def handle_status(data_dir: str) -> str:
    """Overview stats about the handover knowledge base."""
    try:
        return json.dumps(get_status(data_dir))
    except Exception as err:
        return json.dumps({"error": str(err)})
