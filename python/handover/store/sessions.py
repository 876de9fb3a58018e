"""Q&A session persistence, one JSON file per session."""

import logging
import os
import uuid
from datetime import datetime, timezone

from .files import ensure_dir, list_record_files, read_record, record_path, write_record
from .types import Session

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, data_dir: str) -> None:
        self.sessions_dir = os.path.join(data_dir, "sessions")

    def _path(self, session_id: str) -> str:
        path = record_path(self.sessions_dir, session_id)
        if path is None:
            raise ValueError(f"Invalid session id: {session_id!r}")
        return path

    def new(self, handover_id: str, session_id: str | None = None) -> Session:
        if session_id and record_path(self.sessions_dir, session_id) is None:
            raise ValueError(f"Invalid session id: {session_id!r}")
        return Session(
            id=session_id or str(uuid.uuid4()),
            handover_id=handover_id,
            started_at=datetime.now(timezone.utc).isoformat(),
        )

    def get(self, session_id: str) -> Session | None:
        path = record_path(self.sessions_dir, session_id)
        if path is None:
            return None
        data = read_record(path)
        if not isinstance(data, dict):
            return None
        try:
            return Session.from_dict(data)
        except (KeyError, TypeError):
            return None

    def save(self, session: Session) -> None:
        ensure_dir(self.sessions_dir)
        write_record(self._path(session.id), session.to_dict())

    def close(self, session: Session) -> Session:
        """Finalize a session by stamping endedAt."""
        if not session.ended_at:
            session.ended_at = datetime.now(timezone.utc).isoformat()
        self.save(session)
        return session

    def load_all(self) -> list[Session]:
        sessions: list[Session] = []
        for name in list_record_files(self.sessions_dir):
            data = read_record(os.path.join(self.sessions_dir, name))
            if not isinstance(data, dict):
                continue
            try:
                sessions.append(Session.from_dict(data))
            except (KeyError, TypeError):
                logger.debug("Skipping malformed session file %s", name)
        return sessions
