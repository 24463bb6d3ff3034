"""
File-backed stores

One JSON document per key, written with aiofiles.

Key security handling: session and user ids come from callers and may contain
path separators (e.g. "../../../etc/passwd"), so every key is URL-encoded
before it becomes a file name.
"""

import json
import time
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, unquote

import aiofiles

from mcp_core.storage.base import user_memory_of
from mcp_core.types import AgentPerformance, Memory, Session
from mcp_core.utils.logger import get_logger

logger = get_logger(__name__)


def _key_path(base_dir: Path, key: str) -> Path:
    safe_id = quote(key, safe="")
    return base_dir / f"{safe_id}.json"


async def _read_json(path: Path) -> Optional[Any]:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return json.loads(await f.read())
    except FileNotFoundError:
        return None


async def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(json.dumps(data, ensure_ascii=False, indent=2))


class FileSessionStore:
    """
    Session store with TTL, one file per session.

    Expiry is stored alongside the payload and checked on read; expired
    files are removed lazily.
    """

    def __init__(self, base_dir: str = "./.mcp-core/sessions") -> None:
        self.base_dir: Path = Path(base_dir)

    def _get_path(self, session_id: str) -> Path:
        return _key_path(self.base_dir, session_id)

    async def get(self, session_id: str) -> Optional[Session]:
        data = await _read_json(self._get_path(session_id))
        if data is None:
            return None
        if time.time() >= data["expires_at"]:
            logger.debug(f"Session {session_id} expired in file store")
            await self.delete(session_id)
            return None
        return Session.model_validate(data["session"])

    async def set(self, session: Session, ttl: int) -> None:
        await _write_json(
            self._get_path(session.id),
            {
                "expires_at": time.time() + ttl,
                "session": session.model_dump(mode="json"),
            },
        )

    async def delete(self, session_id: str) -> None:
        try:
            self._get_path(session_id).unlink()
        except FileNotFoundError:
            pass

    async def list_sessions(self) -> list[str]:
        """Scan the directory for stored session ids (expired ones included)."""
        try:
            files = list(self.base_dir.iterdir())
            return [unquote(f.stem) for f in files if f.suffix == ".json"]
        except FileNotFoundError:
            return []


class FileRelationalStore:
    """
    Relational store laid out as directories of JSON documents:

        <base_dir>/sessions/<session_id>.json
        <base_dir>/preferences/<user_id>.json
        <base_dir>/memory/<user_id>.json
        <base_dir>/agents/<agent_id>.json
    """

    def __init__(self, base_dir: str = "./.mcp-core/db") -> None:
        self.base_dir: Path = Path(base_dir)

    def _get_path(self, table: str, key: str) -> Path:
        return _key_path(self.base_dir / table, key)

    async def create_session(self, session: Session) -> None:
        await _write_json(
            self._get_path("sessions", session.id), session.model_dump(mode="json")
        )

    async def update_session(self, session: Session) -> None:
        await _write_json(
            self._get_path("sessions", session.id), session.model_dump(mode="json")
        )
        await _write_json(
            self._get_path("memory", session.user_id),
            user_memory_of(session).model_dump(mode="json"),
        )

    async def get_session(self, session_id: str) -> Optional[Session]:
        data = await _read_json(self._get_path("sessions", session_id))
        return Session.model_validate(data) if data is not None else None

    async def get_user_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        return await _read_json(self._get_path("preferences", user_id))

    async def set_user_preferences(self, user_id: str, preferences: dict[str, Any]) -> None:
        await _write_json(self._get_path("preferences", user_id), preferences)

    async def get_user_memory(self, user_id: str) -> Optional[Memory]:
        data = await _read_json(self._get_path("memory", user_id))
        return Memory.model_validate(data) if data is not None else None

    async def update_agent_performance(
        self, agent_id: str, performance: AgentPerformance
    ) -> None:
        await _write_json(
            self._get_path("agents", agent_id), performance.model_dump(mode="json")
        )

    async def get_agent_performance(self, agent_id: str) -> Optional[AgentPerformance]:
        data = await _read_json(self._get_path("agents", agent_id))
        return AgentPerformance.model_validate(data) if data is not None else None
