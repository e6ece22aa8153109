# relaybot/sessions/file.py
from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from urllib.parse import quote

from relaybot.core.session import Session
from relaybot.infra.logging_config import get_logger
from relaybot.sessions.base import SessionStore

logger = get_logger(__name__)


class FileSessionStore(SessionStore):
    """One JSON file per session under ``dirname``; writes are atomic renames."""

    driver = "file"

    def __init__(self, dirname: str | os.PathLike = ".sessions", expires_in: int | None = None) -> None:
        super().__init__(expires_in)
        self._dirname = Path(dirname)

    def _path(self, key: str) -> Path:
        return self._dirname / f"{quote(key, safe='')}.json"

    async def _connect(self) -> None:
        await asyncio.to_thread(self._dirname.mkdir, parents=True, exist_ok=True)

    async def _get(self, key: str) -> Session | None:
        self._require_initialized()
        return await asyncio.to_thread(self._load, self._path(key))

    async def _set(self, key: str, session: Session) -> None:
        self._require_initialized()
        await asyncio.to_thread(self._dump, self._path(key), session)

    async def _delete(self, key: str) -> None:
        self._require_initialized()
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    async def _all(self) -> list[Session]:
        self._require_initialized()
        return await asyncio.to_thread(self._load_all)

    @staticmethod
    def _load(path: Path) -> Session | None:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None

    @staticmethod
    def _dump(path: Path, session: Session) -> None:
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(session, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)

    def _load_all(self) -> list[Session]:
        documents = []
        for path in sorted(self._dirname.glob("*.json")):
            try:
                document = self._load(path)
            except ValueError:
                logger.warning(f"Skipping unreadable session file: {path.name}")
                continue
            if document is not None:
                documents.append(document)
        return documents
