"""
Persistent Entry Store.

Holds the authoritative in-memory list of memory entries and mirrors
it to a single pretty-printed JSON file:
- Load on construction (a corrupt file starts an empty store)
- Append commits in memory, then schedules a full rewrite of the mirror
- Write failures are logged, never raised
"""

import asyncio
import contextlib
import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from .base import MemoryEntry

logger = logging.getLogger("agent_memory.memory.store")

STORE_FILENAME = "vector_store.json"


def project_temp_dir(project_root: str | Path | None = None, base_dir: str | Path | None = None) -> Path:
    """
    Resolve the temp directory scoped to one project.

    Args:
        project_root: Project the memory belongs to (defaults to cwd)
        base_dir: Parent directory (defaults to <system tmp>/agent_memory)

    Returns:
        <base_dir>/<first 16 hex chars of sha256(absolute project root)>
    """
    root = Path(project_root or Path.cwd()).resolve()
    digest = hashlib.sha256(str(root).encode("utf-8")).hexdigest()[:16]
    base = Path(base_dir) if base_dir else Path(tempfile.gettempdir()) / "agent_memory"
    return base / digest


class LoadStatus(str, Enum):
    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass
class LoadResult:
    """Outcome of reading the durable mirror. A corrupt file is not an error."""
    status: LoadStatus
    count: int = 0
    error: str = ""


@dataclass
class PersistResult:
    """Outcome of writing the durable mirror. Failures leave memory intact."""
    ok: bool
    count: int = 0
    error: str = ""


class EntryStore:
    """Owns the entry collection and its JSON mirror on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._entries: list[MemoryEntry] = []
        self._pending: set[asyncio.Task] = set()
        # asyncio.Lock binds to the loop it first blocks on; one lock per loop
        self._write_lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None
        # Bumped by clear() so in-flight writes from before the wipe are discarded
        self._generation = 0
        self.last_persist: Optional[PersistResult] = None
        self.last_load = self.load()

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> LoadResult:
        """Replace the in-memory collection with the mirror's contents."""
        try:
            if not self.path.exists():
                self._entries = []
                logger.debug(f"No memory store at {self.path}, starting empty")
                return LoadResult(status=LoadStatus.MISSING)

            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError("memory store is not a JSON array")
            entries = [MemoryEntry.from_dict(record) for record in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            self._entries = []
            logger.warning(f"Memory store {self.path} is unreadable, starting empty: {e}")
            return LoadResult(status=LoadStatus.CORRUPT, error=str(e))

        self._entries = entries
        logger.info(f"Loaded {len(entries)} memory entries from {self.path}")
        return LoadResult(status=LoadStatus.LOADED, count=len(entries))

    def snapshot(self) -> list[MemoryEntry]:
        """Current entries in insertion order (a new list; entries are immutable)."""
        return list(self._entries)

    def append(self, entries: Iterable[MemoryEntry]) -> None:
        """
        Add entries and schedule a persist.

        The entries are part of the store when this returns. Inside a
        running event loop the write happens in a background task;
        call flush() to wait for it.
        """
        entries = list(entries)
        if not entries:
            return

        self._entries.extend(entries)
        logger.debug(f"Appended {len(entries)} entries ({len(self._entries)} total)")
        self._schedule_persist()

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.persist()
            return

        task = loop.create_task(self._persist_scheduled(self._generation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _serialize(self) -> tuple[str, int]:
        records = [entry.to_dict() for entry in self._entries]
        return json.dumps(records, indent=2, ensure_ascii=False), len(records)

    def _write(self, payload: str, count: int) -> PersistResult:
        """Atomically replace the mirror with payload."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error(f"Failed to save memory store to {self.path}: {e}")
            return PersistResult(ok=False, count=count, error=str(e))

        logger.debug(f"Memory store saved ({count} entries)")
        return PersistResult(ok=True, count=count)

    def persist(self) -> PersistResult:
        """Write the full collection to disk, blocking."""
        try:
            payload, count = self._serialize()
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize memory store: {e}")
            result = PersistResult(ok=False, count=len(self._entries), error=str(e))
        else:
            result = self._write(payload, count)

        self.last_persist = result
        return result

    async def persist_async(self) -> Optional[PersistResult]:
        """
        Write the full collection to disk from a worker thread.

        Returns None if clear() ran while the write was in flight.
        """
        return await self._persist_scheduled(None)

    def _get_write_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._write_lock is None or self._lock_loop is not loop:
            self._write_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._write_lock

    async def _persist_scheduled(self, generation: Optional[int]) -> Optional[PersistResult]:
        async with self._get_write_lock():
            if generation is not None and generation != self._generation:
                # Store was cleared after this write was scheduled
                return None

            current = self._generation
            try:
                payload, count = self._serialize()
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to serialize memory store: {e}")
                result = PersistResult(ok=False, count=len(self._entries), error=str(e))
            else:
                result = await asyncio.to_thread(self._write, payload, count)

            if current != self._generation:
                # clear() ran while the write was in flight
                self._remove_mirror()
                return None

        self.last_persist = result
        return result

    async def flush(self) -> Optional[PersistResult]:
        """Wait for every scheduled persist to finish."""
        loop = asyncio.get_running_loop()
        # Tasks from a loop that has since shut down can never be awaited here
        stale = {task for task in self._pending if task.get_loop() is not loop}
        self._pending -= stale

        if not self._pending:
            return None
        while self._pending:
            await asyncio.gather(*list(self._pending))
        return self.last_persist

    def _remove_mirror(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to remove memory store {self.path}: {e}")

    def clear(self) -> None:
        """Drop every entry and delete the mirror file."""
        self._entries = []
        self._generation += 1
        self._remove_mirror()
        logger.info("Memory store cleared")
