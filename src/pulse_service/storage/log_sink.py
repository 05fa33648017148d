# src/pulse_service/storage/log_sink.py

from __future__ import annotations

import asyncio
import logging

from .prefs import PrefsStore

logger = logging.getLogger(__name__)

LOG_KEY = "log"


class PrefsLogSink:
    """
    Error log stored as a string list under a single prefs key.

    The runner only appends; the presentation endpoint only reads.
    Appends run in a worker thread so a tick never blocks the event loop on SQLite.
    """

    def __init__(self, store: PrefsStore, *, key: str = LOG_KEY) -> None:
        self._store = store
        self._key = key

    async def append_log(self, message: str) -> None:
        n = await asyncio.to_thread(self._store.append_to_list, self._key, message)
        logger.debug("Log appended (entries=%d)", n)

    def read_all_logs(self, limit: int | None = None) -> list[str]:
        """
        Stored entries, oldest first.

        With `limit`, only the newest `limit` entries are returned (still oldest first).
        """
        self._store.reload()
        logs = self._store.get_string_list(self._key) or []
        if limit is not None:
            n = max(0, int(limit))
            logs = logs[-n:] if n else []
        return logs

    def clear(self) -> None:
        self._store.remove(self._key)
