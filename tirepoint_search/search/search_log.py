"""Search log kept in a single option blob."""

import threading
import time
from typing import Dict, Optional

from loguru import logger

from ..storage.database import Database
from ..storage.models import SearchLogRecord


class SearchLog:
    """Append-only list of recent searches, truncated to the newest ``limit``.

    The read-modify-write of the option is serialized by a lock shared by
    every log in the process, so concurrent requests never drop entries.
    """

    _lock = threading.Lock()

    def __init__(self, db: Database, option_name: str = "tpsf_search_log", limit: int = 100):
        self.db = db
        self.option_name = option_name
        self.limit = limit

    def append(
        self,
        search: Dict[str, str],
        user_ip: str = "",
        timestamp: Optional[int] = None,
    ) -> SearchLogRecord:
        """Record a search.

        Args:
            search: Dict with optional make, model and year
            user_ip: Client address
            timestamp: Unix time, defaults to now

        Returns:
            The stored record
        """
        record = SearchLogRecord(
            make=search.get("make") or "",
            model=search.get("model") or "",
            year=str(search.get("year") or ""),
            timestamp=int(time.time()) if timestamp is None else timestamp,
            user_ip=user_ip or "",
        )

        with self._lock:
            entries = list(self.db.get_option(self.option_name, []) or [])
            entries.append(record.model_dump())

            if len(entries) > self.limit:
                entries = entries[-self.limit:]

            self.db.update_option(self.option_name, entries)
        logger.debug(f"Logged search {record.make}/{record.model}/{record.year} from {record.user_ip}")
        return record

    def recent(self, limit: Optional[int] = None) -> list[SearchLogRecord]:
        """Get logged searches, newest last."""
        entries = self.db.get_option(self.option_name, []) or []
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return [SearchLogRecord(**entry) for entry in entries]
