from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from timesheet_query.datasource.types import QueryOptions, TimeEntry, TimesheetDataSource

logger = logging.getLogger(__name__)


def matches_options(entry: TimeEntry, options: QueryOptions) -> bool:
    """Coarse filter semantics shared by every bundled source."""
    if options.year is not None and entry.date.year != options.year:
        return False
    if options.month is not None and entry.date.month != options.month:
        return False
    if options.project_filter:
        needle = options.project_filter.lower()
        if not entry.project or needle not in entry.project.lower():
            return False
    if options.date_range is not None and not options.date_range.contains(entry.date):
        return False
    return True


class InMemoryDataSource(TimesheetDataSource):
    """
    Data source backed by a list of entries.

    Results are cached per QueryOptions until clear_cache() is called,
    mirroring how file-backed sources avoid re-reading notes. `calls`
    counts cache misses so callers can observe cache behaviour.
    """

    def __init__(self, entries: Iterable[TimeEntry] = ()):
        self._entries: List[TimeEntry] = list(entries)
        self._cache: Dict[str, Tuple[TimeEntry, ...]] = {}
        self.calls = 0

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "InMemoryDataSource":
        return cls(TimeEntry.model_validate(record) for record in records)

    def add(self, entry: TimeEntry) -> None:
        """Append an entry. Cached results are stale until clear_cache()."""
        self._entries.append(entry)

    async def query(self, options: Optional[QueryOptions] = None) -> Sequence[TimeEntry]:
        options = options or QueryOptions()
        key = options.cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"[DATASOURCE] Cache hit for {key}")
            return list(cached)

        self.calls += 1
        result = tuple(entry for entry in self._entries if matches_options(entry, options))
        self._cache[key] = result
        logger.debug(f"[DATASOURCE] {len(result)} of {len(self._entries)} entries match {key}")
        return list(result)

    def clear_cache(self) -> None:
        self._cache.clear()
