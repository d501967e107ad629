# ingres_core/store.py
"""Raw record access and the startup bulk loader.

The engine only needs three things from the store: raw rows of some
locations for one year, every raw row of some locations, and the list of
years present. ``InMemoryRecordSource`` serves those from rows read once by
``SqliteBulkLoader``.
"""

import logging
import sqlite3
from contextlib import closing
from typing import Dict, Iterable, List, Protocol, Sequence, Tuple

from ingres_core.models import NUMERIC_FIELDS, SUB_CATEGORY_KEYS, LocationEntity, StatRecord

logger = logging.getLogger(__name__)

LOCATIONS_TABLE = "locations"
RECORDS_TABLE = "groundwater_data"
LOCATION_COLUMNS = ("id", "external_id", "name", "type", "parent_id")
CATEGORY_COLUMNS = tuple(f"category_{k}" for k in SUB_CATEGORY_KEYS) + ("category_total",)
RECORD_COLUMNS = ("id", "location_id", "year") + NUMERIC_FIELDS + CATEGORY_COLUMNS


class RecordSource(Protocol):
    def fetch(self, location_ids: Sequence[str], year: str) -> List[StatRecord]: ...

    def fetch_all(self, location_ids: Sequence[str]) -> List[StatRecord]: ...

    def available_years(self) -> List[str]: ...


class InMemoryRecordSource:
    def __init__(self, records: Iterable[StatRecord] = ()):
        self._by_key: Dict[Tuple[str, str], List[StatRecord]] = {}
        self._by_location: Dict[str, List[StatRecord]] = {}
        years = set()
        count = 0
        for record in records:
            self._by_key.setdefault((record.location_id, record.year), []).append(record)
            self._by_location.setdefault(record.location_id, []).append(record)
            years.add(record.year)
            count += 1
        self._years = sorted(years)
        self._count = count

    def __len__(self) -> int:
        return self._count

    def location_ids(self) -> List[str]:
        return list(self._by_location)

    def fetch(self, location_ids: Sequence[str], year: str) -> List[StatRecord]:
        rows = []
        for location_id in location_ids:
            rows.extend(self._by_key.get((location_id, year), []))
        return rows

    def fetch_all(self, location_ids: Sequence[str]) -> List[StatRecord]:
        rows = []
        for location_id in location_ids:
            rows.extend(self._by_location.get(location_id, []))
        return rows

    def available_years(self) -> List[str]:
        return list(self._years)


def row_to_record(row: sqlite3.Row) -> StatRecord:
    keys = set(row.keys())
    values = {f: row[f] for f in NUMERIC_FIELDS if f in keys and row[f] is not None}
    sub_categories = {
        k: row[f"category_{k}"] for k in SUB_CATEGORY_KEYS
        if f"category_{k}" in keys and row[f"category_{k}"]
    }
    return StatRecord(
        location_id=str(row["location_id"]),
        year=str(row["year"]),
        values=values,
        category=row["category_total"] if "category_total" in keys else None,
        sub_categories=sub_categories,
        sources=frozenset([str(row["id"])]),
    )


def row_to_location(row: sqlite3.Row) -> LocationEntity:
    return LocationEntity(
        id=str(row["id"]),
        external_id=row["external_id"] or None,
        name=row["name"],
        type=str(row["type"]).upper(),
        parent_id=str(row["parent_id"]) if row["parent_id"] else None,
    )


class SqliteBulkLoader:
    """Reads every location and raw record out of the SQLite store."""

    def __init__(self, path: str):
        self.path = path

    def __call__(self) -> Tuple[List[LocationEntity], List[StatRecord]]:
        # mode=ro so a missing file fails instead of creating an empty store
        with closing(sqlite3.connect(f"file:{self.path}?mode=ro", uri=True)) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute(f"SELECT {', '.join(LOCATION_COLUMNS)} FROM {LOCATIONS_TABLE} ORDER BY rowid")
            entities = [row_to_location(row) for row in cursor.fetchall()]
            cursor.execute(f"SELECT * FROM {RECORDS_TABLE} ORDER BY rowid")
            records = [row_to_record(row) for row in cursor.fetchall()]

        logger.info("Loaded %d locations and %d raw records from %s", len(entities), len(records), self.path)
        return entities, records

    def available_years(self) -> List[str]:
        with closing(sqlite3.connect(f"file:{self.path}?mode=ro", uri=True)) as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT DISTINCT year FROM {RECORDS_TABLE}")
            return sorted(row[0] for row in cursor.fetchall())
