# ingres_core/aggregation.py
"""Folding raw store rows into canonical records.

One logical location can arrive as several raw rows for the same year, e.g.
its command, non-command and poor-quality areas ingested separately, or the
same place ingested twice under different ids. Those rows are summed into a
single record and the category is derived again from the summed stage of
extraction.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ingres_core.catalog import LocationCatalog
from ingres_core.models import STAGE_FIELD, Category, StatRecord
from ingres_core.store import RecordSource

logger = logging.getLogger(__name__)


def category_from_stage(stage: Optional[float]) -> str:
    # No stage (or zero) means no data, not a safe status.
    if not stage:
        return Category.UNKNOWN.value
    if stage < 70:
        return Category.SAFE.value
    if stage < 90:
        return Category.SEMI_CRITICAL.value
    if stage < 100:
        return Category.CRITICAL.value
    return Category.OVER_EXPLOITED.value


def _drop_covered(records: List[StatRecord]) -> List[StatRecord]:
    if len(records) < 2:
        return records
    unidentified = sum(1 for r in records if not r.sources)
    if unidentified:
        raise ValueError(
            f"Cannot merge {len(records)} records: {unidentified} carry no source row ids, "
            f"so repeated rows could not be told apart"
        )

    covered = set()
    kept = []
    # Widest records first, so a merged record absorbs the raw rows it already holds
    for i in sorted(range(len(records)), key=lambda i: len(records[i].sources), reverse=True):
        record = records[i]
        if record.sources <= covered:
            logger.debug("Skipping record %s/%s: rows %s already merged",
                         record.location_id, record.year, sorted(record.sources),
                         extra={"location_id": record.location_id, "year": record.year})
            continue
        if record.sources & covered:
            raise ValueError(
                f"Record {record.location_id}/{record.year} partially overlaps rows already merged: "
                f"{sorted(record.sources & covered)}"
            )
        covered |= record.sources
        kept.append(i)
    return [records[i] for i in sorted(kept)]


def aggregate(records: Iterable[StatRecord]) -> Optional[StatRecord]:
    """Merge the rows of one logical location for one year.

    A single row comes back untouched. Otherwise every numeric field present
    in at least one row is summed (missing counts as zero), raw category
    labels are dropped and ``category`` is derived from the summed stage of
    extraction. Rows already folded into another input are not counted twice,
    whatever the input order. Merging several records needs every one of them to
    carry source row ids; otherwise ``ValueError`` is raised.
    """
    records = list(records)
    if not records:
        return None

    records = _drop_covered(records)
    if len(records) == 1:
        return records[0]

    years = {r.year for r in records}
    if len(years) > 1:
        raise ValueError(f"Cannot merge records from different years: {sorted(years)}")

    totals: Dict[str, float] = {}
    for record in records:
        for field, value in record.values.items():
            totals[field] = totals.get(field, 0.0) + value

    first = records[0]
    return StatRecord(
        location_id=first.location_id,
        year=first.year,
        values=totals,
        category=category_from_stage(totals.get(STAGE_FIELD)),
        sources=frozenset().union(*(r.sources for r in records)),
    )


def group_records_by_year(records: Iterable[StatRecord]) -> Dict[str, List[StatRecord]]:
    grouped: Dict[str, List[StatRecord]] = {}
    for record in records:
        grouped.setdefault(record.year, []).append(record)
    return grouped


def aggregate_by_year(records: Iterable[StatRecord]) -> List[StatRecord]:
    """One merged record per distinct year, oldest first."""
    merged = [aggregate(group) for group in group_records_by_year(records).values()]
    return sorted(merged, key=lambda r: r.year)


def _as_canonical(record: StatRecord, canonical_id: str) -> StatRecord:
    if record.location_id == canonical_id:
        return record
    return record.model_copy(update={"location_id": canonical_id})


def canonical_stats(catalog: LocationCatalog, source: RecordSource, location_id: str, year: str) -> Optional[StatRecord]:
    """The canonical record of a logical location for one year, or None.

    Rows of every catalog entity that is the same logical location are merged.
    """
    rows = source.fetch(catalog.members(location_id), year)
    if len(rows) > 1:
        logger.debug("Merging %d rows for %s in %s", len(rows), location_id, year,
                     extra={"location_id": location_id, "year": year})
    merged = aggregate(rows)
    if merged is None:
        return None
    return _as_canonical(merged, catalog.canonical_id(location_id))


def historical_stats(catalog: LocationCatalog, source: RecordSource, location_id: str) -> List[StatRecord]:
    """Canonical records of a logical location for every year in the store, oldest first."""
    canonical_id = catalog.canonical_id(location_id)
    rows = source.fetch_all(catalog.members(location_id))
    return [_as_canonical(r, canonical_id) for r in aggregate_by_year(rows)]
