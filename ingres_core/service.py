# ingres_core/service.py
"""Entry points used by the HTTP layer and the conversational tool layer.

Every call reads the live snapshot once and works only on that snapshot, so
a reload that swaps the reference mid-request does not mix two catalogs.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from ingres_core.aggregation import canonical_stats, historical_stats
from ingres_core.models import (
    STAGE_FIELD,
    LocationEntity,
    LocationType,
    SearchResult,
    StatRecord,
    YearSpec,
)
from ingres_core.ranking import RankingEngine, RankingResult
from ingres_core.resolver import FuzzyResolver
from ingres_core.snapshot import Snapshot, SnapshotHolder
from ingres_core.years import filter_records_by_year, resolve_years

logger = logging.getLogger(__name__)


class LocationStats(BaseModel):
    location: LocationEntity
    record: StatRecord


class LocationHistory(BaseModel):
    location: LocationEntity
    records: List[StatRecord]


class LocationFamily(BaseModel):
    parent: LocationStats
    children: List[LocationStats]


class GroundwaterService:
    def __init__(self, holder: SnapshotHolder):
        self.holder = holder

    def _resolver(self, snap: Snapshot) -> FuzzyResolver:
        return FuzzyResolver(snap.catalog)

    @staticmethod
    def _target_year(snap: Snapshot, year: Optional[str]) -> str:
        return resolve_years(YearSpec(year=year), snap.available_years()).target_year

    def available_years(self) -> List[str]:
        return self.holder.current.available_years()

    # -- core interfaces ------------------------------------------------------

    def resolve_location(
        self,
        name: str,
        location_type: Optional[LocationType] = None,
        parent_hint: Optional[str] = None,
    ) -> List[SearchResult]:
        snap = self.holder.current
        return self._resolver(snap).resolve(name, location_type, parent_hint)

    def get_canonical_stats(self, location_id: str, year: Optional[str] = None) -> Optional[StatRecord]:
        snap = self.holder.current
        if snap.catalog.lookup(location_id) is None:
            return None
        return canonical_stats(snap.catalog, snap.records, location_id, self._target_year(snap, year))

    def get_historical_stats(self, location_id: str, location_type: Optional[LocationType] = None) -> List[StatRecord]:
        snap = self.holder.current
        entity = snap.catalog.lookup(location_id)
        if entity is None:
            return []
        if location_type is not None and entity.type is not LocationType.parse(location_type):
            return []
        return historical_stats(snap.catalog, snap.records, location_id)

    def rank_locations(
        self,
        metric: str,
        location_type: LocationType,
        order: str = "desc",
        limit: int = 10,
        year_spec: Optional[YearSpec] = None,
    ) -> RankingResult:
        return RankingEngine(self.holder.current).top_k(metric, location_type, order, limit, year_spec)

    # -- composed lookups -----------------------------------------------------

    def search_stats(
        self,
        query: str,
        location_type: Optional[LocationType] = None,
        parent_hint: Optional[str] = None,
        year: Optional[str] = None,
    ) -> Optional[LocationStats]:
        """Canonical stats of the best match for ``query``."""
        snap = self.holder.current
        best = self._resolver(snap).best(query, location_type, parent_hint)
        if best is None:
            return None
        record = canonical_stats(snap.catalog, snap.records, best.location.id, self._target_year(snap, year))
        if record is None:
            return None
        return LocationStats(location=best.location, record=record)

    def search_history(
        self,
        query: str,
        location_type: Optional[LocationType] = None,
        year_spec: Optional[YearSpec] = None,
    ) -> Optional[LocationHistory]:
        snap = self.holder.current
        best = self._resolver(snap).best(query, location_type)
        if best is None:
            return None
        records = historical_stats(snap.catalog, snap.records, best.location.id)
        if year_spec is not None:
            records = filter_records_by_year(records, year_spec)
        if not records:
            return None
        return LocationHistory(location=best.location, records=records)

    def compare_locations(
        self,
        names: Sequence[str],
        location_type: Optional[LocationType] = None,
        year_spec: Optional[YearSpec] = None,
    ) -> List[LocationHistory]:
        """Side-by-side data for several places.

        A single-year selection gives one record per location; a historical one
        gives each location's filtered history. Names that resolve to nothing
        (or to a location without data) are left out.
        """
        year_spec = year_spec or YearSpec()
        if year_spec.is_historical:
            found = [self.search_history(name, location_type, year_spec) for name in names]
            return [h for h in found if h is not None]

        result = []
        for name in names:
            stats = self.search_stats(name, location_type, year=year_spec.year)
            if stats is not None:
                result.append(LocationHistory(location=stats.location, records=[stats.record]))
        return result

    def compare_years(self, location_id: str, years: Sequence[str]) -> List[StatRecord]:
        history = self.get_historical_stats(location_id)
        if not years:
            return history
        return filter_records_by_year(history, YearSpec(specific_years=list(years)))

    def location_with_children(self, location_id: str, year: Optional[str] = None, limit: int = 20) -> Optional[LocationFamily]:
        snap = self.holder.current
        entity = snap.catalog.lookup(location_id)
        if entity is None:
            return None
        target = self._target_year(snap, year)
        parent_record = canonical_stats(snap.catalog, snap.records, location_id, target)
        if parent_record is None:
            return None

        children = []
        if entity.type in (LocationType.STATE, LocationType.DISTRICT):
            for child in snap.catalog.logical_children(location_id)[:limit]:
                record = canonical_stats(snap.catalog, snap.records, child.id, target)
                if record is not None:
                    children.append(LocationStats(location=child, record=record))
        return LocationFamily(parent=LocationStats(location=snap.catalog.canonical(location_id), record=parent_record),
                              children=children)

    def _year_records(self, snap: Snapshot, location_type: LocationType, year: Optional[str]) -> List[StatRecord]:
        target = self._target_year(snap, year)
        records = [
            canonical_stats(snap.catalog, snap.records, e.id, target)
            for e in snap.catalog.logical_locations(LocationType.parse(location_type))
        ]
        return [r for r in records if r is not None]

    def category_summary(self, location_type: LocationType, year: Optional[str] = None) -> Dict[str, int]:
        summary: Dict[str, int] = {}
        for record in self._year_records(self.holder.current, location_type, year):
            if record.category:
                summary[record.category] = summary.get(record.category, 0) + 1
        return summary

    def aggregate_stats(self, location_type: LocationType, year: Optional[str] = None) -> Dict[str, float]:
        records = self._year_records(self.holder.current, location_type, year)

        def total(field: str) -> float:
            return sum(r.get(field) or 0.0 for r in records)

        def average(field: str) -> float:
            present = [r.get(field) for r in records if r.get(field) is not None]
            return sum(present) / len(present) if present else 0.0

        return {
            "total_recharge": total("recharge_total_total"),
            "total_draft": total("draft_total_total"),
            "total_extractable": total("extractable_total"),
            "avg_rainfall": average("rainfall_total"),
            "avg_stage_of_extraction": average(STAGE_FIELD),
            "location_count": len(records),
        }

    def list_locations(self, location_type: LocationType, parent_name: Optional[str] = None) -> Optional[List[LocationEntity]]:
        """All states, or the children of the best match for ``parent_name``.

        Returns None when the parent name matches nothing.
        """
        snap = self.holder.current
        location_type = LocationType.parse(location_type)
        if location_type is LocationType.STATE:
            return snap.catalog.logical_locations(LocationType.STATE)
        if location_type not in (LocationType.DISTRICT, LocationType.TALUK):
            raise ValueError(f"Cannot list locations of type {location_type.value}")
        if not parent_name:
            raise ValueError(f"Listing {location_type.value.lower()}s needs a parent name")

        parent = self._resolver(snap).best(parent_name, location_type.parent_type)
        if parent is None:
            return None
        return snap.catalog.logical_children(parent.location.id)
