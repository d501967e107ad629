# ingres_core/ranking.py
"""Ranking locations by a metric, for one year or across several.

Single year: one canonical record per logical location, sorted by the metric.
Several years: each year's top ``k * oversample`` locations are collected,
every location's values are averaged over the years it appeared in, and the
averages decide the final order. A compact year-by-year series is kept for
the leading few locations.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ingres_core.aggregation import canonical_stats
from ingres_core.config import settings
from ingres_core.models import (
    STAGE_FIELD,
    LocationEntity,
    LocationType,
    Metric,
    StatRecord,
    YearSpec,
    YearWindow,
    resolve_metric,
)
from ingres_core.snapshot import Snapshot
from ingres_core.years import resolve_years

logger = logging.getLogger(__name__)

ORDERS = ("asc", "desc")


class RankedLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    location: LocationEntity
    year: str
    value: float
    category: Optional[str] = None
    stage_of_extraction: Optional[float] = None
    rainfall: Optional[float] = None
    recharge: Optional[float] = None
    extraction: Optional[float] = None


class AggregateRanking(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    location: LocationEntity
    avg: float
    min: float
    max: float
    years: List[str]


class TrendPoint(BaseModel):
    year: str
    # location id -> value; None when the location was outside that year's sample
    values: Dict[str, Optional[float]]


class TrendSeries(BaseModel):
    locations: List[LocationEntity]
    points: List[TrendPoint]


class RankingResult(BaseModel):
    metric: Metric
    order: str
    limit: int
    location_type: LocationType
    window: YearWindow
    entries: List[RankedLocation] = []
    aggregates: List[AggregateRanking] = []
    trend: Optional[TrendSeries] = None

    @property
    def multi_year(self) -> bool:
        return self.trend is not None


class RankingEngine:
    def __init__(
        self,
        snapshot: Snapshot,
        oversample: Optional[int] = None,
        series_size: Optional[int] = None,
        workers: Optional[int] = None,
    ):
        self.snapshot = snapshot
        self.oversample = oversample or settings.rank_oversample
        self.series_size = series_size or settings.trend_series_size
        self.workers = workers or settings.fetch_workers

    def _year_records(self, location_type: LocationType, year: str) -> List[Tuple[LocationEntity, StatRecord]]:
        catalog = self.snapshot.catalog
        locations = catalog.logical_locations(location_type)

        def fetch(entity: LocationEntity) -> Optional[StatRecord]:
            return canonical_stats(catalog, self.snapshot.records, entity.id, year)

        if self.workers > 1 and len(locations) > 1:
            # map() hands results back in submission order
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                records = list(pool.map(fetch, locations))
        else:
            records = [fetch(e) for e in locations]

        return [(e, r) for e, r in zip(locations, records) if r is not None]

    def rank_year(self, metric: Metric, location_type: LocationType, order: str, k: int, year: str) -> List[RankedLocation]:
        candidates = [
            (entity, record, record.get(metric.field))
            for entity, record in self._year_records(location_type, year)
        ]
        # Missing metric means excluded, never ranked as zero
        candidates = [c for c in candidates if c[2] is not None]
        candidates.sort(key=lambda c: c[2], reverse=(order == "desc"))

        return [
            RankedLocation(
                rank=i + 1,
                location=entity,
                year=year,
                value=value,
                category=record.category,
                stage_of_extraction=record.get(STAGE_FIELD),
                rainfall=record.get("rainfall_total"),
                recharge=record.get("recharge_total_total"),
                extraction=record.get("draft_total_total"),
            )
            for i, (entity, record, value) in enumerate(candidates[:k])
        ]

    def _rank_years(self, metric: Metric, location_type: LocationType, order: str, k: int, years: List[str]):
        sample = k * self.oversample
        per_year: Dict[str, List[RankedLocation]] = {}
        values: Dict[str, List[float]] = {}
        seen_years: Dict[str, List[str]] = {}
        entities: Dict[str, LocationEntity] = {}

        for year in years:
            ranked = self.rank_year(metric, location_type, order, sample, year)
            per_year[year] = ranked
            for r in ranked:
                entities.setdefault(r.location.id, r.location)
                values.setdefault(r.location.id, []).append(r.value)
                seen_years.setdefault(r.location.id, []).append(year)

        catalog = self.snapshot.catalog
        ids = sorted(values, key=catalog.position)
        averages = {lid: sum(values[lid]) / len(values[lid]) for lid in ids}
        ids.sort(key=averages.__getitem__, reverse=(order == "desc"))
        ids = ids[:k]

        aggregates = [
            AggregateRanking(
                rank=i + 1,
                location=entities[lid],
                avg=averages[lid],
                min=min(values[lid]),
                max=max(values[lid]),
                years=seen_years[lid],
            )
            for i, lid in enumerate(ids)
        ]

        leaders = ids[: self.series_size]
        points = []
        for year in years:
            by_id = {r.location.id: r.value for r in per_year[year]}
            points.append(TrendPoint(year=year, values={lid: by_id.get(lid) for lid in leaders}))
        trend = TrendSeries(locations=[entities[lid] for lid in leaders], points=points)
        return aggregates, trend

    def top_k(
        self,
        metric: str,
        location_type: LocationType,
        order: str = "desc",
        k: int = 10,
        year_spec: Optional[YearSpec] = None,
    ) -> RankingResult:
        """Rank logical locations of ``location_type`` by ``metric``.

        Raises:
            UnknownMetricError: ``metric`` is not a known metric name.
            ValueError: ``order`` is not asc/desc or ``k`` is below 1.
        """
        resolved = resolve_metric(metric)
        location_type = LocationType.parse(location_type)
        if order not in ORDERS:
            raise ValueError(f"order must be one of {ORDERS}, got '{order}'")
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")

        window = resolve_years(year_spec or YearSpec(), self.snapshot.available_years())
        result = RankingResult(metric=resolved, order=order, limit=k, location_type=location_type, window=window)
        logger.info("Ranking %s by %s (%s, k=%d) over %s", location_type.value, resolved.name, order, k, window.years,
                    extra={"metric": resolved.name})

        if window.historical and len(window.years) > 1:
            aggregates, trend = self._rank_years(resolved, location_type, order, k, window.years)
            return result.model_copy(update={"aggregates": aggregates, "trend": trend})

        if not window.years:
            return result
        entries = self.rank_year(resolved, location_type, order, k, window.years[0])
        return result.model_copy(update={"entries": entries})
