# ingres_core/resolver.py
import logging
from typing import List, Optional, Set

from thefuzz import fuzz, process

from ingres_core.catalog import LocationCatalog, normalize_name
from ingres_core.config import settings
from ingres_core.models import LocationType, SearchResult

logger = logging.getLogger(__name__)


class FuzzyResolver:
    """Approximate place-name search over a catalog snapshot.

    Results are best-first. Equal scores keep catalog insertion order, and
    entities that are the same logical location collapse into their canonical
    entity.
    """

    def __init__(
        self,
        catalog: LocationCatalog,
        threshold: Optional[float] = None,
        max_results: Optional[int] = None,
        parent_candidates: Optional[int] = None,
    ):
        self.catalog = catalog
        self.threshold = settings.match_threshold if threshold is None else threshold
        self.max_results = max_results or settings.max_results
        self.parent_candidates = parent_candidates or settings.parent_candidates

    def _match(self, query: str, location_type: Optional[LocationType]) -> List[SearchResult]:
        entities = self.catalog.of_type(location_type)
        normalized = normalize_name(query)
        if not normalized or not entities:
            return []

        choices = {e.id: normalize_name(e.name) for e in entities}
        cutoff = self.threshold * 100
        # extractWithoutOrder yields in catalog order, sorted() is stable
        scored = [
            (key, score)
            for _, score, key in process.extractWithoutOrder(normalized, choices, scorer=fuzz.WRatio, score_cutoff=cutoff)
        ]
        scored.sort(key=lambda item: item[1], reverse=True)

        results = []
        seen: Set[str] = set()
        for location_id, score in scored:
            canonical = self.catalog.canonical(location_id)
            if canonical.id in seen:
                continue
            seen.add(canonical.id)
            results.append(SearchResult(location=canonical, score=min(score, 100) / 100.0))
        return results

    def _parent_ids(self, hint: str, parent_type: LocationType) -> Set[str]:
        candidates = self._match(hint, parent_type)[: self.parent_candidates]
        return {c.location.id for c in candidates}

    def resolve(
        self,
        query: str,
        location_type: Optional[LocationType] = None,
        parent_hint: Optional[str] = None,
    ) -> List[SearchResult]:
        location_type = LocationType.parse(location_type) if location_type else None
        results = self._match(query, location_type)

        if parent_hint and location_type in (LocationType.DISTRICT, LocationType.TALUK):
            parent_ids = self._parent_ids(parent_hint, location_type.parent_type)
            if parent_ids:
                narrowed = [
                    r for r in results
                    if r.location.parent_id and self.catalog.canonical_id(r.location.parent_id) in parent_ids
                ]
                if narrowed:
                    results = narrowed
                else:
                    logger.debug("Parent hint '%s' matched no %s results for '%s'; ignoring it",
                                 parent_hint, location_type.value, query)

        return results[: self.max_results]

    def resolve_state(self, query: str) -> List[SearchResult]:
        return self.resolve(query, LocationType.STATE)

    def resolve_district(self, query: str, state_name: Optional[str] = None) -> List[SearchResult]:
        return self.resolve(query, LocationType.DISTRICT, state_name)

    def resolve_taluk(self, query: str, district_name: Optional[str] = None) -> List[SearchResult]:
        return self.resolve(query, LocationType.TALUK, district_name)

    def best(
        self,
        query: str,
        location_type: Optional[LocationType] = None,
        parent_hint: Optional[str] = None,
    ) -> Optional[SearchResult]:
        """Top-scored candidate, or None when nothing clears the threshold."""
        results = self.resolve(query, location_type, parent_hint)
        return results[0] if results else None
