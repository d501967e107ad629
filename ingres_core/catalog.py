# ingres_core/catalog.py
"""In-memory location hierarchy: country > state > district > taluk.

A ``LocationCatalog`` is built once from the full list of entities and never
mutated afterwards. Reloading means building a new catalog and swapping the
reference (see ``snapshot.SnapshotHolder``).
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from ingres_core.errors import CatalogIntegrityError, CatalogNotInitialized
from ingres_core.models import LocationEntity, LocationType

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[_-]")
_SPACES = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """'Bangalore_Urban ' -> 'bangalore urban'"""
    return _SPACES.sub(" ", _SEPARATORS.sub(" ", name or "")).strip().lower()


class LocationCatalog:
    def __init__(self, entities: Iterable[LocationEntity] = (), initialized: bool = True):
        self._initialized = initialized
        self._entities: List[LocationEntity] = list(entities)
        self._by_id: Dict[str, LocationEntity] = {}
        self._position: Dict[str, int] = {}
        self._by_external_id: Dict[str, LocationEntity] = {}
        self._children: Dict[str, List[LocationEntity]] = {}
        self._by_type_and_name: Dict[Tuple[LocationType, str], List[LocationEntity]] = {}
        self._canonical: Dict[str, str] = {}
        self._members: Dict[str, List[str]] = {}

        for pos, entity in enumerate(self._entities):
            if entity.id in self._by_id:
                raise CatalogIntegrityError(f"Duplicate location id '{entity.id}'")
            self._by_id[entity.id] = entity
            self._position[entity.id] = pos

        self._check_hierarchy()

        for entity in self._entities:
            if entity.parent_id is not None:
                self._children.setdefault(entity.parent_id, []).append(entity)
            key = (entity.type, normalize_name(entity.name))
            self._by_type_and_name.setdefault(key, []).append(entity)

        self._group_logical_locations()

    @classmethod
    def empty(cls) -> "LocationCatalog":
        """The catalog before any successful load; every read raises."""
        return cls(initialized=False)

    def _check_hierarchy(self) -> None:
        for entity in self._entities:
            if entity.parent_id is None:
                continue
            parent = self._by_id.get(entity.parent_id)
            if parent is None:
                raise CatalogIntegrityError(
                    f"{entity.type.value} '{entity.name}' ({entity.id}) references unknown parent '{entity.parent_id}'"
                )
            if parent.type is not entity.type.parent_type:
                raise CatalogIntegrityError(
                    f"{entity.type.value} '{entity.name}' ({entity.id}) has a {parent.type.value} parent; "
                    f"expected {entity.type.parent_type.value}"
                )

    def _group_logical_locations(self) -> None:
        # Parents are grouped before their children so a child can key on its
        # parent's canonical id. Insertion order is kept within each level.
        by_key: Dict[Tuple[LocationType, str, Optional[str]], str] = {}
        for level_type in LocationType:
            for entity in self._entities:
                if entity.type is not level_type:
                    continue
                parent_canonical = self._canonical[entity.parent_id] if entity.parent_id else None
                key = (entity.type, normalize_name(entity.name), parent_canonical)

                canonical = None
                if entity.external_id is not None:
                    known = self._by_external_id.get(entity.external_id)
                    if known is not None:
                        if known.type is not entity.type:
                            raise CatalogIntegrityError(
                                f"External id {entity.external_id} is used by a {known.type.value} and a {entity.type.value}"
                            )
                        logger.warning(
                            "Duplicate external id %s: '%s' (%s) merged into %s",
                            entity.external_id, entity.name, entity.id, known.id,
                        )
                        canonical = self._canonical[known.id]
                    else:
                        self._by_external_id[entity.external_id] = entity
                if canonical is None:
                    canonical = by_key.get(key, entity.id)
                by_key.setdefault(key, canonical)

                self._canonical[entity.id] = canonical
                self._members.setdefault(canonical, []).append(entity.id)

        for members in self._members.values():
            members.sort(key=self._position.__getitem__)

    def _require(self) -> None:
        if not self._initialized:
            raise CatalogNotInitialized()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self):
        self._require()
        return iter(self._entities)

    def lookup(self, location_id: str) -> Optional[LocationEntity]:
        self._require()
        return self._by_id.get(location_id)

    def lookup_by_external_id(self, external_id: str) -> Optional[LocationEntity]:
        self._require()
        return self._by_external_id.get(external_id)

    def children(self, parent_id: str) -> List[LocationEntity]:
        self._require()
        return list(self._children.get(parent_id, []))

    def by_type_and_name(self, location_type: LocationType, name: str) -> List[LocationEntity]:
        self._require()
        return list(self._by_type_and_name.get((LocationType.parse(location_type), normalize_name(name)), []))

    def of_type(self, location_type: Optional[LocationType] = None) -> List[LocationEntity]:
        self._require()
        if location_type is None:
            return list(self._entities)
        location_type = LocationType.parse(location_type)
        return [e for e in self._entities if e.type is location_type]

    def position(self, location_id: str) -> int:
        """Insertion index, used as the deterministic tie-break everywhere."""
        self._require()
        return self._position[location_id]

    def hierarchy(self, location_id: str) -> List[LocationEntity]:
        """Path from the country down to ``location_id`` (inclusive)."""
        self._require()
        path = []
        current = self._by_id.get(location_id)
        while current is not None:
            path.append(current)
            current = self._by_id.get(current.parent_id) if current.parent_id else None
        path.reverse()
        return path

    # -- logical locations -------------------------------------------------

    def canonical_id(self, location_id: str) -> str:
        self._require()
        return self._canonical[location_id]

    def canonical(self, location_id: str) -> LocationEntity:
        return self._by_id[self.canonical_id(location_id)]

    def members(self, location_id: str) -> List[str]:
        """Ids of every entity that is the same logical location as ``location_id``."""
        return list(self._members[self.canonical_id(location_id)])

    def logical_locations(self, location_type: LocationType) -> List[LocationEntity]:
        """One canonical entity per logical location of ``location_type``, in insertion order."""
        return [e for e in self.of_type(location_type) if self._canonical[e.id] == e.id]

    def logical_children(self, location_id: str) -> List[LocationEntity]:
        self._require()
        seen = set()
        result = []
        for member_id in self.members(location_id):
            for child in self._children.get(member_id, []):
                canonical = self._canonical[child.id]
                if canonical not in seen:
                    seen.add(canonical)
                    result.append(self._by_id[canonical])
        result.sort(key=lambda e: self._position[e.id])
        return result
