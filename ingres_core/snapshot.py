# ingres_core/snapshot.py
import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Tuple

from ingres_core.catalog import LocationCatalog
from ingres_core.config import settings
from ingres_core.errors import CatalogNotInitialized, ReloadFailed
from ingres_core.models import LocationEntity, StatRecord
from ingres_core.store import InMemoryRecordSource

logger = logging.getLogger(__name__)

BulkLoader = Callable[[], Tuple[List[LocationEntity], List[StatRecord]]]


class Snapshot:
    """Catalog plus raw records, built in one step and read-only afterwards."""

    def __init__(self, catalog: LocationCatalog, records: InMemoryRecordSource):
        self.catalog = catalog
        self.records = records

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(LocationCatalog.empty(), InMemoryRecordSource())

    @classmethod
    def build(cls, entities: Iterable[LocationEntity], records: Iterable[StatRecord]) -> "Snapshot":
        catalog = LocationCatalog(entities)
        source = InMemoryRecordSource(records)
        orphans = [lid for lid in source.location_ids() if catalog.lookup(lid) is None]
        if orphans:
            logger.warning("%d record location ids are not in the catalog, e.g. %s", len(orphans), orphans[:3])
        return cls(catalog, source)

    @property
    def initialized(self) -> bool:
        return self.catalog.initialized

    def available_years(self) -> List[str]:
        return self.records.available_years()


class SnapshotHolder:
    """Owns the live snapshot reference.

    Readers grab ``current`` once per request. Writers build a complete
    snapshot first and then replace the reference; the old snapshot is never
    touched, so in-flight readers keep a consistent view.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot or Snapshot.empty()
        self._swap_lock = threading.Lock()

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    def swap(self, snapshot: Snapshot) -> Snapshot:
        with self._swap_lock:
            previous = self._snapshot
            self._snapshot = snapshot
        logger.info("Snapshot swapped: %d locations, %d records", len(snapshot.catalog), len(snapshot.records))
        return previous

    def load(
        self,
        loader: BulkLoader,
        retries: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> Snapshot:
        """Build a snapshot from ``loader`` and make it current.

        The loader is retried ``retries`` times with a fixed ``delay`` between
        attempts. If every attempt fails the current snapshot is left as it
        was. ``CatalogNotInitialized`` is raised when nothing was loaded yet,
        ``ReloadFailed`` when an earlier snapshot stays in service.
        """
        retries = retries or settings.load_retries
        delay = settings.load_retry_delay if delay is None else delay

        for attempt in range(1, retries + 1):
            try:
                entities, records = loader()
                snapshot = Snapshot.build(entities, records)
            except Exception as e:
                logger.error("Failed to load location catalog (attempt %d/%d): %s", attempt, retries, e,
                             extra={"attempt": attempt})
                if attempt < retries:
                    logger.info("Retrying in %.1fs...", delay)
                    time.sleep(delay)
                continue
            self.swap(snapshot)
            logger.info("Location catalog initialized with %d locations", len(snapshot.catalog))
            return snapshot

        if self._snapshot.initialized:
            raise ReloadFailed(f"Reload failed after {retries} attempts; previous snapshot kept")
        raise CatalogNotInitialized(f"Failed to load location catalog after {retries} attempts")
