# ingres_core/main.py
import logging
from contextlib import asynccontextmanager
from typing import List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from ingres_core.config import settings
from ingres_core.errors import CatalogNotInitialized, ReloadFailed, UnknownMetricError
from ingres_core.logs import setup_logging
from ingres_core.models import YEAR_PATTERN, LocationType, SearchResult, StatRecord, YearSpec
from ingres_core.ranking import RankingResult
from ingres_core.service import GroundwaterService
from ingres_core.snapshot import SnapshotHolder
from ingres_core.store import SqliteBulkLoader

logger = logging.getLogger(__name__)

holder = SnapshotHolder()
service = GroundwaterService(holder)


def load_snapshot() -> None:
    try:
        holder.load(SqliteBulkLoader(settings.database_path))
    except CatalogNotInitialized as e:
        # Serve 503s until a reload succeeds
        logger.error("%s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    load_snapshot()
    yield


app = FastAPI(title="INGRES groundwater engine", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogNotInitialized)
async def not_initialized_handler(request: Request, exc: CatalogNotInitialized):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(ReloadFailed)
async def reload_failed_handler(request: Request, exc: ReloadFailed):
    return JSONResponse(status_code=503, content={"detail": str(exc), "snapshot": "previous"})


@app.exception_handler(UnknownMetricError)
async def unknown_metric_handler(request: Request, exc: UnknownMetricError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


class ResolveQuery(BaseModel):
    name: str
    type: Optional[LocationType] = None
    parent: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, v):
        return v.upper() if isinstance(v, str) else v


class RankingQuery(BaseModel):
    metric: str
    location_type: LocationType
    order: Literal["asc", "desc"] = "desc"
    limit: int = Field(default=10, ge=1, le=20)
    years: YearSpec = YearSpec()

    @field_validator("location_type", mode="before")
    @classmethod
    def _upper_type(cls, v):
        return v.upper() if isinstance(v, str) else v


@app.get("/")
def read_root():
    snap = holder.current
    if not snap.initialized:
        return JSONResponse(status_code=503, content={"status": "INGRES catalog not loaded"})
    return {
        "status": "INGRES API is running",
        "locations": len(snap.catalog),
        "years": snap.available_years(),
    }


@app.post("/locations/resolve", response_model=List[SearchResult])
def resolve_location(item: ResolveQuery):
    return service.resolve_location(item.name, item.type, item.parent)


@app.get("/locations/{location_id}/stats", response_model=StatRecord)
def location_stats(location_id: str, year: Optional[str] = Query(None, pattern=YEAR_PATTERN.pattern)):
    record = service.get_canonical_stats(location_id, year)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No groundwater data for location '{location_id}'")
    return record


@app.get("/locations/{location_id}/history", response_model=List[StatRecord])
def location_history(location_id: str):
    records = service.get_historical_stats(location_id)
    if not records:
        raise HTTPException(status_code=404, detail=f"No historical data for location '{location_id}'")
    return records


@app.post("/rankings", response_model=RankingResult)
def rank_locations(item: RankingQuery):
    return service.rank_locations(item.metric, item.location_type, item.order, item.limit, item.years)


@app.post("/admin/reload")
def reload_snapshot():
    snapshot = holder.load(SqliteBulkLoader(settings.database_path))
    return {"status": "reloaded", "locations": len(snapshot.catalog)}
