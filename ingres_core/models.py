# ingres_core/models.py
import math
import re
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ingres_core.errors import UnknownMetricError

YEAR_PATTERN = re.compile(r"^\d{4}-\d{4}$")


class LocationType(str, Enum):
    COUNTRY = "COUNTRY"
    STATE = "STATE"
    DISTRICT = "DISTRICT"
    TALUK = "TALUK"

    @property
    def level(self) -> int:
        return _LEVELS.index(self)

    @property
    def parent_type(self) -> Optional["LocationType"]:
        if self is LocationType.COUNTRY:
            return None
        return _LEVELS[self.level - 1]

    @classmethod
    def parse(cls, value) -> "LocationType":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


_LEVELS = [LocationType.COUNTRY, LocationType.STATE, LocationType.DISTRICT, LocationType.TALUK]


class LocationEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    external_id: Optional[str] = None
    name: str
    type: LocationType
    parent_id: Optional[str] = None

    @model_validator(mode="after")
    def _root_iff_country(self) -> "LocationEntity":
        if self.type is LocationType.COUNTRY and self.parent_id is not None:
            raise ValueError(f"COUNTRY '{self.name}' cannot have a parent")
        if self.type is not LocationType.COUNTRY and self.parent_id is None:
            raise ValueError(f"{self.type.value} '{self.name}' must have a parent")
        return self


# Measurement groups as published in the assessment reports. Every group is
# reported for the command area, non-command area, poor-quality area and total.
MEASURES = (
    "rainfall",
    "recharge_rainfall",
    "recharge_canal",
    "recharge_surface_irrigation",
    "recharge_gw_irrigation",
    "recharge_water_body",
    "recharge_artificial_structure",
    "recharge_total",
    "loss",
    "baseflow_lateral",
    "baseflow_vertical",
    "evaporation",
    "transpiration",
    "extractable",
    "total_gw_availability",
    "availability_future",
    "draft_agriculture",
    "draft_domestic",
    "draft_industry",
    "draft_total",
    "stage_of_extraction",
    "allocation_domestic",
    "allocation_industry",
    "allocation_total",
    "area_recharge_worthy",
)
AREA_SPLITS = ("command", "non_command", "poor_quality", "total")

NUMERIC_FIELDS = tuple(f"{m}_{s}" for m in MEASURES for s in AREA_SPLITS) + (
    "area_non_recharge_worthy_total",
    "area_total_total",
)
_NUMERIC_FIELD_SET = frozenset(NUMERIC_FIELDS)

STAGE_FIELD = "stage_of_extraction_total"
SUB_CATEGORY_KEYS = ("command", "non_command", "poor_quality")


class Category(str, Enum):
    SAFE = "Safe"
    SEMI_CRITICAL = "Semi-Critical"
    CRITICAL = "Critical"
    OVER_EXPLOITED = "Over-Exploited"
    UNKNOWN = "Unknown"


def validate_year(value: str) -> str:
    value = value.strip()
    if not YEAR_PATTERN.match(value):
        raise ValueError(f"Year '{value}' must look like YYYY-YYYY, e.g. 2022-2023")
    return value


class StatRecord(BaseModel):
    """Groundwater measurements of one location for one assessment year.

    A raw row from the store carries its own row id in ``sources``; a merged
    record carries the ids of every raw row folded into it.
    """

    model_config = ConfigDict(frozen=True)

    location_id: str
    year: str
    values: Dict[str, float] = Field(default_factory=dict)
    category: Optional[str] = None
    sub_categories: Dict[str, str] = Field(default_factory=dict)
    sources: FrozenSet[str] = frozenset()

    @field_validator("year")
    @classmethod
    def _check_year(cls, v: str) -> str:
        return validate_year(v)

    @field_validator("values", mode="before")
    @classmethod
    def _check_values(cls, v):
        cleaned = {}
        for key, value in dict(v or {}).items():
            if key not in _NUMERIC_FIELD_SET:
                raise ValueError(f"Unrecognized measurement field '{key}'")
            if value is None:
                continue
            value = float(value)
            if math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @field_validator("sub_categories")
    @classmethod
    def _check_sub_categories(cls, v: Dict[str, str]) -> Dict[str, str]:
        for key in v:
            if key not in SUB_CATEGORY_KEYS:
                raise ValueError(f"Unrecognized sub-category '{key}'")
        return v

    def get(self, field: str) -> Optional[float]:
        return self.values.get(field)

    def metric_value(self, metric: str) -> Optional[float]:
        return self.values.get(resolve_metric(metric).field)


class Metric(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    field: str
    label: str
    unit: str


METRICS: Dict[str, Metric] = {
    m.name: m
    for m in (
        Metric(name="rainfall", field="rainfall_total", label="Rainfall", unit="mm"),
        Metric(name="recharge", field="recharge_total_total", label="Total Recharge", unit="ham"),
        Metric(name="extraction", field="draft_total_total", label="Total Extraction", unit="ham"),
        Metric(name="extractable", field="extractable_total", label="Extractable Resources", unit="ham"),
        Metric(name="stage_of_extraction", field=STAGE_FIELD, label="Stage of Extraction", unit="%"),
        Metric(name="loss", field="loss_total", label="Natural Discharge", unit="ham"),
        Metric(name="availability", field="availability_future_total", label="Future Availability", unit="ham"),
        Metric(name="irrigation_extraction", field="draft_agriculture_total", label="Irrigation Extraction", unit="ham"),
        Metric(name="domestic_extraction", field="draft_domestic_total", label="Domestic Extraction", unit="ham"),
        Metric(name="industrial_extraction", field="draft_industry_total", label="Industrial Extraction", unit="ham"),
        Metric(name="recharge_from_rainfall", field="recharge_rainfall_total", label="Rainfall Recharge", unit="ham"),
    )
}
METRIC_ALIASES = {"draft": "extraction", "stage": "stage_of_extraction"}
VALID_METRICS = list(METRICS) + list(METRIC_ALIASES)


def resolve_metric(name: str) -> Metric:
    key = name.strip().lower()
    key = METRIC_ALIASES.get(key, key)
    if key not in METRICS:
        raise UnknownMetricError(name, VALID_METRICS)
    return METRICS[key]


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: LocationEntity
    score: float = Field(ge=0.0, le=1.0)


class YearSpec(BaseModel):
    """Year selection of one request.

    ``specific_years`` wins over ``from_year``/``to_year``, which win over
    ``year``. An empty ``specific_years`` list counts as not given.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    year: Optional[str] = None
    from_year: Optional[str] = Field(default=None, alias="fromYear")
    to_year: Optional[str] = Field(default=None, alias="toYear")
    specific_years: Optional[List[str]] = Field(default=None, alias="specificYears")

    @field_validator("year", "from_year", "to_year")
    @classmethod
    def _check_year(cls, v: Optional[str]) -> Optional[str]:
        return validate_year(v) if v else None

    @field_validator("specific_years")
    @classmethod
    def _check_years(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if not v:
            return None
        return [validate_year(y) for y in v]

    @property
    def has_list(self) -> bool:
        return bool(self.specific_years)

    @property
    def has_range(self) -> bool:
        return bool(self.from_year or self.to_year)

    @property
    def is_historical(self) -> bool:
        return self.has_list or self.has_range


class YearWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    historical: bool
    years: List[str]
    target_year: str
