# ingres_core/conftest.py
import pytest

from ingres_core.catalog import LocationCatalog
from ingres_core.models import LocationEntity, StatRecord
from ingres_core.snapshot import Snapshot, SnapshotHolder


def loc(id, name, type, parent_id=None, external_id=None):
    return LocationEntity(id=id, name=name, type=type, parent_id=parent_id, external_id=external_id)


def raw(row_id, location_id, year, category=None, sub_categories=None, **values):
    return StatRecord(
        location_id=location_id,
        year=year,
        values=values,
        category=category,
        sub_categories=sub_categories or {},
        sources=frozenset([row_id]),
    )


ENTITIES = [
    loc("c1", "India", "COUNTRY"),
    loc("s1", "Karnataka", "STATE", "c1", "KA"),
    loc("s2", "Tamil Nadu", "STATE", "c1", "TN"),
    loc("s3", "Maharashtra", "STATE", "c1", "MH"),
    loc("s4", "Bihar", "STATE", "c1", "BR"),
    # Same state ingested twice
    loc("s5", "Karnataka", "STATE", "c1", "KA"),
    loc("d1", "Bangalore Urban", "DISTRICT", "s1", "KA-BU"),
    loc("d2", "Bangalore Rural", "DISTRICT", "s1"),
    loc("d3", "Mysore", "DISTRICT", "s1"),
    loc("d4", "Tumkur", "DISTRICT", "s1"),
    loc("d5", "Chennai", "DISTRICT", "s2"),
    loc("d6", "Salem", "DISTRICT", "s2"),
    loc("d7", "Aurangabad", "DISTRICT", "s3"),
    loc("d8", "Aurangabad", "DISTRICT", "s4"),
    # Name/type/parent collision with d1
    loc("d9", "Bangalore_Urban", "DISTRICT", "s1"),
    loc("d10", "Udupi", "DISTRICT", "s5"),
    loc("t1", "Anekal", "TALUK", "d1"),
    loc("t2", "Bangalore East", "TALUK", "d1"),
    loc("t3", "Hoskote", "TALUK", "d2"),
    loc("t4", "Mysore", "TALUK", "d3"),
]

RECORDS = [
    raw("r1", "s3", "2016-2017", draft_total_total=1000, stage_of_extraction_total=50),
    raw("r2", "s1", "2022-2023", category="Semi-Critical", draft_total_total=800, stage_of_extraction_total=70),
    raw("r3", "s2", "2022-2023", draft_total_total=1200, stage_of_extraction_total=80),
    raw("r4", "s3", "2022-2023", draft_total_total=1400, stage_of_extraction_total=90),
    raw("r5", "s4", "2022-2023", draft_total_total=300, stage_of_extraction_total=30),
    # Karnataka 2024-2025 arrives as command and non-command rows
    raw("r6", "s1", "2024-2025", category="Safe", sub_categories={"command": "Safe"},
        draft_total_command=600, draft_total_total=600, stage_of_extraction_total=40, rainfall_total=900),
    raw("r7", "s1", "2024-2025", category="Safe", sub_categories={"non_command": "Safe"},
        draft_total_non_command=400, draft_total_total=400, stage_of_extraction_total=45),
    raw("r8", "s2", "2024-2025", category="Semi-Critical", draft_total_total=1000, stage_of_extraction_total=77),
    raw("r9", "s3", "2024-2025", category="Safe", draft_total_total=1500, stage_of_extraction_total=60),
    raw("r10", "s4", "2024-2025", stage_of_extraction_total=45, rainfall_total=1100),
    raw("r11", "d1", "2022-2023", category="Critical", draft_total_total=200, stage_of_extraction_total=90),
    raw("r12", "d1", "2024-2025", category="Safe", draft_total_total=100, stage_of_extraction_total=50),
    raw("r13", "d1", "2024-2025", category="Safe", draft_total_total=150, stage_of_extraction_total=55),
    raw("r14", "d9", "2024-2025", draft_total_total=10),
    raw("r15", "d3", "2024-2025", category="Critical", draft_total_total=80, stage_of_extraction_total=95),
    raw("r16", "d5", "2024-2025", category="Over-Exploited", draft_total_total=300, stage_of_extraction_total=110),
    raw("r17", "d7", "2024-2025", category="Safe", draft_total_total=200, stage_of_extraction_total=65),
    raw("r18", "d8", "2024-2025", category="Safe", draft_total_total=50, stage_of_extraction_total=20),
]


@pytest.fixture
def entities():
    return list(ENTITIES)


@pytest.fixture
def records():
    return list(RECORDS)


@pytest.fixture
def catalog(entities):
    return LocationCatalog(entities)


@pytest.fixture
def snapshot(entities, records):
    return Snapshot.build(entities, records)


@pytest.fixture
def holder(snapshot):
    return SnapshotHolder(snapshot)
