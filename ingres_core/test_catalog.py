import pytest
from pydantic import ValidationError

from ingres_core.catalog import LocationCatalog, normalize_name
from ingres_core.errors import CatalogIntegrityError, CatalogNotInitialized
from ingres_core.models import LocationEntity, LocationType


def test_country_iff_no_parent(catalog):
    for e in catalog:
        assert (e.type is LocationType.COUNTRY) == (e.parent_id is None)


def test_entity_rejects_country_with_parent():
    with pytest.raises(ValidationError):
        LocationEntity(id="x", name="India", type="COUNTRY", parent_id="y")


def test_entity_rejects_orphan_state():
    with pytest.raises(ValidationError):
        LocationEntity(id="x", name="Goa", type="STATE")


def test_unknown_parent_rejected():
    with pytest.raises(CatalogIntegrityError):
        LocationCatalog([LocationEntity(id="s1", name="Goa", type="STATE", parent_id="nowhere")])


def test_parent_must_be_one_level_up():
    entities = [
        LocationEntity(id="c1", name="India", type="COUNTRY"),
        LocationEntity(id="d1", name="North Goa", type="DISTRICT", parent_id="c1"),
    ]
    with pytest.raises(CatalogIntegrityError):
        LocationCatalog(entities)


def test_duplicate_id_rejected():
    india = LocationEntity(id="c1", name="India", type="COUNTRY")
    with pytest.raises(CatalogIntegrityError):
        LocationCatalog([india, india])


def test_normalize_name():
    assert normalize_name("Bangalore_Urban") == "bangalore urban"
    assert normalize_name("  North-Goa ") == "north goa"
    assert normalize_name("") == ""


def test_lookups(catalog):
    assert catalog.lookup("d5").name == "Chennai"
    assert catalog.lookup("missing") is None
    # First entity keeps a duplicated external id
    assert catalog.lookup_by_external_id("KA").id == "s1"
    assert [e.id for e in catalog.children("d1")] == ["t1", "t2"]
    assert [e.id for e in catalog.by_type_and_name(LocationType.DISTRICT, "bangalore-urban")] == ["d1", "d9"]
    assert catalog.by_type_and_name("TALUK", "Chennai") == []


def test_hierarchy(catalog):
    assert [e.id for e in catalog.hierarchy("t1")] == ["c1", "s1", "d1", "t1"]
    assert catalog.hierarchy("missing") == []


def test_logical_grouping(catalog):
    assert catalog.canonical_id("s5") == "s1"
    assert catalog.canonical_id("d9") == "d1"
    assert catalog.members("d9") == ["d1", "d9"]
    # Same name, different parents: two logical districts
    assert catalog.canonical_id("d8") == "d8"
    assert [e.id for e in catalog.logical_locations(LocationType.STATE)] == ["s1", "s2", "s3", "s4"]


def test_logical_children_span_duplicates(catalog):
    assert [e.id for e in catalog.logical_children("s5")] == ["d1", "d2", "d3", "d4", "d10"]


def test_not_initialized_is_distinct_from_empty():
    with pytest.raises(CatalogNotInitialized):
        LocationCatalog.empty().lookup("c1")

    loaded = LocationCatalog([])
    assert loaded.initialized
    assert loaded.lookup("c1") is None
    assert loaded.of_type(LocationType.STATE) == []
