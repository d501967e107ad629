import pytest

from ingres_core.catalog import LocationCatalog
from ingres_core.errors import CatalogNotInitialized
from ingres_core.models import LocationType
from ingres_core.resolver import FuzzyResolver


@pytest.fixture
def resolver(catalog):
    return FuzzyResolver(catalog, threshold=0.6, max_results=5, parent_candidates=3)


def test_exact_district(resolver):
    results = resolver.resolve("bangalore urban", LocationType.DISTRICT)
    assert results
    assert results[0].location.id == "d1"
    assert results[0].score == 1.0
    assert all(r.location.type is LocationType.DISTRICT for r in results)


def test_duplicate_entities_collapse(resolver):
    ids = [r.location.id for r in resolver.resolve("Bangalore_Urban", LocationType.DISTRICT)]
    assert "d9" not in ids
    assert len(ids) == len(set(ids))


def test_untyped_query_lets_score_decide(resolver):
    results = resolver.resolve("bangalore urban")
    assert results[0].location.id == "d1"
    assert all(results[0].score >= r.score for r in results)


def test_misspelling_tolerated(resolver):
    results = resolver.resolve_state("Karnatka")
    assert results[0].location.id == "s1"
    assert 0.6 <= results[0].score < 1.0
    assert "s5" not in [r.location.id for r in results]


def test_below_threshold_excluded(resolver):
    assert resolver.resolve("zzzz") == []


def test_empty_query_and_empty_catalog(resolver):
    assert resolver.resolve("") == []
    assert resolver.resolve(" - ") == []
    assert FuzzyResolver(LocationCatalog([])).resolve("Karnataka") == []


def test_not_initialized_raises():
    with pytest.raises(CatalogNotInitialized):
        FuzzyResolver(LocationCatalog.empty()).resolve("Karnataka")


def test_ties_keep_catalog_order(resolver):
    results = resolver.resolve("Aurangabad", LocationType.DISTRICT)
    assert [r.location.id for r in results[:2]] == ["d7", "d8"]
    assert results[0].score == results[1].score == 1.0


def test_untyped_tie_prefers_earlier_entity(resolver):
    results = resolver.resolve("Mysore")
    assert [r.location.id for r in results[:2]] == ["d3", "t4"]


def test_parent_hint_narrows(resolver):
    assert resolver.resolve_district("Aurangabad", "Bihar")[0].location.id == "d8"
    assert resolver.resolve_district("Aurangabad", "maharashtra")[0].location.id == "d7"


def test_parent_hint_that_empties_results_is_ignored(resolver):
    # Tamil Nadu has no Aurangabad; the unfiltered list is kept
    results = resolver.resolve_district("Aurangabad", "Tamil Nadu")
    assert [r.location.id for r in results[:2]] == ["d7", "d8"]
    unmatched = resolver.resolve_district("Aurangabad", "zzzz")
    assert [r.location.id for r in unmatched[:2]] == ["d7", "d8"]


def test_parent_hint_through_duplicate_parent(resolver):
    # Udupi hangs off the duplicate Karnataka entity
    assert resolver.resolve_district("Udupi", "Karnataka")[0].location.id == "d10"


def test_taluk_with_district_hint(resolver):
    results = resolver.resolve_taluk("mysore", "Mysore")
    assert results[0].location.id == "t4"


def test_result_cap(catalog):
    results = FuzzyResolver(catalog, max_results=2).resolve("bangalore", LocationType.DISTRICT)
    assert [r.location.id for r in results] == ["d1", "d2"]


def test_best(resolver):
    assert resolver.best("Chennai").location.id == "d5"
    assert resolver.best("zzzz") is None
