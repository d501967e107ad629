import json
import logging

from ingres_core.logs import JSONFormatter


def test_json_formatter_carries_extras():
    record = logging.LogRecord("ingres_core.aggregation", logging.DEBUG, __file__, 1,
                               "Merging %d rows", (2,), None)
    record.location_id = "s1"
    record.year = "2024-2025"

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "Merging 2 rows"
    assert entry["location_id"] == "s1"
    assert entry["year"] == "2024-2025"
    assert "metric" not in entry
