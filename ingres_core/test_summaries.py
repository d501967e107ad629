from ingres_core.models import LocationEntity, StatRecord
from ingres_core.summaries import format_history, format_number, format_record

KARNATAKA = LocationEntity(id="s1", name="Karnataka", type="STATE", parent_id="c1")


def test_format_number():
    assert format_number(None) == "-"
    assert format_number(1234.5) == "1,234.5"
    assert format_number(85.0) == "85"
    assert format_number(0.126) == "0.13"


def test_format_record():
    record = StatRecord(
        location_id="s1",
        year="2024-2025",
        category="Semi-Critical",
        values={
            "rainfall_total": 900,
            "recharge_rainfall_total": 120,
            "recharge_rainfall_command": 20,
            "recharge_rainfall_non_command": 100,
            "recharge_total_total": 150,
            "draft_agriculture_total": 700,
            "draft_total_total": 1000,
            "stage_of_extraction_total": 85,
        },
    )
    text = format_record(record, KARNATAKA)

    assert text.startswith("Location: Karnataka (STATE)\nYear: 2024-2025")
    assert "Rainfall: 900 mm" in text
    assert "Category: Semi-Critical" in text
    assert "  - Rainfall Recharge: 120 (Cmd: 20, Non-Cmd: 100)" in text
    assert "  Total: 150 (Cmd: -, Non-Cmd: -)" in text
    assert "  - Irrigation: 700" in text
    assert "Canal Recharge" not in text
    assert "Natural Discharges" in text
    assert text.endswith("Stage of Extraction: 85%")


def test_format_history():
    records = [
        StatRecord(location_id="s1", year="2024-2025", values={"draft_total_total": 1000, "stage_of_extraction_total": 85}),
        StatRecord(location_id="s1", year="2022-2023", category="Safe",
                   values={"draft_total_total": 800, "stage_of_extraction_total": 68}),
    ]
    text = format_history(records, KARNATAKA)

    assert "Available Years: 2022-2023, 2024-2025" in text
    assert text.index("--- 2022-2023 ---") < text.index("--- 2024-2025 ---")
    assert "  Category: N/A" in text
    assert "Extraction Change (2022-2023 to 2024-2025): +25.0%" in text
    assert "Stage of Extraction Change: +25.0%" in text
    assert "Extractable Resources Change: N/A" in text


def test_format_history_single_and_empty():
    one = StatRecord(location_id="s1", year="2022-2023", values={"draft_total_total": 800})
    assert "Trend Analysis" not in format_history([one], KARNATAKA)
    assert format_history([], KARNATAKA) == "No historical data available."
