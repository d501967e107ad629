# ingres_core/summaries.py
"""Plain-text renderings of records, handed to the conversational layer."""

from typing import List, Optional, Sequence

from ingres_core.models import STAGE_FIELD, LocationEntity, StatRecord
from ingres_core.years import percent_change

RECHARGE_ROWS = (
    ("Rainfall Recharge", "recharge_rainfall"),
    ("Canal Recharge", "recharge_canal"),
    ("Surface Water Irrigation", "recharge_surface_irrigation"),
    ("Ground Water Irrigation", "recharge_gw_irrigation"),
    ("Water Conservation Structures", "recharge_artificial_structure"),
    ("Tanks And Ponds", "recharge_water_body"),
)
DISCHARGE_ROWS = (
    ("Baseflow", "baseflow_lateral"),
    ("Evaporation", "evaporation"),
    ("Transpiration", "transpiration"),
    ("Vertical Flows", "baseflow_vertical"),
)
EXTRACTION_ROWS = (
    ("Irrigation", "draft_agriculture"),
    ("Domestic", "draft_domestic"),
    ("Industry", "draft_industry"),
)


def format_number(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def _split_line(record: StatRecord, label: str, measure: str) -> str:
    return (
        f"  - {label}: {format_number(record.get(f'{measure}_total'))} "
        f"(Cmd: {format_number(record.get(f'{measure}_command'))}, "
        f"Non-Cmd: {format_number(record.get(f'{measure}_non_command'))})"
    )


def _section(record: StatRecord, title: str, rows, total_measure: str) -> List[str]:
    lines = ["", title]
    for label, measure in rows:
        if record.get(f"{measure}_total"):
            lines.append(_split_line(record, label, measure))
    if record.get(f"{total_measure}_total"):
        lines.append(_split_line(record, "Total", total_measure).replace("  - Total", "  Total", 1))
    return lines


def format_record(record: StatRecord, location: LocationEntity) -> str:
    lines = [f"Location: {location.name} ({location.type.value})", f"Year: {record.year}", ""]
    if record.get("rainfall_total"):
        lines.append(f"Rainfall: {format_number(record.get('rainfall_total'))} mm")
    if record.category:
        lines.append(f"Category: {record.category}")
    if record.get("extractable_total"):
        lines.append(f"Annual Extractable Ground Water Resources: {format_number(record.get('extractable_total'))} ham")
    if record.get("draft_total_total"):
        lines.append(f"Ground Water Extraction: {format_number(record.get('draft_total_total'))} ham")

    lines += _section(record, "Ground Water Recharge (ham):", RECHARGE_ROWS, "recharge_total")
    lines += _section(record, "Natural Discharges (ham):", DISCHARGE_ROWS, "loss")
    lines += _section(record, "Ground Water Extraction (ham):", EXTRACTION_ROWS, "draft_total")

    if record.get(STAGE_FIELD):
        lines += ["", f"Stage of Extraction: {format_number(record.get(STAGE_FIELD))}%"]
    return "\n".join(lines)


def format_history(records: Sequence[StatRecord], location: LocationEntity) -> str:
    if not records:
        return "No historical data available."

    ordered = sorted(records, key=lambda r: r.year)
    lines = [
        f"Historical Groundwater Data for {location.name}",
        f"Available Years: {', '.join(r.year for r in ordered)}",
        "",
    ]
    for r in ordered:
        lines += [
            f"--- {r.year} ---",
            f"  Category: {r.category or 'N/A'}",
            f"  Rainfall: {format_number(r.get('rainfall_total'))} mm",
            f"  Recharge: {format_number(r.get('recharge_total_total'))} ham",
            f"  Extractable: {format_number(r.get('extractable_total'))} ham",
            f"  Extraction: {format_number(r.get('draft_total_total'))} ham",
            f"  Stage of Extraction: {format_number(r.get(STAGE_FIELD))}%",
            "",
        ]

    if len(ordered) >= 2:
        first, last = ordered[0], ordered[-1]
        lines += [
            "--- Trend Analysis ---",
            f"  Extraction Change ({first.year} to {last.year}): "
            f"{percent_change(first.get('draft_total_total'), last.get('draft_total_total'))}",
            f"  Stage of Extraction Change: {percent_change(first.get(STAGE_FIELD), last.get(STAGE_FIELD))}",
            f"  Extractable Resources Change: "
            f"{percent_change(first.get('extractable_total'), last.get('extractable_total'))}",
        ]
    return "\n".join(lines)
