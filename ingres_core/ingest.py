# ingres_core/ingest.py
"""Seed the local SQLite store from CSV exports.

    python -m ingres_core.ingest locations.csv groundwater_data.csv --db ingres.db
"""

import argparse
import logging
import re
import sqlite3

import pandas as pd

from ingres_core.config import settings
from ingres_core.logs import setup_logging
from ingres_core.store import LOCATION_COLUMNS, LOCATIONS_TABLE, RECORD_COLUMNS, RECORDS_TABLE

logger = logging.getLogger(__name__)


def snake_case(column: str) -> str:
    """'rechargeTotalTotal' / 'Recharge Total-Total' -> 'recharge_total_total'"""
    column = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", column.strip())
    return re.sub(r"[\s\-]+", "_", column).lower()


def _prepare_locations(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [snake_case(c) for c in df.columns]
    missing = [c for c in ("id", "name", "type") if c not in df.columns]
    if missing:
        raise ValueError(f"Locations file is missing columns: {missing}")
    for column in ("external_id", "parent_id"):
        if column not in df.columns:
            df[column] = None
    df["name"] = df["name"].str.strip()
    df["type"] = df["type"].str.strip().str.upper()
    df = df.astype(object).where(df.notna(), None)
    return df[list(LOCATION_COLUMNS)]


def _prepare_records(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [snake_case(c) for c in df.columns]
    missing = [c for c in ("location_id", "year") if c not in df.columns]
    if missing:
        raise ValueError(f"Records file is missing columns: {missing}")
    if "id" not in df.columns:
        df.insert(0, "id", range(1, len(df) + 1))
    df["id"] = df["id"].astype(str)

    unknown = [c for c in df.columns if c not in RECORD_COLUMNS]
    if unknown:
        logger.warning("Ignoring %d unrecognized record columns: %s", len(unknown), unknown)
    df["location_id"] = df["location_id"].astype(str).str.strip()
    df["year"] = df["year"].astype(str).str.strip()
    return df[[c for c in RECORD_COLUMNS if c in df.columns]]


def setup_database(locations_csv: str, records_csv: str, db_path: str) -> None:
    locations = _prepare_locations(pd.read_csv(locations_csv, dtype=str))
    records = _prepare_records(pd.read_csv(records_csv))

    conn = sqlite3.connect(db_path)
    try:
        locations.to_sql(LOCATIONS_TABLE, conn, if_exists="replace", index=False)
        records.to_sql(RECORDS_TABLE, conn, if_exists="replace", index=False)
        conn.execute(f"CREATE INDEX IF NOT EXISTS idx_records_location_year ON {RECORDS_TABLE} (location_id, year)")
        conn.commit()
    finally:
        conn.close()
    logger.info("Database rebuilt at %s: %d locations, %d records", db_path, len(locations), len(records))


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Build the INGRES SQLite store from CSV files.")
    parser.add_argument("locations_csv")
    parser.add_argument("records_csv")
    parser.add_argument("--db", default=settings.database_path)
    args = parser.parse_args(argv)

    setup_logging(json_format=settings.log_json, level=settings.log_level)
    setup_database(args.locations_csv, args.records_csv, args.db)


if __name__ == "__main__":
    main()
