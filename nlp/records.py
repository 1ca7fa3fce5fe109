"""
Record Loading for Incident Notifications

Reads the tabular notification source into the pipeline's record frame:
cleans column names, maps source columns onto record_id/timestamp/category/text,
parses timestamps and drops records that are missing a required field.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["record_id", "timestamp", "category", "text"]
DEFAULT_TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M"


@dataclass
class RecordLoadResult:
    """Loaded records plus how many source rows were excluded."""

    records: pd.DataFrame
    excluded_count: int


def clean_column_name(name: Any) -> str:
    """Normalize a column name to lower snake case ("Date and Time" -> "date_and_time")."""
    name = re.sub(r"[^\w]+", "_", str(name).strip().lower())
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def clean_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the frame with cleaned column names."""
    return df.rename(columns={col: clean_column_name(col) for col in df.columns})


def load_records(
    source: Union[str, Path, pd.DataFrame],
    columns: Optional[Dict[str, str]] = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> RecordLoadResult:
    """
    Load notification records from a CSV path or an existing DataFrame.

    Args:
        source: CSV file path or DataFrame holding the raw records
        columns: Mapping of cleaned source column names to pipeline column names
        timestamp_format: strptime format of the timestamp column

    Returns:
        RecordLoadResult with columns record_id, timestamp, category, text
    """
    if isinstance(source, pd.DataFrame):
        raw = source.copy()
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Record source not found: {path}")
        raw = pd.read_csv(path, dtype=str, keep_default_na=True)
        logger.info(f"Read {len(raw)} rows from {path}")

    df = clean_column_names(raw)
    if columns:
        rename = {src: dst for src, dst in columns.items() if src in df.columns}
        df = df.rename(columns=rename)
        df = df.loc[:, ~df.columns.duplicated()]

    for col in REQUIRED_COLUMNS:
        if col not in df.columns:
            logger.warning(f"Record source has no '{col}' column; all records will be excluded")
            df[col] = pd.NA

    if not pd.api.types.is_datetime64_any_dtype(df["timestamp"]):
        df["timestamp"] = pd.to_datetime(
            df["timestamp"], format=timestamp_format, errors="coerce"
        )

    # Blank ids/categories count as missing; a blank text body is kept and
    # simply yields no tokens
    for col in ("record_id", "category"):
        blank = df[col].astype("string").str.strip().eq("").fillna(False).astype(bool)
        df[col] = df[col].mask(blank)

    missing = df[REQUIRED_COLUMNS].isna().any(axis=1)
    excluded_count = int(missing.sum())
    if excluded_count:
        logger.warning(f"Excluded {excluded_count} records with missing required fields")

    records = df.loc[~missing, REQUIRED_COLUMNS].reset_index(drop=True)
    logger.info(f"Loaded {len(records)} records")
    return RecordLoadResult(records=records, excluded_count=excluded_count)
