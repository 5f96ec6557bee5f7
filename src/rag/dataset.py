"""Medicine dataset loading: CSV rows to de-duplicated row texts"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)


# Columns rendered into each row text, in order
MEDICINE_COLUMNS: List[str] = (
    ["id", "name"]
    + [f"substitute{i}" for i in range(5)]
    + [f"sideEffect{i}" for i in range(42)]
    + [f"use{i}" for i in range(5)]
    + ["Chemical Class", "Habit Forming", "Therapeutic Class", "Action Class"]
)


class DatasetError(ValueError):
    """Raised when the dataset cannot be read or has none of the requested columns"""


@dataclass
class MedicineRow:
    """One unique medicine row"""
    id: int  # Position in the de-duplicated row list
    text: str  # "col: value. col: value"
    name: Optional[str] = None


def row_to_text(row: dict, columns: Sequence[str]) -> str:
    """
    Render a row as "col: value" pairs joined by ". ".

    Columns that are missing or blank in this row are skipped.
    """
    parts = []
    for col in columns:
        value = row.get(col)
        if value is None:
            continue
        value = str(value).strip()
        if not value:
            continue
        parts.append(f"{col}: {value}")
    return ". ".join(parts)


def parse_csv_file(csv_path: str, columns: Sequence[str] = MEDICINE_COLUMNS) -> List[MedicineRow]:
    """
    Load the medicine CSV into unique row texts.

    Args:
        csv_path: Path to the CSV file (header row required)
        columns: Columns to include in each row text

    Returns:
        MedicineRow list in first-occurrence order, ids 0..n-1

    Raises:
        DatasetError: If the file is missing or no requested column is present
    """
    path = Path(csv_path)
    if not path.exists():
        raise DatasetError(f"Dataset file not found: {path}")

    # Everything as text; blank cells stay blank instead of becoming NaN
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    present = [c for c in columns if c in df.columns]
    if not present:
        raise DatasetError(
            f"None of the requested columns found in {path.name}. "
            f"Available: {', '.join(df.columns[:10])}"
        )
    missing = len(columns) - len(present)
    if missing:
        logger.info("%d requested columns not present in %s", missing, path.name)

    rows: List[MedicineRow] = []
    seen = set()
    for record in df[present].to_dict(orient="records"):
        text = row_to_text(record, present)
        if not text or text in seen:
            continue
        seen.add(text)
        name = (record.get("name") or "").strip() or None
        rows.append(MedicineRow(id=len(rows), text=text, name=name))

    logger.info("Parsed %d unique rows from %s (%d total)", len(rows), path.name, len(df))
    return rows
