from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger

from .config import ROSTER_COLUMN_CANDIDATES, STATUS_ACTIVE, StudentRecord
from .errors import RosterFormatError
from .normalize import as_text


# ---------------------------
# Column detection / standardization
# ---------------------------

def _standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename roster columns to the internal schema:
    id, first_name, last_name, admission_number, class_name, branch_id, status
    """
    col_map: Dict[str, str] = {}
    lower_to_original = {str(c).lower(): c for c in df.columns}

    for canon, candidates in ROSTER_COLUMN_CANDIDATES.items():
        for candidate in candidates:
            # Try exact, then case-insensitive
            if candidate in df.columns:
                col_map[candidate] = canon
                break
            cand_lower = candidate.lower()
            if cand_lower in lower_to_original:
                col_map[lower_to_original[cand_lower]] = canon
                break

    logger.debug("Standardizing roster columns with map: {}", col_map)
    df_std = df.rename(columns=col_map)

    searchable = ["first_name", "last_name", "admission_number", "class_name"]
    missing = [c for c in searchable if c not in df_std.columns]
    if missing:
        logger.warning("Roster is missing searchable columns: {}", missing)

    return df_std


def _clean_cell(value) -> Optional[str]:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    text = as_text(value).strip()
    return text or None


def normalize_roster_df(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize a raw roster frame.

    - column names mapped onto the internal schema
    - blank / NaN cells become None
    - ``status`` defaults to ACTIVE, ``id`` to the row position
    - rows without any searchable text are dropped
    """
    df = _standardize_columns(df.copy())

    for col in ROSTER_COLUMN_CANDIDATES:
        if col not in df.columns:
            df[col] = None
        # object dtype keeps None as None instead of NaN
        df[col] = pd.Series([_clean_cell(v) for v in df[col]], index=df.index, dtype=object)

    df["status"] = pd.Series(
        [(s or STATUS_ACTIVE).upper() for s in df["status"]], index=df.index, dtype=object
    )
    missing_ids = df["id"].isna()
    if missing_ids.any():
        df.loc[missing_ids, "id"] = [str(i) for i in df.index[missing_ids]]

    text_cols = ["first_name", "last_name", "admission_number", "class_name"]
    has_text = df[text_cols].notna().any(axis=1)
    dropped = int((~has_text).sum())
    if dropped:
        logger.warning("Dropping {} roster row(s) with no searchable text", dropped)
    df = df[has_text]

    return df[list(ROSTER_COLUMN_CANDIDATES)].reset_index(drop=True)


def records_from_df(df: pd.DataFrame) -> List[StudentRecord]:
    rows = df.to_dict(orient="records")
    return [
        StudentRecord(**{k: (None if pd.isna(v) else v) for k, v in row.items()})
        for row in rows
    ]


# ---------------------------
# IO helpers
# ---------------------------

def _read_any(path: Path) -> pd.DataFrame:
    ext = path.suffix.lower()
    try:
        if ext == ".parquet":
            return pd.read_parquet(path)
        if ext == ".jsonl":
            return pd.read_json(path, lines=True, dtype=False)
        if ext == ".json":
            return pd.read_json(path, orient="records", dtype=False)
    except ValueError as e:
        raise RosterFormatError(f"Could not parse roster {path}: {e}") from e
    raise RosterFormatError(
        f"Unsupported roster format '{ext}' for {path}; expected .json, .jsonl or .parquet"
    )


def load_roster(path: Path) -> List[StudentRecord]:
    """
    Load and normalize a roster snapshot into ``StudentRecord`` objects.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Roster not found: {path}")

    logger.info("Loading roster from {}", path)
    df = normalize_roster_df(_read_any(path))
    if df.empty:
        raise RosterFormatError(f"Roster {path} has no usable rows")
    students = records_from_df(df)
    logger.info("Loaded roster with {} students", len(students))
    return students


def write_roster_snapshot(students: Iterable[StudentRecord], output_path: Path) -> Path:
    """Write students to a Parquet snapshot that ``load_roster`` can read back."""
    df = pd.DataFrame([s.model_dump() for s in students], columns=list(ROSTER_COLUMN_CANDIDATES))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(output_path, index=False)
    logger.info("Roster snapshot written with {} rows to {}", len(df), output_path)
    return output_path


# ---------------------------
# Filtering
# ---------------------------

def filter_roster(
    students: Iterable[StudentRecord],
    branch_id: Optional[str] = None,
    exclude_id: Optional[str] = None,
    active_only: bool = True,
) -> List[StudentRecord]:
    """
    Pre-filter the candidate pool: active students only, optionally one
    branch, optionally without one student (e.g. when picking a sibling).
    """
    out: List[StudentRecord] = []
    for s in students:
        if active_only and not s.is_active():
            continue
        if branch_id is not None and s.branch_id != branch_id:
            continue
        if exclude_id is not None and s.id == exclude_id:
            continue
        out.append(s)
    return out
