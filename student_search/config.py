from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
ROSTER_SNAPSHOT_PATH = DATA_DIR / "roster_snapshot.parquet"

# Roster file served by the API; unset means "inject at runtime".
ROSTER_ENV_VAR = "STUDENT_SEARCH_ROSTER"


# ---------------------------
# Scoring
# ---------------------------

EXACT_MATCH_BASE = 100    # substring hit at offset 0
SUBSEQUENCE_WEIGHT = 10   # per consumed character in the fallback
NO_MATCH = -1             # sentinel, never included in results


# ---------------------------
# Result size policy & debounce
# ---------------------------

def _env_number(name: str, default: float, minimum: float, maximum: Optional[float] = None) -> float:
    """
    Read a numeric override from the environment; out-of-range or
    unparsable values fail at import with the variable named.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value < minimum or (maximum is not None and value > maximum):
        upper = f" and <= {maximum}" if maximum is not None else ""
        raise ValueError(f"{name} must be >= {minimum}{upper}, got {raw!r}")
    return value


RESULT_LIMIT_CEILING = 10  # largest limit a caller may request over HTTP

DEFAULT_RESULT_MAX = 8
_result_max = _env_number("STUDENT_SEARCH_RESULT_MAX", DEFAULT_RESULT_MAX, 1, RESULT_LIMIT_CEILING)
if _result_max != int(_result_max):
    raise ValueError(f"STUDENT_SEARCH_RESULT_MAX must be a whole number, got {_result_max}")
RESULT_MAX = int(_result_max)

DEFAULT_DEBOUNCE_MS = 300
DEBOUNCE_MS = _env_number("STUDENT_SEARCH_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS, 1)
DEBOUNCE_SECONDS = DEBOUNCE_MS / 1000.0

MAX_QUERY_CHARS = 200  # input size cap


# ---------------------------
# Roster schema
# ---------------------------

STATUS_ACTIVE = "ACTIVE"

# Searchable fields in display order; earlier fields win score ties.
SEARCH_FIELDS: List[str] = ["full_name", "admission_number", "class_name"]

# Column spellings seen in roster exports.
ROSTER_COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "id": ["id", "student_id", "studentId", "Student ID", "uuid"],
    "first_name": ["first_name", "firstName", "First Name", "fname", "Given Name"],
    "last_name": ["last_name", "lastName", "Last Name", "lname", "Surname"],
    "admission_number": [
        "admission_number",
        "admissionNumber",
        "Admission Number",
        "Admission No",
        "admission_no",
        "adm_no",
    ],
    "class_name": ["class_name", "className", "class", "Class", "Grade"],
    "branch_id": ["branch_id", "branchId", "Branch", "branch"],
    "status": ["status", "Status"],
}


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class StudentRecord(BaseModel):
    """
    A student as seen by the lookup box.

    Only the text fields listed in ``SEARCH_FIELDS`` are matched against;
    the rest is carried through so callers can render or filter on it.
    """

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    admission_number: Optional[str] = None
    class_name: Optional[str] = None
    branch_id: Optional[str] = None
    status: str = STATUS_ACTIVE

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts)

    def is_active(self) -> bool:
        return (self.status or "").upper() == STATUS_ACTIVE


class HighlightModel(BaseModel):
    """Wire form of a highlighted field; ``match`` is empty when nothing is marked."""

    prefix: str
    match: str = ""
    suffix: str = ""


class SearchHit(BaseModel):
    """
    One ranked result for POST /search.
    """

    student: StudentRecord
    score: int
    field: str
    offset: Optional[int] = None
    highlights: Dict[str, HighlightModel] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """
    Response body for POST /search.
    """

    query: str
    results: List[SearchHit]


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
