from __future__ import annotations

"""
FastAPI application for student lookup.

- Candidates are the roster loaded at startup (``STUDENT_SEARCH_ROSTER``)
  or injected with ``set_roster``
- Pre-filters mirror the lookup box: active students, optional branch,
  optional excluded student
- Results are ranked by ``ranked_search.search`` and carry highlight parts
  for every searchable field
"""

import os
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from .config import (
    MAX_QUERY_CHARS,
    RESULT_LIMIT_CEILING,
    RESULT_MAX,
    ROSTER_ENV_VAR,
    HealthResponse,
    HighlightModel,
    SearchHit,
    SearchResponse,
    StudentRecord,
)
from .errors import RosterFormatError
from .highlight import highlight_or_plain
from .normalize import clean_query
from .ranked_search import DEFAULT_FIELDS, search
from .roster import filter_roster, load_roster


# -----------------------
# Roster holder
# -----------------------

_roster: Optional[List[StudentRecord]] = None


def set_roster(students: Optional[List[StudentRecord]]) -> None:
    global _roster
    _roster = list(students) if students is not None else None
    logger.info("Roster set with {} students", len(_roster or []))


def get_roster() -> Optional[List[StudentRecord]]:
    return _roster


# -----------------------
# Pipeline
# -----------------------

def run_search(
    query: str,
    students: List[StudentRecord],
    limit: int = RESULT_MAX,
    branch_id: Optional[str] = None,
    exclude_student_id: Optional[str] = None,
) -> SearchResponse:
    committed = clean_query(query)
    pool = filter_roster(students, branch_id=branch_id, exclude_id=exclude_student_id)
    matches = search(committed, pool, DEFAULT_FIELDS, limit)

    hits: List[SearchHit] = []
    for m in matches:
        highlights = {}
        for accessor in DEFAULT_FIELDS:
            parts = highlight_or_plain(accessor.read(m.candidate), committed)
            highlights[accessor.name] = HighlightModel(
                prefix=parts.prefix, match=parts.match, suffix=parts.suffix
            )
        hits.append(
            SearchHit(
                student=m.candidate,
                score=m.score,
                field=m.field,
                offset=m.offset,
                highlights=highlights,
            )
        )
    return SearchResponse(query=committed, results=hits)


# -----------------------
# FastAPI app + startup
# -----------------------

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    roster_path = os.getenv(ROSTER_ENV_VAR)
    if not roster_path:
        logger.info("{} not set; waiting for a roster to be injected", ROSTER_ENV_VAR)
        return
    try:
        set_roster(load_roster(Path(roster_path)))
    except (FileNotFoundError, RosterFormatError) as e:
        logger.warning("Roster load failed: {}", e)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=MAX_QUERY_CHARS)
    limit: int = Field(RESULT_MAX, ge=1, le=RESULT_LIMIT_CEILING)
    branch_id: Optional[str] = None
    exclude_student_id: Optional[str] = None


@app.post("/search", response_model=SearchResponse)
def search_students(req: SearchRequest) -> SearchResponse:
    if not req.query.strip():
        raise HTTPException(status_code=422, detail="Query must be non-empty")
    if _roster is None:
        raise HTTPException(status_code=503, detail="Roster not loaded")
    return run_search(
        req.query,
        _roster,
        limit=req.limit,
        branch_id=req.branch_id,
        exclude_student_id=req.exclude_student_id,
    )
