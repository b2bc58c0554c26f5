import importlib

import pytest

from student_search import config
from student_search.config import (
    HealthResponse,
    HighlightModel,
    SearchHit,
    SearchResponse,
    StudentRecord,
)


def test_student_full_name_and_status():
    s = StudentRecord(id="1", first_name="Alice", last_name="Johnson")
    assert s.full_name == "Alice Johnson"
    assert s.is_active()

    partial = StudentRecord(id="2", last_name="Khan", status="inactive")
    assert partial.full_name == "Khan"
    assert not partial.is_active()


def test_search_response_structure():
    hit = SearchHit(
        student=StudentRecord(id="1", first_name="Alice"),
        score=100,
        field="full_name",
        offset=0,
        highlights={"full_name": HighlightModel(prefix="", match="Ali", suffix="ce")},
    )
    resp = SearchResponse(query="ali", results=[hit])
    assert len(resp.results) == 1
    assert resp.results[0].highlights["full_name"].match == "Ali"


def test_health_response():
    health = HealthResponse(status="healthy")
    assert health.status == "healthy"


_ENV_VARS = ["STUDENT_SEARCH_RESULT_MAX", "STUDENT_SEARCH_DEBOUNCE_MS"]


@pytest.fixture
def reload_config(monkeypatch):
    yield lambda: importlib.reload(config)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    importlib.reload(config)


def test_defaults_without_overrides(reload_config, monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    cfg = reload_config()
    assert cfg.RESULT_MAX == 8
    assert cfg.DEBOUNCE_MS == 300
    assert cfg.DEBOUNCE_SECONDS == pytest.approx(0.3)


def test_valid_overrides_are_picked_up(reload_config, monkeypatch):
    monkeypatch.setenv("STUDENT_SEARCH_RESULT_MAX", "5")
    monkeypatch.setenv("STUDENT_SEARCH_DEBOUNCE_MS", "250.5")
    cfg = reload_config()
    assert cfg.RESULT_MAX == 5
    assert cfg.DEBOUNCE_SECONDS == pytest.approx(0.2505)


def test_result_max_at_ceiling_is_allowed(reload_config, monkeypatch):
    monkeypatch.setenv("STUDENT_SEARCH_RESULT_MAX", str(config.RESULT_LIMIT_CEILING))
    assert reload_config().RESULT_MAX == 10


@pytest.mark.parametrize("value", ["0", "-3", "11", "20", "2.5", "eight", "nan"])
def test_invalid_result_max_is_rejected(reload_config, monkeypatch, value):
    monkeypatch.setenv("STUDENT_SEARCH_RESULT_MAX", value)
    with pytest.raises(ValueError, match="STUDENT_SEARCH_RESULT_MAX"):
        reload_config()


@pytest.mark.parametrize("value", ["0", "-100", "fast", "inf"])
def test_invalid_debounce_is_rejected(reload_config, monkeypatch, value):
    monkeypatch.setenv("STUDENT_SEARCH_DEBOUNCE_MS", value)
    with pytest.raises(ValueError, match="STUDENT_SEARCH_DEBOUNCE_MS"):
        reload_config()
