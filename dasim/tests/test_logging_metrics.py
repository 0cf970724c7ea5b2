from __future__ import annotations

import io
import json
import logging

import pytest

from dasim import logging as slog
from dasim.errors import CapacityError, ConfigError, DasimError, SearchExhausted
from dasim.metrics import SimMetrics, get_metrics

# ----------------------------- logging --------------------------------------


@pytest.fixture()
def json_stream():
    stream = io.StringIO()
    slog.configure(json=True, level="DEBUG", stream=stream)
    yield stream
    logger = logging.getLogger("dasim")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    slog.clear_context()


def _lines(stream: io.StringIO):
    return [json.loads(x) for x in stream.getvalue().splitlines() if x.strip()]


def test_json_formatter_carries_context_and_extras(json_stream):
    log = slog.get_logger("dasim.test")
    with slog.run_scope("run123"):
        slog.bind(size=16)
        log.info("sweep point", extra={"lights": 12, "rate": 0.5})
    out = _lines(json_stream)
    assert len(out) == 1
    rec = out[0]
    assert rec["msg"] == "sweep point"
    assert rec["level"] == "INFO"
    assert rec["logger"] == "dasim.test"
    assert rec["run_id"] == "run123"
    assert rec["size"] == 16
    assert rec["lights"] == 12
    assert rec["rate"] == 0.5


def test_run_scope_restores_context(json_stream):
    slog.bind(component="outer")
    with slog.run_scope() as rid:
        assert slog.context()["run_id"] == rid
        slog.bind(size=4)
    ctx = slog.context()
    assert "run_id" not in ctx and "size" not in ctx
    assert ctx["component"] == "outer"
    slog.unbind("component")
    assert slog.context() == {}


def test_level_filtering(json_stream):
    logger = logging.getLogger("dasim")
    logger.setLevel(logging.WARNING)
    for h in logger.handlers:
        h.setLevel(logging.WARNING)
    log = slog.get_logger("dasim.test")
    log.info("hidden")
    log.warning("shown")
    assert [r["msg"] for r in _lines(json_stream)] == ["shown"]


def test_text_formatter_one_line():
    stream = io.StringIO()
    fmt = slog.TextFormatter(stream)
    record = logging.LogRecord("dasim.x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.lights = 7
    with slog.run_scope("abc"):
        line = fmt.format(record)
    assert "| INFO  | dasim.x |" in line
    assert "run_id=abc" in line
    assert "lights=7" in line
    assert line.endswith("| hello world")


def test_exceptions_are_rendered(json_stream):
    log = slog.get_logger("dasim.test")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        log.exception("failed")
    rec = _lines(json_stream)[0]
    assert "RuntimeError: boom" in rec["err"]


# ----------------------------- errors ---------------------------------------


def test_error_hierarchy_and_exit_codes():
    assert issubclass(ConfigError, DasimError) and issubclass(ConfigError, ValueError)
    assert issubclass(CapacityError, ValueError)
    assert ConfigError().exit_code == 2
    assert SearchExhausted().exit_code == 3
    e = CapacityError("too many", data={"cells": 16})
    assert e.to_dict() == {
        "code": "sample_capacity_exceeded",
        "message": "too many",
        "data": {"cells": 16},
    }
    assert DasimError("x", code="custom").code == "custom"


# ----------------------------- metrics --------------------------------------


def test_trial_timer_counts_outcomes():
    m = SimMetrics()
    with m.time_trial() as t:
        t.outcome(True)
    with m.time_trial() as t:
        t.outcome(False)
    with m.time_trial():
        pass
    assert m.sample("dasim_trials_total", outcome="recovered") == 1
    assert m.sample("dasim_trials_total", outcome="failed") == 2
    assert m.sample("dasim_trial_duration_seconds_count") == 3


def test_trial_timer_counts_on_error():
    m = SimMetrics()
    with pytest.raises(RuntimeError):
        with m.time_trial():
            raise RuntimeError("x")
    assert m.sample("dasim_trials_total", outcome="failed") == 1


def test_note_point_and_render():
    m = SimMetrics()
    m.note_point(size=16, lights=12, probability=0.75)
    m.note_trials(successes=3, failures=1)
    assert m.sample("dasim_success_rate", size="16") == 0.75
    assert m.sample("dasim_lights", size="16") == 12
    assert m.sample("dasim_trials_total", outcome="recovered") == 3
    text = m.render().decode()
    assert "dasim_points_total 1.0" in text


def test_note_trials_spreads_batch_time():
    m = SimMetrics()
    m.note_trials(successes=3, failures=1, seconds=0.4)
    assert m.sample("dasim_trial_duration_seconds_count") == 4
    assert m.sample("dasim_trial_duration_seconds_sum") == pytest.approx(0.4)
    m.note_trials(successes=0, failures=0, seconds=1.0)
    assert m.sample("dasim_trial_duration_seconds_count") == 4


def test_separate_registries_do_not_collide():
    a, b = SimMetrics(), SimMetrics()
    a.note_trials(successes=2, failures=0)
    assert b.sample("dasim_trials_total", outcome="recovered") is None
    assert get_metrics() is get_metrics()
