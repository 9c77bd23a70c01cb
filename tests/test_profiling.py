"""Tests for stage timing."""

import logging

from crtfilter.profiling import timed_stage


def test_timed_stage_logs_duration(caplog):
    """Elapsed time is logged at DEBUG level."""
    with caplog.at_level(logging.DEBUG, logger="crtfilter.profiling"):
        with timed_stage("demo"):
            pass
    assert "Stage demo:" in caplog.text
    assert "ms" in caplog.text


def test_timed_stage_custom_logger(caplog):
    """A caller-supplied logger receives the timing."""
    stage_logger = logging.getLogger("crtfilter.test_stage")
    with caplog.at_level(logging.DEBUG, logger="crtfilter.test_stage"):
        with timed_stage("custom", stage_logger):
            pass
    assert any(
        r.name == "crtfilter.test_stage" and "Stage custom:" in r.getMessage()
        for r in caplog.records
    )
