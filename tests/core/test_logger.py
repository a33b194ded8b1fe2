"""Tests for logger setup.

These tests verify that:
- Records bound to a plan week show the week and its state
- Other bound fields trail the message as key=value pairs
- Plain records carry no week column
"""

import sys

import pytest
from loguru import logger

from cadence.core.logger import format_record, setup_logger


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "logs" / "cadence.log"
    setup_logger(level="DEBUG", log_file=str(path))
    yield path
    logger.remove()
    logger.add(sys.stderr)


def test_week_fields_written_to_file(log_file):
    """A week_state record shows the week number, state and extra fields."""
    logger.bind(week=3, week_state="proposed", attempt=1).debug("week_state")
    logger.remove()

    line = [row for row in log_file.read_text().splitlines() if row.endswith("attempt=1")][0]
    assert "week 3 proposed - week_state" in line
    assert "<magenta>" not in line


def test_plain_record_has_no_week_column(log_file):
    """Records without a bound week keep the plain layout."""
    logger.info("plan ready")
    logger.remove()

    line = [row for row in log_file.read_text().splitlines() if "plan ready" in row][0]
    assert " | week " not in line
    assert line.endswith("- plan ready")


def test_format_record_uses_placeholders():
    """Bound values are referenced, not inlined, so braces cannot break formatting."""
    record = {"extra": {"week": 2, "rule_id": "{sg-01}"}}
    fmt = format_record(record)

    assert "{extra[week]}" in fmt
    assert "{extra[context]}" in fmt
    assert record["extra"]["context"] == "rule_id={sg-01}"
    assert "week_state" not in fmt
