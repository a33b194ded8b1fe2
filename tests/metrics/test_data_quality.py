"""Tests for data quality scoring."""

from conftest import AS_OF_NAIVE, make_run, steady_history

from cadence.enums import DataQualityTier
from cadence.metrics.data_quality import assess_data_quality


def test_no_activities_is_insufficient():
    """No activities scores zero."""
    quality = assess_data_quality([], AS_OF_NAIVE, daily_record_count=3, skipped_records=2)
    assert quality.score == 0.0
    assert quality.tier == DataQualityTier.INSUFFICIENT
    assert quality.daily_record_count == 3
    assert quality.skipped_records == 2
    assert quality.days_since_last_activity is None


def test_rich_recent_history_is_high():
    """Six weeks of regular, fresh running is high quality."""
    quality = assess_data_quality(steady_history(weeks=6), AS_OF_NAIVE)
    assert quality.tier == DataQualityTier.HIGH
    assert quality.score > 0.9
    assert quality.activity_count == 24
    assert quality.days_since_last_activity == 0


def test_single_stale_activity_is_insufficient():
    """One run three weeks ago is not enough to plan from."""
    quality = assess_data_quality([make_run(20)], AS_OF_NAIVE)
    assert quality.tier == DataQualityTier.INSUFFICIENT
    assert quality.days_since_last_activity == 20


def test_short_history_is_low():
    """Two weeks of runs lands in the low tier."""
    runs = [make_run(day) for day in (0, 3, 6, 9, 12)]
    quality = assess_data_quality(runs, AS_OF_NAIVE)
    assert quality.tier == DataQualityTier.LOW
