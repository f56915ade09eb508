from __future__ import annotations

from datetime import datetime
from typing import Optional

import pytest

from health_models import ActivitySummary, DailyLog, GeoPoint


@pytest.fixture
def make_activity():
    """Builds an ActivitySummary with zeroed channels unless overridden."""
    def _mk(when: Optional[datetime], **fields) -> ActivitySummary:
        values = dict(
            id=f"act_{int(when.timestamp() * 1000)}" if when is not None else "act_empty",
            date=when.date().isoformat() if when is not None else None,
            timestamp=when,
            duration_minutes=0,
            distance_km=0.0,
            elevation_gain_m=0.0,
            avg_hr=0,
            max_hr=0,
            avg_power=0,
            max_power=0,
            avg_cadence=0,
            efficiency=0.0,
        )
        values.update(fields)
        return ActivitySummary(**values)
    return _mk


@pytest.fixture
def make_log():
    def _mk(timestamp: datetime, **metrics) -> DailyLog:
        return DailyLog(date=timestamp.date().isoformat(), timestamp=timestamp, **metrics)
    return _mk


@pytest.fixture
def make_point():
    def _mk(timestamp: datetime, lat: float = 0.0, lon: float = 0.0, ele: float = 0.0, **channels) -> GeoPoint:
        return GeoPoint(timestamp=timestamp, latitude=lat, longitude=lon, elevation=ele, **channels)
    return _mk
