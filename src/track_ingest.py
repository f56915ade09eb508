"""
track_ingest.py  –  Training Lab · Track Reduction
===================================================
Reduces one chronologically ordered GeoPoint sequence to an ActivitySummary:

  • distance (haversine, R = 6371 km) and positive elevation gain
  • duration (first → last point, whole minutes)
  • HR / power / cadence averages over samples that carry the channel
  • Efficiency Factor = avg power / avg HR
  • minutes per HR zone (reference max HR floored at 185 bpm)

Pure function of its input – no I/O, never raises on empty tracks.
"""

from __future__ import annotations

import logging
import math
import os
import sys
from collections import defaultdict
from datetime import timezone
from statistics import mean
from typing import Optional, Sequence

# ── Project root on sys.path for config import ────────────────────────────────
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from config.settings import (
    EARTH_RADIUS_KM, PAUSE_GAP_SECONDS,
    ZONE_LABELS, ZONE_REF_MAX_HR_MIN, ZONE_UPPER_PCTS,
)
from health_models import ActivitySummary, GeoPoint, ZoneDistribution, round_half_up

log = logging.getLogger(__name__)

EMPTY_ACTIVITY_ID = "act_empty"


# ─────────────────────────────────────────────────────────────────────────────
# GEOMETRY
# ─────────────────────────────────────────────────────────────────────────────

def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two (lat, lon) points."""
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


# ─────────────────────────────────────────────────────────────────────────────
# HR ZONES
# ─────────────────────────────────────────────────────────────────────────────

def reference_max_hr(observed_max_hr: float) -> float:
    return max(observed_max_hr, ZONE_REF_MAX_HR_MIN)


def classify_zone(hr: Optional[float], ref_max_hr: float) -> str:
    """Zone label for ``hr`` as a fraction of ``ref_max_hr``; "" without HR."""
    if not hr:
        return ""
    ratio = hr / ref_max_hr
    for upper, label in zip(ZONE_UPPER_PCTS, ZONE_LABELS):
        if ratio < upper:
            return label
    return ZONE_LABELS[-1]


def zone_seconds(points: Sequence[GeoPoint], ref_max_hr: float) -> dict[str, float]:
    """
    Seconds per zone, attributed from each point to the next one.

    Gaps longer than PAUSE_GAP_SECONDS are pauses and count nowhere;
    intervals whose first point has no (or zero) HR are skipped too.
    """
    seconds: dict[str, float] = defaultdict(float)
    for p1, p2 in zip(points, points[1:]):
        gap_s = (p2.timestamp - p1.timestamp).total_seconds()
        if gap_s > PAUSE_GAP_SECONDS:
            continue
        zone = classify_zone(p1.heart_rate, ref_max_hr)
        if zone:
            seconds[zone] += gap_s
    return seconds


# ─────────────────────────────────────────────────────────────────────────────
# SUMMARY
# ─────────────────────────────────────────────────────────────────────────────

def _present(values) -> list[float]:
    return [v for v in values if v is not None]


def _activity_id(points: Sequence[GeoPoint]) -> str:
    start = points[0].timestamp
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return f"act_{int(round(start.timestamp() * 1000))}"


def summarize_track(points: Sequence[GeoPoint]) -> ActivitySummary:
    """Reduce a point stream to an ActivitySummary (zeros for an empty track)."""
    points = tuple(points)

    distance_km = 0.0
    elevation_gain = 0.0
    for p1, p2 in zip(points, points[1:]):
        distance_km += haversine_km(p1.latitude, p1.longitude, p2.latitude, p2.longitude)
        climb = p2.elevation - p1.elevation
        if climb > 0:
            elevation_gain += climb

    duration_min = 0
    if len(points) > 1:
        duration_min = int((points[-1].timestamp - points[0].timestamp).total_seconds() // 60)

    hr_values = _present(p.heart_rate for p in points)
    power_values = _present(p.power for p in points)
    cadence_values = _present(p.cadence for p in points)

    avg_hr = round_half_up(mean(hr_values)) if hr_values else 0
    max_hr = max(hr_values) if hr_values else 0
    avg_power = round_half_up(mean(power_values)) if power_values else 0
    max_power = max(power_values) if power_values else 0
    avg_cadence = round_half_up(mean(cadence_values)) if cadence_values else 0

    efficiency = round(avg_power / avg_hr, 2) if avg_hr > 0 else 0.0

    seconds = zone_seconds(points, reference_max_hr(max_hr))
    zones = ZoneDistribution(**{z: round_half_up(seconds.get(z, 0.0) / 60.0) for z in ZONE_LABELS})

    if points:
        start = points[0].timestamp
        activity_id, act_date, timestamp = _activity_id(points), start.date().isoformat(), start
    else:
        activity_id, act_date, timestamp = EMPTY_ACTIVITY_ID, None, None

    log.info(
        "[%s] %s | duration=%4d min | %7.2f km | +%5.0f m | zones=%s",
        activity_id,
        act_date or "????-??-??",
        duration_min,
        distance_km,
        elevation_gain,
        zones.as_dict(),
    )

    return ActivitySummary(
        id=activity_id,
        date=act_date,
        timestamp=timestamp,
        duration_minutes=duration_min,
        distance_km=round(distance_km, 2),
        elevation_gain_m=round_half_up(elevation_gain),
        avg_hr=avg_hr,
        max_hr=max_hr,
        avg_power=avg_power,
        max_power=max_power,
        avg_cadence=avg_cadence,
        efficiency=efficiency,
        zones=zones,
        points=points,
    )
