"""
fit_points.py  –  Training Lab · FIT → GeoPoint adapter
========================================================
Thin ingest source: reads the 'record' messages of a .fit file and emits
GeoPoint samples for track_ingest.summarize_track.

Only what physically lies in the FIT records is emitted. Records without
a timestamp or a GPS fix are skipped (indoor sessions yield an empty list).
"""

from __future__ import annotations

import glob
import logging
import os
from datetime import datetime
from typing import Optional

from fitparse import FitFile

from health_models import GeoPoint

log = logging.getLogger(__name__)

SEMICIRCLES_TO_DEG = 180.0 / (2 ** 31)


def _safe_float(v) -> Optional[float]:
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _to_degrees(semicircles) -> Optional[float]:
    value = _safe_float(semicircles)
    if value is None:
        return None
    # FIT semicircles are signed int32; some parsers surface unsigned values.
    if value > 2 ** 31:
        value -= 2 ** 32
    return value * SEMICIRCLES_TO_DEG


def record_to_point(values: dict) -> Optional[GeoPoint]:
    """Convert one FIT record dict into a GeoPoint (None if unusable)."""
    ts = values.get("timestamp")
    if not isinstance(ts, datetime):
        return None
    lat = _to_degrees(values.get("position_lat"))
    lon = _to_degrees(values.get("position_long"))
    if lat is None or lon is None:
        return None

    altitude = _safe_float(values.get("enhanced_altitude"))
    if altitude is None:
        altitude = _safe_float(values.get("altitude"))

    return GeoPoint(
        timestamp=ts,
        latitude=lat,
        longitude=lon,
        elevation=altitude if altitude is not None else 0.0,
        power=_safe_float(values.get("power")),
        heart_rate=_safe_float(values.get("heart_rate")),
        cadence=_safe_float(values.get("cadence")),
    )


def read_fit_points(file_path: str) -> Optional[list[GeoPoint]]:
    """
    Extract GeoPoints from a FIT file, ordered by timestamp.
    Returns None if the file cannot be opened or decoded.
    """
    try:
        fitfile = FitFile(file_path)
        raw_records = [m.get_values() for m in fitfile.get_messages("record")]
    except Exception as exc:
        log.error("Cannot read %s: %s", file_path, exc)
        return None

    points = [p for p in (record_to_point(r) for r in raw_records) if p is not None]
    skipped = len(raw_records) - len(points)
    if skipped:
        log.debug("[%s] skipped %d records without timestamp/position",
                  os.path.basename(file_path), skipped)
    points.sort(key=lambda p: p.timestamp)
    return points


def find_fit_files(folder: str) -> list[str]:
    return sorted(glob.glob(os.path.join(folder, "*.fit")))
