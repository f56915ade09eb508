"""
health_models.py – Training Lab · Record types
===============================================
Immutable records passed between the ingest, load and correlation layers.

* GeoPoint          – one sample of a recorded track
* ZoneDistribution  – minutes spent in the five HR zones
* ActivitySummary   – one reduced recording
* DailyLog          – sparse per-day recovery metrics
* FitnessMetric     – one day of the CTL / ATL / TSB timeline
* UserProfile       – read-only athlete profile
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    """Single track sample. Sensor channels are None when not recorded."""
    timestamp: datetime
    latitude: float
    longitude: float
    elevation: float
    power: Optional[float] = None
    heart_rate: Optional[float] = None
    cadence: Optional[float] = None


@dataclass(frozen=True)
class ZoneDistribution:
    """Whole minutes per heart-rate zone."""
    z1: int = 0
    z2: int = 0
    z3: int = 0
    z4: int = 0
    z5: int = 0

    @property
    def total(self) -> int:
        return self.z1 + self.z2 + self.z3 + self.z4 + self.z5

    def as_dict(self) -> dict[str, int]:
        return {"z1": self.z1, "z2": self.z2, "z3": self.z3, "z4": self.z4, "z5": self.z5}


@dataclass(frozen=True)
class ActivitySummary:
    id: str
    date: Optional[str]             # ISO calendar date of the start
    timestamp: Optional[datetime]   # start time; None for an empty track
    duration_minutes: int
    distance_km: float
    elevation_gain_m: float
    avg_hr: float
    max_hr: float
    avg_power: float
    max_power: float
    avg_cadence: float
    efficiency: float
    zones: ZoneDistribution = field(default_factory=ZoneDistribution)
    points: tuple[GeoPoint, ...] = ()


@dataclass(frozen=True)
class DailyLog:
    """External recovery metrics for one calendar day."""
    date: str
    timestamp: datetime
    sleep_score: Optional[float] = None
    hrv: Optional[float] = None           # ms
    resting_hr: Optional[float] = None    # bpm
    spo2: Optional[float] = None          # %
    stress: Optional[float] = None        # 0-100
    steps: Optional[int] = None
    calories: Optional[int] = None
    weight: Optional[float] = None        # kg
    notes: Optional[str] = None


@dataclass(frozen=True)
class FitnessMetric:
    date: str
    timestamp: datetime
    daily_load: int
    ctl: int
    atl: int
    tsb: int


@dataclass(frozen=True)
class UserProfile:
    birthdate: Optional[str] = None   # YYYY-MM-DD
    name: str = ""
    main_goal: str = ""
    height: Optional[float] = None    # cm
    weight: Optional[float] = None    # kg


def round_half_up(value: float) -> int:
    """Nearest integer with .5 going up (round() would go to the even neighbour)."""
    return math.floor(value + 0.5)


def naive_utc(ts: datetime) -> datetime:
    """Aware timestamps converted to UTC wall time; naive ones are kept as they are."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def calculate_age(birthdate: str, as_of: date) -> int:
    """Whole years between ``birthdate`` and ``as_of``."""
    born = date.fromisoformat(birthdate)
    age = as_of.year - born.year
    if (as_of.month, as_of.day) < (born.month, born.day):
        age -= 1
    return age
