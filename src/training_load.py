"""
training_load.py – Training Lab · Performance Management Chart
===============================================================
Banister impulse-response load model.

  TRIMP  = t_min × HRR × k1 × e^(k2 × HRR)     per session, summed per day
  CTL    = 42-day exponentially weighted daily load   ("Fitness")
  ATL    = 7-day exponentially weighted daily load    ("Fatigue")
  TSB    = CTL − ATL                                  ("Form")

The timeline runs from the earliest session through ``as_of`` with zero
load on rest days. "Today" is always an explicit argument.
"""

from __future__ import annotations

import enum
import logging
import math
import os
import sys
from datetime import date, datetime
from typing import Iterable, Optional, Union

# ── Project root on sys.path for config import ────────────────────────────────
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import pandas as pd

from config.settings import (
    AGE_MAX_HR_BASE, ATL_DAYS, CTL_DAYS, DEFAULT_AGE, RESTING_HR,
    TRIMP_K1, TRIMP_K2,
    LOW_VOLUME_CTL, TSB_RECOVERY, TSB_PERFORMANCE_READY,
    TSB_MAINTENANCE, TSB_HIGH_STRAIN,
)
from health_models import ActivitySummary, FitnessMetric, UserProfile, calculate_age, round_half_up

log = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _as_day(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


# ═══════════════════════════════════════════════════════════════════════════════
# TRIMP (Banister)
# ═══════════════════════════════════════════════════════════════════════════════
def athlete_max_hr(profile: Optional[UserProfile], as_of: DateLike) -> int:
    """Age-predicted max HR (220 − age); age 30 without a birthdate."""
    age = DEFAULT_AGE
    if profile is not None and profile.birthdate:
        age = calculate_age(profile.birthdate, _as_day(as_of))
    return AGE_MAX_HR_BASE - age


def trimp_for(avg_hr: float, duration_min: float, max_hr: int,
              rhr: int = RESTING_HR) -> int:
    """
    TRIMP = t_min × HR_ratio × k1 × e^(k2 × HR_ratio)
    HR_ratio = (HR − RHR) / (MaxHR − RHR), floored at 0.

    Zero when HR or duration is missing, or when MaxHR ≤ RHR
    (extreme ages) leaves no heart-rate reserve to scale by.
    """
    if not avg_hr or not duration_min:
        return 0
    hrr = max_hr - rhr
    if hrr <= 0:
        return 0
    ratio = max(0.0, (avg_hr - rhr) / hrr)
    return round_half_up(duration_min * ratio * TRIMP_K1 * math.exp(TRIMP_K2 * ratio))


def calculate_trimp(activity: ActivitySummary, profile: Optional[UserProfile] = None,
                    as_of: Optional[DateLike] = None) -> int:
    if as_of is None:
        as_of = activity.timestamp or date.today()
    return trimp_for(activity.avg_hr, activity.duration_minutes, athlete_max_hr(profile, as_of))


# ═══════════════════════════════════════════════════════════════════════════════
# DAILY LOAD AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════════
def build_daily_load(
    history: Iterable[ActivitySummary],
    as_of: DateLike,
    profile: Optional[UserProfile] = None,
) -> pd.Series:
    """
    Sum TRIMP per calendar day, from the earliest session through ``as_of``,
    filling days without sessions with 0.

    Returns a Series indexed by a daily DatetimeIndex (empty if no sessions
    fall on or before ``as_of``).
    """
    end = pd.Timestamp(_as_day(as_of))
    max_hr = athlete_max_hr(profile, as_of)

    rows = [
        (pd.Timestamp(a.timestamp.date()), trimp_for(a.avg_hr, a.duration_minutes, max_hr))
        for a in history
        if a.timestamp is not None
    ]
    if not rows:
        return pd.Series(dtype="int64")

    sessions = pd.DataFrame(rows, columns=["date", "trimp"])
    daily = sessions.groupby("date")["trimp"].sum().sort_index()

    start = daily.index.min()
    if start > end:
        return pd.Series(dtype="int64")

    full_range = pd.date_range(start, end, freq="D")
    daily = daily.reindex(full_range, fill_value=0).astype("int64")
    daily.index.name = "date"
    return daily


# ═══════════════════════════════════════════════════════════════════════════════
# CTL / ATL / TSB
# ═══════════════════════════════════════════════════════════════════════════════
def ema_decay(series: pd.Series, days: int) -> pd.Series:
    """Exponentially weighted load with decay factor e^(−1/days), seeded at 0.

    ewm(adjust=False) starts from the first observation, so a zero day is
    prepended and dropped again to make day 0 equal load × (1 − decay).
    """
    decay = math.exp(-1.0 / days)
    seeded = pd.concat([pd.Series([0.0]), series.astype(float)], ignore_index=True)
    smoothed = seeded.ewm(alpha=1.0 - decay, adjust=False).mean().iloc[1:]
    smoothed.index = series.index
    return smoothed


def compute_fitness_timeline(
    history: Iterable[ActivitySummary],
    as_of: DateLike,
    profile: Optional[UserProfile] = None,
) -> list[FitnessMetric]:
    """One FitnessMetric per day; CTL/ATL rounded only on output."""
    daily = build_daily_load(history, as_of, profile)
    if daily.empty:
        return []

    ctl = ema_decay(daily, CTL_DAYS)
    atl = ema_decay(daily, ATL_DAYS)

    timeline: list[FitnessMetric] = []
    for day, load, ctl_val, atl_val in zip(daily.index, daily.values, ctl.values, atl.values):
        ctl_r = round_half_up(ctl_val)
        atl_r = round_half_up(atl_val)
        timeline.append(FitnessMetric(
            date=day.date().isoformat(),
            timestamp=day.to_pydatetime(),
            daily_load=int(load),
            ctl=ctl_r,
            atl=atl_r,
            tsb=ctl_r - atl_r,
        ))

    log.debug("Fitness timeline: %d days (%s → %s), CTL=%d ATL=%d TSB=%d",
              len(timeline), timeline[0].date, timeline[-1].date,
              timeline[-1].ctl, timeline[-1].atl, timeline[-1].tsb)
    return timeline


# ═══════════════════════════════════════════════════════════════════════════════
# FORM STATUS
# ═══════════════════════════════════════════════════════════════════════════════
class FormStatus(enum.Enum):
    LOW_VOLUME = ("LOW VOLUME / DETRAINING",
                  "Training load is very low. Consistency is key to building a base.")
    RECOVERY = ("RECOVERY / TAPERING",
                "Very rested. Good for race tapering, but fitness drops if prolonged.")
    PERFORMANCE_READY = ("PERFORMANCE READY",
                         "Fresh and fit. Sweet spot for a peak performance.")
    MAINTENANCE = ("MAINTENANCE / PRODUCTIVE",
                   "Balanced load. You are absorbing training well.")
    HIGH_STRAIN = ("HIGH STRAIN (BUILD)",
                   "Heavy training block. Fitness is building, but fatigue is high.")
    OVERLOAD = ("OVERLOAD WARNING",
                "Excessive fatigue. High risk of injury/burnout. Take a rest week.")

    def __init__(self, label: str, advice: str) -> None:
        self.label = label
        self.advice = advice


def classify_form(ctl: float, tsb: float) -> FormStatus:
    # With almost no base the athlete is "fresh" only because nothing is done.
    if ctl < LOW_VOLUME_CTL:
        return FormStatus.LOW_VOLUME
    if tsb > TSB_RECOVERY:
        return FormStatus.RECOVERY
    elif tsb > TSB_PERFORMANCE_READY:
        return FormStatus.PERFORMANCE_READY
    elif tsb >= TSB_MAINTENANCE:
        return FormStatus.MAINTENANCE
    elif tsb >= TSB_HIGH_STRAIN:
        return FormStatus.HIGH_STRAIN
    else:
        return FormStatus.OVERLOAD


def current_form(timeline: list[FitnessMetric]) -> Optional[FormStatus]:
    if not timeline:
        return None
    latest = timeline[-1]
    return classify_form(latest.ctl, latest.tsb)
