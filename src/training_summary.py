"""
training_summary.py – Training Lab · Volume & Milestones
=========================================================
A. Period stats  – volume of the last week / month / year vs the period before
B. Milestones    – cumulative distance and climbing against fixed ladders,
                   XP (1 km = 10 XP, 100 m climbing = 20 XP) and rank
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from health_models import ActivitySummary, DailyLog, naive_utc

# ── Milestone ladders ────────────────────────────────────────────────────────
DISTANCE_MILESTONES = [
    ("Marathon", 42),
    ("London to Paris", 460),
    ("Italy Top-to-Bottom", 1200),
    ("Route 66", 3940),
    ("Great Wall of China", 21196),
    ("Earth Equator", 40075),
    ("Distance to Moon", 384400),
]

ELEVATION_MILESTONES = [
    ("Burj Khalifa", 828),
    ("Mount Olympus", 2917),
    ("Mont Blanc", 4807),
    ("Kilimanjaro", 5895),
    ("Mount Everest", 8848),
    ("Mariana Trench Depth", 11034),
    ("Olympus Mons (Mars)", 21229),
    ("Space (Karman Line)", 100000),
]

LEVELS = [
    ("ROOKIE", 0),
    ("AMATEUR", 1000),
    ("SEMI-PRO", 5000),
    ("PRO", 15000),
    ("ELITE", 50000),
    ("LEGEND", 150000),
    ("GOAT", 500000),
]

XP_PER_KM = 10
XP_PER_100M_CLIMB = 20


# ═══════════════════════════════════════════════════════════════════════════════
# A. PERIOD STATS
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class PeriodStats:
    activities: int
    distance_km: float
    elevation_m: float
    steps: int
    calories: int
    avg_spo2: float     # over logs with SpO2 > 0; 0 when none


@dataclass(frozen=True)
class PeriodComparison:
    current: PeriodStats
    previous: Optional[PeriodStats]

    def change_pct(self, field: str) -> Optional[float]:
        if self.previous is None:
            return None
        return percent_change(getattr(self.current, field), getattr(self.previous, field))


def percent_change(current: float, previous: float) -> Optional[float]:
    if not previous:
        return None
    return (current - previous) / previous * 100


def period_stats(
    activities: Iterable[ActivitySummary],
    logs: Iterable[DailyLog],
    as_of: datetime,
    start_days_ago: int,
    end_days_ago: int,
) -> PeriodStats:
    """Totals for records with as_of − end_days_ago < timestamp ≤ as_of − start_days_ago."""
    as_of = naive_utc(as_of)
    upper = as_of - timedelta(days=start_days_ago)
    lower = as_of - timedelta(days=end_days_ago)

    def in_range(ts: Optional[datetime]) -> bool:
        return ts is not None and lower < naive_utc(ts) <= upper

    acts = [a for a in activities if in_range(a.timestamp)]
    day_logs = [entry for entry in logs if in_range(entry.timestamp)]
    spo2 = [entry.spo2 for entry in day_logs if entry.spo2 is not None and entry.spo2 > 0]

    return PeriodStats(
        activities=len(acts),
        distance_km=round(sum(a.distance_km for a in acts), 2),
        elevation_m=sum(a.elevation_gain_m for a in acts),
        steps=sum(entry.steps or 0 for entry in day_logs),
        calories=sum(entry.calories or 0 for entry in day_logs),
        avg_spo2=round(sum(spo2) / len(spo2), 1) if spo2 else 0.0,
    )


def compare_periods(
    activities: Sequence[ActivitySummary],
    logs: Sequence[DailyLog],
    as_of: datetime,
) -> dict[str, PeriodComparison]:
    return {
        "week": PeriodComparison(
            period_stats(activities, logs, as_of, 0, 7),
            period_stats(activities, logs, as_of, 7, 14),
        ),
        "month": PeriodComparison(
            period_stats(activities, logs, as_of, 0, 30),
            period_stats(activities, logs, as_of, 30, 60),
        ),
        "year": PeriodComparison(period_stats(activities, logs, as_of, 0, 365), None),
    }


# ═══════════════════════════════════════════════════════════════════════════════
# B. MILESTONES & RANK
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class MilestoneProgress:
    name: str
    target: float
    unlocked: bool
    is_next: bool
    progress_pct: float


@dataclass(frozen=True)
class AchievementReport:
    total_distance_km: float
    total_elevation_m: float
    xp: int
    level: str
    next_level: Optional[str]
    level_progress_pct: float
    distance: list[MilestoneProgress]
    elevation: list[MilestoneProgress]


def milestone_progress(current: float, ladder: list[tuple[str, float]]) -> list[MilestoneProgress]:
    result = []
    for idx, (name, target) in enumerate(ladder):
        unlocked = current >= target
        is_next = not unlocked and (idx == 0 or current >= ladder[idx - 1][1])
        result.append(MilestoneProgress(
            name=name,
            target=target,
            unlocked=unlocked,
            is_next=is_next,
            progress_pct=min(100.0, current / target * 100),
        ))
    return result


def experience_points(total_distance_km: float, total_elevation_m: float) -> int:
    return math.floor(total_distance_km * XP_PER_KM + total_elevation_m / 100 * XP_PER_100M_CLIMB)


def achievements(activities: Iterable[ActivitySummary]) -> AchievementReport:
    activities = list(activities)
    total_dist = sum(a.distance_km for a in activities)
    total_ele = sum(a.elevation_gain_m for a in activities)
    xp = experience_points(total_dist, total_ele)

    level_idx = max(i for i, (_, needed) in enumerate(LEVELS) if xp >= needed)
    level_name, level_xp = LEVELS[level_idx]
    if level_idx + 1 < len(LEVELS):
        next_name, next_xp = LEVELS[level_idx + 1]
        progress = (xp - level_xp) / (next_xp - level_xp) * 100
    else:
        next_name, progress = None, 100.0

    return AchievementReport(
        total_distance_km=round(total_dist, 2),
        total_elevation_m=total_ele,
        xp=xp,
        level=level_name,
        next_level=next_name,
        level_progress_pct=round(progress, 1),
        distance=milestone_progress(total_dist, DISTANCE_MILESTONES),
        elevation=milestone_progress(total_ele, ELEVATION_MILESTONES),
    )
