"""
correlation_lab.py – Training Lab · Correlation Lab
====================================================
Relates any two metrics from the closed catalogue below, whether they come
from activities or from daily recovery logs.

Pipeline
--------
1. unify_by_date   – one row per calendar day (logs first, activities second)
2. smooth_metrics  – optional 7-row trailing mean of present values
3. extract_pairs   – optional 1-day lag on X, keep days carrying X and Y
4. pearson_stats   – five-sum Pearson r + least-squares trend line
5. interpret       – STRONG (>0.7) / MODERATE (>0.3) / WEAK, direction, text

Fewer than MIN_CORRELATION_PAIRS pairs → result without statistics
(``has_enough_data`` is False); callers show "not enough data".
"""

from __future__ import annotations

import enum
import logging
import math
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

# ── Project root on sys.path for config import ────────────────────────────────
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import numpy as np
import pandas as pd

from config.settings import (
    LAG_MAX_GAP_DAYS, MIN_CORRELATION_PAIRS,
    MODERATE_CORRELATION, SMOOTHING_WINDOW, STRONG_CORRELATION,
)
from analytics_memo import AnalyticsMemo, memo_key
from health_models import ActivitySummary, DailyLog, naive_utc, round_half_up

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# METRIC CATALOGUE
# ═══════════════════════════════════════════════════════════════════════════════
class Source(enum.Enum):
    LOG = "LOG"
    ACTIVITY = "ACTIVITY"


class Better(enum.Enum):
    HIGH = "high"
    LOW = "low"


class Metric(enum.Enum):
    """Correlatable metrics. ``key`` is also the record attribute name."""
    SLEEP_SCORE = ("sleep_score", "Sleep Score", Source.LOG, "", Better.HIGH)
    STRESS = ("stress", "Stress Level", Source.LOG, "", Better.LOW)
    SPO2 = ("spo2", "SpO2", Source.LOG, "%", Better.HIGH)
    HRV = ("hrv", "HRV", Source.LOG, "ms", Better.HIGH)
    RESTING_HR = ("resting_hr", "Resting HR", Source.LOG, "bpm", Better.LOW)
    WEIGHT = ("weight", "Weight", Source.LOG, "kg", Better.LOW)
    STEPS = ("steps", "Steps", Source.LOG, "", Better.HIGH)
    CALORIES = ("calories", "Calories", Source.LOG, "kcal", Better.HIGH)
    EFFICIENCY = ("efficiency", "Efficiency (EF)", Source.ACTIVITY, "", Better.HIGH)
    DISTANCE = ("distance_km", "Distance", Source.ACTIVITY, "km", Better.HIGH)
    AVG_HR = ("avg_hr", "Avg HR", Source.ACTIVITY, "bpm", Better.LOW)
    ELEVATION = ("elevation_gain_m", "Elevation", Source.ACTIVITY, "m", Better.HIGH)
    DURATION = ("duration_minutes", "Duration", Source.ACTIVITY, "min", Better.HIGH)
    AVG_POWER = ("avg_power", "Avg Power", Source.ACTIVITY, "W", Better.HIGH)

    def __init__(self, key: str, label: str, source: Source, unit: str, better: Better) -> None:
        self.key = key
        self.label = label
        self.source = source
        self.unit = unit
        self.better = better

    @classmethod
    def from_key(cls, key: str) -> "Metric":
        for metric in cls:
            if metric.key == key:
                return metric
        known = ", ".join(m.key for m in cls)
        raise ValueError(f"Unknown metric '{key}'. Known metrics: {known}")


METRIC_KEYS = [m.key for m in Metric]

MetricLike = Union[Metric, str]


def _metric(value: MetricLike) -> Metric:
    return value if isinstance(value, Metric) else Metric.from_key(value)


# ═══════════════════════════════════════════════════════════════════════════════
# UNIFICATION
# ═══════════════════════════════════════════════════════════════════════════════
def _record_row(record, source: Source, timestamp: datetime) -> dict:
    # Aware stamps become naive UTC so the column stays datetime64 with mixed input.
    timestamp = naive_utc(timestamp)
    row = {"date": pd.Timestamp(timestamp.date()), "timestamp": pd.Timestamp(timestamp)}
    for metric in Metric:
        value = getattr(record, metric.key, None) if metric.source is source else None
        row[metric.key] = float(value) if value is not None else np.nan
    return row


def unify_by_date(
    activities: Iterable[ActivitySummary],
    logs: Iterable[DailyLog],
) -> pd.DataFrame:
    """
    One row per calendar day (from each record's timestamp, UTC for aware
    ones), sorted by date.

    Logs are merged before activities; for a metric carried by several
    records of the same day the last merged value wins. The row's
    ``timestamp`` is the one of the first record merged into that day.
    """
    rows = [_record_row(entry, Source.LOG, entry.timestamp) for entry in logs]
    rows += [
        _record_row(act, Source.ACTIVITY, act.timestamp)
        for act in activities
        if act.timestamp is not None
    ]
    if not rows:
        empty = pd.DataFrame(columns=["timestamp"] + METRIC_KEYS, dtype=float)
        empty.index = pd.DatetimeIndex([], name="date")
        return empty

    frame = pd.DataFrame(rows)
    agg = {"timestamp": "first", **{key: "last" for key in METRIC_KEYS}}
    unified = frame.groupby("date", sort=True).agg(agg)
    log.debug("Unified %d records into %d days", len(rows), len(unified))
    return unified


def smooth_metrics(unified: pd.DataFrame, window: int = SMOOTHING_WINDOW) -> pd.DataFrame:
    """Trailing mean over up to ``window`` unified rows; absent values are skipped."""
    smoothed = unified.copy()
    smoothed[METRIC_KEYS] = (
        unified[METRIC_KEYS].astype(float).rolling(window=window, min_periods=1).mean()
    )
    return smoothed


def metric_coverage(unified: pd.DataFrame, x_metric: Optional[MetricLike] = None) -> dict[Metric, int]:
    """Days carrying each metric (and the X metric, when given)."""
    present = unified[METRIC_KEYS].notna()
    if x_metric is not None:
        present = present.loc[present[_metric(x_metric).key]]
    return {metric: int(present[metric.key].sum()) for metric in Metric}


# ═══════════════════════════════════════════════════════════════════════════════
# PAIRS
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class PairPoint:
    date: str
    x: float
    y: float


def extract_pairs(
    unified: pd.DataFrame,
    x_metric: MetricLike,
    y_metric: MetricLike,
    lag: bool = False,
) -> list[PairPoint]:
    """
    Days where both X and Y are present.

    With ``lag`` the X value comes from the previous unified day, and only
    when that day is less than LAG_MAX_GAP_DAYS away; otherwise the day is
    dropped (the first day never has a lagged pair).
    """
    x_key, y_key = _metric(x_metric).key, _metric(y_metric).key
    if unified.empty:
        return []

    x_vals = unified[x_key].astype(float)
    if lag:
        gap_days = unified["timestamp"].diff() / pd.Timedelta(days=1)
        x_vals = x_vals.shift(1).where(gap_days < LAG_MAX_GAP_DAYS)

    pairs = pd.DataFrame({"x": x_vals, "y": unified[y_key].astype(float)}).dropna()
    return [
        PairPoint(date=day.date().isoformat(), x=float(x), y=float(y))
        for day, x, y in zip(pairs.index, pairs["x"], pairs["y"])
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# STATISTICS
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class TrendPoint:
    x: float
    y: float


@dataclass(frozen=True)
class CorrelationStats:
    r: float
    slope: Optional[float]        # None when X has no variance ("no trend")
    intercept: Optional[float]
    trend_line: Optional[tuple[TrendPoint, TrendPoint]]
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def has_trend(self) -> bool:
        return self.slope is not None


def _no_spread(n_sum_sq: float, sum_sq: float) -> bool:
    # n·Σv² − (Σv)² is zero for a constant series; float noise may leave a
    # tiny (even negative) remainder.
    return n_sum_sq - sum_sq <= 0 or math.isclose(n_sum_sq, sum_sq, rel_tol=1e-12)


def pearson_stats(xs: list[float], ys: list[float]) -> CorrelationStats:
    """Pearson r and least-squares line from the five running sums."""
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    n = len(x)

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    sum_y2 = float(np.sum(y * y))

    numerator = n * sum_xy - sum_x * sum_y
    flat_x = _no_spread(n * sum_x2, sum_x * sum_x)
    flat_y = _no_spread(n * sum_y2, sum_y * sum_y)

    if flat_x or flat_y:
        r = 0.0
    else:
        denominator = math.sqrt((n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y))
        r = max(-1.0, min(1.0, numerator / denominator))

    min_x, max_x = float(np.min(x)), float(np.max(x))
    if flat_x:
        slope = intercept = None
        trend_line = None
    else:
        slope = numerator / (n * sum_x2 - sum_x * sum_x)
        intercept = (sum_y - slope * sum_x) / n
        trend_line = (
            TrendPoint(min_x, slope * min_x + intercept),
            TrendPoint(max_x, slope * max_x + intercept),
        )

    return CorrelationStats(
        r=r,
        slope=slope,
        intercept=intercept,
        trend_line=trend_line,
        min_x=min_x,
        max_x=max_x,
        min_y=float(np.min(y)),
        max_y=float(np.max(y)),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# INTERPRETATION
# ═══════════════════════════════════════════════════════════════════════════════
class Strength(enum.Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"


class Direction(enum.Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


@dataclass(frozen=True)
class Interpretation:
    strength: Strength
    direction: Direction
    description: str


def classify_strength(r: float) -> Strength:
    abs_r = abs(r)
    if abs_r > STRONG_CORRELATION:
        return Strength.STRONG
    elif abs_r > MODERATE_CORRELATION:
        return Strength.MODERATE
    return Strength.WEAK


def interpret(r: float, x_metric: MetricLike, y_metric: MetricLike) -> Interpretation:
    x_metric, y_metric = _metric(x_metric), _metric(y_metric)
    strength = classify_strength(r)
    direction = Direction.POSITIVE if r > 0 else Direction.NEGATIVE

    if strength is Strength.WEAK:
        description = "These metrics don't seem related."
    elif direction is Direction.POSITIVE:
        description = f"When {x_metric.label} goes UP, {y_metric.label} also tends to go UP."
    else:
        description = f"When {x_metric.label} goes UP, {y_metric.label} tends to go DOWN."
    return Interpretation(strength, direction, description)


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class CorrelationResult:
    x_metric: Metric
    y_metric: Metric
    smoothing: bool
    lag: bool
    pairs: tuple[PairPoint, ...]
    stats: Optional[CorrelationStats] = None
    interpretation: Optional[Interpretation] = None

    @property
    def sample_size(self) -> int:
        return len(self.pairs)

    @property
    def has_enough_data(self) -> bool:
        return self.stats is not None


def correlate_unified(
    unified: pd.DataFrame,
    x_metric: MetricLike,
    y_metric: MetricLike,
    smoothing: bool = False,
    lag: bool = False,
) -> CorrelationResult:
    x_metric, y_metric = _metric(x_metric), _metric(y_metric)
    data = smooth_metrics(unified) if smoothing else unified
    pairs = tuple(extract_pairs(data, x_metric, y_metric, lag=lag))

    if len(pairs) < MIN_CORRELATION_PAIRS:
        log.debug("%s vs %s: %d pairs – not enough data",
                  x_metric.key, y_metric.key, len(pairs))
        return CorrelationResult(x_metric, y_metric, smoothing, lag, pairs)

    stats = pearson_stats([p.x for p in pairs], [p.y for p in pairs])
    log.debug("%s vs %s: n=%d r=%.3f", x_metric.key, y_metric.key, len(pairs), stats.r)
    return CorrelationResult(
        x_metric, y_metric, smoothing, lag, pairs,
        stats=stats,
        interpretation=interpret(stats.r, x_metric, y_metric),
    )


def correlate(
    activities: Iterable[ActivitySummary],
    logs: Iterable[DailyLog],
    x_metric: MetricLike,
    y_metric: MetricLike,
    smoothing: bool = False,
    lag: bool = False,
    memo: Optional[AnalyticsMemo] = None,
    history_version: Optional[str] = None,
) -> CorrelationResult:
    """
    Unify activities and logs, then correlate X against Y.

    With a ``memo`` the result is cached under (history_version, X, Y,
    smoothing, lag); ``history_version`` must change whenever the inputs do.
    """
    x_metric, y_metric = _metric(x_metric), _metric(y_metric)

    def compute() -> CorrelationResult:
        return correlate_unified(unify_by_date(activities, logs), x_metric, y_metric, smoothing, lag)

    if memo is None:
        return compute()
    if history_version is None:
        raise ValueError("history_version is required when a memo is supplied")
    key = memo_key("correlation", history_version, x_metric.key, y_metric.key, smoothing, lag)
    return memo.get_or_compute(key, compute)


# ═══════════════════════════════════════════════════════════════════════════════
# POINT SCORING
# ═══════════════════════════════════════════════════════════════════════════════
def score_point(value: float, stats: CorrelationStats, y_metric: MetricLike) -> float:
    """Position of ``value`` in the observed Y range, 1.0 = best end for the metric."""
    spread = stats.max_y - stats.min_y
    norm = 0.5 if spread == 0 else (value - stats.min_y) / spread
    return 1.0 - norm if _metric(y_metric).better is Better.LOW else norm


def score_color(score: float) -> tuple[int, int, int]:
    """Red (0) → yellow (0.5) → green (1)."""
    if score < 0.5:
        return 255, round_half_up(255 * score * 2), 0
    return round_half_up(255 * (1 - (score - 0.5) * 2)), 255, 0
