"""
record_store.py – Training Lab · Flat-file record store
========================================================
CSV / JSON implementation of the persistence contract the analytics layer
is fed from:

  get_all_activities()  →  list[ActivitySummary]   (activities.csv, no points)
  get_all_daily_logs()  →  list[DailyLog]          (daily_logs.csv, one per date)
  get_profile()         →  UserProfile | None      (profile.json)

The analytics modules never import this file; callers load collections
here and pass them in.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

# ── Project root on sys.path for config import ────────────────────────────────
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import pandas as pd

from config.settings import (
    CSV_ACTIVITIES, CSV_DAILY_LOGS, CSV_FITNESS, JSON_PROFILE, SUMMARIES_DIR,
    ZONE_LABELS,
)
from health_models import ActivitySummary, DailyLog, FitnessMetric, UserProfile, ZoneDistribution

log = logging.getLogger(__name__)

ACTIVITY_COLS = [
    "id", "date", "timestamp", "duration_minutes", "distance_km",
    "elevation_gain_m", "avg_hr", "max_hr", "avg_power", "max_power",
    "avg_cadence", "efficiency", *ZONE_LABELS,
]

LOG_COLS = [f.name for f in dataclasses.fields(DailyLog)]
LOG_INT_COLS = ("steps", "calories")

FITNESS_COLS = ["date", "daily_load", "ctl", "atl", "tsb"]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════
def load_csv(path: Path, required: bool = False) -> pd.DataFrame:
    """Generic CSV loader with existence check."""
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Record file not found: {path}")
        return pd.DataFrame()
    return pd.read_csv(path)


def _parse_timestamps(df: pd.DataFrame, label: str) -> pd.DataFrame:
    """Parse the timestamp column, dropping (and reporting) unparseable rows."""
    df = df.assign(timestamp=pd.to_datetime(df["timestamp"], errors="coerce", format="ISO8601"))
    bad = df["timestamp"].isna()
    if bad.any():
        log.warning("Skipping %d %s row(s) with invalid timestamp: %s",
                    int(bad.sum()), label, df.index[bad].tolist())
    return df.loc[~bad]


def _optional(value):
    return None if pd.isna(value) else value


# ═══════════════════════════════════════════════════════════════════════════════
# STORE
# ═══════════════════════════════════════════════════════════════════════════════
class RecordStore:
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root) if root is not None else SUMMARIES_DIR
        self.activities_csv = self.root / CSV_ACTIVITIES
        self.daily_logs_csv = self.root / CSV_DAILY_LOGS
        self.fitness_csv = self.root / CSV_FITNESS
        self.profile_json = self.root / JSON_PROFILE

    # ── activities ───────────────────────────────────────────────────────
    def get_all_activities(self) -> list[ActivitySummary]:
        df = load_csv(self.activities_csv)
        if df.empty:
            return []
        df = _parse_timestamps(df, "activity")

        activities = []
        for row in df.itertuples(index=False):
            activities.append(ActivitySummary(
                id=str(row.id),
                date=str(row.date),
                timestamp=row.timestamp.to_pydatetime(),
                duration_minutes=int(row.duration_minutes),
                distance_km=float(row.distance_km),
                elevation_gain_m=float(row.elevation_gain_m),
                avg_hr=float(row.avg_hr),
                max_hr=float(row.max_hr),
                avg_power=float(row.avg_power),
                max_power=float(row.max_power),
                avg_cadence=float(row.avg_cadence),
                efficiency=float(row.efficiency),
                zones=ZoneDistribution(**{z: int(getattr(row, z)) for z in ZONE_LABELS}),
            ))
        return sorted(activities, key=lambda a: a.timestamp)

    def save_activity(self, activity: ActivitySummary) -> None:
        """Insert or replace by id. Raw points are not persisted."""
        if activity.timestamp is None:
            log.warning("[%s] empty activity – not stored", activity.id)
            return
        kept = [a for a in self.get_all_activities() if a.id != activity.id]
        rows = [_activity_row(a) for a in kept + [activity]]
        df = pd.DataFrame(rows, columns=ACTIVITY_COLS).sort_values("timestamp")
        self.root.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.activities_csv, index=False)

    # ── daily logs ───────────────────────────────────────────────────────
    def get_all_daily_logs(self) -> list[DailyLog]:
        df = load_csv(self.daily_logs_csv)
        if df.empty:
            return []
        df = _parse_timestamps(df, "daily log")

        logs = []
        for record in df.to_dict(orient="records"):
            values = {col: _optional(record.get(col)) for col in LOG_COLS}
            values["date"] = str(values["date"])
            values["timestamp"] = record["timestamp"].to_pydatetime()
            for col in LOG_INT_COLS:
                if values[col] is not None:
                    values[col] = int(values[col])
            logs.append(DailyLog(**values))
        return sorted(logs, key=lambda entry: entry.timestamp)

    def save_daily_logs(self, new_logs: Iterable[DailyLog]) -> None:
        """Merge by calendar date: fields present in the new log overwrite old ones."""
        by_date = {entry.date: entry for entry in self.get_all_daily_logs()}
        for entry in new_logs:
            existing = by_date.get(entry.date)
            if existing is None:
                by_date[entry.date] = entry
                continue
            updates = {k: v for k, v in dataclasses.asdict(entry).items() if v is not None}
            by_date[entry.date] = dataclasses.replace(existing, **updates)

        rows = [dataclasses.asdict(entry) for entry in by_date.values()]
        for row in rows:
            row["timestamp"] = row["timestamp"].isoformat()
        df = pd.DataFrame(rows, columns=LOG_COLS).sort_values("date")
        self.root.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.daily_logs_csv, index=False)

    # ── profile ──────────────────────────────────────────────────────────
    def get_profile(self) -> Optional[UserProfile]:
        if not self.profile_json.exists():
            return None
        with open(self.profile_json, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        known = {f.name for f in dataclasses.fields(UserProfile)}
        return UserProfile(**{k: v for k, v in data.items() if k in known})

    def save_profile(self, profile: UserProfile) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.profile_json, "w", encoding="utf-8") as fh:
            json.dump(dataclasses.asdict(profile), fh, indent=2)

    # ── derived output ───────────────────────────────────────────────────
    def save_fitness_timeline(self, timeline: list[FitnessMetric]) -> Path:
        df = pd.DataFrame([dataclasses.asdict(m) for m in timeline], columns=FITNESS_COLS)
        self.root.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.fitness_csv, index=False)
        return self.fitness_csv


def _activity_row(activity: ActivitySummary) -> dict:
    row = {col: getattr(activity, col) for col in ACTIVITY_COLS if col not in ZONE_LABELS}
    row["timestamp"] = activity.timestamp.isoformat()
    row.update(activity.zones.as_dict())
    return row
