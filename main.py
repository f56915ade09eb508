#!/usr/bin/env python3
"""
main.py – Training Lab · Central Entry Point
=============================================
Orchestrates the analytics pipeline:

  1. INGEST    – Reduce FIT recordings to activity summaries  (fit_points + track_ingest)
  2. LOAD      – Daily CTL / ATL / TSB timeline + form status  (training_load)
  3. CORRELATE – Relate two metrics across activities & logs   (correlation_lab)
  4. SUMMARY   – Period volume comparison & milestones         (training_summary)

Usage
-----
    python main.py                              # Run full pipeline
    python main.py ingest                       # Only reduce FIT files
    python main.py load --as-of 2024-06-30      # Timeline through a fixed day
    python main.py correlate --x sleep_score --y efficiency --smooth --lag
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from datetime import datetime

# ── Project root on sys.path ─────────────────────────────────────────────────
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
for _p in (PROJECT_ROOT, SRC_DIR):
    if _p not in sys.path:
        sys.path.insert(0, _p)

from config.settings import DATA_DIR, FIT_DIR, SUMMARIES_DIR, LOGS_DIR

from correlation_lab import Metric, correlate
from fit_points import find_fit_files, read_fit_points
from record_store import RecordStore
from track_ingest import summarize_track
from training_load import compute_fitness_timeline, current_form
from training_summary import achievements, compare_periods

log = logging.getLogger("main")


def setup_logging() -> None:
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(LOGS_DIR / "main.log", encoding="utf-8"),
        ],
    )


# ═══════════════════════════════════════════════════════════════════════════════
# PIPELINE STEPS
# ═══════════════════════════════════════════════════════════════════════════════

def ensure_directories() -> None:
    """Create all required data directories if they don't exist."""
    for d in (DATA_DIR, FIT_DIR, SUMMARIES_DIR, LOGS_DIR):
        d.mkdir(parents=True, exist_ok=True)
    log.info("Directory structure verified.")


def step_ingest(args: argparse.Namespace, store: RecordStore) -> None:
    """Step 1 – Reduce FIT recordings to activity summaries."""
    log.info("=" * 60)
    log.info("STEP 1 / 4 : INGEST – FIT → activity summaries")
    log.info("=" * 60)
    fit_files = find_fit_files(args.fit_dir)
    if not fit_files:
        log.warning("No .fit files in %s – skipping ingest.", args.fit_dir)
        return

    stored = failed = 0
    for i, fit_path in enumerate(fit_files, 1):
        log.info("─── [%d/%d] %s", i, len(fit_files), os.path.basename(fit_path))
        points = read_fit_points(fit_path)
        if not points:
            failed += 1
            continue
        store.save_activity(summarize_track(points))
        stored += 1
    log.info("Stored: %d activities  |  Skipped: %d", stored, failed)


def step_load(args: argparse.Namespace, store: RecordStore) -> None:
    """Step 2 – Fitness / Fatigue / Form timeline."""
    log.info("=" * 60)
    log.info("STEP 2 / 4 : LOAD – CTL / ATL / TSB")
    log.info("=" * 60)
    timeline = compute_fitness_timeline(store.get_all_activities(), args.as_of, store.get_profile())
    if not timeline:
        log.warning("No activities on or before %s – nothing to model.", args.as_of.date())
        return
    out = store.save_fitness_timeline(timeline)
    latest = timeline[-1]
    form = current_form(timeline)
    log.info("Saved %d days → %s", len(timeline), out)
    log.info("Fitness (CTL): %d  │  Fatigue (ATL): %d  │  Form (TSB): %+d",
             latest.ctl, latest.atl, latest.tsb)
    log.info("Status: %s – %s", form.label, form.advice)


def step_correlate(args: argparse.Namespace, store: RecordStore) -> None:
    """Step 3 – Correlation Lab."""
    log.info("=" * 60)
    log.info("STEP 3 / 4 : CORRELATE – %s vs %s", args.x.label, args.y.label)
    log.info("=" * 60)
    result = correlate(store.get_all_activities(), store.get_all_daily_logs(),
                       args.x, args.y, smoothing=args.smooth, lag=args.lag)
    if not result.has_enough_data:
        log.info("Not enough data: %d paired day(s).", result.sample_size)
        return
    stats = result.stats
    log.info("n=%d  r=%.3f  →  %s %s", result.sample_size, stats.r,
             result.interpretation.strength.value, result.interpretation.direction.value)
    if stats.has_trend:
        log.info("Trend: y = %.4f · x + %.4f", stats.slope, stats.intercept)
    else:
        log.info("Trend: none (X has no variance)")
    log.info(result.interpretation.description)


def step_summary(args: argparse.Namespace, store: RecordStore) -> None:
    """Step 4 – Period stats & milestones."""
    log.info("=" * 60)
    log.info("STEP 4 / 4 : SUMMARY – volume & milestones")
    log.info("=" * 60)
    activities = store.get_all_activities()
    periods = compare_periods(activities, store.get_all_daily_logs(), args.as_of)
    for name, cmp in periods.items():
        change = cmp.change_pct("distance_km")
        log.info("%-5s  %3d activities  %8.1f km  %6.0f m%s",
                 name, cmp.current.activities, cmp.current.distance_km, cmp.current.elevation_m,
                 f"  ({change:+.0f} % km)" if change is not None else "")
    report = achievements(activities)
    log.info("Rank: %s (%d XP, %.1f %% to %s)", report.level, report.xp,
             report.level_progress_pct, report.next_level or "max")


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════════

STEPS = {
    "ingest": step_ingest,
    "load": step_load,
    "correlate": step_correlate,
    "summary": step_summary,
}


def _step_name(value: str) -> str:
    if value not in STEPS:
        raise argparse.ArgumentTypeError(
            f"invalid step '{value}' (choose from {', '.join(STEPS)})")
    return value


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Training Lab – pipeline runner",
        epilog="Without arguments runs the full pipeline: ingest → load → correlate → summary",
    )
    parser.add_argument(
        "steps",
        nargs="*",
        type=_step_name,
        default=list(STEPS.keys()),
        metavar="{" + ",".join(STEPS) + "}",
        help="Pipeline step(s) to run (default: all)",
    )
    parser.add_argument("--fit-dir", default=str(FIT_DIR), help="Folder with .fit recordings")
    parser.add_argument("--as-of", type=datetime.fromisoformat, default=datetime.now(),
                        help="Reference day (YYYY-MM-DD), default: now")
    parser.add_argument("--x", type=Metric.from_key, default=Metric.SLEEP_SCORE,
                        help="X metric key (default: sleep_score)")
    parser.add_argument("--y", type=Metric.from_key, default=Metric.EFFICIENCY,
                        help="Y metric key (default: efficiency)")
    parser.add_argument("--smooth", action="store_true", help="7-day trailing average")
    parser.add_argument("--lag", action="store_true", help="Previous day's X vs today's Y")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging()

    log.info("Training Lab  ·  Pipeline Start")
    log.info(f"Steps: {', '.join(args.steps)}")

    ensure_directories()
    store = RecordStore()

    t0 = time.time()
    for name in args.steps:
        STEPS[name](args, store)
    elapsed = time.time() - t0

    log.info("=" * 60)
    log.info(f"Pipeline finished in {elapsed:.1f} s")
    log.info("=" * 60)


if __name__ == "__main__":
    main()
