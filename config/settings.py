"""
Training Lab – Centralized Configuration
=========================================
Athlete defaults, model constants, file paths and thresholds in one place.
Edit this file (or set TRAINING_LAB_DATA_DIR in .env) instead of
hardcoding values in individual modules.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=False)

# ============================================================
# PROJECT PATHS (relative to project root)
# ============================================================
PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATA_DIR        = Path(os.environ.get("TRAINING_LAB_DATA_DIR", "").strip() or PROJECT_ROOT / "data")
FIT_DIR         = DATA_DIR / "fit"
SUMMARIES_DIR   = DATA_DIR / "summaries"
LOGS_DIR        = PROJECT_ROOT / "logs"

# ============================================================
# ATHLETE DEFAULTS (no profile override path)
# ============================================================
DEFAULT_AGE     = 30           # used when no profile / birthdate is known
AGE_MAX_HR_BASE = 220          # max HR = 220 - age
RESTING_HR      = 60           # bpm

# ============================================================
# HEART-RATE ZONES (fraction of reference max HR)
# ============================================================
# Z1: <60 %, Z2: 60-70 %, Z3: 70-80 %, Z4: 80-90 %, Z5: >=90 %
ZONE_UPPER_PCTS     = [0.60, 0.70, 0.80, 0.90]
ZONE_LABELS         = ["z1", "z2", "z3", "z4", "z5"]
ZONE_REF_MAX_HR_MIN = 185      # floor for the reference max HR
PAUSE_GAP_SECONDS   = 10       # longer gaps between points = pause

EARTH_RADIUS_KM = 6371.0

# ============================================================
# TRAINING LOAD MODEL (Banister / PMC)
# ============================================================
CTL_DAYS        = 42           # Chronic Training Load time constant
ATL_DAYS        = 7            # Acute Training Load time constant

# TRIMP constants (male Banister model)
TRIMP_K1        = 0.64
TRIMP_K2        = 1.92

# Form status thresholds (TSB)
LOW_VOLUME_CTL        = 20
TSB_RECOVERY          = 25
TSB_PERFORMANCE_READY = 5
TSB_MAINTENANCE       = -10
TSB_HIGH_STRAIN       = -30

# ============================================================
# CORRELATION LAB
# ============================================================
SMOOTHING_WINDOW      = 7      # trailing unified days
LAG_MAX_GAP_DAYS      = 1.5    # previous day must be closer than this
MIN_CORRELATION_PAIRS = 3
STRONG_CORRELATION    = 0.7
MODERATE_CORRELATION  = 0.3

MEMO_MAX_ENTRIES      = 128

# ============================================================
# CSV / JSON FILE NAMES (inside SUMMARIES_DIR)
# ============================================================
CSV_ACTIVITIES    = "activities.csv"
CSV_DAILY_LOGS    = "daily_logs.csv"
CSV_FITNESS       = "fitness_timeline.csv"
JSON_PROFILE      = "profile.json"
