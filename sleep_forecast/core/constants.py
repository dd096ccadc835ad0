"""Age-based sleep norms, blending weights and app-level prediction tuning constants."""

# ── AGE-BASED SLEEP PATTERNS ────────────────────────────────────────────────
# (age_days, average_naps, nap_durations_min, awake_windows_min, bedtime, night_sleep_min)
#
# No clinical source, population norms compiled from common infant sleep
# tracking guidance. One nap_durations / awake_windows slot per nap.
# Entries must stay sorted ascending by age_days: lookup is a floor match.
SLEEP_PATTERN_TABLE = [
    # Newborn (0-3 months)
    (0,   4, (30, 45, 60, 45),  (45, 60, 75, 90),    "19:00", 480),
    (30,  4, (45, 60, 75, 60),  (60, 75, 90, 105),   "19:30", 540),
    (60,  4, (60, 75, 90, 60),  (75, 90, 105, 120),  "20:00", 600),
    # 3-6 months
    (90,  3, (90, 120, 90),     (120, 150, 180),     "19:00", 660),
    (120, 3, (90, 120, 75),     (135, 165, 195),     "19:00", 660),
    (150, 3, (75, 120, 60),     (150, 180, 210),     "19:00", 660),
    # 6-12 months
    (180, 2, (90, 120),         (180, 210),          "19:00", 660),
    (240, 2, (75, 105),         (210, 240),          "19:00", 660),
    (300, 2, (60, 90),          (240, 270),          "19:00", 660),
    # 12+ months
    (365, 1, (90,),             (300,),              "19:30", 630),
    (450, 1, (75,),             (330,),              "20:00", 600),
    (540, 1, (60,),             (360,),              "20:00", 600),
]


# ── HISTORY WINDOW / OUTLIER BOUNDS ─────────────────────────────────────────
# Engineering choice, no paper prescribes these. Sessions older than the window
# are ignored; awake windows and nap durations outside (0, max) are treated as
# sensor or data-entry noise.
HISTORY_WINDOW_DAYS = 60
MAX_AWAKE_WINDOW_MINUTES = 600
MAX_NAP_DURATION_MINUTES = 300

# Bedtime band: 18:00-23:59 plus 00:00-02:59 for late bedtimes. Starts before
# BEDTIME_BAND_LATE_END_HOUR belong to the evening they were initiated.
BEDTIME_BAND_START_HOUR = 18
BEDTIME_BAND_LATE_END_HOUR = 3
MINUTES_PER_DAY = 24 * 60


# ── BLENDING WEIGHTS ────────────────────────────────────────────────────────
# personal_weight = min(cap, samples / scale). No clinical source, app-level
# tuning: more samples mean more personal weight, saturating below 1.
NAP_BLEND_WEIGHT_CAP = 0.8
NAP_BLEND_SCALE = 20
NAP_BLEND_MIN_SAMPLES = 3

BEDTIME_BLEND_WEIGHT_CAP = 0.7
BEDTIME_BLEND_SCALE = 30
BEDTIME_BLEND_MIN_SAMPLES = 3

WAKE_UP_NAP_BLEND_WEIGHT_CAP = 0.7
WAKE_UP_NAP_BLEND_SCALE = 15
WAKE_UP_NAP_MIN_SAMPLES = 3

# Consistency needs at least this many samples, otherwise it is 0.
CONSISTENCY_MIN_SAMPLES = 3
# Bedtime spread is normalised against one hour.
BEDTIME_CONSISTENCY_NORMALIZER_MINUTES = 60.0


# ── NEXT-NAP CONFIDENCE ─────────────────────────────────────────────────────
NAP_NO_HISTORY_CONFIDENCE = 0.4

NAP_PERSONAL_BASE_CONFIDENCE = 0.5
NAP_SAMPLE_BONUS_CAP = 0.3
NAP_SAMPLE_BONUS_SCALE = 50
NAP_CONSISTENCY_BONUS_FACTOR = 0.4
NAP_ACCURACY_BONUS_FACTOR = 0.3
NAP_PERSONAL_MAX_CONFIDENCE = 0.95

NAP_LIMITED_BASE_CONFIDENCE = 0.6
NAP_LIMITED_PER_SAMPLE_BONUS = 0.05

NAP_AGE_ONLY_BASE_CONFIDENCE = 0.8
NAP_AGE_ONLY_MIN_CONFIDENCE = 0.4

OVERDUE_CONFIDENCE_PER_MINUTE = 0.01
OVERDUE_MAX_CONFIDENCE = 0.98


# ── BEDTIME CONFIDENCE ──────────────────────────────────────────────────────
BEDTIME_CUSTOM_PERSONAL_BASE_CONFIDENCE = 0.7
BEDTIME_PERSONAL_BASE_CONFIDENCE = 0.6
BEDTIME_PERSONAL_MIN_SAMPLES = 7
BEDTIME_PERSONAL_MIN_CONSISTENCY = 0.4
BEDTIME_LIMITED_CONFIDENCE = 0.6
BEDTIME_CUSTOM_ONLY_CONFIDENCE = 0.75
BEDTIME_AGE_ONLY_CONFIDENCE = 0.55
BEDTIME_SAMPLE_BONUS_CAP = 0.25
BEDTIME_SAMPLE_BONUS_SCALE = 40
BEDTIME_CONSISTENCY_BONUS_FACTOR = 0.3
BEDTIME_MAX_CONFIDENCE = 0.95


# ── SAME-DAY BEDTIME ADJUSTMENTS (minutes) ──────────────────────────────────
# No clinical source, app-level heuristics. A missed nap moves bedtime earlier
# more than an extra nap moves it later.
MISSING_NAP_ADJUSTMENT_MINUTES = -15
EXTRA_NAP_ADJUSTMENT_MINUTES = 10

NAP_DURATION_DEVIATION_THRESHOLD_MINUTES = 30
NAP_DURATION_DEVIATION_DIVISOR = 3
NAP_DURATION_ADJUSTMENT_CAP_MINUTES = 30

# Expected wake window before bedtime, by age: (max_age_days_exclusive, minutes).
LAST_WAKE_WINDOWS = [
    (180, 180),
    (365, 240),
]
LAST_WAKE_WINDOW_DEFAULT_MINUTES = 300
LATE_NAP_TOLERANCE_MINUTES = 60
LATE_NAP_SHORTFALL_DIVISOR = 3
LATE_NAP_MAX_PUSH_MINUTES = 30
LATE_NAP_CONFIDENCE_PENALTY = 0.1
LATE_NAP_CONFIDENCE_FLOOR = 0.5

NO_NAP_AWAKE_THRESHOLD_MINUTES = 480
NO_NAP_ADJUSTMENT_MINUTES = -30
NO_NAP_CONFIDENCE_PENALTY = 0.05
NO_NAP_CONFIDENCE_FLOOR = 0.6


# ── WAKE-UP PREDICTION ──────────────────────────────────────────────────────
NIGHT_MIN_SAMPLES = 5
NIGHT_PERSONAL_BASE_CONFIDENCE = 0.6
NIGHT_SAMPLE_BONUS_SCALE = 50
NIGHT_PERSONAL_MAX_CONFIDENCE = 0.85
NIGHT_AGE_ONLY_CONFIDENCE = 0.65

WAKE_UP_NAP_BASE_CONFIDENCE = 0.55
WAKE_UP_NAP_SAMPLE_BONUS_SCALE = 40
WAKE_UP_NAP_CONSISTENCY_BONUS_FACTOR = 0.25
WAKE_UP_NAP_MAX_CONFIDENCE = 0.8
WAKE_UP_NAP_AGE_ONLY_CONFIDENCE = 0.5

APPROACHING_DURATION_FRACTION = 0.8
APPROACHING_CONFIDENCE_BONUS = 0.1
APPROACHING_MAX_CONFIDENCE = 0.95


# ── CONFIDENCE LABELS ───────────────────────────────────────────────────────
CONFIDENCE_HIGH_THRESHOLD = 0.8
CONFIDENCE_MEDIUM_THRESHOLD = 0.6


# ── SCHEDULE BUILDER / CUSTOM SCHEDULE LIMITS ───────────────────────────────
PERSONALIZED_SCHEDULE_MIN_SESSIONS = 30
PERSONALIZED_DEFAULT_NIGHT_SLEEP_MINUTES = 660
PERSONALIZED_DEFAULT_BEDTIME = "19:00"

MIN_NAPS_PER_DAY = 1
MAX_NAPS_PER_DAY = 5
MIN_WAKE_WINDOW_MINUTES = 30
MAX_WAKE_WINDOW_MINUTES = 480
MIN_NAP_DURATION_MINUTES = 15
MAX_NAP_DURATION_SETTING_MINUTES = 240
DEFAULT_WAKE_WINDOW_MINUTES = 120
DEFAULT_NAP_DURATION_MINUTES = 60


# ── AGE BANDS FOR TIPS (days) ───────────────────────────────────────────────
NEWBORN_TIPS_MAX_AGE_DAYS = 90
INFANT_TIPS_MAX_AGE_DAYS = 365

SLEEP_TIPS = {
    "newborn": [
        "Watch for early sleep cues like yawning and eye rubbing",
        "Keep awake windows short to prevent overtiredness",
        "Consistent bedtime routine helps establish patterns",
    ],
    "infant": [
        "Longer awake windows allow for more activities",
        "Consistent nap schedule helps with night sleep",
        "Room darkening can improve nap quality",
    ],
    "toddler": [
        "Single midday nap should be 1-2 hours",
        "Earlier bedtime if nap was missed or short",
        "Quiet time can replace second nap if needed",
    ],
}
