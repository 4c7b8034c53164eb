"""Centralized constants for the recall engine.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
CORRECT_QUALITY = 3  # ratings at or above this count as correct

# ---------- Classification ----------
LEARNING_INTERVAL_DAYS = 21  # three weeks

# ---------- Progress Store ----------
MAX_HISTORY_ENTRIES = 1000
PROGRESS_FILE_NAME = "progress.json"
HISTORY_FILE_NAME = "history.json"
