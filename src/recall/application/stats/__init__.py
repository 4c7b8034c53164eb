# Application Stats Package
from .metrics_calculator import DailyActivity, MetricsCalculator
from .service import StudyStatsService, StudySummary

__all__ = ["MetricsCalculator", "DailyActivity", "StudyStatsService", "StudySummary"]
