"""
Recovery Engine - daily recovery scoring from biometric samples.

Turns heart rate, HRV, sleep stage and workout samples into a 0-100 recovery
score with per-metric sub-scores and deltas against personal baselines.
"""

from .config import Settings, get_settings
from .exceptions import (
    ConfigurationError,
    ErrorCode,
    ExportParseError,
    RecoveryEngineError,
    SampleSourceError,
    StorageError,
)
from .ledger import ActivityLedger, InMemoryActivityLedger, LedgerEntry, SQLiteActivityLedger
from .models import (
    Activity,
    DailyMetric,
    DeltaDirection,
    Intensity,
    MetricScore,
    MetricType,
    RawSample,
    RecoveryScore,
    SampleKind,
    SleepInterval,
    SleepStage,
    SleepStageProfile,
    SleepSummary,
    TimeOfDay,
    WorkoutRecord,
)
from .normalizer import normalize_daily, normalize_heart_rate
from .descriptions import describe_metric, describe_sleep_stages
from .load import classify_intensity, calculate_training_load, daily_training_volumes, estimate_activity
from .recommendations import recommend_activities
from .scoring import compute_recovery_score, score_metric
from .sleep import aggregate_sleep, aggregate_sleep_by_day
from .source import InMemorySampleSource, SampleSource
from .pipeline import ScoringContext, ScoringResult, run_scoring_pass

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Exceptions
    "ConfigurationError",
    "ErrorCode",
    "ExportParseError",
    "RecoveryEngineError",
    "SampleSourceError",
    "StorageError",
    # Models
    "Activity",
    "DailyMetric",
    "DeltaDirection",
    "Intensity",
    "MetricScore",
    "MetricType",
    "RawSample",
    "RecoveryScore",
    "SampleKind",
    "SleepInterval",
    "SleepStage",
    "SleepStageProfile",
    "SleepSummary",
    "TimeOfDay",
    "WorkoutRecord",
    # Aggregation and scoring
    "aggregate_sleep",
    "aggregate_sleep_by_day",
    "normalize_daily",
    "normalize_heart_rate",
    "classify_intensity",
    "calculate_training_load",
    "estimate_activity",
    "daily_training_volumes",
    "compute_recovery_score",
    "score_metric",
    "describe_metric",
    "describe_sleep_stages",
    "recommend_activities",
    # Ledger
    "ActivityLedger",
    "InMemoryActivityLedger",
    "LedgerEntry",
    "SQLiteActivityLedger",
    # Pipeline
    "InMemorySampleSource",
    "SampleSource",
    "ScoringContext",
    "ScoringResult",
    "run_scoring_pass",
]
