"""Data models for samples, daily metrics and scores."""

from dataclasses import dataclass, asdict, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Tuple


class SampleKind(str, Enum):
    """Kind of a raw quantity sample."""

    HEART_RATE = "heartRate"
    RESTING_HEART_RATE = "restingHeartRate"
    HRV = "hrv"

    @property
    def plausible_range(self) -> Tuple[float, float]:
        """Physiological bounds; samples outside are discarded."""
        return _PLAUSIBLE_RANGES[self]

    @property
    def metric_type(self) -> "MetricType":
        if self is SampleKind.HRV:
            return MetricType.HRV
        return MetricType.HEART_RATE


_PLAUSIBLE_RANGES = {
    SampleKind.HEART_RATE: (25.0, 250.0),
    SampleKind.RESTING_HEART_RATE: (25.0, 150.0),
    SampleKind.HRV: (1.0, 300.0),
}


class SleepStage(str, Enum):
    """Sleep analysis stage of an interval."""

    CORE = "asleepCore"
    DEEP = "asleepDeep"
    REM = "asleepREM"
    UNSPECIFIED = "asleepUnspecified"
    AWAKE = "awake"
    IN_BED = "inBed"

    @property
    def is_asleep(self) -> bool:
        return self in (SleepStage.CORE, SleepStage.DEEP, SleepStage.REM, SleepStage.UNSPECIFIED)


class Intensity(str, Enum):
    """Workout intensity classification."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def load_factor(self) -> float:
        return {Intensity.LOW: 1.0, Intensity.MODERATE: 2.0, Intensity.HIGH: 3.0}[self]


class Polarity(str, Enum):
    """How a change in a metric reads for recovery."""

    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"
    WITHIN_TARGET_BAND = "within_target_band"


class DeltaDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TimeOfDay(str, Enum):
    """Slot of the day a score snapshot belongs to."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @classmethod
    def from_datetime(cls, moment: datetime) -> "TimeOfDay":
        if moment.hour < 12:
            return cls.MORNING
        if moment.hour < 18:
            return cls.AFTERNOON
        return cls.EVENING

    @property
    def ordinal(self) -> int:
        return list(TimeOfDay).index(self)


@dataclass(frozen=True)
class MetricProfile:
    """Display and scoring data attached to a metric type."""

    title: str
    unit: str
    polarity: Polarity
    baseline_days: int
    weight: float
    band_low: Optional[float] = None
    band_high: Optional[float] = None
    # Upper bound of the target band as a multiple of the baseline mean
    target_ratio: Optional[float] = None


class MetricType(str, Enum):
    """Daily metric types scored by the engine."""

    HEART_RATE = "heartRate"
    HRV = "hrv"
    SLEEP_DURATION = "sleepDuration"
    SLEEP_QUALITY = "sleepQuality"
    TRAINING_LOAD = "trainingLoad"

    @property
    def profile(self) -> MetricProfile:
        return METRIC_PROFILES[self]

    @property
    def title(self) -> str:
        return self.profile.title

    @property
    def baseline_days(self) -> int:
        return self.profile.baseline_days


METRIC_PROFILES: Dict[MetricType, MetricProfile] = {
    MetricType.HEART_RATE: MetricProfile(
        title="Resting Heart Rate",
        unit="bpm",
        polarity=Polarity.LOWER_IS_BETTER,
        baseline_days=7,
        weight=0.25,
        band_low=40.0,
        band_high=90.0,
    ),
    MetricType.HRV: MetricProfile(
        title="Heart Rate Variability",
        unit="ms",
        polarity=Polarity.HIGHER_IS_BETTER,
        baseline_days=7,
        weight=0.25,
        band_low=20.0,
        band_high=100.0,
    ),
    MetricType.SLEEP_DURATION: MetricProfile(
        title="Sleep Duration",
        unit="h",
        polarity=Polarity.HIGHER_IS_BETTER,
        baseline_days=7,
        weight=0.15,
        band_low=0.0,
        band_high=8.0,
    ),
    MetricType.SLEEP_QUALITY: MetricProfile(
        title="Sleep Quality",
        unit="%",
        polarity=Polarity.HIGHER_IS_BETTER,
        baseline_days=7,
        weight=0.10,
        band_low=0.0,
        band_high=100.0,
    ),
    MetricType.TRAINING_LOAD: MetricProfile(
        title="Training Load",
        unit="load",
        polarity=Polarity.WITHIN_TARGET_BAND,
        baseline_days=28,
        weight=0.15,
        target_ratio=1.3,
    ),
}

# The stress proxy is derived from HRV and has no daily metric of its own
STRESS_KEY = "stress"
STRESS_WEIGHT = 0.10


@dataclass(frozen=True)
class RawSample:
    """One quantity sample as delivered by a sample source."""
    timestamp: datetime
    value: float
    kind: SampleKind


@dataclass(frozen=True)
class SleepInterval:
    """One sleep analysis interval."""
    start: datetime
    end: datetime
    stage: SleepStage

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class WorkoutRecord:
    """A workout as delivered by a sample source."""
    start: datetime
    end: datetime
    activity_type: str = "other"
    title: Optional[str] = None
    source_id: Optional[str] = None
    energy_burned_kcal: Optional[float] = None
    average_heart_rate: Optional[float] = None
    distance_km: Optional[float] = None

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class DailyMetric:
    """One normalized measurement per (date, metric type)."""
    date: date
    metric_type: MetricType
    value: float

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "metric_type": self.metric_type.value,
            "value": self.value,
        }


@dataclass(frozen=True)
class SleepStageProfile:
    """Share of total sleep time per asleep stage, in percent."""
    deep_pct: float = 0.0
    rem_pct: float = 0.0
    core_pct: float = 0.0
    unspecified_pct: float = 0.0

    @property
    def total_pct(self) -> float:
        return self.deep_pct + self.rem_pct + self.core_pct + self.unspecified_pct

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SleepSummary:
    """Aggregated sleep for one night."""
    date: date
    sleep_hours: float
    quality_score: float
    stages: SleepStageProfile
    duration_score: float
    deep_rem_score: float
    continuity_score: float
    awake_seconds: float = 0.0

    def to_dict(self) -> dict:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        return d


@dataclass(frozen=True)
class Activity:
    """A workout with its estimated training load."""
    id: str
    date: date
    start: datetime
    duration_seconds: float
    intensity: Intensity
    training_load_score: float
    activity_type: str = "other"
    title: Optional[str] = None
    average_heart_rate: Optional[float] = None

    @property
    def end(self) -> datetime:
        return self.start + timedelta(seconds=self.duration_seconds)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60

    def to_dict(self) -> dict:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        d["start"] = self.start.isoformat()
        d["intensity"] = self.intensity.value
        return d


@dataclass(frozen=True)
class MetricScore:
    """Sub-score and baseline comparison for one metric."""
    metric_type: MetricType
    title: str
    score: int
    raw_score: float
    current_value: float
    delta_from_average: float
    direction: DeltaDirection
    baseline_value: Optional[float] = None
    daily_data: Tuple[DailyMetric, ...] = ()
    description: str = ""

    @property
    def is_positive_delta(self) -> bool:
        return self.direction is DeltaDirection.POSITIVE

    def to_dict(self) -> dict:
        return {
            "metric_type": self.metric_type.value,
            "title": self.title,
            "score": self.score,
            "current_value": self.current_value,
            "delta_from_average": self.delta_from_average,
            "direction": self.direction.value,
            "is_positive_delta": self.is_positive_delta,
            "baseline_value": self.baseline_value,
            "daily_data": [m.to_dict() for m in self.daily_data],
            "description": self.description,
        }


@dataclass(frozen=True)
class RecoveryScore:
    """Overall recovery snapshot for one (date, time of day)."""
    date: date
    time_of_day: TimeOfDay
    overall_score: int
    overall_value: float
    heart_rate_score: Optional[int] = None
    hrv_score: Optional[int] = None
    sleep_score: Optional[int] = None
    training_load_score: Optional[int] = None
    stress_score: Optional[int] = None
    applied_weights: Dict[str, float] = field(default_factory=dict)
    metric_scores: Tuple[MetricScore, ...] = ()
    # Percent of the base score kept after a recent workout; 100 means none
    cooldown_adjustment: int = 100

    def metric(self, metric_type: MetricType) -> Optional[MetricScore]:
        for score in self.metric_scores:
            if score.metric_type is metric_type:
                return score
        return None

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "time_of_day": self.time_of_day.value,
            "overall_score": self.overall_score,
            "overall_value": self.overall_value,
            "heart_rate_score": self.heart_rate_score,
            "hrv_score": self.hrv_score,
            "sleep_score": self.sleep_score,
            "training_load_score": self.training_load_score,
            "stress_score": self.stress_score,
            "applied_weights": dict(self.applied_weights),
            "metric_scores": [s.to_dict() for s in self.metric_scores],
            "cooldown_adjustment": self.cooldown_adjustment,
        }
