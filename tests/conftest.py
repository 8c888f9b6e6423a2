"""Shared fixtures for recovery engine tests."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from recovery_engine.db.database import Database
from recovery_engine.models import Activity, Intensity


UTC = timezone.utc


EXPORT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE HealthData>
<HealthData locale="en_US">
 <ExportDate value="2024-03-08 10:00:00 +0000"/>
 <Record type="HKQuantityTypeIdentifierRestingHeartRate" sourceName="Watch" unit="count/min" startDate="2024-03-06 07:00:00 +0000" endDate="2024-03-06 07:00:00 +0000" value="56"/>
 <Record type="HKQuantityTypeIdentifierRestingHeartRate" sourceName="Watch" unit="count/min" startDate="2024-03-07 07:00:00 +0000" endDate="2024-03-07 07:00:00 +0000" value="58"/>
 <Record type="HKQuantityTypeIdentifierRestingHeartRate" sourceName="Watch" unit="count/min" startDate="2024-03-08 07:00:00 +0000" endDate="2024-03-08 07:00:00 +0000" value="54"/>
 <Record type="HKQuantityTypeIdentifierHeartRate" sourceName="Watch" unit="count/min" startDate="2024-03-08 12:00:00 +0000" endDate="2024-03-08 12:00:00 +0000" value="72"/>
 <Record type="HKQuantityTypeIdentifierHeartRateVariabilitySDNN" sourceName="Watch" unit="ms" startDate="2024-03-07 06:30:00 +0000" endDate="2024-03-07 06:31:00 +0000" value="48.5"/>
 <Record type="HKQuantityTypeIdentifierHeartRateVariabilitySDNN" sourceName="Watch" unit="ms" startDate="2024-03-08 06:30:00 +0000" endDate="2024-03-08 06:31:00 +0000" value="55"/>
 <Record type="HKQuantityTypeIdentifierHeartRateVariabilitySDNN" sourceName="Watch" unit="ms" startDate="not a date" endDate="not a date" value="55"/>
 <Record type="HKQuantityTypeIdentifierStepCount" sourceName="Phone" unit="count" startDate="2024-03-08 09:00:00 +0000" endDate="2024-03-08 09:10:00 +0000" value="800"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 00:00:00 +0000" endDate="2024-03-08 00:20:00 +0000" value="HKCategoryValueSleepAnalysisInBed"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 00:20:00 +0000" endDate="2024-03-08 04:50:00 +0000" value="HKCategoryValueSleepAnalysisAsleepCore"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 04:50:00 +0000" endDate="2024-03-08 05:50:00 +0000" value="HKCategoryValueSleepAnalysisAsleepDeep"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 05:50:00 +0000" endDate="2024-03-08 06:00:00 +0000" value="HKCategoryValueSleepAnalysisAwake"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 06:00:00 +0000" endDate="2024-03-08 06:30:00 +0000" value="HKCategoryValueSleepAnalysisAsleepREM"/>
 <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" startDate="2024-03-08 06:30:00 +0000" endDate="2024-03-08 06:40:00 +0000" value="HKCategoryValueSleepAnalysisSomethingNew"/>
 <Workout workoutActivityType="HKWorkoutActivityTypeRunning" duration="45" durationUnit="min" sourceName="Watch" startDate="2024-03-07 18:00:00 +0000" endDate="2024-03-07 18:45:00 +0000">
  <MetadataEntry key="HKIndoorWorkout" value="0"/>
  <WorkoutStatistics type="HKQuantityTypeIdentifierActiveEnergyBurned" startDate="2024-03-07 18:00:00 +0000" endDate="2024-03-07 18:45:00 +0000" sum="450" unit="kcal"/>
  <WorkoutStatistics type="HKQuantityTypeIdentifierHeartRate" startDate="2024-03-07 18:00:00 +0000" endDate="2024-03-07 18:45:00 +0000" average="150" minimum="110" maximum="175" unit="count/min"/>
  <WorkoutStatistics type="HKQuantityTypeIdentifierDistanceWalkingRunning" startDate="2024-03-07 18:00:00 +0000" endDate="2024-03-07 18:45:00 +0000" sum="8.2" unit="km"/>
 </Workout>
 <Workout workoutActivityType="HKWorkoutActivityTypeYoga" duration="30" durationUnit="min" totalEnergyBurned="90" totalEnergyBurnedUnit="kcal" sourceName="Phone" startDate="2024-03-06 19:00:00 +0000">
  <MetadataEntry key="HKExternalUUID" value="yoga-42"/>
 </Workout>
</HealthData>
"""


@pytest.fixture
def export_path(tmp_path):
    """Write a small Apple Health export to a temporary file."""
    path = tmp_path / "export.xml"
    path.write_text(EXPORT_XML, encoding="utf-8")
    return path


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing."""
    return Database(str(tmp_path / "recovery.db"))


def make_activity(
    activity_id: str = "a1",
    start: Optional[datetime] = None,
    minutes: float = 60,
    intensity: Intensity = Intensity.MODERATE,
    activity_type: str = "run",
    load: float = 100.0,
) -> Activity:
    """Build an Activity for tests."""
    start = start or datetime(2024, 3, 8, 6, 0, tzinfo=UTC)
    return Activity(
        id=activity_id,
        date=start.date(),
        start=start,
        duration_seconds=minutes * 60,
        intensity=intensity,
        training_load_score=load,
        activity_type=activity_type,
    )


def at(day: date, hour: int = 0, minute: int = 0) -> datetime:
    """UTC datetime on a day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


def days_before(day: date, count: int) -> date:
    return day - timedelta(days=count)
