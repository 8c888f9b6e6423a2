"""Reader for Apple Health ``export.xml`` files."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import List, Optional

from .exceptions import ExportParseError
from .models import RawSample, SampleKind, SleepInterval, SleepStage, WorkoutRecord
from .source import InMemorySampleSource

logger = logging.getLogger(__name__)

QUANTITY_KINDS = {
    "HKQuantityTypeIdentifierHeartRate": SampleKind.HEART_RATE,
    "HKQuantityTypeIdentifierRestingHeartRate": SampleKind.RESTING_HEART_RATE,
    "HKQuantityTypeIdentifierHeartRateVariabilitySDNN": SampleKind.HRV,
}

SLEEP_ANALYSIS = "HKCategoryTypeIdentifierSleepAnalysis"

SLEEP_STAGES = {
    "HKCategoryValueSleepAnalysisInBed": SleepStage.IN_BED,
    "HKCategoryValueSleepAnalysisAsleep": SleepStage.UNSPECIFIED,
    "HKCategoryValueSleepAnalysisAsleepUnspecified": SleepStage.UNSPECIFIED,
    "HKCategoryValueSleepAnalysisAwake": SleepStage.AWAKE,
    "HKCategoryValueSleepAnalysisAsleepCore": SleepStage.CORE,
    "HKCategoryValueSleepAnalysisAsleepDeep": SleepStage.DEEP,
    "HKCategoryValueSleepAnalysisAsleepREM": SleepStage.REM,
}

WORKOUT_TYPES = {
    "HKWorkoutActivityTypeRunning": "run",
    "HKWorkoutActivityTypeCycling": "ride",
    "HKWorkoutActivityTypeSwimming": "swim",
    "HKWorkoutActivityTypeWalking": "walk",
    "HKWorkoutActivityTypeTraditionalStrengthTraining": "workout",
    "HKWorkoutActivityTypeFunctionalStrengthTraining": "workout",
}

ACTIVE_ENERGY = "HKQuantityTypeIdentifierActiveEnergyBurned"
HEART_RATE = "HKQuantityTypeIdentifierHeartRate"
DISTANCE_TYPES = (
    "HKQuantityTypeIdentifierDistanceWalkingRunning",
    "HKQuantityTypeIdentifierDistanceCycling",
    "HKQuantityTypeIdentifierDistanceSwimming",
)


@dataclass
class HealthExport:
    """Everything read from one export file."""
    samples: List[RawSample] = field(default_factory=list)
    sleep_intervals: List[SleepInterval] = field(default_factory=list)
    workouts: List[WorkoutRecord] = field(default_factory=list)
    skipped: int = 0

    def to_source(self, tz: tzinfo) -> InMemorySampleSource:
        return InMemorySampleSource(
            tz,
            samples=self.samples,
            sleep_intervals=self.sleep_intervals,
            workouts=self.workouts,
        )

    @property
    def is_empty(self) -> bool:
        return not (self.samples or self.sleep_intervals or self.workouts)


def parse_health_datetime(value: str) -> Optional[datetime]:
    if not value:
        return None
    formats = [
        "%Y-%m-%d %H:%M:%S %z",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S",
    ]
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _to_kcal(value: Optional[float], unit: str) -> Optional[float]:
    if value is None:
        return None
    u = (unit or "").lower()
    if u in {"cal", "smallcalorie"}:
        return value / 1000.0
    if u == "kj":
        return value / 4.184
    return value


def _to_km(value: Optional[float], unit: str) -> Optional[float]:
    if value is None:
        return None
    u = (unit or "").lower()
    if u in {"m", "meter", "meters"}:
        return value / 1000.0
    if u in {"mi", "mile", "miles"}:
        return value * 1.60934
    return value


def _to_minutes(value: Optional[float], unit: str) -> Optional[float]:
    if value is None:
        return None
    u = (unit or "min").lower()
    if u in {"s", "sec"}:
        return value / 60
    if u in {"hr", "h"}:
        return value * 60
    return value


def _parse_record(rec: ET.Element, export: HealthExport) -> None:
    record_type = rec.attrib.get("type", "")

    if record_type in QUANTITY_KINDS:
        timestamp = parse_health_datetime(rec.attrib.get("startDate", ""))
        value = _to_float(rec.attrib.get("value"))
        if timestamp is None or value is None:
            export.skipped += 1
            logger.debug("Skipping unparseable %s record", record_type)
            return
        export.samples.append(RawSample(timestamp, value, QUANTITY_KINDS[record_type]))
        return

    if record_type == SLEEP_ANALYSIS:
        start = parse_health_datetime(rec.attrib.get("startDate", ""))
        end = parse_health_datetime(rec.attrib.get("endDate", ""))
        stage = SLEEP_STAGES.get(rec.attrib.get("value", ""))
        if start is None or end is None or stage is None:
            export.skipped += 1
            logger.debug("Skipping unparseable sleep record %s", rec.attrib.get("value"))
            return
        export.sleep_intervals.append(SleepInterval(start, end, stage))


def _parse_workout(elem: ET.Element) -> Optional[WorkoutRecord]:
    start = parse_health_datetime(elem.attrib.get("startDate", ""))
    end = parse_health_datetime(elem.attrib.get("endDate", ""))
    if start is None:
        return None
    if end is None:
        minutes = _to_minutes(_to_float(elem.attrib.get("duration")), elem.attrib.get("durationUnit", "min"))
        if minutes is None:
            return None
        end = start + timedelta(minutes=minutes)

    energy = _to_kcal(
        _to_float(elem.attrib.get("totalEnergyBurned")),
        elem.attrib.get("totalEnergyBurnedUnit", "kcal"),
    )
    distance = _to_km(
        _to_float(elem.attrib.get("totalDistance")),
        elem.attrib.get("totalDistanceUnit", "km"),
    )
    average_hr = None
    source_id = None

    # Newer exports carry totals as child elements
    for child in elem:
        if child.tag == "WorkoutStatistics":
            stat_type = child.attrib.get("type", "")
            unit = child.attrib.get("unit", "")
            if stat_type == ACTIVE_ENERGY and energy is None:
                energy = _to_kcal(_to_float(child.attrib.get("sum")), unit)
            elif stat_type == HEART_RATE:
                average_hr = _to_float(child.attrib.get("average"))
            elif stat_type in DISTANCE_TYPES and distance is None:
                distance = _to_km(_to_float(child.attrib.get("sum")), unit)
        elif child.tag == "MetadataEntry" and child.attrib.get("key") == "HKExternalUUID":
            source_id = child.attrib.get("value") or None

    activity_type = WORKOUT_TYPES.get(elem.attrib.get("workoutActivityType", ""), "other")
    source_name = elem.attrib.get("sourceName")

    return WorkoutRecord(
        start=start,
        end=end,
        activity_type=activity_type,
        title=f"{activity_type.title()} ({source_name})" if source_name else activity_type.title(),
        source_id=source_id,
        energy_burned_kcal=energy,
        average_heart_rate=average_hr,
        distance_km=distance,
    )


def load_apple_health_export(path: str) -> HealthExport:
    """
    Read heart rate, HRV, sleep and workouts from an Apple Health export.

    The file is read incrementally and each record is discarded once parsed,
    so multi-gigabyte exports do not have to fit in memory as a tree.

    Args:
        path: Path to export.xml

    Returns:
        HealthExport; records that cannot be parsed are counted in ``skipped``

    Raises:
        ExportParseError: If the file is missing or is not valid XML
    """
    export_path = Path(path)
    if not export_path.exists():
        raise ExportParseError("Export file not found", path=str(export_path))

    export = HealthExport()
    root = None
    depth = 0
    try:
        for event, elem in ET.iterparse(str(export_path), events=("start", "end")):
            if event == "start":
                if root is None:
                    root = elem
                    if root.tag != "HealthData":
                        raise ExportParseError("Not a valid Apple Health export", path=str(export_path))
                depth += 1
                continue

            depth -= 1
            if elem.tag == "Record":
                _parse_record(elem, export)
                elem.clear()
            elif elem.tag == "Workout":
                workout = _parse_workout(elem)
                if workout is None:
                    export.skipped += 1
                    logger.debug("Skipping workout without usable dates")
                else:
                    export.workouts.append(workout)
                elem.clear()
            # Finished top-level elements are dropped from the tree
            if depth == 1:
                root.clear()
    except ET.ParseError as e:
        raise ExportParseError(f"Not a valid Apple Health export: {e}", path=str(export_path)) from e

    logger.info(
        "Read %d samples, %d sleep intervals, %d workouts from %s (%d skipped)",
        len(export.samples), len(export.sleep_intervals), len(export.workouts),
        export_path, export.skipped,
    )
    return export
