from __future__ import annotations
import datetime
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from algorithms import MathTools
from localization import Translator, translator as default_translator

logger = logging.getLogger(__name__)

DATE_FORMAT = "%b %d %Y"
FIELD_COUNT = 5
MAX_CHART_POINTS = 5


class MalformedInputError(ValueError):
    """Raised when workout rows cannot be turned into records."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class FieldCountError(MalformedInputError):
    """A row did not split into exactly five comma separated fields."""


class InvalidRepCountError(ValueError):
    """Raised when a rep count makes the Brzycki denominator non-positive."""


class PipelineState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass
class WorkoutRecord:
    """One logged set.

    ``estimated_max`` starts at zero and is written by the metric stage.
    """

    id: int
    timestamp: int
    display_date: str
    exercise_name: str
    sets: int
    reps: int
    weight: float
    estimated_max: int = 0


@dataclass(frozen=True)
class ExerciseSummary:
    exercise_name: str
    best_estimated_max: int
    record_count: int

    def record_text(self, tr: Translator | None = None) -> str:
        return (tr or default_translator).record_count_text(self.record_count)

    def as_dict(self) -> dict:
        return {
            "exercise": self.exercise_name,
            "best_estimated_max": self.best_estimated_max,
            "record_count": self.record_count,
        }


@dataclass(frozen=True)
class ChartPoint:
    timestamp: int
    label: str
    value: int


@dataclass(frozen=True)
class ChartSeries:
    """Up to five date-labelled estimated maxes, oldest first."""

    exercise_name: str
    points: tuple[ChartPoint, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, idx: int) -> ChartPoint:
        return self.points[idx]

    @property
    def labels(self) -> List[str]:
        return [p.label for p in self.points]

    @property
    def values(self) -> List[int]:
        return [p.value for p in self.points]

    def as_list(self) -> List[dict]:
        return [{"date": p.label, "value": p.value} for p in self.points]


def _parse_timestamp(text: str, date_format: str, tz: datetime.tzinfo) -> int:
    dt = datetime.datetime.strptime(text, date_format).replace(tzinfo=tz)
    return int(dt.timestamp()) * 1000


def format_label(timestamp: int, tz: datetime.tzinfo = datetime.timezone.utc) -> str:
    """Return the short month/day label used under the chart, e.g. ``Oct 4``."""
    dt = datetime.datetime.fromtimestamp(timestamp / 1000, tz)
    return f"{dt:%b} {dt.day}"


def _positive(value: str, kind: type, field: str, line_number: int):
    try:
        number = kind(value)
    except ValueError:
        raise MalformedInputError(f"{field} {value!r} is not a number", line_number)
    if not math.isfinite(number):
        raise MalformedInputError(f"{field} {value!r} is not finite", line_number)
    if number <= 0:
        raise MalformedInputError(f"{field} must be positive", line_number)
    return number


def parse_rows(
    rows: Iterable[str],
    date_format: str = DATE_FORMAT,
    tz: datetime.tzinfo = datetime.timezone.utc,
    start_id: int = 1,
) -> List[WorkoutRecord]:
    """Turn ``date,exercise,sets,reps,weight`` lines into records.

    Every line is checked for five fields before any record is built, so a
    failure never yields a partial result.
    """
    lines = [line.rstrip("\r\n") for line in rows]
    while lines and not lines[-1].strip():
        lines.pop()
    split_rows = []
    for number, line in enumerate(lines, start=1):
        fields = line.split(",")
        if len(fields) != FIELD_COUNT:
            raise FieldCountError(
                f"expected {FIELD_COUNT} fields, got {len(fields)}", number
            )
        split_rows.append([f.strip() for f in fields])

    records: List[WorkoutRecord] = []
    for number, (date, name, sets, reps, weight) in enumerate(split_rows, start=1):
        try:
            timestamp = _parse_timestamp(date, date_format, tz)
        except ValueError:
            raise MalformedInputError(f"unparseable date {date!r}", number)
        if not name:
            raise MalformedInputError("exercise name is empty", number)
        records.append(
            WorkoutRecord(
                id=start_id + number - 1,
                timestamp=timestamp,
                display_date=date,
                exercise_name=name,
                sets=_positive(sets, int, "sets", number),
                reps=_positive(reps, int, "reps", number),
                weight=_positive(weight, float, "weight", number),
            )
        )
    return records


def estimated_max(weight: float, reps: int) -> int:
    """Brzycki estimate truncated and rounded down to a multiple of five."""
    if reps < 1 or MathTools.brzycki_denominator(reps) <= 0:
        raise InvalidRepCountError(
            f"cannot estimate a max from {reps} reps"
        )
    return MathTools.round_down_to_multiple(
        MathTools.brzycki_1rm(weight, reps), MathTools.ROUNDING_INCREMENT
    )


def compute_estimated_max(record: WorkoutRecord) -> int:
    """Write and return the estimated max for ``record``."""
    record.estimated_max = estimated_max(record.weight, record.reps)
    return record.estimated_max


def build_exercise_summaries(
    records: Iterable[WorkoutRecord],
) -> Dict[str, ExerciseSummary]:
    summaries: Dict[str, ExerciseSummary] = {}
    for rec in records:
        current = summaries.get(rec.exercise_name)
        if current is None:
            summaries[rec.exercise_name] = ExerciseSummary(
                rec.exercise_name, rec.estimated_max, 1
            )
        elif rec.estimated_max > current.best_estimated_max:
            summaries[rec.exercise_name] = replace(
                current, best_estimated_max=rec.estimated_max, record_count=1
            )
        elif rec.estimated_max == current.best_estimated_max:
            summaries[rec.exercise_name] = replace(
                current, record_count=current.record_count + 1
            )
    return summaries


def build_chart_series(
    exercise_name: str,
    records: Iterable[WorkoutRecord],
    tz: datetime.tzinfo = datetime.timezone.utc,
) -> ChartSeries:
    """Return the best estimated max of the five most recent dates.

    Records are scanned newest first and the scan stops at the first record
    of a sixth distinct date.
    """
    matching = [r for r in records if r.exercise_name == exercise_name]
    newest_first = sorted(matching, key=lambda r: r.timestamp, reverse=True)
    best: Dict[int, int] = {}
    for rec in newest_first:
        if rec.timestamp in best:
            if rec.estimated_max > best[rec.timestamp]:
                best[rec.timestamp] = rec.estimated_max
        elif len(best) >= MAX_CHART_POINTS:
            break
        else:
            best[rec.timestamp] = rec.estimated_max
    points = tuple(
        ChartPoint(ts, format_label(ts, tz), value)
        for ts, value in sorted(best.items())
    )
    return ChartSeries(exercise_name, points)


class MetricPipeline:
    """Owns the workout records and the values derived from them.

    The pipeline starts ``UNINITIALIZED``; :meth:`compute_estimated_maxes` is
    the only transition to ``READY``. Ingesting more rows moves it back.
    """

    def __init__(self, date_format: str = DATE_FORMAT, timezone: str = "UTC") -> None:
        self.date_format = date_format
        self.tz = ZoneInfo(timezone)
        self.state = PipelineState.UNINITIALIZED
        self._records: Dict[int, WorkoutRecord] = {}
        self._summaries: Dict[str, ExerciseSummary] = {}

    @classmethod
    def from_settings(cls, settings) -> "MetricPipeline":
        return cls(settings.date_format, settings.timezone)

    @property
    def has_computed(self) -> bool:
        return self.state is PipelineState.READY

    @property
    def is_empty(self) -> bool:
        return not self._records

    def ingest(self, rows: Iterable[str] | str, strict: bool = False) -> List[WorkoutRecord]:
        """Add rows to the store and return the new records.

        A row with the wrong number of fields rejects the whole input and an
        empty list is returned; with ``strict`` the error is raised instead.
        Unparseable dates and numbers always raise.
        """
        if isinstance(rows, str):
            rows = rows.splitlines()
        start_id = max(self._records, default=0) + 1
        try:
            records = parse_rows(rows, self.date_format, self.tz, start_id)
        except FieldCountError as e:
            if strict:
                raise
            logger.warning("Rejected workout input: %s", e)
            return []
        for rec in records:
            self._records[rec.id] = rec
        if records:
            self.state = PipelineState.UNINITIALIZED
        logger.info("Ingested %d workout records", len(records))
        return [replace(r) for r in records]

    def load_csv(self, path: str, strict: bool = False) -> List[WorkoutRecord]:
        with open(path, "r", encoding="utf-8") as f:
            return self.ingest(f.read(), strict=strict)

    def compute_estimated_maxes(self) -> None:
        for rec in self._records.values():
            compute_estimated_max(rec)
        self._summaries = build_exercise_summaries(self._records.values())
        self.state = PipelineState.READY
        logger.info(
            "Computed estimated maxes for %d records across %d exercises",
            len(self._records),
            len(self._summaries),
        )

    def discard(self, ids: Iterable[int]) -> None:
        """Drop records by id; derived values must be recomputed afterwards."""
        for rid in ids:
            self._records.pop(rid, None)
        self.state = PipelineState.UNINITIALIZED

    def records(self) -> List[WorkoutRecord]:
        return [replace(r) for r in self._records.values()]

    def exercise_summaries(self) -> Dict[str, ExerciseSummary]:
        """Return summaries keyed by exercise name in first-seen order.

        Before the metric stage has run this returns whatever was built
        previously, which is empty for a fresh pipeline.
        """
        if not self.has_computed:
            logger.debug("Estimated maxes not computed; returning cached summaries")
            return dict(self._summaries)
        self._summaries = build_exercise_summaries(self._records.values())
        return dict(self._summaries)

    def exercise_summary(self, exercise_name: str) -> Optional[ExerciseSummary]:
        return self.exercise_summaries().get(exercise_name)

    def chart_series(self, exercise_name: str) -> ChartSeries:
        if not self.has_computed:
            logger.debug("Building chart series for %s before metrics were computed", exercise_name)
        return build_chart_series(exercise_name, self._records.values(), self.tz)
