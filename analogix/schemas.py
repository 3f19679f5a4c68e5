"""
Record types and their two-way storage mappings.

Every record type has one schema with an encode/decode pair per tier:
``to_cache``/``from_cache`` for the local JSON cache (camelCase keys, ISO
dates) and ``to_row``/``from_row`` for the remote tables (snake_case
columns keyed to a user id). Decoding checks every field and raises
DeserializationError, so format drift is caught here and nowhere else.
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .consts import (
    DEADLINE_PRIORITIES,
    DEFAULT_SESSIONS_TARGET,
    DEFAULT_STATS,
    EVENT_SOURCES,
    EVENT_TYPES,
    MAX_SESSIONS_TARGET,
    TIMER_PHASES,
)
from .errors import DeserializationError
from .utils import to_dt, to_iso


# -------------------------------
# Records
# -------------------------------

@dataclass
class Event:
    id: str
    title: str
    date: datetime
    type: str = "event"
    subject: Optional[str] = None
    description: Optional[str] = None
    source: str = "manual"


@dataclass
class Deadline:
    id: str
    title: str
    due_date: datetime
    subject: Optional[str] = None
    priority: str = "medium"


@dataclass
class UserStats:
    quizzes_done: int = 0
    current_streak: int = 0
    accuracy: int = 0
    conversations_count: int = 0
    top_subject: str = "None"
    subject_counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class TimerSettings:
    study: int
    rest: int  # Serialized as "break"

    def duration(self, phase: str) -> int:
        return self.study if phase == "study" else self.rest


@dataclass
class TimerState:
    phase: str
    time_left: int
    is_active: bool
    sessions_completed: int
    settings: TimerSettings
    last_tick: float  # Epoch seconds of the last save
    sessions_target: int = DEFAULT_SESSIONS_TARGET


# -------------------------------
# Field helpers
# -------------------------------

def _require(data, key):
    if not isinstance(data, dict):
        raise DeserializationError(f"Expected an object, got {type(data).__name__}")
    if data.get(key) is None:
        raise DeserializationError(f"Missing field '{key}'")
    return data[key]


def _choice(value, allowed, name):
    if value not in allowed:
        raise DeserializationError(f"Invalid {name} '{value}'")
    return value


def _timestamp(value, name):
    try:
        parsed = to_dt(value)
    except (ValueError, TypeError, OverflowError) as exc:
        raise DeserializationError(f"Invalid {name} '{value}'") from exc
    if parsed is None:
        raise DeserializationError(f"Missing field '{name}'")
    return parsed


def _non_negative_int(value, name):
    if isinstance(value, bool):
        raise DeserializationError(f"Invalid {name} '{value}'")
    try:
        number = int(value)
    except (ValueError, TypeError, OverflowError) as exc:
        raise DeserializationError(f"Invalid {name} '{value}'") from exc
    return max(0, number)


def _optional_str(value):
    return None if value is None else str(value)


# -------------------------------
# Schemas
# -------------------------------

class RecordSchema:
    """Base mapping; subclasses implement the per-record encode/decode pairs."""

    def to_cache(self, record) -> dict:
        raise NotImplementedError

    def from_cache(self, data) -> object:
        raise NotImplementedError

    def to_row(self, record, user_id) -> dict:
        raise NotImplementedError

    def from_row(self, row) -> object:
        raise NotImplementedError

    def encode_many(self, records) -> str:
        return json.dumps([self.to_cache(r) for r in records])

    def decode_many(self, raw: str) -> List[object]:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise DeserializationError(f"Cache entry is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise DeserializationError("Cache entry is not a list")
        return [self.from_cache(item) for item in data]

    def encode_one(self, record) -> str:
        return json.dumps(self.to_cache(record))

    def decode_one(self, raw: str):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise DeserializationError(f"Cache entry is not valid JSON: {exc}") from exc
        return self.from_cache(data)


class EventSchema(RecordSchema):

    def to_cache(self, event):
        return {
            "id": event.id,
            "title": event.title,
            "date": to_iso(event.date),
            "type": event.type,
            "subject": event.subject,
            "description": event.description,
            "source": event.source,
        }

    def from_cache(self, data):
        return Event(
            id=str(_require(data, "id")),
            title=str(_require(data, "title")),
            date=_timestamp(_require(data, "date"), "date"),
            type=_choice(data.get("type", "event"), EVENT_TYPES, "type"),
            subject=_optional_str(data.get("subject")),
            description=_optional_str(data.get("description")),
            source=_choice(data.get("source", "manual"), EVENT_SOURCES, "source"),
        )

    def to_row(self, event, user_id):
        row = self.to_cache(event)
        row["user_id"] = user_id
        return row

    def from_row(self, row):
        data = dict(row)
        # Rows written before the source column existed came from imports
        if data.get("source") is None:
            data["source"] = "import"
        return self.from_cache(data)


class DeadlineSchema(RecordSchema):

    def to_cache(self, deadline):
        return {
            "id": deadline.id,
            "title": deadline.title,
            "dueDate": to_iso(deadline.due_date),
            "subject": deadline.subject,
            "priority": deadline.priority,
        }

    def from_cache(self, data):
        return Deadline(
            id=str(_require(data, "id")),
            title=str(_require(data, "title")),
            due_date=_timestamp(_require(data, "dueDate"), "dueDate"),
            subject=_optional_str(data.get("subject")),
            priority=_choice(data.get("priority", "medium"), DEADLINE_PRIORITIES, "priority"),
        )

    def to_row(self, deadline, user_id):
        return {
            "id": deadline.id,
            "user_id": user_id,
            "title": deadline.title,
            "due_date": to_iso(deadline.due_date),
            "subject": deadline.subject,
            "priority": deadline.priority,
        }

    def from_row(self, row):
        return Deadline(
            id=str(_require(row, "id")),
            title=str(_require(row, "title")),
            due_date=_timestamp(_require(row, "due_date"), "due_date"),
            subject=_optional_str(row.get("subject")),
            priority=_choice(row.get("priority", "medium"), DEADLINE_PRIORITIES, "priority"),
        )


class StatsSchema(RecordSchema):

    def to_cache(self, stats):
        return {
            "quizzesDone": stats.quizzes_done,
            "currentStreak": stats.current_streak,
            "accuracy": stats.accuracy,
            "conversationsCount": stats.conversations_count,
            "topSubject": stats.top_subject,
            "subjectCounts": dict(stats.subject_counts),
        }

    def from_cache(self, data):
        if not isinstance(data, dict):
            raise DeserializationError("Stats entry is not an object")
        # Missing keys fall back to defaults
        merged = {**DEFAULT_STATS, **data}
        counts = merged["subjectCounts"]
        if not isinstance(counts, dict):
            raise DeserializationError("Invalid subjectCounts")
        return UserStats(
            quizzes_done=_non_negative_int(merged["quizzesDone"], "quizzesDone"),
            current_streak=_non_negative_int(merged["currentStreak"], "currentStreak"),
            accuracy=_non_negative_int(merged["accuracy"], "accuracy"),
            conversations_count=_non_negative_int(
                merged["conversationsCount"], "conversationsCount"
            ),
            top_subject=str(merged["topSubject"]),
            subject_counts={
                str(k): _non_negative_int(v, "subjectCounts") for k, v in counts.items()
            },
        )

    def to_row(self, stats, user_id):
        return {
            "user_id": user_id,
            "quizzes_done": stats.quizzes_done,
            "current_streak": stats.current_streak,
            "accuracy": stats.accuracy,
            "conversations_count": stats.conversations_count,
            "top_subject": stats.top_subject,
            "subject_counts": dict(stats.subject_counts),
            "updated_at": to_iso(datetime.now()),
        }

    def from_row(self, row):
        return self.from_cache({
            "quizzesDone": row.get("quizzes_done") or 0,
            "currentStreak": row.get("current_streak") or 0,
            "accuracy": row.get("accuracy") or 0,
            "conversationsCount": row.get("conversations_count") or 0,
            "topSubject": row.get("top_subject") or "None",
            "subjectCounts": row.get("subject_counts") or {},
        })


class TimerSchema(RecordSchema):
    """Timer state lives only in the local cache, so there is no row mapping."""

    def __init__(self, default_settings):
        self.default_settings = default_settings

    def to_cache(self, state):
        return {
            "phase": state.phase,
            "timeLeft": state.time_left,
            "isActive": state.is_active,
            "sessionsCompleted": state.sessions_completed,
            "sessionsTarget": state.sessions_target,
            "settings": {"study": state.settings.study, "break": state.settings.rest},
            "lastTick": state.last_tick,
        }

    def from_cache(self, data):
        if not isinstance(data, dict):
            raise DeserializationError("Timer entry is not an object")
        numbers = [data.get("timeLeft"), data.get("sessionsCompleted"), data.get("sessionsTarget")]
        if isinstance(data.get("settings"), dict):
            numbers += [data["settings"].get("study"), data["settings"].get("break")]
        if any(isinstance(n, float) and not math.isfinite(n) for n in numbers):
            raise DeserializationError("Timer entry holds a non-finite number")
        settings = self._settings(data.get("settings"))
        phase = _choice(data.get("phase", "study"), TIMER_PHASES, "phase")
        time_left = data.get("timeLeft")
        if time_left is None:
            time_left = settings.duration(phase)
        last_tick = data.get("lastTick")
        if not _is_number(last_tick):
            raise DeserializationError(f"Invalid lastTick '{last_tick}'")
        return TimerState(
            phase=phase,
            time_left=_non_negative_int(time_left, "timeLeft"),
            is_active=bool(data.get("isActive", False)),
            sessions_completed=_non_negative_int(
                data.get("sessionsCompleted", 0), "sessionsCompleted"
            ),
            settings=settings,
            last_tick=float(last_tick),
            sessions_target=clamp_sessions_target(data.get("sessionsTarget")),
        )

    def _settings(self, data):
        base = self.default_settings
        if not isinstance(data, dict):
            return TimerSettings(study=base.study, rest=base.rest)
        study = data.get("study")
        rest = data.get("break")
        return TimerSettings(
            study=max(1, int(study)) if _is_number(study) else base.study,
            rest=max(1, int(rest)) if _is_number(rest) else base.rest,
        )


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def clamp_sessions_target(value):
    """Clamp a sessions target to 1..MAX_SESSIONS_TARGET, defaulting when unreadable."""
    try:
        number = int(value)
    except (ValueError, TypeError, OverflowError):
        return DEFAULT_SESSIONS_TARGET
    return min(MAX_SESSIONS_TARGET, max(1, number))
