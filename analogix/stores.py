"""
Dual-tier stores for the user's events, deadlines, stats and subject notes.

The remote tier is authoritative whenever it answers; the local cache is
always written and is what the user sees while offline. Remote failures are
logged and absorbed here and never reach the caller.
"""

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime

from .consts import (
    DEADLINES_KEY,
    DEADLINES_TABLE,
    DEADLINE_PRIORITIES,
    EVENTS_KEY,
    EVENTS_TABLE,
    EVENTS_UPDATED,
    DEADLINES_UPDATED,
    EVENT_TYPES,
    PREFERENCES_KEY,
    STATS_KEY,
    STATS_TABLE,
    STATS_UPDATED,
    SUBJECTS_KEY,
    SUBJECTS_UPDATED,
)
from .errors import DeserializationError, RemoteUnavailable
from .schemas import (
    Deadline,
    DeadlineSchema,
    Event,
    EventSchema,
    StatsSchema,
    UserStats,
)
from .term_data import normalize_region
from .utils import to_iso

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Owner of one local cache entry.

    Subclasses set ``cache_key`` and ``topic``.
    """

    cache_key = None
    topic = None

    def __init__(self, cache, bus):
        self.cache = cache
        self.bus = bus

    def commit_local(self, raw):
        """Write ``raw`` under the store's cache key, then publish the store's topic."""
        try:
            self.cache.set(self.cache_key, raw)
        except OSError:
            logger.exception("Could not write local cache entry %s", self.cache_key)
        self.bus.publish(self.topic)


class TieredStore(LocalStore):
    """
    Local store with a remote tier in front of it.

    Every write goes remote first, best effort, and then to the local cache,
    which is authoritative for the offline view.

    Args:
        remote (RemoteStore): Remote tier; may raise RemoteUnavailable.
        cache (LocalCache): Local tier.
        current_user (callable): Returns the signed-in user id or None.
        bus (NotificationBus): Receives the store's topic after every write.
    """

    table = None

    def __init__(self, remote, cache, current_user, bus):
        super().__init__(cache, bus)
        self.remote = remote
        self.current_user = current_user

    def write_remote_best_effort(self, operation):
        """
        Run ``operation(user_id)`` against the remote tier if a user is signed in.

        Returns:
            bool: True if the remote write went through.
        """
        user_id = self.current_user()
        if user_id is None:
            return False
        try:
            operation(user_id)
            return True
        except RemoteUnavailable as exc:
            logger.warning("Remote write to %s failed, keeping local copy: %s", self.table, exc)
            return False


class DualTierStore(TieredStore):
    """
    Shared read and write protocol of a user-owned collection.

    Subclasses set ``table``, ``cache_key``, ``topic``, ``schema``,
    ``order_by`` and ``sort_key``.
    """

    schema = None
    order_by = None

    @staticmethod
    def sort_key(record):
        raise NotImplementedError

    # --- Read path ---

    def get_all(self):
        """
        Return the whole collection.

        A signed-in user gets the remote rows when the remote answers with at
        least one row. Otherwise (signed out, remote failure, or an empty
        remote) the local snapshot is returned; an unreadable snapshot reads
        as an empty list.
        """
        user_id = self.current_user()
        if user_id is not None:
            try:
                rows = self.remote.select(self.table, {"user_id": user_id}, order_by=self.order_by)
                if rows:
                    return [self.schema.from_row(row) for row in rows]
            except RemoteUnavailable as exc:
                logger.warning("Remote read of %s failed, using local cache: %s", self.table, exc)
            except DeserializationError as exc:
                logger.warning("Remote rows of %s are malformed, using local cache: %s", self.table, exc)
        return self._read_local()

    def _read_local(self):
        raw = self.cache.get(self.cache_key)
        if not raw:
            return []
        try:
            return self.schema.decode_many(raw)
        except DeserializationError as exc:
            logger.warning("Local cache entry %s is corrupt, treating as empty: %s", self.cache_key, exc)
            return []

    # --- Write path ---

    def write_local_authoritative(self, records):
        """Overwrite the local snapshot with ``records`` and publish the store's topic."""
        records = sorted(records, key=self.sort_key)
        self.commit_local(self.schema.encode_many(records))
        return records

    def _append(self, new_records):
        current = self.get_all()
        seen = {record.id for record in current}
        merged = list(current)
        for record in new_records:
            # Ids are unique within a collection
            if record.id not in seen:
                seen.add(record.id)
                merged.append(record)
        return self.write_local_authoritative(merged)

    def add_multiple(self, records):
        records = list(records)
        if not records:
            return self.get_all()

        def insert(user_id):
            self.remote.insert(self.table, [self.schema.to_row(r, user_id) for r in records])

        self.write_remote_best_effort(insert)
        return self._append(records)

    def remove(self, record_id):
        """Delete one record; the local snapshot drops it even if the remote delete fails."""
        self.write_remote_best_effort(
            lambda user_id: self.remote.delete(self.table, {"id": record_id, "user_id": user_id})
        )
        remaining = [r for r in self.get_all() if r.id != record_id]
        return self.write_local_authoritative(remaining)

    def reset(self):
        """Account-level reset: drop every record of the signed-in user and the local snapshot."""
        self.write_remote_best_effort(
            lambda user_id: self.remote.delete(self.table, {"user_id": user_id})
        )
        return self.write_local_authoritative([])


class EventStore(DualTierStore):
    table = EVENTS_TABLE
    cache_key = EVENTS_KEY
    topic = EVENTS_UPDATED
    schema = EventSchema()
    order_by = "date"

    @staticmethod
    def sort_key(event):
        return event.date

    def add(self, event):
        return self.add_multiple([event])

    def create(self, title, date, type="event", subject=None, description=None):
        """Build and store a manually entered event; returns it."""
        if type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type '{type}'")
        if not title:
            raise ValueError("Event title is required")
        event = Event(
            id=uuid.uuid4().hex,
            title=title,
            date=date,
            type=type,
            subject=subject,
            description=description,
            source="manual",
        )
        self.add(event)
        return event


class DeadlineStore(DualTierStore):
    table = DEADLINES_TABLE
    cache_key = DEADLINES_KEY
    topic = DEADLINES_UPDATED
    schema = DeadlineSchema()
    order_by = "due_date"

    @staticmethod
    def sort_key(deadline):
        return deadline.due_date

    def add(self, title, due_date, subject=None, priority="medium"):
        """Store a new deadline under a fresh id and return it."""
        if priority not in DEADLINE_PRIORITIES:
            raise ValueError(f"Unknown priority '{priority}'")
        if not title:
            raise ValueError("Deadline title is required")
        deadline = Deadline(
            id=uuid.uuid4().hex,
            title=title,
            due_date=due_date,
            subject=subject,
            priority=priority,
        )
        self.add_multiple([deadline])
        return deadline


class StatsStore(TieredStore):
    """
    Aggregate study stats: one record per user, same dual-tier rules.

    The remote row is upserted (update, then insert when nothing matched).
    """

    table = STATS_TABLE
    cache_key = STATS_KEY
    topic = STATS_UPDATED
    schema = StatsSchema()

    def get(self):
        user_id = self.current_user()
        if user_id is not None:
            try:
                rows = self.remote.select(self.table, {"user_id": user_id})
                if rows:
                    return self.schema.from_row(rows[0])
            except (RemoteUnavailable, DeserializationError) as exc:
                logger.warning("Remote stats unavailable, using local cache: %s", exc)

        raw = self.cache.get(self.cache_key)
        if not raw:
            return UserStats()
        try:
            return self.schema.decode_one(raw)
        except DeserializationError as exc:
            logger.warning("Local stats entry is corrupt, using defaults: %s", exc)
            return UserStats()

    def update(self, **changes):
        updated = replace(self.get(), **changes)

        def upsert(user_id):
            row = self.schema.to_row(updated, user_id)
            patch = {k: v for k, v in row.items() if k != "user_id"}
            if not self.remote.update(self.table, {"user_id": user_id}, patch):
                self.remote.insert(self.table, [row])

        self.write_remote_best_effort(upsert)
        self.commit_local(self.schema.encode_one(updated))
        return updated

    def add_quiz(self, score):
        current = self.get()
        total = current.quizzes_done + 1
        accuracy = round((current.accuracy * current.quizzes_done + score) / total)
        return self.update(quizzes_done=total, accuracy=accuracy)

    def record_chat(self, subject):
        current = self.get()
        counts = dict(current.subject_counts)
        counts[subject] = counts.get(subject, 0) + 1
        top, best = current.top_subject, 0
        for name, count in counts.items():
            if count > best:
                top, best = name, count
        return self.update(
            conversations_count=current.conversations_count + 1,
            top_subject=top,
            subject_counts=counts,
        )

    def update_streak(self, streak):
        return self.update(current_streak=max(0, int(streak)))


class SubjectStore(LocalStore):
    """Per-subject marks and notes. Local only; there is no remote table."""

    cache_key = SUBJECTS_KEY
    topic = SUBJECTS_UPDATED

    def get_all(self):
        raw = self.cache.get(self.cache_key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Local subject data is corrupt, treating as empty")
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if isinstance(value, dict)}

    def get_subject(self, subject_id):
        subject = {
            "id": subject_id,
            "marks": [],
            "notes": {"content": "", "lastUpdated": to_iso(datetime.now())},
        }
        stored = self.get_all().get(subject_id) or {}
        subject.update(stored)
        if not isinstance(subject["marks"], list):
            subject["marks"] = []
        return subject

    def save_subject(self, subject_id, **data):
        everything = self.get_all()
        subject = {**self.get_subject(subject_id), **data}
        everything[subject_id] = subject
        self.commit_local(json.dumps(everything))
        return subject

    def add_mark(self, subject_id, title, score, total, date=None):
        if total <= 0:
            raise ValueError("Mark total must be positive")
        mark = {
            "id": uuid.uuid4().hex[:9],
            "title": title,
            "score": score,
            "total": total,
            "date": to_iso(date or datetime.now()),
        }
        marks = self.get_subject(subject_id)["marks"] + [mark]
        self.save_subject(subject_id, marks=marks)
        return mark

    def update_notes(self, subject_id, content):
        notes = {"content": content, "lastUpdated": to_iso(datetime.now())}
        return self.save_subject(subject_id, notes=notes)


# -------------------------------
# Stored preferences
# -------------------------------

def get_stored_region(cache):
    """Return the region code saved in the user's preferences, or None."""
    raw = cache.get(PREFERENCES_KEY)
    if not raw:
        return None
    try:
        prefs = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(prefs, dict):
        return None
    return normalize_region(prefs.get("state"))


def set_stored_region(cache, region):
    """Save ``region`` in the user's preferences; returns the canonical code."""
    code = normalize_region(region)
    if code is None:
        raise ValueError(f"Unknown region '{region}'")
    try:
        prefs = json.loads(cache.get(PREFERENCES_KEY) or "{}")
    except ValueError:
        prefs = {}
    if not isinstance(prefs, dict):
        prefs = {}
    prefs["state"] = code
    cache.set(PREFERENCES_KEY, json.dumps(prefs))
    return code
