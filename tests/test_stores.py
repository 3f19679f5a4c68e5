import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from analogix.cache import FileCache, ScopedCache
from analogix.consts import (
    DEADLINES_UPDATED,
    EVENTS_KEY,
    EVENTS_UPDATED,
    STATS_UPDATED,
    SUBJECTS_KEY,
    SUBJECTS_UPDATED,
)
from analogix.errors import RemoteUnavailable
from analogix.extensions import db
from analogix.ics import normalize_import
from analogix.models import TABLES, EventRow, StatsRow
from analogix.remote import SQLAlchemyRemote
from analogix.schemas import Event
from analogix.stores import (
    DeadlineStore,
    EventStore,
    StatsStore,
    SubjectStore,
    get_stored_region,
    set_stored_region,
)


def signed_out():
    return None


def make_event(event_id, title="Essay", day=1):
    return Event(id=event_id, title=title, date=datetime(2026, 3, day, 9, 0), type="assignment")


@pytest.fixture
def local_store(cache, bus):
    remote = MagicMock()
    return EventStore(remote, cache, signed_out, bus)


# ----------------------------------------------------
#              EVENT STORE (LOCAL TIER)
# ----------------------------------------------------

def test_signed_out_store_never_touches_remote(local_store):
    local_store.add(make_event("a"))

    assert [e.id for e in local_store.get_all()] == ["a"]
    local_store.remote.insert.assert_not_called()
    local_store.remote.select.assert_not_called()


def test_import_round_trip(local_store, sample_ics):
    local_store.add_multiple(normalize_import(sample_ics))

    events = local_store.get_all()
    assert len(events) == 2
    assert all(e.source == "import" and e.type == "event" for e in events)


def test_reimport_doubles_events(local_store, sample_ics):
    local_store.add_multiple(normalize_import(sample_ics))
    local_store.add_multiple(normalize_import(sample_ics))
    assert len(local_store.get_all()) == 4


def test_consecutive_reads_are_equal(local_store):
    local_store.add_multiple([make_event("a", day=5), make_event("b", day=2)])
    assert local_store.get_all() == local_store.get_all()


def test_snapshot_is_ordered_by_date(local_store):
    local_store.add_multiple([make_event("late", day=20), make_event("early", day=2)])
    assert [e.id for e in local_store.get_all()] == ["early", "late"]


def test_duplicate_id_is_stored_once(local_store):
    local_store.add(make_event("a"))
    local_store.add(make_event("a", title="Again"))

    events = local_store.get_all()
    assert len(events) == 1
    assert events[0].title == "Essay"


def test_local_cache_holds_full_snapshot(local_store, cache):
    local_store.add(make_event("a"))
    local_store.add(make_event("b"))

    stored = json.loads(cache.get(EVENTS_KEY))
    assert [item["id"] for item in stored] == ["a", "b"]
    assert stored[0]["date"] == "2026-03-01T09:00:00"


def test_remove_drops_event(local_store):
    local_store.add_multiple([make_event("a"), make_event("b")])
    local_store.remove("a")
    assert [e.id for e in local_store.get_all()] == ["b"]


def test_corrupt_cache_reads_as_empty(local_store, cache):
    cache.set(EVENTS_KEY, "{not json")
    assert local_store.get_all() == []

    # The next write replaces the corrupt entry
    local_store.add(make_event("a"))
    assert [e.id for e in local_store.get_all()] == ["a"]


def test_cache_entry_with_bad_field_reads_as_empty(local_store, cache):
    cache.set(EVENTS_KEY, json.dumps([{"id": "a", "title": "x", "date": "2026-03-01", "type": "party"}]))
    assert local_store.get_all() == []


def test_every_write_publishes(local_store, bus):
    received = []
    unsubscribe = bus.subscribe(EVENTS_UPDATED, received.append)

    local_store.add(make_event("a"))
    local_store.add_multiple([make_event("b"), make_event("c")])
    local_store.remove("a")
    unsubscribe()
    local_store.remove("b")

    assert len(received) == 3


def test_create_builds_manual_event(local_store):
    event = local_store.create("Chemistry test", datetime(2026, 5, 4, 10), type="exam", subject="Chemistry")

    assert event.source == "manual"
    assert local_store.get_all() == [event]
    with pytest.raises(ValueError):
        local_store.create("Bad", datetime(2026, 5, 4), type="party")


# ----------------------------------------------------
#              EVENT STORE (REMOTE TIER)
# ----------------------------------------------------

def test_remote_failures_are_absorbed(offline_remote, cache, bus):
    store = EventStore(offline_remote, cache, lambda: 1, bus)

    store.add(make_event("a"))
    store.add(make_event("b"))
    assert [e.id for e in store.get_all()] == ["a", "b"]

    store.remove("a")
    assert [e.id for e in store.get_all()] == ["b"]
    offline_remote.delete.assert_called_once_with("events", {"id": "a", "user_id": 1})


def test_remote_rows_are_authoritative(cache, bus):
    remote = MagicMock()
    remote.select.return_value = [
        {"id": "r1", "user_id": 1, "title": "Remote exam", "date": "2026-06-01T09:00:00",
         "type": "exam", "subject": None, "description": None, "source": None},
    ]
    store = EventStore(remote, cache, lambda: 1, bus)
    cache.set(EVENTS_KEY, json.dumps([{"id": "l1", "title": "Local", "date": "2026-01-01T00:00:00"}]))

    events = store.get_all()
    assert [e.id for e in events] == ["r1"]
    # Rows without a source came from imports
    assert events[0].source == "import"
    remote.select.assert_called_once_with("events", {"user_id": 1}, order_by="date")


def test_empty_remote_falls_back_to_local(cache, bus):
    remote = MagicMock()
    remote.select.return_value = []
    store = EventStore(remote, cache, lambda: 1, bus)
    cache.set(EVENTS_KEY, json.dumps([{"id": "l1", "title": "Local", "date": "2026-01-01T00:00:00"}]))

    assert [e.id for e in store.get_all()] == ["l1"]


def test_sqlalchemy_remote_round_trip(app, auth_client, cache, bus):
    user_id = auth_client["user_id"]
    with app.app_context():
        store = EventStore(SQLAlchemyRemote(db, TABLES), cache, lambda: user_id, bus)
        store.add_multiple([make_event("a", day=9), make_event("b", day=3)])

        assert db.session.query(EventRow).count() == 2
        assert [e.id for e in store.get_all()] == ["b", "a"]

        store.remove("b")
        assert db.session.get(EventRow, "b") is None
        assert [e.id for e in store.get_all()] == ["a"]
        assert [item["id"] for item in json.loads(cache.get(EVENTS_KEY))] == ["a"]


def test_sqlalchemy_errors_become_remote_unavailable(app, cache, bus):
    with app.app_context():
        remote = SQLAlchemyRemote(db, TABLES)
        db.drop_all()
        with pytest.raises(RemoteUnavailable):
            remote.select("events", {"user_id": 1})

        # The store keeps working on the local tier
        store = EventStore(remote, cache, lambda: 1, bus)
        store.add(make_event("a"))
        assert [e.id for e in store.get_all()] == ["a"]


def test_reset_clears_both_tiers(cache, bus):
    remote = MagicMock()
    remote.select.return_value = []
    store = EventStore(remote, cache, lambda: 7, bus)
    store.add(make_event("a"))

    store.reset()
    assert store.get_all() == []
    remote.delete.assert_called_with("events", {"user_id": 7})


# ----------------------------------------------------
#                  DEADLINE STORE
# ----------------------------------------------------

def test_deadline_add_and_remove(cache, bus):
    store = DeadlineStore(MagicMock(), cache, signed_out, bus)
    received = []
    unsubscribe = bus.subscribe(DEADLINES_UPDATED, received.append)

    first = store.add("Lab report", datetime(2026, 8, 2), subject="Physics", priority="high")
    second = store.add("Reading", datetime(2026, 7, 1))

    assert [d.id for d in store.get_all()] == [second.id, first.id]
    assert store.get_all()[1].priority == "high"

    store.remove(first.id)
    assert [d.id for d in store.get_all()] == [second.id]
    assert len(received) == 3
    unsubscribe()


def test_deadline_rejects_unknown_priority(cache, bus):
    store = DeadlineStore(MagicMock(), cache, signed_out, bus)
    with pytest.raises(ValueError):
        store.add("Essay", datetime(2026, 8, 2), priority="urgent")


def test_deadlines_survive_remote_outage(offline_remote, cache, bus):
    store = DeadlineStore(offline_remote, cache, lambda: 1, bus)
    deadline = store.add("Essay", datetime(2026, 8, 2))
    assert [d.id for d in store.get_all()] == [deadline.id]


# ----------------------------------------------------
#                  STATS AND SUBJECTS
# ----------------------------------------------------

def test_stats_quiz_accuracy_is_running_mean(cache, bus):
    store = StatsStore(MagicMock(), cache, signed_out, bus)
    store.add_quiz(80)
    stats = store.add_quiz(100)

    assert stats.quizzes_done == 2
    assert stats.accuracy == 90
    assert store.get() == stats


def test_stats_record_chat_tracks_top_subject(cache, bus):
    store = StatsStore(MagicMock(), cache, signed_out, bus)
    store.record_chat("Maths")
    store.record_chat("History")
    stats = store.record_chat("History")

    assert stats.conversations_count == 3
    assert stats.top_subject == "History"
    assert stats.subject_counts == {"Maths": 1, "History": 2}


def test_stats_upsert_into_remote(app, auth_client, cache, bus):
    user_id = auth_client["user_id"]
    with app.app_context():
        store = StatsStore(SQLAlchemyRemote(db, TABLES), cache, lambda: user_id, bus)
        received = []
        unsubscribe = bus.subscribe(STATS_UPDATED, received.append)

        store.update_streak(3)
        store.update_streak(4)
        unsubscribe()

        row = db.session.get(StatsRow, user_id)
        assert row.current_streak == 4
        assert store.get().current_streak == 4
        assert len(received) == 2


def test_subject_marks_and_notes(cache, bus):
    store = SubjectStore(cache, bus)
    received = []
    unsubscribe = bus.subscribe(SUBJECTS_UPDATED, received.append)

    mark = store.add_mark("maths", "Quiz 1", score=8, total=10)
    store.update_notes("maths", "Revise integrals")
    unsubscribe()

    subject = store.get_subject("maths")
    assert subject["marks"] == [mark]
    assert subject["notes"]["content"] == "Revise integrals"
    assert len(received) == 2
    assert store.get_subject("history")["marks"] == []


def test_stored_region(cache):
    assert get_stored_region(cache) is None
    assert set_stored_region(cache, "vic") == "VIC"
    assert get_stored_region(cache) == "VIC"
    with pytest.raises(ValueError):
        set_stored_region(cache, "Atlantis")


# ----------------------------------------------------
#                  CACHE AND BUS
# ----------------------------------------------------

def test_file_cache_persists_between_instances(tmp_path):
    path = tmp_path / "cache.json"
    FileCache(str(path)).set("k", "v")

    assert FileCache(str(path)).get("k") == "v"
    FileCache(str(path)).remove("k")
    assert FileCache(str(path)).get("k") is None


def test_file_cache_with_corrupt_file_reads_empty(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("garbage")
    cache = FileCache(str(path))

    assert cache.get("k") is None
    cache.set("k", "v")
    assert cache.get("k") == "v"


def test_failing_observer_does_not_stop_others(bus):
    received = []

    def broken(payload):
        raise RuntimeError("observer bug")

    bus.subscribe("topic", broken)
    bus.subscribe("topic", received.append)

    assert bus.publish("topic", "payload") == 1
    assert received == ["payload"]


def test_unsubscribe_releases_observer(bus):
    unsubscribe = bus.subscribe("topic", lambda payload: None)
    assert bus.subscriber_count("topic") == 1
    unsubscribe()
    assert bus.subscriber_count("topic") == 0


def test_failed_remote_delete_reappears_while_remote_is_readable(cache, bus):
    remote = MagicMock()
    remote.select.return_value = [
        {"id": "r1", "user_id": 1, "title": "Remote exam", "date": "2026-06-01T09:00:00",
         "type": "exam", "subject": None, "description": None, "source": "manual"},
    ]
    remote.delete.side_effect = RemoteUnavailable("delete rejected")
    store = EventStore(remote, cache, lambda: 1, bus)

    store.remove("r1")

    # Dropped locally
    assert json.loads(cache.get(EVENTS_KEY)) == []
    # Remote rows still win on read
    assert [e.id for e in store.get_all()] == ["r1"]


def test_stats_write_survives_remote_and_disk_failures(offline_remote, bus):
    cache = MagicMock()
    cache.get.return_value = None
    cache.set.side_effect = OSError("disk full")
    store = StatsStore(offline_remote, cache, lambda: 1, bus)
    received = []
    unsubscribe = bus.subscribe(STATS_UPDATED, received.append)

    stats = store.add_quiz(60)
    unsubscribe()

    assert stats.quizzes_done == 1
    offline_remote.update.assert_called_once()
    assert len(received) == 1


def test_subject_write_failure_is_absorbed(bus):
    cache = MagicMock()
    cache.get.return_value = None
    cache.set.side_effect = OSError("disk full")
    store = SubjectStore(cache, bus)

    note = store.update_notes("maths", "Kept in memory only")
    assert note["notes"]["content"] == "Kept in memory only"


def test_subject_entries_that_are_not_objects_read_as_missing(cache, bus):
    cache.set(SUBJECTS_KEY, json.dumps({"maths": ["broken"], "history": {"marks": "broken"}}))
    store = SubjectStore(cache, bus)

    assert store.get_subject("maths")["marks"] == []
    assert store.get_subject("history")["marks"] == []
    mark = store.add_mark("maths", "Quiz", score=5, total=10)
    assert store.get_subject("maths")["marks"] == [mark]


def test_scoped_caches_do_not_see_each_other(cache):
    alice = ScopedCache(cache, "client:a")
    bob = ScopedCache(cache, "client:b")

    alice.set(EVENTS_KEY, "[]")
    assert bob.get(EVENTS_KEY) is None
    assert alice.get(EVENTS_KEY) == "[]"
    alice.remove(EVENTS_KEY)
    assert alice.get(EVENTS_KEY) is None
