from datetime import datetime, timezone

import pytest

from analogix.consts import IMPORT_PLACEHOLDER_DESCRIPTION
from analogix.errors import ParseError
from analogix.ics import export_ics, normalize_import


def test_each_vevent_becomes_an_imported_event(sample_ics):
    events = normalize_import(sample_ics)

    assert [e.title for e in events] == ["Maths exam", "Science excursion"]
    assert all(e.source == "import" for e in events)
    # Imports are never classified as exams or assignments
    assert all(e.type == "event" for e in events)
    assert events[0].date == datetime(2026, 3, 10, 9, 0)
    assert events[0].description == "Room 4"


def test_all_day_event_starts_at_local_midnight(sample_ics):
    excursion = normalize_import(sample_ics)[1]
    assert excursion.date == datetime(2026, 3, 15, 0, 0)
    assert excursion.description == IMPORT_PLACEHOLDER_DESCRIPTION


def test_utc_start_is_converted_to_local_time():
    ics = (
        "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//T//EN\n"
        "BEGIN:VEVENT\nSUMMARY:Essay due\nDTSTART:20260501T120000Z\nEND:VEVENT\n"
        "END:VCALENDAR\n"
    )
    event = normalize_import(ics)[0]
    expected = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert event.date == expected
    assert event.date.tzinfo is None


def test_ids_are_fresh_and_reimports_duplicate(sample_ics):
    first = normalize_import(sample_ics)
    second = normalize_import(sample_ics)

    ids = [e.id for e in first + second]
    assert len(set(ids)) == len(ids)
    assert [e.title for e in first] == [e.title for e in second]


def test_vevent_without_start_is_skipped():
    ics = (
        "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//T//EN\n"
        "BEGIN:VEVENT\nSUMMARY:No date\nEND:VEVENT\n"
        "BEGIN:VEVENT\nSUMMARY:Dated\nDTSTART:20260601T080000\nEND:VEVENT\n"
        "END:VCALENDAR\n"
    )
    assert [e.title for e in normalize_import(ics)] == ["Dated"]


def test_calendar_without_events_is_empty():
    ics = "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//T//EN\nEND:VCALENDAR\n"
    assert normalize_import(ics) == []


@pytest.mark.parametrize(
    "contents",
    [
        "",
        "   ",
        "this is not a calendar",
        "BEGIN:VEVENT\nSUMMARY:Loose\nDTSTART:20260601T080000\nEND:VEVENT\n",
    ],
)
def test_malformed_file_raises_parse_error(contents):
    with pytest.raises(ParseError):
        normalize_import(contents)


def test_export_writes_every_event(sample_ics):
    events = normalize_import(sample_ics)
    exported = export_ics(events)

    assert exported.startswith(b"BEGIN:VCALENDAR")
    assert b"SUMMARY:Maths exam" in exported
    assert b"SUMMARY:Science excursion" in exported
    assert [e.title for e in normalize_import(exported)] == ["Maths exam", "Science excursion"]
