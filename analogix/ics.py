# Import the iCalendar library for parsing and writing .ics files
from datetime import date, datetime
import logging
import uuid

import icalendar

from .consts import IMPORT_PLACEHOLDER_DESCRIPTION
from .errors import ParseError
from .schemas import Event
from .utils import to_dt

logger = logging.getLogger(__name__)


def new_event_id():
    """Return a fresh random event id (never derived from the event content)."""
    return uuid.uuid4().hex


def _local_start(value):
    """Convert a DTSTART value to a naive local datetime."""
    if isinstance(value, (datetime, date)):
        return to_dt(value)
    raise ParseError(f"Unsupported DTSTART value: {value!r}")


def normalize_import(file_contents):
    """
    Convert the VEVENTs of an .ics file into internal events.

    Only SUMMARY, DTSTART and DESCRIPTION are read; every other property is
    ignored. Each VEVENT becomes one event with a fresh id, ``type='event'``
    and ``source='import'``. Importing the same file twice therefore yields
    two copies of every event. VEVENTs without a DTSTART are skipped.

    No I/O happens here; the caller decides what to persist.

    Args:
        file_contents (str | bytes): Raw .ics text.

    Returns:
        list[Event]: One event per importable VEVENT, in file order.

    Raises:
        ParseError: If the text is not an iCalendar file. Nothing is returned
            in that case, not even the events parsed before the failure.
    """
    if not file_contents or not str(file_contents).strip():
        raise ParseError("No .ics content provided")

    try:
        calendar = icalendar.Calendar.from_ical(file_contents)
    except (ValueError, IndexError, KeyError) as exc:
        raise ParseError(f"Failed to parse .ics file: {exc}") from exc

    if calendar.name != "VCALENDAR":
        raise ParseError(f"Expected a VCALENDAR, got {calendar.name}")

    events = []
    for component in calendar.walk("VEVENT"):
        dtstart = component.get("dtstart")
        if dtstart is None:
            logger.info("Skipping VEVENT without DTSTART: %s", component.get("summary"))
            continue
        try:
            start = _local_start(dtstart.dt)
        except (AttributeError, ValueError, TypeError, OverflowError) as exc:
            raise ParseError(f"Invalid DTSTART: {exc}") from exc

        summary = component.get("summary")
        description = component.get("description")
        events.append(
            Event(
                id=new_event_id(),
                title=str(summary) if summary is not None else "",
                date=start,
                type="event",
                description=str(description) if description else IMPORT_PLACEHOLDER_DESCRIPTION,
                source="import",
            )
        )

    return events


def export_ics(events):
    """
    Export events as an .ics file.

    Args:
        events (list[Event]): Events to write.

    Returns:
        bytes: The serialized VCALENDAR.
    """
    cal = icalendar.Calendar()
    cal.add("prodid", "-//Analogix//analogix.app//")
    cal.add("version", "2.0")

    for event in events:
        vevent = icalendar.Event()
        vevent.add("summary", event.title)
        vevent.add("dtstart", event.date)
        vevent.add("uid", f"{event.id}@analogix.app")
        if event.description:
            vevent.add("description", event.description)
        vevent.add("categories", [event.type])
        cal.add_component(vevent)

    return cal.to_ical()
