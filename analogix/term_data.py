"""
Australian school term dates by region (state or territory).

Each region has exactly one list of four terms per academic year. Terms are
chronologically ordered and never overlap; the gaps between the end of one
term and the start of the next are school holidays. ``start`` is the first
student day and ``end`` the last student day, both inclusive.

Dates follow the official state education department calendars for 2026.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Term:
    """
    A contiguous block of the academic year.

    Attributes:
        id (int): Term number within the year (1-4).
        label (str): Display label, e.g. 'Term 1'.
        start (date): First student day (inclusive).
        end (date): Last student day (inclusive).
    """
    id: int
    label: str
    start: date
    end: date


REGION_LABELS = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "WA": "Western Australia",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "ACT": "ACT",
    "NT": "Northern Territory",
}


def _year(*spans):
    return [
        Term(id=i, label=f"Term {i}", start=start, end=end)
        for i, (start, end) in enumerate(spans, start=1)
    ]


# academic year -> region -> ordered terms
TERM_CALENDARS = {
    2026: {
        # NSW: the week of 26 Jan is staff development only, so Term 1 has a
        # partial first week before the counted weeks begin.
        "NSW": _year(
            (date(2026, 1, 28), date(2026, 4, 9)),
            (date(2026, 4, 28), date(2026, 7, 3)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 18)),
        ),
        "VIC": _year(
            (date(2026, 1, 28), date(2026, 3, 27)),
            (date(2026, 4, 13), date(2026, 6, 26)),
            (date(2026, 7, 13), date(2026, 9, 18)),
            (date(2026, 10, 5), date(2026, 12, 18)),
        ),
        "QLD": _year(
            (date(2026, 1, 27), date(2026, 4, 2)),
            (date(2026, 4, 20), date(2026, 6, 26)),
            (date(2026, 7, 13), date(2026, 9, 18)),
            (date(2026, 10, 6), date(2026, 12, 11)),
        ),
        "WA": _year(
            (date(2026, 2, 2), date(2026, 4, 9)),
            (date(2026, 4, 28), date(2026, 7, 3)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 17)),
        ),
        "SA": _year(
            (date(2026, 1, 27), date(2026, 4, 9)),
            (date(2026, 4, 27), date(2026, 7, 3)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 11)),
        ),
        "TAS": _year(
            (date(2026, 2, 4), date(2026, 4, 9)),
            (date(2026, 4, 28), date(2026, 7, 3)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 17)),
        ),
        "ACT": _year(
            (date(2026, 2, 2), date(2026, 4, 9)),
            (date(2026, 4, 28), date(2026, 7, 3)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 18)),
        ),
        "NT": _year(
            (date(2026, 2, 2), date(2026, 4, 9)),
            (date(2026, 4, 20), date(2026, 6, 26)),
            (date(2026, 7, 20), date(2026, 9, 25)),
            (date(2026, 10, 12), date(2026, 12, 11)),
        ),
    },
}


def normalize_region(region):
    """Return the canonical region code, or None if the region is unknown."""
    if not isinstance(region, str):
        return None
    code = region.strip().upper()
    return code if code in REGION_LABELS else None


def terms_for(region, year=None):
    """
    Look up the terms of a region.

    Args:
        region (str): Region code (case-insensitive).
        year (int | None): Academic year; None returns every year in the table.

    Returns:
        list[Term]: Chronologically ordered terms, empty for unknown regions or years.
    """
    code = normalize_region(region)
    if code is None:
        return []
    if year is not None:
        return list(TERM_CALENDARS.get(year, {}).get(code, []))
    terms = []
    for calendar_year in sorted(TERM_CALENDARS):
        terms.extend(TERM_CALENDARS[calendar_year].get(code, []))
    return terms


def validate_calendar(calendars=None):
    """
    Check the table invariants and return a list of problems (empty when valid).

    Every term must end on or after it starts, and each term must start
    strictly after the previous one in the same region ends.
    """
    calendars = TERM_CALENDARS if calendars is None else calendars
    problems = []
    for year, regions in calendars.items():
        for region, terms in regions.items():
            previous = None
            for term in terms:
                if term.end < term.start:
                    problems.append(f"{year} {region} {term.label}: ends before it starts")
                if previous is not None and term.start <= previous.end:
                    problems.append(
                        f"{year} {region} {term.label}: overlaps {previous.label}"
                    )
                previous = term
    return problems
