# Import standard libraries for date handling
from dataclasses import dataclass
from datetime import date, datetime, timedelta

# Import the static term table
from .term_data import Term, normalize_region, terms_for


@dataclass(frozen=True)
class TermInfo:
    """
    Where a date sits inside the academic year. Derived on demand, never stored.

    Attributes:
        term (Term): The term containing the date.
        week (int): Week of term, starting at 1.
        weeks_total (int): Number of counted weeks in the term.
        region (str): Region code the term belongs to.
    """
    term: Term
    week: int
    weeks_total: int
    region: str


def _as_date(value):
    """Drop the time of day; resolution works at calendar-day granularity."""
    if isinstance(value, datetime):
        return value.date()
    return value


def monday_of(day):
    """Return the Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_anchor(term):
    """
    Return the Monday that starts Week 1 of ``term``.

    A term starting mid-week opens with a partial (staff-only) week that does
    not count, so the anchor moves to the Monday of the following week.
    """
    if term.start.weekday() == 0:
        return term.start
    return monday_of(term.start) + timedelta(weeks=1)


def _weeks_since(anchor, day):
    # Dates before the anchor still inside the term belong to Week 1
    return max(1, (monday_of(day) - anchor).days // 7 + 1)


def resolve_term(day, region):
    """
    Resolve a calendar date to its term and week-of-term.

    Args:
        day (date | datetime): The date to resolve; time of day is ignored.
        region (str): Region code, e.g. 'NSW'.

    Returns:
        TermInfo | None: None when the date falls in a holiday gap, outside
        the table, or when the region is unknown.
    """
    code = normalize_region(region)
    if code is None:
        return None

    day = _as_date(day)
    for term in terms_for(code, day.year):
        if term.start <= day <= term.end:
            anchor = week_anchor(term)
            return TermInfo(
                term=term,
                week=_weeks_since(anchor, day),
                weeks_total=_weeks_since(anchor, term.end),
                region=code,
            )
    return None


def next_term(day, region):
    """
    Return the earliest term in ``region`` that starts strictly after ``day``.

    Returns:
        Term | None: None when no later term is defined or the region is unknown.
    """
    day = _as_date(day)
    for term in terms_for(region):
        if term.start > day:
            return term
    return None
