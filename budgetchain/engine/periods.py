"""Period arithmetic.

Ordering, boundaries, membership tests, formatting and parsing of monthly
budget periods. A period normally covers a calendar month; when the user is
paid on another day of the month (``pay_day_of_month``), the period runs from
one pay day to the next.

Pay day rule:
    - pay day <= 15: the period is named after the month it starts in
      (pay day 5: "March" covers 5 March - 4 April).
    - pay day > 15: the period is named after the month it ends in
      (pay day 27: "March" covers 27 February - 26 March).
    The name always matches the month holding most of the period's days.

Every function takes "now" explicitly; nothing reads the system clock.
Functions that build a Period also take ``today`` for the planning horizon.
"""

import calendar
import re
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta

from budgetchain.core.exceptions import ValidationError
from budgetchain.core.models import Period, PeriodOrder

MONTH_NAMES: dict[str, tuple[str, ...]] = {
    "fr": (
        "janvier", "février", "mars", "avril", "mai", "juin",
        "juillet", "août", "septembre", "octobre", "novembre", "décembre",
    ),
    "en": (
        "january", "february", "march", "april", "may", "june",
        "july", "august", "september", "october", "november", "december",
    ),
    "de": (
        "januar", "februar", "märz", "april", "mai", "juni",
        "juli", "august", "september", "oktober", "november", "dezember",
    ),
    "it": (
        "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
        "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
    ),
}

SHORT_MONTH_NAMES: dict[str, tuple[str, ...]] = {
    "fr": (
        "janv.", "févr.", "mars", "avr.", "mai", "juin",
        "juil.", "août", "sept.", "oct.", "nov.", "déc.",
    ),
    "en": (
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    ),
    "de": (
        "Jan.", "Feb.", "März", "Apr.", "Mai", "Juni",
        "Juli", "Aug.", "Sept.", "Okt.", "Nov.", "Dez.",
    ),
    "it": (
        "gen", "feb", "mar", "apr", "mag", "giu",
        "lug", "ago", "set", "ott", "nov", "dic",
    ),
}

DEFAULT_PATTERN = "{month_name} {year}"

PAY_DAY_MIN = 1
PAY_DAY_MAX = 31
FIRST_HALF_LAST_DAY = 15

_ISO_PERIOD = re.compile(r"^(\d{4})-(\d{1,2})$")
_NAMED_PERIOD = re.compile(r"^(.+?)\s+(\d{4})$")


def _month_names(locale: str) -> tuple[str, ...]:
    try:
        return MONTH_NAMES[locale]
    except KeyError:
        raise ValidationError(
            f"unsupported locale {locale!r}, expected one of {sorted(MONTH_NAMES)}"
        ) from None


def _normalize_pay_day(pay_day_of_month: int | None) -> int:
    """Clamp the pay day to 1..31. None and 1 mean calendar months."""
    if not pay_day_of_month or pay_day_of_month <= PAY_DAY_MIN:
        return PAY_DAY_MIN
    return min(PAY_DAY_MAX, int(pay_day_of_month))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _clamped_day(year: int, month: int, day: int) -> int:
    """Day number, pulled back to the last day of short months."""
    return min(day, calendar.monthrange(year, month)[1])


def _as_datetime(instant: date | datetime) -> datetime:
    if isinstance(instant, datetime):
        return instant
    return datetime.combine(instant, time.min)


# -----------------------------------------------------------------------------
# Ordering
# -----------------------------------------------------------------------------


def compare_periods(a: Period, b: Period) -> PeriodOrder:
    """Compare two periods by year, then month."""
    if a.ordinal < b.ordinal:
        return PeriodOrder.BEFORE
    if a.ordinal > b.ordinal:
        return PeriodOrder.AFTER
    return PeriodOrder.EQUAL


def next_period(period: Period, *, today: date) -> Period:
    year, month = _shift_month(period.year, period.month, 1)
    return Period.of(year, month, today=today)


def previous_period(period: Period, *, today: date) -> Period:
    year, month = _shift_month(period.year, period.month, -1)
    return Period.of(year, month, today=today)


def iterate_periods(first: Period, last: Period, *, today: date) -> Iterator[Period]:
    """Yield every period from first to last, both included, ascending.

    Yields nothing when first is after last.
    """
    for ordinal in range(first.ordinal, last.ordinal + 1):
        year, month = divmod(ordinal - 1, 12)
        yield Period.of(year, month + 1, today=today)


# -----------------------------------------------------------------------------
# Boundaries and membership
# -----------------------------------------------------------------------------


def get_period_boundaries(
    period: Period,
    pay_day_of_month: int | None = None,
) -> tuple[datetime, datetime]:
    """Get the first instant of a period and the first instant after it.

    Args:
        period: Budget period.
        pay_day_of_month: Day the user gets paid (1-31). None or 1 means
            plain calendar months.

    Returns:
        Tuple of (start, end_exclusive) as naive local-midnight datetimes.
        The end of one period is always the start of the next one.
    """
    pay_day = _normalize_pay_day(pay_day_of_month)

    if pay_day == PAY_DAY_MIN:
        start_year, start_month = period.year, period.month
    elif pay_day <= FIRST_HALF_LAST_DAY:
        # First half of the month: the period starts in its own month
        start_year, start_month = period.year, period.month
    else:
        # Second half: the period starts in the previous month
        start_year, start_month = _shift_month(period.year, period.month, -1)

    end_year, end_month = _shift_month(start_year, start_month, 1)

    start = datetime(start_year, start_month, _clamped_day(start_year, start_month, pay_day))
    end = datetime(end_year, end_month, _clamped_day(end_year, end_month, pay_day))
    return start, end


def period_contains(
    period: Period,
    instant: date | datetime,
    pay_day_of_month: int | None = None,
) -> bool:
    """Check whether an instant falls inside [start, end) of a period.

    A plain date is treated as its local midnight.
    """
    start, end = get_period_boundaries(period, pay_day_of_month)
    return start <= _as_datetime(instant) < end


def _containing_month(
    instant: date | datetime,
    pay_day_of_month: int | None,
) -> tuple[int, int]:
    """(year, month) naming the period that contains ``instant``."""
    pay_day = _normalize_pay_day(pay_day_of_month)
    year, month, day = instant.year, instant.month, instant.day

    if pay_day != PAY_DAY_MIN:
        if day < _clamped_day(year, month, pay_day):
            # Not paid yet this month, still in the previous period
            year, month = _shift_month(year, month, -1)
        if pay_day > FIRST_HALF_LAST_DAY:
            year, month = _shift_month(year, month, 1)

    return year, month


def get_period_for_date(
    instant: date | datetime,
    pay_day_of_month: int | None = None,
    *,
    today: date,
) -> Period:
    """Determine which budget period a date belongs to.

    Args:
        instant: Date or datetime to place.
        pay_day_of_month: Day the user gets paid (1-31), None for calendar months.
        today: Current date, bounding the period to the planning horizon.

    Returns:
        The period whose boundaries contain ``instant``.

    Raises:
        ValidationError: The containing period is outside the valid range.

    Example:
        pay day 5:  4 March 2025 -> February 2025, 5 March 2025 -> March 2025
        pay day 27: 26 January 2025 -> January 2025, 27 January 2025 -> February 2025
    """
    year, month = _containing_month(instant, pay_day_of_month)
    return Period.of(year, month, today=today)


def _order_against(
    period: Period,
    now: date | datetime,
    pay_day_of_month: int | None,
) -> PeriodOrder:
    current = get_period_for_date(now, pay_day_of_month, today=_as_datetime(now).date())
    return compare_periods(period, current)


def is_current_period(
    period: Period,
    now: date | datetime,
    pay_day_of_month: int | None = None,
) -> bool:
    """True if ``now`` falls inside ``period``.

    ``now`` doubles as the clock for the containing period, so a ``now``
    outside the valid period range raises ValidationError.
    """
    return _order_against(period, now, pay_day_of_month) is PeriodOrder.EQUAL


def is_past_period(
    period: Period,
    now: date | datetime,
    pay_day_of_month: int | None = None,
) -> bool:
    """True if ``period`` ended before the period containing ``now``."""
    return _order_against(period, now, pay_day_of_month) is PeriodOrder.BEFORE


def days_in_period(period: Period, pay_day_of_month: int | None = None) -> int:
    start, end = get_period_boundaries(period, pay_day_of_month)
    return (end - start).days


def days_remaining_in_period(
    period: Period,
    now: date | datetime,
    pay_day_of_month: int | None = None,
) -> int:
    """Count the days left in a period, today included.

    Returns 0 once the period is over and the full length while it has
    not started yet.
    """
    start, end = get_period_boundaries(period, pay_day_of_month)
    now = _as_datetime(now)

    if now >= end:
        return 0
    if now < start:
        return (end - start).days

    today = datetime.combine(now.date(), time.min)
    return (end - today).days


# -----------------------------------------------------------------------------
# Formatting and parsing
# -----------------------------------------------------------------------------


def format_period(
    period: Period,
    locale: str = "fr",
    pattern: str = DEFAULT_PATTERN,
) -> str:
    """Render a period for display.

    Args:
        period: Period to render.
        locale: Two-letter language code (fr, en, de, it).
        pattern: ``str.format`` pattern; available fields are ``month_name``,
            ``month`` and ``year``.

    Returns:
        Formatted label, "Janvier 2025" with the defaults.
    """
    month_name = _month_names(locale)[period.month - 1].capitalize()
    return pattern.format(month_name=month_name, month=period.month, year=period.year)


def parse_period(
    text: str,
    locale: str = "fr",
    *,
    today: date,
) -> Period:
    """Parse a period from "YYYY-MM" or the default ``format_period`` output.

    Month names are matched case-insensitively.

    Raises:
        ValidationError: If the text is not a recognizable period.
    """
    text = text.strip()

    match = _ISO_PERIOD.match(text)
    if match:
        return Period.of(int(match.group(1)), int(match.group(2)), today=today)

    match = _NAMED_PERIOD.match(text)
    if match:
        name = match.group(1).strip().casefold()
        names = [n.casefold() for n in _month_names(locale)]
        if name in names:
            return Period.of(int(match.group(2)), names.index(name) + 1, today=today)

    raise ValidationError(f"cannot parse period {text!r}")


def format_period_range(
    period: Period,
    pay_day_of_month: int | None = None,
    locale: str = "fr",
) -> str:
    """Render the first and last day of a period, e.g. "27 févr. - 26 mars"."""
    _month_names(locale)  # validates the locale
    short_names = SHORT_MONTH_NAMES[locale]
    start, end = get_period_boundaries(period, pay_day_of_month)
    last_day = end - timedelta(days=1)
    return (
        f"{start.day} {short_names[start.month - 1]} - "
        f"{last_day.day} {short_names[last_day.month - 1]}"
    )
