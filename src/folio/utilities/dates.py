"""Calendar helpers: reporting periods, inclusive date ranges and lenient parsing."""

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

_RELATIVE_DATE = re.compile(r"^([+-])(\d+)([dwmqy])$")
_MONTH_DAY_DATE = re.compile(r"^(?:(\d+)-)?(\d+)$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


class Period(str, Enum):
    """Standard reporting period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, text: str) -> "Period":
        """Parse "daily"/"day", "weekly"/"week", ... (case-insensitive)."""
        key = text.strip().lower()
        aliases = {
            "day": cls.DAILY,
            "week": cls.WEEKLY,
            "month": cls.MONTHLY,
            "quarter": cls.QUARTERLY,
            "year": cls.YEARLY,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown period {text!r}") from None

    @property
    def noun(self) -> str:
        """Singular noun: day, week, month, quarter, year."""
        return {
            Period.DAILY: "day",
            Period.WEEKLY: "week",
            Period.MONTHLY: "month",
            Period.QUARTERLY: "quarter",
            Period.YEARLY: "year",
        }[self]

    def to_date_name(self) -> str:
        """Name of the period-to-date window (e.g. "Month-to-Date")."""
        if self is Period.DAILY:
            return "Today's"
        return f"{self.noun.capitalize()}-to-Date"


def _add_months(d: date, months: int, day: int | None = None) -> date:
    """Shift by whole months, normalizing the day like a calendar roll-over."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    target_day = d.day if day is None else day
    # day 0 (or overflow) rolls into the neighbouring month
    return date(year, month, 1) + timedelta(days=target_day - 1)


def start_of(d: date, period: Period) -> date:
    """First day of the period containing d (weeks start on Monday)."""
    if period is Period.DAILY:
        return d
    if period is Period.WEEKLY:
        return d - timedelta(days=d.weekday())
    if period is Period.MONTHLY:
        return d.replace(day=1)
    if period is Period.QUARTERLY:
        return date(d.year, 3 * ((d.month - 1) // 3) + 1, 1)
    if period is Period.YEARLY:
        return date(d.year, 1, 1)
    raise ValueError(f"unknown period {period!r}")


def end_of(d: date, period: Period) -> date:
    """Last day of the period containing d."""
    if period is Period.DAILY:
        return d
    if period is Period.WEEKLY:
        return start_of(d, period) + timedelta(days=6)
    if period is Period.MONTHLY:
        return d.replace(day=calendar.monthrange(d.year, d.month)[1])
    if period is Period.QUARTERLY:
        last_month = start_of(d, period).month + 2
        return date(d.year, last_month, calendar.monthrange(d.year, last_month)[1])
    if period is Period.YEARLY:
        return date(d.year, 12, 31)
    raise ValueError(f"unknown period {period!r}")


@dataclass(frozen=True)
class Range:
    """
    Inclusive date range.

    Attributes:
        from_: First day (included)
        to: Last day (included)
    """

    from_: date
    to: date

    def __post_init__(self) -> None:
        if self.to < self.from_:
            raise ValueError(f"range end {self.to} is before its start {self.from_}")

    @classmethod
    def of(cls, d: date, period: Period) -> "Range":
        """The standard period containing d."""
        return cls(start_of(d, period), end_of(d, period))

    def contains(self, d: date) -> bool:
        return self.from_ <= d <= self.to

    def __contains__(self, d: object) -> bool:
        return isinstance(d, date) and self.contains(d)

    def days(self) -> int:
        return (self.to - self.from_).days + 1

    def period(self) -> Period | None:
        """The standard period this range spans exactly, if any."""
        if self.from_ == self.to:
            return Period.DAILY
        for period in (Period.WEEKLY, Period.MONTHLY, Period.QUARTERLY, Period.YEARLY):
            if start_of(self.from_, period) == self.from_ and end_of(self.from_, period) == self.to:
                return period
        return None

    def name(self) -> str:
        period = self.period()
        return period.value if period is not None else "special"

    def identifier(self) -> str:
        """Short unique identifier: 2025-01-02, 2025-W03, 2025-01, 2025-Q1, 2025 or from_to."""
        period = self.period()
        if period is None:
            return f"{self.from_.isoformat()}_{self.to.isoformat()}"
        if period is Period.DAILY:
            return self.from_.isoformat()
        if period is Period.WEEKLY:
            iso_year, week, _ = self.from_.isocalendar()
            return f"{iso_year}-W{week:02d}"
        if period is Period.MONTHLY:
            return f"{self.from_.year}-{self.from_.month:02d}"
        if period is Period.QUARTERLY:
            return f"{self.from_.year}-Q{(self.from_.month - 1) // 3 + 1}"
        return str(self.from_.year)

    def __str__(self) -> str:
        return self.identifier()


def parse_date(text: str, today: date | None = None) -> date:
    """
    Parse a date leniently.

    Accepted forms:
        - ISO "2025-07-01" (also "2025-7-1")
        - "0d" for today
        - relative "+3d", "-1w", "-2m", "-1q", "+1y" (sign mandatory)
        - "[MM-]DD" within the current year/month; DD=0 is the last day of the
          previous month, MM=0 is December of last year

    Args:
        text: Text to parse
        today: Reference day for relative forms (defaults to date.today())

    Raises:
        ValueError: If text matches none of the forms
    """
    text = text.strip()
    if today is None:
        today = date.today()

    if text == "0d":
        return today

    match = _RELATIVE_DATE.match(text)
    if match:
        sign, number, unit = match.groups()
        n = int(number) if sign == "+" else -int(number)
        if unit == "d":
            return today + timedelta(days=n)
        if unit == "w":
            return today + timedelta(weeks=n)
        if unit == "m":
            return _add_months(today, n)
        if unit == "q":
            return _add_months(today, 3 * n)
        return _add_months(today, 12 * n)

    match = _MONTH_DAY_DATE.match(text)
    if match:
        month_text, day_text = match.groups()
        anchor = today.replace(day=1)
        if month_text is not None:
            month = int(month_text)
            if month == 0:
                anchor = date(today.year - 1, 12, 1)
            elif month > 12:
                raise ValueError(f"invalid month in date {text!r}")
            else:
                anchor = date(today.year, month, 1)
        return _add_months(anchor, 0, day=int(day_text))

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError as e:
            raise ValueError(f"invalid date {text!r}: {e}") from None

    raise ValueError(f"invalid date {text!r}, want YYYY-MM-DD or a relative form like -1d")
