"""Journal: immutable, date-sorted event stream in a reporting currency."""

from bisect import bisect_right
from datetime import date
from typing import Iterable, Iterator

from folio.events.events import Event


class Journal:
    """
    Events sorted by date plus the currency totals are reported in.

    A journal is never mutated after construction; Snapshots and Reviews
    over the same journal may run side by side.

    Attributes:
        currency: Reporting currency (ISO 4217)
        events: Every event, sorted by date (same-day order preserved)
    """

    __slots__ = ("_currency", "_events", "_days")

    def __init__(self, currency: str, events: Iterable[Event]) -> None:
        ordered = tuple(events)
        days = tuple(event.on for event in ordered)
        if any(later < earlier for earlier, later in zip(days, days[1:])):
            raise ValueError("journal events must be sorted by date")
        self._currency = currency
        self._events = ordered
        self._days = days

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    def events_until(self, on: date) -> tuple[Event, ...]:
        """Prefix of events dated on or before on."""
        return self._events[: bisect_right(self._days, on)]

    def first_date(self) -> date | None:
        return self._days[0] if self._days else None

    def last_date(self) -> date | None:
        return self._days[-1] if self._days else None

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __repr__(self) -> str:
        return f"Journal(currency={self._currency!r}, events={len(self._events)})"
