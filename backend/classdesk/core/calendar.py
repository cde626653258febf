from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from classdesk.core.exceptions import UnknownDayError

DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_DAY_INDEX = {day: index for index, day in enumerate(DAY_NAMES)}


@dataclass(frozen=True)
class WeekCalendar:
    """Fixed bijection between the seven logical weekdays and stored date keys."""

    day_to_date: Mapping[str, str]
    date_to_day: Mapping[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        mapping = dict(self.day_to_date)
        if set(mapping) != set(DAY_NAMES):
            missing = sorted(set(DAY_NAMES) - set(mapping), key=_DAY_INDEX.get)
            extra = sorted(set(mapping) - set(DAY_NAMES))
            raise ValueError(f"Week calendar must map exactly Monday..Sunday (missing={missing}, extra={extra})")
        inverse = {date_key: day for day, date_key in mapping.items()}
        if len(inverse) != len(mapping):
            raise ValueError("Week calendar date keys must be distinct")
        object.__setattr__(self, "day_to_date", MappingProxyType(mapping))
        object.__setattr__(self, "date_to_day", MappingProxyType(inverse))

    def date_for(self, day: str) -> str:
        try:
            return self.day_to_date[day]
        except KeyError:
            raise UnknownDayError(day) from None

    def day_for(self, date_key: str) -> str:
        try:
            return self.date_to_day[date_key]
        except KeyError:
            raise UnknownDayError(date_key) from None

    @property
    def days(self) -> tuple[str, ...]:
        return DAY_NAMES

    @property
    def date_keys(self) -> list[str]:
        return [self.day_to_date[day] for day in DAY_NAMES]

    def sort_days(self, days: Iterable[str]) -> list[str]:
        unique = set(days)
        for day in unique:
            if day not in _DAY_INDEX:
                raise UnknownDayError(day)
        return sorted(unique, key=_DAY_INDEX.__getitem__)
