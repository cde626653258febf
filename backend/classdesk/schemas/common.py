from __future__ import annotations

import re

from classdesk.core.calendar import DAY_NAMES

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def normalize_day(value: str) -> str:
    day = value.strip().capitalize()
    if day not in DAY_NAMES:
        raise ValueError(f"Invalid day value: {value}")
    return day
