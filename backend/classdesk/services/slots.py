from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from classdesk.core.exceptions import SlotSequenceError
from classdesk.models.time_slot import TimeSlot

SLOTS_PER_DURATION: dict[int, int] = {25: 1, 50: 2, 100: 4}

DEFAULT_TIME_SLOTS: list[tuple[str, str]] = [
    ("15:00", "15:25"),
    ("15:25", "15:50"),
    ("15:50", "16:15"),
    ("16:15", "16:40"),
    ("16:40", "17:05"),
    ("17:05", "17:30"),
    ("17:30", "17:55"),
    ("17:55", "18:20"),
    ("18:20", "18:45"),
    ("18:45", "19:10"),
    ("19:10", "19:35"),
    ("19:35", "20:00"),
]


def slots_needed(duration_minutes: int) -> int:
    try:
        return SLOTS_PER_DURATION[duration_minutes]
    except KeyError:
        allowed = ", ".join(str(value) for value in SLOTS_PER_DURATION)
        raise SlotSequenceError(
            f"Unsupported class duration {duration_minutes} minutes; expected one of {allowed}",
            details={"duration_minutes": duration_minutes},
        ) from None


def consecutive_slots(time_slots: Iterable[TimeSlot], start_slot_id: str, duration_minutes: int) -> list[str]:
    needed = slots_needed(duration_minutes)
    ordered = sorted(time_slots, key=lambda slot: slot.display_order)
    start_index = next((index for index, slot in enumerate(ordered) if slot.id == start_slot_id), None)
    if start_index is None:
        raise SlotSequenceError(
            f"Unknown time slot {start_slot_id}",
            details={"start_slot_id": start_slot_id},
        )
    sequence = [slot.id for slot in ordered[start_index:start_index + needed]]
    if len(sequence) < needed:
        raise SlotSequenceError(
            f"Not enough consecutive time slots available for {duration_minutes} minute class",
            details={
                "start_slot_id": start_slot_id,
                "duration_minutes": duration_minutes,
                "available": len(sequence),
                "needed": needed,
            },
        )
    return sequence


def list_time_slots(db: Session) -> list[TimeSlot]:
    return list(db.execute(select(TimeSlot).order_by(TimeSlot.display_order)).scalars())


def seed_default_time_slots(db: Session) -> int:
    if db.execute(select(TimeSlot.id).limit(1)).first() is not None:
        return 0
    for order, (start, end) in enumerate(DEFAULT_TIME_SLOTS, start=1):
        db.add(TimeSlot(name=f"{start}-{end}", start_time=start, end_time=end, display_order=order))
    db.commit()
    return len(DEFAULT_TIME_SLOTS)
