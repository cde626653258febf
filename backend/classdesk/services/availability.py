from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from classdesk.core.calendar import DAY_NAMES, WeekCalendar
from classdesk.core.exceptions import ResourceNotFoundError
from classdesk.models.availability import AvailabilityRecord, EntityType
from classdesk.models.student import Student
from classdesk.models.teacher import Teacher
from classdesk.schemas.assignment import AssignmentOut
from classdesk.schemas.people import AvailabilityOut, UnavailableAssignment

logger = logging.getLogger(__name__)

AvailabilityIndex = Mapping[tuple[EntityType, str, str], Iterable[str]]


def toggle_slot(slot_ids: Iterable[str], slot_id: str) -> list[str]:
    current = list(dict.fromkeys(slot_ids))
    if slot_id in current:
        return [item for item in current if item != slot_id]
    return current + [slot_id]


def find_unavailable_assigned(
    assignments: Iterable[AssignmentOut],
    availability: AvailabilityIndex,
) -> list[UnavailableAssignment]:
    """Flag assignments whose teachers or students are no longer available.

    ``availability`` is keyed by ``(entity_type, entity_id, day)``. Entities
    stay assigned; callers decide how to surface the flag.
    """
    flags: list[UnavailableAssignment] = []
    for assignment in assignments:
        teacher_ids = [
            teacher_id
            for teacher_id in assignment.teacher_ids
            if assignment.time_slot_id not in set(availability.get((EntityType.teacher, teacher_id, assignment.day), ()))
        ]
        student_ids = [
            student_id
            for student_id in assignment.student_ids
            if assignment.time_slot_id not in set(availability.get((EntityType.student, student_id, assignment.day), ()))
        ]
        if teacher_ids or student_ids:
            flags.append(
                UnavailableAssignment(
                    assignment_id=assignment.id,
                    day=assignment.day,
                    time_slot_id=assignment.time_slot_id,
                    teacher_ids=teacher_ids,
                    student_ids=student_ids,
                )
            )
    return flags


class AvailabilityService:
    def __init__(self, db: Session, calendar: WeekCalendar) -> None:
        self._db = db
        self._calendar = calendar

    def _ensure_entity(self, entity_type: EntityType, entity_id: str) -> None:
        model = Teacher if entity_type == EntityType.teacher else Student
        if self._db.get(model, entity_id) is None:
            raise ResourceNotFoundError(entity_type.value.capitalize(), entity_id)

    def _record(self, entity_type: EntityType, entity_id: str, day: str) -> AvailabilityRecord | None:
        return self._db.execute(
            select(AvailabilityRecord).where(
                AvailabilityRecord.entity_type == entity_type,
                AvailabilityRecord.entity_id == entity_id,
                AvailabilityRecord.day == day,
            )
        ).scalar_one_or_none()

    def _write(self, entity_type: EntityType, entity_id: str, day: str, slot_ids: list[str]) -> AvailabilityOut:
        record = self._record(entity_type, entity_id, day)
        if record is None:
            record = AvailabilityRecord(entity_type=entity_type, entity_id=entity_id, day=day, slot_ids=slot_ids)
            self._db.add(record)
        else:
            record.slot_ids = slot_ids
        return AvailabilityOut(entity_type=entity_type, entity_id=entity_id, day=day, slot_ids=slot_ids)

    def get(self, entity_type: EntityType, entity_id: str, day: str) -> AvailabilityOut:
        self._calendar.date_for(day)
        self._ensure_entity(entity_type, entity_id)
        record = self._record(entity_type, entity_id, day)
        slot_ids = list(record.slot_ids or []) if record is not None else []
        return AvailabilityOut(entity_type=entity_type, entity_id=entity_id, day=day, slot_ids=slot_ids)

    def set(self, entity_type: EntityType, entity_id: str, day: str, slot_ids: Iterable[str]) -> AvailabilityOut:
        self._calendar.date_for(day)
        self._ensure_entity(entity_type, entity_id)
        result = self._write(entity_type, entity_id, day, list(dict.fromkeys(slot_ids)))
        self._db.commit()
        return result

    def toggle(self, entity_type: EntityType, entity_id: str, day: str, slot_id: str) -> AvailabilityOut:
        current = self.get(entity_type, entity_id, day)
        result = self._write(entity_type, entity_id, day, toggle_slot(current.slot_ids, slot_id))
        self._db.commit()
        return result

    def apply_to_all_days(self, entity_type: EntityType, entity_id: str, source_day: str) -> list[AvailabilityOut]:
        source = self.get(entity_type, entity_id, source_day)
        results = [
            self._write(entity_type, entity_id, day, list(source.slot_ids))
            for day in DAY_NAMES
        ]
        self._db.commit()
        logger.info(
            "Applied %s %s availability from %s (%d slot(s)) to all days",
            entity_type.value,
            entity_id,
            source_day,
            len(source.slot_ids),
        )
        return results

    def index(self) -> dict[tuple[EntityType, str, str], list[str]]:
        records = self._db.execute(select(AvailabilityRecord)).scalars()
        return {
            (record.entity_type, record.entity_id, record.day): list(record.slot_ids or [])
            for record in records
        }
