from __future__ import annotations

from collections import defaultdict
from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from classdesk.core.calendar import WeekCalendar
from classdesk.core.exceptions import ResourceNotFoundError
from classdesk.models.assignment import Assignment, AssignmentStudent, AssignmentTeacher
from classdesk.models.availability import AvailabilityRecord, EntityType
from classdesk.models.student import Student
from classdesk.models.teacher import Teacher
from classdesk.schemas.assignment import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentStudentOut,
    AssignmentTeacherOut,
    AssignmentUpdate,
    DayDeletion,
    DuplicateGroup,
    DuplicateRemoval,
    StudentRef,
    TeacherRef,
)
from classdesk.schemas.people import AvailableEntity

logger = logging.getLogger(__name__)


def serialize_assignment(assignment: Assignment, calendar: WeekCalendar) -> AssignmentOut:
    teachers = sorted(
        (
            AssignmentTeacherOut(
                id=link.teacher_id,
                name=link.teacher.name if link.teacher is not None else link.teacher_id,
                color_keyword=link.teacher.color_keyword if link.teacher is not None else None,
                is_substitute=link.is_substitute,
            )
            for link in assignment.teacher_links
        ),
        key=lambda item: item.id,
    )
    students = sorted(
        (
            AssignmentStudentOut(
                id=link.student_id,
                name=link.student.name if link.student is not None else link.student_id,
                english_name=link.student.english_name if link.student is not None else None,
                color_keyword=link.student.color_keyword if link.student is not None else None,
            )
            for link in assignment.student_links
        ),
        key=lambda item: item.id,
    )
    return AssignmentOut(
        id=assignment.id,
        day=calendar.day_for(assignment.date),
        date=assignment.date,
        time_slot_id=assignment.time_slot_id,
        teachers=teachers,
        students=students,
        subject=assignment.subject,
        notes=assignment.notes,
        color_keyword=assignment.color_keyword,
        created_at=assignment.created_at,
        updated_at=assignment.updated_at,
    )


def _signature(assignment: Assignment) -> tuple[str, str, str, tuple[str, ...], tuple[str, ...]]:
    return (
        assignment.date,
        assignment.time_slot_id,
        assignment.subject or "",
        tuple(sorted(link.teacher_id for link in assignment.teacher_links)),
        tuple(sorted(link.student_id for link in assignment.student_links)),
    )


def _dedupe_teachers(refs: list[TeacherRef]) -> list[TeacherRef]:
    seen: dict[str, TeacherRef] = {}
    for ref in refs:
        seen.setdefault(ref.teacher_id, ref)
    return list(seen.values())


def _dedupe_students(refs: list[StudentRef]) -> list[StudentRef]:
    seen: dict[str, StudentRef] = {}
    for ref in refs:
        seen.setdefault(ref.student_id, ref)
    return list(seen.values())


class SqlAssignmentStore:
    """Assignment store backed by a SQLAlchemy session.

    Outside :meth:`unit_of_work` every write commits on its own. Inside it,
    writes are only flushed, so later reads in the same run see them, and the
    whole run commits or rolls back together.
    """

    transactional = True

    def __init__(self, db: Session, calendar: WeekCalendar) -> None:
        self._db = db
        self._calendar = calendar
        self._depth = 0

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._db.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._db.commit()

    def _finish_write(self) -> None:
        if self._depth:
            self._db.flush()
        else:
            self._db.commit()

    def _active_query(self):
        return select(Assignment).where(Assignment.is_active.is_(True))

    def _load(self, assignment_id: str) -> Assignment:
        assignment = self._db.get(Assignment, assignment_id)
        if assignment is None or not assignment.is_active:
            raise ResourceNotFoundError("Assignment", assignment_id)
        return assignment

    def _serialize(self, assignment: Assignment) -> AssignmentOut:
        return serialize_assignment(assignment, self._calendar)

    async def list(self, day: str) -> list[AssignmentOut]:
        date_key = self._calendar.date_for(day)
        rows = self._db.execute(
            self._active_query()
            .where(Assignment.date == date_key)
            .order_by(Assignment.time_slot_id, Assignment.created_at, Assignment.id)
        ).scalars()
        return [self._serialize(row) for row in rows]

    async def list_all(self) -> list[AssignmentOut]:
        rows = self._db.execute(
            self._active_query()
            .where(Assignment.date.in_(self._calendar.date_keys))
            .order_by(Assignment.date, Assignment.time_slot_id, Assignment.created_at, Assignment.id)
        ).scalars()
        return [self._serialize(row) for row in rows]

    async def list_for_student(self, student_id: str) -> list[AssignmentOut]:
        rows = self._db.execute(
            self._active_query()
            .join(AssignmentStudent, AssignmentStudent.assignment_id == Assignment.id)
            .where(AssignmentStudent.student_id == student_id)
            .order_by(Assignment.date, Assignment.time_slot_id)
        ).scalars()
        return [self._serialize(row) for row in rows]

    async def get(self, assignment_id: str) -> AssignmentOut:
        return self._serialize(self._load(assignment_id))

    def _find_duplicate(self, data: AssignmentCreate, date_key: str) -> Assignment | None:
        if not data.students:
            return None
        wanted = (
            date_key,
            data.time_slot_id,
            data.subject or "",
            tuple(sorted(set(data.teacher_ids))),
            tuple(sorted(set(data.student_ids))),
        )
        candidates = self._db.execute(
            self._active_query().where(
                Assignment.date == date_key,
                Assignment.time_slot_id == data.time_slot_id,
            )
        ).scalars()
        for candidate in candidates:
            if _signature(candidate) == wanted:
                return candidate
        return None

    async def create(self, data: AssignmentCreate) -> AssignmentOut:
        date_key = self._calendar.date_for(data.day)
        existing = self._find_duplicate(data, date_key)
        if existing is not None:
            logger.info(
                "Duplicate assignment detected on %s slot %s (existing id %s); skipping creation",
                data.day,
                data.time_slot_id,
                existing.id,
            )
            return self._serialize(existing)

        assignment = Assignment(
            date=date_key,
            time_slot_id=data.time_slot_id,
            subject=data.subject,
            notes=data.notes,
            color_keyword=data.color_keyword,
            is_active=True,
        )
        assignment.teacher_links = [
            AssignmentTeacher(teacher_id=ref.teacher_id, is_substitute=ref.is_substitute)
            for ref in _dedupe_teachers(data.teachers)
        ]
        assignment.student_links = [
            AssignmentStudent(student_id=ref.student_id) for ref in _dedupe_students(data.students)
        ]
        self._db.add(assignment)
        self._finish_write()
        self._db.refresh(assignment)
        return self._serialize(assignment)

    async def update(self, assignment_id: str, data: AssignmentUpdate) -> AssignmentOut:
        assignment = self._load(assignment_id)
        fields = data.model_dump(exclude_unset=True, exclude={"teachers", "students", "day"})
        for key, value in fields.items():
            setattr(assignment, key, value)
        if data.day is not None:
            assignment.date = self._calendar.date_for(data.day)
        if data.teachers is not None:
            assignment.teacher_links.clear()
            self._db.flush()
            assignment.teacher_links.extend(
                AssignmentTeacher(teacher_id=ref.teacher_id, is_substitute=ref.is_substitute)
                for ref in _dedupe_teachers(data.teachers)
            )
        if data.students is not None:
            assignment.student_links.clear()
            self._db.flush()
            assignment.student_links.extend(
                AssignmentStudent(student_id=ref.student_id) for ref in _dedupe_students(data.students)
            )
        self._finish_write()
        self._db.refresh(assignment)
        return self._serialize(assignment)

    async def delete(self, assignment_id: str) -> None:
        assignment = self._load(assignment_id)
        assignment.is_active = False
        self._finish_write()

    async def delete_day(self, day: str) -> DayDeletion:
        date_key = self._calendar.date_for(day)
        rows = list(self._db.execute(self._active_query().where(Assignment.date == date_key)).scalars())
        for row in rows:
            row.is_active = False
        self._finish_write()
        return DayDeletion(day=day, count=len(rows), assignment_ids=[row.id for row in rows])

    def _duplicate_buckets(self) -> list[list[Assignment]]:
        buckets: dict[tuple, list[Assignment]] = defaultdict(list)
        rows = self._db.execute(
            self._active_query()
            .where(Assignment.date.in_(self._calendar.date_keys))
            .order_by(Assignment.created_at, Assignment.id)
        ).scalars()
        for row in rows:
            buckets[_signature(row)].append(row)
        return [bucket for bucket in buckets.values() if len(bucket) > 1]

    async def find_duplicates(self) -> list[DuplicateGroup]:
        groups = []
        for bucket in self._duplicate_buckets():
            date_key, slot_id, subject, teacher_ids, student_ids = _signature(bucket[0])
            groups.append(
                DuplicateGroup(
                    day=self._calendar.day_for(date_key),
                    time_slot_id=slot_id,
                    subject=subject,
                    teacher_ids=list(teacher_ids),
                    student_ids=list(student_ids),
                    assignment_ids=[row.id for row in bucket],
                )
            )
        return groups

    async def remove_duplicates(self) -> DuplicateRemoval:
        buckets = self._duplicate_buckets()
        removed: list[str] = []
        for bucket in buckets:
            # Keep the oldest row of each bucket.
            for row in bucket[1:]:
                row.is_active = False
                removed.append(row.id)
        if removed:
            self._finish_write()
            logger.info("Removed %d duplicate assignment(s) across %d group(s)", len(removed), len(buckets))
        return DuplicateRemoval(removed=len(removed), duplicates_found=len(buckets), removed_ids=removed)


class SqlAvailabilityProvider:
    def __init__(self, db: Session, calendar: WeekCalendar) -> None:
        self._db = db
        self._calendar = calendar

    async def list(self, entity_type: EntityType, day: str) -> list[AvailableEntity]:
        self._calendar.date_for(day)
        model = Teacher if entity_type == EntityType.teacher else Student
        entities = self._db.execute(
            select(model).where(model.is_active.is_(True)).order_by(model.name)
        ).scalars().all()
        records = self._db.execute(
            select(AvailabilityRecord).where(
                AvailabilityRecord.entity_type == entity_type,
                AvailabilityRecord.day == day,
            )
        ).scalars()
        slots_by_entity = {record.entity_id: list(record.slot_ids or []) for record in records}
        return [
            AvailableEntity(
                id=entity.id,
                name=entity.name,
                availability_slots=slots_by_entity.get(entity.id, []),
                color_keyword=entity.color_keyword,
            )
            for entity in entities
        ]
