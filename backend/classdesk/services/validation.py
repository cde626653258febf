from __future__ import annotations

from classdesk.core.config import Settings
from classdesk.core.exceptions import CapacityError
from classdesk.schemas.assignment import AssignmentCandidate, ValidationResult
from classdesk.services.ports import AssignmentStore


def ensure_capacity(teacher_count: int, student_count: int, settings: Settings) -> None:
    if (
        teacher_count > settings.max_teachers_per_assignment
        or student_count > settings.max_students_per_assignment
    ):
        raise CapacityError(
            teachers=teacher_count,
            students=student_count,
            max_teachers=settings.max_teachers_per_assignment,
            max_students=settings.max_students_per_assignment,
        )


class StoreValidationGate:
    """Authoritative point-in-time check run immediately before each create.

    Any other active row at the same day and slot that already holds one of
    the candidate's teachers or students rejects the candidate.
    """

    def __init__(self, store: AssignmentStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    async def validate(self, candidate: AssignmentCandidate) -> ValidationResult:
        errors: list[str] = []
        try:
            ensure_capacity(len(set(candidate.teacher_ids)), len(set(candidate.student_ids)), self._settings)
        except CapacityError as exc:
            errors.append(exc.message)

        rows = [
            row
            for row in await self._store.list(candidate.day)
            if row.time_slot_id == candidate.time_slot_id and row.id != candidate.assignment_id
        ]

        for teacher_id in dict.fromkeys(candidate.teacher_ids):
            booked = next((row for row in rows if teacher_id in row.teacher_ids), None)
            if booked is None:
                continue
            name = next(teacher.name for teacher in booked.teachers if teacher.id == teacher_id)
            students = ", ".join(student.name for student in booked.students) or "none"
            errors.append(f"Teacher {name} is already scheduled with student(s): {students} at this time")

        for student_id in dict.fromkeys(candidate.student_ids):
            booked = next((row for row in rows if student_id in row.student_ids), None)
            if booked is None:
                continue
            name = next(student.name for student in booked.students if student.id == student_id)
            teachers = ", ".join(teacher.name for teacher in booked.teachers) or "none"
            errors.append(f"Student {name} is already scheduled with teacher(s): {teachers} at this time")

        return ValidationResult(valid=not errors, errors=errors)
