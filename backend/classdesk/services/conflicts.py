from __future__ import annotations

from collections.abc import Iterable
import logging

from classdesk.schemas.assignment import AssignmentCandidate, AssignmentOut, ConflictCheck
from classdesk.services.ports import AssignmentStore

logger = logging.getLogger(__name__)


def is_sibling(row: AssignmentOut, candidate: AssignmentCandidate) -> bool:
    # Exact equality of both sets; a partial overlap is a foreign class.
    return set(row.teacher_ids) == set(candidate.teacher_ids) and set(row.student_ids) == set(candidate.student_ids)


def detect_conflict(
    rows: Iterable[AssignmentOut],
    candidate: AssignmentCandidate,
    ignore_assignment_id: str | None = None,
    exclude_ids: Iterable[str] = (),
) -> ConflictCheck:
    """Find rows at the candidate's slot sharing a teacher or student.

    ``exclude_ids`` drops rows outright, before the sibling rule applies; an
    edit passes the ids of the class being rewritten so its own rows on other
    days never count against it.
    """
    skipped = set(exclude_ids)
    ignore_id = ignore_assignment_id or candidate.assignment_id
    if ignore_id is not None:
        skipped.add(ignore_id)
    teacher_ids = set(candidate.teacher_ids)
    student_ids = set(candidate.student_ids)

    conflicting_teachers: dict[str, str] = {}
    conflicting_students: dict[str, str] = {}
    conflicting_rows: list[str] = []
    for row in rows:
        if row.time_slot_id != candidate.time_slot_id or row.id in skipped:
            continue
        if is_sibling(row, candidate):
            continue
        shared_teachers = [teacher for teacher in row.teachers if teacher.id in teacher_ids]
        shared_students = [student for student in row.students if student.id in student_ids]
        if shared_teachers or shared_students:
            conflicting_teachers.update((teacher.id, teacher.name) for teacher in shared_teachers)
            conflicting_students.update((student.id, student.name) for student in shared_students)
            conflicting_rows.append(row.id)

    teacher_order = sorted(conflicting_teachers)
    student_order = sorted(conflicting_students)
    return ConflictCheck(
        day=candidate.day,
        time_slot_id=candidate.time_slot_id,
        conflict=bool(conflicting_rows),
        conflicting_teacher_ids=teacher_order,
        conflicting_student_ids=student_order,
        conflicting_assignment_ids=conflicting_rows,
        conflicting_teacher_names=[conflicting_teachers[key] for key in teacher_order],
        conflicting_student_names=[conflicting_students[key] for key in student_order],
    )


class ConflictDetector:
    def __init__(self, store: AssignmentStore) -> None:
        self._store = store

    async def check(
        self,
        candidate: AssignmentCandidate,
        ignore_assignment_id: str | None = None,
        exclude_ids: Iterable[str] = (),
    ) -> ConflictCheck:
        rows = await self._store.list(candidate.day)
        return detect_conflict(rows, candidate, ignore_assignment_id, exclude_ids)

    async def check_days(
        self,
        candidates: Iterable[AssignmentCandidate],
        ignore_assignment_id: str | None = None,
        exclude_ids: Iterable[str] = (),
    ) -> dict[str, ConflictCheck]:
        """Check each candidate in turn; returns only the days that conflict."""
        excluded = set(exclude_ids)
        conflicts: dict[str, ConflictCheck] = {}
        for candidate in candidates:
            result = await self.check(candidate, ignore_assignment_id, excluded)
            if result.conflict:
                conflicts[candidate.day] = result
        return conflicts

    async def probe(
        self,
        candidates: Iterable[AssignmentCandidate],
        ignore_assignment_id: str | None = None,
    ) -> dict[str, ConflictCheck]:
        """Advisory check for highlighting; a failed lookup counts as no conflict."""
        results: dict[str, ConflictCheck] = {}
        for candidate in candidates:
            try:
                results[candidate.day] = await self.check(candidate, ignore_assignment_id)
            except Exception:
                logger.warning(
                    "Conflict probe failed for %s slot %s; treating as no conflict",
                    candidate.day,
                    candidate.time_slot_id,
                    exc_info=True,
                )
                results[candidate.day] = ConflictCheck(day=candidate.day, time_slot_id=candidate.time_slot_id)
        return results
