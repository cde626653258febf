"""Derive logical multi-day classes from flat per-day assignment rows.

A class group is every active row sharing the same teacher set, student set,
subject and slot. Groups are recomputed on each read and identified by a
hash of those fields, never by display names.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
import hashlib

from classdesk.core.calendar import WeekCalendar
from classdesk.schemas.assignment import AssignmentOut
from classdesk.schemas.class_group import ClassGroup, TeacherBoardCell


def normalize_subject(subject: str | None) -> str:
    return (subject or "").strip()


def class_group_id(
    teacher_ids: Iterable[str],
    student_ids: Iterable[str],
    subject: str | None,
    time_slot_id: str,
) -> str:
    raw = "|".join(
        [
            ",".join(sorted(set(teacher_ids))),
            ",".join(sorted(set(student_ids))),
            normalize_subject(subject),
            time_slot_id,
        ]
    )
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def group_id_for(assignment: AssignmentOut) -> str:
    return class_group_id(assignment.teacher_ids, assignment.student_ids, assignment.subject, assignment.time_slot_id)


def _build_group(group_id: str, rows: list[AssignmentOut], calendar: WeekCalendar) -> ClassGroup:
    first = rows[0]
    return ClassGroup(
        class_group_id=group_id,
        time_slot_id=first.time_slot_id,
        subject=normalize_subject(first.subject),
        teacher_ids=sorted(set(first.teacher_ids)),
        student_ids=sorted(set(first.student_ids)),
        teachers=list(first.teachers),
        students=list(first.students),
        days=calendar.sort_days(row.day for row in rows),
        assignments=list(rows),
    )


def resolve_class_groups(assignments: Iterable[AssignmentOut], calendar: WeekCalendar) -> list[ClassGroup]:
    buckets: dict[str, list[AssignmentOut]] = defaultdict(list)
    for assignment in assignments:
        buckets[group_id_for(assignment)].append(assignment)
    groups = [_build_group(group_id, rows, calendar) for group_id, rows in buckets.items()]
    groups.sort(key=lambda group: (group.time_slot_id, group.subject, group.class_group_id))
    return groups


def find_group(
    assignments: Iterable[AssignmentOut],
    calendar: WeekCalendar,
    group_id: str,
) -> ClassGroup | None:
    rows = [assignment for assignment in assignments if group_id_for(assignment) == group_id]
    if not rows:
        return None
    return _build_group(group_id, rows, calendar)


def teacher_board(
    assignments: Iterable[AssignmentOut],
    calendar: WeekCalendar,
) -> list[TeacherBoardCell]:
    """Per-teacher grid cells: one entry per (slot, teacher) with its classes.

    Within a cell, classes are told apart by their sorted student names and
    subject, which is how the grid displays them.
    """
    cells: dict[tuple[str, str], dict[tuple[tuple[str, ...], str], list[AssignmentOut]]] = defaultdict(
        lambda: defaultdict(list)
    )
    teacher_names: dict[str, str] = {}
    for assignment in assignments:
        student_key = tuple(sorted(student.name for student in assignment.students))
        subject = normalize_subject(assignment.subject)
        for teacher in assignment.teachers:
            teacher_names[teacher.id] = teacher.name
            cells[(assignment.time_slot_id, teacher.id)][(student_key, subject)].append(assignment)

    board = []
    for (slot_id, teacher_id), classes in cells.items():
        groups = [
            _build_group(group_id_for(rows[0]), rows, calendar)
            for _, rows in sorted(classes.items(), key=lambda item: item[0])
        ]
        board.append(
            TeacherBoardCell(
                time_slot_id=slot_id,
                teacher_id=teacher_id,
                teacher_name=teacher_names[teacher_id],
                classes=groups,
            )
        )
    board.sort(key=lambda cell: (cell.time_slot_id, cell.teacher_name.lower(), cell.teacher_id))
    return board
