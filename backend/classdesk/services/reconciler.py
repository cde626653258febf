"""Reconcile edits to the set of days a class occurs on.

Planning is read-only and produces a :class:`ReconcilePlan`; execution then
applies it with strictly sequential store calls. The strategy is chosen top
to bottom, first match wins:

1. ``single_update``: one day, day set unchanged. Update the sole row.
2. ``add_days``: days only added. Create rows for the new days and leave
   the existing rows untouched.
3. ``field_update``: days, teachers and students unchanged. Update subject,
   notes and color on every member row.
4. ``recreate``: anything else. Delete every row matching the pre-edit
   identity, then create one row per selected day.
"""
from __future__ import annotations

from collections.abc import Iterable
from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

from classdesk.core.calendar import WeekCalendar
from classdesk.core.config import Settings
from classdesk.core.exceptions import ConflictError, PartialDeletionFailure, ValidationRejected
from classdesk.models.time_slot import TimeSlot
from classdesk.schemas.assignment import (
    AssignmentCandidate,
    AssignmentCreate,
    AssignmentOut,
    AssignmentUpdate,
    ConflictCheck,
)
from classdesk.schemas.class_group import (
    ClassCreate,
    ClassDeletion,
    ClassEdit,
    ClassGroup,
    PlannedCreate,
    PlannedDelete,
    PlannedUpdate,
    ReconcilePlan,
    ReconcileResult,
    ReconcileStrategy,
)
from classdesk.services.class_groups import normalize_subject
from classdesk.services.conflicts import ConflictDetector
from classdesk.services.ports import AssignmentStore, ValidationGate
from classdesk.services.slots import consecutive_slots
from classdesk.services.validation import ensure_capacity

logger = logging.getLogger(__name__)


def conflict_details(conflicts: dict[str, ConflictCheck]) -> dict[str, dict]:
    return {
        day: {
            "time_slot_id": check.time_slot_id,
            "conflicting_teacher_ids": check.conflicting_teacher_ids,
            "conflicting_student_ids": check.conflicting_student_ids,
            "conflicting_assignment_ids": check.conflicting_assignment_ids,
            "conflicting_teacher_names": check.conflicting_teacher_names,
            "conflicting_student_names": check.conflicting_student_names,
        }
        for day, check in conflicts.items()
    }


class DaySetReconciler:
    def __init__(
        self,
        store: AssignmentStore,
        gate: ValidationGate,
        settings: Settings,
        calendar: WeekCalendar,
    ) -> None:
        self._store = store
        self._gate = gate
        self._settings = settings
        self._calendar = calendar
        self._detector = ConflictDetector(store)
        self._transactional = settings.reconcile_in_transaction and getattr(store, "transactional", False)

    @asynccontextmanager
    async def _scope(self) -> AsyncIterator[None]:
        if self._transactional:
            async with self._store.unit_of_work():
                yield
        else:
            yield

    async def _matching_rows(
        self,
        days: Iterable[str],
        *,
        time_slot_id: str,
        teacher_ids: Iterable[str],
        student_ids: Iterable[str],
        subject: str | None,
    ) -> list[tuple[str, AssignmentOut]]:
        """Re-read the given days and return rows matching a class identity exactly."""
        wanted_teachers = set(teacher_ids)
        wanted_students = set(student_ids)
        wanted_subject = normalize_subject(subject)
        matches = []
        for day in days:
            for row in await self._store.list(day):
                if (
                    row.time_slot_id == time_slot_id
                    and set(row.teacher_ids) == wanted_teachers
                    and set(row.student_ids) == wanted_students
                    and normalize_subject(row.subject) == wanted_subject
                ):
                    matches.append((day, row))
        return matches

    async def _matching_group_rows(self, group: ClassGroup) -> list[tuple[str, AssignmentOut]]:
        return await self._matching_rows(
            self._calendar.sort_days(group.days),
            time_slot_id=group.time_slot_id,
            teacher_ids=group.teacher_ids,
            student_ids=group.student_ids,
            subject=group.subject,
        )

    async def plan(self, edit: ClassEdit) -> ReconcilePlan:
        original = edit.original
        original_days = self._calendar.sort_days(original.days)
        selected_days = self._calendar.sort_days(edit.selected_days)
        original_set = set(original_days)
        selected_set = set(selected_days)
        slot_id = original.time_slot_id
        representative_id = original.assignments[0].id if original.assignments else None

        def candidate(day: str) -> AssignmentCandidate:
            return AssignmentCandidate(
                day=day,
                time_slot_id=slot_id,
                teacher_ids=edit.teacher_ids,
                student_ids=edit.student_ids,
                assignment_id=representative_id,
            )

        def create_payload(day: str) -> AssignmentCreate:
            return AssignmentCreate(
                day=day,
                time_slot_id=slot_id,
                teachers=edit.teachers,
                students=edit.students,
                subject=edit.subject,
                notes=edit.notes,
                color_keyword=edit.color_keyword,
            )

        if selected_set == original_set and len(selected_days) == 1:
            day = selected_days[0]
            row = next((item for item in original.assignments if item.day == day), original.assignments[0])
            conflicts = await self._detector.check_days([candidate(day)], ignore_assignment_id=row.id)
            return ReconcilePlan(
                strategy=ReconcileStrategy.single_update,
                conflicts=conflicts,
                to_update=[
                    PlannedUpdate(
                        assignment_id=row.id,
                        day=day,
                        data=AssignmentUpdate(
                            teachers=edit.teachers,
                            students=edit.students,
                            subject=edit.subject,
                            notes=edit.notes,
                            color_keyword=edit.color_keyword,
                        ),
                    )
                ],
            )

        if original_set < selected_set:
            added_days = [day for day in selected_days if day not in original_set]
            conflicts = await self._detector.check_days(
                [candidate(day) for day in added_days],
                ignore_assignment_id=representative_id,
            )
            return ReconcilePlan(
                strategy=ReconcileStrategy.add_days,
                conflicts=conflicts,
                to_create=[PlannedCreate(day=day, data=create_payload(day)) for day in added_days],
            )

        teachers_unchanged = set(edit.teacher_ids) == set(original.teacher_ids)
        students_unchanged = set(edit.student_ids) == set(original.student_ids)
        if selected_set == original_set and teachers_unchanged and students_unchanged:
            members = await self._matching_group_rows(original)
            field_changes = AssignmentUpdate(
                subject=edit.subject,
                notes=edit.notes,
                color_keyword=edit.color_keyword,
            )
            return ReconcilePlan(
                strategy=ReconcileStrategy.field_update,
                to_update=[
                    PlannedUpdate(assignment_id=row.id, day=day, data=field_changes)
                    for day, row in members
                ],
            )

        plan = ReconcilePlan(strategy=ReconcileStrategy.recreate)
        # Rows about to be swept are not competition, whatever the new membership.
        members = await self._matching_group_rows(original)
        plan.conflicts = await self._detector.check_days(
            [candidate(day) for day in selected_days],
            ignore_assignment_id=representative_id,
            exclude_ids=[row.id for _, row in members],
        )
        if plan.conflicts:
            return plan

        for day in selected_days:
            if day in original_set:
                continue
            validation = await self._gate.validate(candidate(day))
            if not validation.valid:
                plan.rejections[day] = validation.errors
                return plan

        plan.to_delete = [PlannedDelete(assignment_id=row.id, day=day) for day, row in members]
        plan.to_create = [
            PlannedCreate(day=day, data=create_payload(day), previously_scheduled=day in original_set)
            for day in selected_days
        ]
        return plan

    async def apply(self, edit: ClassEdit) -> ReconcileResult:
        ensure_capacity(len(set(edit.teacher_ids)), len(set(edit.student_ids)), self._settings)
        async with self._scope():
            plan = await self.plan(edit)
            self._raise_if_blocked(plan)
            result = ReconcileResult(strategy=plan.strategy)
            for planned in plan.to_update:
                result.updated.append(await self._store.update(planned.assignment_id, planned.data))
            result.deleted_ids = await self._delete_sequentially(plan.to_delete)
            for planned in plan.to_create:
                result.created.append(await self._validated_create(planned.day, planned.data))

        logger.info(
            "Reconciled class %s via %s: %d updated, %d deleted, %d created",
            edit.original.class_group_id,
            plan.strategy.value,
            len(result.updated),
            len(result.deleted_ids),
            len(result.created),
        )
        return result

    def _raise_if_blocked(self, plan: ReconcilePlan) -> None:
        if not plan.blocked:
            return
        if plan.conflicts:
            raise ConflictError(conflict_details(plan.conflicts))
        for day, errors in plan.rejections.items():
            raise ValidationRejected(day, errors)

    async def _delete_sequentially(self, targets: list[PlannedDelete]) -> list[str]:
        deleted: list[str] = []
        for target in targets:
            try:
                await self._store.delete(target.assignment_id)
            except Exception as exc:
                logger.error(
                    "Delete sweep failed at assignment %s (%s) after %d deletion(s)",
                    target.assignment_id,
                    target.day,
                    len(deleted),
                )
                raise PartialDeletionFailure(
                    deleted_ids=deleted,
                    failed_id=target.assignment_id,
                    cause=exc,
                    rolled_back=self._transactional,
                ) from exc
            deleted.append(target.assignment_id)
        return deleted

    async def _validated_create(self, day: str, data: AssignmentCreate) -> AssignmentOut:
        validation = await self._gate.validate(AssignmentCandidate.from_create(data))
        if not validation.valid:
            logger.warning("Validation gate rejected %s slot %s: %s", day, data.time_slot_id, validation.errors)
            raise ValidationRejected(day, validation.errors, rolled_back=self._transactional)
        return await self._store.create(data)

    async def create_class(self, request: ClassCreate, time_slots: Iterable[TimeSlot]) -> list[AssignmentOut]:
        ensure_capacity(
            len({ref.teacher_id for ref in request.teachers}),
            len({ref.student_id for ref in request.students}),
            self._settings,
        )
        sequence = consecutive_slots(time_slots, request.start_slot_id, request.duration_minutes)
        days = self._calendar.sort_days(request.days)
        notes = request.notes
        if request.duration_minutes > 25:
            notes = f"{request.notes or ''} ({request.duration_minutes} min class)".strip()

        payloads = [
            AssignmentCreate(
                day=day,
                time_slot_id=slot_id,
                teachers=request.teachers,
                students=request.students,
                subject=request.subject,
                notes=notes,
                color_keyword=request.color_keyword,
            )
            for day in days
            for slot_id in sequence
        ]

        created: list[AssignmentOut] = []
        async with self._scope():
            conflicts: dict[str, ConflictCheck] = {}
            for payload in payloads:
                if payload.day in conflicts:
                    continue
                check = await self._detector.check(AssignmentCandidate.from_create(payload))
                if check.conflict:
                    conflicts[payload.day] = check
            if conflicts:
                raise ConflictError(conflict_details(conflicts))
            for payload in payloads:
                created.append(await self._validated_create(payload.day, payload))

        logger.info(
            "Created class on %s over %d slot(s): %d assignment(s)",
            ", ".join(days),
            len(sequence),
            len(created),
        )
        return created

    async def delete_group(self, group: ClassGroup) -> ClassDeletion:
        async with self._scope():
            members = await self._matching_group_rows(group)
            deleted = await self._delete_sequentially(
                [PlannedDelete(assignment_id=row.id, day=day) for day, row in members]
            )
        logger.info("Deleted class %s: %d assignment(s)", group.class_group_id, len(deleted))
        return ClassDeletion(
            class_group_id=group.class_group_id,
            days=self._calendar.sort_days(group.days),
            deleted_ids=deleted,
        )
