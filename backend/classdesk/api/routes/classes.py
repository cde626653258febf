from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from classdesk.api.deps import get_calendar, get_db, get_reconciler, get_store, parse_day
from classdesk.core.calendar import WeekCalendar
from classdesk.core.exceptions import ResourceNotFoundError
from classdesk.schemas.assignment import AssignmentCandidate, AssignmentOut, ConflictCheck
from classdesk.schemas.class_group import (
    ClassCreate,
    ClassDeletion,
    ClassEdit,
    ClassEditRequest,
    ClassGroup,
    ConflictProbeRequest,
    ReconcilePlan,
    ReconcileResult,
    TeacherBoardCell,
)
from classdesk.services.class_groups import find_group, resolve_class_groups, teacher_board
from classdesk.services.conflicts import ConflictDetector
from classdesk.services.reconciler import DaySetReconciler
from classdesk.services.slots import list_time_slots
from classdesk.services.store import SqlAssignmentStore

router = APIRouter()


async def _rows(store: SqlAssignmentStore, day: str | None) -> list[AssignmentOut]:
    if day is None:
        return await store.list_all()
    return await store.list(parse_day(day))


async def _load_group(store: SqlAssignmentStore, calendar: WeekCalendar, class_group_id: str) -> ClassGroup:
    group = find_group(await store.list_all(), calendar, class_group_id)
    if group is None:
        raise ResourceNotFoundError("Class", class_group_id)
    return group


async def _edit_from_request(
    payload: ClassEditRequest,
    store: SqlAssignmentStore,
    calendar: WeekCalendar,
) -> ClassEdit:
    original = await _load_group(store, calendar, payload.class_group_id)
    return ClassEdit(
        original=original,
        selected_days=payload.selected_days,
        teachers=payload.teachers,
        students=payload.students,
        subject=payload.subject,
        notes=payload.notes,
        color_keyword=payload.color_keyword,
    )


@router.get("/", response_model=list[ClassGroup])
async def list_classes(
    day: str | None = None,
    store: SqlAssignmentStore = Depends(get_store),
    calendar: WeekCalendar = Depends(get_calendar),
) -> list[ClassGroup]:
    return resolve_class_groups(await _rows(store, day), calendar)


@router.get("/board", response_model=list[TeacherBoardCell])
async def list_board(
    day: str = Query(min_length=1),
    store: SqlAssignmentStore = Depends(get_store),
    calendar: WeekCalendar = Depends(get_calendar),
) -> list[TeacherBoardCell]:
    return teacher_board(await _rows(store, day), calendar)


@router.post("/", response_model=list[AssignmentOut], status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db),
    reconciler: DaySetReconciler = Depends(get_reconciler),
) -> list[AssignmentOut]:
    return await reconciler.create_class(payload, list_time_slots(db))


@router.post("/plan", response_model=ReconcilePlan)
async def plan_edit(
    payload: ClassEditRequest,
    store: SqlAssignmentStore = Depends(get_store),
    calendar: WeekCalendar = Depends(get_calendar),
    reconciler: DaySetReconciler = Depends(get_reconciler),
) -> ReconcilePlan:
    return await reconciler.plan(await _edit_from_request(payload, store, calendar))


@router.post("/edit", response_model=ReconcileResult)
async def apply_edit(
    payload: ClassEditRequest,
    store: SqlAssignmentStore = Depends(get_store),
    calendar: WeekCalendar = Depends(get_calendar),
    reconciler: DaySetReconciler = Depends(get_reconciler),
) -> ReconcileResult:
    return await reconciler.apply(await _edit_from_request(payload, store, calendar))


@router.post("/probe", response_model=dict[str, ConflictCheck])
async def probe_conflicts(
    payload: ConflictProbeRequest,
    store: SqlAssignmentStore = Depends(get_store),
) -> dict[str, ConflictCheck]:
    candidates = [
        AssignmentCandidate(
            day=day,
            time_slot_id=payload.time_slot_id,
            teacher_ids=[ref.teacher_id for ref in payload.teachers],
            student_ids=[ref.student_id for ref in payload.students],
        )
        for day in payload.days
    ]
    return await ConflictDetector(store).probe(candidates, payload.ignore_assignment_id)


@router.delete("/{class_group_id}", response_model=ClassDeletion)
async def delete_class(
    class_group_id: str,
    store: SqlAssignmentStore = Depends(get_store),
    calendar: WeekCalendar = Depends(get_calendar),
    reconciler: DaySetReconciler = Depends(get_reconciler),
) -> ClassDeletion:
    return await reconciler.delete_group(await _load_group(store, calendar, class_group_id))
