from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from classdesk.api.deps import get_availability_service, get_settings, get_store, get_validation_gate, parse_day
from classdesk.core.config import Settings
from classdesk.core.exceptions import ValidationRejected
from classdesk.schemas.assignment import (
    AssignmentCandidate,
    AssignmentCreate,
    AssignmentOut,
    AssignmentUpdate,
    ConflictCheck,
    DayDeletion,
    DuplicateGroup,
    DuplicateRemoval,
    ValidationResult,
)
from classdesk.schemas.people import UnavailableAssignment
from classdesk.services.availability import AvailabilityService, find_unavailable_assigned
from classdesk.services.conflicts import ConflictDetector
from classdesk.services.store import SqlAssignmentStore
from classdesk.services.validation import StoreValidationGate, ensure_capacity

router = APIRouter()


class ConflictCheckRequest(AssignmentCandidate):
    ignore_assignment_id: str | None = None


class DeleteResult(BaseModel):
    success: bool
    assignment_id: str


@router.get("/", response_model=list[AssignmentOut])
async def list_assignments(
    day: str = Query(min_length=1),
    store: SqlAssignmentStore = Depends(get_store),
) -> list[AssignmentOut]:
    return await store.list(parse_day(day))


@router.get("/week", response_model=list[AssignmentOut])
async def list_week(store: SqlAssignmentStore = Depends(get_store)) -> list[AssignmentOut]:
    return await store.list_all()


@router.get("/duplicates", response_model=list[DuplicateGroup])
async def find_duplicates(store: SqlAssignmentStore = Depends(get_store)) -> list[DuplicateGroup]:
    return await store.find_duplicates()


@router.delete("/duplicates", response_model=DuplicateRemoval)
async def remove_duplicates(store: SqlAssignmentStore = Depends(get_store)) -> DuplicateRemoval:
    return await store.remove_duplicates()


@router.get("/unavailable", response_model=list[UnavailableAssignment])
async def unavailable_but_assigned(
    store: SqlAssignmentStore = Depends(get_store),
    availability: AvailabilityService = Depends(get_availability_service),
) -> list[UnavailableAssignment]:
    return find_unavailable_assigned(await store.list_all(), availability.index())


@router.get("/student/{student_id}", response_model=list[AssignmentOut])
async def list_for_student(
    student_id: str,
    store: SqlAssignmentStore = Depends(get_store),
) -> list[AssignmentOut]:
    return await store.list_for_student(student_id)


@router.post("/validate", response_model=ValidationResult)
async def validate_assignment(
    candidate: AssignmentCandidate,
    gate: StoreValidationGate = Depends(get_validation_gate),
) -> ValidationResult:
    return await gate.validate(candidate)


@router.post("/conflicts", response_model=ConflictCheck)
async def check_conflicts(
    payload: ConflictCheckRequest,
    store: SqlAssignmentStore = Depends(get_store),
) -> ConflictCheck:
    return await ConflictDetector(store).check(payload, payload.ignore_assignment_id)


@router.delete("/day/{day}", response_model=DayDeletion)
async def delete_day(day: str, store: SqlAssignmentStore = Depends(get_store)) -> DayDeletion:
    return await store.delete_day(parse_day(day))


@router.get("/{assignment_id}", response_model=AssignmentOut)
async def get_assignment(assignment_id: str, store: SqlAssignmentStore = Depends(get_store)) -> AssignmentOut:
    return await store.get(assignment_id)


@router.post("/", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    store: SqlAssignmentStore = Depends(get_store),
    gate: StoreValidationGate = Depends(get_validation_gate),
    settings: Settings = Depends(get_settings),
) -> AssignmentOut:
    ensure_capacity(len(set(payload.teacher_ids)), len(set(payload.student_ids)), settings)
    validation = await gate.validate(AssignmentCandidate.from_create(payload))
    if not validation.valid:
        raise ValidationRejected(payload.day, validation.errors)
    return await store.create(payload)


@router.put("/{assignment_id}", response_model=AssignmentOut)
async def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    store: SqlAssignmentStore = Depends(get_store),
    gate: StoreValidationGate = Depends(get_validation_gate),
    settings: Settings = Depends(get_settings),
) -> AssignmentOut:
    current = await store.get(assignment_id)
    teacher_ids = [ref.teacher_id for ref in payload.teachers] if payload.teachers is not None else current.teacher_ids
    student_ids = [ref.student_id for ref in payload.students] if payload.students is not None else current.student_ids
    ensure_capacity(len(set(teacher_ids)), len(set(student_ids)), settings)

    structural = {"day", "time_slot_id", "teachers", "students"} & payload.model_fields_set
    if structural:
        candidate = AssignmentCandidate(
            day=payload.day or current.day,
            time_slot_id=payload.time_slot_id or current.time_slot_id,
            teacher_ids=teacher_ids,
            student_ids=student_ids,
            assignment_id=assignment_id,
        )
        validation = await gate.validate(candidate)
        if not validation.valid:
            raise ValidationRejected(candidate.day, validation.errors)
    return await store.update(assignment_id, payload)


@router.delete("/{assignment_id}", response_model=DeleteResult)
async def delete_assignment(assignment_id: str, store: SqlAssignmentStore = Depends(get_store)) -> DeleteResult:
    await store.delete(assignment_id)
    return DeleteResult(success=True, assignment_id=assignment_id)
