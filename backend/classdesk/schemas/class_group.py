from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from classdesk.schemas.assignment import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentStudentOut,
    AssignmentTeacherOut,
    AssignmentUpdate,
    ConflictCheck,
    StudentRef,
    TeacherRef,
)
from classdesk.schemas.common import normalize_day


class ClassGroup(BaseModel):
    class_group_id: str
    time_slot_id: str
    subject: str
    teacher_ids: list[str]
    student_ids: list[str]
    teachers: list[AssignmentTeacherOut] = Field(default_factory=list)
    students: list[AssignmentStudentOut] = Field(default_factory=list)
    days: list[str] = Field(default_factory=list)
    assignments: list[AssignmentOut] = Field(default_factory=list)


class TeacherBoardCell(BaseModel):
    time_slot_id: str
    teacher_id: str
    teacher_name: str
    classes: list[ClassGroup] = Field(default_factory=list)


class ClassFields(BaseModel):
    teachers: list[TeacherRef] = Field(default_factory=list)
    students: list[StudentRef] = Field(default_factory=list)
    subject: str | None = Field(default=None, max_length=200)
    notes: str | None = None
    color_keyword: str | None = Field(default=None, max_length=50)


def _normalize_days(values: list[str]) -> list[str]:
    days = [normalize_day(value) for value in values]
    if not days:
        raise ValueError("Select at least one day for the class")
    return list(dict.fromkeys(days))


class ClassCreate(ClassFields):
    days: list[str]
    start_slot_id: str = Field(min_length=1)
    duration_minutes: int = 25

    @field_validator("days")
    @classmethod
    def validate_days(cls, values: list[str]) -> list[str]:
        return _normalize_days(values)


class ClassEditRequest(ClassFields):
    class_group_id: str = Field(min_length=1)
    selected_days: list[str]

    @field_validator("selected_days")
    @classmethod
    def validate_days(cls, values: list[str]) -> list[str]:
        return _normalize_days(values)


class ClassEdit(ClassFields):
    """A requested change to an existing class group."""

    original: ClassGroup
    selected_days: list[str]

    @field_validator("selected_days")
    @classmethod
    def validate_days(cls, values: list[str]) -> list[str]:
        return _normalize_days(values)

    @property
    def teacher_ids(self) -> list[str]:
        return [ref.teacher_id for ref in self.teachers]

    @property
    def student_ids(self) -> list[str]:
        return [ref.student_id for ref in self.students]


class ReconcileStrategy(str, Enum):
    single_update = "single_update"
    add_days = "add_days"
    field_update = "field_update"
    recreate = "recreate"


class PlannedUpdate(BaseModel):
    assignment_id: str
    day: str
    data: AssignmentUpdate


class PlannedDelete(BaseModel):
    assignment_id: str
    day: str


class PlannedCreate(BaseModel):
    day: str
    data: AssignmentCreate
    previously_scheduled: bool = False


class ReconcilePlan(BaseModel):
    strategy: ReconcileStrategy
    to_update: list[PlannedUpdate] = Field(default_factory=list)
    to_delete: list[PlannedDelete] = Field(default_factory=list)
    to_create: list[PlannedCreate] = Field(default_factory=list)
    conflicts: dict[str, ConflictCheck] = Field(default_factory=dict)
    rejections: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def blocked(self) -> bool:
        return bool(self.conflicts) or bool(self.rejections)


class ReconcileResult(BaseModel):
    strategy: ReconcileStrategy
    created: list[AssignmentOut] = Field(default_factory=list)
    updated: list[AssignmentOut] = Field(default_factory=list)
    deleted_ids: list[str] = Field(default_factory=list)


class ClassDeletion(BaseModel):
    class_group_id: str
    days: list[str]
    deleted_ids: list[str] = Field(default_factory=list)


class ConflictProbeRequest(ClassFields):
    days: list[str]
    time_slot_id: str = Field(min_length=1)
    ignore_assignment_id: str | None = None

    @field_validator("days")
    @classmethod
    def validate_days(cls, values: list[str]) -> list[str]:
        return _normalize_days(values)
