from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from classdesk.schemas.common import normalize_day


class TeacherRef(BaseModel):
    teacher_id: str = Field(min_length=1)
    is_substitute: bool = False


class StudentRef(BaseModel):
    student_id: str = Field(min_length=1)


class AssignmentCreate(BaseModel):
    day: str
    time_slot_id: str = Field(min_length=1)
    teachers: list[TeacherRef] = Field(default_factory=list)
    students: list[StudentRef] = Field(default_factory=list)
    subject: str | None = Field(default=None, max_length=200)
    notes: str | None = None
    color_keyword: str | None = Field(default=None, max_length=50)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @property
    def teacher_ids(self) -> list[str]:
        return [ref.teacher_id for ref in self.teachers]

    @property
    def student_ids(self) -> list[str]:
        return [ref.student_id for ref in self.students]


class AssignmentUpdate(BaseModel):
    day: str | None = None
    time_slot_id: str | None = None
    teachers: list[TeacherRef] | None = None
    students: list[StudentRef] | None = None
    subject: str | None = Field(default=None, max_length=200)
    notes: str | None = None
    color_keyword: str | None = Field(default=None, max_length=50)

    # Explicit nulls only reach these validators; omitted fields keep the stored value.
    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("day cannot be null")
        return normalize_day(value)

    @field_validator("time_slot_id")
    @classmethod
    def validate_time_slot_id(cls, value: str | None) -> str:
        if not value:
            raise ValueError("time_slot_id cannot be empty")
        return value


class AssignmentTeacherOut(BaseModel):
    id: str
    name: str
    color_keyword: str | None = None
    is_substitute: bool = False


class AssignmentStudentOut(BaseModel):
    id: str
    name: str
    english_name: str | None = None
    color_keyword: str | None = None


class AssignmentOut(BaseModel):
    id: str
    day: str
    date: str
    time_slot_id: str
    teachers: list[AssignmentTeacherOut] = Field(default_factory=list)
    students: list[AssignmentStudentOut] = Field(default_factory=list)
    subject: str | None = None
    notes: str | None = None
    color_keyword: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def teacher_ids(self) -> list[str]:
        return [teacher.id for teacher in self.teachers]

    @property
    def student_ids(self) -> list[str]:
        return [student.id for student in self.students]


class AssignmentCandidate(BaseModel):
    """Shape shared by the conflict detector and the validation gate."""

    day: str
    time_slot_id: str = Field(min_length=1)
    teacher_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
    assignment_id: str | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @classmethod
    def from_create(cls, data: AssignmentCreate, *, assignment_id: str | None = None) -> "AssignmentCandidate":
        return cls(
            day=data.day,
            time_slot_id=data.time_slot_id,
            teacher_ids=data.teacher_ids,
            student_ids=data.student_ids,
            assignment_id=assignment_id,
        )


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class ConflictCheck(BaseModel):
    day: str
    time_slot_id: str
    conflict: bool = False
    conflicting_teacher_ids: list[str] = Field(default_factory=list)
    conflicting_student_ids: list[str] = Field(default_factory=list)
    conflicting_assignment_ids: list[str] = Field(default_factory=list)
    conflicting_teacher_names: list[str] = Field(default_factory=list)
    conflicting_student_names: list[str] = Field(default_factory=list)


class DuplicateGroup(BaseModel):
    day: str
    time_slot_id: str
    subject: str
    teacher_ids: list[str]
    student_ids: list[str]
    assignment_ids: list[str]


class DuplicateRemoval(BaseModel):
    removed: int
    duplicates_found: int
    removed_ids: list[str] = Field(default_factory=list)


class DayDeletion(BaseModel):
    day: str
    count: int
    assignment_ids: list[str] = Field(default_factory=list)
