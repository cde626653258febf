from pydantic import BaseModel, Field, field_validator

from classdesk.models.availability import EntityType


class TeacherBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    color_keyword: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    color_keyword: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None


class TeacherOut(TeacherBase):
    id: str
    is_active: bool

    model_config = {"from_attributes": True}


class StudentBase(TeacherBase):
    english_name: str | None = Field(default=None, max_length=200)
    teacher_notes: str | None = None


class StudentCreate(StudentBase):
    pass


class StudentUpdate(TeacherUpdate):
    english_name: str | None = Field(default=None, max_length=200)
    teacher_notes: str | None = None


class StudentOut(StudentBase):
    id: str
    is_active: bool

    model_config = {"from_attributes": True}


class AvailabilityOut(BaseModel):
    entity_type: EntityType
    entity_id: str
    day: str
    slot_ids: list[str] = Field(default_factory=list)


class AvailabilityUpdate(BaseModel):
    slot_ids: list[str] = Field(default_factory=list, max_length=200)


class AvailabilityToggle(BaseModel):
    slot_id: str = Field(min_length=1)


class AvailableEntity(BaseModel):
    id: str
    name: str
    availability_slots: list[str] = Field(default_factory=list)
    color_keyword: str | None = None


class UnavailableAssignment(BaseModel):
    assignment_id: str
    day: str
    time_slot_id: str
    teacher_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
