from pydantic import BaseModel, Field, field_validator, model_validator

from classdesk.schemas.common import TIME_PATTERN, parse_time_to_minutes


class TimeSlotBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start_time: str
    end_time: str
    display_order: int = Field(ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "TimeSlotBase":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class TimeSlotCreate(TimeSlotBase):
    pass


class TimeSlotOut(TimeSlotBase):
    id: str

    model_config = {"from_attributes": True}


class SlotSequenceOut(BaseModel):
    start_slot_id: str
    duration_minutes: int
    slot_ids: list[str]
