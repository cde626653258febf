import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from classdesk.db.base import Base


class EntityType(str, Enum):
    teacher = "teacher"
    student = "student"


class AvailabilityRecord(Base):
    __tablename__ = "availability_records"
    __table_args__ = (UniqueConstraint("entity_type", "entity_id", "day", name="uq_availability_entity_day"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type: Mapped[EntityType] = mapped_column(SAEnum(EntityType, name="entity_type"), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    slot_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
