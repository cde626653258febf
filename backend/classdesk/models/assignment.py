import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from classdesk.db.base import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    date: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    time_slot_id: Mapped[str] = mapped_column(String(36), ForeignKey("time_slots.id"), index=True, nullable=False)
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    color_keyword: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    teacher_links: Mapped[list["AssignmentTeacher"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    student_links: Mapped[list["AssignmentStudent"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class AssignmentTeacher(Base):
    __tablename__ = "assignment_teachers"

    assignment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assignments.id", ondelete="CASCADE"), primary_key=True
    )
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id"), primary_key=True)
    is_substitute: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    assignment: Mapped[Assignment] = relationship(back_populates="teacher_links")
    teacher: Mapped["Teacher"] = relationship(lazy="joined")


class AssignmentStudent(Base):
    __tablename__ = "assignment_students"

    assignment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assignments.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id"), primary_key=True)

    assignment: Mapped[Assignment] = relationship(back_populates="student_links")
    student: Mapped["Student"] = relationship(lazy="joined")

