"""create scheduling tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    entity_type = sa.Enum("teacher", "student", name="entity_type")

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("color_keyword", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_name", "teachers", ["name"])

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("english_name", sa.String(length=200), nullable=True),
        sa.Column("color_keyword", sa.String(length=50), nullable=True),
        sa.Column("teacher_notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_students_name", "students", ["name"])

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
    )
    op.create_index("ix_time_slots_display_order", "time_slots", ["display_order"])

    op.create_table(
        "availability_records",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("slot_ids", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("entity_type", "entity_id", "day", name="uq_availability_entity_day"),
    )
    op.create_index("ix_availability_records_entity_id", "availability_records", ["entity_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("time_slot_id", sa.String(length=36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("color_keyword", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_assignments_date", "assignments", ["date"])
    op.create_index("ix_assignments_time_slot_id", "assignments", ["time_slot_id"])
    op.create_index("ix_assignments_is_active", "assignments", ["is_active"])

    op.create_table(
        "assignment_teachers",
        sa.Column(
            "assignment_id",
            sa.String(length=36),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), primary_key=True),
        sa.Column("is_substitute", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

    op.create_table(
        "assignment_students",
        sa.Column(
            "assignment_id",
            sa.String(length=36),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("students.id"), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table("assignment_students")
    op.drop_table("assignment_teachers")
    op.drop_index("ix_assignments_is_active", table_name="assignments")
    op.drop_index("ix_assignments_time_slot_id", table_name="assignments")
    op.drop_index("ix_assignments_date", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("ix_availability_records_entity_id", table_name="availability_records")
    op.drop_table("availability_records")
    op.drop_index("ix_time_slots_display_order", table_name="time_slots")
    op.drop_table("time_slots")
    op.drop_index("ix_students_name", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_teachers_name", table_name="teachers")
    op.drop_table("teachers")
    sa.Enum(name="entity_type").drop(op.get_bind(), checkfirst=True)
