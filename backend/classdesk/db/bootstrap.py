from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.orm import Session

import classdesk.models  # noqa: F401
from classdesk.core.config import get_settings
from classdesk.db.base import Base
from classdesk.db.session import engine
from classdesk.services.slots import seed_default_time_slots

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "name", "is_active"},
    "students": {"id", "name", "is_active"},
    "time_slots": {"id", "name", "start_time", "end_time", "display_order"},
    "availability_records": {"id", "entity_type", "entity_id", "day", "slot_ids"},
    "assignments": {"id", "date", "time_slot_id", "subject", "notes", "is_active"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def _seed_time_slots() -> None:
    with Session(engine) as db:
        created = seed_default_time_slots(db)
    if created:
        logger.info("Seeded %d default time slot(s)", created)


def ensure_runtime_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
        if get_settings().seed_time_slots:
            _seed_time_slots()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
