from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from classdesk.core.calendar import WeekCalendar
from classdesk.core.config import Settings, get_settings
from classdesk.core.exceptions import UnknownDayError
from classdesk.db.session import SessionLocal
from classdesk.schemas.common import normalize_day
from classdesk.services.availability import AvailabilityService
from classdesk.services.reconciler import DaySetReconciler
from classdesk.services.store import SqlAssignmentStore, SqlAvailabilityProvider
from classdesk.services.validation import StoreValidationGate


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_calendar(settings: Settings = Depends(get_settings)) -> WeekCalendar:
    return WeekCalendar(settings.week_dates)


def get_store(
    db: Session = Depends(get_db),
    calendar: WeekCalendar = Depends(get_calendar),
) -> SqlAssignmentStore:
    return SqlAssignmentStore(db, calendar)


def get_validation_gate(
    store: SqlAssignmentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> StoreValidationGate:
    return StoreValidationGate(store, settings)


def get_reconciler(
    store: SqlAssignmentStore = Depends(get_store),
    gate: StoreValidationGate = Depends(get_validation_gate),
    settings: Settings = Depends(get_settings),
    calendar: WeekCalendar = Depends(get_calendar),
) -> DaySetReconciler:
    return DaySetReconciler(store, gate, settings, calendar)


def get_availability_service(
    db: Session = Depends(get_db),
    calendar: WeekCalendar = Depends(get_calendar),
) -> AvailabilityService:
    return AvailabilityService(db, calendar)


def get_availability_provider(
    db: Session = Depends(get_db),
    calendar: WeekCalendar = Depends(get_calendar),
) -> SqlAvailabilityProvider:
    return SqlAvailabilityProvider(db, calendar)


def parse_day(day: str) -> str:
    try:
        return normalize_day(day)
    except ValueError as exc:
        raise UnknownDayError(day) from exc
