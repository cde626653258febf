"""Teacher and student directories with their per-day availability."""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from classdesk.api.deps import get_availability_provider, get_availability_service, get_db, parse_day
from classdesk.core.exceptions import ResourceNotFoundError
from classdesk.db.base import Base
from classdesk.models.availability import EntityType
from classdesk.models.student import Student
from classdesk.models.teacher import Teacher
from classdesk.schemas.people import (
    AvailabilityOut,
    AvailabilityToggle,
    AvailabilityUpdate,
    AvailableEntity,
    StudentCreate,
    StudentOut,
    StudentUpdate,
    TeacherCreate,
    TeacherOut,
    TeacherUpdate,
)
from classdesk.services.availability import AvailabilityService
from classdesk.services.store import SqlAvailabilityProvider


def build_router(
    *,
    model: type[Base],
    entity_type: EntityType,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
) -> APIRouter:
    router = APIRouter()
    label = entity_type.value.capitalize()

    def load(db: Session, entity_id: str):
        entity = db.get(model, entity_id)
        if entity is None:
            raise ResourceNotFoundError(label, entity_id)
        return entity

    @router.get("/", response_model=list[out_schema])
    def list_entities(
        include_inactive: bool = False,
        db: Session = Depends(get_db),
    ):
        query = select(model).order_by(model.name)
        if not include_inactive:
            query = query.where(model.is_active.is_(True))
        return list(db.execute(query).scalars())

    @router.post("/", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create_entity(payload: create_schema, db: Session = Depends(get_db)):
        entity = model(**payload.model_dump(), is_active=True)
        db.add(entity)
        db.commit()
        db.refresh(entity)
        return entity

    @router.get("/available", response_model=list[AvailableEntity])
    async def list_available(
        day: str = Query(min_length=1),
        slot_id: str | None = None,
        provider: SqlAvailabilityProvider = Depends(get_availability_provider),
    ) -> list[AvailableEntity]:
        entities = await provider.list(entity_type, parse_day(day))
        if slot_id is None:
            return entities
        return [entity for entity in entities if slot_id in entity.availability_slots]

    @router.get("/{entity_id}", response_model=out_schema)
    def get_entity(entity_id: str, db: Session = Depends(get_db)):
        return load(db, entity_id)

    @router.put("/{entity_id}", response_model=out_schema)
    def update_entity(entity_id: str, payload: update_schema, db: Session = Depends(get_db)):
        entity = load(db, entity_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(entity, key, value.strip() if key == "name" and isinstance(value, str) else value)
        db.commit()
        db.refresh(entity)
        return entity

    @router.delete("/{entity_id}")
    def delete_entity(entity_id: str, db: Session = Depends(get_db)) -> dict:
        entity = load(db, entity_id)
        entity.is_active = False
        db.commit()
        return {"success": True}

    @router.get("/{entity_id}/availability/{day}", response_model=AvailabilityOut)
    def get_availability(
        entity_id: str,
        day: str,
        service: AvailabilityService = Depends(get_availability_service),
    ) -> AvailabilityOut:
        return service.get(entity_type, entity_id, parse_day(day))

    @router.put("/{entity_id}/availability/{day}", response_model=AvailabilityOut)
    def set_availability(
        entity_id: str,
        day: str,
        payload: AvailabilityUpdate,
        service: AvailabilityService = Depends(get_availability_service),
    ) -> AvailabilityOut:
        return service.set(entity_type, entity_id, parse_day(day), payload.slot_ids)

    @router.post("/{entity_id}/availability/{day}/toggle", response_model=AvailabilityOut)
    def toggle_availability(
        entity_id: str,
        day: str,
        payload: AvailabilityToggle,
        service: AvailabilityService = Depends(get_availability_service),
    ) -> AvailabilityOut:
        return service.toggle(entity_type, entity_id, parse_day(day), payload.slot_id)

    @router.post("/{entity_id}/availability/{day}/apply-all", response_model=list[AvailabilityOut])
    def apply_availability_to_all_days(
        entity_id: str,
        day: str,
        service: AvailabilityService = Depends(get_availability_service),
    ) -> list[AvailabilityOut]:
        return service.apply_to_all_days(entity_type, entity_id, parse_day(day))

    return router


teachers_router = build_router(
    model=Teacher,
    entity_type=EntityType.teacher,
    create_schema=TeacherCreate,
    update_schema=TeacherUpdate,
    out_schema=TeacherOut,
)

students_router = build_router(
    model=Student,
    entity_type=EntityType.student,
    create_schema=StudentCreate,
    update_schema=StudentUpdate,
    out_schema=StudentOut,
)
