from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from classdesk.models.availability import EntityType
from classdesk.schemas.assignment import (
    AssignmentCandidate,
    AssignmentCreate,
    AssignmentOut,
    AssignmentUpdate,
    ValidationResult,
)
from classdesk.schemas.people import AvailableEntity


class AssignmentStore(Protocol):
    """Asynchronous create/read/update/delete access to per-day assignment rows."""

    async def list(self, day: str) -> list[AssignmentOut]: ...

    async def get(self, assignment_id: str) -> AssignmentOut: ...

    async def create(self, data: AssignmentCreate) -> AssignmentOut: ...

    async def update(self, assignment_id: str, data: AssignmentUpdate) -> AssignmentOut: ...

    async def delete(self, assignment_id: str) -> None: ...

    def unit_of_work(self) -> AbstractAsyncContextManager[None]: ...


class ValidationGate(Protocol):
    async def validate(self, candidate: AssignmentCandidate) -> ValidationResult: ...


class AvailabilityProvider(Protocol):
    async def list(self, entity_type: EntityType, day: str) -> list[AvailableEntity]: ...
