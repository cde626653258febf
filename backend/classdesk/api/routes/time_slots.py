from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from classdesk.api.deps import get_db
from classdesk.models.time_slot import TimeSlot
from classdesk.schemas.time_slot import SlotSequenceOut, TimeSlotCreate, TimeSlotOut
from classdesk.services.slots import consecutive_slots, list_time_slots

router = APIRouter()


@router.get("/", response_model=list[TimeSlotOut])
def list_slots(db: Session = Depends(get_db)) -> list[TimeSlotOut]:
    return list_time_slots(db)


@router.post("/", response_model=TimeSlotOut, status_code=status.HTTP_201_CREATED)
def create_slot(payload: TimeSlotCreate, db: Session = Depends(get_db)) -> TimeSlotOut:
    slot = TimeSlot(**payload.model_dump())
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


@router.get("/sequence", response_model=SlotSequenceOut)
def slot_sequence(
    start_slot_id: str = Query(min_length=1),
    duration_minutes: int = Query(default=25),
    db: Session = Depends(get_db),
) -> SlotSequenceOut:
    slot_ids = consecutive_slots(list_time_slots(db), start_slot_id, duration_minutes)
    return SlotSequenceOut(start_slot_id=start_slot_id, duration_minutes=duration_minutes, slot_ids=slot_ids)
