import pytest

from classdesk.core.exceptions import SlotSequenceError
from classdesk.services.slots import (
    DEFAULT_TIME_SLOTS,
    consecutive_slots,
    list_time_slots,
    seed_default_time_slots,
    slots_needed,
)


def test_durations_map_to_slot_counts():
    assert [slots_needed(minutes) for minutes in (25, 50, 100)] == [1, 2, 4]
    with pytest.raises(SlotSequenceError, match="Unsupported class duration 75"):
        slots_needed(75)


def test_consecutive_slots_follow_display_order(db_session, slot_ids):
    time_slots = list_time_slots(db_session)

    assert consecutive_slots(time_slots, slot_ids[3], 25) == [slot_ids[3]]
    assert consecutive_slots(reversed(time_slots), slot_ids[3], 100) == slot_ids[3:7]


def test_sequence_running_off_the_day_is_rejected(db_session, slot_ids):
    time_slots = list_time_slots(db_session)

    with pytest.raises(SlotSequenceError) as excinfo:
        consecutive_slots(time_slots, slot_ids[-2], 100)
    assert excinfo.value.details == {
        "start_slot_id": slot_ids[-2],
        "duration_minutes": 100,
        "available": 2,
        "needed": 4,
    }


def test_unknown_start_slot(db_session):
    with pytest.raises(SlotSequenceError, match="Unknown time slot"):
        consecutive_slots(list_time_slots(db_session), "missing", 25)


def test_seeding_only_fills_an_empty_table(db_session):
    assert len(list_time_slots(db_session)) == len(DEFAULT_TIME_SLOTS)
    assert seed_default_time_slots(db_session) == 0


def test_time_slot_routes(client):
    slots = client.get("/api/time-slots/").json()
    assert [slot["start_time"] for slot in slots[:2]] == ["15:00", "15:25"]

    sequence = client.get(
        "/api/time-slots/sequence",
        params={"start_slot_id": slots[0]["id"], "duration_minutes": 50},
    )
    assert sequence.status_code == 200
    assert sequence.json()["slot_ids"] == [slots[0]["id"], slots[1]["id"]]

    too_long = client.get(
        "/api/time-slots/sequence",
        params={"start_slot_id": slots[-1]["id"], "duration_minutes": 100},
    )
    assert too_long.status_code == 400

    created = client.post(
        "/api/time-slots/",
        json={"name": "20:00-20:25", "start_time": "20:00", "end_time": "20:25", "display_order": 13},
    )
    assert created.status_code == 201

    backwards = client.post(
        "/api/time-slots/",
        json={"name": "bad", "start_time": "20:25", "end_time": "20:00", "display_order": 14},
    )
    assert backwards.status_code == 422
