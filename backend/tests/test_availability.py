import asyncio

import pytest

from classdesk.core.calendar import DAY_NAMES
from classdesk.core.exceptions import ResourceNotFoundError
from classdesk.models.availability import EntityType
from classdesk.services.availability import AvailabilityService, find_unavailable_assigned, toggle_slot
from classdesk.services.store import SqlAvailabilityProvider


def test_toggle_adds_then_removes():
    assert toggle_slot(["a", "b"], "c") == ["a", "b", "c"]
    assert toggle_slot(["a", "b", "c"], "b") == ["a", "c"]


def test_apply_to_all_days_copies_the_source_day(db_session, calendar, people, slot_ids):
    service = AvailabilityService(db_session, calendar)
    service.set(EntityType.teacher, people["T1"], "Tuesday", slot_ids[:3])
    service.set(EntityType.teacher, people["T1"], "Friday", [slot_ids[9]])

    results = service.apply_to_all_days(EntityType.teacher, people["T1"], "Tuesday")

    assert [result.day for result in results] == list(DAY_NAMES)
    for day in DAY_NAMES:
        assert service.get(EntityType.teacher, people["T1"], day).slot_ids == slot_ids[:3]


def test_unknown_entity_is_rejected(db_session, calendar):
    service = AvailabilityService(db_session, calendar)
    with pytest.raises(ResourceNotFoundError):
        service.get(EntityType.student, "nobody", "Monday")


def test_unavailable_but_assigned_is_flagged_not_removed(db_session, calendar, store, people, schedule, slot_ids):
    service = AvailabilityService(db_session, calendar)
    service.set(EntityType.teacher, people["T1"], "Monday", [slot_ids[0]])
    service.set(EntityType.student, people["S1"], "Monday", [slot_ids[0]])
    row = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"])[0]

    assert find_unavailable_assigned(asyncio.run(store.list_all()), service.index()) == []

    service.toggle(EntityType.student, people["S1"], "Monday", slot_ids[0])
    flags = find_unavailable_assigned(asyncio.run(store.list_all()), service.index())

    assert len(flags) == 1
    assert flags[0].assignment_id == row.id
    assert flags[0].student_ids == [people["S1"]]
    assert flags[0].teacher_ids == []
    assert asyncio.run(store.get(row.id)).student_ids == [people["S1"]]


def test_provider_lists_active_entities_with_their_slots(db_session, calendar, people, slot_ids):
    AvailabilityService(db_session, calendar).set(EntityType.teacher, people["T2"], "Monday", [slot_ids[4]])

    entities = asyncio.run(SqlAvailabilityProvider(db_session, calendar).list(EntityType.teacher, "Monday"))

    by_name = {entity.name: entity for entity in entities}
    assert set(by_name) == {"Teacher T1", "Teacher T2", "Teacher T3"}
    assert by_name["Teacher T2"].availability_slots == [slot_ids[4]]
    assert by_name["Teacher T1"].availability_slots == []


def test_availability_routes(client):
    teacher = client.post("/api/teachers/", json={"name": "  Ms Park ", "color_keyword": "blue"})
    assert teacher.status_code == 201
    teacher_id = teacher.json()["id"]
    assert teacher.json()["name"] == "Ms Park"
    slot_id = client.get("/api/time-slots/").json()[0]["id"]

    toggled = client.post(f"/api/teachers/{teacher_id}/availability/monday/toggle", json={"slot_id": slot_id})
    assert toggled.status_code == 200
    assert toggled.json()["day"] == "Monday"
    assert toggled.json()["slot_ids"] == [slot_id]

    applied = client.post(f"/api/teachers/{teacher_id}/availability/Monday/apply-all")
    assert applied.status_code == 200
    assert len(applied.json()) == 7

    available = client.get("/api/teachers/available", params={"day": "Sunday", "slot_id": slot_id})
    assert [entity["id"] for entity in available.json()] == [teacher_id]

    bad_day = client.get(f"/api/teachers/{teacher_id}/availability/Someday")
    assert bad_day.status_code == 400

    missing = client.get("/api/students/nobody")
    assert missing.status_code == 404
    assert missing.json()["details"]["resource_type"] == "Student"

    deleted = client.delete(f"/api/teachers/{teacher_id}")
    assert deleted.status_code == 200
    assert client.get("/api/teachers/").json() == []
    assert len(client.get("/api/teachers/", params={"include_inactive": True}).json()) == 1
