import asyncio
from datetime import datetime, timezone

import pytest

from classdesk.core.exceptions import ResourceNotFoundError, UnknownDayError
from classdesk.models.assignment import Assignment
from classdesk.schemas.assignment import AssignmentCreate, AssignmentUpdate, StudentRef, TeacherRef


def test_identical_create_is_short_circuited(store, people, slot_ids, caplog):
    payload = AssignmentCreate(
        day="Monday",
        time_slot_id=slot_ids[0],
        teachers=[TeacherRef(teacher_id=people["T1"])],
        students=[StudentRef(student_id=people["S1"])],
        subject="Phonics",
    )

    first = asyncio.run(store.create(payload))
    with caplog.at_level("INFO", logger="classdesk.services.store"):
        second = asyncio.run(store.create(payload))

    assert second.id == first.id
    assert len(asyncio.run(store.list("Monday"))) == 1
    assert "Duplicate assignment detected" in caplog.text


def test_rows_are_stored_under_the_day_date_key(store, schedule, slot_ids):
    row = schedule(["Saturday"], slot_ids[0], ["T1"], ["S1"])[0]

    assert row.date == "2024-01-06"
    assert row.day == "Saturday"
    with pytest.raises(UnknownDayError):
        asyncio.run(store.list("Someday"))


def test_update_replaces_people_and_keeps_other_fields(store, people, schedule, slot_ids):
    row = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"], notes="Original")[0]

    updated = asyncio.run(
        store.update(
            row.id,
            AssignmentUpdate(
                teachers=[TeacherRef(teacher_id=people["T2"], is_substitute=True)],
                students=[StudentRef(student_id=people["S2"]), StudentRef(student_id=people["S2"])],
            ),
        )
    )

    assert updated.teacher_ids == [people["T2"]]
    assert updated.teachers[0].is_substitute is True
    assert updated.student_ids == [people["S2"]]
    assert updated.notes == "Original"


def test_soft_deleted_rows_disappear(store, schedule, slot_ids):
    row = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"])[0]

    asyncio.run(store.delete(row.id))

    assert asyncio.run(store.list("Monday")) == []
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(store.get(row.id))


def test_duplicates_are_found_and_the_oldest_is_kept(db_session, store, schedule, slot_ids):
    keep = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"], subject="Phonics")[0]
    extra = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"], subject="Grammar")[0]
    asyncio.run(store.update(extra.id, AssignmentUpdate(subject="Phonics")))
    db_session.get(Assignment, keep.id).created_at = datetime(2020, 1, 1, tzinfo=timezone.utc)
    db_session.commit()
    schedule(["Tuesday"], slot_ids[0], ["T1"], ["S1"], subject="Phonics")

    groups = asyncio.run(store.find_duplicates())
    assert len(groups) == 1
    assert groups[0].assignment_ids == [keep.id, extra.id]

    removal = asyncio.run(store.remove_duplicates())
    assert removal.removed == 1
    assert removal.removed_ids == [extra.id]
    assert asyncio.run(store.find_duplicates()) == []
    assert [row.id for row in asyncio.run(store.list("Monday"))] == [keep.id]


def test_unit_of_work_rolls_back_every_write(store, schedule, slot_ids):
    row = schedule(["Monday"], slot_ids[0], ["T1"], ["S1"])[0]

    async def run():
        async with store.unit_of_work():
            await store.delete(row.id)
            assert await store.list("Monday") == []
            raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        asyncio.run(run())

    assert [item.id for item in asyncio.run(store.list("Monday"))] == [row.id]
