import asyncio

from classdesk.services.class_groups import (
    class_group_id,
    find_group,
    resolve_class_groups,
    teacher_board,
)


def test_group_id_ignores_ordering_and_subject_padding():
    first = class_group_id(["t2", "t1"], ["s3", "s1"], " Reading ", "slot-1")
    second = class_group_id(["t1", "t2"], ["s1", "s3"], "Reading", "slot-1")
    assert first == second
    assert len(first) == 16
    assert class_group_id(["t1"], ["s1"], "Reading", "slot-2") != class_group_id(["t1"], ["s1"], "Reading", "slot-1")


def test_rows_sharing_identity_collapse_into_one_group(store, calendar, schedule, slot_ids):
    schedule(["Wednesday", "Monday"], slot_ids[2], ["T1"], ["S1"])
    schedule(["Monday"], slot_ids[2], ["T1"], ["S2"])

    groups = resolve_class_groups(asyncio.run(store.list_all()), calendar)

    assert len(groups) == 2
    by_days = {tuple(group.days): group for group in groups}
    assert set(by_days) == {("Monday", "Wednesday"), ("Monday",)}
    assert len(by_days[("Monday", "Wednesday")].assignments) == 2


def test_subject_splits_otherwise_identical_rows(store, calendar, schedule, slot_ids):
    schedule(["Monday"], slot_ids[0], ["T1"], ["S1"], subject="Phonics")
    schedule(["Tuesday"], slot_ids[0], ["T1"], ["S1"], subject="Grammar")

    groups = resolve_class_groups(asyncio.run(store.list_all()), calendar)

    assert sorted(group.subject for group in groups) == ["Grammar", "Phonics"]


def test_find_group_returns_none_for_unknown_id(store, calendar, schedule, slot_ids):
    schedule(["Monday"], slot_ids[0], ["T1"], ["S1"])
    rows = asyncio.run(store.list_all())

    assert find_group(rows, calendar, "does-not-exist") is None
    group = resolve_class_groups(rows, calendar)[0]
    assert find_group(rows, calendar, group.class_group_id).days == ["Monday"]


def test_teacher_board_keeps_multiple_classes_per_cell(store, calendar, schedule, slot_ids):
    schedule(["Monday"], slot_ids[1], ["T1"], ["S1"], subject="Phonics")
    schedule(["Monday"], slot_ids[1], ["T1"], ["S2"], subject="Phonics")
    schedule(["Monday"], slot_ids[1], ["T2", "T1"], ["S3"], subject="Reading")

    board = teacher_board(asyncio.run(store.list("Monday")), calendar)

    cells = {(cell.time_slot_id, cell.teacher_name): cell for cell in board}
    assert len(cells[(slot_ids[1], "Teacher T1")].classes) == 3
    assert len(cells[(slot_ids[1], "Teacher T2")].classes) == 1
