def create_person(client, kind, name):
    response = client.post(f"/api/{kind}/", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def first_slots(client, count=2):
    return [slot["id"] for slot in client.get("/api/time-slots/").json()[:count]]


def assignment_payload(day, slot_id, teacher_ids, student_ids, **extra):
    return {
        "day": day,
        "time_slot_id": slot_id,
        "teachers": [{"teacher_id": teacher_id} for teacher_id in teacher_ids],
        "students": [{"student_id": student_id} for student_id in student_ids],
        **extra,
    }


def test_assignment_crud_flow(client):
    teacher = create_person(client, "teachers", "Ms Lee")
    student = create_person(client, "students", "Minji")
    slot_id, next_slot_id = first_slots(client)

    created = client.post(
        "/api/assignments/",
        json=assignment_payload("monday", slot_id, [teacher], [student], subject="Phonics"),
    )
    assert created.status_code == 201
    body = created.json()
    assert body["day"] == "Monday"
    assert body["date"] == "2024-01-01"
    assert body["teachers"][0]["name"] == "Ms Lee"

    listed = client.get("/api/assignments/", params={"day": "Monday"})
    assert [row["id"] for row in listed.json()] == [body["id"]]

    updated = client.put(f"/api/assignments/{body['id']}", json={"time_slot_id": next_slot_id, "notes": "Moved"})
    assert updated.status_code == 200
    assert updated.json()["time_slot_id"] == next_slot_id
    assert updated.json()["notes"] == "Moved"
    assert updated.json()["subject"] == "Phonics"

    by_student = client.get(f"/api/assignments/student/{student}")
    assert [row["id"] for row in by_student.json()] == [body["id"]]

    deleted = client.delete(f"/api/assignments/{body['id']}")
    assert deleted.json() == {"success": True, "assignment_id": body["id"]}
    assert client.get(f"/api/assignments/{body['id']}").status_code == 404
    assert client.delete(f"/api/assignments/{body['id']}").status_code == 404


def test_create_is_rejected_by_the_gate(client):
    teacher = create_person(client, "teachers", "Ms Lee")
    other_teacher = create_person(client, "teachers", "Mr Kim")
    student = create_person(client, "students", "Minji")
    (slot_id,) = first_slots(client, 1)

    client.post("/api/assignments/", json=assignment_payload("Monday", slot_id, [teacher], [student]))
    rejected = client.post(
        "/api/assignments/",
        json=assignment_payload("Monday", slot_id, [other_teacher], [student]),
    )

    assert rejected.status_code == 422
    details = rejected.json()["details"]
    assert details["day"] == "Monday"
    assert details["errors"] == ["Student Minji is already scheduled with teacher(s): Ms Lee at this time"]


def test_capacity_limit_on_create(client):
    teachers = [create_person(client, "teachers", f"Teacher {index}") for index in range(3)]
    (slot_id,) = first_slots(client, 1)

    response = client.post("/api/assignments/", json=assignment_payload("Monday", slot_id, teachers, []))

    assert response.status_code == 400
    assert response.json()["details"]["max_teachers"] == 2


def test_validate_and_conflict_endpoints(client):
    teacher = create_person(client, "teachers", "Ms Lee")
    student = create_person(client, "students", "Minji")
    other_student = create_person(client, "students", "Joon")
    (slot_id,) = first_slots(client, 1)
    existing = client.post(
        "/api/assignments/",
        json=assignment_payload("Wednesday", slot_id, [teacher], [student]),
    ).json()

    candidate = {
        "day": "Wednesday",
        "time_slot_id": slot_id,
        "teacher_ids": [teacher],
        "student_ids": [other_student],
    }
    validation = client.post("/api/assignments/validate", json=candidate)
    assert validation.json()["valid"] is False

    conflict = client.post("/api/assignments/conflicts", json=candidate)
    assert conflict.json()["conflict"] is True
    assert conflict.json()["conflicting_teacher_ids"] == [teacher]

    ignored = client.post("/api/assignments/conflicts", json={**candidate, "ignore_assignment_id": existing["id"]})
    assert ignored.json()["conflict"] is False

    sibling = client.post("/api/assignments/conflicts", json={**candidate, "student_ids": [student]})
    assert sibling.json()["conflict"] is False


def test_day_wipe_and_unavailable_flags(client):
    teacher = create_person(client, "teachers", "Ms Lee")
    student = create_person(client, "students", "Minji")
    slot_id, next_slot_id = first_slots(client)
    client.put(f"/api/teachers/{teacher}/availability/Friday", json={"slot_ids": [slot_id]})
    client.put(f"/api/students/{student}/availability/Friday", json={"slot_ids": [slot_id, next_slot_id]})

    on_time = client.post("/api/assignments/", json=assignment_payload("Friday", slot_id, [teacher], [student])).json()
    late = client.post(
        "/api/assignments/",
        json=assignment_payload("Friday", next_slot_id, [teacher], [student]),
    ).json()

    flags = client.get("/api/assignments/unavailable").json()
    assert [flag["assignment_id"] for flag in flags] == [late["id"]]
    assert flags[0]["teacher_ids"] == [teacher]

    wiped = client.delete("/api/assignments/day/Friday")
    assert wiped.json()["count"] == 2
    assert set(wiped.json()["assignment_ids"]) == {on_time["id"], late["id"]}
    assert client.get("/api/assignments/", params={"day": "Friday"}).json() == []


def test_unknown_day_is_a_client_error(client):
    assert client.get("/api/assignments/", params={"day": "Caturday"}).status_code == 400
    assert client.delete("/api/assignments/day/Caturday").status_code == 400


def test_update_rejects_null_day_or_slot(client):
    teacher = create_person(client, "teachers", "Ms Lee")
    student = create_person(client, "students", "Minji")
    (slot_id,) = first_slots(client, 1)
    created = client.post("/api/assignments/", json=assignment_payload("Monday", slot_id, [teacher], [student])).json()

    assert client.put(f"/api/assignments/{created['id']}", json={"time_slot_id": None}).status_code == 422
    assert client.put(f"/api/assignments/{created['id']}", json={"day": None}).status_code == 422

    current = client.get(f"/api/assignments/{created['id']}").json()
    assert current["time_slot_id"] == slot_id
    assert current["day"] == "Monday"
