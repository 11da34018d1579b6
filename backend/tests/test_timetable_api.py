from attendsync.models.timetable import Weekday
from tests.factories import MONDAY, SUNDAY, auth_headers, make_schedule, slot

ADMIN = auth_headers("admin-1", role="admin")


def _slots(*windows, teacher_id=None):
    return [{"startTime": start, "endTime": end, "teacherId": teacher_id} for start, end in windows]


def test_admin_upserts_day_schedule(client, campus):
    response = client.put(
        f"/api/timetable/{campus.batch_c.id}/tuesday",
        json={"timeSlots": _slots(("11:00", "12:00"), ("9:00", "10:00"), teacher_id=campus.t2.id)},
        headers=ADMIN,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["batchId"] == campus.batch_c.id
    assert body["weekday"] == "Tuesday"
    assert [(item["startTime"], item["endTime"]) for item in body["timeSlots"]] == [
        ("09:00", "10:00"),
        ("11:00", "12:00"),
    ]


def test_upsert_replaces_existing_schedule(client, campus):
    url = f"/api/timetable/{campus.batch_b.id}/Monday"
    response = client.put(url, json={"timeSlots": _slots(("14:00", "15:00"))}, headers=ADMIN)
    assert response.status_code == 200

    fetched = client.get(url, headers=auth_headers(campus.t1.id))
    assert fetched.status_code == 200
    assert [item["startTime"] for item in fetched.json()["timeSlots"]] == ["14:00"]


def test_overlapping_slots_are_rejected(client, campus):
    response = client.put(
        f"/api/timetable/{campus.batch_c.id}/Wednesday",
        json={"timeSlots": _slots(("09:00", "10:00"), ("09:30", "10:30"))},
        headers=ADMIN,
    )

    assert response.status_code == 400
    assert response.json()["details"]["overlaps"] == ["09:00-10:00 / 09:30-10:30"]


def test_touching_slots_are_accepted(client, campus):
    response = client.put(
        f"/api/timetable/{campus.batch_c.id}/Wednesday",
        json={"timeSlots": _slots(("09:00", "10:00"), ("10:00", "11:00"))},
        headers=ADMIN,
    )

    assert response.status_code == 200


def test_inverted_slot_is_a_validation_error(client, campus):
    response = client.put(
        f"/api/timetable/{campus.batch_c.id}/Wednesday",
        json={"timeSlots": _slots(("10:00", "09:00"))},
        headers=ADMIN,
    )

    assert response.status_code == 422


def test_unknown_weekday_and_batch(client, campus):
    sunday = client.put(f"/api/timetable/{campus.batch_c.id}/Sunday", json={"timeSlots": []}, headers=ADMIN)
    assert sunday.status_code == 400

    missing = client.put("/api/timetable/missing/Monday", json={"timeSlots": []}, headers=ADMIN)
    assert missing.status_code == 404


def test_only_admin_writes_schedules(client, campus):
    response = client.put(
        f"/api/timetable/{campus.batch_c.id}/Friday",
        json={"timeSlots": []},
        headers=auth_headers(campus.t1.id),
    )

    assert response.status_code == 403


def test_missing_schedule_is_not_found(client, campus):
    response = client.get(f"/api/timetable/{campus.batch_c.id}/Friday", headers=auth_headers(campus.t1.id))

    assert response.status_code == 404
    assert response.json()["message"] == "No timetable found for this day and batch"


def test_teacher_daily_schedule(client, campus):
    response = client.get(
        f"/api/timetable/teacher/{campus.t1.id}/daily",
        params={"date": MONDAY.isoformat()},
        headers=auth_headers(campus.t1.id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["weekday"] == "Monday"
    assert [(item["startTime"], item["batchId"], item["roomNumber"]) for item in body["schedule"]] == [
        ("09:00", campus.batch_b.id, "R101")
    ]


def test_teacher_daily_schedule_on_sunday_is_empty(client, campus):
    response = client.get(
        f"/api/timetable/teacher/{campus.t1.id}/daily",
        params={"date": SUNDAY.isoformat()},
        headers=auth_headers(campus.t1.id),
    )

    assert response.status_code == 200
    assert response.json() == {"teacherId": campus.t1.id, "weekday": "Sunday", "schedule": []}


def test_teacher_cannot_read_another_teachers_day(client, campus):
    response = client.get(
        f"/api/timetable/teacher/{campus.t1.id}/daily",
        params={"date": MONDAY.isoformat()},
        headers=auth_headers(campus.t2.id),
    )

    assert response.status_code == 403


def test_stored_schedule_with_unreadable_slot_still_reads(client, campus, db_session):
    make_schedule(
        db_session,
        campus.batch_c.id,
        Weekday.friday,
        [slot("11:00", "11:00", campus.t3.id), slot("12:00", "13:00", campus.t3.id)],
    )
    db_session.commit()

    response = client.get(f"/api/timetable/{campus.batch_c.id}/Friday", headers=auth_headers(campus.t3.id))

    assert response.status_code == 200
    assert [item["startTime"] for item in response.json()["timeSlots"]] == ["12:00"]
