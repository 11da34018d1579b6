import pytest

from attendsync.services.audit import activity_for
from attendsync.services.substitution_ledger import SubstitutionLedger
from tests.factories import MONDAY, SUNDAY, TUESDAY, auth_headers


def _lookup(client, teacher_id, **overrides):
    payload = {
        "date": MONDAY.isoformat(),
        "start_time": "09:00",
        "end_time": "10:00",
        "batch_id": overrides.pop("batch_id"),
        "subject_id": overrides.pop("subject_id"),
    }
    payload.update(overrides)
    return client.post(
        "/api/substitutions/available-teachers",
        json=payload,
        headers=auth_headers(teacher_id),
    )


def _create_payload(campus, **overrides):
    payload = {
        "original_teacher_id": campus.t1.id,
        "substitute_teacher_id": campus.t2.id,
        "subject_id": campus.networks.id,
        "batch_id": campus.batch_b.id,
        "date": MONDAY.isoformat(),
        "start_time": "09:00",
        "end_time": "10:00",
        "room_number": "R101",
        "reason": "Conference travel",
    }
    payload.update(overrides)
    return payload


def _create(client, campus, **overrides):
    return client.post(
        "/api/substitutions",
        json=_create_payload(campus, **overrides),
        headers=auth_headers(campus.t1.id),
    )


def test_free_teacher_is_offered_and_requester_excluded(client, campus):
    response = _lookup(client, campus.t1.id, batch_id=campus.batch_b.id, subject_id=campus.networks.id)

    assert response.status_code == 200
    body = response.json()
    assert [item["teacher_id"] for item in body] == [campus.t2.id]
    assert body[0]["name"] == "Bina Shah"
    assert {item["name"] for item in body[0]["subjects"]} == {"Networks", "Databases"}


def test_candidates_sorted_by_name(client, campus):
    response = _lookup(
        client,
        campus.t1.id,
        batch_id=campus.batch_b.id,
        subject_id=campus.networks.id,
        start_time="10:30",
        end_time="11:30",
    )

    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Bina Shah", "Chetan Iyer"]


def test_nobody_free_is_an_empty_success(client, campus):
    response = _lookup(
        client,
        campus.t2.id,
        batch_id=campus.batch_b.id,
        subject_id=campus.networks.id,
        start_time="09:30",
        end_time="10:00",
    )

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.parametrize("on_date", [TUESDAY, SUNDAY])
def test_missing_timetable_is_not_found(client, campus, on_date):
    response = _lookup(
        client,
        campus.t1.id,
        batch_id=campus.batch_b.id,
        subject_id=campus.networks.id,
        date=on_date.isoformat(),
    )

    assert response.status_code == 404
    assert response.json()["message"] == "No timetable found for this day and batch"


def test_unknown_batch_is_not_found(client, campus):
    response = _lookup(client, campus.t1.id, batch_id="missing", subject_id=campus.networks.id)

    assert response.status_code == 404
    assert response.json()["message"] == "Batch not found"


def test_inverted_window_is_invalid(client, campus):
    response = _lookup(
        client,
        campus.t1.id,
        batch_id=campus.batch_b.id,
        subject_id=campus.networks.id,
        start_time="10:00",
        end_time="09:00",
    )

    assert response.status_code == 400


def test_lookup_requires_a_token(client, campus):
    response = client.post("/api/substitutions/available-teachers", json={})

    assert response.status_code in {401, 403}


def test_admin_token_cannot_act_as_teacher(client, campus):
    response = client.post(
        "/api/substitutions",
        json=_create_payload(campus),
        headers=auth_headers(campus.t1.id, role="admin"),
    )

    assert response.status_code == 403


def test_create_substitution(client, campus, db_session):
    response = _create(client, campus)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["original_teacher"]["name"] == "Alice Rao"
    assert body["substitute_teacher"]["name"] == "Bina Shah"
    assert body["subject_name"] == "Networks"
    assert body["batch_name"] == "CSE 2024 A"

    entries = activity_for(db_session, entity_type="substitution_request", entity_id=body["id"])
    assert [entry.action for entry in entries] == ["substitution.create"]


def test_duplicate_active_substitution_conflicts(client, campus):
    assert _create(client, campus).status_code == 201

    response = _create(client, campus, start_time="9:00")

    assert response.status_code == 409
    assert response.json()["message"] == "A substitution already exists for this time slot"


def test_storage_rejects_duplicate_when_precheck_misses(client, campus, monkeypatch):
    assert _create(client, campus).status_code == 201
    monkeypatch.setattr(SubstitutionLedger, "find_active", lambda self, *args, **kwargs: None)

    response = _create(client, campus)

    assert response.status_code == 409


def test_cancelled_slot_can_be_requested_again(client, campus):
    created = _create(client, campus).json()
    cancelled = client.put(f"/api/substitutions/{created['id']}/cancel", headers=auth_headers(campus.t1.id))
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    assert _create(client, campus).status_code == 201


def test_only_original_teacher_creates(client, campus):
    response = client.post(
        "/api/substitutions",
        json=_create_payload(campus),
        headers=auth_headers(campus.t2.id),
    )

    assert response.status_code == 403


def test_substitute_must_differ_from_original(client, campus):
    response = _create(client, campus, substitute_teacher_id=campus.t1.id)

    assert response.status_code == 400


def test_unknown_substitute_is_not_found(client, campus):
    response = _create(client, campus, substitute_teacher_id="nobody")

    assert response.status_code == 404


def test_substitute_cannot_cancel(client, campus):
    created = _create(client, campus).json()

    response = client.put(f"/api/substitutions/{created['id']}/cancel", headers=auth_headers(campus.t2.id))

    assert response.status_code == 403


def test_status_transitions(client, campus, db_session):
    created = _create(client, campus).json()
    url = f"/api/substitutions/{created['id']}/status"

    approved = client.put(url, json={"status": "approved", "notes": "  Will cover  "}, headers=auth_headers(campus.t2.id))
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["notes"] == "Will cover"

    completed = client.put(url, json={"status": "completed"}, headers=auth_headers(campus.t2.id))
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    cancel = client.put(f"/api/substitutions/{created['id']}/cancel", headers=auth_headers(campus.t1.id))
    assert cancel.status_code == 409

    entries = activity_for(db_session, entity_type="substitution_request", entity_id=created["id"])
    assert [entry.action for entry in entries] == [
        "substitution.create",
        "substitution.status.update",
        "substitution.status.update",
    ]


def test_pending_cannot_jump_to_completed(client, campus):
    created = _create(client, campus).json()

    response = client.put(
        f"/api/substitutions/{created['id']}/status",
        json={"status": "completed"},
        headers=auth_headers(campus.t2.id),
    )

    assert response.status_code == 409
    assert response.json()["details"]["allowed"] == ["approved", "cancelled"]


def test_original_teacher_cannot_update_status(client, campus):
    created = _create(client, campus).json()

    response = client.put(
        f"/api/substitutions/{created['id']}/status",
        json={"status": "approved"},
        headers=auth_headers(campus.t1.id),
    )

    assert response.status_code == 403


def test_status_update_rejects_unknown_status(client, campus):
    created = _create(client, campus).json()

    response = client.put(
        f"/api/substitutions/{created['id']}/status",
        json={"status": "pending"},
        headers=auth_headers(campus.t2.id),
    )

    assert response.status_code == 422


def test_unknown_substitution_is_not_found(client, campus):
    response = client.put("/api/substitutions/missing/cancel", headers=auth_headers(campus.t1.id))

    assert response.status_code == 404
    assert response.json()["message"] == "Substitution not found"


def test_teacher_listings(client, campus):
    first = _create(client, campus).json()
    second = _create(client, campus, start_time="11:00", end_time="12:00").json()
    client.put(
        f"/api/substitutions/{second['id']}/status",
        json={"status": "approved"},
        headers=auth_headers(campus.t2.id),
    )

    mine = client.get(f"/api/substitutions/teacher/{campus.t1.id}", headers=auth_headers(campus.t1.id))
    assert mine.status_code == 200
    assert [item["id"] for item in mine.json()] == [first["id"], second["id"]]

    pending = client.get(
        f"/api/substitutions/teacher/{campus.t2.id}",
        params={"status": "pending"},
        headers=auth_headers(campus.t2.id),
    )
    assert [item["id"] for item in pending.json()] == [first["id"]]

    for_attendance = client.get(f"/api/substitutions/attendance/{campus.t2.id}", headers=auth_headers(campus.t2.id))
    assert [item["id"] for item in for_attendance.json()] == [second["id"]]

    other = client.get(f"/api/substitutions/teacher/{campus.t1.id}", headers=auth_headers(campus.t3.id))
    assert other.status_code == 403

    admin = client.get(f"/api/substitutions/teacher/{campus.t1.id}", headers=auth_headers("admin-1", role="admin"))
    assert admin.status_code == 200
