from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from lms.repos.bundle import IN_MEMORY
from lms.services.notifications import HOMEWORK_NOTIFICATION_QUEUE
from lms.services.task_queue import task_queue
from tests.conftest import (
    admin_headers,
    run,
    seed_content,
    seed_student,
    seed_week,
    student_headers,
)

PDF = ("a.pdf", b"%PDF", "application/pdf")


def _submit(client: TestClient):
    week = seed_week(IN_MEMORY, 1)
    hw = seed_content(IN_MEMORY, week, "homework", "Worksheet")
    student = seed_student(IN_MEMORY)
    resp = client.post(
        f"/v1/weeks/{week.id}/homework/{hw.id}/submissions",
        files={"file": PDF},
        headers=student_headers(student),
    )
    assert resp.status_code == 201
    return resp.json()["submission"]["id"]


def test_admin_routes_require_admin_role(client: TestClient) -> None:
    student = seed_student(IN_MEMORY)
    resp = client.post(
        f"/v1/admin/students/{student.id}/repair", headers=student_headers(student)
    )
    assert resp.status_code == 403


def test_register_student_and_create_weeks(client: TestClient) -> None:
    headers = admin_headers()
    week = client.post(
        "/v1/admin/weeks",
        json={
            "week_number": 1,
            "title": "Algebra",
            "year": "Year 9",
            "curriculum": "Cambridge",
            "student_type": "Online",
        },
        headers=headers,
    )
    assert week.status_code == 201
    week_id = week.json()["id"]

    content = client.post(
        f"/v1/admin/weeks/{week_id}/contents",
        json={"type": "notes", "title": "Intro"},
        headers=headers,
    )
    assert content.status_code == 201

    student = client.post(
        "/v1/admin/students",
        json={
            "name": "Layla",
            "year": "Year 9",
            "curriculum": "Cambridge",
            "student_type": "Online",
            "guardian_phone": "+201111111111",
        },
        headers=headers,
    )
    assert student.status_code == 201
    assert student.json()["current_week"] == 1

    duplicate = client.post(
        "/v1/admin/weeks",
        json={
            "week_number": 1,
            "title": "Again",
            "year": "Year 9",
            "curriculum": "Cambridge",
            "student_type": "Online",
        },
        headers=headers,
    )
    assert duplicate.status_code == 409


def test_homework_content_without_due_date_is_400(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    resp = client.post(
        f"/v1/admin/weeks/{week.id}/contents",
        json={"type": "homework", "title": "HW"},
        headers=admin_headers(),
    )
    assert resp.status_code == 400


def test_due_date_without_offset_is_read_as_utc(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    created = client.post(
        f"/v1/admin/weeks/{week.id}/contents",
        json={"type": "homework", "title": "HW", "due_date_time": "2099-03-01T23:59:00"},
        headers=admin_headers(),
    )
    assert created.status_code == 201
    stored = run(IN_MEMORY.contents.list_active_for_week(week.id))[0]
    assert stored.due_date_time.tzinfo is not None

    student = seed_student(IN_MEMORY)
    resp = client.post(
        f"/v1/weeks/{week.id}/homework/{created.json()['id']}/submissions",
        files={"file": PDF},
        headers=student_headers(student),
    )

    assert resp.status_code == 201
    assert resp.json()["submission"]["status"] == "submitted"


def test_grade_then_return_submission(client: TestClient) -> None:
    submission_id = _submit(client)

    graded = client.post(
        f"/v1/admin/submissions/{submission_id}/grade",
        json={"points": 37, "max_points": 40, "feedback": "Well done"},
        headers=admin_headers(),
    )
    assert graded.status_code == 200
    body = graded.json()
    assert body["status"] == "graded"
    assert body["grade"]["percentage"] == 93
    assert body["grade"]["letter_grade"] == "A"
    assert body["feedback"] == "Well done"

    returned = client.post(
        f"/v1/admin/submissions/{submission_id}/return", headers=admin_headers()
    )
    assert returned.json()["status"] == "returned"

    again = client.post(
        f"/v1/admin/submissions/{submission_id}/return", headers=admin_headers()
    )
    assert again.status_code == 409


def test_grade_unknown_submission_is_404(client: TestClient) -> None:
    resp = client.post(
        f"/v1/admin/submissions/{uuid4()}/grade",
        json={"points": 1, "max_points": 1},
        headers=admin_headers(),
    )
    assert resp.status_code == 404


def test_resend_notification_requeues(client: TestClient) -> None:
    submission_id = _submit(client)
    run(task_queue.dequeue(HOMEWORK_NOTIFICATION_QUEUE))

    resp = client.post(
        f"/v1/admin/submissions/{submission_id}/notifications/resend",
        headers=admin_headers(),
    )

    assert resp.status_code == 202
    assert resp.json()["status"] == "pending"
    assert run(task_queue.queue_length(HOMEWORK_NOTIFICATION_QUEUE)) == 1


def test_admin_unlock_opens_locked_week(client: TestClient) -> None:
    seed_week(IN_MEMORY, 1)
    week2 = seed_week(IN_MEMORY, 2)
    student = seed_student(IN_MEMORY)

    resp = client.post(
        f"/v1/admin/students/{student.id}/weeks/{week2.id}/unlock",
        json={"reason": "Transferred in"},
        headers=admin_headers(),
    )

    assert resp.status_code == 200
    assert resp.json()["unlocked_by"] == "admin"
    materials = client.get(
        f"/v1/weeks/{week2.id}/materials", headers=student_headers(student)
    )
    assert materials.status_code == 200


def test_repair_endpoint_reports_no_change_for_consistent_student(
    client: TestClient,
) -> None:
    seed_week(IN_MEMORY, 1)
    student = seed_student(IN_MEMORY)

    resp = client.post(
        f"/v1/admin/students/{student.id}/repair", headers=admin_headers()
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "student": {
            "id": str(student.id),
            "name": student.name,
            "current_week": 1,
            "completed_weeks": [],
        },
        "changed": False,
    }


def test_delete_week_cascades(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    seed_content(IN_MEMORY, week, "notes", "n")
    seed_student(IN_MEMORY)

    resp = client.delete(f"/v1/admin/weeks/{week.id}", headers=admin_headers())

    assert resp.status_code == 200
    assert resp.json()["contents_deleted"] == 1
    assert resp.json()["progress_deleted"] == 1
