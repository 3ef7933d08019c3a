from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from lms.models.week import LegacyMaterial
from lms.repos.bundle import IN_MEMORY
from tests.conftest import (
    auth_header,
    mint_token,
    run,
    seed_content,
    seed_student,
    seed_week,
    student_headers,
)


def test_materials_require_auth(client: TestClient) -> None:
    resp = client.get(f"/v1/weeks/{uuid4()}/materials")
    assert resp.status_code == 401


def test_materials_require_student_role(client: TestClient) -> None:
    headers = auth_header(mint_token(str(uuid4()), roles=["admin"]))
    resp = client.get(f"/v1/weeks/{uuid4()}/materials", headers=headers)
    assert resp.status_code == 403


def test_list_materials_merges_both_sources(client: TestClient) -> None:
    legacy = LegacyMaterial.new(type="pdf", title="Past paper")
    week = seed_week(IN_MEMORY, 1, legacy=(legacy,))
    content = seed_content(IN_MEMORY, week, "notes", "Intro")
    student = seed_student(IN_MEMORY)

    resp = client.get(f"/v1/weeks/{week.id}/materials", headers=student_headers(student))

    assert resp.status_code == 200
    data = resp.json()
    assert [m["id"] for m in data] == [str(content.id), f"legacy-{legacy.id}"]
    assert data[1]["original_material_id"] == str(legacy.id)


def test_locked_week_is_forbidden(client: TestClient) -> None:
    seed_week(IN_MEMORY, 1)
    week2 = seed_week(IN_MEMORY, 2)
    student = seed_student(IN_MEMORY)

    resp = client.get(f"/v1/weeks/{week2.id}/materials", headers=student_headers(student))

    assert resp.status_code == 403
    assert resp.json()["detail"] == "This week is locked"


def test_unknown_week_is_404(client: TestClient) -> None:
    student = seed_student(IN_MEMORY)
    resp = client.get(f"/v1/weeks/{uuid4()}/materials", headers=student_headers(student))
    assert resp.status_code == 404


def test_progress_read_creates_record(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    seed_content(IN_MEMORY, week, "notes", "n")
    student = seed_student(IN_MEMORY)

    resp = client.get(f"/v1/weeks/{week.id}/progress", headers=student_headers(student))

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "unlocked"
    assert body["score"] == 0
    assert body["total_count"] == 1
    assert body["unlock_reason"] == "First week"


def test_marking_viewed_updates_progress_and_unlocks_next(client: TestClient) -> None:
    week1 = seed_week(IN_MEMORY, 1)
    week2 = seed_week(IN_MEMORY, 2)
    a = seed_content(IN_MEMORY, week1, "notes", "a")
    b = seed_content(IN_MEMORY, week1, "summary", "b", order=1)
    student = seed_student(IN_MEMORY)
    headers = student_headers(student)

    first = client.post(f"/v1/weeks/{week1.id}/materials/{a.id}/viewed", headers=headers)
    assert first.status_code == 200
    assert (first.json()["status"], first.json()["score"]) == ("in_progress", 50)

    second = client.post(f"/v1/weeks/{week1.id}/materials/{b.id}/viewed", headers=headers)
    assert second.json()["status"] == "completed"

    resp = client.get(f"/v1/weeks/{week2.id}/materials", headers=headers)
    assert resp.status_code == 200
    assert run(IN_MEMORY.students.get_by_id(student.id)).current_week == 2


def test_marking_homework_viewed_is_rejected(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    hw = seed_content(IN_MEMORY, week, "homework", "HW")
    student = seed_student(IN_MEMORY)

    resp = client.post(
        f"/v1/weeks/{week.id}/materials/{hw.id}/viewed", headers=student_headers(student)
    )

    assert resp.status_code == 400
    assert "must be submitted" in resp.json()["detail"]


def test_marking_unknown_material_is_404(client: TestClient) -> None:
    week = seed_week(IN_MEMORY, 1)
    student = seed_student(IN_MEMORY)
    resp = client.post(
        f"/v1/weeks/{week.id}/materials/nope/viewed", headers=student_headers(student)
    )
    assert resp.status_code == 404
