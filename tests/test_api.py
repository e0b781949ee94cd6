import io

import pytest
from httpx import AsyncClient
from PIL import Image

from classmint.errors import RpcError
from classmint.models import Nft, Seat, Student, Transaction, User, UserRole
from classmint.services import provisioning


async def _signup(client: AsyncClient, email: str, role: str) -> dict:
    response = await client.post("/auth/signup", data={"email": email, "password": "password", "role": role})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_index(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["app"] == "classmint"


@pytest.mark.asyncio
async def test_unauthenticated_requests_are_rejected(client: AsyncClient):
    response = await client.get("/seating/")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    session_info = await client.get("/auth/session")
    assert session_info.json() == {"authenticated": False}


@pytest.mark.asyncio
async def test_signup_login_and_session(client: AsyncClient):
    await _signup(client, "frizzle@school.test", "teacher")

    duplicate = await client.post(
        "/auth/signup", data={"email": "frizzle@school.test", "password": "password", "role": "teacher"}
    )
    assert duplicate.status_code == 400

    bad = await client.post("/auth/login", data={"email": "frizzle@school.test", "password": "nope"})
    assert bad.status_code == 401

    response = await client.post("/auth/login", data={"email": "Frizzle@School.test", "password": "password"})
    assert response.status_code == 200
    assert response.json()["session"]["role"] == "teacher"

    # The cookie set by login identifies the caller from here on
    info = await client.get("/auth/session")
    assert info.json()["email"] == "frizzle@school.test"

    await client.post("/auth/logout")
    notices = (await client.get("/notices")).json()
    assert {"category": "info", "message": "Signed out."} in notices
    assert (await client.get("/notices")).json() == []


@pytest.mark.asyncio
async def test_transfer_scenario(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")
    await _signup(client, "arnold@school.test", "student")
    student = session.query(Student).filter_by(name="arnold").one()
    student.points = 200
    session.commit()

    catalog = (await client.get("/awards/catalog")).json()
    assert {"title": "Academic Excellence Trophy", "points": 1000}.items() <= catalog[0].items()

    response = await client.post(
        "/awards/transfer",
        json={"award": "Academic Excellence Trophy", "student_id": student.id},
        headers=teacher,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["student"]["points"] == 1200
    assert body["award"]["metadata"]["points"] == 1000
    assert body["transaction"]["status"] == "completed"
    assert body["transaction"]["nft_id"] == body["award"]["id"]
    assert session.query(Nft).count() == 1
    assert session.query(Transaction).count() == 1


@pytest.mark.asyncio
async def test_transfer_without_student_is_a_notice(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")

    response = await client.post("/awards/transfer", json={"award": "Innovation Star"}, headers=teacher)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Please select a student first"
    assert session.query(Nft).count() == 0


@pytest.mark.asyncio
async def test_students_cannot_transfer(client: AsyncClient):
    student = await _signup(client, "arnold@school.test", "student")
    response = await client.post(
        "/awards/transfer", json={"award": "Innovation Star", "student_id": 1}, headers=student
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_teacher_roster_falls_back_to_demo(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")

    body = (await client.get("/students/mine", headers=teacher)).json()
    assert body["demo"] is True
    assert body["empty_reason"] == "no_classrooms"

    await _signup(client, "arnold@school.test", "student")
    student = session.query(Student).filter_by(name="arnold").one()
    classroom = (await client.post("/classrooms/", json={"name": "Science"}, headers=teacher)).json()
    enrolled = await client.post(
        f"/classrooms/{classroom['id']}/students", json={"student_id": student.id}, headers=teacher
    )
    assert enrolled.json() == {"ok": True, "created": True}

    body = (await client.get("/students/mine", headers=teacher)).json()
    assert body["demo"] is False
    assert [s["name"] for s in body["students"]] == ["arnold"]


@pytest.mark.asyncio
async def test_attendance_flow(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")
    pupil = await _signup(client, "arnold@school.test", "student")
    student = session.query(Student).filter_by(name="arnold").one()
    classroom = (await client.post("/classrooms/", json={"name": "Science"}, headers=teacher)).json()
    await client.post(f"/classrooms/{classroom['id']}/students", json={"student_id": student.id}, headers=teacher)

    url = f"/attendance/classrooms/{classroom['id']}/students/{student.id}"
    assert (await client.post(url, json={"status": "absent"}, headers=pupil)).status_code == 403
    assert (await client.post(url, json={"status": "absent"}, headers=teacher)).json()["status"] == "absent"
    assert (await client.post(url, json={"status": "late"}, headers=teacher)).status_code == 200

    roster = (await client.get(f"/attendance/classrooms/{classroom['id']}", headers=pupil)).json()
    assert roster["can_edit"] is False
    assert roster["students"] == [{"id": student.id, "name": "arnold", "status": "late"}]

    record = (await client.get("/students/me", headers=pupil)).json()
    assert [a["status"] for a in record["attendance"]] == ["late"]


@pytest.mark.asyncio
async def test_seating_board(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")

    seats = (await client.get("/seating/", headers=teacher)).json()
    assert len(seats) == 30
    assert (await client.get("/seating/", headers=teacher)).status_code == 200
    assert session.query(Seat).count() == 30

    claimed = (await client.post(f"/seating/{seats[0]['id']}/toggle", headers=teacher)).json()
    assert claimed["claimed"] is True
    assert claimed["seat"]["student"] == "frizzle@school.test"

    released = (await client.post(f"/seating/{seats[0]['id']}/toggle", headers=teacher)).json()
    assert released["seat"]["student"] is None

    missing = await client.post("/seating/999/toggle", headers=teacher)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_create_award_with_generated_image(client: AsyncClient):
    teacher = await _signup(client, "frizzle@school.test", "teacher")

    missing_image = await client.post(
        "/awards/", data={"title": "Kindness", "description": "For kindness"}, headers=teacher
    )
    assert missing_image.status_code == 400

    response = await client.post(
        "/awards/",
        data={"title": "Kindness", "description": "For kindness", "points": "150", "generate_image": "true"},
        headers=teacher,
    )
    assert response.status_code == 201, response.text
    award = response.json()
    assert award["owner_wallet_id"] is None
    assert award["metadata"]["points"] == 150

    image = await client.get(award["image_url"])
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"

    unassigned = (await client.get("/awards/unassigned", headers=teacher)).json()
    assert [a["id"] for a in unassigned] == [award["id"]]


@pytest.mark.asyncio
async def test_blank_student_selection_is_a_notice(client: AsyncClient, session):
    teacher = await _signup(client, "frizzle@school.test", "teacher")
    await client.get("/notices")

    response = await client.post(
        "/awards/transfer", json={"award": "Innovation Star", "student_id": ""}, headers=teacher
    )
    assert response.status_code == 400
    assert response.json() == {
        "ok": False,
        "error": {"code": "VALIDATION_ERROR", "message": "Please select a student first"},
    }
    notices = (await client.get("/notices")).json()
    assert notices == [{"category": "danger", "message": "Please select a student first"}]
    assert session.query(Nft).count() == 0


@pytest.mark.asyncio
async def test_rejected_award_leaves_no_artwork_behind(client: AsyncClient, media_root):
    teacher = await _signup(client, "frizzle@school.test", "teacher")
    buf = io.BytesIO()
    Image.new("RGB", (64, 64), (200, 30, 30)).save(buf, format="PNG")

    response = await client.post(
        "/awards/",
        data={"title": "Kindness", "description": ""},
        files={"image": ("kindness.png", buf.getvalue(), "image/png")},
        headers=teacher,
    )
    assert response.status_code == 400

    generated = await client.post(
        "/awards/", data={"title": "", "description": "x", "generate_image": "true"}, headers=teacher
    )
    assert generated.status_code == 400
    assert not media_root.exists() or not any(media_root.rglob("*.png"))


@pytest.mark.asyncio
async def test_failed_signup_setup_does_not_lock_the_account(client: AsyncClient, session, monkeypatch):
    def unavailable(*args, **kwargs):
        raise RpcError("wallet service unavailable")

    with monkeypatch.context() as patched:
        patched.setattr(provisioning, "get_or_create_wallet", unavailable)
        failed = await client.post(
            "/auth/signup", data={"email": "arnold@school.test", "password": "password", "role": "student"}
        )
    assert failed.status_code == 502
    assert session.query(User).count() == 0
    assert session.query(UserRole).count() == 0

    await _signup(client, "arnold@school.test", "student")
    login = await client.post("/auth/login", data={"email": "arnold@school.test", "password": "password"})
    assert login.status_code == 200
    assert login.json()["session"]["role"] == "student"


@pytest.mark.asyncio
async def test_logout_revokes_bearer_tokens(client: AsyncClient):
    teacher = await _signup(client, "frizzle@school.test", "teacher")
    assert (await client.get("/auth/session", headers=teacher)).json()["authenticated"] is True

    assert (await client.post("/auth/logout", headers=teacher)).status_code == 200

    assert (await client.get("/auth/session", headers=teacher)).json() == {"authenticated": False}
    assert (await client.get("/seating/", headers=teacher)).status_code == 401

    again = await client.post("/auth/login", data={"email": "frizzle@school.test", "password": "password"})
    fresh = {"Authorization": f"Bearer {again.json()['access_token']}"}
    assert (await client.get("/auth/session", headers=fresh)).json()["authenticated"] is True
