"""Authentication, user administration and the teacher/location directory."""
from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from walkthrough_api.core.security import create_access_token, hash_password, verify_password
from walkthrough_api.models import Role


@pytest.fixture
def people(factory):
    return SimpleNamespace(
        observer=factory.user(Role.OBSERVER, username="olive", email="olive@school.test", password="olive-pass-1"),
        coach=factory.user(Role.COACH, first_name="Zephyrine"),
        teacher_account=factory.user(Role.TEACHER),
        admin=factory.user(Role.ADMIN, first_name="Ari"),
    )


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# -- auth ---------------------------------------------------------------------


def test_password_hashing():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret-pass", "not-a-hash")


def test_register_creates_signed_in_observer(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "newbie", "password": "pw-newbie-1", "email": "Newbie@School.test", "firstName": "Nia"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["role"] == "observer"
    assert body["user"]["email"] == "newbie@school.test"

    me = client.get("/api/auth/me", headers=bearer(body["accessToken"]))
    assert me.json()["username"] == "newbie"


@pytest.mark.parametrize(
    "body, message",
    [
        ({"username": "olive", "password": "x"}, "Username already exists"),
        ({"username": "olive2", "password": "x", "email": "OLIVE@school.test"},
         "Email already exists for another user account"),
    ],
)
def test_register_conflicts(client, people, body, message):
    response = client.post("/api/auth/register", json=body)

    assert response.status_code == 409
    assert response.json() == {"code": "CONFLICT", "message": message, "details": {}}


def test_login(client, people):
    ok = client.post("/api/auth/login", json={"username": "olive", "password": "olive-pass-1"})
    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == people.observer.id

    wrong = client.post("/api/auth/login", json={"username": "olive", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid username or password"

    unknown = client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})
    assert unknown.status_code == 401


def test_expired_or_orphaned_tokens_are_rejected(client, people, settings):
    expired = create_access_token(settings, people.observer.id, "observer", expires_delta=timedelta(minutes=-1))
    assert client.get("/api/auth/me", headers=bearer(expired)).status_code == 401

    orphan = create_access_token(settings, "deleted-user", "observer")
    assert client.get("/api/auth/me", headers=bearer(orphan)).status_code == 401


# -- users --------------------------------------------------------------------


def test_search_and_reviewers(client, people, auth_headers):
    headers = auth_headers(people.observer)

    found = client.get("/api/users/search", params={"q": "zephyr"}, headers=headers).json()
    assert [u["id"] for u in found] == [people.coach.id]

    assert client.get("/api/users/search", headers=headers).status_code == 400

    reviewers = client.get("/api/users/reviewers", headers=headers).json()
    assert {u["id"] for u in reviewers} == {people.coach.id, people.admin.id}

    assert client.get("/api/users/reviewers", headers=auth_headers(people.teacher_account)).status_code == 403


def test_admin_creates_users(client, people, auth_headers):
    headers = auth_headers(people.admin)

    created = client.post(
        "/api/admin/users",
        json={"username": "coach2", "password": "pw-coach-2", "role": "coach", "firstName": "Cole"},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["role"] == "coach"

    bad_role = client.post(
        "/api/admin/users", json={"username": "x", "password": "y", "role": "principal"}, headers=headers
    )
    assert bad_role.status_code == 400
    assert bad_role.json()["details"] == {"field": "role"}

    listing = client.get("/api/admin/users", headers=headers).json()
    assert "coach2" in {u["username"] for u in listing}

    denied = client.post(
        "/api/admin/users", json={"username": "z", "password": "y"}, headers=auth_headers(people.coach)
    )
    assert denied.status_code == 403


def test_admin_updates_users(client, people, auth_headers):
    headers = auth_headers(people.admin)
    url = f"/api/admin/users/{people.observer.id}"

    updated = client.put(url, json={"role": "coach", "password": "brand-new-pass"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["role"] == "coach"
    assert updated.json()["username"] == "olive"

    login = client.post("/api/auth/login", json={"username": "olive", "password": "brand-new-pass"})
    assert login.status_code == 200

    taken = client.put(url, json={"email": people.coach.email}, headers=headers)
    assert taken.status_code == 409

    # keeping your own email is not a conflict
    assert client.put(url, json={"email": "olive@school.test"}, headers=headers).status_code == 200

    missing = client.put("/api/admin/users/nobody", json={"firstName": "X"}, headers=headers)
    assert missing.status_code == 404


# -- directory ----------------------------------------------------------------


def test_teacher_directory(client, people, factory, auth_headers):
    factory.teacher(first_name="Grace", last_name="Hopper")
    factory.teacher(first_name="Alan", last_name="Turing", active=False)
    headers = auth_headers(people.observer)

    assert [t["lastName"] for t in client.get("/api/teachers", headers=headers).json()] == ["Hopper"]
    assert client.get("/api/teachers/search", params={"q": "turing"}, headers=headers).json() == []
    assert len(client.get("/api/teachers/search", params={"q": "GRA"}, headers=headers).json()) == 1


def test_teacher_management_is_admin_only(client, people, auth_headers):
    body = {"firstName": "Dorothy", "lastName": "Vaughan", "subjects": ["Mathematics"]}

    assert client.post("/api/teachers", json=body, headers=auth_headers(people.coach)).status_code == 403

    created = client.post("/api/teachers", json=body, headers=auth_headers(people.admin))
    assert created.status_code == 201
    teacher = created.json()
    assert teacher["subjects"] == ["Mathematics"]

    deactivated = client.put(
        f"/api/teachers/{teacher['id']}", json={"active": False}, headers=auth_headers(people.admin)
    )
    assert deactivated.json()["active"] is False
    assert deactivated.json()["firstName"] == "Dorothy"
    assert client.get("/api/teachers", headers=auth_headers(people.admin)).json() == []


def test_teacher_with_account(client, people, auth_headers):
    response = client.post(
        "/api/teachers/create-with-account",
        json={
            "firstName": "Mary",
            "lastName": "Jackson",
            "email": "Mary@School.test",
            "username": "mjackson",
            "password": "pw-mary-1",
        },
        headers=auth_headers(people.admin),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "teacher"
    assert body["teacher"]["email"] == "mary@school.test"

    login = client.post("/api/auth/login", json={"username": "mjackson", "password": "pw-mary-1"})
    assert login.status_code == 200


def test_locations(client, people, auth_headers):
    headers = auth_headers(people.admin)

    created = client.post("/api/locations", json={"name": "East Wing"}, headers=headers)
    assert created.status_code == 201

    duplicate = client.post("/api/locations", json={"name": "East Wing"}, headers=headers)
    assert duplicate.status_code == 409

    blank = client.post("/api/locations", json={"name": "   "}, headers=headers)
    assert blank.status_code == 400

    assert client.post("/api/locations", json={"name": "West"}, headers=auth_headers(people.coach)).status_code == 403
    assert [loc["name"] for loc in client.get("/api/locations", headers=auth_headers(people.observer)).json()] == [
        "East Wing"
    ]
