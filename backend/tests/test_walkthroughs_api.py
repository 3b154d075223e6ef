"""Walkthrough CRUD, observation timing, ownership rules and AI feedback drafts."""
from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from walkthrough_api.models import Role


@pytest.fixture
def people(factory):
    return SimpleNamespace(
        observer=factory.user(Role.OBSERVER),
        other_observer=factory.user(Role.OBSERVER),
        coach=factory.user(Role.COACH),
        leader=factory.user(Role.LEADERSHIP),
        teacher_account=factory.user(Role.TEACHER),
        admin=factory.user(Role.ADMIN),
        teacher=factory.teacher(first_name="Grace", last_name="Hopper"),
        location=factory.location("North Campus"),
    )


@pytest.fixture
def create(client, people, auth_headers):
    def post(user=None, **fields):
        body = {"teacherId": people.teacher.id, "subject": "Computer Science", **fields}
        return client.post("/api/walkthroughs", json=body, headers=auth_headers(user or people.observer))

    return post


def test_create_defaults(create, people):
    response = create(
        locationId=people.location.id,
        gradeLevel="10",
        engagementLevel="4",
        effectivenessRatings={"clearInstructions": "excellent"},
        climate="warm",
    )

    assert response.status_code == 201
    body = response.json()
    assert body["createdBy"] == people.observer.id
    assert body["status"] == "draft"
    assert body["reviewStatus"] == "not-required"
    assert body["startTime"] is not None
    assert body["dateTime"] is not None
    assert body["teacher"]["firstName"] == "Grace"
    assert body["location"]["name"] == "North Campus"
    assert body["creator"]["id"] == people.observer.id
    assert body["effectivenessRatings"] == {"clearInstructions": "excellent"}


@pytest.mark.parametrize("missing", ["teacherId", "subject"])
def test_create_requires_teacher_and_subject(client, people, auth_headers, missing):
    body = {"teacherId": people.teacher.id, "subject": "Math"}
    del body[missing]

    response = client.post("/api/walkthroughs", json=body, headers=auth_headers(people.observer))

    assert response.status_code == 400
    assert response.json()["details"] == {"field": missing}


def test_create_rejects_unknown_teacher(create):
    response = create(teacherId="nobody")
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "teacherId"}


@pytest.mark.parametrize(
    "fields",
    [{"engagementLevel": "7"}, {"additionalNotesText": "x" * 101}],
)
def test_create_validates_form_fields(create, fields):
    assert create(**fields).status_code == 422


@pytest.mark.parametrize("role", ["leader", "teacher_account"])
def test_roles_without_create_capability(create, people, role):
    response = create(user=getattr(people, role))
    assert response.status_code == 403


def test_completing_observation_stamps_timing(client, create, people, auth_headers):
    walkthrough = create().json()

    response = client.put(
        f"/api/walkthroughs/{walkthrough['id']}",
        json={"status": "completed", "strengths": "Clear modelling"},
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["endTime"] is not None
    assert body["duration"] is not None and body["duration"] >= 0
    assert body["strengths"] == "Clear modelling"


def test_follow_up_emails_the_teacher(client, create, people, auth_headers, email_sender):
    walkthrough = create(followUpNeeded=True).json()

    response = client.put(
        f"/api/walkthroughs/{walkthrough['id']}",
        json={"status": "completed"},
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 200
    assert email_sender.sent[-1].to == people.teacher.email
    assert email_sender.sent[-1].subject.startswith("Follow-up Required")


def test_follow_up_email_failure_is_a_warning(client, create, people, auth_headers, email_sender):
    walkthrough = create(followUpNeeded=True).json()
    email_sender.fail = True

    response = client.put(
        f"/api/walkthroughs/{walkthrough['id']}",
        json={"status": "completed"},
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["warnings"][0].startswith("Teacher follow-up email could not be sent")


def test_update_only_touches_sent_fields(client, create, people, auth_headers):
    walkthrough = create(gradeLevel="11", lessonObjective="Loops").json()

    response = client.put(
        f"/api/walkthroughs/{walkthrough['id']}",
        json={"lessonObjective": "Nested loops"},
        headers=auth_headers(people.observer),
    )

    body = response.json()
    assert body["lessonObjective"] == "Nested loops"
    assert body["gradeLevel"] == "11"


def test_edit_permissions(client, create, people, auth_headers):
    walkthrough = create(observerIds=[people.other_observer.id]).json()
    url = f"/api/walkthroughs/{walkthrough['id']}"
    stranger = client.post(
        "/api/auth/register",
        json={"username": "stranger", "password": "pw-stranger-1"},
    ).json()
    stranger_headers = {"Authorization": f"Bearer {stranger['accessToken']}"}

    assert client.put(url, json={"climate": "neutral"}, headers=stranger_headers).status_code == 403
    assert client.put(url, json={"climate": "neutral"}, headers=auth_headers(people.other_observer)).status_code == 200
    assert client.put(url, json={"climate": "warm"}, headers=auth_headers(people.coach)).status_code == 200
    assert client.put(url, json={"climate": "tense"}, headers=auth_headers(people.admin)).status_code == 200


def test_observer_links_are_synced(client, create, people, auth_headers):
    walkthrough = create(observerIds=[people.other_observer.id, people.coach.id]).json()
    assert {o["observerId"] for o in walkthrough["observers"]} == {people.other_observer.id, people.coach.id}

    response = client.put(
        f"/api/walkthroughs/{walkthrough['id']}",
        json={"observerIds": [people.coach.id]},
        headers=auth_headers(people.observer),
    )

    assert [o["observerId"] for o in response.json()["observers"]] == [people.coach.id]


def test_delete_permissions(client, create, people, auth_headers):
    first = create().json()
    second = create().json()

    assert client.delete(f"/api/walkthroughs/{first['id']}", headers=auth_headers(people.coach)).status_code == 403
    assert client.delete(
        f"/api/walkthroughs/{first['id']}", headers=auth_headers(people.other_observer)
    ).status_code == 403
    assert client.delete(f"/api/walkthroughs/{first['id']}", headers=auth_headers(people.observer)).status_code == 204
    assert client.delete(f"/api/walkthroughs/{second['id']}", headers=auth_headers(people.admin)).status_code == 204

    missing = client.get(f"/api/walkthroughs/{first['id']}", headers=auth_headers(people.observer))
    assert missing.status_code == 404


def test_list_filters(client, create, people, factory, auth_headers):
    other_teacher = factory.teacher()
    create(subject="Computer Science", dateTime="2026-03-02T10:00:00Z")
    create(subject="Mathematics", teacherId=other_teacher.id, dateTime="2026-03-09T10:00:00Z")
    create(subject="Computer Science", assignedReviewer=people.coach.id, dateTime="2026-03-16T10:00:00Z")
    headers = auth_headers(people.leader)

    everything = client.get("/api/walkthroughs", headers=headers).json()
    assert [w["subject"] for w in everything] == ["Computer Science", "Mathematics", "Computer Science"]

    by_teacher = client.get("/api/walkthroughs", params={"teacherId": other_teacher.id}, headers=headers).json()
    assert [w["subject"] for w in by_teacher] == ["Mathematics"]

    by_subject = client.get("/api/walkthroughs", params={"subject": "computer"}, headers=headers).json()
    assert len(by_subject) == 2

    pending = client.get("/api/walkthroughs", params={"reviewStatus": "pending"}, headers=headers).json()
    assert [w["assignedReviewer"] for w in pending] == [people.coach.id]

    march_window = client.get(
        "/api/walkthroughs",
        params={"startDate": "2026-03-05T00:00:00Z", "endDate": "2026-03-10T00:00:00Z"},
        headers=headers,
    ).json()
    assert [w["subject"] for w in march_window] == ["Mathematics"]


def test_teacher_role_cannot_read_walkthroughs(client, people, auth_headers):
    response = client.get("/api/walkthroughs", headers=auth_headers(people.teacher_account))
    assert response.status_code == 403


def test_generate_feedback_for_saved_walkthrough(client, create, people, auth_headers, ai_provider):
    walkthrough = create(
        engagementLevel="4",
        climate="warm",
        effectivenessRatings={"questioningTechniques": "good"},
    ).json()
    ai_provider.reply(
        {
            "strengths": ["Students explained their reasoning", "Clear success criteria"],
            "areasForGrowth": "Increase wait time after questions.",
            "additionalComments": "Keep building on the warm climate.",
            "confidence": 1.7,
        }
    )

    response = client.post(
        f"/api/walkthroughs/{walkthrough['id']}/generate-feedback",
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["strengths"] == "Students explained their reasoning\n\nClear success criteria"
    assert body["areasForGrowth"] == "Increase wait time after questions."
    assert body["confidence"] == 1.0
    prompt = ai_provider.requests[0]["messages"][1]["content"]
    assert "Grace Hopper" in prompt
    assert "Student engagement: 4/5" in prompt
    assert "Questioning Techniques: good" in prompt


def test_generate_feedback_provider_outage_is_bad_gateway(client, create, people, auth_headers, ai_provider):
    walkthrough = create().json()
    ai_provider.reply(503)

    response = client.post(
        f"/api/walkthroughs/{walkthrough['id']}/generate-feedback",
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 502
    assert response.json()["code"] == "UPSTREAM_FAILURE"
    assert response.json()["details"] == {"service": "ai"}


def test_my_stats(client, create, people, factory, auth_headers):
    create()
    create()
    factory.walkthrough(people.other_observer, people.teacher, date_time=datetime(2026, 1, 5, tzinfo=timezone.utc))

    stats = client.get("/api/stats", headers=auth_headers(people.observer)).json()

    assert stats["total"] == 2
    assert stats["thisWeek"] == 2
    assert stats["teachersObserved"] == 1
