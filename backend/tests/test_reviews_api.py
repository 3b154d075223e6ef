"""Review endpoints over HTTP: status codes, error bodies and the caller's queues."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from walkthrough_api.models import Role


@pytest.fixture
def people(factory):
    return SimpleNamespace(
        observer=factory.user(Role.OBSERVER),
        coach_a=factory.user(Role.COACH),
        coach_b=factory.user(Role.COACH),
        admin=factory.user(Role.ADMIN),
        teacher=factory.teacher(),
    )


@pytest.fixture
def assigned(client, people, auth_headers):
    """POST a walkthrough assigned to coach_a; returns its JSON."""
    response = client.post(
        "/api/walkthroughs",
        json={
            "teacherId": people.teacher.id,
            "subject": "Computer Science",
            "gradeLevel": "9",
            "assignedReviewer": people.coach_a.id,
        },
        headers=auth_headers(people.observer),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_with_reviewer_sets_pending(assigned, people, email_sender):
    assert assigned["reviewStatus"] == "pending"
    assert assigned["assignedReviewer"] == people.coach_a.id
    assert assigned["reviewer"]["id"] == people.coach_a.id
    assert assigned["warnings"] == []
    assert email_sender.sent[0].to == people.coach_a.email


def test_start_then_complete(client, assigned, people, auth_headers):
    headers = auth_headers(people.coach_a)

    started = client.post(f"/api/reviews/{assigned['id']}/start", headers=headers)
    assert started.status_code == 200
    assert started.json()["reviewStatus"] == "in-progress"
    assert started.json()["reviewStartedAt"] is not None

    completed = client.post(
        f"/api/reviews/{assigned['id']}/complete",
        json={"reviewerFeedback": "Good lesson", "reviewerComments": "Strong closure"},
        headers=headers,
    )
    assert completed.status_code == 200
    body = completed.json()
    assert body["reviewStatus"] == "completed"
    assert body["reviewCompletedAt"] is not None
    assert body["reviewerFeedback"] == "Good lesson"
    assert body["reviewerComments"] == "Strong closure"
    assert body["notificationSent"] is True


def test_second_start_is_conflict(client, assigned, people, auth_headers):
    headers = auth_headers(people.coach_a)
    assert client.post(f"/api/reviews/{assigned['id']}/start", headers=headers).status_code == 200

    again = client.post(f"/api/reviews/{assigned['id']}/start", headers=headers)

    assert again.status_code == 409
    error = again.json()
    assert error["code"] == "INVALID_TRANSITION"
    assert error["details"]["expected"] == "pending"
    assert error["details"]["actual"] == "in-progress"


def test_complete_with_blank_feedback_is_bad_request(client, assigned, people, auth_headers):
    headers = auth_headers(people.coach_a)
    client.post(f"/api/reviews/{assigned['id']}/start", headers=headers)

    response = client.post(
        f"/api/reviews/{assigned['id']}/complete",
        json={"reviewerFeedback": "  "},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    current = client.get(f"/api/walkthroughs/{assigned['id']}", headers=headers).json()
    assert current["reviewStatus"] == "in-progress"


def test_complete_before_start_is_conflict(client, assigned, people, auth_headers):
    response = client.post(
        f"/api/reviews/{assigned['id']}/complete",
        json={"reviewerFeedback": "Too early"},
        headers=auth_headers(people.coach_a),
    )
    assert response.status_code == 409


def test_other_coach_is_forbidden(client, assigned, people, auth_headers):
    response = client.post(f"/api/reviews/{assigned['id']}/start", headers=auth_headers(people.coach_b))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_admin_may_review_any_walkthrough(client, assigned, people, auth_headers):
    headers = auth_headers(people.admin)
    assert client.post(f"/api/reviews/{assigned['id']}/start", headers=headers).status_code == 200
    response = client.post(
        f"/api/reviews/{assigned['id']}/complete",
        json={"reviewerFeedback": "Reviewed by admin"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["reviewStatus"] == "completed"


def test_unknown_walkthrough_is_not_found(client, people, auth_headers):
    response = client.post("/api/reviews/does-not-exist/start", headers=auth_headers(people.coach_a))

    assert response.status_code == 404
    assert response.json()["details"] == {"resource": "Walkthrough", "id": "does-not-exist"}


def test_requires_authentication(client, assigned):
    assert client.post(f"/api/reviews/{assigned['id']}/start").status_code == 401
    bad = client.post(
        f"/api/reviews/{assigned['id']}/start",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert bad.status_code == 401
    assert bad.json()["code"] == "AUTH_FAILED"


def test_patch_saves_draft_without_status_change(client, assigned, people, auth_headers):
    response = client.patch(
        f"/api/walkthroughs/{assigned['id']}",
        json={"reviewerFeedback": "Half-written thoughts", "reviewStatus": "completed"},
        headers=auth_headers(people.coach_a),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["reviewStatus"] == "pending"
    assert body["reviewerFeedback"] == "Half-written thoughts"


def test_patch_by_non_reviewer_is_forbidden(client, assigned, people, auth_headers):
    response = client.patch(
        f"/api/walkthroughs/{assigned['id']}",
        json={"reviewerFeedback": "Not mine to write"},
        headers=auth_headers(people.observer),
    )
    assert response.status_code == 403


def test_queues_follow_the_review(client, assigned, people, auth_headers):
    headers = auth_headers(people.coach_a)

    def queue(name):
        response = client.get(f"/api/reviews/{name}", headers=headers)
        assert response.status_code == 200
        return [w["id"] for w in response.json()]

    assert queue("pending") == [assigned["id"]]
    client.post(f"/api/reviews/{assigned['id']}/start", headers=headers)
    assert queue("pending") == []
    assert queue("in-progress") == [assigned["id"]]
    client.post(f"/api/reviews/{assigned['id']}/complete", json={"reviewerFeedback": "Done"}, headers=headers)
    assert queue("in-progress") == []
    assert queue("completed") == [assigned["id"]]

    other = client.get("/api/reviews/pending", headers=auth_headers(people.coach_b))
    assert other.json() == []


def test_observer_has_no_review_queue(client, people, auth_headers):
    response = client.get("/api/reviews/pending", headers=auth_headers(people.observer))
    assert response.status_code == 403


def test_completion_email_failure_is_a_warning(client, assigned, people, auth_headers, email_sender):
    headers = auth_headers(people.coach_a)
    client.post(f"/api/reviews/{assigned['id']}/start", headers=headers)
    email_sender.fail = True

    response = client.post(
        f"/api/reviews/{assigned['id']}/complete",
        json={"reviewerFeedback": "Good lesson"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["reviewStatus"] == "completed"
    assert body["notificationSent"] is False
    assert len(body["warnings"]) == 1
