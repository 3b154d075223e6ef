"""Lesson plans: Friday deadlines, weekly submission, ownership and the HTTP surface."""
from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from walkthrough_api.core.errors import Forbidden, ValidationError
from walkthrough_api.models import Role
from walkthrough_api.services.lesson_plans import (
    LessonPlanService,
    current_week_number,
    first_friday,
    friday_deadline,
    is_submission_late,
)

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")


# -- deadline arithmetic ------------------------------------------------------


def test_first_friday():
    assert first_friday(2026) == date(2026, 1, 2)
    # 2027 starts on a Friday
    assert first_friday(2027) == date(2027, 1, 1)


def test_friday_deadline_is_end_of_day():
    assert friday_deadline(1, 2026, UTC) == datetime(2026, 1, 2, 23, 59, 59, 999000, tzinfo=UTC)
    assert friday_deadline(10, 2026, UTC).date() == date(2026, 3, 6)


def test_lateness_boundary():
    assert not is_submission_late(datetime(2026, 1, 2, 23, 59, 59, tzinfo=timezone.utc), 1, UTC)
    assert is_submission_late(datetime(2026, 1, 3, 0, 0, 0, tzinfo=timezone.utc), 1, UTC)


def test_lateness_uses_school_timezone():
    # 03:00 UTC on Saturday is still Friday evening in New York
    submitted = datetime(2026, 1, 3, 3, 0, tzinfo=timezone.utc)

    assert is_submission_late(submitted, 1, UTC)
    assert not is_submission_late(submitted, 1, NEW_YORK)


def test_naive_timestamps_are_treated_as_utc():
    assert is_submission_late(datetime(2026, 1, 3, 0, 0, 1), 1, UTC)


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 1, 1, tzinfo=timezone.utc), 1),
        (datetime(2026, 1, 7, 12, tzinfo=timezone.utc), 1),
        (datetime(2026, 1, 8, 0, 0, 1, tzinfo=timezone.utc), 2),
        (datetime(2026, 3, 5, tzinfo=timezone.utc), 9),
    ],
)
def test_current_week_number(now, expected):
    assert current_week_number(now, UTC) == expected


def test_current_week_pairs_week_with_deadline(notifier):
    service = LessonPlanService(notifier, "UTC")

    current = service.current_week(now=datetime(2026, 1, 8, 12, tzinfo=timezone.utc))

    assert current["week_number"] == 2
    assert current["deadline"] == datetime(2026, 1, 9, 23, 59, 59, 999000, tzinfo=UTC)


# -- service ------------------------------------------------------------------


@pytest.fixture
def people(factory):
    return SimpleNamespace(
        author=factory.user(Role.TEACHER),
        observer=factory.user(Role.OBSERVER),
        coach=factory.user(Role.COACH),
        second_coach=factory.user(Role.COACH),
        leader=factory.user(Role.LEADERSHIP),
        admin=factory.user(Role.ADMIN),
        teacher=factory.teacher(first_name="Katherine", last_name="Johnson"),
    )


@pytest.fixture
def service(notifier):
    return LessonPlanService(notifier, "UTC")


@pytest.fixture
def plan(db, service, people):
    outcome = service.create(
        db,
        people.author,
        {"teacher_id": people.teacher.id, "title": "Orbital Mechanics", "subject": "Physics"},
    )
    return outcome.lesson_plan


def test_create_asks_every_coach_to_review(db, service, people, email_sender):
    outcome = service.create(
        db,
        people.author,
        {"teacher_id": people.teacher.id, "title": "Vectors", "subject": "Physics", "status": "draft"},
    )

    assert outcome.warnings == []
    assert outcome.lesson_plan.created_by == people.author.id
    assert sorted(m.to for m in email_sender.sent) == sorted([people.coach.email, people.second_coach.email])
    assert all(s == "Lesson Plan Review Request: Vectors" for s in email_sender.subjects())


def test_create_ignores_submission_fields(db, service, people):
    outcome = service.create(
        db,
        people.author,
        {
            "teacher_id": people.teacher.id,
            "title": "Vectors",
            "subject": "Physics",
            "is_late_submission": True,
            "created_by": people.admin.id,
        },
    )

    assert outcome.lesson_plan.is_late_submission is False
    assert outcome.lesson_plan.created_by == people.author.id


def test_create_requires_known_teacher(db, service, people):
    with pytest.raises(ValidationError) as excinfo:
        service.create(db, people.author, {"teacher_id": "missing", "title": "T", "subject": "S"})
    assert excinfo.value.details == {"field": "teacherId"}


def test_leadership_cannot_author_plans(db, service, people):
    with pytest.raises(Forbidden):
        service.create(db, people.leader, {"teacher_id": people.teacher.id, "title": "T", "subject": "S"})


def test_submit_on_time(db, service, plan, people, email_sender):
    email_sender.sent.clear()

    outcome = service.submit(
        db, people.author, plan.id, 1, now=datetime(2026, 1, 2, 18, tzinfo=timezone.utc)
    )

    assert outcome.is_late is False
    assert outcome.message == "Lesson plan submitted for Week 1 (on time)"
    assert outcome.lesson_plan.status == "submitted"
    assert outcome.lesson_plan.week_of_year == 1
    assert outcome.lesson_plan.coach_notified is True
    assert len(email_sender.sent) == 1
    assert email_sender.sent[0].to in {people.coach.email, people.second_coach.email}
    assert email_sender.sent[0].subject == "Lesson Plan Submission - Week 1: Katherine Johnson"


def test_submit_late(db, service, plan, people, email_sender):
    outcome = service.submit(
        db, people.author, plan.id, 1, now=datetime(2026, 1, 3, 0, 0, 1, tzinfo=timezone.utc)
    )

    assert outcome.is_late is True
    assert outcome.message.endswith("(late submission)")
    assert outcome.lesson_plan.is_late_submission is True
    assert email_sender.subjects()[-1].startswith("Lesson Plan Late Submission - Week 1")


@pytest.mark.parametrize("week", [None, 0, 53, -1])
def test_submit_rejects_week_out_of_range(db, service, plan, people, week):
    with pytest.raises(ValidationError) as excinfo:
        service.submit(db, people.author, plan.id, week)
    assert excinfo.value.details == {"field": "weekNumber"}


@pytest.mark.parametrize("who", ["observer", "coach", "admin"])
def test_only_the_creator_submits(db, service, plan, people, who):
    with pytest.raises(Forbidden) as excinfo:
        service.submit(db, getattr(people, who), plan.id, 3)
    assert excinfo.value.message == "Only the creator can submit this lesson plan"


def test_submit_email_failure_leaves_coach_unnotified(db, service, plan, people, email_sender):
    email_sender.fail = True

    outcome = service.submit(db, people.author, plan.id, 5, now=datetime(2026, 1, 5, tzinfo=timezone.utc))

    assert outcome.lesson_plan.status == "submitted"
    assert outcome.lesson_plan.coach_notified is False
    assert len(outcome.warnings) == 1


def test_submit_without_coaches(db, notifier, factory, email_sender):
    author = factory.user(Role.TEACHER)
    teacher = factory.teacher()
    service = LessonPlanService(notifier, "UTC")
    plan = service.create(db, author, {"teacher_id": teacher.id, "title": "T", "subject": "S"}).lesson_plan

    outcome = service.submit(db, author, plan.id, 2, now=datetime(2026, 1, 5, tzinfo=timezone.utc))

    assert outcome.warnings == []
    assert outcome.lesson_plan.coach_notified is False
    assert email_sender.sent == []


def test_edit_and_delete_by_owner_or_admin(db, service, plan, people):
    with pytest.raises(Forbidden):
        service.update(db, people.observer, plan.id, {"title": "Hijacked"})
    with pytest.raises(Forbidden):
        service.delete(db, people.coach, plan.id)

    service.update(db, people.admin, plan.id, {"title": "Orbital Mechanics II"})
    assert service.get(db, people.author, plan.id).title == "Orbital Mechanics II"


# -- HTTP ---------------------------------------------------------------------


@pytest.fixture
def create(client, people, auth_headers):
    def post(user=None, **fields):
        body = {"teacherId": people.teacher.id, "title": "Orbital Mechanics", "subject": "Physics", **fields}
        return client.post("/api/lesson-plans", json=body, headers=auth_headers(user or people.author))

    return post


def test_create_over_http(create, people):
    response = create(gradeLevel="11", duration=50, standardsCovered=["HS-PS2-4"])

    assert response.status_code == 201
    body = response.json()
    assert body["createdBy"] == people.author.id
    assert body["status"] == "draft"
    assert body["standardsCovered"] == ["HS-PS2-4"]
    assert body["isLateSubmission"] is False
    assert body["warnings"] == []


def test_create_requires_title(client, people, auth_headers):
    response = client.post(
        "/api/lesson-plans",
        json={"teacherId": people.teacher.id, "subject": "Physics"},
        headers=auth_headers(people.author),
    )
    assert response.status_code == 422


def test_submit_over_http(client, create, people, auth_headers, email_sender):
    plan = create().json()

    response = client.post(
        f"/api/lesson-plans/{plan['id']}/submit",
        json={"weekNumber": 10},
        headers=auth_headers(people.author),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["weekNumber"] == 10
    timing = "late submission" if body["isLate"] else "on time"
    assert body["message"] == f"Lesson plan submitted for Week 10 ({timing})"
    assert body["lessonPlan"]["status"] == "submitted"
    assert body["lessonPlan"]["coachNotified"] is True
    assert "Week 10" in email_sender.subjects()[-1]


def test_submit_errors_over_http(client, create, people, auth_headers):
    plan = create().json()
    url = f"/api/lesson-plans/{plan['id']}/submit"

    bad_week = client.post(url, json={"weekNumber": 60}, headers=auth_headers(people.author))
    assert bad_week.status_code == 400
    assert bad_week.json()["details"] == {"field": "weekNumber"}

    missing = client.post(url, json={}, headers=auth_headers(people.author))
    assert missing.status_code == 400

    stranger = client.post(url, json={"weekNumber": 3}, headers=auth_headers(people.observer))
    assert stranger.status_code == 403
    assert stranger.json()["message"] == "Only the creator can submit this lesson plan"


def test_weekly_submissions_visibility(client, create, people, auth_headers):
    submitted = create(title="Submitted").json()
    create(title="Still a draft")
    client.post(
        f"/api/lesson-plans/{submitted['id']}/submit",
        json={"weekNumber": 4},
        headers=auth_headers(people.author),
    )

    coach_view = client.get("/api/lesson-plans/weekly-submissions", headers=auth_headers(people.coach))
    assert coach_view.status_code == 200
    assert [p["title"] for p in coach_view.json()] == ["Submitted"]

    observer_view = client.get("/api/lesson-plans/weekly-submissions", headers=auth_headers(people.observer))
    assert observer_view.status_code == 403


def test_my_plans_and_stats(client, create, people, auth_headers):
    mine = create(title="Mine").json()
    create(user=people.observer, title="Someone else's")
    client.post(
        f"/api/lesson-plans/{mine['id']}/submit",
        json={"weekNumber": 52},
        headers=auth_headers(people.author),
    )
    headers = auth_headers(people.author)

    plans = client.get("/api/lesson-plans/my-plans", headers=headers).json()
    assert [p["title"] for p in plans] == ["Mine"]

    stats = client.get("/api/lesson-plans/stats", headers=headers).json()
    assert stats["total"] == 1
    assert stats["submitted"] == 1
    assert stats["drafts"] == 0


def test_public_plans_are_finalized_and_shared(client, create, people, auth_headers):
    create(title="Shared", status="finalized", isPublic=True)
    create(title="Private", status="finalized", isPublic=False)
    create(title="Unfinished", status="draft", isPublic=True)

    response = client.get("/api/lesson-plans/public", headers=auth_headers(people.observer))

    assert [p["title"] for p in response.json()] == ["Shared"]


def test_current_week_endpoint(client, people, auth_headers):
    response = client.get("/api/lesson-plans/current-week", headers=auth_headers(people.author))

    assert response.status_code == 200
    body = response.json()
    assert 1 <= body["weekNumber"] <= 53
    deadline = datetime.fromisoformat(body["deadline"].replace("Z", "+00:00"))
    assert deadline.weekday() == 4


def test_patch_and_delete_over_http(client, create, people, auth_headers):
    plan = create().json()
    url = f"/api/lesson-plans/{plan['id']}"

    assert client.patch(url, json={"title": "Nope"}, headers=auth_headers(people.coach)).status_code == 403
    patched = client.patch(url, json={"objective": "Model a satellite orbit"}, headers=auth_headers(people.author))
    assert patched.status_code == 200
    assert patched.json()["objective"] == "Model a satellite orbit"
    assert patched.json()["title"] == "Orbital Mechanics"

    assert client.delete(url, headers=auth_headers(people.author)).status_code == 204
    assert client.get(url, headers=auth_headers(people.author)).status_code == 404
