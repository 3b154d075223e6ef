"""AI assist: provider client errors, standards filtering, pattern analysis and reports."""
from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest

from walkthrough_api.core.errors import UpstreamFailure
from walkthrough_api.models import Role
from walkthrough_api.services.ai_assist import AIAssistService, AIClient
from walkthrough_api.standards import CS_STANDARDS, standards_for_subject

CONTROL_STRUCTURES = "CSTA.2-AP-12: Design programs using control structures"


@pytest.fixture
def people(factory):
    return SimpleNamespace(
        observer=factory.user(Role.OBSERVER),
        coach=factory.user(Role.COACH),
        leader=factory.user(Role.LEADERSHIP),
        teacher_account=factory.user(Role.TEACHER),
        teacher=factory.teacher(),
    )


# -- client -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unconfigured_client_is_upstream_failure():
    client = AIClient(None, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with pytest.raises(UpstreamFailure) as excinfo:
        await client.chat([{"role": "user", "content": "hi"}])

    assert excinfo.value.details == {"service": "ai"}
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [503, "this is not json", "[1, 2]"])
async def test_bad_provider_replies(ai_client, ai_provider, reply):
    ai_provider.reply(reply)

    with pytest.raises(UpstreamFailure):
        await ai_client.chat_json([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_network_error_is_upstream_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = AIClient("key", transport=httpx.MockTransport(refuse))

    with pytest.raises(UpstreamFailure) as excinfo:
        await client.chat([{"role": "user", "content": "hi"}])

    assert "request failed" in excinfo.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_chat_json_requests_json_mode(ai_client, ai_provider):
    ai_provider.reply({"ok": True})

    assert await ai_client.chat_json([{"role": "user", "content": "hi"}], temperature=0.2) == {"ok": True}

    sent = ai_provider.requests[0]
    assert sent["response_format"] == {"type": "json_object"}
    assert sent["temperature"] == 0.2
    assert sent["model"] == "gpt-4o"


# -- standards ----------------------------------------------------------------


def test_unknown_subject_uses_cs_catalog():
    assert standards_for_subject("Underwater Basket Weaving") is CS_STANDARDS
    assert standards_for_subject(None) is CS_STANDARDS
    assert "NCSS.9: Global connections" in standards_for_subject("Social Studies")


def test_suggest_standards_keeps_only_catalog_entries(client, people, auth_headers, ai_provider):
    ai_provider.reply(
        {
            "suggestedStandards": [CONTROL_STRUCTURES, "Invented standard 9.9", CONTROL_STRUCTURES],
            "confidence": 0.85,
            "reasoning": "Loops and conditionals are the focus.",
        }
    )

    response = client.post(
        "/api/ai/suggest-standards",
        json={"lessonObjective": "Write nested loops", "subject": "Computer Science", "gradeLevel": "9"},
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 200
    assert response.json() == {
        "suggestedStandards": [CONTROL_STRUCTURES],
        "confidence": 0.85,
        "reasoning": "Loops and conditionals are the focus.",
    }
    prompt = ai_provider.requests[0]["messages"][0]["content"]
    assert f"1. {CS_STANDARDS[0]}" in prompt
    assert 'Lesson objective: "Write nested loops"' in prompt


def test_suggest_standards_requires_objective_and_subject(client, people, auth_headers, ai_provider):
    response = client.post(
        "/api/ai/suggest-standards",
        json={"subject": "Computer Science"},
        headers=auth_headers(people.observer),
    )

    assert response.status_code == 400
    assert ai_provider.requests == []


def test_feedback_for_unsaved_observation_has_fallbacks(client, people, auth_headers, ai_provider):
    ai_provider.reply({"strengths": "", "areasForGrowth": ["Wait time", "Exit tickets"]})

    response = client.post(
        "/api/ai/generate-feedback",
        json={"subject": "Mathematics", "engagementLevel": "5", "climate": "focused"},
        headers=auth_headers(people.teacher_account),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["strengths"] == "Unable to generate strengths analysis."
    assert body["areasForGrowth"] == "Wait time\n\nExit tickets"
    assert body["additionalComments"] == "Unable to generate additional insights."
    assert body["confidence"] == 0.7
    prompt = ai_provider.requests[0]["messages"][1]["content"]
    assert "- Subject: Mathematics" in prompt
    assert "- Classroom climate: focused" in prompt


# -- leadership ---------------------------------------------------------------


def test_analyze_patterns_without_data_skips_the_provider(client, people, auth_headers, ai_provider):
    response = client.get("/api/ai/analyze-patterns", headers=auth_headers(people.coach))

    assert response.status_code == 200
    assert response.json()["insights"] == "Insufficient data for pattern analysis"
    assert ai_provider.requests == []


def test_analyze_patterns_is_not_for_observers(client, people, auth_headers):
    assert client.get("/api/ai/analyze-patterns", headers=auth_headers(people.observer)).status_code == 403


def test_generate_report(client, people, factory, auth_headers, ai_provider):
    factory.walkthrough(people.observer, people.teacher, subject="Science", engagement_level="4",
                        strengths="Hands-on labs")
    factory.walkthrough(people.coach, people.teacher, subject="Science", engagement_level="2")
    ai_provider.reply(
        {
            "commonStrengths": [{"pattern": "Hands-on labs", "frequency": 1, "teachers": [people.teacher.id]}],
            "growthAreas": [],
            "trends": [{"trend": "Engagement dipping", "description": "", "recommendation": ""}],
            "insights": "Science labs are a bright spot.",
        }
    )
    ai_provider.reply("Leadership summary: labs are working; engagement needs attention.")

    response = client.post(
        "/api/ai/generate-report",
        json={"timeframe": "this quarter"},
        headers=auth_headers(people.leader),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["report"].startswith("Leadership summary")
    assert body["stats"]["totalWalkthroughs"] == 2
    assert body["stats"]["averageEngagement"] == 3.0
    assert body["stats"]["topSubjects"] == [{"subject": "Science", "count": 2}]
    assert body["patterns"]["insights"] == "Science labs are a bright spot."
    report_prompt = ai_provider.requests[1]["messages"][0]["content"]
    assert "Timeframe: this quarter" in report_prompt
    assert "Common strengths: Hands-on labs" in report_prompt
    assert "Key trends: Engagement dipping" in report_prompt


def test_generate_report_requires_leadership(client, people, auth_headers):
    response = client.post("/api/ai/generate-report", json={}, headers=auth_headers(people.coach))
    assert response.status_code == 403


def test_report_provider_outage_is_bad_gateway(client, people, factory, auth_headers, ai_provider):
    factory.walkthrough(people.observer, people.teacher)
    ai_provider.reply(500)

    response = client.post("/api/ai/generate-report", json={}, headers=auth_headers(people.leader))

    assert response.status_code == 502
    assert response.json()["details"] == {"service": "ai"}


@pytest.mark.asyncio
async def test_extraction_truncates_long_documents(ai_client, ai_provider):
    ai_provider.reply({})
    service = AIAssistService(ai_client)

    fields = await service.extract_lesson_plan_fields("a" * 60_000)

    assert fields == {}
    assert "[Content truncated for processing]" in ai_provider.requests[0]["messages"][0]["content"]
