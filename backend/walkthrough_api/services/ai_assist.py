"""
AI assist: feedback drafting, standards suggestion, lesson-plan field
extraction and leadership pattern analysis.

AIClient talks to an OpenAI-compatible chat-completions endpoint over httpx.
Every provider failure (network, HTTP status, malformed JSON, missing key)
surfaces as UpstreamFailure("ai", ...); there is no retry policy.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import UpstreamFailure
from walkthrough_api.standards import standards_for_subject

logger = logging.getLogger(__name__)

MAX_EXTRACTION_CHARS = 50_000

FEEDBACK_SYSTEM_PROMPT = (
    "You are an experienced instructional coach who writes feedback on classroom "
    "walkthroughs. Be specific, supportive and evidence-based, and suggest concrete "
    "next steps the teacher can act on."
)


class AIClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIClient":
        return cls(
            settings.ai_api_key,
            model=settings.ai_model,
            base_url=settings.ai_base_url,
            timeout=settings.ai_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        if not self.api_key:
            raise UpstreamFailure("ai", "AI provider is not configured")
        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            r = await self._client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
            r.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamFailure("ai", f"provider returned {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise UpstreamFailure("ai", f"request failed: {exc}") from exc
        try:
            content = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamFailure("ai", "unexpected response shape") from exc
        if not content:
            raise UpstreamFailure("ai", "empty response")
        return content

    async def chat_json(self, messages: List[Dict[str, str]], **kwargs: Any) -> Dict[str, Any]:
        content = await self.chat(messages, json_mode=True, **kwargs)
        try:
            data = json.loads(content)
        except ValueError as exc:
            raise UpstreamFailure("ai", "response was not valid JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamFailure("ai", "response JSON was not an object")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


def _as_text(value: Any) -> str:
    """Models sometimes return lists where a paragraph string was asked for."""
    if isinstance(value, list):
        return "\n\n".join(str(v) for v in value if v)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _clamp(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(0.0, min(1.0, number))


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _labels(items: Any, key: str) -> str:
    if not isinstance(items, list):
        return ""
    return ", ".join(str(i.get(key, "")) if isinstance(i, dict) else str(i) for i in items)


def _humanize(key: str) -> str:
    out = "".join(f" {c}" if c.isupper() else c for c in key).replace("_", " ").strip()
    return out[:1].upper() + out[1:]


@dataclass
class StandardsSuggestion:
    standards: List[str]
    confidence: float
    reasoning: str


class AIAssistService:
    def __init__(self, client: AIClient):
        self.client = client

    # -- feedback ------------------------------------------------------------

    def _feedback_prompt(self, observation: Dict[str, Any]) -> str:
        lines = [
            'Analyze this classroom walkthrough and return JSON with three string fields: '
            '"strengths", "areasForGrowth" and "additionalComments", plus a numeric "confidence" between 0 and 1.',
            "",
            "Walkthrough details:",
            f"- Subject: {observation.get('subject') or 'Not specified'}",
            f"- Grade level: {observation.get('gradeLevel') or 'Not specified'}",
            f"- Teacher: {observation.get('teacherName') or 'Not specified'}",
            f"- Lesson objective: {observation.get('lessonObjective') or 'Not provided'}",
            "",
            "Observations:",
        ]
        evidence = observation.get("evidenceOfLearning")
        if evidence:
            lines.append(f"- Evidence of learning: {json.dumps(evidence) if not isinstance(evidence, str) else evidence}")
        routines = observation.get("behaviorRoutines") or {}
        if isinstance(routines, dict) and routines.get("routines"):
            lines.append(f"- Behavior routines: {', '.join(routines['routines'])}")
            if routines.get("notes"):
                lines.append(f"  Notes: {routines['notes']}")
        if observation.get("climate"):
            lines.append(f"- Classroom climate: {observation['climate']}")
        if observation.get("engagementLevel"):
            lines.append(f"- Student engagement: {observation['engagementLevel']}/5")
        if observation.get("transitions"):
            comment = observation.get("transitionComments")
            lines.append(f"- Transitions: {observation['transitions']}" + (f" ({comment})" if comment else ""))
        ratings = observation.get("effectivenessRatings") or {}
        if isinstance(ratings, dict) and any(ratings.values()):
            lines.append("Teaching effectiveness ratings:")
            lines.extend(f"- {_humanize(k)}: {v}" for k, v in ratings.items() if v)
        lines += [
            "",
            "Strengths: two or three concrete practices observed, tied to the data above.",
            "Areas for growth: two or three actionable suggestions grounded in the ratings.",
            "Additional comments: a short synthesis with next steps for professional growth.",
            "Each of the three text fields must be a single string, not an array.",
        ]
        return "\n".join(lines)

    async def generate_feedback(self, observation: Dict[str, Any]) -> Dict[str, Any]:
        """Draft reviewer feedback from observation data (camelCase keys)."""
        result = await self.client.chat_json(
            [
                {"role": "system", "content": FEEDBACK_SYSTEM_PROMPT},
                {"role": "user", "content": self._feedback_prompt(observation)},
            ],
            temperature=0.7,
            max_tokens=1500,
        )
        return {
            "strengths": _as_text(result.get("strengths")) or "Unable to generate strengths analysis.",
            "areasForGrowth": _as_text(result.get("areasForGrowth")) or "Unable to generate growth recommendations.",
            "additionalComments": _as_text(result.get("additionalComments")) or "Unable to generate additional insights.",
            "confidence": _clamp(result.get("confidence"), 0.7),
        }

    # -- standards -----------------------------------------------------------

    async def suggest_standards(
        self,
        objective: str,
        subject: str,
        grade_level: Optional[str] = None,
    ) -> StandardsSuggestion:
        """Suggest catalog standards for a lesson; anything outside the catalog is dropped."""
        catalog = standards_for_subject(subject)
        numbered = "\n".join(f"{i}. {s}" for i, s in enumerate(catalog, start=1))
        prompt = (
            "You are a curriculum standards specialist. Pick the 3-5 standards from the list "
            "below that the lesson most directly addresses.\n\n"
            f'Lesson objective: "{objective}"\n'
            f'Subject: "{subject}"\n'
            f"Grade level: {grade_level or 'Not specified'}\n\n"
            f"Available standards:\n{numbered}\n\n"
            'Return JSON: {"suggestedStandards": [exact strings from the list], '
            '"confidence": 0.0-1.0, "reasoning": "why these fit"}'
        )
        result = await self.client.chat_json([{"role": "user", "content": prompt}])
        suggested = result.get("suggestedStandards") or []
        allowed = set(catalog)
        valid = [s for s in suggested if isinstance(s, str) and s in allowed]
        if len(valid) != len(suggested):
            logger.info("Dropped %d suggested standards not in the %s catalog", len(suggested) - len(valid), subject)
        return StandardsSuggestion(
            standards=list(dict.fromkeys(valid)),
            confidence=_clamp(result.get("confidence"), 0.5),
            reasoning=_as_text(result.get("reasoning")) or "Alignment of the lesson objective with the catalog",
        )

    # -- lesson plan extraction ---------------------------------------------

    async def extract_lesson_plan_fields(self, document_text: str) -> Dict[str, Any]:
        """
        Ask the model for lesson-plan fields found in document_text.

        Returns a partial record keyed by LessonPlan column names; keys the
        model left empty are omitted.
        """
        text = document_text
        if len(text) > MAX_EXTRACTION_CHARS:
            text = text[:MAX_EXTRACTION_CHARS] + "\n[Content truncated for processing]"
        prompt = (
            "Extract lesson plan information from the document below and return a JSON object "
            "with these keys (omit or leave empty what the document does not say): "
            "title, subject, gradeLevel, duration (minutes, number), objectives, activities, "
            "materials, lessonTopics, standardsCovered (array of strings), studentCount (number), "
            "assessment, differentiation.\n\n"
            f"Document:\n{text}"
        )
        result = await self.client.chat_json(
            [{"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=2000,
        )
        mapping = {
            "title": "title",
            "subject": "subject",
            "gradeLevel": "grade_level",
            "objectives": "objective",
            "activities": "activities",
            "materials": "materials",
            "lessonTopics": "topics",
            "assessment": "assessment",
            "differentiation": "differentiation",
        }
        fields: Dict[str, Any] = {}
        for key, column in mapping.items():
            value = _as_text(result.get(key)).strip()
            if value:
                fields[column] = value
        duration = _as_int(result.get("duration"))
        if duration:
            fields["duration"] = duration
        count = _as_int(result.get("studentCount"))
        if count:
            fields["estimated_student_count"] = count
        standards = result.get("standardsCovered")
        if isinstance(standards, list) and standards:
            fields["standards_covered"] = [str(s) for s in standards if s]
        return fields

    # -- leadership ----------------------------------------------------------

    async def analyze_patterns(self, walkthroughs: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Cross-walkthrough strengths, growth areas and trends."""
        if not walkthroughs:
            return {
                "commonStrengths": [],
                "growthAreas": [],
                "trends": [],
                "insights": "Insufficient data for pattern analysis",
            }
        rows = "\n".join(
            f"- Teacher: {w.get('teacherId')} | Subject: {w.get('subject')} | "
            f"Engagement: {w.get('engagementLevel') or '3'}/5 | Date: {w.get('dateTime')} | "
            f"Strengths: {w.get('strengths') or ''} | Growth areas: {w.get('areasForGrowth') or ''}"
            for w in walkthroughs
        )
        prompt = (
            "You analyze classroom observation data for school leadership. Identify recurring "
            "strengths, common growth areas and trends over time or by subject.\n\n"
            f"Walkthroughs:\n{rows}\n\n"
            'Return JSON: {"commonStrengths": [{"pattern": str, "frequency": int, "teachers": [ids]}], '
            '"growthAreas": [{"pattern": str, "frequency": int, "teachers": [ids]}], '
            '"trends": [{"trend": str, "description": str, "recommendation": str}], '
            '"insights": str}'
        )
        result = await self.client.chat_json([{"role": "user", "content": prompt}])
        return {
            "commonStrengths": result.get("commonStrengths") or [],
            "growthAreas": result.get("growthAreas") or [],
            "trends": result.get("trends") or [],
            "insights": _as_text(result.get("insights")) or "Pattern analysis completed",
        }

    async def generate_report(self, timeframe: str, stats: Dict[str, Any], patterns: Dict[str, Any]) -> str:
        top_subjects = ", ".join(f"{s['subject']} ({s['count']})" for s in stats.get("topSubjects", []))
        strengths = _labels(patterns.get("commonStrengths"), "pattern")
        growth = _labels(patterns.get("growthAreas"), "pattern")
        trends = _labels(patterns.get("trends"), "trend")
        prompt = (
            "Write a concise, professional summary report for school leadership based on "
            "classroom observation data. Summarize key metrics, highlight strengths, name "
            "areas for improvement and end with actionable recommendations. Keep a "
            "growth-oriented tone.\n\n"
            f"Timeframe: {timeframe}\n"
            f"Total walkthroughs: {stats.get('totalWalkthroughs', 0)}\n"
            f"Pending reviews: {stats.get('pendingReviews', 0)}\n"
            f"Average engagement: {stats.get('averageEngagement', 0)}/5\n"
            f"Teachers observed: {stats.get('teachersObserved', 0)}\n"
            f"Top subjects: {top_subjects or 'none'}\n"
            f"Common strengths: {strengths or 'none identified'}\n"
            f"Growth areas: {growth or 'none identified'}\n"
            f"Key trends: {trends or 'none identified'}"
        )
        return await self.client.chat([{"role": "user", "content": prompt}])
