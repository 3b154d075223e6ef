"""
Lesson-plan intake from uploaded documents (.txt, .pdf, .docx).

Text is pulled out of the file, then three passes run and are merged in
increasing precedence: loose heuristics, labelled-section patterns, AI.
If the AI call fails the pattern results are returned on their own.
"""
from __future__ import annotations

import io
import logging
import re
from typing import Any, Dict, Optional

from docx import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from walkthrough_api.core.errors import UpstreamFailure, ValidationError
from walkthrough_api.services.ai_assist import AIAssistService

logger = logging.getLogger(__name__)

MAX_PDF_PAGES = 20
MAX_TEXT_CHARS = 300_000

PDF_TYPES = {"application/pdf"}
DOCX_TYPES = {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
TEXT_TYPES = {"text/plain"}

# A section runs until the next "Label:" line or end of text
_SECTION_END = r"(?=\n\s*[A-Z][^:\n]*:|\Z)"

LESSON_PATTERNS: Dict[str, re.Pattern] = {
    "title": re.compile(r"(?:lesson\s+title|title)\s*:?\s*(.+?)(?:\n|$)", re.I),
    "subject": re.compile(r"(?:subject(?:\s+area)?|course)\s*:?\s*(.+?)(?:\n|$)", re.I),
    "grade_level": re.compile(r"(?:grade\s+level|target\s+grade|grade)\s*:?\s*(.+?)(?:\n|$)", re.I),
    "duration": re.compile(r"(?:duration|time|length)\s*:?\s*(.+?)(?:\n|$)", re.I),
    "objective": re.compile(r"(?:learning\s+objectives?|objectives?)\s*:?\s*(.*?)" + _SECTION_END, re.I | re.S),
    "activities": re.compile(r"(?:lesson\s+activities|activities|procedures?)\s*:?\s*(.*?)" + _SECTION_END, re.I | re.S),
    "materials": re.compile(
        r"(?:required\s+materials?|materials?|resources?|equipment)\s*:?\s*(.*?)" + _SECTION_END, re.I | re.S
    ),
    "topics": re.compile(
        r"(?:lesson\s+topics?|topics?|key\s+concepts?|content)\s*:?\s*(.*?)" + _SECTION_END, re.I | re.S
    ),
    "standards_covered": re.compile(
        r"(?:standards?\s+alignment|standards?|ap\s+computer\s+science|csta|common\s+core)\s*:?\s*(.*?)"
        + _SECTION_END,
        re.I | re.S,
    ),
    "estimated_student_count": re.compile(
        r"(?:estimated\s+student\s+count|student\s+count|class\s+size|enrollment)\s*:?\s*(.+?)(?:\n|$)", re.I
    ),
    "assessment": re.compile(
        r"(?:assessment\s+methods?|assessment|evaluation|how\s+will\s+you\s+assess)\s*:?\s*(.*?)" + _SECTION_END,
        re.I | re.S,
    ),
    "differentiation": re.compile(
        r"(?:differentiation\s+strategies|differentiation|accommodations?|how\s+will\s+you\s+accommodate)"
        r"\s*:?\s*(.*?)" + _SECTION_END,
        re.I | re.S,
    ),
}

_MINUTES = re.compile(r"(\d+)\s*minutes?", re.I)
_STUDENTS = re.compile(r"(\d+)\s*students?", re.I)
_STUDENTS_WILL = re.compile(r"Students will .+?(?:\.|$)", re.I | re.M)
_ACTIVITY_TITLE = re.compile(r"Activity\s+(\d+\.\d+\.\d+)\s+(.+?)(?:\n|$)", re.I)
_FIRST_NUMBER = re.compile(r"\d+")
_BULLET = re.compile(r"^[-*•]\s*")


def _squash(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def _first_int(value: str) -> Optional[int]:
    match = _FIRST_NUMBER.search(value)
    return int(match.group(0)) if match else None


def extract_text(content: bytes, filename: str, content_type: Optional[str]) -> str:
    """Plain text of an uploaded document; ValidationError when unsupported or unreadable."""
    name = (filename or "").lower()
    ctype = (content_type or "").split(";")[0].strip().lower()

    if ctype in PDF_TYPES or name.endswith(".pdf"):
        try:
            reader = PdfReader(io.BytesIO(content))
            pages = [page.extract_text() or "" for page in reader.pages[:MAX_PDF_PAGES]]
        except (PdfReadError, ValueError) as exc:
            raise ValidationError(
                "Failed to extract text from PDF file. The PDF may be image-based or encrypted.",
                field="file",
            ) from exc
        text = "\n".join(pages).strip()
        logger.info("PDF text extracted: %d pages, %d chars", min(len(reader.pages), MAX_PDF_PAGES), len(text))
    elif ctype in DOCX_TYPES or name.endswith(".docx"):
        try:
            document = Document(io.BytesIO(content))
        except Exception as exc:
            # python-docx raises zipfile/lxml/KeyError variants for corrupt files
            raise ValidationError("Failed to extract text from Word document", field="file") from exc
        text = "\n".join(p.text for p in document.paragraphs).strip()
        logger.info("Word document text extracted: %d chars", len(text))
    elif ctype in TEXT_TYPES or name.endswith(".txt"):
        text = content.decode("utf-8", errors="replace").strip()
    else:
        raise ValidationError("Unsupported file type; upload .txt, .pdf or .docx", field="file")

    if not text:
        raise ValidationError("Document appears to be empty or unreadable", field="file")
    if len(text) > MAX_TEXT_CHARS:
        text = text[:MAX_TEXT_CHARS] + "\n[Content truncated due to length]"
    return text


def extract_with_heuristics(text: str) -> Dict[str, Any]:
    """Loose, label-free guesses (e.g. '45 minutes', 'Students will ...')."""
    fields: Dict[str, Any] = {}
    activity = _ACTIVITY_TITLE.search(text)
    if activity:
        fields["title"] = f"Activity {activity.group(1)} {activity.group(2).strip()}"
    minutes = _MINUTES.search(text)
    if minutes:
        fields["duration"] = int(minutes.group(1))
    students = _STUDENTS.search(text)
    if students:
        fields["estimated_student_count"] = int(students.group(1))
    objectives = _STUDENTS_WILL.findall(text)
    if objectives:
        fields["objective"] = " ".join(o.strip() for o in objectives)
    return fields


def extract_with_patterns(text: str) -> Dict[str, Any]:
    """Labelled sections such as 'Objectives:' or 'Materials:'."""
    fields: Dict[str, Any] = {}
    for key, pattern in LESSON_PATTERNS.items():
        match = pattern.search(text)
        if not match:
            continue
        raw = match.group(1).strip()
        if not raw:
            continue
        if key in ("duration", "estimated_student_count"):
            number = _first_int(raw)
            if number is not None:
                fields[key] = number
        elif key == "standards_covered":
            standards = []
            for line in raw.splitlines():
                line = _BULLET.sub("", line.strip())
                # skip short fragments and all-lowercase prose lines
                if len(line) > 5 and not re.fullmatch(r"[a-z\s]*", line):
                    standards.append(line)
            if standards:
                fields[key] = standards
        elif key == "activities":
            fields[key] = re.sub(r"\s*(\d+\.)\s", r"\n\1 ", _squash(raw)).strip()
        elif key in ("title", "subject", "grade_level"):
            fields[key] = raw
        else:
            fields[key] = _squash(raw)
    return fields


class LessonPlanExtractor:
    def __init__(self, ai: AIAssistService, max_upload_bytes: int = 10 * 1024 * 1024):
        self.ai = ai
        self.max_upload_bytes = max_upload_bytes

    async def extract(self, content: bytes, filename: str, content_type: Optional[str]) -> Dict[str, Any]:
        if not content:
            raise ValidationError("No file uploaded", field="file")
        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"File too large; maximum is {self.max_upload_bytes // (1024 * 1024)}MB",
                field="file",
            )
        text = extract_text(content, filename, content_type)
        logger.info("Extracting lesson plan fields from %s (%s)", filename, content_type)
        merged = {**extract_with_heuristics(text), **extract_with_patterns(text)}
        try:
            ai_fields = await self.ai.extract_lesson_plan_fields(text)
        except UpstreamFailure as exc:
            logger.warning("AI extraction failed, using pattern results only: %s", exc.message)
            return merged
        merged.update(ai_fields)
        return merged
