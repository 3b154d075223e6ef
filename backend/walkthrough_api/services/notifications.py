"""
Outbound email for the review workflow and lesson-plan intake.

Delivery goes through an EmailSender. SendGridEmailSender is used when a
SendGrid key is configured; otherwise DisabledEmailSender logs and reports
"not sent". A failed delivery raises UpstreamFailure; workflow callers use
try_notify() so a committed state change never fails because of email.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Email, Mail, To

from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import UpstreamFailure
from walkthrough_api.models import LessonPlan, Teacher, User, Walkthrough

logger = logging.getLogger(__name__)

_FOOTER_TEXT = (
    "This is an automated notification from the Classroom Walkthrough Tool. "
    "Please do not reply to this email."
)


@dataclass
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str


class EmailSender(Protocol):
    enabled: bool

    def send(self, message: EmailMessage) -> None:
        """Deliver message or raise UpstreamFailure."""
        ...


class SendGridEmailSender:
    enabled = True

    def __init__(self, api_key: str, from_email: str):
        self.api_key = api_key
        self.from_email = from_email
        self._client = SendGridAPIClient(api_key)

    def send(self, message: EmailMessage) -> None:
        mail = Mail(
            from_email=Email(self.from_email),
            to_emails=To(message.to),
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html,
        )
        try:
            response = self._client.send(mail)
        except Exception as exc:
            raise UpstreamFailure("email", str(exc)) from exc
        if response.status_code not in (200, 201, 202):
            raise UpstreamFailure("email", f"SendGrid returned status {response.status_code}")
        logger.info("Email sent to %s: %s", message.to, message.subject)


class DisabledEmailSender:
    enabled = False

    def send(self, message: EmailMessage) -> None:
        logger.info("Email disabled (no SENDGRID_API_KEY); not sending '%s'", message.subject)


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.sendgrid_api_key:
        return SendGridEmailSender(settings.sendgrid_api_key, settings.from_email)
    logger.warning("SENDGRID_API_KEY not set. Email notifications will be disabled.")
    return DisabledEmailSender()


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "Not specified"


def _datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "Not specified"


def _render(title: str, greeting: str, intro: str, details: list[tuple[str, str]],
            closing: str, link: Optional[tuple[str, str]] = None, color: str = "#2563eb") -> tuple[str, str]:
    """Return (text, html) bodies sharing one layout."""
    text_lines = [title, "", greeting, "", intro, "", "Details:"]
    text_lines += [f"- {label}: {value}" for label, value in details]
    text_lines += ["", closing]
    if link:
        text_lines.append(f"{link[0]}: {link[1]}")
    text_lines += ["", _FOOTER_TEXT]

    items = "".join(
        f"<li><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</li>"
        for label, value in details
    )
    button = ""
    if link:
        button = (
            f'<p style="text-align:center;margin:30px 0;"><a href="{html.escape(link[1])}" '
            f'style="background-color:{color};color:white;padding:12px 24px;'
            f'text-decoration:none;border-radius:6px;">{html.escape(link[0])}</a></p>'
        )
    body = (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">'
        f'<h2 style="color:{color};">{html.escape(title)}</h2>'
        f"<p>{html.escape(greeting)}</p>"
        f"<p>{html.escape(intro)}</p>"
        f'<ul style="list-style:none;padding:0;">{items}</ul>'
        f"<p>{html.escape(closing)}</p>"
        f"{button}"
        f'<p style="font-size:12px;color:#9ca3af;">{html.escape(_FOOTER_TEXT)}</p>'
        "</div>"
    )
    return "\n".join(text_lines), body


class Notifier:
    """Builds the workflow emails and hands them to the sender."""

    def __init__(self, sender: EmailSender, base_url: str = "http://localhost:5000"):
        self.sender = sender
        self.base_url = base_url.rstrip("/")

    def report_url(self, walkthrough_id: str) -> str:
        return f"{self.base_url}/walkthrough/{walkthrough_id}/report"

    def _deliver(self, to: Optional[str], subject: str, text: str, body: str) -> bool:
        if not self.sender.enabled:
            logger.info("Email service disabled; skipping '%s'", subject)
            return False
        if not to:
            logger.info("Recipient has no email address; skipping '%s'", subject)
            return False
        self.sender.send(EmailMessage(to=to, subject=subject, text=text, html=body))
        return True

    def _walkthrough_details(self, walkthrough: Walkthrough, teacher: Teacher, observer: User) -> list[tuple[str, str]]:
        details = [
            ("Teacher", teacher.full_name),
            ("Subject", walkthrough.subject),
            ("Grade Level", walkthrough.grade_level or "Not specified"),
            ("Date", _date(walkthrough.date_time)),
            ("Observer", observer.full_name),
        ]
        if walkthrough.priority:
            details.append(("Priority", walkthrough.priority.upper()))
        return details

    def review_assigned(self, walkthrough: Walkthrough, teacher: Teacher, reviewer: User, observer: User) -> bool:
        subject = f"Review Assignment: Classroom Walkthrough for {teacher.full_name}"
        text, body = _render(
            "Classroom Walkthrough Review Assignment",
            f"Hello {reviewer.first_name},",
            "You have been assigned to review a classroom walkthrough observation.",
            self._walkthrough_details(walkthrough, teacher, observer),
            "Please review the walkthrough report and provide your feedback from the Review Dashboard.",
            ("View Walkthrough Report", self.report_url(walkthrough.id)),
        )
        return self._deliver(reviewer.email, subject, text, body)

    def review_completed(self, walkthrough: Walkthrough, teacher: Teacher, reviewer: User, observer: User) -> bool:
        subject = f"Review Completed: Classroom Walkthrough for {teacher.full_name}"
        details = self._walkthrough_details(walkthrough, teacher, observer)
        details.append(("Reviewer", reviewer.full_name))
        details.append(("Completed", _datetime(walkthrough.review_completed_at)))
        if walkthrough.reviewer_feedback:
            details.append(("Reviewer Feedback", walkthrough.reviewer_feedback))
        if walkthrough.reviewer_comments:
            details.append(("Additional Comments", walkthrough.reviewer_comments))
        text, body = _render(
            "Walkthrough Review Completed",
            f"Hello {observer.first_name},",
            f"{reviewer.full_name} has completed the review of your classroom walkthrough.",
            details,
            "The full report with reviewer feedback is available below.",
            ("View Completed Review", self.report_url(walkthrough.id)),
            color="#16a34a",
        )
        return self._deliver(observer.email, subject, text, body)

    def teacher_follow_up(self, walkthrough: Walkthrough, teacher: Teacher, observer: User) -> bool:
        details = self._walkthrough_details(walkthrough, teacher, observer)
        if walkthrough.follow_up_date:
            details.append(("Follow-up Date", _date(walkthrough.follow_up_date)))
        text, body = _render(
            "Follow-up Required: Your Recent Classroom Observation",
            f"Hello {teacher.first_name},",
            "Your recent classroom observation has been completed and a follow-up conversation has been requested.",
            details,
            "Your observer will reach out to schedule a time to discuss the observation.",
            ("View Observation Report", self.report_url(walkthrough.id)),
            color="#ea580c",
        )
        return self._deliver(teacher.email, "Follow-up Required: Your Recent Classroom Observation", text, body)

    def lesson_plan_submitted(self, plan: LessonPlan, teacher: Teacher, coach: User,
                              is_late: bool, week_number: int) -> bool:
        late = "Late " if is_late else ""
        subject = f"Lesson Plan {late}Submission - Week {week_number}: {teacher.full_name}"
        details = [
            ("Teacher", teacher.full_name),
            ("Title", plan.title),
            ("Subject", plan.subject),
            ("Grade Level", plan.grade_level or "Not specified"),
            ("Week", str(week_number)),
            ("Submitted", _datetime(plan.submitted_at)),
        ]
        if plan.date_scheduled:
            details.append(("Scheduled Date", _date(plan.date_scheduled)))
        suffix = " (LATE SUBMISSION)" if is_late else ""
        text, body = _render(
            f"Lesson Plan {late}Submission Notification",
            f"Hello {coach.first_name},",
            f"{teacher.full_name} has submitted their lesson plan for Week {week_number}{suffix}.",
            details,
            "This lesson plan was submitted after the Friday deadline." if is_late
            else "This lesson plan was submitted on time.",
            color="#dc2626" if is_late else "#2563eb",
        )
        return self._deliver(coach.email, subject, text, body)

    def lesson_plan_review_requested(self, plan: LessonPlan, teacher_name: str, reviewer: User) -> bool:
        subject = f"Lesson Plan Review Request: {plan.title}"
        text, body = _render(
            "Lesson Plan Ready for Review",
            f"Hello {reviewer.full_name},",
            f"A new lesson plan from {teacher_name} is ready for your review.",
            [
                ("Title", plan.title),
                ("Subject", plan.subject),
                ("Grade Level", plan.grade_level or "Not specified"),
                ("Scheduled", _date(plan.date_scheduled) if plan.date_scheduled else "Not scheduled"),
            ],
            "Please review the lesson plan and share feedback with the teacher.",
            ("Review Lesson Plan", f"{self.base_url}/lesson-plan/{plan.id}"),
        )
        return self._deliver(reviewer.email, subject, text, body)


def try_notify(description: str, send: Callable[..., bool], *args, **kwargs) -> tuple[bool, Optional[str]]:
    """
    Attempt a notification after the state change is committed.

    Returns (sent, warning). UpstreamFailure is logged and turned into a
    warning string; it never propagates.
    """
    try:
        return send(*args, **kwargs), None
    except UpstreamFailure as exc:
        logger.error("Failed to send %s: %s", description, exc.message)
        return False, f"{description} could not be sent: {exc.message}"
