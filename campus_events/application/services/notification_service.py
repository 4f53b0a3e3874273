"""Notification service — transactional emails for accounts and events.

Features:
- Verification link on sign-up and on resend
- New event alert to every admin
- New registration alert to the event organizer
- Event update digest to registrants and admins

Every send is best effort: failures are logged and never propagate to the
operation that triggered them.
"""

from html import escape
from typing import Sequence

import structlog
from fastapi import BackgroundTasks

from campus_events.domain.schemas.notification import EventNotice, Recipient
from campus_events.infrastructure.mailer import SMTPMailer

logger = structlog.get_logger(__name__)

BRAND = "Campus Events"
PRIMARY_COLOR = "#005596"
ACCENT_COLOR = "#FDC500"


def _layout(title: str, body: str, header_color: str = PRIMARY_COLOR, header_text: str = "white") -> str:
    return (
        "<!DOCTYPE html><html>"
        '<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">'
        f'<div style="background-color: {header_color}; color: {header_text}; padding: 20px; text-align: center;">'
        f"<h1>{escape(title)}</h1></div>"
        f'<div style="padding: 20px;">{body}</div>'
        '<div style="text-align: center; color: #666; font-size: 12px; margin-top: 30px;">'
        "<p>This is an automated email. Please do not reply.</p></div>"
        "</body></html>"
    )


def _event_box(event: EventNotice) -> str:
    return (
        f'<div style="background-color: #f8f9fa; padding: 15px; border-left: 4px solid {PRIMARY_COLOR}; margin: 20px 0;">'
        f"<h3>{escape(event.title)}</h3>"
        f"<p><strong>Date:</strong> {event.date.strftime('%d/%m/%Y %H:%M')}</p>"
        f"<p><strong>Location:</strong> {escape(event.location)}</p>"
        f"<p><strong>Capacity:</strong> {event.max_spots} spots</p>"
        "</div>"
    )


def _event_lines(event: EventNotice) -> list[str]:
    return [
        event.title,
        f"Date: {event.date.strftime('%d/%m/%Y %H:%M')}",
        f"Location: {event.location}",
        f"Capacity: {event.max_spots} spots",
    ]


def _plain(*paragraphs: str) -> str:
    return "\n\n".join(paragraphs) + "\n\n-- \nThis is an automated email. Please do not reply.\n"


def verification_url(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/verify-email/{token}"


def format_verification_email(recipient: Recipient, url: str, ttl_hours: int = 24) -> tuple[str, str, str]:
    """Returns (subject, html, text)."""
    body = (
        f"<p>Hello <strong>{escape(recipient.name)}</strong>,</p>"
        f"<p>Thank you for registering with {BRAND}, the university event platform.</p>"
        "<p>To complete your registration and start discovering campus events, "
        "please verify your email address:</p>"
        '<div style="text-align: center;">'
        f'<a href="{escape(url)}" style="background-color: {PRIMARY_COLOR}; color: #ffffff; padding: 14px 28px; '
        'text-decoration: none; border-radius: 8px; font-weight: bold; display: inline-block;">Verify Email Address</a>'
        "</div>"
        "<p>Or copy and paste this link into your browser:</p>"
        f'<p style="word-break: break-all;">{escape(url)}</p>'
        '<div style="background: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin: 20px 0;">'
        f"<strong>Important:</strong> This verification link will expire in {ttl_hours} hours.</div>"
        f"<p>If you didn't create an account with {BRAND}, please ignore this email.</p>"
    )
    text = _plain(
        f"Hello {recipient.name},",
        f"Thank you for registering with {BRAND}. Open this link to verify your email address:",
        url,
        f"This verification link will expire in {ttl_hours} hours.",
        f"If you didn't create an account with {BRAND}, please ignore this email.",
    )
    return f"Verify Your Email - {BRAND}", _layout(f"Welcome to {BRAND}!", body), text


def format_new_event_email(event: EventNotice, creator: Recipient) -> tuple[str, str, str]:
    body = (
        "<p>Hello Admin,</p>"
        f"<p>A new event has been created by <strong>{escape(creator.name)}</strong> ({escape(creator.email)}).</p>"
        f"{_event_box(event)}"
        "<p>Please review it in the admin dashboard.</p>"
    )
    text = _plain(
        "Hello Admin,",
        f"A new event has been created by {creator.name} ({creator.email}).",
        "\n".join(_event_lines(event)),
        "Please review it in the admin dashboard.",
    )
    return f"New Event: {event.title}", _layout("New Event Created", body), text


def format_new_registration_email(event: EventNotice, attendee: Recipient) -> tuple[str, str, str]:
    body = (
        "<p>Great news! A new user has registered for your event.</p>"
        f"<p><strong>Event:</strong> {escape(event.title)}</p>"
        f"<p><strong>Attendee:</strong> {escape(attendee.name)} ({escape(attendee.email)})</p>"
    )
    text = _plain(
        "Great news! A new user has registered for your event.",
        f"Event: {event.title}\nAttendee: {attendee.name} ({attendee.email})",
    )
    return (
        f"New Registration for {event.title}",
        _layout("New Registration!", body, ACCENT_COLOR, "#333"),
        text,
    )


def format_event_update_email(event: EventNotice, changes: Sequence[str]) -> tuple[str, str, str]:
    changes_html = "".join(f"<li>{escape(change)}</li>" for change in changes)
    body = (
        "<p>Hello,</p>"
        f"<p>The event <strong>{escape(event.title)}</strong> has been updated.</p>"
        f'<div style="background-color: #fff3cd; padding: 15px; border-left: 4px solid {ACCENT_COLOR}; margin: 20px 0;">'
        f"<h3>What Changed?</h3><ul>{changes_html}</ul></div>"
        f"{_event_box(event)}"
    )
    text = _plain(
        "Hello,",
        f"The event {event.title} has been updated.",
        "What changed:\n" + "\n".join(f"- {change}" for change in changes),
        "\n".join(_event_lines(event)),
    )
    return f"Update: {event.title}", _layout("Event Update", body), text


class Notifier:
    """Formats and sends notifications. Methods never raise."""

    def __init__(self, mailer: SMTPMailer, frontend_url: str, verification_ttl_hours: int = 24):
        self.mailer = mailer
        self.frontend_url = frontend_url
        self.verification_ttl_hours = verification_ttl_hours

    def _deliver(
        self,
        kind: str,
        subject: str,
        html: str,
        text: str,
        to: Sequence[str] = (),
        bcc: Sequence[str] = (),
    ) -> bool:
        try:
            self.mailer.send(subject, html, to=to, bcc=bcc, text=text)
            return True
        except Exception:
            logger.exception("Notification failed", kind=kind, recipients=len(to) + len(bcc))
            return False

    def send_verification(self, recipient: Recipient, token: str) -> bool:
        url = verification_url(self.frontend_url, token)
        subject, html, text = format_verification_email(recipient, url, self.verification_ttl_hours)
        return self._deliver("verification", subject, html, text, to=[recipient.email])

    def event_created(self, event: EventNotice, creator: Recipient, admin_emails: Sequence[str]) -> bool:
        if not admin_emails:
            return False
        subject, html, text = format_new_event_email(event, creator)
        return self._deliver("event_created", subject, html, text, bcc=admin_emails)

    def registration_created(self, event: EventNotice, attendee: Recipient, organizer_email: str) -> bool:
        subject, html, text = format_new_registration_email(event, attendee)
        return self._deliver("registration_created", subject, html, text, to=[organizer_email])

    def event_updated(
        self,
        event: EventNotice,
        changes: Sequence[str],
        participant_emails: Sequence[str],
        admin_emails: Sequence[str],
    ) -> bool:
        if not changes or not (participant_emails or admin_emails):
            return False
        subject, html, text = format_event_update_email(event, changes)
        delivered = True
        if participant_emails:
            delivered &= self._deliver("event_updated", subject, html, text, bcc=participant_emails)
        if admin_emails:
            delivered &= self._deliver("event_updated_admin", f"[Admin] Event {subject}", html, text, bcc=admin_emails)
        return delivered


class BackgroundNotifier:
    """Schedules Notifier calls to run after the response is sent."""

    def __init__(self, notifier: Notifier, background_tasks: BackgroundTasks):
        self.notifier = notifier
        self.background_tasks = background_tasks

    def send_verification(self, recipient: Recipient, token: str) -> None:
        self.background_tasks.add_task(self.notifier.send_verification, recipient, token)

    def event_created(self, event: EventNotice, creator: Recipient, admin_emails: Sequence[str]) -> None:
        self.background_tasks.add_task(self.notifier.event_created, event, creator, list(admin_emails))

    def registration_created(self, event: EventNotice, attendee: Recipient, organizer_email: str) -> None:
        self.background_tasks.add_task(self.notifier.registration_created, event, attendee, organizer_email)

    def event_updated(
        self,
        event: EventNotice,
        changes: Sequence[str],
        participant_emails: Sequence[str],
        admin_emails: Sequence[str],
    ) -> None:
        self.background_tasks.add_task(
            self.notifier.event_updated, event, list(changes), list(participant_emails), list(admin_emails)
        )
