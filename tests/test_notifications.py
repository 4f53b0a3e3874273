import smtplib
from datetime import datetime, timezone

import pytest

from campus_events.application.services.notification_service import (
    Notifier,
    format_event_update_email,
    verification_url,
)
from campus_events.domain.schemas.notification import EventNotice, Recipient
from campus_events.infrastructure.mailer import MailDeliveryError, SMTPMailer


@pytest.fixture
def smtp(mocker):
    smtp_cls = mocker.patch("campus_events.infrastructure.mailer.smtplib.SMTP")
    conn = smtp_cls.return_value.__enter__.return_value
    return smtp_cls, conn


@pytest.fixture
def mailer(mocker):
    mocker.patch("campus_events.infrastructure.mailer.time.sleep")
    return SMTPMailer(host="smtp.campus.edu", port=2525, username="user", password="pass", retry_delay=0)


@pytest.fixture
def notice():
    return EventNotice(
        id=1,
        title="Robotics <Workshop>",
        date=datetime(2026, 5, 4, 14, 0, tzinfo=timezone.utc),
        location="Lab 3",
        max_spots=12,
    )


def test_send_uses_envelope_for_bcc(mailer, smtp):
    _, conn = smtp

    mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"], bcc=["b@campus.edu"])

    conn.starttls.assert_called_once()
    conn.login.assert_called_once_with("user", "pass")
    message = conn.send_message.call_args.args[0]
    assert conn.send_message.call_args.kwargs["to_addrs"] == ["a@campus.edu", "b@campus.edu"]
    assert message["To"] == "a@campus.edu"
    assert message["Bcc"] is None


def test_send_retries_transient_failures(mailer, smtp):
    _, conn = smtp
    conn.send_message.side_effect = [smtplib.SMTPServerDisconnected("bye"), {}]

    assert mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"])
    assert conn.send_message.call_count == 2


def test_send_gives_up_after_max_retries(mailer, smtp):
    _, conn = smtp
    conn.send_message.side_effect = smtplib.SMTPServerDisconnected("bye")

    with pytest.raises(MailDeliveryError):
        mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"])
    assert conn.send_message.call_count == 3


def test_refused_recipients_are_not_retried(mailer, smtp):
    _, conn = smtp
    conn.send_message.side_effect = smtplib.SMTPRecipientsRefused({"a@campus.edu": (550, b"no")})

    with pytest.raises(MailDeliveryError):
        mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"])
    assert conn.send_message.call_count == 1


def test_disabled_mailer_does_not_connect(smtp):
    smtp_cls, _ = smtp
    mailer = SMTPMailer(host="smtp.campus.edu", port=2525, enabled=False)

    assert mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"])
    smtp_cls.assert_not_called()


def test_no_recipients_is_a_noop(mailer, smtp):
    smtp_cls, _ = smtp

    assert mailer.send("Hello", "<p>hi</p>") is None
    smtp_cls.assert_not_called()


def test_notifier_swallows_delivery_errors(mocker, notice):
    mailer = mocker.Mock()
    mailer.send.side_effect = MailDeliveryError("down")
    notifier = Notifier(mailer, "http://frontend.campus.edu")

    assert notifier.registration_created(notice, Recipient(name="Ada", email="ada@campus.edu"), "org@campus.edu") is False


def test_event_created_without_admins_sends_nothing(mocker, notice):
    mailer = mocker.Mock()
    notifier = Notifier(mailer, "http://frontend.campus.edu")

    notifier.event_created(notice, Recipient(name="Ada", email="ada@campus.edu"), [])

    mailer.send.assert_not_called()


def test_update_email_escapes_content(notice):
    subject, html, _ = format_event_update_email(notice, ["Title changed"])

    assert subject == "Update: Robotics <Workshop>"
    assert "Robotics &lt;Workshop&gt;" in html
    assert "<Workshop>" not in html


def test_verification_url_strips_trailing_slash():
    assert verification_url("http://frontend.campus.edu/", "abc") == "http://frontend.campus.edu/verify-email/abc"


def test_update_email_has_plain_text_alternative(notice):
    _, _, text = format_event_update_email(notice, ["Title changed", "Location changed"])

    assert "- Title changed\n- Location changed" in text
    assert "Robotics <Workshop>" in text
    assert "Location: Lab 3" in text
    assert "<p>" not in text


def test_notifier_passes_plain_text_to_mailer(mocker, notice):
    mailer = mocker.Mock()
    notifier = Notifier(mailer, "http://frontend.campus.edu")

    notifier.send_verification(Recipient(name="Ada", email="ada@campus.edu"), "abc")

    text = mailer.send.call_args.kwargs["text"]
    assert "http://frontend.campus.edu/verify-email/abc" in text
    assert "Hello Ada," in text


def test_message_carries_text_and_html_parts(mailer, smtp):
    _, conn = smtp

    mailer.send("Hello", "<p>hi</p>", to=["a@campus.edu"], text="hi there")

    message = conn.send_message.call_args.args[0]
    assert message.get_body(("plain",)).get_content().strip() == "hi there"
    assert message.get_body(("html",)).get_content().strip() == "<p>hi</p>"
