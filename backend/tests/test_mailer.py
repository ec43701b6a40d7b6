import smtplib
import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from quiz_api.clients import mailer
from quiz_api.errors import NotificationError


class _DummySMTP:
    instances: list["_DummySMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in: tuple[str, str] | None = None
        self.sent = []
        _DummySMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, message):
        self.sent.append(message)


class _FailingSMTP(_DummySMTP):
    def send_message(self, message):
        raise smtplib.SMTPRecipientsRefused({"ada@x.com": (550, b"no such user")})


def test_build_message_uses_results_template():
    message = mailer.build_message(
        "quiz@example.com",
        "ada@x.com",
        "Ada",
        "Ada_Lovelace_1234.pdf",
        "https://cdn.example.com/Ada_Lovelace_1234.pdf",
        b"%PDF-1.4",
    )

    assert message["Subject"] == "Your Quiz Results"
    assert message["To"] == "ada@x.com"
    assert message["From"] == "quiz@example.com"

    html_part = message.get_body(preferencelist=("html",)).get_content()
    assert "Dear Ada," in html_part
    assert "Please find attached your quiz results." in html_part
    assert "This is an automated message, please do not reply." in html_part

    text_part = message.get_body(preferencelist=("plain",)).get_content()
    assert "https://cdn.example.com/Ada_Lovelace_1234.pdf" in text_part

    attachments = list(message.iter_attachments())
    assert [part.get_filename() for part in attachments] == ["Ada_Lovelace_1234.pdf"]
    assert attachments[0].get_content() == b"%PDF-1.4"


def test_build_message_without_bytes_has_no_attachment():
    message = mailer.build_message("quiz@example.com", "ada@x.com", "Ada", "a.pdf", "https://cdn.example.com/a.pdf")
    assert list(message.iter_attachments()) == []


def test_display_name_is_escaped_in_html():
    message = mailer.build_message("quiz@example.com", "ada@x.com", "<Ada>", "a.pdf", "https://cdn.example.com/a.pdf")
    html_part = message.get_body(preferencelist=("html",)).get_content()
    assert "Dear &lt;Ada&gt;," in html_part


def test_notify_sends_over_starttls(monkeypatch):
    _DummySMTP.instances.clear()
    monkeypatch.setattr(mailer.smtplib, "SMTP", _DummySMTP)
    notifier = mailer.SmtpNotifier("smtp.example.com", 587, "quiz@example.com", "secret")

    notifier.notify("ada@x.com", "Ada", "a.pdf", "https://cdn.example.com/a.pdf", document=b"%PDF")

    smtp = _DummySMTP.instances[-1]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 587)
    assert smtp.started_tls is True
    assert smtp.logged_in == ("quiz@example.com", "secret")
    assert smtp.sent[0]["To"] == "ada@x.com"


def test_notify_wraps_smtp_failures(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", _FailingSMTP)
    notifier = mailer.SmtpNotifier("smtp.example.com", 587)

    with pytest.raises(NotificationError):
        notifier.notify("ada@x.com", "Ada", "a.pdf", "https://cdn.example.com/a.pdf")


def test_notify_wraps_connection_errors(monkeypatch):
    def _refuse(*_args, **_kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(mailer.smtplib, "SMTP", _refuse)
    notifier = mailer.SmtpNotifier("smtp.example.com", 587)

    with pytest.raises(NotificationError):
        notifier.notify("ada@x.com", "Ada", "a.pdf", "https://cdn.example.com/a.pdf")
