"""
Tests for outbound email
"""

import smtplib
import pytest
from datetime import date, time

from snytra.core.config import Settings
from snytra.services import email as email_service
from snytra.services.email import format_time_12h, send_email, send_reservation_confirmation, send_table_ready


class FakeSMTP:
    instances = []
    fail_on_send = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, msg):
        if FakeSMTP.fail_on_send:
            raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})
        self.sent.append(msg)


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_on_send = False
    monkeypatch.setattr(email_service, "get_settings", lambda: Settings(
        SMTP_HOST="smtp.example.com", SMTP_USERNAME="mailer", SMTP_PASSWORD="pw", RESTAURANT_NAME="Chez Test",
    ))
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.mark.parametrize("value,expected", [
    (time(0, 5), "12:05 AM"),
    (time(9, 30), "9:30 AM"),
    (time(12, 0), "12:00 PM"),
    (time(18, 45), "6:45 PM"),
])
def test_format_time_12h(value, expected):
    assert format_time_12h(value) == expected


def test_send_email_skipped_without_host():
    # Tests run with SMTP_HOST unset
    assert send_email("bob@example.com", "Hi", "Hello") is False


def test_send_email(smtp):
    assert send_email("bob@example.com", "Hi", "Hello", html="<p>Hello</p>") is True

    server = smtp.instances[0]
    assert (server.host, server.port) == ("smtp.example.com", 587)
    assert server.logged_in == ("mailer", "pw")
    assert server.sent[0]["To"] == "bob@example.com"
    assert server.sent[0]["Subject"] == "Hi"


def test_send_email_failure_is_reported(smtp):
    smtp.fail_on_send = True

    assert send_email("bob@example.com", "Hi", "Hello") is False


def test_connection_failure_is_reported(monkeypatch, smtp):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(email_service.smtplib, "SMTP", refuse)

    assert send_email("bob@example.com", "Hi", "Hello") is False


def test_reservation_confirmation(smtp):
    sent = send_reservation_confirmation(
        reservation_id=12,
        customer_email="bob@example.com",
        customer_name="Bob",
        reservation_date=date(2030, 1, 2),
        reservation_time=time(19, 0),
        party_size=4,
        table_number="T4",
        qr_code_url="https://example.com/qr/t4",
    )

    assert sent is True
    message = smtp.instances[0].sent[0]
    assert message["Subject"] == "Reservation Confirmed - Chez Test"
    body = message.get_payload()[0].get_payload(decode=True).decode()
    assert "Reservation ID: 12" in body
    assert "Wednesday, January 02, 2030 at 7:00 PM" in body
    assert "Table: T4" in body
    assert "https://example.com/qr/t4" in body


def test_table_ready(smtp):
    assert send_table_ready("alice@example.com", "Alice", 3) is True

    body = smtp.instances[0].sent[0].get_payload()[0].get_payload(decode=True).decode()
    assert "number 3 on the waitlist" in body


def test_reservation_confirmation_escapes_customer_text(smtp):
    send_reservation_confirmation(
        reservation_id=12,
        customer_email="bob@example.com",
        customer_name='<a href="http://evil">Click</a>',
        reservation_date=date(2030, 1, 2),
        reservation_time=time(19, 0),
        party_size=2,
        special_requests="<img src=x onerror=alert(1)>",
    )

    parts = smtp.instances[0].sent[0].get_payload()
    html = parts[1].get_payload(decode=True).decode()
    assert "<a href" not in html
    assert "<img" not in html
    assert "Hello &lt;a href=&quot;http://evil&quot;&gt;Click&lt;/a&gt;," in html
    assert "Special requests: &lt;img src=x onerror=alert(1)&gt;" in html

    text = parts[0].get_payload(decode=True).decode()
    assert "Special requests: <img src=x onerror=alert(1)>" in text
