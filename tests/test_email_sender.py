import smtplib

import pytest

from app.core import email_sender
from app.core.email_sender import SmtpMailer, send_otp_email
from app.core.errors import DeliveryFailed


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, from_addr, to_addrs, msg):
        self.calls.append(("sendmail", from_addr, to_addrs, msg))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_send_uses_starttls_and_login(fake_smtp):
    mailer = SmtpMailer("smtp.mail.com", 587, "me@mail.com", "pw")
    mailer.send("you@x.com", "Subject", "Body")

    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("smtp.mail.com", 587)
    assert server.calls[0] == "starttls"
    assert server.calls[1] == ("login", "me@mail.com", "pw")
    _, from_addr, to_addrs, msg = server.calls[2]
    assert from_addr == "me@mail.com"
    assert to_addrs == ["you@x.com"]
    assert "Subject: Subject" in msg


def test_transport_error_becomes_delivery_failed(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "try later")

    monkeypatch.setattr(email_sender.smtplib, "SMTP", refuse)
    with pytest.raises(DeliveryFailed):
        SmtpMailer("smtp.mail.com", 587, "me@mail.com", "pw").send("you@x.com", "S", "B")


def test_otp_email_text(mailer):
    send_otp_email(mailer, "you@x.com", "123456", "login", valid_minutes=10)
    assert mailer.sent == [
        {
            "to": "you@x.com",
            "subject": "Your OTP for Login",
            "body": "Your OTP is 123456. It is valid for 10 minutes.",
        }
    ]
