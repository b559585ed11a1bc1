import os
import re
import tempfile
from datetime import datetime, timedelta

import pytest

_tmpdir = tempfile.mkdtemp(prefix="otp-auth-tests-")

# Settings() refuses to load without these, so they must exist before app is imported.
os.environ["DATABASE_URL"] = f"sqlite:///{_tmpdir}/test.db"
os.environ["AUTH_SECRET_KEY"] = "test-secret"
os.environ["GOOGLE_CLIENT_ID"] = "google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "google-client-secret"
os.environ["SMTP_USER"] = "mailer@mail.com"
os.environ["SMTP_PASSWORD"] = "smtp-password"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["PUBLIC_BASE_URL"] = "http://api.test"

from fastapi.testclient import TestClient  # noqa: E402

from app.core.context import AuthContext, get_auth_context  # noqa: E402
from app.core.errors import DeliveryFailed  # noqa: E402
from app.db.database import SessionLocal, engine  # noqa: E402
from app.db.models import Base  # noqa: E402
from app.main import app  # noqa: E402

SECRET = "test-secret"
_CODE_RE = re.compile(r"Your OTP is (\d{6})\.")


class FakeClock:
    def __init__(self):
        self.now = datetime.utcnow().replace(microsecond=0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, body):
        if self.fail:
            raise DeliveryFailed(detail="connection refused")
        self.sent.append({"to": to_email, "subject": subject, "body": body})

    def last_code(self):
        return _CODE_RE.search(self.sent[-1]["body"]).group(1)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def ctx(clock, mailer):
    return AuthContext(secret_key=SECRET, mailer=mailer, clock=clock)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db, ctx):
    with TestClient(app) as c:
        app.dependency_overrides[get_auth_context] = lambda: ctx
        yield c
    app.dependency_overrides.clear()
