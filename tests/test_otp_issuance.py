import pytest

from app.core.errors import AlreadyExists, BadRequest, DeliveryFailed, NotFound, RateLimited
from app.db import otps, users
from app.db.models import OTPRecord
from app.services.otp_issuance import register, request_otp


def test_register_creates_unverified_user_and_mails_code(db, ctx, mailer):
    user_id = register(db, ctx, "a@x.com", "A")

    user = users.get_user_by_id(db, user_id)
    assert user.email == "a@x.com"
    assert user.name == "A"
    assert user.is_verified is False

    record = otps.get_latest_otp(db, user_id)
    assert record.code == mailer.last_code()
    assert record.expires_at - record.created_at == ctx.otp_ttl
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "a@x.com"
    assert mailer.sent[0]["subject"] == "Your OTP for Registration"
    assert "valid for 10 minutes" in mailer.sent[0]["body"]


def test_register_requires_name(db, ctx):
    with pytest.raises(BadRequest):
        register(db, ctx, "a@x.com", "")


def test_second_registration_with_same_email_fails(db, ctx, clock):
    register(db, ctx, "a@x.com", "A")
    clock.advance(minutes=5)
    with pytest.raises(AlreadyExists):
        register(db, ctx, "a@x.com", "Again")


def test_signup_send_for_existing_email_fails(db, ctx):
    users.create_user(db, email="a@x.com")
    with pytest.raises(AlreadyExists):
        request_otp(db, ctx, "a@x.com", "signup")


def test_signup_send_creates_user_without_name(db, ctx):
    user_id = request_otp(db, ctx, "new@x.com", "signup")
    user = users.get_user_by_id(db, user_id)
    assert user.name is None
    assert user.is_verified is False


def test_login_send_for_unknown_email_fails(db, ctx, mailer):
    with pytest.raises(NotFound):
        request_otp(db, ctx, "ghost@x.com", "login")
    assert mailer.sent == []


def test_login_send_mails_login_subject(db, ctx, mailer):
    user = users.create_user(db, email="a@x.com", is_verified=True)
    assert request_otp(db, ctx, "a@x.com", "login") == user.id
    assert mailer.sent[-1]["subject"] == "Your OTP for Login"


@pytest.mark.parametrize("action", ["", "logout", "SIGNUP"])
def test_unknown_action_is_bad_request(db, ctx, action):
    with pytest.raises(BadRequest):
        request_otp(db, ctx, "a@x.com", action)


def test_cooldown_blocks_with_decreasing_wait(db, ctx, clock, mailer):
    users.create_user(db, email="a@x.com", is_verified=True)
    request_otp(db, ctx, "a@x.com", "login")

    waits = []
    for _ in range(3):
        clock.advance(seconds=7)
        with pytest.raises(RateLimited) as exc:
            request_otp(db, ctx, "a@x.com", "login")
        waits.append(exc.value.retry_after)

    assert waits == [23, 16, 9]
    assert len(mailer.sent) == 1


def test_cooldown_ends_after_thirty_seconds(db, ctx, clock, mailer):
    users.create_user(db, email="a@x.com", is_verified=True)
    request_otp(db, ctx, "a@x.com", "login")

    clock.advance(seconds=29, milliseconds=999)
    with pytest.raises(RateLimited) as exc:
        request_otp(db, ctx, "a@x.com", "login")
    assert exc.value.retry_after == 1

    clock.advance(milliseconds=1)
    request_otp(db, ctx, "a@x.com", "login")
    assert len(mailer.sent) == 2


def test_delivery_failure_keeps_stored_code(db, ctx, mailer):
    user = users.create_user(db, email="a@x.com", is_verified=True)
    mailer.fail = True
    with pytest.raises(DeliveryFailed):
        request_otp(db, ctx, "a@x.com", "login")
    assert otps.get_latest_otp(db, user.id) is not None


def test_expired_codes_are_purged_on_new_issue(db, ctx, clock):
    user = users.create_user(db, email="a@x.com", is_verified=True)
    request_otp(db, ctx, "a@x.com", "login")
    clock.advance(minutes=11)
    request_otp(db, ctx, "a@x.com", "login")

    remaining = db.query(OTPRecord).filter_by(user_id=user.id).all()
    assert len(remaining) == 1
    assert remaining[0].created_at == clock.now
