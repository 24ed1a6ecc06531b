from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from flippy.auth.sessions import SESSION_COOKIE_NAME, SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, delta: timedelta):
        self.now += delta


def test_create_and_validate():
    registry = SessionRegistry()
    token = registry.create(7, "alice@example.com")

    # 256 bits of entropy, hex encoded
    assert len(token) == 64
    int(token, 16)

    session = registry.validate(token)
    assert session is not None
    assert session.user_id == 7
    assert session.email == "alice@example.com"
    assert session.expires_at - session.created_at == timedelta(days=7)


def test_tokens_are_unique():
    registry = SessionRegistry()
    tokens = {registry.create(1, "a@b.co") for _ in range(50)}
    assert len(tokens) == 50


def test_unknown_tokens_do_not_validate():
    registry = SessionRegistry()
    registry.create(1, "a@b.co")
    assert registry.validate(None) is None
    assert registry.validate("") is None
    assert registry.validate("0" * 64) is None
    assert registry.validate("not-a-token") is None


def test_expired_session_is_removed_idempotently():
    clock = FakeClock()
    registry = SessionRegistry(clock=clock)
    token = registry.create(1, "a@b.co")

    clock.advance(timedelta(days=7))
    assert registry.validate(token) is not None  # exactly at expiry is still valid

    clock.advance(timedelta(seconds=1))
    assert registry.validate(token) is None
    assert len(registry) == 0
    assert registry.validate(token) is None


def test_destroy():
    registry = SessionRegistry()
    token = registry.create(1, "a@b.co")
    registry.destroy(token)
    assert registry.validate(token) is None
    # idempotent
    registry.destroy(token)
    registry.destroy(None)


def test_destroy_user_drops_only_that_users_sessions():
    registry = SessionRegistry()
    laptop = registry.create(1, "a@b.co")
    phone = registry.create(1, "a@b.co")
    other = registry.create(2, "c@d.co")

    assert registry.destroy_user(1) == 2
    assert registry.validate(laptop) is None
    assert registry.validate(phone) is None
    assert registry.validate(other) is not None
    assert registry.destroy_user(1) == 0


def test_resolve_user_id_reads_cookie():
    registry = SessionRegistry()
    token = registry.create(42, "a@b.co")

    request = SimpleNamespace(cookies={SESSION_COOKIE_NAME: token})
    assert registry.resolve_user_id(request) == 42

    assert registry.resolve_user_id(SimpleNamespace(cookies={})) is None
    assert registry.resolve_user_id(SimpleNamespace(cookies={SESSION_COOKIE_NAME: "bogus"})) is None


def test_shutdown_drops_all_sessions():
    registry = SessionRegistry()
    registry.init()
    token = registry.create(1, "a@b.co")
    registry.shutdown()
    assert registry.validate(token) is None
