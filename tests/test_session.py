"""Tests for the authentication session provider (no network)."""

from types import SimpleNamespace

import pytest

from src.models.studio import Session
from src.services.auth import AuthError, SessionProvider


def raw_session(token="tok", email="admin@studio.in"):
    return SimpleNamespace(access_token=token, user=SimpleNamespace(email=email))


class FakeAuth:
    """Stands in for the Supabase auth client."""

    def __init__(self, session=None, fail_get=False, accept_password="secret"):
        self._session = session
        self._fail_get = fail_get
        self._accept = accept_password
        self.callbacks = []
        self.unsubscribed = 0

    def get_session(self):
        if self._fail_get:
            raise RuntimeError("network down")
        return self._session

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        fake = self

        class _Sub:
            def unsubscribe(self):
                fake.unsubscribed += 1

        return _Sub()

    def sign_in_with_password(self, credentials):
        if credentials["password"] != self._accept:
            raise RuntimeError("Invalid login credentials")
        return SimpleNamespace(session=raw_session(email=credentials["email"]))

    def sign_out(self):
        self._session = None

    def fire(self, event, session):
        for callback in self.callbacks:
            callback(event, session)


class TestSessionProvider:
    """Tests for SessionProvider."""

    def test_starts_loading(self):
        provider = SessionProvider(FakeAuth())
        assert provider.loading is True
        assert provider.is_authenticated is False

    def test_load_existing_session(self):
        provider = SessionProvider(FakeAuth(session=raw_session()))
        session = provider.load()
        assert provider.loading is False
        assert session == Session(access_token="tok", user_email="admin@studio.in")
        assert provider.display_email == "admin@studio.in"

    def test_load_failure_means_signed_out(self):
        provider = SessionProvider(FakeAuth(fail_get=True))
        assert provider.load() is None
        assert provider.loading is False
        assert provider.is_authenticated is False

    def test_display_email_defaults_to_admin(self):
        provider = SessionProvider(FakeAuth(session=raw_session(email=None)))
        provider.load()
        assert provider.display_email == "Admin"

    def test_load_registers_upstream_listener_once(self):
        auth = FakeAuth()
        provider = SessionProvider(auth)
        provider.load()
        provider.load()
        assert len(auth.callbacks) == 1

    def test_sign_in_and_out(self):
        provider = SessionProvider(FakeAuth())
        provider.load()
        provider.sign_in("owner@studio.in", "secret")
        assert provider.is_authenticated
        assert provider.display_email == "owner@studio.in"
        provider.sign_out()
        assert provider.session is None

    def test_sign_in_rejected(self):
        provider = SessionProvider(FakeAuth())
        with pytest.raises(AuthError, match="Invalid login credentials"):
            provider.sign_in("owner@studio.in", "wrong")
        assert provider.is_authenticated is False

    def test_upstream_changes_reach_subscribers(self):
        auth = FakeAuth()
        provider = SessionProvider(auth)
        provider.load()
        seen = []
        provider.subscribe(seen.append)
        auth.fire("SIGNED_IN", raw_session(token="new"))
        auth.fire("SIGNED_OUT", None)
        assert seen == [None, Session(access_token="new", user_email="admin@studio.in"), None]

    def test_unchanged_session_does_not_notify(self):
        auth = FakeAuth(session=raw_session())
        provider = SessionProvider(auth)
        provider.load()
        seen = []
        provider.subscribe(seen.append)
        auth.fire("TOKEN_REFRESHED", raw_session())
        assert len(seen) == 1

    def test_unsubscribe_is_idempotent(self):
        auth = FakeAuth()
        provider = SessionProvider(auth)
        provider.load()
        first, second = [], []
        sub = provider.subscribe(first.append)
        provider.subscribe(second.append)

        sub.unsubscribe()
        sub.unsubscribe()
        assert sub.active is False

        auth.fire("SIGNED_IN", raw_session())
        assert len(first) == 1
        assert len(second) == 2

    def test_close_detaches_upstream(self):
        auth = FakeAuth()
        provider = SessionProvider(auth)
        provider.load()
        provider.close()
        provider.close()
        assert auth.unsubscribed == 1

    def test_unsubscribe_after_close(self):
        provider = SessionProvider(FakeAuth())
        provider.load()
        seen = []
        sub = provider.subscribe(seen.append)
        provider.close()
        sub.unsubscribe()
        assert sub.active is False
