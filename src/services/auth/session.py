"""
Authentication Session Provider

Wraps Supabase Auth and exposes only what the dashboard needs:
- is there a valid session?
- which email should the header show?
- sign in / sign out
- a subscription for session changes

DESIGN DECISION: Listeners subscribe through an explicit Subscription
handle. Each handle unsubscribes at most once, so page teardown can call
it unconditionally without double-removing another page's listener.
"""

from typing import Any, Callable, Optional

import structlog

from src.models.studio import Session


SessionListener = Callable[[Optional[Session]], None]

DEFAULT_DISPLAY_EMAIL = "Admin"


class AuthError(Exception):
    """Sign-in or sign-out was rejected by the auth service."""
    pass


class Subscription:
    """Handle returned by SessionProvider.subscribe()."""

    def __init__(self, on_unsubscribe: Callable[[], None]):
        self._on_unsubscribe = on_unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving session changes. Later calls do nothing."""
        if not self._active:
            return
        self._active = False
        self._on_unsubscribe()


def _to_session(raw: Any) -> Optional[Session]:
    """Reduce a Supabase auth session to our Session model."""
    if raw is None:
        return None
    token = getattr(raw, "access_token", None)
    if not token:
        return None
    user = getattr(raw, "user", None)
    return Session(
        access_token=token,
        user_email=getattr(user, "email", None),
    )


class SessionProvider:
    """
    Current-session holder backed by a Supabase Auth client.

    The auth client is duck-typed: anything with get_session(),
    sign_in_with_password(), sign_out() and on_auth_state_change()
    works, which keeps tests free of network calls.
    """

    def __init__(self, auth_client: Any):
        self._auth = auth_client
        self._session: Optional[Session] = None
        self._loading = True
        self._listeners: list[SessionListener] = []
        self._upstream = None
        self._logger = structlog.get_logger(__name__)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def loading(self) -> bool:
        """True until the first load() completes."""
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def display_email(self) -> str:
        if self._session and self._session.user_email:
            return self._session.user_email
        return DEFAULT_DISPLAY_EMAIL

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> Optional[Session]:
        """
        Fetch the current session and start listening for auth changes.

        A failure to read the session is logged and treated as
        "signed out" so the dashboard falls back to the login page.
        """
        try:
            session = _to_session(self._auth.get_session())
        except Exception as e:
            self._logger.error("session_load_failed", error=str(e))
            session = None

        self._loading = False
        if self._upstream is None:
            self._upstream = self._auth.on_auth_state_change(self._on_auth_change)
        self._set_session(session)
        return session

    def close(self) -> None:
        """Detach from the auth client. Safe to call more than once."""
        upstream, self._upstream = self._upstream, None
        if upstream is not None:
            upstream.unsubscribe()
        self._listeners.clear()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            AuthError: If the credentials are rejected or no session is returned
        """
        try:
            response = self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            self._logger.warning("sign_in_failed", email=email, error=str(e))
            raise AuthError(str(e))

        session = _to_session(getattr(response, "session", None))
        if session is None:
            raise AuthError("Sign-in did not return a session")

        self._set_session(session)
        return session

    def sign_out(self) -> None:
        """Sign out and clear the current session."""
        try:
            self._auth.sign_out()
        except Exception as e:
            self._logger.error("sign_out_failed", error=str(e))
            raise AuthError(str(e))
        self._set_session(None)

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Subscription:
        """
        Register a listener for session changes.

        The listener is called immediately with the current session,
        then again on every change until unsubscribed.
        """
        self._listeners.append(listener)
        listener(self._session)
        return Subscription(lambda: self._remove_listener(listener))

    def _remove_listener(self, listener: SessionListener) -> None:
        # close() may already have dropped every listener.
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _on_auth_change(self, _event: Any, raw_session: Any) -> None:
        self._set_session(_to_session(raw_session))

    def _set_session(self, session: Optional[Session]) -> None:
        changed = session != self._session
        self._session = session
        if changed:
            for listener in list(self._listeners):
                listener(session)
