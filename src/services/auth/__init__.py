"""Authentication session package."""

from src.services.auth.session import (
    AuthError,
    SessionProvider,
    Subscription,
)

__all__ = ["AuthError", "SessionProvider", "Subscription"]
