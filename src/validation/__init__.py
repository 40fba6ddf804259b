"""Form validation package."""

from src.validation.validator import FormValidator

__all__ = ["FormValidator"]
