"""
Error taxonomy shared by the API layer, the stores and the client.
"""

from __future__ import annotations

from dataclasses import dataclass


class CardAdminError(Exception):
    """Base class for every error raised by the card admin service."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(CardAdminError):
    """A required server setting is missing."""


class AuthenticationError(CardAdminError):
    """Bad or absent credentials, or no authenticated session."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    kind: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "kind": self.kind}


class CardValidationError(CardAdminError):
    """Card input violates the schema. Carries one entry per offending field."""

    def __init__(self, errors: list[FieldError]):
        message = "; ".join(f"{err.field}: {err.message}" for err in errors)
        super().__init__(message or "Invalid card data")
        self.errors = list(errors)

    @property
    def fields(self) -> list[str]:
        return [err.field for err in self.errors]


class NotFoundError(CardAdminError):
    """No card exists for the requested identifier."""

    def __init__(self, message: str = "Card not found"):
        super().__init__(message)


class StorageError(CardAdminError):
    """The backing store is unreachable or rejected the operation."""


class SessionStoreError(CardAdminError):
    """The session store could not complete the operation."""
