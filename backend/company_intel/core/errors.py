"""
Error taxonomy shared by the ingest and read services.

Routes translate these into HTTP responses; services raise them and never
build HTTP errors themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class FieldError:
    """One violation found while validating a request."""
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class IntelError(Exception):
    """Base class for expected, request-scoped failures."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthError(IntelError):
    status_code = 401


class ParseError(IntelError):
    status_code = 400


class ValidationError(IntelError):
    status_code = 400

    def __init__(self, errors: List[FieldError], message: str = "Invalid payload"):
        self.errors = list(errors)
        super().__init__(message)


class NotFoundError(IntelError):
    status_code = 404


class ConflictIgnored(IntelError):
    """
    A row already exists under a uniqueness constraint.

    Raised inside the dedup engine only; callers treat it as success.
    """
    status_code = 200


class StorageError(IntelError):
    status_code = 500

    def __init__(self, entity: str, message: str | None = None):
        self.entity = entity
        super().__init__(message or f"{entity} write failed")
