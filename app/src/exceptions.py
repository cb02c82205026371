"""
Centralized exception handling for the Campus Bus Tracker API.

This module provides:
- Base APIException class extending FastAPI's HTTPException.
- Custom domain-specific exceptions with appropriate status codes and headers.
- Utility functions for logging and routing exceptions.

Usage:
    - Raise specific exceptions in route handlers or services.
    - Use `handle()` to normalize raw exceptions (DB, Pydantic) into API-friendly responses.
"""

from traceback import format_exception
from logging import getLogger
from typing import List, Sequence
from fastapi import status, HTTPException
from sqlalchemy.exc import IntegrityError
from psycopg2.errorcodes import UNIQUE_VIOLATION
from pydantic import ValidationError


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------
def isUniqueViolation(e: IntegrityError) -> bool:
    """
    Tell whether an integrity error was raised by a unique constraint.

    PostgreSQL reports it through the SQLSTATE of the driver error, SQLite
    only through the message text.
    """
    diag = getattr(e.orig, "diag", None)
    if diag is not None:
        return diag.sqlstate == UNIQUE_VIOLATION
    return "UNIQUE" in str(e.orig).upper()


def formatValidationErrors(errors: Sequence[dict]) -> List[str]:
    """
    Flatten Pydantic error dicts into "<location>: <message>" strings.

    Example:
        >>> formatValidationErrors([{"loc": ("body", "year"), "msg": "Input should be a valid integer"}])
        ['body.year: Input should be a valid integer']
    """
    return [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in errors]


def logException(e: Exception) -> None:
    """Log an exception with traceback using Uvicorn's error logger."""
    detail = "".join(format_exception(type(e), e, e.__traceback__))
    logger = getLogger("uvicorn.error")
    logger.error(detail)


# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------
class APIException(HTTPException):
    """
    Base class for all application-specific exceptions.

    Provides default handling of status_code, detail, and headers.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = None
    headers = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("status_code", self.status_code)
        kwargs.setdefault("detail", self.detail)
        kwargs.setdefault("headers", self.headers)
        super().__init__(*args, **kwargs)


# ---------------------------------------------------------------------------
# Exception handling entrypoint
# ---------------------------------------------------------------------------
def handle(e: Exception):
    """
    Normalize and re-raise exceptions as API-friendly errors.

    Converts raw exceptions from the DB and Pydantic into the corresponding
    APIException subclasses. Anything unexpected is logged with its traceback
    and replaced by a generic InternalError, so no internals reach the client.
    """
    if isinstance(e, APIException):
        raise e
    if isinstance(e, IntegrityError) and isUniqueViolation(e):
        raise DuplicateIdentity() from e
    if isinstance(e, ValidationError):
        raise ValidationFailed(formatValidationErrors(e.errors())) from e

    logException(e)
    raise InternalError() from e


# ---------------------------------------------------------------------------
# Exception Classes
# ---------------------------------------------------------------------------
class MissingFields(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    headers = {"X-Error": "MissingFields"}

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        detail = {"error": "Missing required fields", "missingFields": self.fields}
        super().__init__(detail=detail)


class ValidationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    headers = {"X-Error": "ValidationFailed"}

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        detail = {"error": "Validation error", "validationErrors": self.violations}
        super().__init__(detail=detail)


class InvalidCoordinate(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Latitude must be within [-90, 90] and longitude within [-180, 180]"
    headers = {"X-Error": "InvalidCoordinate"}


class DuplicateIdentity(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "USN already registered"
    headers = {"X-Error": "DuplicateIdentity"}


class InvalidCredentials(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid credentials"
    headers = {"X-Error": "InvalidCredentials"}


class UnauthorizedCoordinator(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Unauthorized coordinator"
    headers = {"X-Error": "UnauthorizedCoordinator"}


class LocationNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Bus location not found or outdated"
    headers = {"X-Error": "LocationNotFound"}


class UnknownStop(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "No route serves the given stop"
    headers = {"X-Error": "UnknownStop"}


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal server error"
    headers = {"X-Error": "InternalError"}
