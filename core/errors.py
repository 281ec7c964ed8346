"""
core/errors.py -- Domain error taxonomy for campusnav.

Every failure a caller can act on is one of these exceptions. Each carries the
HTTP status it maps to and a stable machine-readable code; api/main.py turns
them into the shared {"error": {...}} envelope.

  ValidationError      400  missing/empty required fields, dangling references
  AuthenticationError  401  missing/invalid/expired token, bad credentials
  AuthorizationError   403  authenticated but not allowed
  NotFoundError        404  id has no matching row
  ConflictError        409  unique-constraint violation, row still referenced
  InternalError        500  store failure surfaced by a dependency

Stores raise these too (not only route handlers), so the layer that knows why a
statement failed is the one that names the failure.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, or campus/.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        detail: str | None = None,
        fields: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail
        self.fields = fields


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    code = "unauthorized"


class AuthorizationError(AppError):
    status_code = 403
    code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"


class InternalError(AppError):
    status_code = 500
    code = "internal_error"


def missing_fields(values: dict, required: tuple[str, ...] | list[str]) -> list[str]:
    """Return the required keys whose value is absent, None, or a blank string.

    Zero and False count as present. Order follows `required`.
    """
    missing = []
    for name in required:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def require_fields(values: dict, required: tuple[str, ...] | list[str]) -> None:
    """Raise ValidationError listing every missing required field."""
    missing = missing_fields(values, required)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}.",
            fields=missing,
        )
