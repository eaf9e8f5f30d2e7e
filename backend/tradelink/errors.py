# Overview: Error taxonomy shared by services and routes.

"""
Domain errors carry the HTTP status and a machine-readable code so routes
can turn them into structured JSON bodies without re-classifying them.

- ValidationError / NotFoundError / ConflictError are raised before any
  transaction is opened.
- TransactionError is raised by concurrency.atomic() when a multi-row
  write sequence fails and has been rolled back in full.
"""

from __future__ import annotations

from flask import current_app, jsonify


class CommerceError(Exception):
    """Base for all expected, client-visible failures."""
    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(CommerceError):
    """400-level input problem."""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(CommerceError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"


class NotFoundError(CommerceError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(CommerceError):
    """409-level state conflict (already processed, seller mismatch, ...)."""
    status_code = 409
    code = "CONFLICT"


class InsufficientStockError(ConflictError):
    code = "INSUFFICIENT_STOCK"


class ExternalServiceError(CommerceError):
    """Identity provider or object storage failed; surfaced, never retried here."""
    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"


class TransactionError(CommerceError):
    """A multi-row write failed mid-sequence and was rolled back."""
    status_code = 500
    code = "TRANSACTION_FAILED"


def error_response(exc: CommerceError):
    """Build the (body, status) pair for a domain error."""
    body = exc.to_dict()
    if isinstance(exc, TransactionError):
        current_app.logger.error("Transaction aborted: %s %s", exc.message, exc.details)
        if not current_app.config.get("EXPOSE_ERROR_DETAILS"):
            body["details"] = {}
    elif exc.status_code >= 500:
        current_app.logger.error("%s: %s", exc.code, exc.message)
    else:
        current_app.logger.warning("%s: %s", exc.code, exc.message)
    return jsonify(body), exc.status_code


def internal_error_response():
    return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
