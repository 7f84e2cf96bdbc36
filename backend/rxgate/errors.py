"""
Error taxonomy for the prescription authorization core.

Every failure the core can raise is a distinct type so the caller can tell
"your document doesn't mention this medicine" apart from "upload failed,
try again". All of them are fail-closed: none may be read as an approval.
"""

from flask import jsonify


class RxGateError(Exception):
    """Base class – carries a machine-readable code and an HTTP status."""

    error_code = "rxgate_error"
    http_status = 500
    default_message = "Unexpected error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {"error": self.message, "error_code": self.error_code}


class Unauthenticated(RxGateError):
    error_code = "unauthenticated"
    http_status = 401
    default_message = "No authenticated owner identity."


class Forbidden(RxGateError):
    error_code = "forbidden"
    http_status = 403
    default_message = "Insufficient role for this operation."


class StoreUnavailable(RxGateError):
    error_code = "store_unavailable"
    http_status = 503
    default_message = "Authorization store is unavailable."


class ExtractionFailed(RxGateError):
    error_code = "extraction_failed"
    http_status = 422
    default_message = "Failed to read text from the prescription document."


class StorageUnavailable(RxGateError):
    error_code = "storage_unavailable"
    http_status = 503
    default_message = "Document upload failed. Please try again."


class PersistFailed(RxGateError):
    error_code = "persist_failed"
    http_status = 503
    default_message = "Verification could not be recorded. Please try again."


class PrescriptionRequired(RxGateError):
    error_code = "prescription_required"
    http_status = 403
    default_message = "This medicine requires an approved prescription."


def handle_rxgate_error(exc: RxGateError):
    """Flask error handler rendering the taxonomy as JSON."""
    body = exc.to_dict()
    if isinstance(exc, PrescriptionRequired):
        # Picked up by the audit logger as a refusal.
        body["refused"] = True
        body["refusal_reason"] = exc.error_code
    return jsonify(body), exc.http_status
