"""
Audit trail. An after_request hook stores one AuditLog row per API call,
with secrets stripped from the request and response bodies. Refused
purchases (`"refused": true` in the response) are flagged with their
reason so compliance can query them directly.
"""

import json
import logging
from flask import request, g
from rxgate.database import db
from rxgate.models.models import AuditLog

logger = logging.getLogger("rxgate.audit")

REDACTED_FIELDS = frozenset({"password", "token"})
MAX_BODY_CHARS = 2000
UNAUDITED_PREFIXES = ("/api/health", "/api/documents/")


def _redact(body):
    if isinstance(body, dict):
        return {k: v for k, v in body.items() if k not in REDACTED_FIELDS}
    return body


def _dump(body):
    try:
        return json.dumps(_redact(body), default=str)[:MAX_BODY_CHARS]
    except (TypeError, ValueError):
        return "<unreadable>"


def _request_body():
    if request.is_json:
        return _dump(request.get_json(silent=True))
    if request.form:
        # multipart uploads: form fields only, never the file bytes
        return _dump(request.form.to_dict())
    return None


def audit_after_request(response):
    path = request.path
    if not path.startswith("/api/") or path.startswith(UNAUDITED_PREFIXES):
        return response

    payload = response.get_json(silent=True) if response.is_json else None
    refused = isinstance(payload, dict) and bool(payload.get("refused"))
    user = g.get("current_user")

    try:
        db.session.add(AuditLog(
            user_id=user.id if user else None,
            endpoint=path,
            method=request.method,
            request_body=_request_body(),
            response_summary=_dump(payload) if payload is not None else None,
            was_refused=refused,
            refusal_reason=payload.get("refusal_reason") if refused else None,
        ))
        db.session.commit()
    except Exception as exc:
        logger.warning("Audit write for %s %s failed: %s", request.method, path, exc)
        db.session.rollback()

    return response
