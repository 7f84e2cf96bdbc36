"""
Booking routes – consultation requests and appointments for the
authenticated customer. New bookings start as `pending`.
"""

from flask import Blueprint, request, jsonify

from rxgate.database import db
from rxgate.middleware.auth_middleware import current_owner_id
from rxgate.models.models import Appointment, Consultation
from rxgate.services.booking_service import book_appointment, book_consultation

consultations_bp = Blueprint("consultations", __name__)
appointments_bp = Blueprint("appointments", __name__)

OPTIONAL_FIELDS = ("preferred_time", "notes", "appointment_type")


def _booking_fields(data):
    """Validate a booking body; returns (fields, error message)."""
    if not isinstance(data, dict):
        return None, "Request body must be a JSON object."

    contact = data.get("contact")
    if not isinstance(contact, str) or not contact.strip():
        return None, "Provide a contact phone number or email."

    fields = {"contact": contact.strip()}
    for name in OPTIONAL_FIELDS:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            return None, f"{name} must be a string."
        fields[name] = value.strip() or None
    return fields, None


@consultations_bp.route("/", methods=["POST"])
def create_consultation():
    """
    Body: { "contact": "+91 98765 43210", "preferred_time": "evening", "notes": "..." }
    """
    owner_id = current_owner_id()
    fields, error = _booking_fields(request.get_json(force=True, silent=True))
    if error:
        return jsonify({"error": error}), 400
    fields.pop("appointment_type", None)

    consultation = book_consultation(db.session, owner_id, **fields)
    return jsonify({"consultation": consultation.to_dict()}), 201


@consultations_bp.route("/", methods=["GET"])
def list_consultations():
    owner_id = current_owner_id()
    rows = Consultation.query.filter_by(user_id=owner_id).order_by(Consultation.created_at.desc()).all()
    return jsonify({"consultations": [c.to_dict() for c in rows]}), 200


@appointments_bp.route("/", methods=["POST"])
def create_appointment():
    """
    Body: { "contact": "...", "preferred_time": "Mon 10:00", "appointment_type": "Follow-up" }
    """
    owner_id = current_owner_id()
    fields, error = _booking_fields(request.get_json(force=True, silent=True))
    if error:
        return jsonify({"error": error}), 400

    appointment = book_appointment(db.session, owner_id, **fields)
    return jsonify({"appointment": appointment.to_dict()}), 201


@appointments_bp.route("/", methods=["GET"])
def list_appointments():
    owner_id = current_owner_id()
    rows = Appointment.query.filter_by(patient_id=owner_id).order_by(Appointment.created_at.desc()).all()
    return jsonify({"appointments": [a.to_dict() for a in rows]}), 200
