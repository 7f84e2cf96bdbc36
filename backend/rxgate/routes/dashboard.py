"""Customer dashboard – profile, orders, bookings and prescription history in one call."""

from flask import Blueprint, jsonify

from rxgate.database import db
from rxgate.middleware.auth_middleware import get_current_user
from rxgate.models.models import Appointment, Consultation, Order
from rxgate.services.authorization_store import AuthorizationStore

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/", methods=["GET"])
def dashboard():
    user = get_current_user()
    orders = Order.query.filter_by(user_id=user.id).order_by(Order.created_at.desc()).all()
    consultations = (
        Consultation.query.filter_by(user_id=user.id).order_by(Consultation.created_at.desc()).all()
    )
    appointments = (
        Appointment.query.filter_by(patient_id=user.id).order_by(Appointment.created_at.desc()).all()
    )
    prescriptions = AuthorizationStore(db.session).list_for_owner(user.id)

    return jsonify({
        "profile": user.to_dict(),
        "orders": [o.to_dict() for o in orders],
        "consultations": [c.to_dict() for c in consultations],
        "appointments": [a.to_dict() for a in appointments],
        "prescriptions": [p.to_dict() for p in prescriptions],
        "summary": {
            "total_orders": len(orders),
            "pending_orders": sum(1 for o in orders if o.status == "pending"),
            "total_consultations": len(consultations),
            "pending_consultations": sum(1 for c in consultations if c.status == "pending"),
            "total_appointments": len(appointments),
            "confirmed_appointments": sum(1 for a in appointments if a.status == "confirmed"),
            "approved_prescriptions": sum(1 for p in prescriptions if p.status == "approved"),
        },
    }), 200
