"""
Admin routes – store overview, order fulfilment, appointment scheduling,
consultation requests and the prescription review list.
Prescription records are read-only here: terminal records never change.
"""

from flask import Blueprint, request, jsonify

from rxgate.database import db
from rxgate.middleware.auth_middleware import admin_required
from rxgate.models.models import (
    AUTHORIZATION_STATUSES,
    BOOKING_STATUSES,
    Appointment,
    Consultation,
    Order,
    Product,
    User,
)
from rxgate.services.authorization_store import AuthorizationStore
from rxgate.services.booking_service import update_appointment_status
from rxgate.services.order_service import update_order_status

admin_bp = Blueprint("admin", __name__)


def _status_from_body():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return None
    return data.get("status", "")


@admin_bp.route("/overview", methods=["GET"])
@admin_required
def overview():
    orders = Order.query.all()
    records = AuthorizationStore(db.session).list_all()
    by_status = {s: 0 for s in AUTHORIZATION_STATUSES}
    for r in records:
        by_status[r.status] = by_status.get(r.status, 0) + 1

    return jsonify({
        "total_users": User.query.count(),
        "total_products": Product.query.count(),
        "total_orders": len(orders),
        "total_revenue": float(sum(o.amount for o in orders if o.status != "cancelled")),
        "total_appointments": Appointment.query.count(),
        "pending_appointments": Appointment.query.filter_by(status="pending").count(),
        "total_consultations": Consultation.query.count(),
        "prescriptions": by_status,
    }), 200


@admin_bp.route("/prescriptions", methods=["GET"])
@admin_required
def list_prescriptions():
    status = request.args.get("status", "").strip().lower() or None
    if status and status not in AUTHORIZATION_STATUSES:
        return jsonify({"error": f"Unknown status. Allowed: {', '.join(AUTHORIZATION_STATUSES)}"}), 400
    records = AuthorizationStore(db.session).list_all(status)
    return jsonify({"prescriptions": [r.to_dict() for r in records]}), 200


@admin_bp.route("/orders", methods=["GET"])
@admin_required
def list_orders():
    orders = Order.query.order_by(Order.created_at.desc()).all()
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@admin_bp.route("/orders/<int:order_pk>", methods=["PATCH"])
@admin_required
def set_order_status(order_pk):
    """Body: { "status": "confirmed" }"""
    order = db.session.get(Order, order_pk)
    if not order:
        return jsonify({"error": "Order not found."}), 404

    status = _status_from_body()
    if status is None:
        return jsonify({"error": "Request body must be a JSON object."}), 400
    try:
        update_order_status(db.session, order, status)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"order": order.to_dict()}), 200


@admin_bp.route("/appointments", methods=["GET"])
@admin_required
def list_appointments():
    query = Appointment.query
    status = request.args.get("status", "").strip().lower() or None
    if status:
        if status not in BOOKING_STATUSES:
            return jsonify({"error": f"Unknown status. Allowed: {', '.join(BOOKING_STATUSES)}"}), 400
        query = query.filter_by(status=status)
    rows = query.order_by(Appointment.created_at.desc()).all()
    return jsonify({"appointments": [a.to_dict() for a in rows]}), 200


@admin_bp.route("/appointments/<int:appointment_pk>", methods=["PATCH"])
@admin_required
def set_appointment_status(appointment_pk):
    """Body: { "status": "confirmed" } or { "status": "cancelled" }"""
    appointment = db.session.get(Appointment, appointment_pk)
    if not appointment:
        return jsonify({"error": "Appointment not found."}), 404

    status = _status_from_body()
    if status is None:
        return jsonify({"error": "Request body must be a JSON object."}), 400
    try:
        update_appointment_status(db.session, appointment, status)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"appointment": appointment.to_dict()}), 200


@admin_bp.route("/consultations", methods=["GET"])
@admin_required
def list_consultations():
    rows = Consultation.query.order_by(Consultation.created_at.desc()).all()
    return jsonify({"consultations": [c.to_dict() for c in rows]}), 200
