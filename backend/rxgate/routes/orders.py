"""
Order routes – checkout for the authenticated customer.
Gated medicines are refused with 403 prescription_required until an
approved prescription is on file.
"""

from flask import Blueprint, request, jsonify

from rxgate.database import db
from rxgate.middleware.auth_middleware import current_owner_id
from rxgate.models.models import Order, Product
from rxgate.services.authorization_store import AuthorizationStore
from rxgate.services.order_service import place_order
from rxgate.services.policy_evaluator import PolicyEvaluator

orders_bp = Blueprint("orders", __name__)


def _is_int(value) -> bool:
    # JSON true/false decode to bool, which subclasses int
    return isinstance(value, int) and not isinstance(value, bool)


@orders_bp.route("/", methods=["POST"])
def create_order():
    """
    Body: { "product_id": 3, "quantity": 1 }
    """
    owner_id = current_owner_id()
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object."}), 400
    product_id = data.get("product_id")
    quantity = data.get("quantity", 1)

    if not _is_int(product_id):
        return jsonify({"error": "Provide a numeric product_id."}), 400
    if not _is_int(quantity) or quantity < 1:
        return jsonify({"error": "quantity must be a positive integer."}), 400

    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found."}), 404
    if not product.in_stock:
        return jsonify({"error": f"{product.name} is out of stock."}), 409

    evaluator = PolicyEvaluator(AuthorizationStore(db.session))
    order = place_order(db.session, evaluator, owner_id, product, quantity)
    return jsonify({"order": order.to_dict()}), 201


@orders_bp.route("/", methods=["GET"])
def list_orders():
    owner_id = current_owner_id()
    orders = Order.query.filter_by(user_id=owner_id).order_by(Order.created_at.desc()).all()
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200
