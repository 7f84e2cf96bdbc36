"""
Product catalog routes – public browsing.
`requires_prescription` tells the client which items are gated.
"""

from flask import Blueprint, request, jsonify
from rxgate.database import db
from rxgate.models.models import Product

products_bp = Blueprint("products", __name__)


@products_bp.route("/", methods=["GET"])
def list_products():
    """List catalog items, optionally filtered by name or prescription flag."""
    q = request.args.get("q", "").strip()
    gated = request.args.get("prescription", "").strip().lower()

    query = Product.query
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))
    if gated in ("true", "1"):
        query = query.filter_by(requires_prescription=True)
    elif gated in ("false", "0"):
        query = query.filter_by(requires_prescription=False)

    products = query.order_by(Product.name).all()
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.route("/<int:product_id>", methods=["GET"])
def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found."}), 404
    return jsonify({"product": product.to_dict()}), 200
