"""
Order placement. Every order passes the policy evaluator first, so a gated
medicine can only be bought with an approved prescription on file.
"""

import logging
import time
import uuid
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rxgate.errors import PersistFailed, PrescriptionRequired
from rxgate.models.models import Order, Product, ORDER_STATUSES
from rxgate.services.policy_evaluator import PolicyEvaluator

logger = logging.getLogger("rxgate.orders")


def place_order(
    session: Session,
    evaluator: PolicyEvaluator,
    owner_id: int,
    product: Product,
    quantity: int = 1,
) -> Order:
    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    decision = evaluator.authorize_purchase(owner_id, product)
    if not decision.allowed:
        raise PrescriptionRequired(
            f"{product.name} requires an approved prescription. "
            "Upload your prescription to proceed."
        )

    order = Order(
        order_id=f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6].upper()}",
        user_id=owner_id,
        product_id=product.id,
        items=product.name,
        quantity=quantity,
        amount=Decimal(str(product.price)) * quantity,
        payment_method="COD",
        status="pending",
    )
    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError as exc:
        logger.error("Order insert failed: %s", exc)
        session.rollback()
        raise PersistFailed("Failed to place the order. Please try again.") from exc

    logger.info("Order %s placed by owner=%s (%s)", order.order_id, owner_id, decision.reason)
    return order


def update_order_status(session: Session, order: Order, status: str) -> Order:
    if status not in ORDER_STATUSES:
        raise ValueError(f"Invalid order status. Allowed: {', '.join(ORDER_STATUSES)}")
    order.status = status
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistFailed() from exc
    return order
