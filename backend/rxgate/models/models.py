"""
SQLAlchemy ORM models – users, the product catalog, orders, consultation and
appointment bookings, the audit trail and the prescription authorization
records that gate purchases.
"""

import uuid
from datetime import datetime

from sqlalchemy import event, inspect
from sqlalchemy.orm import validates

from rxgate.database import db

# ── Authorization record statuses ──
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
AUTHORIZATION_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)
TERMINAL_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

# ── Order statuses ──
ORDER_STATUSES = ("pending", "confirmed", "shipped", "delivered", "cancelled")

# ── Consultation / appointment statuses ──
BOOKING_PENDING = "pending"
BOOKING_STATUSES = (BOOKING_PENDING, "confirmed", "completed", "cancelled")
DEFAULT_APPOINTMENT_TYPE = "Consultation"

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"


def _new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_CUSTOMER)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
        }


class Product(db.Model):
    """Catalog item. `requires_prescription` marks a gated item."""
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    requires_prescription = db.Column(db.Boolean, nullable=False, default=False)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "requires_prescription": self.requires_prescription,
            "in_stock": self.in_stock,
        }


class AuthorizationRecord(db.Model):
    """
    Outcome of one prescription verification attempt.

    Status moves only pending -> approved/rejected (or starts terminal), and a
    terminal record never changes again.
    """
    __tablename__ = "prescriptions"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    subject_name = db.Column(db.String(500), nullable=False, index=True)
    document_ref = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @validates("status")
    def _validate_status(self, key, value):
        if value not in AUTHORIZATION_STATUSES:
            raise ValueError(f"Unknown authorization status: {value!r}")
        current = self.status
        if current in TERMINAL_STATUSES and value != current:
            raise ValueError(
                f"Authorization record {self.id} is {current}; terminal records are immutable."
            )
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "subject_name": self.subject_name,
            "document_ref": self.document_ref,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@event.listens_for(AuthorizationRecord, "before_update")
def _reject_terminal_update(mapper, connection, target):
    """Block any flush that rewrites a record which was already terminal."""
    state = inspect(target)
    history = state.attrs.status.history
    original = history.deleted[0] if history.deleted else target.status
    if original in TERMINAL_STATUSES:
        raise ValueError(
            f"Authorization record {target.id} is {original}; terminal records are immutable."
        )


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(db.String(40), nullable=False, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    items = db.Column(db.String(500), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(20), nullable=False, default="COD")
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "items": self.items,
            "quantity": self.quantity,
            "amount": float(self.amount) if self.amount is not None else None,
            "payment_method": self.payment_method,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    endpoint = db.Column(db.String(255))
    method = db.Column(db.String(10))
    request_body = db.Column(db.Text)
    response_summary = db.Column(db.Text)
    was_refused = db.Column(db.Boolean, default=False)
    refusal_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Consultation(db.Model):
    """A customer's request to speak with a pharmacist or doctor."""
    __tablename__ = "consultations"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    contact = db.Column(db.String(255), nullable=False)
    preferred_time = db.Column(db.String(100))
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=BOOKING_PENDING)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "contact": self.contact,
            "preferred_time": self.preferred_time,
            "notes": self.notes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    patient_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    contact = db.Column(db.String(255), nullable=False)
    preferred_time = db.Column(db.String(100))
    appointment_type = db.Column(db.String(100), nullable=False, default=DEFAULT_APPOINTMENT_TYPE)
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=BOOKING_PENDING)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "contact": self.contact,
            "preferred_time": self.preferred_time,
            "appointment_type": self.appointment_type,
            "notes": self.notes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
