"""
Account routes. Customers self-register; admin accounts are only created by
seed_catalog.py. Both endpoints answer with a bearer token for the
`Authorization` header.
"""

from datetime import datetime, timedelta, timezone
from flask import Blueprint, request, jsonify
import bcrypt
import jwt as pyjwt

from rxgate.config import Config
from rxgate.database import db
from rxgate.models.models import User, ROLE_CUSTOMER

auth_bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 8


def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


@auth_bp.route("/register", methods=["POST"])
def register():
    """Body: { "email", "password", "full_name" }"""
    data = _body()
    email = _text(data, "email").lower()
    full_name = _text(data, "full_name")
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    missing = [name for name, value in (("email", email), ("password", password), ("full_name", full_name))
               if not value]
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters."}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already registered."}), 409

    user = User(
        email=email,
        password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode(),
        full_name=full_name,
        role=ROLE_CUSTOMER,
    )
    db.session.add(user)
    db.session.commit()
    return jsonify({"token": issue_token(user), "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = _body()
    password = data.get("password")
    user = User.query.filter_by(email=_text(data, "email").lower()).first()

    if not user or not isinstance(password, str) or not bcrypt.checkpw(password.encode(), user.password_hash.encode()):
        return jsonify({"error": "Invalid email or password."}), 401
    if not user.is_active:
        return jsonify({"error": "Account deactivated. Contact the pharmacy."}), 403

    return jsonify({"token": issue_token(user), "user": user.to_dict()}), 200


def issue_token(user: User) -> str:
    """Signed session token; the middleware resolves `user_id` back to a User."""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=Config.JWT_TTL_HOURS),
    }
    return pyjwt.encode(payload, Config.JWT_SECRET, algorithm=Config.JWT_ALGORITHM)
