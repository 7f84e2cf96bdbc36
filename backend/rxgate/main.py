"""
RxGate – Flask Application Factory
Serves the storefront REST API and the prescription authorization core.
"""

import logging

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from rxgate.config import Config
from rxgate.database import db
from rxgate.errors import RxGateError, handle_rxgate_error
from rxgate.routes.auth import auth_bp
from rxgate.routes.products import products_bp
from rxgate.routes.prescription import prescription_bp, documents_bp
from rxgate.routes.orders import orders_bp
from rxgate.routes.bookings import consultations_bp, appointments_bp
from rxgate.routes.dashboard import dashboard_bp
from rxgate.routes.admin import admin_bp
from rxgate.middleware.auth_middleware import jwt_required_middleware
from rxgate.middleware.audit_logger import audit_after_request

limiter = Limiter(key_func=get_remote_address, default_limits=[Config.RATE_LIMIT_DEFAULT])


def _configure_logging() -> None:
    logging.basicConfig(
        level=Config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> Flask:
    Config.validate()
    _configure_logging()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = Config.FLASK_SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = Config.DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["MAX_CONTENT_LENGTH"] = Config.MAX_CONTENT_LENGTH
    app.config["DEBUG"] = Config.APP_ENV == "development"
    app.config["RATELIMIT_ENABLED"] = Config.APP_ENV != "testing"

    # Extensions
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    limiter.init_app(app)
    db.init_app(app)

    # Create tables if they don't already exist
    with app.app_context():
        from rxgate.models import models as _models  # noqa: F401 – ensure all models are registered
        db.create_all()

    # Middleware
    app.before_request(jwt_required_middleware)
    app.after_request(audit_after_request)
    app.register_error_handler(RxGateError, handle_rxgate_error)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(products_bp, url_prefix="/api/products")
    app.register_blueprint(prescription_bp, url_prefix="/api/prescriptions")
    app.register_blueprint(documents_bp, url_prefix="/api/documents")
    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(consultations_bp, url_prefix="/api/consultations")
    app.register_blueprint(appointments_bp, url_prefix="/api/appointments")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Health check
    @app.route("/api/health")
    def health():
        return {"status": "ok", "service": "rxgate"}

    return app
