"""
Prescription routes – approval check, document verification, history.

The authenticated user's id is passed explicitly into the authorization
core; nothing below reads identity from ambient state.
"""

from flask import Blueprint, request, jsonify, send_file

from rxgate.config import Config
from rxgate.database import db
from rxgate.errors import Forbidden
from rxgate.middleware.auth_middleware import current_owner_id, get_current_user
from rxgate.models.models import Product
from rxgate.services import document_storage, ocr_service
from rxgate.services.authorization_store import AuthorizationStore
from rxgate.services.policy_evaluator import PolicyEvaluator, requires_authorization
from rxgate.services.verification_pipeline import VerificationPipeline

prescription_bp = Blueprint("prescription", __name__)
documents_bp = Blueprint("documents", __name__)


def _allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in Config.ALLOWED_EXTENSIONS


@prescription_bp.route("/check", methods=["GET"])
def check():
    """
    Does the caller hold an approved prescription for this medicine?

    Query: ?medicine=<exact catalog name>
    """
    medicine = request.args.get("medicine", "").strip()
    if not medicine:
        return jsonify({"error": "Provide a medicine name."}), 400

    owner_id = current_owner_id()
    product = Product.query.filter_by(name=medicine).first()
    evaluator = PolicyEvaluator(AuthorizationStore(db.session))

    return jsonify({
        "medicine": medicine,
        "requires_prescription": requires_authorization(product) if product else None,
        "has_approval": evaluator.has_approval(owner_id, medicine),
    }), 200


@prescription_bp.route("/verify", methods=["POST"])
def verify():
    """
    Verify an uploaded prescription against the medicine being bought.

    Multipart form: file=<image>, medicine_name=<catalog name>

    Both verdicts return 201 – a rejected prescription is still a recorded
    attempt. Infrastructure failures come back as distinct error codes.
    """
    owner_id = current_owner_id()
    medicine = request.form.get("medicine_name", "").strip()
    upload = request.files.get("file")

    if not medicine:
        return jsonify({"error": "Provide the medicine name."}), 400
    if upload is None or not upload.filename:
        return jsonify({"error": "Please upload a prescription file."}), 400
    if not _allowed_file(upload.filename):
        allowed = ", ".join(sorted(Config.ALLOWED_EXTENSIONS))
        return jsonify({"error": f"Unsupported file type. Allowed: {allowed}"}), 400

    pipeline = VerificationPipeline(
        extractor=ocr_service.get_extractor(),
        storage=document_storage.get_storage(),
        store=AuthorizationStore(db.session),
    )
    outcome = pipeline.verify(owner_id, medicine, upload.read(), upload.filename)
    return jsonify(outcome.to_dict()), 201


@prescription_bp.route("/", methods=["GET"])
def my_prescriptions():
    owner_id = current_owner_id()
    records = AuthorizationStore(db.session).list_for_owner(owner_id)
    return jsonify({"prescriptions": [r.to_dict() for r in records]}), 200


@documents_bp.route("/<path:name>", methods=["GET"])
def get_document(name):
    """Serve a stored prescription document to its owner or an admin."""
    user = get_current_user()
    owner = document_storage.owner_of(name)
    if not user.is_admin and owner != user.id:
        raise Forbidden("You may only view your own documents.")

    path = document_storage.get_storage().path_for(name)
    if path is None:
        return jsonify({"error": "Document not found."}), 404
    return send_file(path)
