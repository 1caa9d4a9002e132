import os
import uuid
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from werkzeug.utils import secure_filename
from sajag.models import TrainingProgram, TrainingUpdate, UPDATE_TYPES
from sajag.extensions import db
from sajag.live import load_recent_updates
from sajag.realtime import publish_change, INSERT
from utils.decorators import get_current_profile
from utils.serialization import update_to_dict
from utils.validation import ValidationError, validate_update_payload, read_payload
from utils.audit import log_event

updates_bp = Blueprint('updates', __name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
ALLOWED_MIME_TYPES = {'image/jpeg', 'image/png', 'image/gif', 'image/webp'}


def allowed_file(file):
    # libmagic is only needed once an image is actually posted
    import magic

    filename_ok = '.' in file.filename and file.filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS
    mime = magic.from_buffer(file.read(2048), mime=True)
    file.seek(0)
    return filename_ok and mime in ALLOWED_MIME_TYPES


def save_file(file, folder):
    filename = secure_filename(file.filename)
    unique_filename = f"{uuid.uuid4().hex}_{filename}"
    upload_folder = os.path.join(current_app.config.get('UPLOAD_FOLDER', 'static/uploads'), folder)
    os.makedirs(upload_folder, exist_ok=True)
    filepath = os.path.join(upload_folder, unique_filename)
    file.save(filepath)
    return filepath.replace('\\', '/')


@updates_bp.route('/trainings/<string:training_id>/updates', methods=['GET'])
@jwt_required()
def list_training_updates(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    updates = (
        TrainingUpdate.query.options(joinedload(TrainingUpdate.poster))
        .filter_by(training_id=training.id)
        .order_by(TrainingUpdate.created_at.desc())
        .all()
    )
    return jsonify({
        "training_id": training.id,
        "updates": [update_to_dict(u) for u in updates],
        "suggested_types": list(UPDATE_TYPES),
    }), 200


@updates_bp.route('/trainings/<string:training_id>/updates', methods=['POST'])
@jwt_required()
def post_training_update(training_id):
    """
    Post a field update. Accepts JSON, or multipart form data with any
    number of `images` files. update_type is free text; UPDATE_TYPES are
    suggestions only.
    """
    training = db.get_or_404(TrainingProgram, training_id)
    profile = get_current_profile()
    if not profile:
        return jsonify({"error": "User not found"}), 404

    try:
        fields = validate_update_payload(read_payload(request))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    images = []
    for file in request.files.getlist('images'):
        if not file or not file.filename:
            continue
        if not allowed_file(file):
            return jsonify({"error": f"Unsupported image: {file.filename}"}), 400
        images.append(save_file(file, os.path.join('updates', training.id)))

    update = TrainingUpdate(
        training_id=training.id,
        posted_by=profile.id,
        images=images or None,
        **fields
    )

    try:
        db.session.add(update)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to post update for %s: %s", training_id, e)
        return jsonify({"error": "Failed to post update"}), 500

    record = update_to_dict(update, include_training=True)
    publish_change("training_updates", INSERT, record)
    log_event("UPDATE_POSTED", user_id=profile.id, ip=request.remote_addr,
              description=f"{update.update_type} on {training.id}")

    return jsonify({"message": "Update posted", "update": record}), 201


@updates_bp.route('/updates/recent', methods=['GET'])
@jwt_required()
def recent_updates():
    cap = current_app.config.get("RECENT_UPDATES_CAP", 5)
    return jsonify({"updates": load_recent_updates(cap)}), 200


@updates_bp.route('/updates/notifications', methods=['GET'])
@jwt_required()
def notifications():
    limit = current_app.config.get("NOTIFICATIONS_LIMIT", 50)
    updates = load_recent_updates(limit)
    return jsonify({"notifications": updates, "count": len(updates)}), 200
