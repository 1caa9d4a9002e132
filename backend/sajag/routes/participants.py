from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sajag.models import TrainingProgram, Participant
from sajag.extensions import db
from sajag.realtime import publish_change, INSERT, UPDATE
from utils.decorators import get_current_profile
from utils.serialization import to_dict
from utils.validation import (
    ValidationError, validate_participant_payload, validate_feedback_payload, read_payload, parse_bool
)
from utils.audit import log_event

participants_bp = Blueprint('participants', __name__)


def attendance_summary(participants):
    total = len(participants)
    present = sum(1 for p in participants if p.attendance_status)
    return {
        "total": total,
        "present": present,
        "attendance_rate": round(present / total * 100) if total else 0,
    }


def recount_attendance(training):
    """
    Set actual_participants from the stored attendance flags. Runs inside
    the caller's transaction; the last committed write wins.
    """
    training.actual_participants = (
        db.session.query(func.count(Participant.id))
        .filter(Participant.training_id == training.id, Participant.attendance_status.is_(True))
        .scalar()
    ) or 0
    return training.actual_participants


def _participant_or_404(training_id, participant_id):
    return Participant.query.filter_by(id=participant_id, training_id=training_id).first_or_404()


@participants_bp.route('/<string:training_id>/participants', methods=['GET'])
@jwt_required()
def list_participants(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    participants = (
        Participant.query.filter_by(training_id=training.id)
        .order_by(Participant.created_at.desc())
        .all()
    )
    return jsonify({
        "training_id": training.id,
        "title": training.title,
        "participants": [to_dict(p) for p in participants],
        "summary": attendance_summary(participants),
    }), 200


@participants_bp.route('/<string:training_id>/participants', methods=['POST'])
@jwt_required()
def add_participant(training_id):
    training = db.get_or_404(TrainingProgram, training_id)

    try:
        fields = validate_participant_payload(read_payload(request))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    participant = Participant(training_id=training.id, **fields)
    old_record = to_dict(training)

    try:
        db.session.add(participant)
        db.session.flush()
        if participant.attendance_status:
            recount_attendance(training)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to add participant to %s: %s", training_id, e)
        return jsonify({"error": "Failed to add participant"}), 500

    publish_change("participants", INSERT, to_dict(participant))
    if participant.attendance_status:
        publish_change("training_programs", UPDATE, to_dict(training), old_record)

    return jsonify({"message": "Participant added", "participant": to_dict(participant)}), 201


@participants_bp.route('/<string:training_id>/participants/<string:participant_id>/attendance', methods=['PUT'])
@jwt_required()
def toggle_attendance(training_id, participant_id):
    """
    Flip (or set, with {"attendance_status": bool}) a participant's
    attendance and recompute the program's actual_participants.
    """
    training = db.get_or_404(TrainingProgram, training_id)
    participant = _participant_or_404(training.id, participant_id)
    data = read_payload(request)

    if 'attendance_status' in data:
        participant.attendance_status = parse_bool(data['attendance_status'])
    else:
        participant.attendance_status = not participant.attendance_status

    old_record = to_dict(training)
    try:
        db.session.flush()
        actual = recount_attendance(training)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to update attendance for %s: %s", participant_id, e)
        return jsonify({"error": "Failed to update attendance"}), 500

    publish_change("participants", UPDATE, to_dict(participant))
    publish_change("training_programs", UPDATE, to_dict(training), old_record)

    profile = get_current_profile()
    log_event("ATTENDANCE_TOGGLED", user_id=profile.id if profile else None, ip=request.remote_addr,
              description=f"{participant.id} present={participant.attendance_status} actual={actual}")

    return jsonify({
        "message": "Attendance updated",
        "participant": to_dict(participant),
        "actual_participants": actual,
    }), 200


@participants_bp.route('/<string:training_id>/participants/<string:participant_id>/feedback', methods=['PUT'])
@jwt_required()
def record_feedback(training_id, participant_id):
    participant = _participant_or_404(training_id, participant_id)

    try:
        fields = validate_feedback_payload(read_payload(request))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    for key, value in fields.items():
        setattr(participant, key, value)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to save feedback for %s: %s", participant_id, e)
        return jsonify({"error": "Failed to save feedback"}), 500

    return jsonify({"message": "Feedback saved", "participant": to_dict(participant)}), 200
