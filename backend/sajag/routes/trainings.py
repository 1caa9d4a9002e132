from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import func, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from sajag.models import (
    TrainingProgram, Participant, TrainingUpdate, TrainingMetric,
    TrainingStatusEnum, TrainingTypeEnum
)
from sajag.extensions import db
from sajag.realtime import publish_change, INSERT, UPDATE
from utils.decorators import get_current_profile, training_creator_required
from utils.access_control import can_create_training
from utils.pagination import apply_pagination_and_search, pagination_meta
from utils.serialization import to_dict, update_to_dict
from utils.validation import (
    ValidationError, validate_training_payload, read_payload, parse_enum, parse_float, parse_datetime
)
from utils.formSchema import generate_schema_from_model
from utils.audit import log_event

trainings_bp = Blueprint('trainings', __name__)

FORM_MODELS = {
    "TrainingProgram": TrainingProgram,
    "Participant": Participant,
    "TrainingUpdate": TrainingUpdate,
    "TrainingMetric": TrainingMetric,
}


@trainings_bp.route('/list', methods=['GET'])
@jwt_required()
def list_trainings():
    profile = get_current_profile()
    if not profile:
        return jsonify({"error": "User not found"}), 404

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 20, type=int)
    search_term = request.args.get('search', type=str)

    query = TrainingProgram.query

    try:
        if request.args.get('status'):
            query = query.filter(TrainingProgram.status == parse_enum(TrainingStatusEnum, request.args['status'], "status"))
        if request.args.get('training_type'):
            query = query.filter(TrainingProgram.training_type == parse_enum(TrainingTypeEnum, request.args['training_type'], "training_type"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if request.args.get('state'):
        query = query.filter(TrainingProgram.state == request.args['state'])

    query = query.order_by(TrainingProgram.start_date.desc())

    disaster_type = request.args.get('disaster_type')
    if disaster_type:
        # JSON list membership is filtered in Python so it works on every backend
        matching = [t.id for t in query.all() if disaster_type in (t.disaster_types or [])]
        query = query.filter(TrainingProgram.id.in_(matching))

    paginated = apply_pagination_and_search(
        query,
        TrainingProgram,
        search_term,
        search_columns=["title", "location_name", "organizing_body", "district"],
        page=page,
        per_page=per_page
    )

    return jsonify({
        "trainings": [to_dict(t) for t in paginated.items],
        **pagination_meta(paginated),
        "can_create_training": can_create_training(profile),
    }), 200


@trainings_bp.route("/form_schema", methods=["GET"])
@jwt_required()
def form_schema():
    model_name = request.args.get("model", "TrainingProgram")

    model_class = FORM_MODELS.get(model_name)
    if not model_class:
        return jsonify({"error": f"Model '{model_name}' is not supported in this route."}), 400

    schema = generate_schema_from_model(model_class, model_name, current_user=get_current_profile())
    return jsonify(schema)


@trainings_bp.route('/create', methods=['POST'])
@jwt_required()
@training_creator_required()
def create_training():
    profile = get_current_profile()
    data = read_payload(request, list_fields=('disaster_types',))

    try:
        fields = validate_training_payload(data)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    training = TrainingProgram(created_by=profile.id, actual_participants=0, **fields)

    try:
        db.session.add(training)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to create training program: %s", e)
        return jsonify({"error": "Failed to create training program"}), 500

    record = to_dict(training)
    publish_change("training_programs", INSERT, record)
    log_event("TRAINING_CREATED", user_id=profile.id, ip=request.remote_addr,
              description=f"{training.id} {training.title}")

    return jsonify({
        "message": "Training program created",
        "training": record
    }), 201


@trainings_bp.route('/<string:training_id>', methods=['GET'])
@jwt_required()
def training_detail(training_id):
    training = db.get_or_404(TrainingProgram, training_id)

    participants = (
        Participant.query.filter_by(training_id=training.id)
        .order_by(Participant.created_at.desc())
        .all()
    )
    updates = (
        TrainingUpdate.query.options(joinedload(TrainingUpdate.poster))
        .filter_by(training_id=training.id)
        .order_by(TrainingUpdate.created_at.desc())
        .limit(5)
        .all()
    )
    present = sum(1 for p in participants if p.attendance_status)

    return jsonify({
        "training": to_dict(training),
        "participants": [to_dict(p) for p in participants[:5]],
        "participant_count": len(participants),
        "present_count": present,
        "recent_updates": [update_to_dict(u) for u in updates],
        "can_edit": can_create_training(get_current_profile()),
    }), 200


@trainings_bp.route('/<string:training_id>/update', methods=['PUT', 'PATCH'])
@jwt_required()
@training_creator_required()
def update_training(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    data = read_payload(request, list_fields=('disaster_types',))

    try:
        fields = validate_training_payload(data, partial=True, current=training)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if not fields:
        return jsonify({"error": "No updatable fields provided"}), 400

    old_record = to_dict(training)
    for key, value in fields.items():
        setattr(training, key, value)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to update training program %s: %s", training_id, e)
        return jsonify({"error": "Failed to update training program"}), 500

    record = to_dict(training)
    publish_change("training_programs", UPDATE, record, old_record)
    log_event("TRAINING_UPDATED", user_id=get_current_profile().id, ip=request.remote_addr,
              description=f"{training.id} fields={sorted(fields)}")

    return jsonify({"message": "Training program updated", "training": record}), 200


@trainings_bp.route('/<string:training_id>/metrics', methods=['GET'])
@jwt_required()
def list_metrics(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    metrics = (
        TrainingMetric.query.filter_by(training_id=training.id)
        .order_by(desc(TrainingMetric.recorded_at))
        .all()
    )
    readings = dict(
        db.session.query(TrainingMetric.metric_name, func.count(TrainingMetric.id))
        .filter(TrainingMetric.training_id == training.id)
        .group_by(TrainingMetric.metric_name)
        .all()
    )
    return jsonify({
        "training_id": training.id,
        "metrics": [to_dict(m) for m in metrics],
        "readings_per_metric": readings,
    }), 200


@trainings_bp.route('/<string:training_id>/metrics', methods=['POST'])
@jwt_required()
@training_creator_required()
def record_metric(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    data = read_payload(request)

    metric_name = (data.get('metric_name') or '').strip()
    if not metric_name or data.get('metric_value') in (None, ''):
        return jsonify({"error": "Missing required fields: ['metric_name', 'metric_value']"}), 400

    try:
        metric = TrainingMetric(
            training_id=training.id,
            metric_name=metric_name,
            metric_value=parse_float(data['metric_value'], "metric_value"),
        )
        if data.get('recorded_at'):
            metric.recorded_at = parse_datetime(data['recorded_at'], "recorded_at")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        db.session.add(metric)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to record metric for %s: %s", training_id, e)
        return jsonify({"error": "Failed to record metric"}), 500

    return jsonify({"message": "Metric recorded", "metric": to_dict(metric)}), 201
