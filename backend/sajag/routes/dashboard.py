from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from sajag.models import TrainingProgram, TrainingStatusEnum
from sajag.extensions import db
from utils.decorators import get_current_profile
from utils.access_control import can_create_training
from utils.serialization import to_dict

dashboard_bp = Blueprint('dashboard', __name__)

@dashboard_bp.route('/summary')
@jwt_required()
def summary():
    profile = get_current_profile()

    total_trainings = TrainingProgram.query.count()
    ongoing = TrainingProgram.query.filter(TrainingProgram.status == TrainingStatusEnum.ongoing).count()
    total_participants = db.session.query(
        func.coalesce(func.sum(TrainingProgram.actual_participants), 0)
    ).scalar()
    states = db.session.query(func.count(func.distinct(TrainingProgram.state))).scalar()

    recent = (
        TrainingProgram.query
        .order_by(TrainingProgram.start_date.desc())
        .limit(10)
        .all()
    )

    return jsonify({
        "totalTrainings": total_trainings,
        "ongoingTrainings": ongoing,
        "totalParticipants": int(total_participants or 0),
        "statesCovered": states or 0,
        "recentTrainings": [to_dict(t) for t in recent],
        "can_create_training": can_create_training(profile),
    })
