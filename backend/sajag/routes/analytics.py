from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sajag.models import TrainingProgram
from sajag.analytics import summarize, chronological
from utils.serialization import to_dict

analytics_bp = Blueprint('analytics', __name__)

@analytics_bp.route('/summary')
@jwt_required()
def summary():
    top_states = request.args.get('top_states', 10, type=int)
    records = [to_dict(t) for t in TrainingProgram.query.order_by(TrainingProgram.start_date.desc()).all()]

    payload = summarize(records, top_states=top_states)
    # charts plot months left to right
    payload["monthly_trend_chronological"] = chronological(payload["monthly_trend"])
    return jsonify(payload)
