from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from sajag.models import TrainingProgram
from sajag.extensions import db
from sajag.geo import GeoJSONMarkerRenderer, BASE_LAYERS, DEFAULT_BASE_LAYER, STATUS_COLORS
from utils.serialization import to_dict

map_bp = Blueprint('map', __name__)


def _located_trainings():
    return (
        TrainingProgram.query
        .filter(TrainingProgram.latitude.isnot(None), TrainingProgram.longitude.isnot(None))
        .order_by(TrainingProgram.start_date.desc())
        .all()
    )


@map_bp.route('/markers', methods=['GET'])
@jwt_required()
def markers():
    try:
        renderer = GeoJSONMarkerRenderer(request.args.get('base_layer', DEFAULT_BASE_LAYER))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(renderer.render_markers([to_dict(t) for t in _located_trainings()]))


@map_bp.route('/layers', methods=['GET'])
@jwt_required()
def layers():
    return jsonify({
        "layers": BASE_LAYERS,
        "default": DEFAULT_BASE_LAYER,
        "legend": STATUS_COLORS,
    })


@map_bp.route('/markers/<string:training_id>/select', methods=['GET', 'POST'])
@jwt_required()
def select_marker(training_id):
    training = db.get_or_404(TrainingProgram, training_id)
    if not training.has_coordinates:
        return jsonify({"error": "Training program has no map location"}), 404

    renderer = GeoJSONMarkerRenderer()
    renderer.render_markers([to_dict(training)])

    @renderer.on_select
    def log_selection(record):
        current_app.logger.debug("Map marker selected: %s", record["id"])

    return jsonify({"training": renderer.select(training.id)})
