from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

base_bp = Blueprint("base", __name__)

@base_bp.route("/")
def home():
    return jsonify({"message": "Welcome to the Sajag training tracker API!"})

@base_bp.route("/api/test-db")
def test_db():
    from sajag.models import TrainingProgram
    try:
        count = TrainingProgram.query.count()
        return {"status": "success", "training_programs": count}
    except SQLAlchemyError as e:
        return {"status": "error", "message": str(e)}, 500
