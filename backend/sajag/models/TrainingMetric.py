from datetime import datetime
from sajag.extensions import db
from .base import new_id

class TrainingMetric(db.Model):
    __tablename__ = 'training_metrics'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    training_id = db.Column(db.String(36), db.ForeignKey('training_programs.id'), nullable=False, index=True)
    metric_name = db.Column(db.String(120), nullable=False)
    metric_value = db.Column(db.Float, nullable=False)
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
