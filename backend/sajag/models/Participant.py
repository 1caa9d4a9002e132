from datetime import datetime
from sajag.extensions import db
from .base import new_id

class Participant(db.Model):
    __tablename__ = 'participants'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    training_id = db.Column(
        db.String(36), db.ForeignKey('training_programs.id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    organization = db.Column(db.String(120), nullable=True)
    designation = db.Column(db.String(120), nullable=True)
    attendance_status = db.Column(db.Boolean, default=False, nullable=False)
    feedback_rating = db.Column(db.Integer, nullable=True)  # 1..5
    feedback_comments = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
