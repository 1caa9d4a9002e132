from datetime import datetime
from sajag.extensions import db
from .base import new_id

class TrainingUpdate(db.Model):
    __tablename__ = 'training_updates'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    training_id = db.Column(db.String(36), db.ForeignKey('training_programs.id'), nullable=False, index=True)
    update_type = db.Column(db.String(80), nullable=False)
    message = db.Column(db.Text, nullable=False)
    images = db.Column(db.JSON, nullable=True)
    posted_by = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    poster = db.relationship('Profile', backref='posted_updates')
