from sajag.extensions import db
from .base import TimestampMixin, TrainingStatusEnum, TrainingTypeEnum, new_id


class TrainingProgram(db.Model, TimestampMixin):
    __tablename__ = 'training_programs'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    training_type = db.Column(db.Enum(TrainingTypeEnum), nullable=False, default=TrainingTypeEnum.workshop)
    disaster_types = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.Enum(TrainingStatusEnum), nullable=False, default=TrainingStatusEnum.planned, index=True)
    start_date = db.Column(db.DateTime, nullable=False, index=True)
    end_date = db.Column(db.DateTime, nullable=False)
    location_name = db.Column(db.String(255), nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    state = db.Column(db.String(80), nullable=False, index=True)
    district = db.Column(db.String(80), nullable=False)
    organizing_body = db.Column(db.String(255), nullable=False)
    coordinator_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=True)
    target_participants = db.Column(db.Integer, nullable=False, default=0)
    actual_participants = db.Column(db.Integer, nullable=False, default=0)
    budget = db.Column(db.Float, nullable=True)
    created_by = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=True)

    participants = db.relationship(
        'Participant', backref='training', lazy=True,
        cascade="all, delete-orphan", passive_deletes=True
    )
    updates = db.relationship('TrainingUpdate', backref='training', lazy=True)
    metrics = db.relationship('TrainingMetric', backref='training', lazy=True)
    creator = db.relationship('Profile', foreign_keys=[created_by])
    coordinator = db.relationship('Profile', foreign_keys=[coordinator_id])

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None
