from datetime import datetime
from sajag.extensions import db
import enum
import uuid


def new_id():
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RoleEnum(enum.Enum):
    admin = "admin"
    ndma_official = "ndma_official"
    sdma_official = "sdma_official"
    ati_coordinator = "ati_coordinator"
    ngo_coordinator = "ngo_coordinator"
    field_officer = "field_officer"

class TrainingStatusEnum(enum.Enum):
    planned = "planned"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"

class TrainingTypeEnum(enum.Enum):
    workshop = "workshop"
    drill = "drill"
    seminar = "seminar"
    field_exercise = "field_exercise"
    simulation = "simulation"
    awareness_campaign = "awareness_campaign"

class DisasterTypeEnum(enum.Enum):
    earthquake = "earthquake"
    flood = "flood"
    cyclone = "cyclone"
    fire = "fire"
    landslide = "landslide"
    drought = "drought"
    tsunami = "tsunami"
    industrial = "industrial"
    other = "other"


# Suggested values only; update_type is stored as free text.
UPDATE_TYPES = (
    "Progress Update",
    "Attendance Report",
    "Activity Completion",
    "Issue/Challenge",
    "Resource Request",
    "Safety Alert",
    "General Information",
)
