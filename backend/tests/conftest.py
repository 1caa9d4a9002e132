from datetime import datetime

import pytest

import utils.audit
from sajag import create_app
from sajag.config import TestingConfig
from sajag.extensions import db
from sajag.models import Profile, RoleEnum, TrainingProgram, TrainingStatusEnum, TrainingTypeEnum

PASSWORD = "correct-horse-battery"

PROFILES = {
    "admin": ("admin@example.org", "Admin User", RoleEnum.admin),
    "sdma": ("sdma@example.org", "SDMA Official", RoleEnum.sdma_official),
    "field": ("field@example.org", "Field Officer", RoleEnum.field_officer),
}


@pytest.fixture(autouse=True)
def audit_log(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "audit.log"
    monkeypatch.setattr(utils.audit, "AUDIT_LOG_FILE", str(path))
    return path


@pytest.fixture()
def app(tmp_path):
    class Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    app = create_app(Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def profiles(app):
    ids = {}
    with app.app_context():
        for key, (email, full_name, role) in PROFILES.items():
            profile = Profile(email=email, full_name=full_name, role=role)
            profile.set_password(PASSWORD)
            db.session.add(profile)
            db.session.flush()
            ids[key] = profile.id
        db.session.commit()
    return ids


@pytest.fixture()
def login(app, profiles):
    """Return a test client logged in as one of PROFILES."""
    def _login(key):
        client = app.test_client()
        response = client.post("/auth/login", json={"email": PROFILES[key][0], "password": PASSWORD})
        assert response.status_code == 200, response.get_json()
        return client
    return _login


@pytest.fixture()
def make_training(app, profiles):
    """Insert a program directly and return its id."""
    def _make(**fields):
        values = {
            "title": "Flood Drill",
            "training_type": "drill",
            "disaster_types": ["flood"],
            "status": "planned",
            "start_date": datetime(2024, 3, 5, 9, 0),
            "end_date": datetime(2024, 3, 6, 17, 0),
            "location_name": "Community Hall",
            "state": "Odisha",
            "district": "Puri",
            "organizing_body": "OSDMA",
            "target_participants": 20,
            "actual_participants": 0,
            "created_by": profiles["sdma"],
        }
        values.update(fields)
        values["status"] = TrainingStatusEnum(values["status"])
        values["training_type"] = TrainingTypeEnum(values["training_type"])
        with app.app_context():
            training = TrainingProgram(**values)
            db.session.add(training)
            db.session.commit()
            return training.id
    return _make


def training_payload(**overrides):
    payload = {
        "title": "Cyclone Preparedness Drill",
        "description": "Evacuation drill",
        "training_type": "drill",
        "disaster_types": ["cyclone", "flood"],
        "start_date": "2024-05-10",
        "end_date": "2024-05-11",
        "location_name": "Puri Collectorate",
        "state": "Odisha",
        "district": "Puri",
        "organizing_body": "OSDMA",
        "target_participants": 120,
        "budget": 1500000,
        "latitude": 19.8135,
        "longitude": 85.8312,
    }
    payload.update(overrides)
    return payload
