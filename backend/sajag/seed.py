import os
from datetime import datetime, timedelta
from sajag.extensions import db
from sajag.models import (
    Profile, RoleEnum, TrainingProgram, TrainingStatusEnum, TrainingTypeEnum,
    Participant, TrainingUpdate, TrainingMetric
)


def seed_profiles():
    admin_password = os.getenv("ADMIN_PASSWORD", "change-me-admin")

    profiles = [
        ("admin@sajag.gov.in", "NDMA Administrator", RoleEnum.admin, "NDMA", None, admin_password),
        ("sdma.odisha@sajag.gov.in", "OSDMA Training Cell", RoleEnum.sdma_official, "OSDMA", "Odisha", "sdmapass123"),
        ("field.puri@sajag.gov.in", "Puri Field Officer", RoleEnum.field_officer, "District Administration", "Odisha", "fieldpass123"),
    ]

    created = {}
    for email, full_name, role, organization, state, password in profiles:
        profile = Profile.query.filter_by(email=email).first()
        if not profile:
            profile = Profile(email=email, full_name=full_name, role=role, organization=organization, state=state)
            profile.set_password(password)
            db.session.add(profile)
        created[role] = profile
    db.session.commit()
    return created


def seed_trainings(creator, poster):
    if TrainingProgram.query.count():
        return []

    today = datetime.utcnow().replace(hour=9, minute=0, second=0, microsecond=0)
    trainings = [
        TrainingProgram(
            title="Cyclone Preparedness Drill",
            description="Evacuation drill for coastal villages",
            training_type=TrainingTypeEnum.drill,
            disaster_types=["cyclone", "flood"],
            status=TrainingStatusEnum.ongoing,
            start_date=today - timedelta(days=1),
            end_date=today + timedelta(days=1),
            location_name="Puri Collectorate",
            latitude=19.8135, longitude=85.8312,
            state="Odisha", district="Puri",
            organizing_body="OSDMA",
            target_participants=120,
            budget=1_500_000,
            created_by=creator.id,
        ),
        TrainingProgram(
            title="Earthquake Safety Workshop",
            training_type=TrainingTypeEnum.workshop,
            disaster_types=["earthquake"],
            status=TrainingStatusEnum.planned,
            start_date=today + timedelta(days=20),
            end_date=today + timedelta(days=21),
            location_name="ATI Guwahati",
            latitude=26.1445, longitude=91.7362,
            state="Assam", district="Kamrup Metropolitan",
            organizing_body="Assam ATI",
            target_participants=60,
            budget=800_000,
            created_by=creator.id,
        ),
        TrainingProgram(
            title="Urban Flood Response Seminar",
            training_type=TrainingTypeEnum.seminar,
            disaster_types=["flood"],
            status=TrainingStatusEnum.completed,
            start_date=today - timedelta(days=45),
            end_date=today - timedelta(days=44),
            location_name="Chennai Corporation Hall",
            state="Tamil Nadu", district="Chennai",
            organizing_body="TNSDMA",
            target_participants=80,
            created_by=creator.id,
        ),
    ]
    db.session.add_all(trainings)
    db.session.flush()

    drill = trainings[0]
    for index, name in enumerate(["Anita Das", "Ramesh Behera", "Sujata Nayak", "Prakash Sahu"]):
        db.session.add(Participant(
            training_id=drill.id, name=name,
            organization="Gram Panchayat", attendance_status=index < 3,
        ))
    drill.actual_participants = 3

    db.session.add(TrainingUpdate(
        training_id=drill.id,
        update_type="Progress Update",
        message="Evacuation route walk-through completed with all ward members.",
        posted_by=poster.id,
    ))
    db.session.add(TrainingMetric(training_id=drill.id, metric_name="evacuation_minutes", metric_value=18.5))
    db.session.commit()
    return trainings


def seed_data():
    profiles = seed_profiles()
    trainings = seed_trainings(profiles[RoleEnum.sdma_official], profiles[RoleEnum.field_officer])
    print(f"✅ Seeded {len(profiles)} profiles and {len(trainings)} training programs")


if __name__ == "__main__":
    from sajag import create_app

    with create_app().app_context():
        seed_data()
