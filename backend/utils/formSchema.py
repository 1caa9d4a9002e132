from sajag.models import Profile, TrainingProgram, DisasterTypeEnum, UPDATE_TYPES
from sqlalchemy import Boolean, Integer, Float, String, Text, Enum, DateTime, JSON
import enum
from utils.access_control import can_create_training

EXCLUDE_FIELDS = {
    "id", "created_at", "updated_at", "recorded_at", "password_hash",
    "actual_participants", "created_by", "posted_by", "images",
}

NUMBER_HINTS = {
    "latitude": {"step": "any", "min": -90, "max": 90, "placeholder": "e.g., 28.6139"},
    "longitude": {"step": "any", "min": -180, "max": 180, "placeholder": "e.g., 77.2090"},
    "budget": {"step": 0.01, "min": 0, "placeholder": "e.g., 500000"},
    "target_participants": {"step": 1, "min": 0, "placeholder": "e.g., 150"},
    "feedback_rating": {"step": 1, "min": 1, "max": 5},
}


def _label(value):
    return value.replace("_", " ").title()


def generate_schema_from_model(model, model_name, current_user=None):
    schema = []

    for column in model.__table__.columns:
        name = column.name
        if name in EXCLUDE_FIELDS:
            continue

        field_schema = {
            "name": name,
            "label": _label(name),
            "required": not column.nullable and column.default is None,
        }

        if name == "disaster_types":
            field_schema["type"] = "checkbox_group"
            field_schema["required"] = True
            field_schema["options"] = [
                {"label": e.value.capitalize(), "value": e.value} for e in DisasterTypeEnum
            ]

        elif name == "update_type":
            field_schema["type"] = "select"
            field_schema["allow_custom"] = True
            field_schema["default"] = UPDATE_TYPES[0]
            field_schema["options"] = [{"label": t, "value": t} for t in UPDATE_TYPES]

        elif name == "coordinator_id":
            field_schema["type"] = "select"
            field_schema["options"] = [
                {"label": p.full_name, "value": p.id}
                for p in Profile.query.order_by(Profile.full_name).all()
            ]

        elif isinstance(column.type, JSON):
            field_schema["type"] = "json"
            field_schema["contentType"] = "application/json"

        elif isinstance(column.type, Enum):
            enum_class = column.type.enum_class
            field_schema["type"] = "select"
            if enum_class and issubclass(enum_class, enum.Enum):
                field_schema["options"] = [
                    {"label": _label(e.value), "value": e.value} for e in enum_class
                ]
                if column.default is not None and isinstance(column.default.arg, enum.Enum):
                    field_schema["default"] = column.default.arg.value
            else:
                field_schema["options"] = [{"label": _label(v), "value": v} for v in column.type.enums]

        elif isinstance(column.type, Text):
            field_schema["type"] = "textarea"

        elif isinstance(column.type, String):
            if "email" in name:
                field_schema["type"] = "email"
            elif "phone" in name:
                field_schema["type"] = "tel"
            else:
                field_schema["type"] = "text"

        elif isinstance(column.type, (Integer, Float)):
            field_schema["type"] = "number"
            field_schema.update(NUMBER_HINTS.get(name, {}))

        elif isinstance(column.type, Boolean):
            field_schema["type"] = "checkbox"

        elif isinstance(column.type, DateTime):
            field_schema["type"] = "datetime-local"

        else:
            field_schema["type"] = "text"

        schema.append(field_schema)

    return {
        "model": model_name,
        "fields": schema,
        "can_submit": _can_submit(model, current_user),
    }


def _can_submit(model, current_user):
    if model is TrainingProgram:
        return can_create_training(current_user)
    return current_user is not None
