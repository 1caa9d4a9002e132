from enum import Enum
from datetime import datetime, date
from sqlalchemy.inspection import inspect

HIDDEN_FIELDS = {"password_hash"}

def to_dict(model_instance):
    """Column values of a row as JSON-ready values; enums by value, dates as ISO strings."""
    output = {}
    for column in inspect(model_instance.__class__).columns:
        if column.key in HIDDEN_FIELDS:
            continue

        value = getattr(model_instance, column.key)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        output[column.key] = value

    return output


def update_to_dict(update, include_training=False, include_poster=True):
    """A training update joined with the display fields the feeds show."""
    output = to_dict(update)
    if include_training:
        training = update.training
        output["training_program"] = {
            "title": training.title,
            "location_name": training.location_name,
            "state": training.state,
        } if training else None
    if include_poster:
        poster = update.poster
        output["profile"] = {
            "full_name": poster.full_name,
            "role": poster.role.value if poster.role else None,
        } if poster else None
    return output
