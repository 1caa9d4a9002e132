import math
from datetime import datetime
from sajag.models import TrainingStatusEnum, TrainingTypeEnum, DisasterTypeEnum


class ValidationError(ValueError):
    """Raised when submitted form data cannot be stored. The message is user-facing."""


TRAINING_REQUIRED_FIELDS = (
    'title', 'training_type', 'start_date', 'end_date', 'location_name',
    'state', 'district', 'organizing_body', 'target_participants',
)


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def parse_datetime(value, field):
    if isinstance(value, datetime):
        return value
    try:
        # accepts "YYYY-MM-DD", "YYYY-MM-DDTHH:MM" (datetime-local) and full ISO
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f"Invalid {field} format. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM")


def parse_int(value, field, minimum=None, maximum=None):
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number


def parse_float(value, field, minimum=None, maximum=None):
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a number")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number


def parse_enum(enum_class, value, field):
    try:
        return enum_class(str(value).strip())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_class)
        raise ValidationError(f"Invalid {field} '{value}'. Allowed: {allowed}")


def parse_disaster_types(value):
    if isinstance(value, str):
        value = value.split(",")
    elif value is not None and not isinstance(value, (list, tuple, set)):
        raise ValidationError("disaster_types must be a list")
    selected = []
    for item in value or []:
        if _blank(item):
            continue
        disaster_type = parse_enum(DisasterTypeEnum, item, "disaster type").value
        if disaster_type not in selected:
            selected.append(disaster_type)
    if not selected:
        raise ValidationError("Please select at least one disaster type")
    return selected


def validate_training_payload(data, partial=False, current=None):
    """
    Turn raw form/JSON input into column values for a TrainingProgram.

    With partial=True only the supplied fields are checked (used for
    updates); `current` is the stored program, needed to check the
    date order and the coordinate pair against values not being changed.
    """
    if not partial:
        missing = [f for f in TRAINING_REQUIRED_FIELDS if _blank(data.get(f))]
        if _blank(data.get('disaster_types')):
            missing.append('disaster_types')
        if missing:
            if missing == ['disaster_types']:
                raise ValidationError("Please select at least one disaster type")
            raise ValidationError(f"Missing required fields: {missing}")

    cleaned = {}

    for field in ('title', 'location_name', 'state', 'district', 'organizing_body'):
        if field in data:
            if _blank(data[field]):
                raise ValidationError(f"{field} cannot be empty")
            cleaned[field] = str(data[field]).strip()

    if 'description' in data:
        cleaned['description'] = None if _blank(data['description']) else str(data['description']).strip()

    if 'training_type' in data:
        cleaned['training_type'] = parse_enum(TrainingTypeEnum, data['training_type'], "training_type")
    if not _blank(data.get('status')):
        cleaned['status'] = parse_enum(TrainingStatusEnum, data['status'], "status")
    if 'disaster_types' in data:
        cleaned['disaster_types'] = parse_disaster_types(data['disaster_types'])

    if 'start_date' in data:
        cleaned['start_date'] = parse_datetime(data['start_date'], "start_date")
    if 'end_date' in data:
        cleaned['end_date'] = parse_datetime(data['end_date'], "end_date")
    start = cleaned.get('start_date', getattr(current, 'start_date', None))
    end = cleaned.get('end_date', getattr(current, 'end_date', None))
    if start and end and start > end:
        raise ValidationError("end_date must not be before start_date")

    if 'target_participants' in data:
        cleaned['target_participants'] = parse_int(data['target_participants'], "target_participants", minimum=0)

    if 'budget' in data:
        cleaned['budget'] = None if _blank(data['budget']) else parse_float(data['budget'], "budget", minimum=0)

    if 'latitude' in data or 'longitude' in data:
        lat_raw = data.get('latitude', getattr(current, 'latitude', None))
        lon_raw = data.get('longitude', getattr(current, 'longitude', None))
        if _blank(lat_raw) and _blank(lon_raw):
            cleaned['latitude'] = cleaned['longitude'] = None
        elif _blank(lat_raw) or _blank(lon_raw):
            raise ValidationError("latitude and longitude must be provided together")
        else:
            cleaned['latitude'] = parse_float(lat_raw, "latitude", minimum=-90, maximum=90)
            cleaned['longitude'] = parse_float(lon_raw, "longitude", minimum=-180, maximum=180)

    if 'coordinator_id' in data:
        cleaned['coordinator_id'] = None if _blank(data['coordinator_id']) else str(data['coordinator_id'])

    return cleaned


def validate_participant_payload(data):
    if _blank(data.get('name')):
        raise ValidationError("Missing required fields: ['name']")

    cleaned = {'name': str(data['name']).strip()}
    for field in ('email', 'phone', 'organization', 'designation'):
        if not _blank(data.get(field)):
            cleaned[field] = str(data[field]).strip()
    if 'attendance_status' in data:
        cleaned['attendance_status'] = parse_bool(data['attendance_status'])
    return cleaned


def validate_feedback_payload(data):
    cleaned = {}
    if 'feedback_rating' in data:
        cleaned['feedback_rating'] = (
            None if _blank(data['feedback_rating'])
            else parse_int(data['feedback_rating'], "feedback_rating", minimum=1, maximum=5)
        )
    if 'feedback_comments' in data:
        cleaned['feedback_comments'] = None if _blank(data['feedback_comments']) else str(data['feedback_comments']).strip()
    if not cleaned:
        raise ValidationError("Provide feedback_rating and/or feedback_comments")
    return cleaned


def validate_update_payload(data):
    missing = [f for f in ('update_type', 'message') if _blank(data.get(f))]
    if missing:
        raise ValidationError(f"Missing required fields: {missing}")
    return {
        'update_type': str(data['update_type']).strip(),
        'message': str(data['message']).strip(),
    }


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def read_payload(req, list_fields=()):
    """
    JSON body or form fields as a plain dict. Fields in `list_fields`
    keep every submitted value (checkbox groups).
    """
    if req.is_json:
        data = req.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    data = req.form.to_dict()
    for field in list_fields:
        values = req.form.getlist(field)
        if len(values) > 1 or field in data:
            data[field] = values
    return data
