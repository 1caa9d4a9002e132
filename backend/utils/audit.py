import logging
import os
from datetime import datetime

AUDIT_LOG_FILE = os.path.join(os.getenv("LOG_DIR", "logs"), "audit.log")

logger = logging.getLogger("sajag.audit")

def log_event(event_type, user_id=None, ip=None, description=None, level="INFO"):
    """
    Records an audit event (logins, program creation, attendance changes,
    field updates) in logs/audit.log and on the "sajag.audit" logger.

    Parameters:
        event_type (str): e.g. LOGIN_SUCCESS, TRAINING_CREATED, ATTENDANCE_TOGGLED.
        user_id (str|None): The acting profile id, if known.
        ip (str|None): Remote address, if known.
        description (str|None): Free-text context.
        level (str): INFO, WARNING or ERROR.
    """
    os.makedirs(os.path.dirname(AUDIT_LOG_FILE), exist_ok=True)

    timestamp = datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')
    message = (
        f"EVENT: {event_type} | USER: {user_id or 'N/A'} | "
        f"IP: {ip or 'N/A'} | DESC: {description or 'N/A'}"
    )

    with open(AUDIT_LOG_FILE, "a") as log_file:
        log_file.write(f"[{timestamp}] [{level.upper()}] {message}\n")

    logger.log(logging.getLevelName(level.upper()), message)
    return message
