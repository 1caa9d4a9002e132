from functools import wraps
from flask_jwt_extended import get_jwt_identity
from flask import jsonify
from sajag.extensions import db
from sajag.models import Profile
from utils.access_control import role_name, TRAINING_CREATOR_ROLES

def get_current_profile():
    profile_id = get_jwt_identity()
    if not profile_id:
        return None
    return db.session.get(Profile, profile_id)

def role_required(*allowed_roles):
    """
    Restrict access to profiles with specific roles.
    Usage: @role_required("admin", "ndma_official")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            profile_id = get_jwt_identity()
            if not profile_id:
                return jsonify({"error": "Missing or invalid JWT token"}), 401

            profile = db.session.get(Profile, profile_id)
            if not profile:
                return jsonify({"error": "User not found"}), 401

            if role_name(profile).lower() not in allowed_roles:
                return jsonify({"error": "Access forbidden: insufficient permissions"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator

def training_creator_required():
    """
    Only profiles that may create training programs get through;
    everyone else (e.g. field officers) is turned away with a 403.
    """
    return role_required(*sorted(role.value for role in TRAINING_CREATOR_ROLES))
