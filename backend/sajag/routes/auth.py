from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required,
    get_jwt_identity, get_jwt, verify_jwt_in_request
)
from sajag.models import Profile, RoleEnum, TokenBlocklist
from sajag.extensions import db, limiter
from utils.audit import log_event
from utils.access_control import can_create_training
from utils.validation import read_payload
from datetime import datetime
import re

auth_bp = Blueprint('auth', __name__)
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _set_token_cookies(response, access_token=None, refresh_token=None):
    secure_flag = current_app.config["JWT_COOKIE_SECURE"]
    same_site = current_app.config["JWT_COOKIE_SAMESITE"]

    if access_token:
        response.set_cookie(
            "access_token_cookie",
            access_token,
            max_age=int(current_app.config["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds()),
            httponly=True,
            secure=secure_flag,
            samesite=same_site,
            path="/"
        )
    if refresh_token:
        response.set_cookie(
            "refresh_token_cookie",
            refresh_token,
            max_age=int(current_app.config["JWT_REFRESH_TOKEN_EXPIRES"].total_seconds()),
            httponly=True,
            secure=secure_flag,
            samesite=same_site,
            path="/auth/refresh"
        )
    return response


def _access_token_for(profile):
    return create_access_token(
        identity=profile.id,
        additional_claims={"role": profile.role.value}
    )


def _caller_is_admin():
    verify_jwt_in_request(optional=True)
    profile_id = get_jwt_identity()
    caller = db.session.get(Profile, profile_id) if profile_id else None
    return caller is not None and caller.role is RoleEnum.admin


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def register():
    """
    Open sign-up creates field officers. Any other role is granted only
    when a signed-in admin registers the profile.
    """
    data = read_payload(request)
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    full_name = (data.get('full_name') or '').strip()
    role_name = str(data.get('role') or RoleEnum.field_officer.value).strip()

    missing = [f for f, v in (('email', email), ('password', password), ('full_name', full_name)) if not v]
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    if not EMAIL_PATTERN.match(email):
        return jsonify({"error": "Invalid email format"}), 400

    if len(password) < 8:
        return jsonify({"error": "Password must be at least 8 characters"}), 400

    try:
        role = RoleEnum(role_name)
    except ValueError:
        return jsonify({"error": f"Role '{role_name}' not found"}), 400

    if role is not RoleEnum.field_officer and not _caller_is_admin():
        role = RoleEnum.field_officer

    if Profile.query.filter_by(email=email).first():
        return jsonify({"error": "Email already registered"}), 400

    profile = Profile(
        email=email,
        full_name=full_name,
        role=role,
        organization=data.get('organization'),
        state=data.get('state'),
        district=data.get('district'),
        phone=data.get('phone'),
    )
    profile.set_password(password)

    db.session.add(profile)
    db.session.commit()

    log_event("PROFILE_REGISTERED", user_id=profile.id, ip=request.remote_addr, description=f"{email} as {role.value}")
    return jsonify({
        "message": "User created",
        "user_id": profile.id,
        "role": role.value
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    ip = request.remote_addr

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    profile = Profile.query.filter_by(email=email).first()

    if profile and profile.check_password(password):
        access_token = _access_token_for(profile)
        refresh_token = create_refresh_token(identity=profile.id)

        response = make_response(jsonify({"message": "Login successful", "user": profile.to_dict()}))
        _set_token_cookies(response, access_token, refresh_token)

        log_event("LOGIN_SUCCESS", user_id=profile.id, ip=ip, description=f"{email} logged in")
        return response

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {email}", level="WARNING")
    return jsonify({"error": "Invalid email or password"}), 401


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    profile = db.get_or_404(Profile, get_jwt_identity())

    output = profile.to_dict()
    output["can_create_training"] = can_create_training(profile)
    return jsonify(output), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True, locations=["cookies"])
def refresh_access_token():
    profile = db.session.get(Profile, get_jwt_identity())
    if not profile:
        return jsonify({"error": "User not found"}), 404

    response = make_response(jsonify({"message": "Token refreshed"}))
    _set_token_cookies(response, access_token=_access_token_for(profile))

    log_event("REFRESH_TOKEN", user_id=profile.id, ip=request.remote_addr)
    return response


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    token = get_jwt()
    profile_id = get_jwt_identity()

    db.session.add(TokenBlocklist(
        jti=token["jti"],
        token_type=token.get("type", "access"),
        profile_id=profile_id,
        expires_at=datetime.fromtimestamp(token["exp"]),
    ))
    db.session.commit()

    response = make_response(jsonify({"message": "Successfully logged out"}))
    response.delete_cookie("access_token_cookie", path="/")
    response.delete_cookie("refresh_token_cookie", path="/auth/refresh")

    log_event("LOGOUT", user_id=profile_id, ip=request.remote_addr)
    return response
