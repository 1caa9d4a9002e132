from flask import request, jsonify, make_response
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from datetime import datetime

def log_rate_limit_violation(request_limit):
    """Flask-Limiter breach hook: record the breach and answer 429."""
    from sajag.extensions import db
    from sajag.models import AuditLog

    try:
        verify_jwt_in_request(optional=True)
        profile_id = get_jwt_identity()
    except Exception:
        profile_id = None

    log = AuditLog(
        profile_id=profile_id,
        action=f"RATE_LIMIT_EXCEEDED: {request.method} {request.path} ({request_limit.limit})",
        ip_address=request.remote_addr,
        timestamp=datetime.utcnow(),
    )
    db.session.add(log)
    db.session.commit()

    return make_response(jsonify({
        "error": "Rate limit exceeded. Please slow down."
    }), 429)
