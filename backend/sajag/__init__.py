import logging

from flask import Flask, jsonify
from flask_cors import CORS
from .config import Config
from sajag.extensions import db, jwt, limiter, migrate, socketio
from sajag.realtime import ChangeFeed


def configure_logging(app):
    level = logging.DEBUG if app.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_class=Config):
    # socket handlers must be declared before socketio.init_app builds its server
    import sajag.live  # noqa: F401

    app = Flask(__name__)
    app.config.from_object(config_class)
    # grouped counts are ordered by first occurrence; keep that order in responses
    app.json.sort_keys = False

    configure_logging(app)

    db.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config["CORS_ORIGINS"],
        message_queue=app.config.get("REDIS_URL"),
    )
    ChangeFeed(app)

    from sajag.models import TokenBlocklist
    from sajag.routes import register_routes

    register_routes(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(TokenBlocklist).filter_by(jti=jti).first()
        return token is not None

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        return jsonify({"error": f"Authentication required: {reason}"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return jsonify({"error": f"Invalid token: {reason}"}), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Token has been revoked"}), 401

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    with app.app_context():
        db.create_all()

    return app
