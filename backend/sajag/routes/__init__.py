from .auth import auth_bp
from .base_route import base_bp
from .dashboard import dashboard_bp
from .trainings import trainings_bp
from .participants import participants_bp
from .updates import updates_bp
from .analytics import analytics_bp
from .map import map_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.register_blueprint(trainings_bp, url_prefix='/trainings')
    app.register_blueprint(participants_bp, url_prefix='/trainings')
    app.register_blueprint(updates_bp)
    app.register_blueprint(analytics_bp, url_prefix='/analytics')
    app.register_blueprint(map_bp, url_prefix='/map')
