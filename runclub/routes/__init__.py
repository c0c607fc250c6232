from .auth import auth_bp
from .entries import entries_bp
from .events import events_bp
from .admin import admin_bp

def register_blueprints(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(entries_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(admin_bp)
