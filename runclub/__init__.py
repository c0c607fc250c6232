from flask import Flask
from .config import Config
from .extensions import db
from .errors import register_error_handlers


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    # Tests hand in an in-memory DB and a temp upload folder
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    register_error_handlers(app)

    return app
