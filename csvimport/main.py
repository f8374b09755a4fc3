from flask import Flask

from . import config
from .db import init_db
from .routes.api import bp as api_bp


def create_app() -> Flask:
    init_db()
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES
    app.register_blueprint(api_bp)
    return app
