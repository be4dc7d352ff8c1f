from flask import Flask

from config import SETTINGS
from app.logging import configure_logging

def create_app(configure_logs: bool = True):
    app = Flask(__name__)
    if configure_logs:
        configure_logging(SETTINGS.LOG_LEVEL, json_output=not SETTINGS.DEBUG)

    from app.routes.health import bp as bp_health
    from app.routes.route_generate import bp as bp_routes
    app.register_blueprint(bp_health)
    app.register_blueprint(bp_routes)

    @app.route("/")
    def home():
        return {"message": "text route service running"}, 200

    return app
