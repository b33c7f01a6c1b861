"""
Audit layer API package.

Flask blueprints that host the complaint registry:
- complaints: operation dispatch, tool manifest, complaint reads
- monitoring: health checks and metrics
"""

from flask import Flask

from api.complaints import complaints_bp
from api.monitoring import monitoring_bp

# Tuple format: (blueprint, url_prefix)
ALL_BLUEPRINTS = [
    (complaints_bp, ''),
    (monitoring_bp, ''),
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    for blueprint, url_prefix in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=url_prefix)


def create_app(load_state: bool = True) -> Flask:
    """
    Build the Flask application.

    Args:
        load_state: Load the saved registry from storage before serving
    """
    from api import state
    from monitoring import setup_request_logging

    app = Flask(__name__)
    app.json.sort_keys = False

    register_blueprints(app)
    setup_request_logging(app)

    if load_state:
        state.load_registry()

    return app
