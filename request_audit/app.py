import os

from flask import Flask, g, jsonify, request

from request_audit.config import load_config
from request_audit.flask_audit import install_request_audit
from request_audit.manager import RequestLogManager


def create_app(config=None, manager=None):
    """Flask application factory."""
    app = Flask(__name__)

    if manager is None:
        if config is None:
            config = load_config()
        manager = RequestLogManager(config)
    install_request_audit(app, manager)

    # --- Routes ---

    @app.route("/health")
    def health():
        active = manager.active_path
        return jsonify({
            "status": "healthy",
            "request_logging": manager.config.enabled,
            "active_file": os.path.basename(active) if active else None,
        })

    @app.route("/api/echo", methods=["POST"])
    def echo():
        payload = request.get_json(force=True, silent=True) or {}
        if isinstance(payload, dict) and payload.get("model"):
            g.model = str(payload["model"])
        return jsonify({"status": "ok", "echo": payload})

    return app
