"""
HTTP surface (Flask) over SpiritService.

Endpoints:
  GET /users/<username>                   -> simplified profile
  GET /users/<username>/activity          -> windows, heatmap, trends, codeQuality, engagement
  GET /users/<username>/social            -> followers/following daily totals (last 30 days)
  GET /users/<username>/spirit-analysis   -> archetype classification
  GET /users/<username>/dashboard         -> the four sections above in one response
  GET /healthz

Run:
  export GITHUB_TOKEN="github_pat_..."
  python server.py
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from errors import SpiritError, RateLimitExceededError
from evaluator import SpiritService
from settings import Settings

logger = logging.getLogger(__name__)


def _error_response(ex: SpiritError):
    resp = jsonify(ex.to_dict())
    resp.status_code = ex.status
    if isinstance(ex, RateLimitExceededError):
        resp.headers['Retry-After'] = str(ex.retry_after())
    return resp


def create_app(service: Optional[SpiritService] = None) -> Flask:
    """Build the Flask app; the service (client + cache) is shared by every request."""
    if service is None:
        service = SpiritService.from_settings(Settings.from_env())
    app = Flask(__name__)
    app.config['SPIRIT_SERVICE'] = service

    @app.errorhandler(SpiritError)
    def handle_spirit_error(ex: SpiritError):
        if ex.status >= 500:
            logger.error(f"{ex.kind} error: {ex.message}")
        return _error_response(ex)

    @app.route("/users/", defaults={'username': ''}, methods=["GET"])
    @app.route("/users/<username>", methods=["GET"])
    def user_profile(username):
        return jsonify(service.profile(username).to_dict())

    @app.route("/users/<username>/activity", methods=["GET"])
    def user_activity(username):
        return jsonify(service.activity(username).to_dict())

    @app.route("/users/<username>/social", methods=["GET"])
    def user_social(username):
        return jsonify(service.social(username).to_dict())

    @app.route("/users/<username>/spirit-analysis", methods=["GET"])
    def user_spirit(username):
        return jsonify(service.spirit(username).to_dict())

    @app.route("/users/<username>/dashboard", methods=["GET"])
    def user_dashboard(username):
        return jsonify(service.dashboard(username))

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return jsonify({"ok": True, "cache": service.cache.stats()})

    return app


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    port = int(os.getenv("PORT", "5000"))
    create_app().run(host="0.0.0.0", port=port)
