#!/usr/bin/env python3
"""
Support Relay API server

Exposes the support chat backend over JSON:
- POST   /api/chat               send a customer message, get the reply
- GET    /api/conversation       current visible messages and metadata summary
- DELETE /api/conversation       clear the conversation
- GET    /api/browsing/status    rate-limit windows and cache stats
- GET    /health                 liveness and configuration summary
"""

import logging
import os

from flask import Flask, jsonify, request

from augmentation import (
    DomainRateLimiter,
    ResponseCache,
    RetrievalAugmentor,
    WebScraper,
)
from chat import ConversationStore, SettingsStorage
from config import ProviderSettings, load_allowlist
from db import init_db
from routing import SupportOrchestrator
from version import VERSION

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_orchestrator() -> tuple[SupportOrchestrator, WebScraper]:
    """Wire the production services from the environment and settings table."""
    init_db()

    store = ConversationStore(storage=SettingsStorage())
    scraper = WebScraper(
        allowlist=load_allowlist(),
        rate_limiter=DomainRateLimiter(),
        cache=ResponseCache(),
    )
    orchestrator = SupportOrchestrator(
        store=store,
        settings=ProviderSettings.from_settings_store(),
        augmentor=RetrievalAugmentor(scraper),
    )
    return orchestrator, scraper


def create_app(
    orchestrator: SupportOrchestrator | None = None,
    scraper: WebScraper | None = None,
) -> Flask:
    """Create the API Flask application."""
    if orchestrator is None:
        orchestrator, scraper = build_orchestrator()

    application = Flask(__name__)

    @application.errorhandler(400)
    def bad_request(e):
        """Handle 400 Bad Request errors."""
        return jsonify(
            {"error": str(e.description) if hasattr(e, "description") else "Bad request"}
        ), 400

    @application.errorhandler(404)
    def not_found(e):
        """Handle 404 Not Found errors."""
        return jsonify({"error": f"Endpoint not found: {request.path}"}), 404

    @application.errorhandler(405)
    def method_not_allowed(e):
        """Handle 405 Method Not Allowed errors."""
        return jsonify(
            {"error": f"Method {request.method} not allowed for {request.path}"}
        ), 405

    @application.errorhandler(500)
    def internal_error(e):
        """Handle 500 Internal Server errors."""
        logger.exception("Internal server error")
        return jsonify({"error": "Internal server error"}), 500

    @application.route("/api/chat", methods=["POST"])
    def chat():
        data = request.get_json(silent=True) or {}
        message = data.get("message")
        if not isinstance(message, str) or not message.strip():
            return jsonify({"error": "Field 'message' must be a non-empty string"}), 400

        result = orchestrator.send_message(message)
        return jsonify(result.to_dict())

    @application.route("/api/conversation", methods=["GET"])
    def get_conversation():
        store = orchestrator.store
        return jsonify(
            {
                "messages": [m.to_dict() for m in store.messages() if m.is_visible],
                "size": store.size(),
                "summary": store.summarize(),
            }
        )

    @application.route("/api/conversation", methods=["DELETE"])
    def clear_conversation():
        orchestrator.store.clear()
        return jsonify({"cleared": True})

    @application.route("/api/browsing/status", methods=["GET"])
    def browsing_status():
        if scraper is None:
            return jsonify({"enabled": False})
        return jsonify(
            {
                "enabled": True,
                "rate_limits": scraper.rate_limit_status(),
                "cache": scraper.cache_stats(),
                "allowed_domains": [d.to_dict() for d in scraper.allowlist],
            }
        )

    @application.route("/health", methods=["GET"])
    def health():
        return jsonify(
            {
                "status": "ok",
                "version": VERSION,
                "providers": orchestrator.settings.to_dict(),
            }
        )

    return application


if __name__ == "__main__":
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8080))
    debug = os.environ.get("DEBUG", "false").lower() == "true"

    app = create_app()

    logger.info("=" * 60)
    logger.info(f"Support Relay v{VERSION}")
    logger.info(f"API server: http://{host}:{port}")
    logger.info("=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)
