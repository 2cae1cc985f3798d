import logging

from flask import Flask, g, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.registry.config import load_config
from app.registry.models import Base  # noqa: F401  (registers every table before module imports)
from app.registry.errors import AlreadyInitialized, RegistryError
from app.registry.service import create_registry
from app.registry.auth import load_current_principal
from app.registry.routes import bp as routes_bp
from app.registry.api import bp as api_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")

    registry = create_registry(app.config["DATABASE_URL"], env=env)
    app.extensions["registry"] = registry

    owner = app.config.get("REGISTRY_OWNER")
    if owner:
        try:
            registry.initialize(owner)
        except AlreadyInitialized:
            app.logger.info("Registry already initialized; REGISTRY_OWNER=%s ignored", owner)
        if registry.is_owner(owner):
            for verifier in app.config.get("REGISTRY_VERIFIERS") or ():
                registry.add_verifier(owner, verifier)
        else:
            app.logger.warning("REGISTRY_OWNER=%s is not the registry owner; verifiers not provisioned", owner)

    app.before_request(load_current_principal)

    app.register_blueprint(routes_bp)
    app.register_blueprint(api_bp, url_prefix="/api")

    @app.errorhandler(RegistryError)
    def _err_registry(e: RegistryError):  # type: ignore[no-redef]
        return jsonify({"error": e.code, "message": e.message}), e.status

    @app.errorhandler(ValueError)
    def _err_value(e: ValueError):  # type: ignore[no-redef]
        return jsonify({"error": "bad_request", "message": str(e)}), 400

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        if e.code == 403:
            app.logger.warning(
                "Forbidden: principal=%s request_id=%s",
                getattr(g, "principal", None),
                getattr(g, "request_id", None),
            )
        return jsonify({"error": (e.name or "error").lower().replace(" ", "_"), "message": e.description}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "internal_error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
