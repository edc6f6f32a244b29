"""
Validation API - Flask Application.

This module wires the validation engine into Flask: decorators that run the
request pipes before a view, an error handler turning RequestValidationError
into a 400 response, and the application factory.

Architecture:
    Every request follows a trim-validate-handle pattern:
    1. Parse the JSON body (or the query string)
    2. Strip surrounding whitespace from every string
    3. Validate against the contract given to the decorator
    4. Put the validated value on ``flask.g.validated``
    5. Call the view

    The engine is created once in create_app() and stored in
    ``app.config["VALIDATION_ENGINE"]``; views and decorators read it from
    there, so tests can inject their own.

Error Handling:
    Returns appropriate HTTP status codes:
    - 200/201: Success
    - 400: Non-JSON body or contract violation

    Validation errors answer with:
        {
          "status": "error",
          "message": "Validation failed",
          "details": [{"field": "email", "message": "Please enter a valid email address"}]
        }

Endpoints:
    GET  /health   Liveness check
    POST /users    Validates a CreateUser request and echoes it back
    GET  /users    Validates pagination query parameters and echoes them back

Functions:
    validate_body(schema): Decorator validating the JSON body
    validate_query(schema, array_fields): Decorator validating the query string
    create_app(engine, config): Application factory
    main(): Console entry point serving the app with Gunicorn
"""
import functools
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterable, Optional

from flask import Flask, current_app, g, jsonify, request
from flask_cors import CORS

from api.pipes import ArrayQueryParamPipe, QueryParamPipe, RequestValidationError, SchemaPipe, trim_deep
from config import load_config
from schema import CREATE_USER_REQUEST_SCHEMA, PAGINATION_QUERY_SCHEMA
from validation import ValidationEngine, create_engine

logger = logging.getLogger(__name__)

ENGINE_KEY = "VALIDATION_ENGINE"


def _engine() -> ValidationEngine:
    return current_app.config[ENGINE_KEY]


def validate_body(schema: Any):
    """Validate the JSON body of the request against ``schema``.

    Example:
        >>> @app.route("/users", methods=["POST"])
        ... @validate_body(CREATE_USER_REQUEST_SCHEMA)
        ... def create_user():
        ...     return jsonify(g.validated), 201
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            if not request.is_json:
                logger.warning(f"Rejected non-JSON request to {request.path}")
                return jsonify({"status": "error", "message": "Content-Type must be application/json"}), 400
            body = request.get_json(silent=True)
            if body is None:
                logger.warning(f"Rejected malformed JSON request to {request.path}")
                return jsonify({"status": "error", "message": "Request body must be valid JSON"}), 400
            g.validated = SchemaPipe(_engine(), schema).transform(trim_deep(body))
            return view(*args, **kwargs)

        return wrapper

    return decorator


def validate_query(schema: Any, array_fields: Iterable[str] = ()):
    """Convert and validate the query string against ``schema``.

    Args:
        schema: Query contract
        array_fields: Fields that always hold a list, even when given once
    """
    fields = tuple(array_fields)

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            params: Dict[str, Any] = {
                key: values if len(values) > 1 else values[0]
                for key, values in request.args.lists()
            }
            params = ArrayQueryParamPipe(fields).transform(trim_deep(params))
            g.validated = QueryParamPipe(_engine(), schema).transform(params)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def create_app(engine: Optional[ValidationEngine] = None, config: Optional[Dict[str, Any]] = None) -> Flask:
    """Factory function to create and configure the Flask application.

    Args:
        engine: Validation engine to use (if None, built from config)
        config: Optional configuration dictionary (if None, will be loaded from config.yml)

    Returns:
        Configured Flask application instance

    Example:
        >>> app = create_app(ValidationEngine())
        >>> client = app.test_client()
    """
    app = Flask(__name__)

    if config is None:
        config = load_config()

    cors_config = config.get("cors", {})
    if cors_config.get("enabled", False):
        cors_origins = cors_config.get("origins", [])
        if cors_origins:
            CORS(app, origins=cors_origins)
            logger.info(f"CORS enabled for origins: {cors_origins}")
        else:
            logger.warning("CORS enabled but no origins configured")
    else:
        logger.info("CORS is disabled in configuration")

    if engine is None:
        engine = create_engine(config)
    app.config[ENGINE_KEY] = engine

    @app.errorhandler(RequestValidationError)
    def handle_validation_error(error: RequestValidationError):
        return jsonify(error.to_dict()), error.status_code

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint for monitoring.

        Example:
            $ curl http://localhost:5000/health
            {"status": "healthy"}
        """
        return jsonify({"status": "healthy"}), 200

    @app.route("/users", methods=["POST"])
    @validate_body(CREATE_USER_REQUEST_SCHEMA)
    def create_user():
        user = g.validated
        logger.info(f"Accepted user creation request for {user['email']}")
        return jsonify({"status": "success", "data": user}), 201

    @app.route("/users", methods=["GET"])
    @validate_query(PAGINATION_QUERY_SCHEMA, array_fields=("status",))
    def list_users():
        return jsonify({"status": "success", "query": g.validated, "data": []}), 200

    return app


def main(debug: bool = False) -> None:
    """Console entry point: configure logging and serve the API with Gunicorn.

    Args:
        debug: Enable debug logging and attach raw errors to results. Can also
               be set with --debug or the VALIDATION_DEBUG environment variable.
    """
    from gunicorn.app.base import BaseApplication

    if not debug:
        debug = os.environ.get("VALIDATION_DEBUG", "").lower() in ("true", "1", "yes")
        if "--debug" in sys.argv[1:]:
            debug = True

    config = load_config()
    server_config = config.get("server", {})
    if debug:
        config.setdefault("validation", {})["debug"] = True

    log_level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # 10MB per file, 3 backups
    log_handler = RotatingFileHandler(
        server_config.get("log_file", "validation.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=3
    )
    log_handler.setLevel(log_level)
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if debug:
        logger.info("Debug mode enabled: raw errors are attached to validation results")

    app = create_app(config=config)
    gunicorn_config = os.path.join(os.path.dirname(__file__), "gunicorn_config.py")

    class StandaloneApplication(BaseApplication):
        """Gunicorn application serving an already created Flask app."""

        def __init__(self, application, options=None):
            self.options = options or {}
            self.application = application
            super().__init__()

        def load_config(self):
            config_file = self.options.get("config")
            if config_file:
                namespace: Dict[str, Any] = {}
                with open(config_file, "r") as f:
                    exec(f.read(), namespace)
                for key, value in namespace.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)
            for key in ("bind", "workers"):
                if server_config.get(key) is not None:
                    self.cfg.set(key, server_config[key])
            if self.options.get("debug"):
                self.cfg.set("timeout", 0)

        def load(self):
            return self.application

    StandaloneApplication(app, {"config": gunicorn_config, "debug": debug}).run()


if __name__ == "__main__":
    main()
