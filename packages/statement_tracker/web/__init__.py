"""JSON HTTP surface for ``statement_tracker`` (Flask).

``create_app`` wires the auth and API blueprints, keeps the caller's user id
in the signed session cookie, and maps application errors to JSON responses
of the form ``{"error": "<message>"}``.
"""

from __future__ import annotations

from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, jsonify
from openai import OpenAIError
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from ..errors import (
    ExtractionError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    NotFoundError,
    UploadRejectedError,
)
from ..extraction import OpenAIStatementExtractor, StatementExtractor
from ..logging_setup import configure_logging, get_logger
from ..settings import Settings
from .api_routes import api_bp
from .auth_routes import auth_bp

_logger = get_logger("statement_tracker.web")

# Headroom for multipart framing on top of the file-size ceiling; the precise
# limit is enforced by ``validate_upload`` with a friendlier message.
_MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(NotAuthenticatedError)
    def _not_authenticated(e: NotAuthenticatedError):
        return _error(str(e), 401)

    @app.errorhandler(InvalidCredentialsError)
    def _bad_credentials(e: InvalidCredentialsError):
        return _error(str(e), 401)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return _error(str(e), 404)

    @app.errorhandler(UploadRejectedError)
    def _upload_rejected(e: UploadRejectedError):
        return _error(str(e), 400)

    @app.errorhandler(ValidationError)
    def _invalid_input(e: ValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        return _error(f"Invalid input: {details}", 400)

    @app.errorhandler(ValueError)
    def _bad_value(e: ValueError):
        return _error(str(e), 400)

    @app.errorhandler(ExtractionError)
    def _extraction_failed(e: ExtractionError):
        return _error(f"Failed to process statement: {e}", 502)

    @app.errorhandler(OpenAIError)
    def _provider_failed(e: OpenAIError):
        _logger.warning("extraction provider error: %s", e)
        return _error(f"Failed to process statement: {e}", 502)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)


def create_app(
    settings: Settings | None = None,
    *,
    extractor: StatementExtractor | None = None,
) -> Flask:
    """Build the Flask application.

    Parameters
    ----------
    settings:
        Resolved settings; defaults to :meth:`Settings.from_env` after loading
        a local ``.env`` (existing variables win).
    extractor:
        Extraction backend; defaults to :class:`OpenAIStatementExtractor`
        using ``settings.model``.
    """

    if settings is None:
        load_dotenv(override=False)
        settings = Settings.from_env()
    configure_logging()

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=settings.secret_key,
        MAX_CONTENT_LENGTH=settings.max_upload_bytes + _MULTIPART_OVERHEAD_BYTES,
        PERMANENT_SESSION_LIFETIME=timedelta(days=30),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
    )
    app.extensions["statement_tracker"] = {
        "settings": settings,
        "extractor": extractor or OpenAIStatementExtractor(model=settings.model),
    }

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
    _register_error_handlers(app)
    return app


__all__ = ["create_app"]
