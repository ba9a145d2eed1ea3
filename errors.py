# errors.py — taxonomie d'erreurs API + rendu JSON
from __future__ import annotations

import traceback

from flask import current_app, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from extensions import db


class ApiError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None, details: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class ValidationFailure(ApiError):
    status_code = 400
    default_message = "Missing required fields"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class AccountDisabled(ApiError):
    status_code = 401
    default_message = "Tu cuenta ha sido desactivada. Contacta al administrador."


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class InternalFailure(ApiError):
    status_code = 500


def json_body() -> dict:
    """Corps JSON de la requête ; absent ou illisible → {}, autre chose qu'un objet → 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailure("Invalid JSON body")
    return data


def parse_id(value, name: str) -> int | None:
    # true/1.9 ne sont pas des identifiants
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationFailure(f"Invalid {name}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationFailure(f"Invalid {name}")
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    raise ValidationFailure(f"Invalid {name}")


def _is_production() -> bool:
    return current_app.config.get("ENV_NAME") == "production"


def commit_or_raise(action: str, conflict_message: str | None = None) -> None:
    """Commit de la session SQLAlchemy ; rollback + erreur typée en cas d'échec."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning("IntegrityError (%s): %s", action, e.orig)
        raise Conflict(conflict_message or "Duplicate value", details=str(e.orig)) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("DB error (%s)", action)
        raise InternalFailure(f"Error {action}", details=str(e)) from e


def _server_error_body(message: str, exc: BaseException | None, details: str | None = None):
    body = {"error": message}
    if not _is_production():
        if details or exc is not None:
            body["details"] = details or str(exc)
        if exc is not None:
            body["trace"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        if e.status_code >= 500:
            return jsonify(_server_error_body(e.message, e.__cause__ or e, e.details)), e.status_code
        return jsonify({"message": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error: %s", e)
        return jsonify(_server_error_body("Internal Server Error", e)), 500
