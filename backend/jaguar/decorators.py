# Overview: Request decorators for API routes (error translation, JSON bodies).

from functools import wraps

from flask import current_app, jsonify, request

from .errors import LedgerError, ValidationError


def json_errors(f):
    """
    Translate domain errors into JSON responses.

    - LedgerError subclasses -> {"error", "code", "details"} with their status
    - anything else -> logged with traceback, generic 500

    Units of work have already rolled back by the time an error gets here.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LedgerError as e:
            return jsonify(e.to_dict()), e.status_code
        except Exception:
            current_app.logger.exception("Unhandled error in %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}), 500

    return decorated_function


def json_payload() -> dict:
    """
    The request body as a dict.

    Form posts (the payment form uploads a voucher) are accepted as flat
    dicts so handlers read both the same way.
    """
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    if request.form:
        return request.form.to_dict()
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
