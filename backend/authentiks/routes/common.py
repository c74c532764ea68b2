# Overview: Shared helpers for API routes; JSON body parsing and domain-error responses.

from flask import request, jsonify

from ..validation import ValidationError, ConflictError, NotFoundError, AccessDeniedError


def json_body(default=None):
    """
    Request JSON, or `default` ({} unless given) when the body is empty or not JSON.

    Without an explicit default the body must be a JSON object; arrays and
    scalars raise ValidationError.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {} if default is None else default
    if default is None and not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def domain_error(exc: Exception):
    """
    JSON error response for a domain exception.

    NotFoundError -> 404, AccessDeniedError -> 403, ConflictError -> 409,
    any other ValueError -> 400.
    """
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, AccessDeniedError):
        status = 403
    elif isinstance(exc, ConflictError):
        status = 409
    else:
        status = 400
    return jsonify({"error": str(exc)}), status


def query_int(name: str, default=None):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default
