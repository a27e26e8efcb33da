# Overview: JSON response envelope used by every route.

from flask import jsonify

from .errors import PosError


def success(data=None, message: str | None = None, status: int = 200):
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def error(message: str, status: int, details: dict | None = None):
    body = {"status": "error", "message": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def from_exception(exc: PosError):
    return error(exc.message, exc.status_code, exc.details or None)
