"""
Response envelope helpers: {success, data?, error?, message?}.
"""

from flask import jsonify, request

from training_api.validation import payload_of


def ok(data=None, message: str = None, status: int = 200):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status


def created(data=None, message: str = None):
    return ok(data, message, status=201)


def fail(error: str, status: int):
    return jsonify({"success": False, "error": error}), status


def json_body():
    """The request's JSON object body ({} when there is none)."""
    return payload_of(request.get_json(silent=True))


def query_arg(name: str):
    value = request.args.get(name)
    return value if value else None
