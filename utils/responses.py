"""JSON envelopes shared by every endpoint."""

from __future__ import annotations

import uuid
from http import HTTPStatus
from typing import Any

from flask import Response, g, jsonify


def success_response(data: Any, status: int = HTTPStatus.OK) -> tuple[Response, int]:
    return jsonify({"status": "success", "data": data}), status


def error_response(
    code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
    message: str = "Something went wrong. Please try again.",
) -> Response:
    """Build the error envelope, tagged with the current request ID."""

    if not g.get("request_id"):
        g.request_id = str(uuid.uuid4())
    response = jsonify(
        {
            "status": "error",
            "error": {"code": int(code), "message": message},
            "request_id": g.request_id,
        }
    )
    response.status_code = int(code)
    return response
