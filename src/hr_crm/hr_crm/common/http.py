from __future__ import annotations

import json
import re
from typing import Any, Dict

from flask import jsonify, request

from ..core.exceptions import ValidationError
from .serializers import to_json

_CAMEL_BREAK = re.compile(r"(?<!^)(?=[A-Z])")


def snake(name: str) -> str:
    return _CAMEL_BREAK.sub("_", name).lower()


def json_body() -> Dict[str, Any]:
    """Request body as a dict with snake_case keys; form posts are accepted too."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form.to_dict() if request.form else {}
    return {snake(k): v for k, v in data.items()}


def json_list(value, field_name: str = "value") -> Any:
    """Lists may arrive as JSON text from multipart forms."""
    if isinstance(value, str) and value.strip().startswith("["):
        try:
            return json.loads(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be a JSON array")
    return value


def success(status: int = 200, **payload):
    return jsonify({"success": True, **to_json(payload)}), status


def failure(message: str, status: int = 400, **payload):
    return jsonify({"success": False, "message": message, **to_json(payload)}), status
