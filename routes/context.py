"""
Request helpers shared by the blueprints.

The login boundary stores the role tag and a session id in the Flask
session; current_terminal() turns them into a role-bound Terminal.
"""

from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Dict, Optional

import bleach
from flask import current_app, jsonify, request, session

from core.exceptions import ValidationError
from services.pos_service import PointOfSale, Terminal


# Constants
MAX_NAME_LENGTH = 80


def get_pos() -> PointOfSale:
    """The application's PointOfSale (created in create_app)."""
    return current_app.config["POS"]


def current_terminal() -> Terminal:
    """Terminal for the logged-in session (use under @login_required)."""
    return get_pos().terminal(session["role"], session["sid"])


def login_required(view):
    """Reject requests without a logged-in role with 401."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not session.get("role") or not session.get("sid"):
            return jsonify({
                "error": "unauthenticated",
                "message": "Please log in first.",
                "details": {},
            }), 401
        return view(*args, **kwargs)

    return wrapped


def sanitize_text(text: Optional[str], max_length: Optional[int] = MAX_NAME_LENGTH) -> str:
    """Sanitize user input text."""
    if not text:
        return ""
    text = str(text).strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def json_payload() -> Dict[str, Any]:
    """
    Request body as a dict (JSON, or form fields as a fallback).

    Raises:
        ValidationError: If the JSON body is not an object
    """
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.form.to_dict()


def parse_flag(value: Any, default: bool = True) -> bool:
    """Interpret a query-string flag ('1', 'true', 'no', ...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_date_arg(name: str) -> Optional[date]:
    """
    Read an ISO date (YYYY-MM-DD) from the query string.

    Raises:
        ValidationError: If the value is not a valid date
    """
    value = request.args.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field=name)


def parse_int_arg(name: str) -> Optional[int]:
    """Read an integer from the query string (None when absent)."""
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)
