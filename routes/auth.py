"""
Login routes.

The login boundary checks the demo credentials from config and hands the
core a role tag. The core itself never sees passwords.

Handles:
- POST /login   - Start a session as admin or cashier
- POST /logout  - End the session and drop its open cart
- GET  /whoami  - Current role and capabilities
"""

import hmac
import uuid

from flask import Blueprint, current_app, jsonify, session

from core.roles import Role, capabilities_for
from logging_config import get_logger
from .context import get_pos, json_payload, login_required, sanitize_text


# Module logger
logger = get_logger(__name__)

auth_bp = Blueprint("auth", __name__)


def _match_role(username: str, password: str):
    """Role for a credential pair, or None."""
    config = current_app.config
    accounts = (
        (Role.ADMIN, config.get("ADMIN_USERNAME"), config.get("ADMIN_PASSWORD")),
        (Role.CASHIER, config.get("CASHIER_USERNAME"), config.get("CASHIER_PASSWORD")),
    )
    for role, expected_user, expected_password in accounts:
        if (
            expected_user
            and username == expected_user
            and hmac.compare_digest(password.encode(), (expected_password or "").encode())
        ):
            return role
    return None


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Log in with username and password.

    On success the session carries the role tag and a fresh session id
    (which keys the session's cart).
    """
    data = json_payload()
    username = sanitize_text(data.get("username"))
    password = str(data.get("password") or "")

    role = _match_role(username, password)
    if role is None:
        logger.warning(f"Failed login for '{username}'")
        return jsonify({
            "error": "invalid_credentials",
            "message": "Invalid credentials",
            "details": {},
        }), 401

    previous_sid = session.get("sid")
    if previous_sid:
        get_pos().end_session(previous_sid)

    session.clear()
    session["role"] = role.value
    session["username"] = username
    session["sid"] = uuid.uuid4().hex
    session.modified = True

    logger.info(f"{username} logged in as {role.value}")
    return jsonify({"username": username, "role": role.value, "message": f"Welcome {username}!"})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """End the session. Safe to call when not logged in."""
    sid = session.get("sid")
    if sid:
        get_pos().end_session(sid)
        logger.info(f"{session.get('username', 'unknown')} logged out")
    session.clear()
    return jsonify({"message": "Logged out"})


@auth_bp.route("/whoami", methods=["GET"])
@login_required
def whoami():
    """Current user, role and granted capabilities."""
    role = session["role"]
    return jsonify({
        "username": session.get("username"),
        "role": role,
        "capabilities": sorted(c.value for c in capabilities_for(role)),
    })
