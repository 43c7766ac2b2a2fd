# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Customers self-register; staff and admin accounts come from /api/admin/staff
  or the `flask create-staff` command.
- Login returns a bearer token. The token is only ever shown once; the server
  keeps its SHA-256 hash.
- Logout always answers 200, whether or not the token was live.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..services.auth_service import DuplicateEmailError, InvalidCredentialsError
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session, token):
    return {
        "user": user.to_dict(),
        "permissions": permission_service.get_user_permissions(user),
        "token": token,
        "session": session.to_dict(),
    }


@auth_bp.post("/register")
def register_route():
    """
    Create a customer account and log it in.

    Body: name, email, password, confirm_password, contact_no,
    optional barangay, sitio, newsletter.
    """
    data = request.get_json(silent=True) or {}

    try:
        user, session, token = auth_service.register(
            data,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except DuplicateEmailError as e:
        return jsonify({"error": str(e), "field": "email"}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    body = _session_payload(user, session, token)
    body["message"] = "Registration successful"
    return jsonify(body), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and create a session token.

    Token must be sent as `Authorization: Bearer <token>` on protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    try:
        user, session, token = auth_service.login(
            email,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except InvalidCredentialsError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    body = _session_payload(user, session, token)
    body["message"] = "Login successful"
    return jsonify(body), 200


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented token (if any) and drop its cart."""
    token = bearer_token()
    try:
        if token:
            session_service.revoke_session(token, reason="User logout")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    context = g.session_context
    return jsonify({
        "user": context.user.to_dict(),
        "permissions": permission_service.get_user_permissions(context.user),
        "session": {
            "role": context.role,
            "login_time": context.session.to_dict()["login_time"],
        },
    }), 200


@auth_bp.patch("/profile")
@require_auth
def update_profile_route():
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.update_profile(g.current_user.id, data)
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"user": user.to_dict()}), 200


@auth_bp.post("/password")
@require_auth
def change_password_route():
    """Body: current_password, new_password, optional confirm_password."""
    data = request.get_json(silent=True) or {}
    new_password = data.get("new_password")

    if "confirm_password" in data and data["confirm_password"] != new_password:
        return jsonify({"error": "Passwords do not match", "field": "confirm_password"}), 400

    try:
        auth_service.change_password(
            g.current_user.id,
            data.get("current_password"),
            new_password,
        )
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    return jsonify({"message": "Password updated"}), 200
