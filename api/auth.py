"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/google
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me
- POST /auth/users/<user_id>/revoke (admin only) -> forced revocation

Every route is counted by the admission limiter before it runs.
The refresh token travels in an HTTP-only cookie and, as a fallback, in the
JSON body.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.auth import GoogleLoginSchema, LogoutSchema, RefreshSchema, RevokeSessionsSchema
from models.schemas.user import UserCreateSchema, UserLoginSchema, UserOutSchema
from services.errors import ValidationError
from services.session import SessionGrant
from utils.decorators import (
    bearer_token,
    client_device,
    client_ip,
    get_services,
    jwt_required,
    roles_required,
)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
google_login_schema = GoogleLoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
revoke_sessions_schema = RevokeSessionsSchema()


@bp.before_request
def admit():
    if request.method == "OPTIONS":
        return
    get_services().limiter.check(client_ip())


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _set_refresh_cookie(response, token: str):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        token,
        max_age=int(current_app.config["REFRESH_TOKEN_RETENTION"].total_seconds()),
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="Lax",
    )


def _grant_response(grant: SessionGrant, message: str):
    data = {
        "access_token": grant.access_token,
        "token_type": "bearer",
        "expires_in": grant.expires_in,
        "user": user_out_schema.dump(grant.account),
    }
    if grant.refresh_token:
        data["refresh_token"] = grant.refresh_token
    response = jsonify({"message": message, "data": data})
    if grant.refresh_token:
        _set_refresh_cookie(response, grant.refresh_token)
    return response


def _refresh_token_from_request(data: dict) -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or data.get("refresh_token")


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            name: { type: string }
            location: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    data = user_create_schema.load(_payload())
    user = get_services().session.register(
        email=data["email"],
        password=data["password"],
        name=data.get("name"),
        location=data.get("location"),
    )
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid email or password
      429:
        description: Too many requests
    """
    data = user_login_schema.load(_payload())
    grant = get_services().session.login(data["email"], data["password"], client_device(), client_ip())
    return _grant_response(grant, "Login successful"), 200


@bp.post("/google")
def google_login():
    """
    Login or register with a Google ID token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
             id_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Google token rejected
      409:
        description: Email linked to another Google account
    """
    data = google_login_schema.load(_payload())
    id_token = data.get("token") or data.get("id_token")
    grant = get_services().session.login_with_identity(id_token, client_device(), client_ip())
    return _grant_response(grant, "Login successful"), 200


@bp.post("/refresh")
def refresh():
    """
    Use the refresh token (cookie or body) to obtain a new access token.
    Body: { "refresh_token": "<token>" }
    A new refresh token is only returned when rotation is enabled.
    """
    data = refresh_schema.load(_payload())
    token = _refresh_token_from_request(data)
    if not token:
        raise ValidationError("Refresh token is required")
    grant = get_services().session.refresh(token, client_device(), client_ip())
    return _grant_response(grant, "Token refreshed successfully"), 200


@bp.post("/logout")
def logout():
    """
    logout: revokes the access token and invalidates the refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             access_token: { type: string }
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out (also when the tokens were already invalid)
    """
    data = logout_schema.load(_payload())
    access_token = bearer_token() or data.get("access_token")
    refresh_token = _refresh_token_from_request(data)
    get_services().session.logout(access_token, refresh_token)

    response = jsonify({"message": "Logged out successfully"})
    response.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"])
    return response, 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Missing, invalid, expired or revoked token
      404:
        description: Account no longer exists
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200


@bp.post("/users/<user_id>/revoke")
@roles_required(["admin"])
def revoke_sessions(user_id: str):
    """
    Admin-only: invalidate every refresh token of a user.
    Body: { "reason": "security_concern" }
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
    responses:
      200: { description: OK }
      403: { description: Not an admin }
      404: { description: Unknown user }
    """
    data = revoke_sessions_schema.load(_payload())
    count = get_services().session.revoke_sessions(user_id, data["reason"])
    return jsonify({"data": {"user_id": user_id, "revoked": count}}), 200
