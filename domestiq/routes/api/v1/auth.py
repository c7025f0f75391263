from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from domestiq.decorators import json_body
from domestiq.services import AuthService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/register")
@json_body("full_name", "email", "password", "role", "phone")
def api_register(payload):
    user = AuthService.register_user(
        full_name=payload["full_name"],
        email=payload["email"],
        password=payload["password"],
        role=payload["role"],
        phone=payload["phone"],
    )
    login_user(user)
    return jsonify(user.to_dict()), 201


@api_auth_bp.post("/login")
@json_body("email", "password")
def api_login(payload):
    user = AuthService.authenticate_user(payload["email"], payload["password"])
    login_user(user)
    return jsonify(user.to_dict())


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_auth_bp.get("/me")
@login_required
def api_me():
    return jsonify(current_user.to_dict())
