from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..auth import (
    authenticate,
    convert_anonymous_user,
    create_anonymous_user,
    logged_in_user,
    register_user,
)
from ..models import Credentials, LoginInput
from .context import current_context, db_session, sign_in, sign_out

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/anonymous")
def start_anonymous():
    with db_session() as s:
        user = create_anonymous_user(s)
    sign_in(user["id"])
    return jsonify(user), 201


@auth_bp.post("/register")
def register():
    creds = Credentials.model_validate(request.get_json(force=True, silent=False))
    with db_session() as s:
        user = register_user(s, email=creds.email, password=creds.password, name=creds.name)
    sign_in(user["id"])
    return jsonify(user), 201


@auth_bp.post("/login")
def login():
    creds = LoginInput.model_validate(request.get_json(force=True, silent=False))
    with db_session() as s:
        user = authenticate(s, email=creds.email, password=creds.password)
    sign_in(user["id"])
    return jsonify(user)


@auth_bp.post("/convert")
def convert():
    creds = Credentials.model_validate(request.get_json(force=True, silent=False))
    with db_session() as s:
        user = convert_anonymous_user(
            s,
            current_context(),
            email=creds.email,
            password=creds.password,
            name=creds.name,
        )
    return jsonify(user)


@auth_bp.post("/logout")
def logout():
    sign_out()
    return "", 204


@auth_bp.get("/me")
def me():
    with db_session() as s:
        user = logged_in_user(s, current_context())
    return jsonify(user)
