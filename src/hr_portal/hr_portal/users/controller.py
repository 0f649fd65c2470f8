from __future__ import annotations

import logging

from flask import Flask, session

from ..common.validators import parse_role, require_int
from ..common.web import (
    current_role,
    current_user_id,
    domain_error,
    fail,
    hr_required,
    json_body,
    login_required,
    ok,
    server_error,
)
from ..container import Container
from ..core.exceptions import AuthenticationError, DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.before_request
    def refresh_session():
        # Role and active flag come from the user row, not from the cookie.
        if "user_id" not in session:
            return None
        try:
            s_user = container.auth_service.resolve_session(int(session["user_id"]))
        except AuthenticationError:
            logger.info("Dropping session of inactive or missing user %s", session.get("user_id"))
            session.clear()
            return None
        except Exception:
            logger.exception("Could not refresh session")
            return server_error()
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        return None

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        body = json_body()
        try:
            s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

            session.clear()
            session.permanent = True

            session["user_id"] = s_user.user_id
            session["name"] = s_user.name
            session["role"] = s_user.role.value

            logger.info("User %s logged in", s_user.user_id)
            return ok({"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value}, message="Login successful")
        except AuthenticationError as e:
            logger.info("Rejected login for %r", body.get("email"))
            return domain_error(e)
        except Exception:
            logger.exception("Login failed")
            return server_error()

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @login_required
    def me():
        try:
            s_user = container.auth_service.resolve_session(current_user_id())
            return ok({"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value})
        except AuthenticationError as e:
            session.clear()
            return domain_error(e)
        except Exception:
            logger.exception("Could not resolve session")
            return server_error()

    @app.route("/api/hr/create-user", methods=["POST"], endpoint="api_create_user")
    @hr_required
    def create_user():
        body = json_body()
        try:
            user_id = container.user_service.create_account(
                current_role=current_role(),
                name=body.get("name", ""),
                email=body.get("email", ""),
                password=body.get("password", ""),
                role=parse_role(body.get("role")),
            )
            return ok({"id": user_id}, status=201, message="User created successfully.")
        except DomainError as e:
            logger.info("Create user rejected: %s", e)
            return domain_error(e)
        except Exception:
            logger.exception("Create user failed")
            return server_error()

    @app.route("/api/hr/toggle-status", methods=["PUT"], endpoint="api_toggle_status")
    @hr_required
    def toggle_status():
        body = json_body()
        if "isActive" not in body or not isinstance(body.get("isActive"), bool):
            return fail("userId and a boolean isActive are required.")
        try:
            user = container.user_service.set_active(
                current_role=current_role(),
                user_id=require_int(body.get("userId"), "userId"),
                is_active=body["isActive"],
            )
            status = "activated" if user.is_active else "deactivated"
            return ok(user.as_public_dict(), message=f"User {status}.")
        except DomainError as e:
            logger.info("Toggle status rejected: %s", e)
            return domain_error(e)
        except Exception:
            logger.exception("Toggle status failed")
            return server_error()

    @app.route("/api/users/list", methods=["GET"], endpoint="api_list_users")
    @hr_required
    def list_users():
        try:
            users = container.user_service.list_users()
            return ok([u.as_public_dict() for u in users])
        except Exception:
            logger.exception("List users failed")
            return server_error()
