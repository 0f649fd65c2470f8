from __future__ import annotations

import logging

from flask import Flask

from ..common.web import current_user_id, domain_error, json_body, login_required, ok, server_error
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications")
    @login_required
    def list_notifications():
        try:
            items = container.notification_service.list_for_user(current_user_id())
            return ok([n.as_dict() for n in items])
        except Exception:
            logger.exception("Listing notifications failed")
            return server_error()

    @app.route("/api/notification/mark-as-read", methods=["POST"], endpoint="api_mark_notifications_read")
    @login_required
    def mark_as_read():
        body = json_body()
        try:
            count = container.notification_service.mark_as_read(current_user_id(), body.get("notificationIds"))
            return ok({"updated": count}, message="Notifications marked as read.")
        except DomainError as e:
            return domain_error(e)
        except Exception:
            logger.exception("Marking notifications failed")
            return server_error()
