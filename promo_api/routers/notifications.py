from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from promo_api.core.responses import error_response, fail, ok
from promo_api.db.models import User
from promo_api.domain.constants import NotificationStatus
from promo_api.services.notifications_service import NotificationError, NotificationsService
from promo_api.services.session_service import current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _get_notifications_service(request: Request) -> NotificationsService:
    svc = getattr(getattr(request.app, "state", None), "notifications_service", None)
    if not svc:
        raise RuntimeError("NotificationsService nao configurado")
    return svc


@router.get("")
def list_notifications(
    request: Request,
    limit: int = 20,
    last_key: Optional[str] = Query(None, alias="lastKey"),
    status: Optional[str] = None,
    user: User = Depends(current_user),
):
    if limit < 1 or limit > 100:
        return fail("Limit must be between 1 and 100")
    status_filter = None
    if status:
        try:
            status_filter = NotificationStatus(status)
        except ValueError:
            return fail("Status must be UNREAD or READ")
    try:
        page = _get_notifications_service(request).get_user_notifications(
            user.id, limit=limit, last_key=last_key or None, status=status_filter
        )
    except NotificationError as exc:
        return error_response(exc)
    return ok(page.to_dict())


@router.get("/unread-count")
def unread_count(request: Request, user: User = Depends(current_user)):
    try:
        count = _get_notifications_service(request).get_unread_count(user.id)
    except NotificationError as exc:
        return error_response(exc)
    return ok({"count": count})


@router.patch("/read-all")
def mark_all_as_read(request: Request, user: User = Depends(current_user)):
    try:
        count = _get_notifications_service(request).mark_all_as_read(user.id)
    except NotificationError as exc:
        return error_response(exc)
    return ok({"message": "All notifications marked as read", "count": count})


@router.get("/{notification_id}")
def get_notification(notification_id: str, request: Request, user: User = Depends(current_user)):
    try:
        notification = _get_notifications_service(request).get_notification(user.id, notification_id)
    except NotificationError as exc:
        return error_response(exc)
    return ok(notification)


@router.patch("/{notification_id}/read")
def mark_as_read(notification_id: str, request: Request, user: User = Depends(current_user)):
    try:
        _get_notifications_service(request).mark_as_read(user.id, notification_id)
    except NotificationError as exc:
        return error_response(exc)
    return ok({"message": "Notification marked as read"})


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, request: Request, user: User = Depends(current_user)):
    try:
        _get_notifications_service(request).delete_notification(user.id, notification_id)
    except NotificationError as exc:
        return error_response(exc)
    return ok({"message": "Notification deleted successfully"})
