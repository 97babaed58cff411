from fastapi import APIRouter, HTTPException, Depends
from app.dependencies.auth import get_current_user
from app.dependencies.roles import admin_required
from app.dependencies.services import get_notification_store
from app.schemas.notification import NotificationCreate, TargetAchievementRequest
from app.utils.notification_helpers import default_path_for_type, format_relative_time, notify_target_achievement
from app.utils.read_state import is_visible, unread_count, visible_notifications
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _visible_or_404(store, notification_id: str, current_user: dict) -> dict:
    notification = store.get(notification_id)
    if notification is None or not is_visible(notification, current_user):
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


def _with_relative_time(notification: dict) -> dict:
    """Add relativeTime; a record with an unreadable createdAt is returned as is."""
    created_at = notification.get("createdAt")
    if not created_at:
        return notification
    try:
        return {**notification, "relativeTime": format_relative_time(created_at)}
    except (AttributeError, TypeError, ValueError):
        logger.warning(f"Notification {notification.get('id')} has an unreadable createdAt: {created_at!r}")
        return notification


@router.get("/", response_model=dict)
async def get_user_notifications(
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store),
    skip: int = 0,
    limit: int = 50
):
    """Get notifications visible to the current user (by username, role or public)"""
    notifications = visible_notifications(store.list(), current_user)
    page = notifications[skip:skip + limit]

    return {
        "success": True,
        "notifications": [_with_relative_time(n) for n in page],
        "total_count": len(notifications),
        "unread_count": unread_count(notifications, current_user),
        "has_more": skip + limit < len(notifications)
    }


@router.get("/unread-count", response_model=dict)
async def get_unread_count(
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store)
):
    return {"success": True, "unread_count": unread_count(store.list(), current_user)}


@router.post("/", response_model=dict)
async def create_notification(
    notification: NotificationCreate,
    current_user: dict = Depends(admin_required),
    store=Depends(get_notification_store)
):
    """Create a notification for a user, a list of users, roles, or everyone"""
    if "path" not in notification.model_fields_set:
        notification.path = default_path_for_type(notification.type)

    created = store.add(notification)
    if not created:
        raise HTTPException(status_code=400, detail="Notification was not created")

    logger.info(f"{current_user['username']} created {len(created)} notification(s)")
    return {
        "success": True,
        "notification_ids": [n["id"] for n in created],
        "message": "Notification created successfully"
    }


@router.post("/target-achievement", response_model=dict)
async def create_target_achievement(
    request: TargetAchievementRequest,
    current_user: dict = Depends(admin_required),
    store=Depends(get_notification_store)
):
    created = notify_target_achievement(store, request.employee_name, request.percentage)
    return {
        "success": True,
        "notification_ids": [n["id"] for n in created]
    }


@router.put("/read-all", response_model=dict)
async def mark_all_notifications_read(
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store)
):
    """Mark every notification visible to the current user as read"""
    count = store.mark_all_read(lambda n: is_visible(n, current_user))
    return {
        "success": True,
        "message": f"Marked {count} notifications as read"
    }


@router.put("/{notification_id}/read", response_model=dict)
async def mark_notification_read(
    notification_id: str,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store)
):
    _visible_or_404(store, notification_id, current_user)
    store.mark_read(notification_id)
    return {
        "success": True,
        "message": "Notification marked as read"
    }


@router.post("/{notification_id}/open", response_model=dict)
async def open_notification(
    notification_id: str,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store)
):
    """Mark as read and return the client route the notification points to"""
    _visible_or_404(store, notification_id, current_user)
    return {"success": True, "path": store.navigate(notification_id)}


@router.delete("/{notification_id}", response_model=dict)
async def delete_notification(
    notification_id: str,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_notification_store)
):
    _visible_or_404(store, notification_id, current_user)
    store.remove(notification_id)
    return {
        "success": True,
        "message": "Notification deleted successfully"
    }


@router.delete("/", response_model=dict)
async def clear_notifications(
    current_user: dict = Depends(admin_required),
    store=Depends(get_notification_store)
):
    store.clear()
    logger.info(f"{current_user['username']} cleared all notifications")
    return {
        "success": True,
        "message": "All notifications cleared"
    }
