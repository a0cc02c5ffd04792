import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.init_db import get_db
from app.common import get_current_user
from app.schemas.notifications import (
    GenerateNotificationsResponse,
    NotificationDeleteRequest,
    NotificationResponse,
    NotificationStatusUpdate,
    NotificationType,
    UnreadCountResponse,
)
from app.services.generation_service import generate_all_notifications
from app.services.notification_service import (
    delete_all_notifications,
    delete_multiple_notifications,
    delete_notification,
    delete_notifications_by_type,
    get_unread_notifications_count,
    get_user_notifications,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    mark_notifications_read_status,
)

# Configure logging for notification-related operations
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize router with prefix and tags for API documentation
router = APIRouter(prefix="/notifications", tags=["notifications"])

def _failed(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )

@router.get("/list", response_model=List[NotificationResponse])
async def get_notifications_api(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Retrieve the notifications visible to the current user, newest first.
    """
    return await get_user_notifications(db, current_user["uid"])

@router.get("/unread_count", response_model=UnreadCountResponse)
async def get_unread_count_api(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    return {"unread_count": await get_unread_notifications_count(db, current_user["uid"])}

@router.post("/generate", response_model=GenerateNotificationsResponse)
async def generate_notifications_api(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Generate event reminders, announcement digests and recommendations for
    the current user. Called by the dashboard once per session.
    
    Returns:
        GenerateNotificationsResponse: Number of notifications created
    """
    return {"created": await generate_all_notifications(db, current_user["uid"])}

@router.post("/update_status", response_model=dict)
async def update_notification_status_api(
    request: NotificationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Update the read status of several notifications.
    
    Args:
        request (NotificationStatusUpdate): Notification ids and the new read flag
        db (AsyncSession): Database session dependency
        current_user (dict): Current authenticated user information
        
    Returns:
        dict: The updated ids and their read flag
    """
    if not await mark_notifications_read_status(db, current_user["uid"], request.ids, request.is_read):
        raise _failed("update notification status")
    return {"updated_ids": request.ids, "is_read": request.is_read}

@router.post("/read_all", response_model=dict)
async def mark_all_read_api(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if not await mark_all_notifications_as_read(db, current_user["uid"]):
        raise _failed("mark notifications as read")
    return {"success": True}

@router.post("/{notification_id}/read", response_model=dict)
async def mark_read_api(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if not await mark_notification_as_read(db, notification_id, current_user["uid"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}

@router.post("/delete", response_model=dict)
async def delete_multiple_api(
    request: NotificationDeleteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if not await delete_multiple_notifications(db, request.ids, current_user["uid"]):
        raise _failed("delete notifications")
    return {"deleted_ids": request.ids}

@router.delete("/type/{notification_type}", response_model=dict)
async def delete_by_type_api(
    notification_type: NotificationType,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if notification_type == NotificationType.RECOMMENDATION_TRACKER:
        raise HTTPException(status_code=400, detail="Invalid notification type")
    if not await delete_notifications_by_type(db, current_user["uid"], notification_type.value):
        raise _failed(f"delete {notification_type.value} notifications")
    return {"success": True}

@router.delete("/{notification_id}", response_model=dict)
async def delete_notification_api(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if not await delete_notification(db, notification_id, current_user["uid"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}

@router.delete("", response_model=dict)
async def delete_all_api(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    if not await delete_all_notifications(db, current_user["uid"]):
        raise _failed("delete notifications")
    return {"success": True}
