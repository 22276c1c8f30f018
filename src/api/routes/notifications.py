"""Notification routes.

Devices register their FCM token here after sign-in and remove it on
sign-out. School members' devices are also subscribed to their school's
broadcast topic, and every device to the community topic.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from api.routes.auth import get_current_user
from config import COMMUNITY_TOPIC, SCHOOL_ROLES, get_school_topic
from core.dependencies import DeviceManagerDep, NotificationServiceDep, UserManagerDep
from schemas.common import envelope
from schemas.notification import RegisterDeviceRequest, UnregisterDeviceRequest
from schemas.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _topics_for(user: User) -> list:
    topics = [COMMUNITY_TOPIC]
    if user.school_id and user.role in SCHOOL_ROLES:
        topics.append(get_school_topic(user.school_id))
    return topics


@router.post("/devices", status_code=status.HTTP_201_CREATED, summary="Register device")
def register_device(
    req: RegisterDeviceRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    device_manager: DeviceManagerDep = None,
    notifier: NotificationServiceDep = None,
    user_manager: UserManagerDep = None,
) -> dict:
    """Register the caller's device.

    A token taken over from another account leaves that account's topics
    the caller does not share.
    """
    model, previous_owner_id = device_manager.register(
        current_user.user_id, req.token, req.platform
    )
    topics = _topics_for(current_user)
    if previous_owner_id:
        previous_owner = user_manager.get_user_by_id(previous_owner_id)
        if previous_owner is not None:
            for topic in _topics_for(previous_owner):
                if topic not in topics:
                    background_tasks.add_task(
                        notifier.unsubscribe_from_topic, [req.token], topic
                    )
    for topic in topics:
        background_tasks.add_task(notifier.subscribe_to_topic, [req.token], topic)
    return envelope(
        "Device registered successfully",
        data={"token": model.token, "platform": model.platform},
    )


@router.delete("/devices", summary="Unregister device")
def unregister_device(
    req: UnregisterDeviceRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    device_manager: DeviceManagerDep = None,
    notifier: NotificationServiceDep = None,
) -> dict:
    if not device_manager.unregister(current_user.user_id, req.token):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found",
        )
    for topic in _topics_for(current_user):
        background_tasks.add_task(notifier.unsubscribe_from_topic, [req.token], topic)
    return envelope("Device unregistered successfully")
