"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
Managers get a request-scoped DB session; the notification relay and the
real-time hub are process-wide singletons.
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.database import get_db
from schemas.common import PageParams
from utils import community_manager
from utils import device_manager
from utils import notification_service
from utils import quiz_manager
from utils import realtime_hub
from utils import schedule_manager
from utils import school_manager
from utils import user_manager

# Singletons shared by every request and socket
_notification_service_instance: notification_service.NotificationService = None
_realtime_hub_instance: realtime_hub.RealtimeHub = None


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_school_manager(db: Session = Depends(get_db)) -> school_manager.SchoolManager:
    """Get SchoolManager instance with request-scoped DB session."""
    return school_manager.SchoolManager(db)


def get_quiz_manager(db: Session = Depends(get_db)) -> quiz_manager.QuizManager:
    """Get QuizManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        QuizManager instance.
    """
    return quiz_manager.QuizManager(db)


def get_community_manager(
    db: Session = Depends(get_db),
) -> community_manager.CommunityManager:
    """Get CommunityManager instance with request-scoped DB session."""
    return community_manager.CommunityManager(db)


def get_schedule_manager(
    db: Session = Depends(get_db),
) -> schedule_manager.ScheduleManager:
    """Get ScheduleManager instance with request-scoped DB session."""
    return schedule_manager.ScheduleManager(db)


def get_device_manager(db: Session = Depends(get_db)) -> device_manager.DeviceManager:
    """Get DeviceManager instance with request-scoped DB session."""
    return device_manager.DeviceManager(db)


def get_notification_service() -> notification_service.NotificationService:
    """Get NotificationService singleton instance.

    Returns:
        NotificationService instance (singleton).
    """
    global _notification_service_instance
    if _notification_service_instance is None:
        _notification_service_instance = notification_service.NotificationService()
    return _notification_service_instance


def get_realtime_hub() -> realtime_hub.RealtimeHub:
    """Get RealtimeHub singleton instance.

    Returns:
        RealtimeHub instance (singleton).
    """
    global _realtime_hub_instance
    if _realtime_hub_instance is None:
        _realtime_hub_instance = realtime_hub.RealtimeHub()
    return _realtime_hub_instance


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
SchoolManagerDep = Annotated[
    school_manager.SchoolManager, Depends(get_school_manager)
]
QuizManagerDep = Annotated[
    quiz_manager.QuizManager, Depends(get_quiz_manager)
]
CommunityManagerDep = Annotated[
    community_manager.CommunityManager, Depends(get_community_manager)
]
ScheduleManagerDep = Annotated[
    schedule_manager.ScheduleManager, Depends(get_schedule_manager)
]
DeviceManagerDep = Annotated[
    device_manager.DeviceManager, Depends(get_device_manager)
]
NotificationServiceDep = Annotated[
    notification_service.NotificationService, Depends(get_notification_service)
]
RealtimeHubDep = Annotated[
    realtime_hub.RealtimeHub, Depends(get_realtime_hub)
]


def get_page_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> PageParams:
    """Read the page/limit query parameters of list endpoints."""
    return PageParams(page=page, limit=limit)


PageParamsDep = Annotated[PageParams, Depends(get_page_params)]
