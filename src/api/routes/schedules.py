"""Schedule routes.

This module handles HTTP endpoints for class schedules. Teachers manage the
schedules they teach; superadmins manage any.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user, require_roles
from config import ROLE_SUPERADMIN, ROLE_TEACHER, get_school_topic
from core.dependencies import (
    NotificationServiceDep,
    RealtimeHubDep,
    ScheduleManagerDep,
)
from core.error_handlers import to_http_exception
from core.exceptions import EcoterraError
from schemas.common import envelope
from schemas.schedule import CreateScheduleRequest, Day, UpdateScheduleRequest
from schemas.user import User
from utils import notification_templates
from utils.converters import model_to_schedule_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schedules", tags=["Schedules"])

require_schedule_author = require_roles(ROLE_TEACHER, ROLE_SUPERADMIN)


@router.get("", summary="List schedules")
def list_schedules(
    school_id: Optional[str] = Query(default=None),
    day: Optional[Day] = Query(default=None),
    class_name: Optional[str] = Query(default=None),
    teacher_id: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    schedule_manager: ScheduleManagerDep = None,
) -> dict:
    """List a school's active schedules by weekday and start time.

    The school defaults to the caller's own.
    """
    school_id = school_id or current_user.school_id
    if not school_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="school_id is required",
        )
    models = schedule_manager.list_schedules(
        school_id, day=day, class_name=class_name, teacher_id=teacher_id
    )
    return envelope(
        "Schedules retrieved successfully",
        data=[model_to_schedule_info(m).model_dump() for m in models],
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create schedule")
def create_schedule(
    req: CreateScheduleRequest,
    current_user: User = Depends(require_schedule_author),
    schedule_manager: ScheduleManagerDep = None,
) -> dict:
    try:
        model = schedule_manager.create_schedule(req, current_user)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope(
        "Schedule created successfully", data=model_to_schedule_info(model).model_dump()
    )


@router.put("/{schedule_id}", summary="Update schedule")
def update_schedule(
    schedule_id: str,
    req: UpdateScheduleRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_schedule_author),
    schedule_manager: ScheduleManagerDep = None,
    notifier: NotificationServiceDep = None,
    hub: RealtimeHubDep = None,
) -> dict:
    """Update a schedule.

    Moving a lesson to another day or time is announced to the school.
    """
    try:
        model, timing_changed = schedule_manager.update_schedule(
            schedule_id, req.model_dump(exclude_unset=True), current_user
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    info = model_to_schedule_info(model).model_dump()

    if timing_changed:
        background_tasks.add_task(
            notifier.send_to_topic,
            get_school_topic(model.school_id),
            notification_templates.schedule_update(
                model.subject, model.day, model.start_time
            ),
        )
        background_tasks.add_task(hub.emit_to_school, model.school_id, "schedule_update", info)

    return envelope("Schedule updated successfully", data=info)


@router.delete("/{schedule_id}", summary="Delete schedule")
def delete_schedule(
    schedule_id: str,
    current_user: User = Depends(require_schedule_author),
    schedule_manager: ScheduleManagerDep = None,
) -> dict:
    """Soft-delete a schedule."""
    try:
        schedule_manager.delete_schedule(schedule_id, current_user)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Schedule deleted successfully")
