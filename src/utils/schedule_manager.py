"""Schedule management utilities."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from config import ROLE_SUPERADMIN
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from models.schedule import ScheduleModel
from schemas.schedule import DAY_ORDER, CreateScheduleRequest, time_to_minutes
from schemas.user import User

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "subject",
    "class_name",
    "day",
    "start_time",
    "end_time",
    "room",
    "description",
    "is_active",
)

# Changing any of these notifies the school
TIMING_FIELDS = ("day", "start_time", "end_time")


def normalize_time(value: str) -> str:
    """Zero-pad an ``H:MM`` time so stored times sort as strings."""
    minutes = time_to_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class ScheduleManager:
    """Manages class schedules using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    def list_schedules(
        self,
        school_id: str,
        day: Optional[str] = None,
        class_name: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[ScheduleModel]:
        """List active schedules of a school in weekday then start-time order."""
        query = self.db.query(ScheduleModel).filter(
            ScheduleModel.school_id == school_id,
            ScheduleModel.is_active.is_(True),
        )
        if day:
            query = query.filter(ScheduleModel.day == day)
        if class_name:
            query = query.filter(ScheduleModel.class_name == class_name)
        if teacher_id:
            query = query.filter(ScheduleModel.teacher_id == teacher_id)
        models = query.all()
        return sorted(models, key=lambda m: (DAY_ORDER.index(m.day), m.start_time))

    def get_schedule(self, schedule_id: str) -> ScheduleModel:
        model = (
            self.db.query(ScheduleModel)
            .filter(ScheduleModel.schedule_id == schedule_id)
            .first()
        )
        if not model:
            raise NotFoundError("Schedule", schedule_id)
        return model

    def create_schedule(self, req: CreateScheduleRequest, user: User) -> ScheduleModel:
        """Create a schedule.

        Teachers always create schedules for themselves at their own school.
        A superadmin may name the teacher and school.

        Raises:
            ValidationError: If no school can be determined.
        """
        if user.role == ROLE_SUPERADMIN:
            teacher_id = req.teacher_id or user.user_id
            school_id = req.school_id or user.school_id
        else:
            teacher_id = user.user_id
            school_id = user.school_id
        if not school_id:
            raise ValidationError("A school is required for a schedule")

        now = datetime.now(pytz.utc).isoformat()
        model = ScheduleModel(
            schedule_id=str(uuid.uuid4()),
            subject=req.subject.strip(),
            class_name=req.class_name.strip(),
            day=req.day,
            start_time=normalize_time(req.start_time),
            end_time=normalize_time(req.end_time),
            teacher_id=teacher_id,
            school_id=school_id,
            room=req.room,
            description=req.description,
            is_active=True,
            updated_by=user.user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created schedule: %s for school %s", model.schedule_id, school_id)
        return model

    def _check_owner(self, model: ScheduleModel, user: User) -> None:
        if user.role != ROLE_SUPERADMIN and model.teacher_id != user.user_id:
            raise PermissionDeniedError("You can only manage your own schedules")

    def update_schedule(
        self, schedule_id: str, updates: Dict[str, Any], user: User
    ) -> Tuple[ScheduleModel, bool]:
        """Update a schedule.

        Returns:
            Tuple of the updated schedule and whether its day or times changed.

        Raises:
            NotFoundError: If the schedule does not exist.
            PermissionDeniedError: If the user is not the teacher or a superadmin.
            ValidationError: If the resulting end time is not after the start.
        """
        model = self.get_schedule(schedule_id)
        self._check_owner(model, user)

        changes = {k: updates[k] for k in UPDATABLE_FIELDS if updates.get(k) is not None}
        for key in ("start_time", "end_time"):
            if key in changes:
                changes[key] = normalize_time(changes[key])

        start = changes.get("start_time", model.start_time)
        end = changes.get("end_time", model.end_time)
        if time_to_minutes(end) <= time_to_minutes(start):
            raise ValidationError("end_time must be after start_time")

        timing_changed = any(
            key in changes and changes[key] != getattr(model, key) for key in TIMING_FIELDS
        )
        for key, value in changes.items():
            setattr(model, key, value)
        model.updated_by = user.user_id
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated schedule: %s (timing changed=%s)", schedule_id, timing_changed)
        return model, timing_changed

    def delete_schedule(self, schedule_id: str, user: User) -> None:
        """Soft-delete a schedule."""
        model = self.get_schedule(schedule_id)
        self._check_owner(model, user)
        model.is_active = False
        model.updated_by = user.user_id
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info("Deactivated schedule: %s", schedule_id)
