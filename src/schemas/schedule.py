import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

Day = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

DAY_ORDER = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def time_to_minutes(value: str) -> int:
    """Convert an ``H:MM``/``HH:MM`` string to minutes after midnight."""
    if not re.fullmatch(TIME_PATTERN, value):
        raise ValueError(f"Invalid time: {value}")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class CreateScheduleRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=100)
    class_name: str = Field(min_length=1, max_length=50)
    day: Day
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    room: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    # Only honoured for superadmin callers; teachers always own their schedules
    teacher_id: Optional[str] = None
    school_id: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self) -> "CreateScheduleRequest":
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class UpdateScheduleRequest(BaseModel):
    subject: Optional[str] = Field(default=None, min_length=1, max_length=100)
    class_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    day: Optional[Day] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    room: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


class ScheduleInfo(BaseModel):
    schedule_id: str
    subject: str
    class_name: str
    day: str
    start_time: str
    end_time: str
    teacher_id: str
    school_id: str
    room: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    updated_by: str
    created_at: str
    updated_at: str
