from sqlalchemy import Boolean, Column, ForeignKey, String

from .base import Base


class ScheduleModel(Base):
    __tablename__ = "schedules"

    schedule_id = Column(String, primary_key=True, index=True)
    subject = Column(String, nullable=False)
    class_name = Column(String, nullable=False, index=True)
    day = Column(String, nullable=False, index=True)  # 'monday' .. 'sunday'
    start_time = Column(String, nullable=False)  # HH:MM
    end_time = Column(String, nullable=False)  # HH:MM
    teacher_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    school_id = Column(String, ForeignKey("schools.school_id"), nullable=False, index=True)
    room = Column(String, nullable=True)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    updated_by = Column(String, ForeignKey("users.user_id"), nullable=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
