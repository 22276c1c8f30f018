from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class QuizModel(Base):
    __tablename__ = "quizzes"

    quiz_id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    subject = Column(String, nullable=False, index=True)
    # Ordered list of {"question", "options", "correct_answer", "explanation"}
    questions = Column(JSON, nullable=False, default=list)
    time_limit = Column(Integer, nullable=False)  # minutes
    max_attempts = Column(Integer, nullable=False, default=3)
    passing_score = Column(Integer, nullable=False)
    difficulty = Column(String, nullable=False, default="medium", index=True)
    created_by = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    school_id = Column(String, ForeignKey("schools.school_id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    creator = relationship("UserModel", foreign_keys=[created_by])
    school = relationship("SchoolModel")
