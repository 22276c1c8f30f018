"""Quiz attempt (achievement) database model.

Attempts are immutable once written.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class AttemptModel(Base):
    """One scored submission of a user's answers to a quiz."""

    __tablename__ = "attempts"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "quiz_id",
            "attempt_number",
            name="uq_attempts_user_quiz_number",
        ),
    )

    attempt_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    quiz_id = Column(String, ForeignKey("quizzes.quiz_id"), nullable=False, index=True)
    score = Column(Integer, nullable=False, index=True)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    attempt_number = Column(Integer, nullable=False)
    is_passed = Column(Boolean, nullable=False, index=True)
    # List of {"question_index", "selected_answer", "is_correct", "time_spent"}
    answers = Column(JSON, nullable=False, default=list)
    completed_at = Column(String, nullable=False, index=True)

    quiz = relationship("QuizModel")
