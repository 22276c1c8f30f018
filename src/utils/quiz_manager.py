"""Quiz management module.

This module handles quiz definitions, submissions and attempt history. The
attempt workflow is: load the active quiz, count the caller's earlier
attempts, grade with ``utils.scoring``, then persist one immutable attempt.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from config import ROLE_SUPERADMIN
from core.exceptions import (
    AttemptLimitExceededError,
    NotFoundError,
    PermissionDeniedError,
)
from models.attempt import AttemptModel
from models.quiz import QuizModel
from schemas.common import PageParams
from schemas.quiz import CreateQuizRequest
from schemas.user import User
from utils.scoring import GradeResult, grade_answers

logger = logging.getLogger(__name__)

# Fields a quiz owner may change after creation
UPDATABLE_FIELDS = (
    "title",
    "description",
    "time_limit",
    "max_attempts",
    "passing_score",
    "is_active",
)


@dataclass
class SubmissionOutcome:
    quiz: QuizModel
    grade: GradeResult
    attempt_number: int
    attempts_left: int


def is_quiz_owner(quiz: QuizModel, user: Optional[User]) -> bool:
    """Whether a user may see answers of, edit, or delete a quiz."""
    if user is None:
        return False
    return user.role == ROLE_SUPERADMIN or quiz.created_by == user.user_id


class QuizManager:
    """Manages quiz and attempt operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize QuizManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _query(self):
        return self.db.query(QuizModel).options(
            joinedload(QuizModel.creator), joinedload(QuizModel.school)
        )

    def list_quizzes(
        self,
        page: PageParams,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None,
        school_id: Optional[str] = None,
    ) -> Tuple[List[QuizModel], int]:
        """List active quizzes, newest first.

        Args:
            page: Page and limit.
            subject: Case-insensitive substring of the subject.
            difficulty: Exact difficulty.
            school_id: Exact school.

        Returns:
            Tuple of the page of quizzes and the total number of matches.
        """
        query = self.db.query(QuizModel).filter(QuizModel.is_active.is_(True))
        if subject:
            query = query.filter(QuizModel.subject.icontains(subject, autoescape=True))
        if difficulty:
            query = query.filter(QuizModel.difficulty == difficulty)
        if school_id:
            query = query.filter(QuizModel.school_id == school_id)

        total = query.count()
        models = (
            query.options(joinedload(QuizModel.creator), joinedload(QuizModel.school))
            .order_by(QuizModel.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
            .all()
        )
        return models, total

    def get_quiz(self, quiz_id: str, active_only: bool = True) -> QuizModel:
        """Get a quiz by ID.

        Raises:
            NotFoundError: If the quiz does not exist, or is soft-deleted and
                ``active_only`` is set.
        """
        query = self._query().filter(QuizModel.quiz_id == quiz_id)
        if active_only:
            query = query.filter(QuizModel.is_active.is_(True))
        model = query.first()
        if not model:
            raise NotFoundError("Quiz", quiz_id)
        return model

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        return (
            self.db.query(AttemptModel)
            .filter(AttemptModel.user_id == user_id, AttemptModel.quiz_id == quiz_id)
            .count()
        )

    def create_quiz(self, req: CreateQuizRequest, creator: User) -> QuizModel:
        """Create a quiz owned by ``creator`` and tied to their school."""
        now = datetime.now(pytz.utc).isoformat()
        model = QuizModel(
            quiz_id=str(uuid.uuid4()),
            title=req.title.strip(),
            description=req.description.strip(),
            subject=req.subject.strip(),
            questions=[q.model_dump() for q in req.questions],
            time_limit=req.time_limit,
            max_attempts=req.max_attempts,
            passing_score=req.passing_score,
            difficulty=req.difficulty,
            created_by=creator.user_id,
            school_id=creator.school_id,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        logger.info("Created quiz: %s by %s", model.quiz_id, creator.user_id)
        return self.get_quiz(model.quiz_id)

    def update_quiz(
        self, quiz_id: str, updates: Dict[str, Any], user: User
    ) -> QuizModel:
        """Update the allowed fields of a quiz.

        Inactive quizzes can be updated too, so an owner can reactivate one.

        Raises:
            NotFoundError: If the quiz does not exist.
            PermissionDeniedError: If the user is neither creator nor superadmin.
        """
        model = self.get_quiz(quiz_id, active_only=False)
        if not is_quiz_owner(model, user):
            raise PermissionDeniedError("You can only update your own quizzes")

        for key in UPDATABLE_FIELDS:
            if updates.get(key) is not None:
                setattr(model, key, updates[key])
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated quiz: %s", quiz_id)
        return model

    def delete_quiz(self, quiz_id: str, user: User) -> None:
        """Soft-delete a quiz by marking it inactive.

        Raises:
            NotFoundError: If the quiz does not exist.
            PermissionDeniedError: If the user is neither creator nor superadmin.
        """
        model = self.get_quiz(quiz_id, active_only=False)
        if not is_quiz_owner(model, user):
            raise PermissionDeniedError("You can only delete your own quizzes")
        model.is_active = False
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info("Deactivated quiz: %s", quiz_id)

    def submit(
        self,
        quiz_id: str,
        user_id: str,
        answers: List[Dict[str, Any]],
        time_spent: int = 0,
    ) -> SubmissionOutcome:
        """Grade a submission and record it as a new attempt.

        Args:
            quiz_id: Quiz being answered.
            user_id: Submitting user.
            answers: Dicts with question_index, selected_answer and time_spent.
            time_spent: Total elapsed seconds.

        Returns:
            SubmissionOutcome with the grade and attempt bookkeeping.

        Raises:
            NotFoundError: If the quiz is absent or inactive.
            AttemptLimitExceededError: If the user has no attempts left.
        """
        quiz = self.get_quiz(quiz_id)
        prior = self.count_attempts(user_id, quiz_id)
        if prior >= quiz.max_attempts:
            logger.warning(
                "Attempt limit reached: user=%s quiz=%s (%d/%d)",
                user_id, quiz_id, prior, quiz.max_attempts,
            )
            raise AttemptLimitExceededError(quiz_id, quiz.max_attempts)

        grade = grade_answers(quiz.questions, answers, quiz.passing_score)
        attempt_number = prior + 1

        attempt = AttemptModel(
            attempt_id=str(uuid.uuid4()),
            user_id=user_id,
            quiz_id=quiz_id,
            score=grade.score,
            total_questions=grade.total_questions,
            correct_answers=grade.correct_answers,
            time_spent=time_spent,
            attempt_number=attempt_number,
            is_passed=grade.is_passed,
            answers=[a.to_dict() for a in grade.answers],
            completed_at=datetime.now(pytz.utc).isoformat(),
        )
        # A simultaneous submission that took the same ordinal loses here
        try:
            self.db.add(attempt)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AttemptLimitExceededError(quiz_id, quiz.max_attempts) from e

        logger.info(
            "Recorded attempt %d for quiz %s by %s: score=%d passed=%s",
            attempt_number, quiz_id, user_id, grade.score, grade.is_passed,
        )
        return SubmissionOutcome(
            quiz=quiz,
            grade=grade,
            attempt_number=attempt_number,
            attempts_left=quiz.max_attempts - attempt_number,
        )

    def list_results(self, user_id: str, quiz_id: str) -> List[AttemptModel]:
        """List a user's attempts at a quiz, latest attempt first."""
        return (
            self.db.query(AttemptModel)
            .options(joinedload(AttemptModel.quiz))
            .filter(AttemptModel.user_id == user_id, AttemptModel.quiz_id == quiz_id)
            .order_by(AttemptModel.attempt_number.desc())
            .all()
        )
