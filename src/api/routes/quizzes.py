"""Quiz routes.

This module handles HTTP endpoints for quiz definitions, submissions and
attempt history.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from api.routes.auth import get_current_user, get_optional_user, require_roles
from config import ROLE_SUPERADMIN, ROLE_TEACHER, get_school_topic
from core.dependencies import (
    DeviceManagerDep,
    NotificationServiceDep,
    PageParamsDep,
    QuizManagerDep,
    RealtimeHubDep,
)
from core.error_handlers import to_http_exception
from core.exceptions import EcoterraError
from schemas.common import envelope
from schemas.quiz import (
    CreateQuizRequest,
    Difficulty,
    SubmitQuizRequest,
    SubmitQuizResult,
    UpdateQuizRequest,
)
from schemas.user import User
from utils import notification_templates
from utils.converters import (
    model_to_attempt_info,
    model_to_quiz_detail,
    model_to_quiz_info,
)
from utils.quiz_manager import is_quiz_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])

require_quiz_author = require_roles(ROLE_TEACHER, ROLE_SUPERADMIN)


@router.get("", summary="List quizzes")
def list_quizzes(
    page: PageParamsDep,
    subject: Optional[str] = Query(default=None),
    difficulty: Optional[Difficulty] = Query(default=None),
    school_id: Optional[str] = Query(default=None),
    quiz_manager: QuizManagerDep = None,
) -> dict:
    """List active quizzes, newest first. Correct answers are never listed."""
    models, total = quiz_manager.list_quizzes(
        page, subject=subject, difficulty=difficulty, school_id=school_id
    )
    return envelope(
        "Quizzes retrieved successfully",
        data=[model_to_quiz_info(m).model_dump() for m in models],
        pagination=page.build(total),
    )


@router.get("/{quiz_id}", summary="Get quiz")
def get_quiz(
    quiz_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    quiz_manager: QuizManagerDep = None,
) -> dict:
    """Get an active quiz.

    The creator and superadmins see correct answers and explanations.
    Signed-in callers also get their attempt count.
    """
    try:
        model = quiz_manager.get_quiz(quiz_id)
    except EcoterraError as e:
        raise to_http_exception(e) from e

    user_attempts = None
    if current_user is not None:
        user_attempts = quiz_manager.count_attempts(current_user.user_id, quiz_id)
    detail = model_to_quiz_detail(
        model,
        include_answers=is_quiz_owner(model, current_user),
        user_attempts=user_attempts,
    )
    return envelope("Quiz retrieved successfully", data=detail.model_dump())


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create quiz")
def create_quiz(
    req: CreateQuizRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_quiz_author),
    quiz_manager: QuizManagerDep = None,
    notifier: NotificationServiceDep = None,
    hub: RealtimeHubDep = None,
) -> dict:
    """Create a quiz for the creator's school and announce it there."""
    model = quiz_manager.create_quiz(req, current_user)
    info = model_to_quiz_info(model).model_dump()

    if model.school_id:
        background_tasks.add_task(
            notifier.send_to_topic,
            get_school_topic(model.school_id),
            notification_templates.new_quiz(current_user.full_name, model.title),
        )
        background_tasks.add_task(hub.emit_to_school, model.school_id, "new_quiz", info)

    return envelope("Quiz created successfully", data=info)


@router.post("/{quiz_id}/submit", summary="Submit quiz answers")
def submit_quiz(
    quiz_id: str,
    req: SubmitQuizRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    quiz_manager: QuizManagerDep = None,
    device_manager: DeviceManagerDep = None,
    notifier: NotificationServiceDep = None,
) -> dict:
    """Grade a submission and record it as the caller's next attempt."""
    try:
        outcome = quiz_manager.submit(
            quiz_id,
            current_user.user_id,
            [a.model_dump() for a in req.answers],
            time_spent=req.time_spent,
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e

    grade = outcome.grade
    result = SubmitQuizResult(
        score=grade.score,
        correct_answers=grade.correct_answers,
        total_questions=grade.total_questions,
        is_passed=grade.is_passed,
        passing_score=outcome.quiz.passing_score,
        attempt_number=outcome.attempt_number,
        attempts_left=outcome.attempts_left,
        answers=[a.to_dict() for a in grade.answers],
    )

    tokens = device_manager.tokens_for_user(current_user.user_id)
    if tokens:
        background_tasks.add_task(
            notifier.send_to_devices,
            tokens,
            notification_templates.quiz_result(
                outcome.quiz.title, grade.score, grade.is_passed
            ),
        )

    return envelope("Quiz submitted successfully", data=result.model_dump())


@router.get("/{quiz_id}/results", summary="List my attempts")
def get_results(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    quiz_manager: QuizManagerDep = None,
) -> dict:
    """List the caller's attempts at a quiz, latest attempt first."""
    try:
        quiz_manager.get_quiz(quiz_id, active_only=False)
    except EcoterraError as e:
        raise to_http_exception(e) from e

    attempts = quiz_manager.list_results(current_user.user_id, quiz_id)
    return envelope(
        "Quiz results retrieved successfully",
        data=[model_to_attempt_info(a).model_dump() for a in attempts],
    )


@router.put("/{quiz_id}", summary="Update quiz")
def update_quiz(
    quiz_id: str,
    req: UpdateQuizRequest,
    current_user: User = Depends(require_quiz_author),
    quiz_manager: QuizManagerDep = None,
) -> dict:
    try:
        model = quiz_manager.update_quiz(
            quiz_id, req.model_dump(exclude_unset=True), current_user
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Quiz updated successfully", data=model_to_quiz_info(model).model_dump())


@router.delete("/{quiz_id}", summary="Delete quiz")
def delete_quiz(
    quiz_id: str,
    current_user: User = Depends(require_quiz_author),
    quiz_manager: QuizManagerDep = None,
) -> dict:
    """Soft-delete a quiz."""
    try:
        quiz_manager.delete_quiz(quiz_id, current_user)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Quiz deleted successfully")
