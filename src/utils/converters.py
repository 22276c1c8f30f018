"""Conversions between SQLAlchemy models and pydantic schemas."""

from typing import List, Optional

from models.attempt import AttemptModel
from models.comment import CommentModel
from models.post import PostModel
from models.quiz import QuizModel
from models.schedule import ScheduleModel
from models.school import SchoolModel
from models.user import UserModel
from schemas.community import CommentInfo, PostDetail, PostInfo
from schemas.quiz import (
    AnswerResult,
    AttemptInfo,
    PublicQuestion,
    Question,
    QuizDetail,
    QuizInfo,
    QuizOwnerDetail,
    QuizSummary,
)
from schemas.schedule import ScheduleInfo
from schemas.school import SchoolInfo
from schemas.user import AuthorInfo, SchoolSummary, User, UserInfo


def user_to_model(user: User) -> UserModel:
    return UserModel(**user.model_dump())


def model_to_user(model: UserModel) -> User:
    return User.model_validate(model)


def school_to_summary(model: Optional[SchoolModel]) -> Optional[SchoolSummary]:
    if model is None:
        return None
    return SchoolSummary(
        school_id=model.school_id,
        name=model.name,
        domain=model.domain,
        address=model.address,
    )


def model_to_school_info(model: SchoolModel) -> SchoolInfo:
    return SchoolInfo(
        school_id=model.school_id,
        name=model.name,
        domain=model.domain,
        address=model.address,
        phone=model.phone,
        email=model.email,
        principal_name=model.principal_name,
        is_active=model.is_active,
        registered_at=model.registered_at,
    )


def model_to_user_info(model: UserModel) -> UserInfo:
    return UserInfo(
        user_id=model.user_id,
        full_name=model.full_name,
        email=model.email,
        role=model.role,
        school_id=model.school_id,
        school=school_to_summary(model.school),
        profile_image=model.profile_image,
        is_active=model.is_active,
        last_login=model.last_login,
        created_at=model.created_at,
    )


def model_to_author(model: Optional[UserModel]) -> Optional[AuthorInfo]:
    if model is None:
        return None
    return AuthorInfo(
        user_id=model.user_id,
        full_name=model.full_name,
        email=model.email,
        role=model.role,
        profile_image=model.profile_image,
    )


def model_to_quiz_info(model: QuizModel) -> QuizInfo:
    return QuizInfo(
        quiz_id=model.quiz_id,
        title=model.title,
        description=model.description,
        subject=model.subject,
        question_count=len(model.questions or []),
        time_limit=model.time_limit,
        max_attempts=model.max_attempts,
        passing_score=model.passing_score,
        difficulty=model.difficulty,
        is_active=model.is_active,
        creator=model_to_author(model.creator),
        school=school_to_summary(model.school),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_quiz_detail(
    model: QuizModel,
    include_answers: bool = False,
    user_attempts: Optional[int] = None,
) -> QuizDetail:
    """Build the detail view of a quiz.

    Correct answers and explanations are only included when
    ``include_answers`` is set, which callers reserve for the quiz owner.
    """
    info = model_to_quiz_info(model).model_dump()
    attempts_left = None
    if user_attempts is not None:
        attempts_left = max(model.max_attempts - user_attempts, 0)
    if include_answers:
        return QuizOwnerDetail(
            **info,
            questions=[Question(**q) for q in model.questions],
            user_attempts=user_attempts,
            attempts_left=attempts_left,
        )
    return QuizDetail(
        **info,
        questions=[
            PublicQuestion(question=q["question"], options=q["options"])
            for q in model.questions
        ],
        user_attempts=user_attempts,
        attempts_left=attempts_left,
    )


def model_to_attempt_info(model: AttemptModel) -> AttemptInfo:
    quiz = None
    if model.quiz is not None:
        quiz = QuizSummary(
            quiz_id=model.quiz.quiz_id,
            title=model.quiz.title,
            subject=model.quiz.subject,
            passing_score=model.quiz.passing_score,
            max_attempts=model.quiz.max_attempts,
        )
    return AttemptInfo(
        attempt_id=model.attempt_id,
        quiz=quiz,
        score=model.score,
        total_questions=model.total_questions,
        correct_answers=model.correct_answers,
        time_spent=model.time_spent,
        attempt_number=model.attempt_number,
        is_passed=model.is_passed,
        answers=[AnswerResult(**a) for a in model.answers or []],
        completed_at=model.completed_at,
    )


def model_to_comment_info(model: CommentModel) -> CommentInfo:
    return CommentInfo(
        comment_id=model.comment_id,
        post_id=model.post_id,
        text=model.text,
        author=model_to_author(model.author),
        parent_comment_id=model.parent_comment_id,
        like_count=len(model.likes),
        is_approved=model.is_approved,
        moderation_note=model.moderation_note,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_post_info(
    model: PostModel,
    viewer_id: Optional[str] = None,
    comment_count: int = 0,
) -> PostInfo:
    liked_by = {like.user_id for like in model.likes}
    return PostInfo(
        post_id=model.post_id,
        title=model.title,
        content=model.content,
        media_url=model.media_url,
        media_type=model.media_type,
        category=model.category,
        tags=list(model.tags or []),
        author=model_to_author(model.author),
        views=model.views,
        is_approved=model.is_approved,
        is_pinned=model.is_pinned,
        moderation_note=model.moderation_note,
        like_count=len(liked_by),
        is_liked_by_user=viewer_id in liked_by if viewer_id else False,
        comment_count=comment_count,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_post_detail(
    model: PostModel,
    comments: List[CommentModel],
    viewer_id: Optional[str] = None,
) -> PostDetail:
    info = model_to_post_info(model, viewer_id, comment_count=len(comments))
    return PostDetail(
        **info.model_dump(),
        comments=[model_to_comment_info(c) for c in comments],
    )


def model_to_schedule_info(model: ScheduleModel) -> ScheduleInfo:
    return ScheduleInfo(
        schedule_id=model.schedule_id,
        subject=model.subject,
        class_name=model.class_name,
        day=model.day,
        start_time=model.start_time,
        end_time=model.end_time,
        teacher_id=model.teacher_id,
        school_id=model.school_id,
        room=model.room,
        description=model.description,
        is_active=model.is_active,
        updated_by=model.updated_by,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
