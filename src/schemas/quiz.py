"""Quiz schema definitions.

Two views of a question exist: ``Question`` carries the correct answer and is
only shown to the quiz owner, ``PublicQuestion`` is what everyone else sees.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from config import DEFAULT_DIFFICULTY, DEFAULT_MAX_ATTEMPTS
from schemas.user import AuthorInfo, SchoolSummary

Difficulty = Literal["easy", "medium", "hard"]


class Question(BaseModel):
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=2, max_length=5)
    correct_answer: int = Field(ge=0)
    explanation: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_correct_answer_in_range(self) -> "Question":
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class PublicQuestion(BaseModel):
    question: str
    options: List[str]


class CreateQuizRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    subject: str = Field(min_length=1, max_length=100)
    questions: List[Question] = Field(min_length=1)
    time_limit: int = Field(ge=1, le=300)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=10)
    passing_score: int = Field(ge=0, le=100)
    difficulty: Difficulty = DEFAULT_DIFFICULTY


class UpdateQuizRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    time_limit: Optional[int] = Field(default=None, ge=1, le=300)
    max_attempts: Optional[int] = Field(default=None, ge=1, le=10)
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None


class QuizInfo(BaseModel):
    quiz_id: str
    title: str
    description: str
    subject: str
    question_count: int
    time_limit: int
    max_attempts: int
    passing_score: int
    difficulty: str
    is_active: bool
    creator: Optional[AuthorInfo] = None
    school: Optional[SchoolSummary] = None
    created_at: str
    updated_at: str


class QuizDetail(QuizInfo):
    questions: List[PublicQuestion]
    user_attempts: Optional[int] = None
    attempts_left: Optional[int] = None


class QuizOwnerDetail(QuizDetail):
    questions: List[Question]


class SubmittedAnswer(BaseModel):
    question_index: int = Field(ge=0)
    selected_answer: int = Field(ge=0)
    time_spent: int = Field(default=0, ge=0)


class SubmitQuizRequest(BaseModel):
    answers: List[SubmittedAnswer]
    time_spent: int = Field(default=0, ge=0)


class AnswerResult(BaseModel):
    question_index: int
    selected_answer: Optional[int] = None
    is_correct: bool
    time_spent: int = 0


class SubmitQuizResult(BaseModel):
    score: int
    correct_answers: int
    total_questions: int
    is_passed: bool
    passing_score: int
    attempt_number: int
    attempts_left: int
    answers: List[AnswerResult]


class QuizSummary(BaseModel):
    quiz_id: str
    title: str
    subject: str
    passing_score: int
    max_attempts: int


class AttemptInfo(BaseModel):
    attempt_id: str
    quiz: Optional[QuizSummary] = None
    score: int
    total_questions: int
    correct_answers: int
    time_spent: int
    attempt_number: int
    is_passed: bool
    answers: List[AnswerResult]
    completed_at: str
