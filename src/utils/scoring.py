"""Quiz scoring.

Pure functions only: grading never touches the database, so the quiz manager
can grade first and persist afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass
class GradedAnswer:
    question_index: int
    selected_answer: Optional[int]
    is_correct: bool
    time_spent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_index": self.question_index,
            "selected_answer": self.selected_answer,
            "is_correct": self.is_correct,
            "time_spent": self.time_spent,
        }


@dataclass
class GradeResult:
    score: int
    correct_answers: int
    total_questions: int
    is_passed: bool
    answers: List[GradedAnswer] = field(default_factory=list)


def percentage(correct: int, total: int) -> int:
    """Return round(correct / total * 100) with halves rounded up.

    Integer arithmetic keeps values such as 1/8 (12.5%) exact, so they round
    to 13 rather than depending on float representation or banker's rounding.

    Raises:
        ValueError: If total is not positive or correct is out of range.
    """
    if total <= 0:
        raise ValueError("total must be positive")
    if correct < 0 or correct > total:
        raise ValueError("correct must be between 0 and total")
    return (correct * 200 + total) // (2 * total)


def grade_answers(
    questions: List[Mapping[str, Any]],
    submitted: Iterable[Mapping[str, Any]],
    passing_score: int,
) -> GradeResult:
    """Grade a submission against a quiz's questions.

    Questions are walked in their stored order. For each index the first
    submitted answer carrying that ``question_index`` is used; a question
    without one is unanswered and never counts as correct. Answers for
    indexes outside the quiz are ignored.

    Args:
        questions: Stored questions, each with a ``correct_answer`` index.
        submitted: Submitted answers with ``question_index``,
            ``selected_answer`` and optionally ``time_spent``.
        passing_score: Minimum score (0-100) needed to pass.

    Returns:
        GradeResult with the score, counts and per-question breakdown.
    """
    by_index: Dict[int, Mapping[str, Any]] = {}
    for answer in submitted:
        by_index.setdefault(answer["question_index"], answer)

    graded: List[GradedAnswer] = []
    correct = 0
    for index, question in enumerate(questions):
        answer = by_index.get(index)
        if answer is None:
            graded.append(GradedAnswer(index, None, False))
            continue
        selected = answer["selected_answer"]
        is_correct = selected == question["correct_answer"]
        if is_correct:
            correct += 1
        graded.append(
            GradedAnswer(index, selected, is_correct, answer.get("time_spent") or 0)
        )

    score = percentage(correct, len(questions))
    return GradeResult(
        score=score,
        correct_answers=correct,
        total_questions=len(questions),
        is_passed=score >= passing_score,
        answers=graded,
    )
