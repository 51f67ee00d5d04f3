from typing import Iterable

from .base import CorrectAnswerDefinition


def matches(submitted: str, correct: CorrectAnswerDefinition) -> bool:
    """
    Compare a submitted text against one configured correct answer.

    Both sides are trimmed. Case is folded unless the answer is case sensitive.
    exact_match requires full equality; otherwise the correct text only has to
    appear inside the submission.
    """
    expected = (correct.answer_text or '').strip()
    given = (submitted or '').strip()
    if not expected or not given:
        return False

    if not correct.case_sensitive:
        expected = expected.lower()
        given = given.lower()

    if correct.exact_match:
        return given == expected
    return expected in given


def matches_any(submitted: str, correct_answers: Iterable[CorrectAnswerDefinition]) -> bool:
    return any(matches(submitted, correct) for correct in correct_answers)
