"""
Answer data shapes per question type.

Answers arrive as JSON objects. Each question type reads one key:

    SINGLE_CHOICE        {"selected_option_id": 12}
    MULTIPLE_CHOICE      {"selected_option_ids": [12, 14]}
    SHORT_ANSWER, ESSAY  {"answer_text": "..."}
    FILE_UPLOAD          {"file_path": "uploads/abc.pdf", "file_name": "essay.pdf"}
    FILL_BLANK_TEXT      {"blanks": [{"blank_id": 1, "answer": "Paris"}]}   or {"blanks": {"1": "Paris"}}
    FILL_BLANK_DROPDOWN  {"blanks": [{"blank_id": 1, "selected_option_id": 7}]} or {"blanks": {"1": 7}}
"""
from typing import Dict, Optional, Set

from .base import QuestionType


REQUIRED_KEYS = {
    QuestionType.SINGLE_CHOICE: 'selected_option_id',
    QuestionType.MULTIPLE_CHOICE: 'selected_option_ids',
    QuestionType.SHORT_ANSWER: 'answer_text',
    QuestionType.ESSAY: 'answer_text',
    QuestionType.FILE_UPLOAD: 'file_path',
    QuestionType.FILL_BLANK_TEXT: 'blanks',
    QuestionType.FILL_BLANK_DROPDOWN: 'blanks',
}

BLANK_VALUE_KEYS = {
    QuestionType.FILL_BLANK_TEXT: 'answer',
    QuestionType.FILL_BLANK_DROPDOWN: 'selected_option_id',
}


def validate_answer_data(question_type: str, answer_data) -> Optional[str]:
    """Return an error message when answer_data does not fit the question type, else None."""
    if not isinstance(answer_data, dict):
        return "Answer data must be an object."

    key = REQUIRED_KEYS.get(question_type)
    if key is None:
        return f"Unknown question type: {question_type}"
    if key not in answer_data:
        return f"{QuestionType(question_type).label} answer must have '{key}'."

    value = answer_data[key]
    if key == 'selected_option_ids' and not isinstance(value, list):
        return "'selected_option_ids' must be a list."
    if key in ('answer_text', 'file_path') and value is not None and not isinstance(value, str):
        return f"'{key}' must be a string."
    if key == 'blanks' and not isinstance(value, (list, dict)):
        return "'blanks' must be a list or an object keyed by blank id."
    return None


def as_option_id(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def selected_option_id(answer_data: dict) -> Optional[int]:
    return as_option_id((answer_data or {}).get('selected_option_id'))


def selected_option_ids(answer_data: dict) -> Optional[Set[int]]:
    raw = (answer_data or {}).get('selected_option_ids')
    if not isinstance(raw, list):
        return None
    ids = set()
    for value in raw:
        option_id = as_option_id(value)
        if option_id is None:
            return None
        ids.add(option_id)
    return ids


def answer_text(answer_data: dict) -> str:
    value = (answer_data or {}).get('answer_text')
    return value if isinstance(value, str) else ''


def blank_values(answer_data: dict, value_key: str) -> Dict[int, object]:
    """Map blank_id -> submitted value, accepting the list or the mapping form."""
    raw = (answer_data or {}).get('blanks')
    values = {}

    if isinstance(raw, dict):
        items = raw.items()
    elif isinstance(raw, list):
        items = [
            (entry.get('blank_id'), entry.get(value_key))
            for entry in raw if isinstance(entry, dict)
        ]
    else:
        return values

    for blank_id, value in items:
        normalized = as_option_id(blank_id)
        if normalized is not None:
            values[normalized] = value
    return values
