"""
Question model, question bank and the sources that load them.
"""

from .model import (
    AnswerType,
    Question,
    AnsweredQuestion,
    normalize_question,
    parse_answer_type,
    digits_only,
)
from .bank import QuestionBank
from .sources import (
    QuestionSource,
    SheetQuestionSource,
    DocumentQuestionSource,
    parse_questions_from_text,
    load_question_bank,
    build_question_source,
)

__all__ = [
    "AnswerType",
    "Question",
    "AnsweredQuestion",
    "normalize_question",
    "parse_answer_type",
    "digits_only",
    "QuestionBank",
    "QuestionSource",
    "SheetQuestionSource",
    "DocumentQuestionSource",
    "parse_questions_from_text",
    "load_question_bank",
    "build_question_source",
]
