"""
Question records and the transcript entries built from them.

Both question sources (the spreadsheet and the questionnaire document) feed
their raw rows through normalize_question(), so the rest of the system only
ever sees one Question shape.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class AnswerType(str, Enum):
    """How an answer is captured and stored."""
    FREE_TEXT = "free_text"
    INTEGER = "integer"
    CURRENCY_AMOUNT = "currency_amount"
    MULTIPLE_CHOICE = "multiple_choice"

    @property
    def is_numeric(self) -> bool:
        return self in (AnswerType.INTEGER, AnswerType.CURRENCY_AMOUNT)


# Type tags as they appear in the spreadsheet and in the questionnaire document
ANSWER_TYPE_ALIASES = {
    "free_text": AnswerType.FREE_TEXT,
    "text": AnswerType.FREE_TEXT,
    "טקסט": AnswerType.FREE_TEXT,
    "integer": AnswerType.INTEGER,
    "number": AnswerType.INTEGER,
    "מספר": AnswerType.INTEGER,
    "currency_amount": AnswerType.CURRENCY_AMOUNT,
    "sum": AnswerType.CURRENCY_AMOUNT,
    "סכום": AnswerType.CURRENCY_AMOUNT,
    "multiple_choice": AnswerType.MULTIPLE_CHOICE,
    "multiple": AnswerType.MULTIPLE_CHOICE,
    "בחירה": AnswerType.MULTIPLE_CHOICE,
}

_NON_DIGITS = re.compile(r"[^0-9]")


def parse_answer_type(raw: Optional[str]) -> AnswerType:
    """Map a source type tag to an AnswerType (unknown tags are free text)."""
    if not raw:
        return AnswerType.FREE_TEXT
    return ANSWER_TYPE_ALIASES.get(str(raw).strip().lower(), AnswerType.FREE_TEXT)


def digits_only(text: str) -> str:
    """'12,500 ₪' -> '12500'"""
    return _NON_DIGITS.sub("", text)


@dataclass(frozen=True)
class Question:
    """One questionnaire item."""
    id: str
    text: str
    answer_type: AnswerType = AnswerType.FREE_TEXT
    options: tuple[str, ...] = ()
    next_question_by_option: tuple[str, ...] = ()  # "" = continue in sequence
    is_final: bool = False
    section: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Question id must not be empty")
        if self.next_question_by_option and len(self.next_question_by_option) != len(self.options):
            raise ValueError(
                f"Question '{self.id}': {len(self.options)} options but "
                f"{len(self.next_question_by_option)} next-question entries"
            )

    @property
    def is_multiple_choice(self) -> bool:
        return self.answer_type == AnswerType.MULTIPLE_CHOICE

    def normalize_answer(self, raw_text: str) -> str:
        """Answer as it is stored in the transcript."""
        text = raw_text.strip()
        if self.answer_type.is_numeric:
            return digits_only(text)
        return text

    def branch_target(self, answer: str) -> Optional[str]:
        """Explicit next-question id for the chosen option, if one is set."""
        if not self.is_multiple_choice or not self.next_question_by_option:
            return None
        try:
            position = self.options.index(answer.strip())
        except ValueError:
            return None
        target = self.next_question_by_option[position].strip()
        return target or None

    def to_dict(self) -> dict:
        """Wire format used by the web client."""
        data = {
            "id": self.id,
            "text": self.text,
            "type": self.answer_type.value,
            "isLastQuestion": self.is_final,
            "section": self.section,
        }
        if self.is_multiple_choice:
            data["options"] = list(self.options)
            data["nextQuestions"] = list(self.next_question_by_option)
        return data


@dataclass(frozen=True)
class AnsweredQuestion:
    """One transcript entry. Captures the question text as it was asked."""
    question_id: str
    sequence_index: int
    question_text: str
    answer_text: str
    section: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "question": self.question_text,
            "answer": self.answer_text,
        }

    @classmethod
    def from_dict(cls, data: dict, sequence_index: int) -> AnsweredQuestion:
        """Build an entry from the {questionId, question, answer} wire form."""
        return cls(
            question_id=str(data.get("questionId", sequence_index)),
            sequence_index=sequence_index,
            question_text=str(data.get("question", "")),
            answer_text=str(data.get("answer", "")),
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().upper() in ("TRUE", "1", "YES", "כן")


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_question(record: dict[str, Any]) -> Question:
    """
    Turn a raw question record from any source into a Question.

    Accepts:
        id                          (required)
        text | question             prompt text
        type | answer_type          type tag (see ANSWER_TYPE_ALIASES)
        options | answers           list of strings, or of {answer, next_question}
        next_questions              parallel branch targets when options are strings
        is_last_question | is_final
        section
    """
    question_id = _clean(record.get("id"))
    text = _clean(record.get("text") or record.get("question"))
    if not text:
        raise ValueError(f"Question '{question_id}' has no text")

    answer_type = parse_answer_type(record.get("type") or record.get("answer_type"))

    options: list[str] = []
    targets: list[str] = []
    if answer_type == AnswerType.MULTIPLE_CHOICE:
        raw_options = record.get("options") or record.get("answers") or []
        for item in raw_options:
            if isinstance(item, dict):
                options.append(_clean(item.get("answer")))
                targets.append(_clean(item.get("next_question")))
            else:
                options.append(_clean(item))
        raw_targets = record.get("next_questions")
        if raw_targets is not None and not targets:
            targets = [_clean(t) for t in raw_targets]
        if not any(targets):
            targets = []

    section = _clean(record.get("section")) or None

    return Question(
        id=question_id,
        text=text,
        answer_type=answer_type,
        options=tuple(options),
        next_question_by_option=tuple(targets),
        is_final=_as_bool(record.get("is_last_question", record.get("is_final"))),
        section=section,
    )
