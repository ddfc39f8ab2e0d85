"""
QuestionBank - the immutable question list of one session.

Built once when the questions are loaded and handed to the conversation
engine, which uses its id index to follow explicit branches.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..errors import QuestionBankError
from .model import Question


class QuestionBank:
    """Ordered, immutable question list with an id -> position index."""

    def __init__(self, questions: Iterable[Question]):
        self._questions: tuple[Question, ...] = tuple(questions)
        self._positions: dict[str, int] = {}
        sections: list[str] = []

        for position, question in enumerate(self._questions):
            if question.id in self._positions:
                raise QuestionBankError(f"Duplicate question id: {question.id}")
            self._positions[question.id] = position
            if question.section and question.section not in sections:
                sections.append(question.section)

        self._sections: tuple[str, ...] = tuple(sections)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __getitem__(self, position: int) -> Question:
        return self._questions[position]

    def __bool__(self) -> bool:
        return bool(self._questions)

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    def position_of(self, question_id: str) -> Optional[int]:
        """Position of a question id, or None if the id is unknown."""
        return self._positions.get(question_id)

    def get(self, question_id: str) -> Optional[Question]:
        position = self._positions.get(question_id)
        return None if position is None else self._questions[position]

    # -- sections -----------------------------------------------------------

    @property
    def sections(self) -> tuple[str, ...]:
        """Section tags in order of first appearance."""
        return self._sections

    @property
    def is_sectioned(self) -> bool:
        return bool(self._sections)

    @property
    def first_section(self) -> Optional[str]:
        return self._sections[0] if self._sections else None

    @property
    def second_section(self) -> Optional[str]:
        return self._sections[1] if len(self._sections) > 1 else None

    def section_ids(self, section: str) -> set[str]:
        return {q.id for q in self._questions if q.section == section}

    def first_position_in(self, section: str) -> Optional[int]:
        for position, question in enumerate(self._questions):
            if question.section == section:
                return position
        return None

    # -- integrity ----------------------------------------------------------

    def dangling_targets(self) -> list[tuple[str, str]]:
        """(question id, target id) pairs whose target does not exist."""
        dangling = []
        for question in self._questions:
            for target in question.next_question_by_option:
                if target and target not in self._positions:
                    dangling.append((question.id, target))
        return dangling

    def to_list(self) -> list[dict]:
        return [q.to_dict() for q in self._questions]
