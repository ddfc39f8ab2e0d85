"""
Shared fakes for the questionnaire tests - no network, no LLM.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from finprofile.classification import ClassificationResult, FinancialProfile, ProfileClassifier
from finprofile.errors import QuestionLoadError
from finprofile.questions import AnswerType, Question, QuestionBank, QuestionSource


def make_result(profile=FinancialProfile.BALANCED, explanation="הסבר", recommendations=None):
    return ClassificationResult(
        profile=profile,
        explanation=explanation,
        recommendations=recommendations or ["לחסוך 10% מההכנסה"],
    )


class FakeClassifier(ProfileClassifier):
    """Records every call; returns queued results (or raises queued exceptions)."""

    name = "fake"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def classify(self, transcript, stage=None):
        self.calls.append((list(transcript), stage))
        outcome = self.outcomes.pop(0) if self.outcomes else make_result()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StaticSource(QuestionSource):
    """Question source over an in-memory list."""

    name = "static"

    def __init__(self, questions=None, error=None):
        self.questions = questions or []
        self.error = error

    def load_records(self):
        raise NotImplementedError

    def load(self):
        if self.error:
            raise QuestionLoadError(self.error)
        return list(self.questions)


def q(question_id, text=None, answer_type=AnswerType.FREE_TEXT, options=(), targets=(),
      final=False, section=None):
    return Question(
        id=question_id,
        text=text or f"שאלה {question_id}",
        answer_type=answer_type,
        options=tuple(options),
        next_question_by_option=tuple(targets),
        is_final=final,
        section=section,
    )


@pytest.fixture
def sequential_bank():
    return QuestionBank([q("1"), q("2"), q("3")])


@pytest.fixture
def branching_bank():
    return QuestionBank([
        q("q1", answer_type=AnswerType.MULTIPLE_CHOICE, options=["A", "B"], targets=["", "q3"]),
        q("q2", final=True),
        q("q3", final=True),
    ])


@pytest.fixture
def sectioned_bank():
    return QuestionBank([
        q("1", section="s1"),
        q("2", answer_type=AnswerType.CURRENCY_AMOUNT, section="s1"),
        q("3", section="s2"),
        q("4", section="s2", final=True),
    ])
