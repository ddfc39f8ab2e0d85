"""
Profile Classifier interface.

Two stages share one interface:
- PHASE_ONE: only the first section of a sectioned questionnaire was answered
- FINAL: the whole transcript, at the end of the questionnaire
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from ..questions.model import AnsweredQuestion
from .result import ClassificationResult


class ClassificationStage(Enum):
    """Point of the questionnaire at which a classification is requested."""
    PHASE_ONE = "phase_one"
    FINAL = "final"


class ProfileClassifier(ABC):
    """Assigns one of the four financial profiles to a transcript."""

    name = "base"

    @abstractmethod
    def classify(
        self,
        transcript: Sequence[AnsweredQuestion],
        stage: ClassificationStage = ClassificationStage.FINAL
    ) -> ClassificationResult:
        """
        Classify an ordered transcript.

        Raises:
            ClassificationError: service unreachable, failed, or returned
                anything other than a valid result
        """
