"""
Conversation Engine - sequences the questionnaire and drives classification.

Flow:
1. start(): ask the first question
2. submit_answer(): store the answer, then either ask the next question or
   classify the transcript
3. Two-section questionnaires (questions tagged `s1`, `s2`, ...) get a
   phase-one classification once the first section is done; its profile is
   announced before the second section starts.

Next-question rule, first match wins:
  a. multiple-choice option with a branch target -> that question
  b. last unanswered question of the first section -> phase-one
     classification, then the first question of the second section
  c. the next question in list order

The engine is single-threaded; callers serialize submissions per session.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from ..classification.base import ClassificationStage, ProfileClassifier
from ..classification.result import ClassificationResult
from ..errors import EngineStateError, InvalidBranchError, QuestionLoadError
from ..logging_config import get_logger
from ..questions.bank import QuestionBank
from ..questions.model import AnsweredQuestion, Question
from ..questions.sources import QuestionSource, load_question_bank
from . import messages
from .messages import ChatMessage

logger = get_logger(__name__)


class ConversationPhase(str, Enum):
    """Engine lifecycle."""
    IDLE = "idle"
    COLLECTING = "collecting"
    AWAITING_CLASSIFICATION = "awaiting_classification"
    CLASSIFIED = "classified"
    FAILED = "failed"


class ConversationEngine:
    """
    One questionnaire session.

    Usage:
        engine = ConversationEngine(bank, classifier)
        engine.start()
        engine.submit_answer("35")
    """

    def __init__(self, bank: Optional[QuestionBank], classifier: ProfileClassifier):
        self.bank = bank
        self.classifier = classifier
        self._reset_state()

    @classmethod
    def load(cls, source: QuestionSource, classifier: ProfileClassifier) -> ConversationEngine:
        """
        Build an engine from a question source.

        A failing source gives an engine without questions; its start()
        emits the load error instead of a question.
        """
        try:
            bank = load_question_bank(source)
        except QuestionLoadError as e:
            logger.error(f"Failed to load questions: {e}", exc_info=True)
            bank = None
        return cls(bank, classifier)

    def _reset_state(self):
        self.phase = ConversationPhase.IDLE
        self.current_index = 0
        self._transcript: list[AnsweredQuestion] = []
        self._messages: list[ChatMessage] = []
        self.phase_one_result: Optional[ClassificationResult] = None
        self.result: Optional[ClassificationResult] = None
        self.contact_email: Optional[str] = None

    # -- state --------------------------------------------------------------

    @property
    def transcript(self) -> tuple[AnsweredQuestion, ...]:
        return tuple(self._transcript)

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        """Every message of the session, user answers included."""
        return tuple(self._messages)

    @property
    def current_question(self) -> Optional[Question]:
        """The question waiting for an answer, if any."""
        if self.phase != ConversationPhase.COLLECTING or not self.bank:
            return None
        return self.bank[self.current_index]

    @property
    def is_finished(self) -> bool:
        return self.phase in (ConversationPhase.CLASSIFIED, ConversationPhase.FAILED)

    def get_progress(self) -> dict:
        """Progress info for the UI."""
        total = len(self.bank) if self.bank else 0
        if self.phase == ConversationPhase.IDLE:
            current = 0
        elif self.phase == ConversationPhase.COLLECTING:
            current = self.current_index + 1
        else:
            current = total if self.phase == ConversationPhase.CLASSIFIED else len(self._transcript)
        current = min(current, total)

        question = self.current_question
        return {
            "current": current,
            "total": total,
            "percent": round(current / total * 100) if total else 0,
            "phase": self.phase.value,
            "section": question.section if question else None,
        }

    # -- operations ---------------------------------------------------------

    def start(self) -> list[ChatMessage]:
        """Ask the first question (or emit the load error)."""
        if self.phase != ConversationPhase.IDLE:
            raise EngineStateError(f"Cannot start a conversation in phase '{self.phase.value}'")

        if not self.bank:
            self.phase = ConversationPhase.FAILED
            return self._emit([messages.error(messages.LOAD_ERROR)])

        self.current_index = 0
        self.phase = ConversationPhase.COLLECTING
        logger.info(f"Conversation started with {len(self.bank)} questions")
        return self._emit([self._question_message(self.bank[0])])

    def submit_answer(self, raw_text: str) -> list[ChatMessage]:
        """
        Record an answer to the current question and move on.

        Returns the bot messages emitted in response.

        Raises:
            EngineStateError: no question is waiting for an answer
        """
        if self.phase != ConversationPhase.COLLECTING:
            raise EngineStateError(f"Cannot submit an answer in phase '{self.phase.value}'")

        question = self.bank[self.current_index]
        answer = question.normalize_answer(raw_text)
        self._transcript.append(AnsweredQuestion(
            question_id=question.id,
            sequence_index=len(self._transcript) + 1,
            question_text=question.text,
            answer_text=answer,
            section=question.section,
        ))
        self._messages.append(messages.user(answer))
        logger.debug(f"Answer recorded for question {question.id}")

        if question.is_final:
            return self._emit(self._classify_final())

        emitted: list[ChatMessage] = []
        try:
            next_position = self._resolve_next(question, answer, emitted)
        except InvalidBranchError as e:
            logger.error(str(e))
            self.phase = ConversationPhase.FAILED
            emitted.append(messages.error(messages.INVALID_BRANCH_ERROR))
            return self._emit(emitted)
        except Exception as e:
            logger.error(f"Phase-one classification failed: {e}", exc_info=True)
            self.phase = ConversationPhase.FAILED
            emitted.append(messages.error(messages.GENERIC_ERROR))
            return self._emit(emitted)

        if next_position is None:
            emitted.extend(self._classify_final())
            return self._emit(emitted)

        self.current_index = next_position
        emitted.append(self._question_message(self.bank[next_position]))
        return self._emit(emitted)

    def submit_contact(self, email: str) -> list[ChatMessage]:
        """Record the contact email given after the profile was shown."""
        if self.phase != ConversationPhase.CLASSIFIED:
            raise EngineStateError(f"Cannot record contact details in phase '{self.phase.value}'")
        self.contact_email = email.strip()
        self._messages.append(messages.user(self.contact_email))
        return self._emit([messages.bot(messages.THANK_YOU)])

    def reset(self):
        """Back to a fresh, unstarted session over the same questions."""
        self._reset_state()
        logger.info("Conversation reset")

    def to_payload(self) -> dict:
        """Transcript, result and contact details for hand-off."""
        return {
            "questionsAndAnswers": [entry.to_dict() for entry in self._transcript],
            "phaseOneProfile": self.phase_one_result.to_dict() if self.phase_one_result else None,
            "profile": self.result.to_dict() if self.result else None,
            "email": self.contact_email,
        }

    # -- transitions --------------------------------------------------------

    def _resolve_next(self, question: Question, answer: str, emitted: list[ChatMessage]) -> Optional[int]:
        """Position of the next question, or None when the questionnaire is done."""
        bank = self.bank
        first_section = bank.first_section

        # a. explicit branch
        target = question.branch_target(answer)
        if target:
            position = bank.position_of(target)
            if position is None:
                raise InvalidBranchError(question.id, target)
            if self._leaves_first_section(question, bank[position]):
                emitted.append(self._classify_phase_one())
            return position

        # b. first section complete
        if (
            first_section
            and question.section == first_section
            and self.phase_one_result is None
            and bank.section_ids(first_section) <= {e.question_id for e in self._transcript}
        ):
            emitted.append(self._classify_phase_one())
            second_section = bank.second_section
            if second_section is None:
                return None
            return bank.first_position_in(second_section)

        # c. sequential
        position = self.current_index + 1
        if position >= len(bank):
            return None
        if self._leaves_first_section(question, bank[position]):
            emitted.append(self._classify_phase_one())
        return position

    def _leaves_first_section(self, question: Question, next_question: Question) -> bool:
        first_section = self.bank.first_section
        return (
            first_section is not None
            and self.phase_one_result is None
            and question.section == first_section
            and next_question.section != first_section
        )

    def _classify_phase_one(self) -> ChatMessage:
        """Classify the first-section answers. Errors propagate to submit_answer."""
        first_section = self.bank.first_section
        subset = [e for e in self._transcript if e.section == first_section]

        self.phase = ConversationPhase.AWAITING_CLASSIFICATION
        result = self.classifier.classify(subset, ClassificationStage.PHASE_ONE)
        self.phase = ConversationPhase.COLLECTING

        self.phase_one_result = result
        logger.info(f"Phase-one profile: {result.profile_label} ({len(subset)} answers)")
        return messages.transition_message(result)

    def _classify_final(self) -> list[ChatMessage]:
        self.phase = ConversationPhase.AWAITING_CLASSIFICATION
        try:
            result = self.classifier.classify(self.transcript, ClassificationStage.FINAL)
        except Exception as e:
            logger.error(f"Final classification failed: {e}", exc_info=True)
            self.phase = ConversationPhase.FAILED
            return [messages.error(messages.GENERIC_ERROR)]

        self.result = result
        self.phase = ConversationPhase.CLASSIFIED
        logger.info(f"Final profile: {result.profile_label} ({len(self._transcript)} answers)")
        return messages.result_messages(result)

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _question_message(question: Question) -> ChatMessage:
        return messages.bot(question.text, question_id=question.id)

    def _emit(self, emitted: list[ChatMessage]) -> list[ChatMessage]:
        self._messages.extend(emitted)
        return emitted
