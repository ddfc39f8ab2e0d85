"""
Chat classifier - sends an answered questionnaire to a chat model through
the LLM manager and validates the profile it returns.
"""

from __future__ import annotations

from typing import Optional, Sequence

from openai import OpenAI

from ..errors import ClassificationError
from ..llm.base import Message
from ..llm.manager import LLMManager, get_llm_manager
from ..logging_config import get_logger, log_performance
from ..prompts import create_system_prompt, create_profile_request
from ..questions.model import AnsweredQuestion
from .assistant import AssistantProfileClassifier
from .base import ClassificationStage, ProfileClassifier
from .profiles import ProfileLibrary
from .result import ClassificationResult, parse_classification

logger = get_logger(__name__)


class ChatProfileClassifier(ProfileClassifier):
    """One chat completion per classification, through the LLM manager."""

    name = "chat"

    def __init__(
        self,
        llm_manager: Optional[LLMManager] = None,
        profile_library: Optional[ProfileLibrary] = None,
        temperature: float = 0.4
    ):
        self.llm_manager = llm_manager or get_llm_manager(single_attempt=True)
        self.profile_library = profile_library or ProfileLibrary.load()
        self.temperature = temperature
        self._system_prompt = create_system_prompt(self.profile_library.render())

    @log_performance
    def classify(
        self,
        transcript: Sequence[AnsweredQuestion],
        stage: ClassificationStage = ClassificationStage.FINAL
    ) -> ClassificationResult:
        if not transcript:
            raise ClassificationError("Cannot classify an empty transcript")

        messages = [
            Message(role="system", content=self._system_prompt),
            Message(
                role="user",
                content=create_profile_request(
                    transcript, phase_one=stage == ClassificationStage.PHASE_ONE
                )
            ),
        ]

        try:
            response = self.llm_manager.chat(
                messages,
                temperature=self.temperature,
                json_mode=True
            )
        except Exception as e:
            raise ClassificationError(f"Classification request failed: {e}") from e

        result = parse_classification(response.content)
        logger.info(
            f"Classified {len(transcript)} answers ({stage.value}) as {result.profile_label} "
            f"via {response.provider}/{response.model}"
        )
        return result


def build_classifier(settings) -> ProfileClassifier:
    """Create the classifier selected in Settings."""
    if settings.classifier_backend == "assistant":
        if not settings.openai_api_key or not settings.openai_assistant_id:
            raise ClassificationError(
                "OPENAI_API_KEY and OPENAI_ASSISTANT_ID are required for the assistant backend"
            )
        return AssistantProfileClassifier(
            client=OpenAI(api_key=settings.openai_api_key),
            assistant_id=settings.openai_assistant_id,
            poll_interval=settings.assistant_poll_interval,
            max_polls=settings.assistant_max_polls,
        )

    manager = get_llm_manager(
        provider_priority=settings.llm_providers,
        openai_model=settings.openai_model,
        single_attempt=True
    )
    return ChatProfileClassifier(
        llm_manager=manager,
        profile_library=ProfileLibrary.load(settings.profiles_dir)
    )
