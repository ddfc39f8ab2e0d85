"""
Assistant classifier - runs the classification on a pre-configured OpenAI
assistant (see scripts/create_assistant.py).

Each classification uses a fresh thread:
1. create a thread and post the transcript as one user message
2. start a run on the assistant
3. poll the run until it completes (failed/cancelled/expired raise)
4. read the newest assistant text message and parse it
"""

import time
from typing import Any, Callable, Optional, Sequence

from ..errors import ClassificationError
from ..logging_config import get_logger, log_performance
from ..prompts import create_profile_request
from ..questions.model import AnsweredQuestion
from .base import ClassificationStage, ProfileClassifier
from .result import ClassificationResult, parse_classification

logger = get_logger(__name__)

TERMINAL_FAILURES = ("failed", "cancelled", "expired", "incomplete")


class AssistantProfileClassifier(ProfileClassifier):
    """Classifies through the OpenAI Assistants threads API."""

    name = "assistant"

    def __init__(
        self,
        client: Any,
        assistant_id: str,
        poll_interval: float = 5.0,
        max_polls: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            client: openai.OpenAI client
            assistant_id: Id of the assistant holding the profile instructions
            poll_interval: Seconds between run status checks
            max_polls: Give up after this many status checks (None = wait for the run)
            sleep: Sleep function between polls
        """
        self.client = client
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep

    @log_performance
    def classify(
        self,
        transcript: Sequence[AnsweredQuestion],
        stage: ClassificationStage = ClassificationStage.FINAL
    ) -> ClassificationResult:
        if not transcript:
            raise ClassificationError("Cannot classify an empty transcript")

        threads = self.client.beta.threads
        content = create_profile_request(
            transcript, phase_one=stage == ClassificationStage.PHASE_ONE
        )

        try:
            thread = threads.create()
            threads.messages.create(thread_id=thread.id, role="user", content=content)
            run = threads.runs.create(thread_id=thread.id, assistant_id=self.assistant_id)
            logger.info(f"Assistant run {run.id} started on thread {thread.id} ({stage.value})")

            self._wait_for_run(thread.id, run)
            messages = threads.messages.list(thread_id=thread.id)
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(f"Assistant request failed: {e}") from e

        text = self._first_assistant_text(messages)
        return parse_classification(text)

    def _wait_for_run(self, thread_id: str, run: Any) -> None:
        polls = 0
        status = run.status
        while status != "completed":
            if status in TERMINAL_FAILURES:
                raise ClassificationError(f"Assistant run {run.id} ended with status '{status}'")
            if self.max_polls is not None and polls >= self.max_polls:
                raise ClassificationError(
                    f"Assistant run {run.id} still '{status}' after {polls} status checks"
                )
            self._sleep(self.poll_interval)
            run = self.client.beta.threads.runs.retrieve(run_id=run.id, thread_id=thread_id)
            status = run.status
            polls += 1
            logger.debug(f"Assistant run {run.id} status: {status}")

    @staticmethod
    def _first_assistant_text(messages: Any) -> str:
        """Newest assistant message text (the list is newest first)."""
        for message in getattr(messages, "data", []):
            if message.role != "assistant":
                continue
            for part in message.content:
                if getattr(part, "type", None) == "text":
                    return part.text.value
        raise ClassificationError("Assistant returned no text message")
