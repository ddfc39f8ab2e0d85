"""
User-facing chat messages.

The wording is fixed Hebrew text; what callers rely on is the category
(info or error) each message carries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..classification.result import ClassificationResult


class MessageKind(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class ChatMessage:
    """One chat bubble emitted by the engine."""
    role: str  # "bot" or "user"
    content: str
    kind: MessageKind = MessageKind.INFO
    question_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.kind == MessageKind.ERROR

    def to_dict(self) -> dict:
        data = {"role": self.role, "content": self.content, "kind": self.kind.value}
        if self.question_id is not None:
            data["questionId"] = self.question_id
        return data


WELCOME_MESSAGES = (
    "היי,\nאני FUTURE.AI והמטרה שלי היא להוביל אותך להפסיק לפחד מכסף ולחיות בשלווה כלכלית.",
    "אני הולך לשאול אותך מספר שאלות, כדי להכיר אותך יותר טוב ולעזור לך לתכנן את החיים העשירים שתמיד חלמת לחיות ולבנות תיק השקעות מגוון.",
    "שנתחיל?",
)
START_REPLY = "יאללה!"

LOADING = "טוען שאלות..."
PROCESSING_ANSWER = "מעבד את התשובה שלך..."
GENERATING_PROFILE = "מסיק מסקנות ומעבד את התשובות..."

LOAD_ERROR = "מצטערים, אירעה שגיאה בטעינת השאלות. אנא נסו שוב מאוחר יותר."
GENERIC_ERROR = "מצטערים, אירעה שגיאה. אנא נסו שוב מאוחר יותר."
INVALID_BRANCH_ERROR = "מצטערים, נמצאה תקלה במבנה השאלון. אנא נסו שוב מאוחר יותר."

PROFILE_TEMPLATE = "הפרופיל הפיננסי שלך הוא: {profile}"
TRANSITION_TEMPLATE = "על סמך התשובות עד כה, הפרופיל הפיננסי שלך הוא: {profile}. עכשיו נעבור לשאלות על היעד הכספי שלך."
IMMEDIATE_TEMPLATE = "המלצה מיידית:\n• {recommendation}"
RECOMMENDATIONS_HEADER = "המלצות:"

EMAIL_PROMPT = "אנא הזן את כתובת המייל שלך כדי שנציג שלנו יוכל ליצור איתך קשר:"
THANK_YOU = "תודה! נציג שלנו יצור איתך קשר בהקדם."


def bot(content: str, question_id: Optional[str] = None) -> ChatMessage:
    return ChatMessage(role="bot", content=content, question_id=question_id)


def user(content: str) -> ChatMessage:
    return ChatMessage(role="user", content=content)


def error(content: str) -> ChatMessage:
    return ChatMessage(role="bot", content=content, kind=MessageKind.ERROR)


def welcome_messages() -> list[ChatMessage]:
    return [bot(text) for text in WELCOME_MESSAGES]


def result_messages(result: ClassificationResult) -> list[ChatMessage]:
    """
    Chat bubbles for a final classification.

    Profile label, explanation, the immediate recommendation (or the full
    list when the response had no structured one), then the email prompt.
    Empty bubbles are dropped.
    """
    if result.immediate_action:
        recommendation_text = IMMEDIATE_TEMPLATE.format(
            recommendation=result.immediate_action.to_text()
        )
    else:
        recommendation_text = RECOMMENDATIONS_HEADER + "\n" + "\n".join(
            f"• {item}" for item in result.recommendations
        )

    contents = [
        PROFILE_TEMPLATE.format(profile=result.profile_label),
        result.explanation,
        recommendation_text,
        EMAIL_PROMPT,
    ]
    return [bot(text) for text in contents if text and text.strip()]


def transition_message(result: ClassificationResult) -> ChatMessage:
    return bot(TRANSITION_TEMPLATE.format(profile=result.profile_label))
