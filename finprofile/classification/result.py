"""
Classification result returned by the profile classification service.

The model is asked for JSON; two shapes are accepted:

    flat:  {"profile": "המאוזן", "description": "...", "recommendations": ["...", ...]}
    rich:  {"profile": {"name": "המאוזן", "confidence": 0.8},
            "analysis": {"risk_tolerance": "...", "investment_horizon": "..."},
            "explanation": {"profile_match": "..."},
            "recommendations": {"immediate_actions": {...}, "long_term_strategy": {...}},
            "reasoning": {"answer_analysis": "..."}}

Anything else, including a profile name outside FinancialProfile, raises
ClassificationError.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import ClassificationError


class FinancialProfile(str, Enum):
    """The four financial profiles a user can be assigned."""
    PLANNER = "המתכנן"
    GAMBLER = "המהמר"
    BALANCED = "המאוזן"
    CALCULATED = "המחושב"

    @classmethod
    def from_label(cls, label: Any) -> FinancialProfile:
        text = str(label or "").strip().strip('"').strip()
        for profile in cls:
            if profile.value == text:
                return profile
        raise ClassificationError(f"Profile label outside the allowed set: {text!r}")


@dataclass
class Recommendation:
    """Structured recommendation (rich response shape)."""
    title: str
    description: str
    timeline: str = ""
    priority: Optional[str] = None

    def to_text(self) -> str:
        return f"{self.title}: {self.description}" if self.title else self.description

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "timeline": self.timeline,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional[Recommendation]:
        if not isinstance(data, dict):
            return None
        title = str(data.get("title") or "").strip()
        description = str(data.get("description") or "").strip()
        if not title and not description:
            return None
        return cls(
            title=title,
            description=description,
            timeline=str(data.get("timeline") or "").strip(),
            priority=data.get("priority"),
        )


@dataclass
class ClassificationResult:
    """Profile assigned to a transcript."""
    profile: FinancialProfile
    explanation: str
    recommendations: list[str]
    confidence: Optional[float] = None
    risk_tolerance: Optional[str] = None
    investment_horizon: Optional[str] = None
    immediate_action: Optional[Recommendation] = None
    long_term_strategy: Optional[Recommendation] = None
    reasoning: Optional[str] = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def profile_label(self) -> str:
        return self.profile.value

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.value,
            "explanation": self.explanation,
            "recommendations": list(self.recommendations),
            "confidence": self.confidence,
            "riskTolerance": self.risk_tolerance,
            "investmentHorizon": self.investment_horizon,
            "immediateAction": self.immediate_action.to_dict() if self.immediate_action else None,
            "longTermStrategy": self.long_term_strategy.to_dict() if self.long_term_strategy else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ClassificationResult:
        """Validate a decoded response. Raises ClassificationError."""
        if not isinstance(data, dict):
            raise ClassificationError("Classification response is not a JSON object")

        profile_field = data.get("profile")
        if isinstance(profile_field, dict):
            profile = FinancialProfile.from_label(profile_field.get("name"))
            confidence = _parse_confidence(profile_field.get("confidence"))
        else:
            profile = FinancialProfile.from_label(profile_field)
            confidence = _parse_confidence(data.get("confidence"))

        explanation_field = data.get("explanation") or data.get("description")
        if isinstance(explanation_field, dict):
            explanation = str(explanation_field.get("profile_match") or "").strip()
        else:
            explanation = str(explanation_field or "").strip()
        if not explanation:
            raise ClassificationError("Classification response has no explanation")

        immediate = None
        long_term = None
        recommendations_field = data.get("recommendations")
        if isinstance(recommendations_field, dict):
            immediate = Recommendation.from_dict(recommendations_field.get("immediate_actions"))
            long_term = Recommendation.from_dict(recommendations_field.get("long_term_strategy"))
            recommendations = [r.to_text() for r in (immediate, long_term) if r]
        elif isinstance(recommendations_field, list):
            recommendations = [str(r).strip() for r in recommendations_field if str(r).strip()]
        else:
            recommendations = []
        if not recommendations:
            raise ClassificationError("Classification response has no recommendations")

        analysis = data.get("analysis") if isinstance(data.get("analysis"), dict) else {}
        reasoning_field = data.get("reasoning")
        if isinstance(reasoning_field, dict):
            reasoning = reasoning_field.get("answer_analysis")
        else:
            reasoning = reasoning_field

        return cls(
            profile=profile,
            explanation=explanation,
            recommendations=recommendations,
            confidence=confidence,
            risk_tolerance=analysis.get("risk_tolerance") or data.get("risk_tolerance"),
            investment_horizon=analysis.get("investment_horizon") or data.get("investment_horizon"),
            immediate_action=immediate,
            long_term_strategy=long_term,
            reasoning=reasoning,
            raw=data,
        )


def _parse_confidence(value: Any) -> Optional[float]:
    """Confidence as 0..1; percentages (e.g. 85) are scaled down."""
    if value is None or value == "":
        return None
    try:
        confidence = float(str(value).strip().rstrip("%"))
    except ValueError:
        return None
    if confidence > 1:
        confidence = confidence / 100
    return max(0.0, min(confidence, 1.0))


_CODE_FENCE = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)


def parse_classification(content: Optional[str]) -> ClassificationResult:
    """
    Decode the model's text answer into a ClassificationResult.

    Markdown code fences are stripped; if the text still is not valid JSON
    the outermost {...} block is tried.
    """
    if not content or not content.strip():
        raise ClassificationError("Empty classification response", raw_content=content)

    cleaned = _CODE_FENCE.sub("", content).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ClassificationError("Classification response is not JSON", raw_content=content)
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise ClassificationError(f"Classification response is not JSON: {e}", raw_content=content) from e

    try:
        return ClassificationResult.from_dict(data)
    except ClassificationError as e:
        e.raw_content = content
        raise
