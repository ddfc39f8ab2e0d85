"""
Reference descriptions of the four financial profiles.

The full profile reports live as text exports named
`דוח פיננסי - <profile>.txt` in PROFILES_DIR; they are added to the
classifier prompt so the model compares answers against the real reports.
Profiles without a report fall back to a one-line description.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..logging_config import get_logger
from .result import FinancialProfile

logger = get_logger(__name__)

PROFILE_SUMMARIES = {
    FinancialProfile.PLANNER: "אתה מתכנן פיננסי זהיר ומחושב, המעדיף ביטחון ויציבות.",
    FinancialProfile.GAMBLER: "אתה משקיע אמיץ, מוכן לקחת סיכונים משמעותיים להשגת תשואות גבוהות.",
    FinancialProfile.BALANCED: "אתה משקיע מאוזן, המשלב בין סיכון לתשואה בצורה חכמה.",
    FinancialProfile.CALCULATED: "אתה משקיע מחושב, המשלב בין תכנון קפדני לנטילת סיכונים מבוקרת.",
}

REPORT_FILENAME = "דוח פיננסי - {name}.txt"


@dataclass
class ProfileDocument:
    profile: FinancialProfile
    content: str


class ProfileLibrary:
    """Profile reports loaded once and rendered into prompts."""

    def __init__(self, documents: list[ProfileDocument]):
        self.documents = documents

    @classmethod
    def load(cls, directory: Optional[str | Path] = None) -> ProfileLibrary:
        documents = []
        for profile in FinancialProfile:
            content = None
            if directory:
                path = Path(directory) / REPORT_FILENAME.format(name=profile.value)
                try:
                    content = path.read_text(encoding="utf-8").strip()
                except OSError as e:
                    logger.warning(f"Profile report for {profile.value} unavailable: {e}")
            documents.append(ProfileDocument(profile, content or PROFILE_SUMMARIES[profile]))
        return cls(documents)

    def render(self) -> str:
        """All profiles formatted for the classifier prompt."""
        return "\n".join(
            f"פרופיל פיננסי: {doc.profile.value}\n{doc.content}\n---\n"
            for doc in self.documents
        )
