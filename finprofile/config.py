"""
Runtime configuration.

Everything is read from the environment (optionally seeded from a `.env`
file next to the project) into a single Settings object that the web app,
the CLI and the assistant bootstrap script share.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

QUESTION_SOURCES = ("sheets", "document")
CLASSIFIER_BACKENDS = ("chat", "assistant")


@dataclass
class Settings:
    """Application settings."""
    # Question source
    question_source: str = "sheets"
    google_sheets_id: Optional[str] = None
    google_sheets_api_key: Optional[str] = None
    questions_document: Optional[str] = None
    sheets_timeout: int = 10

    # Classification
    classifier_backend: str = "chat"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_assistant_id: Optional[str] = None
    llm_providers: List[str] = field(default_factory=lambda: ["openai", "groq", "ollama"])
    profiles_dir: Optional[str] = None
    assistant_poll_interval: float = 5.0
    assistant_max_polls: Optional[int] = None

    # Contact hand-off after the profile is shown
    contact_webhook_url: Optional[str] = None

    # Service
    log_level: str = "INFO"
    log_file: Optional[str] = None
    port: int = 5001

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []
        if self.question_source not in QUESTION_SOURCES:
            problems.append(f"QUESTION_SOURCE must be one of {QUESTION_SOURCES}")
        elif self.question_source == "sheets":
            if not self.google_sheets_id or not self.google_sheets_api_key:
                problems.append("Missing GOOGLE_SHEETS_ID or GOOGLE_SHEETS_API_KEY")
        elif not self.questions_document:
            problems.append("QUESTIONS_DOCUMENT is not set")

        if self.classifier_backend not in CLASSIFIER_BACKENDS:
            problems.append(f"CLASSIFIER_BACKEND must be one of {CLASSIFIER_BACKENDS}")
        elif self.classifier_backend == "assistant":
            if not self.openai_api_key:
                problems.append("OPENAI_API_KEY is missing")
            if not self.openai_assistant_id:
                problems.append("OPENAI_ASSISTANT_ID is missing (run scripts/create_assistant.py)")
        return problems


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: .env file to load first (defaults to PROJECT_ROOT/.env).
            Values already present in the environment win.
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env", override=False)

    defaults = Settings()
    return Settings(
        question_source=os.getenv("QUESTION_SOURCE", defaults.question_source).lower(),
        google_sheets_id=os.getenv("GOOGLE_SHEETS_ID"),
        google_sheets_api_key=os.getenv("GOOGLE_SHEETS_API_KEY"),
        questions_document=os.getenv("QUESTIONS_DOCUMENT"),
        sheets_timeout=int(os.getenv("SHEETS_TIMEOUT", str(defaults.sheets_timeout))),
        classifier_backend=os.getenv("CLASSIFIER_BACKEND", defaults.classifier_backend).lower(),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", defaults.openai_model),
        openai_assistant_id=os.getenv("OPENAI_ASSISTANT_ID"),
        llm_providers=_env_list("LLM_PROVIDERS", defaults.llm_providers),
        profiles_dir=os.getenv("PROFILES_DIR"),
        assistant_poll_interval=float(os.getenv("ASSISTANT_POLL_INTERVAL", str(defaults.assistant_poll_interval))),
        assistant_max_polls=_env_optional_int("ASSISTANT_MAX_POLLS"),
        contact_webhook_url=os.getenv("CONTACT_WEBHOOK_URL"),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        log_file=os.getenv("LOG_FILE"),
        port=int(os.getenv("PORT", str(defaults.port))),
    )
