"""
Question sources.

Two strategies produce the same ordered list of Question records:

- SheetQuestionSource: a Google Sheet with a `questions` tab and an
  `answers` tab (one row per multiple-choice option, with its branch target)
- DocumentQuestionSource: the text of the questionnaire document, where
  questions look like `3. מהי מטרת ההשקעה? *בחירה*` followed by `א. דירה` lines
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import requests

from ..errors import QuestionLoadError, QuestionBankError
from ..logging_config import get_logger
from .bank import QuestionBank
from .model import Question, normalize_question

logger = get_logger(__name__)


class QuestionSource(ABC):
    """Produces the ordered question list for a new session."""

    name = "base"

    @abstractmethod
    def load_records(self) -> list[dict[str, Any]]:
        """Fetch raw question records. Raises QuestionLoadError."""

    def load(self) -> list[Question]:
        """Fetch and normalize the questions. Raises QuestionLoadError."""
        records = self.load_records()
        questions = []
        for record in records:
            try:
                questions.append(normalize_question(record))
            except ValueError as e:
                raise QuestionLoadError(f"Invalid question record from {self.name}: {e}") from e
        return questions


# =============================================================================
# Google Sheets
# =============================================================================

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{range}"


def _rows_to_records(rows: list[list[Any]]) -> list[dict[str, Any]]:
    """First row is the header; header names are trimmed and lower-cased."""
    if not rows:
        return []
    headers = [str(h).strip().lower() for h in rows[0]]
    records = []
    for row in rows[1:]:
        if not any(str(cell).strip() for cell in row):
            continue
        records.append({
            header: (row[i] if i < len(row) else "")
            for i, header in enumerate(headers)
        })
    return records


class SheetQuestionSource(QuestionSource):
    """Questions and answer options kept in a Google Sheet."""

    name = "google-sheets"

    QUESTIONS_RANGE = "questions"
    ANSWERS_RANGE = "answers"

    def __init__(
        self,
        sheet_id: str,
        api_key: str,
        timeout: int = 10,
        http: Optional[requests.Session] = None
    ):
        if not sheet_id or not api_key:
            raise QuestionLoadError("Missing GOOGLE_SHEETS_ID or GOOGLE_SHEETS_API_KEY")
        self.sheet_id = sheet_id
        self.api_key = api_key
        self.timeout = timeout
        self.http = http or requests.Session()

    def _fetch_range(self, range_name: str) -> list[list[Any]]:
        url = SHEETS_API_URL.format(sheet_id=self.sheet_id, range=range_name)
        try:
            resp = self.http.get(url, params={"key": self.api_key}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise QuestionLoadError(f"Failed to fetch {range_name} from Google Sheets: {e}") from e
        if not isinstance(data, dict):
            raise QuestionLoadError(f"Unexpected Google Sheets response for {range_name}")
        return data.get("values", [])

    def load_records(self) -> list[dict[str, Any]]:
        questions = _rows_to_records(self._fetch_range(self.QUESTIONS_RANGE))
        answers = _rows_to_records(self._fetch_range(self.ANSWERS_RANGE))
        logger.info(f"Fetched {len(questions)} questions and {len(answers)} answer options from Google Sheets")

        answers_by_question: dict[str, list[dict[str, Any]]] = {}
        for answer in answers:
            question_id = str(answer.get("question_id", "")).strip()
            answers_by_question.setdefault(question_id, []).append(answer)

        for question in questions:
            question_id = str(question.get("id", "")).strip()
            question["answers"] = answers_by_question.get(question_id, [])
        return questions


# =============================================================================
# Questionnaire document
# =============================================================================

_QUESTION_LINE = re.compile(r"^(\d+)\.\s*(.+?)\s*\*([^*]+)\*$")
_OPTION_LINE = re.compile(r"^([א-ת])\.\s*(.+)$")


def parse_questions_from_text(text: str) -> list[dict[str, Any]]:
    """
    Parse the questionnaire document text into raw question records.

    Ids are assigned sequentially ("1", "2", ...) in document order.
    Lines that are neither questions nor options of a choice question are ignored.
    """
    records: list[dict[str, Any]] = []
    current: Optional[dict[str, Any]] = None

    lines = [line.strip() for line in text.splitlines()]
    for line in lines:
        if not line:
            continue

        match = _QUESTION_LINE.match(line)
        if match:
            _, question_text, type_tag = match.groups()
            current = {
                "id": str(len(records) + 1),
                "text": question_text.strip(),
                "type": type_tag.strip(),
                "options": [],
            }
            records.append(current)
            continue

        option = _OPTION_LINE.match(line)
        if option and current is not None and current["type"] == "בחירה":
            current["options"].append(option.group(2).strip())

    if records:
        records[-1]["is_final"] = True
    return records


class DocumentQuestionSource(QuestionSource):
    """Questions parsed from the UTF-8 text export of the questionnaire document."""

    name = "document"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_records(self) -> list[dict[str, Any]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise QuestionLoadError(f"Cannot read questionnaire document {self.path}: {e}") from e
        records = parse_questions_from_text(text)
        logger.info(f"Parsed {len(records)} questions from {self.path.name}")
        return records


# =============================================================================
# Loading
# =============================================================================

def load_question_bank(source: QuestionSource) -> QuestionBank:
    """
    Load a session's question bank.

    Raises:
        QuestionLoadError: source failed, or returned no usable questions
    """
    questions = source.load()
    if not questions:
        raise QuestionBankError(f"Question source '{source.name}' returned no questions")

    bank = QuestionBank(questions)
    for question_id, target in bank.dangling_targets():
        logger.warning(f"Question '{question_id}' branches to unknown question '{target}'")
    return bank


def build_question_source(settings) -> QuestionSource:
    """Create the question source selected in Settings."""
    if settings.question_source == "document":
        if not settings.questions_document:
            raise QuestionLoadError("QUESTIONS_DOCUMENT is not set")
        return DocumentQuestionSource(settings.questions_document)
    return SheetQuestionSource(
        sheet_id=settings.google_sheets_id,
        api_key=settings.google_sheets_api_key,
        timeout=settings.sheets_timeout,
    )
