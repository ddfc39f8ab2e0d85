"""
Tests for the question model, the question bank and both question sources.

Google Sheets responses are mocked - no network needed.
"""

import logging
from unittest.mock import MagicMock

import pytest
import requests

from finprofile.config import Settings
from finprofile.errors import QuestionBankError, QuestionLoadError
from finprofile.questions import (
    AnswerType,
    AnsweredQuestion,
    DocumentQuestionSource,
    Question,
    QuestionBank,
    SheetQuestionSource,
    build_question_source,
    digits_only,
    load_question_bank,
    normalize_question,
    parse_answer_type,
    parse_questions_from_text,
)

from conftest import StaticSource, q


QUESTIONNAIRE_TEXT = """שאלון פיננסי - FUTURE.AI

1. מה גילך? *מספר*
2. מהי מטרת ההשקעה? *בחירה*
א. דירה
ב. פרישה מוקדמת
ג. חיסכון
3. כמה כסף צברת? *סכום*
א. שורה שאינה אפשרות
4. ספר לי על ההרגלים הכספיים שלך *טקסט*
"""


def sheet_response(values):
    resp = MagicMock()
    resp.json.return_value = {"values": values}
    resp.raise_for_status.return_value = None
    return resp


QUESTIONS_ROWS = [
    ["ID ", "Section", "Question", "Type", "is_last_question"],
    ["1", "s1", "מה גילך?", "number", "FALSE"],
    ["2", "s1", "מהי מטרת ההשקעה?", "multiple", "FALSE"],
    ["", "", "", "", ""],
    ["3", "s2", "כמה כסף צברת?", "sum", "TRUE"],
]

ANSWERS_ROWS = [
    ["question_id", "answer_id", "answer", "next_question"],
    ["2", "1", "דירה", "3"],
    ["2", "2", "פרישה מוקדמת"],
]


# ═══════════════════════════════════════════════════════════════
# MODEL
# ═══════════════════════════════════════════════════════════════

class TestAnswerTypes:
    @pytest.mark.parametrize("raw,expected", [
        ("text", AnswerType.FREE_TEXT),
        ("number", AnswerType.INTEGER),
        ("sum", AnswerType.CURRENCY_AMOUNT),
        ("multiple", AnswerType.MULTIPLE_CHOICE),
        ("בחירה", AnswerType.MULTIPLE_CHOICE),
        ("מספר", AnswerType.INTEGER),
        ("סכום", AnswerType.CURRENCY_AMOUNT),
        (" Number ", AnswerType.INTEGER),
        ("something-else", AnswerType.FREE_TEXT),
        (None, AnswerType.FREE_TEXT),
    ])
    def test_parse_answer_type(self, raw, expected):
        assert parse_answer_type(raw) == expected

    def test_digits_only(self):
        assert digits_only("12,500 ₪") == "12500"
        assert digits_only("١٢") == ""


class TestQuestion:
    def test_options_and_targets_must_align(self):
        with pytest.raises(ValueError):
            Question(
                id="1", text="?", answer_type=AnswerType.MULTIPLE_CHOICE,
                options=("A", "B"), next_question_by_option=("2",),
            )

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            Question(id="", text="?")

    def test_branch_target(self):
        question = q("1", answer_type=AnswerType.MULTIPLE_CHOICE, options=["A", "B"], targets=["", " 7 "])
        assert question.branch_target("A") is None
        assert question.branch_target(" B ") == "7"
        assert question.branch_target("C") is None

    def test_free_text_has_no_branch(self):
        assert q("1").branch_target("A") is None

    def test_to_dict(self):
        question = q("2", answer_type=AnswerType.MULTIPLE_CHOICE, options=["A"], targets=["3"], section="s1")
        data = question.to_dict()
        assert data["type"] == "multiple_choice"
        assert data["options"] == ["A"]
        assert data["nextQuestions"] == ["3"]
        assert data["isLastQuestion"] is False
        assert data["section"] == "s1"

    def test_answered_question_wire_form(self):
        entry = AnsweredQuestion.from_dict({"questionId": 4, "question": "מה?", "answer": "כן"}, 2)
        assert entry.question_id == "4"
        assert entry.sequence_index == 2
        assert entry.to_dict() == {"questionId": "4", "question": "מה?", "answer": "כן"}


class TestNormalizeQuestion:
    def test_option_records(self):
        question = normalize_question({
            "id": "2",
            "question": "מהי מטרת ההשקעה?",
            "type": "multiple",
            "answers": [
                {"answer": "דירה", "next_question": "3"},
                {"answer": "חיסכון", "next_question": ""},
            ],
            "is_last_question": "FALSE",
            "section": "s1",
        })
        assert question.options == ("דירה", "חיסכון")
        assert question.next_question_by_option == ("3", "")
        assert question.is_final is False
        assert question.section == "s1"

    def test_plain_options_without_targets(self):
        question = normalize_question({"id": "1", "text": "?", "type": "בחירה", "options": ["א", "ב"]})
        assert question.options == ("א", "ב")
        assert question.next_question_by_option == ()

    def test_final_flag(self):
        assert normalize_question({"id": "1", "text": "?", "is_last_question": "TRUE"}).is_final
        assert normalize_question({"id": "1", "text": "?", "is_final": True}).is_final
        assert not normalize_question({"id": "1", "text": "?", "is_last_question": "false"}).is_final

    def test_options_ignored_for_non_choice(self):
        question = normalize_question({"id": "1", "text": "?", "type": "number", "answers": [{"answer": "x"}]})
        assert question.options == ()

    def test_missing_text_rejected(self):
        with pytest.raises(ValueError):
            normalize_question({"id": "1"})


# ═══════════════════════════════════════════════════════════════
# BANK
# ═══════════════════════════════════════════════════════════════

class TestQuestionBank:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(QuestionBankError):
            QuestionBank([q("1"), q("1")])

    def test_lookup(self):
        bank = QuestionBank([q("a"), q("b")])
        assert bank.position_of("b") == 1
        assert bank.position_of("zzz") is None
        assert bank.get("a").id == "a"
        assert len(bank) == 2

    def test_sections(self, sectioned_bank):
        assert sectioned_bank.sections == ("s1", "s2")
        assert sectioned_bank.first_section == "s1"
        assert sectioned_bank.second_section == "s2"
        assert sectioned_bank.section_ids("s1") == {"1", "2"}
        assert sectioned_bank.first_position_in("s2") == 2

    def test_unsectioned(self, sequential_bank):
        assert not sequential_bank.is_sectioned
        assert sequential_bank.first_section is None

    def test_dangling_targets(self):
        bank = QuestionBank([
            q("1", answer_type=AnswerType.MULTIPLE_CHOICE, options=["A", "B"], targets=["2", "9"]),
            q("2"),
        ])
        assert bank.dangling_targets() == [("1", "9")]


class TestLoadQuestionBank:
    def test_empty_source_rejected(self):
        with pytest.raises(QuestionBankError):
            load_question_bank(StaticSource([]))

    def test_dangling_target_logged(self, caplog):
        source = StaticSource([
            q("1", answer_type=AnswerType.MULTIPLE_CHOICE, options=["A"], targets=["missing"]),
        ])
        with caplog.at_level(logging.WARNING):
            bank = load_question_bank(source)
        assert len(bank) == 1
        assert "missing" in caplog.text


# ═══════════════════════════════════════════════════════════════
# SOURCES
# ═══════════════════════════════════════════════════════════════

class TestSheetQuestionSource:
    def test_loads_questions_and_options(self):
        http = MagicMock()
        http.get.side_effect = [sheet_response(QUESTIONS_ROWS), sheet_response(ANSWERS_ROWS)]
        source = SheetQuestionSource("SHEET", "KEY", http=http)

        questions = source.load()

        assert [x.id for x in questions] == ["1", "2", "3"]
        assert questions[0].answer_type == AnswerType.INTEGER
        assert questions[1].options == ("דירה", "פרישה מוקדמת")
        assert questions[1].next_question_by_option == ("3", "")
        assert questions[2].is_final
        assert questions[2].section == "s2"

        first_call = http.get.call_args_list[0]
        assert first_call.args[0].endswith("/spreadsheets/SHEET/values/questions")
        assert first_call.kwargs["params"] == {"key": "KEY"}

    def test_network_error_raises_load_error(self):
        http = MagicMock()
        http.get.side_effect = requests.ConnectionError("down")
        source = SheetQuestionSource("SHEET", "KEY", http=http)

        with pytest.raises(QuestionLoadError):
            source.load()

    def test_non_object_body_raises_load_error(self):
        http = MagicMock()
        resp = MagicMock()
        resp.json.return_value = ["not", "an", "object"]
        http.get.return_value = resp
        source = SheetQuestionSource("SHEET", "KEY", http=http)

        with pytest.raises(QuestionLoadError):
            source.load()

    def test_missing_credentials(self):
        with pytest.raises(QuestionLoadError):
            SheetQuestionSource("", "KEY")


class TestDocumentQuestionSource:
    def test_parse_text(self):
        records = parse_questions_from_text(QUESTIONNAIRE_TEXT)

        assert [r["id"] for r in records] == ["1", "2", "3", "4"]
        assert records[1]["options"] == ["דירה", "פרישה מוקדמת", "חיסכון"]
        assert records[2]["options"] == []
        assert records[-1]["is_final"] is True

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "questions.txt"
        path.write_text(QUESTIONNAIRE_TEXT, encoding="utf-8")

        questions = DocumentQuestionSource(path).load()

        assert [x.answer_type for x in questions] == [
            AnswerType.INTEGER,
            AnswerType.MULTIPLE_CHOICE,
            AnswerType.CURRENCY_AMOUNT,
            AnswerType.FREE_TEXT,
        ]
        assert questions[0].text == "מה גילך?"
        assert questions[-1].is_final
        assert not questions[0].is_final

    def test_missing_file(self, tmp_path):
        with pytest.raises(QuestionLoadError):
            DocumentQuestionSource(tmp_path / "nope.txt").load()

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "questions.txt"
        path.write_bytes(b"1. \xff\xfe bad *\xd7\x98*")

        with pytest.raises(QuestionLoadError):
            DocumentQuestionSource(path).load()


class TestBuildQuestionSource:
    def test_document(self):
        source = build_question_source(Settings(question_source="document", questions_document="q.txt"))
        assert isinstance(source, DocumentQuestionSource)

    def test_sheets(self):
        settings = Settings(google_sheets_id="SHEET", google_sheets_api_key="KEY")
        assert isinstance(build_question_source(settings), SheetQuestionSource)

    def test_sheets_without_credentials(self):
        with pytest.raises(QuestionLoadError):
            build_question_source(Settings())
