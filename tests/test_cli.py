"""
Tests for the terminal runner.
"""

import sys
from unittest.mock import patch

import pytest

from finprofile.cli import format_question, main, resolve_option, run_interactive
from finprofile.config import Settings
from finprofile.engine import ConversationEngine, ConversationPhase
from finprofile.engine import messages
from finprofile.questions import AnswerType, QuestionBank

from conftest import FakeClassifier, q


GOAL = q("goal", text="מהי מטרת ההשקעה?", answer_type=AnswerType.MULTIPLE_CHOICE,
         options=["דירה", "פרישה מוקדמת"], targets=["", "age"])


def scripted(*answers):
    queue = list(answers)
    return lambda prompt: queue.pop(0)


class TestOptions:
    def test_numbered_options(self):
        assert format_question(GOAL) == "מהי מטרת ההשקעה?\n  1. דירה\n  2. פרישה מוקדמת"

    def test_choose_by_number(self):
        assert resolve_option(GOAL, "2") == "פרישה מוקדמת"
        assert resolve_option(GOAL, " דירה ") == "דירה"
        assert resolve_option(GOAL, "7") == "7"

    def test_numbers_kept_for_numeric_questions(self):
        assert resolve_option(q("age", answer_type=AnswerType.INTEGER), "2") == "2"


class TestRunInteractive:
    def test_full_session(self):
        bank = QuestionBank([GOAL, q("savings"), q("age", final=True)])
        classifier = FakeClassifier()
        engine = ConversationEngine(bank, classifier)
        output = []

        run_interactive(engine, input_fn=scripted("2", "40", "dana@example.com"), output=output.append)

        assert engine.phase == ConversationPhase.CLASSIFIED
        assert [e.question_id for e in engine.transcript] == ["goal", "age"]
        assert engine.transcript[0].answer_text == "פרישה מוקדמת"
        assert engine.contact_email == "dana@example.com"
        assert any(messages.THANK_YOU in line for line in output)

    def test_quit(self):
        engine = ConversationEngine(QuestionBank([q("1"), q("2")]), FakeClassifier())
        run_interactive(engine, input_fn=scripted("quit"), output=lambda line: None)

        assert engine.phase == ConversationPhase.COLLECTING
        assert engine.transcript == ()

    def test_reset_command(self):
        engine = ConversationEngine(QuestionBank([q("1"), q("2", final=True)]), FakeClassifier())
        run_interactive(engine, input_fn=scripted("a", "reset", "b", "c", ""), output=lambda line: None)

        assert [e.answer_text for e in engine.transcript] == ["b", "c"]
        assert engine.contact_email is None


class TestMain:
    def test_assistant_without_credentials_exits(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "questions.txt"
        path.write_text("1. מה גילך? *מספר*\n", encoding="utf-8")
        settings = Settings(
            question_source="document",
            questions_document=str(path),
            classifier_backend="assistant",
        )
        monkeypatch.setattr(sys, "argv", ["finprofile"])

        with patch("finprofile.cli.load_settings", return_value=settings), \
                patch("finprofile.cli.setup_logging"), \
                patch("finprofile.cli.run_interactive") as mock_run:
            with pytest.raises(SystemExit) as exc:
                main()

        assert exc.value.code == 1
        assert "OPENAI_ASSISTANT_ID" in capsys.readouterr().out
        mock_run.assert_not_called()
