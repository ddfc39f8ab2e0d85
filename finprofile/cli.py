"""
CLI Interface for the financial profile questionnaire.

Runs the same conversation engine as the web app in a terminal.
Multiple-choice options are numbered and can be chosen by number.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, Optional

from .classification import build_classifier
from .config import load_settings
from .engine import ConversationEngine, ConversationPhase
from .engine import messages
from .errors import ClassificationError, QuestionLoadError
from .logging_config import setup_logging
from .questions import Question, build_question_source, load_question_bank


def print_header():
    """Print CLI header."""
    print("""
╔═══════════════════════════════════════════════════════════════╗
║                                                               ║
║     FUTURE.AI - FINANCIAL PROFILE QUESTIONNAIRE               ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """)


def format_question(question: Question) -> str:
    """Question text, with numbered options for multiple choice."""
    lines = [question.text]
    if question.is_multiple_choice:
        for number, option in enumerate(question.options, 1):
            lines.append(f"  {number}. {option}")
    return "\n".join(lines)


def resolve_option(question: Optional[Question], raw: str) -> str:
    """'2' -> the second option of a multiple-choice question; anything else as typed."""
    text = raw.strip()
    if question is not None and question.is_multiple_choice and text.isdigit():
        number = int(text)
        if 1 <= number <= len(question.options):
            return question.options[number - 1]
    return text


def print_messages(emitted, engine: ConversationEngine, output: Callable[[str], None] = print):
    for message in emitted:
        if message.role != "bot":
            continue
        question = engine.bank.get(message.question_id) if message.question_id and engine.bank else None
        text = format_question(question) if question else message.content
        prefix = "! " if message.is_error else ""
        output(f"\n{prefix}{text}")


def run_interactive(
    engine: ConversationEngine,
    input_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print
) -> ConversationEngine:
    """
    Run one questionnaire session in the terminal.

    Commands: 'reset' starts over, 'quit' leaves.
    """
    for text in messages.WELCOME_MESSAGES:
        output(text)
    print_messages(engine.start(), engine, output)

    while engine.phase == ConversationPhase.COLLECTING:
        progress = engine.get_progress()
        raw = input_fn(f"\n[{progress['current']}/{progress['total']}] > ").strip()

        if raw.lower() == "quit":
            return engine
        if raw.lower() == "reset":
            engine.reset()
            print_messages(engine.start(), engine, output)
            continue
        if not raw:
            continue

        answer = resolve_option(engine.current_question, raw)
        print_messages(engine.submit_answer(answer), engine, output)

    if engine.phase == ConversationPhase.CLASSIFIED:
        email = input_fn("\nEmail: ").strip()
        if email:
            print_messages(engine.submit_contact(email), engine, output)
    return engine


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Financial profile questionnaire",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Questions from the Google Sheet configured in .env
  python -m finprofile.cli

  # Questions from the text export of the questionnaire document
  python -m finprofile.cli --source document --document questions.txt

  # Only list the questions
  python -m finprofile.cli --list-questions

  # Save the transcript and profile
  python -m finprofile.cli --output ./outputs/session.json
        """
    )

    parser.add_argument(
        "--source", "-s",
        choices=["sheets", "document"],
        help="Question source (default: QUESTION_SOURCE)"
    )

    parser.add_argument(
        "--document", "-d",
        help="Questionnaire text file (default: QUESTIONS_DOCUMENT)"
    )

    parser.add_argument(
        "--classifier", "-c",
        choices=["chat", "assistant"],
        help="Classification backend (default: CLASSIFIER_BACKEND)"
    )

    parser.add_argument(
        "--output", "-o",
        help="Write transcript and profile to this JSON file"
    )

    parser.add_argument(
        "--list-questions",
        action="store_true",
        help="List the questions and exit"
    )

    args = parser.parse_args()

    settings = load_settings()
    if args.source:
        settings.question_source = args.source
    if args.document:
        settings.question_source = "document"
        settings.questions_document = args.document
    if args.classifier:
        settings.classifier_backend = args.classifier
    setup_logging("WARNING", settings.log_file)

    print_header()

    try:
        source = build_question_source(settings)
        bank = load_question_bank(source)
    except QuestionLoadError as e:
        print(messages.LOAD_ERROR)
        print(f"Error: {e}")
        sys.exit(1)

    if args.list_questions:
        for question in bank:
            section = f" [{question.section}]" if question.section else ""
            final = " (final)" if question.is_final else ""
            print(f"{question.id}{section}{final}: {format_question(question)}")
        return

    problems = settings.validate()
    if problems:
        for problem in problems:
            print(f"Configuration: {problem}")

    try:
        classifier = build_classifier(settings)
    except ClassificationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    engine = ConversationEngine(bank, classifier)
    run_interactive(engine)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(engine.to_payload(), f, ensure_ascii=False, indent=2)
        print(f"\nSaved: {output_path}")


if __name__ == "__main__":
    main()
