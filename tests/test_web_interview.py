"""
Tests for the questionnaire web API (/api/*).

Uses Flask test client; the question source and classifier are fakes.
"""

from unittest.mock import patch, MagicMock

import pytest

import web_interview
from web_interview import app
from finprofile.engine import messages
from finprofile.errors import ClassificationError

from conftest import FakeClassifier, StaticSource, make_result, q


QUESTIONS = [q("1", text="מה גילך?"), q("2", text="כמה אתה חוסך כל חודש?", final=True)]


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def client(classifier):
    app.config["TESTING"] = True
    with web_interview.sessions_lock:
        web_interview.sessions.clear()
    with patch("web_interview.get_question_source", return_value=StaticSource(QUESTIONS)), \
            patch("web_interview.get_classifier", return_value=classifier):
        with app.test_client() as client:
            yield client


def start(client):
    resp = client.post("/api/start", json={})
    assert resp.status_code == 200
    return resp.get_json()


def answer(client, session_id, text):
    return client.post("/api/answer", json={"session_id": session_id, "answer": text})


def finish(client):
    session_id = start(client)["session_id"]
    answer(client, session_id, "35")
    resp = answer(client, session_id, "1000")
    assert resp.status_code == 200
    return session_id, resp.get_json()


class TestIndex:
    def test_serves_rtl_page(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert 'dir="rtl"' in resp.get_data(as_text=True)


class TestQuestions:
    def test_lists_questions(self, client):
        resp = client.get("/api/questions")
        assert resp.status_code == 200
        data = resp.get_json()
        assert [x["id"] for x in data["questions"]] == ["1", "2"]
        assert data["questions"][1]["isLastQuestion"] is True

    def test_load_failure(self, client):
        with patch("web_interview.get_question_source", return_value=StaticSource(error="down")):
            resp = client.get("/api/questions")
        assert resp.status_code == 500
        assert resp.get_json()["error"] == messages.LOAD_ERROR


class TestStart:
    def test_returns_first_question(self, client):
        data = start(client)

        assert data["session_id"] in web_interview.sessions
        assert len(data["welcome"]) == len(messages.WELCOME_MESSAGES)
        assert data["messages"][0]["content"] == "מה גילך?"
        assert data["question"]["id"] == "1"
        assert data["phase"] == "collecting"
        assert data["progress"]["total"] == 2

    def test_load_failure_shows_hebrew_message(self, client):
        with patch("web_interview.get_question_source", return_value=StaticSource(error="down")):
            resp = client.post("/api/start", json={})

        assert resp.status_code == 503
        data = resp.get_json()
        assert data["error"] == messages.LOAD_ERROR
        assert data["messages"][0]["kind"] == "error"
        assert web_interview.sessions == {}


class TestAnswer:
    def test_round_trip(self, client):
        session_id = start(client)["session_id"]

        resp = answer(client, session_id, "35")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["messages"][0]["content"] == "כמה אתה חוסך כל חודש?"
        assert data["question"]["id"] == "2"
        assert data["progress"]["current"] == 2

    def test_classification(self, client, classifier):
        _, data = finish(client)

        assert len(classifier.calls) == 1
        assert data["phase"] == "classified"
        assert data["profile"]["profile"] == "המאוזן"
        assert data["awaiting_contact"] is True
        assert data["messages"][0]["content"] == messages.PROFILE_TEMPLATE.format(profile="המאוזן")
        assert data["question"] is None

    def test_classification_failure_message(self, client, classifier):
        classifier.outcomes = [ClassificationError("bad label 'תכנן'")]
        _, data = finish(client)

        assert data["phase"] == "failed"
        assert data["messages"] == [
            {"role": "bot", "content": messages.GENERIC_ERROR, "kind": "error"}
        ]
        assert data["profile"] is None

    def test_blank_answer_rejected(self, client):
        session_id = start(client)["session_id"]
        assert answer(client, session_id, "   ").status_code == 400

    def test_unknown_session(self, client):
        assert answer(client, "nope", "35").status_code == 400

    def test_overlapping_submit_rejected(self, client):
        session_id = start(client)["session_id"]
        web_interview.sessions[session_id]["busy"] = True

        resp = answer(client, session_id, "35")
        assert resp.status_code == 409

    def test_busy_flag_released(self, client):
        session_id = start(client)["session_id"]
        answer(client, session_id, "35")
        assert web_interview.sessions[session_id]["busy"] is False

    def test_answer_after_classification_rejected(self, client):
        session_id, _ = finish(client)
        resp = answer(client, session_id, "עוד")
        assert resp.status_code == 409
        assert web_interview.sessions[session_id]["busy"] is False


class TestReset:
    def test_reset_restarts(self, client):
        session_id = start(client)["session_id"]
        answer(client, session_id, "35")

        resp = client.post("/api/reset", json={"session_id": session_id})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["question"]["id"] == "1"
        assert data["progress"]["current"] == 1
        assert web_interview.sessions[session_id]["engine"].transcript == ()

    def test_reset_unknown_session(self, client):
        assert client.post("/api/reset", json={"session_id": "nope"}).status_code == 400


class TestContact:
    def test_thank_you(self, client):
        session_id, _ = finish(client)

        resp = client.post("/api/contact", json={"session_id": session_id, "email": "dana@example.com"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["messages"][0]["content"] == messages.THANK_YOU
        assert data["forwarded"] is False

    def test_forwards_to_webhook(self, client):
        session_id, _ = finish(client)

        with patch.object(web_interview.settings, "contact_webhook_url", "https://hooks.example/lead"), \
                patch("web_interview.requests.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=200)
            resp = client.post("/api/contact", json={"session_id": session_id, "email": "dana@example.com"})

        assert resp.get_json()["forwarded"] is True
        payload = mock_post.call_args.kwargs["json"]
        assert payload["email"] == "dana@example.com"
        assert len(payload["questionsAndAnswers"]) == 2
        assert payload["profile"]["profile"] == "המאוזן"

    def test_before_classification_rejected(self, client):
        session_id = start(client)["session_id"]
        resp = client.post("/api/contact", json={"session_id": session_id, "email": "dana@example.com"})
        assert resp.status_code == 409

    def test_invalid_email(self, client):
        session_id, _ = finish(client)
        resp = client.post("/api/contact", json={"session_id": session_id, "email": "not-an-email"})
        assert resp.status_code == 400


class TestFinancialProfile:
    def test_classifies_posted_transcript(self, client, classifier):
        classifier.outcomes = [make_result()]
        resp = client.post("/api/financial-profile", json={"questionsAndAnswers": [
            {"questionId": 1, "question": "מה גילך?", "answer": "35"},
            {"questionId": 2, "question": "כמה אתה חוסך?", "answer": "1000"},
        ]})

        assert resp.status_code == 200
        assert resp.get_json()["profile"] == "המאוזן"
        transcript, _ = classifier.calls[0]
        assert [e.sequence_index for e in transcript] == [1, 2]

    def test_missing_transcript(self, client):
        resp = client.post("/api/financial-profile", json={})
        assert resp.status_code == 400

    def test_classification_error(self, client, classifier):
        classifier.outcomes = [ClassificationError("not JSON")]
        resp = client.post("/api/financial-profile", json={"questionsAndAnswers": [
            {"questionId": 1, "question": "?", "answer": "x"},
        ]})

        assert resp.status_code == 500
        assert resp.get_json()["error"] == messages.GENERIC_ERROR
