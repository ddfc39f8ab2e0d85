#!/usr/bin/env python3
"""
Web-based financial profile questionnaire (Hebrew, RTL chat).

Features:
- Questions loaded per session from Google Sheets or the questionnaire document
- Multiple-choice branching and the two-section flow with a mid-way profile
- Profile classification with recommendations, then an email hand-off
- Progress indicator showing where you are

Run:
    python3 web_interview.py

Then open: http://localhost:5001
"""

import secrets
import threading
from typing import Optional

import requests
from flask import Flask, render_template_string, request, jsonify

from finprofile.classification import ProfileClassifier, build_classifier
from finprofile.config import load_settings
from finprofile.engine import ConversationEngine, ConversationPhase
from finprofile.engine import messages
from finprofile.errors import ClassificationError, EngineStateError, QuestionLoadError
from finprofile.logging_config import get_logger, set_session_id, setup_logging
from finprofile.questions import AnsweredQuestion, QuestionSource, build_question_source, load_question_bank

settings = load_settings()
setup_logging(settings.log_level, settings.log_file)
logger = get_logger(__name__)

app = Flask(__name__)
app.secret_key = secrets.token_hex(16)
app.json.ensure_ascii = False

# Store engines per session: {'engine': ConversationEngine, 'busy': bool}
sessions = {}
sessions_lock = threading.Lock()

_classifier: Optional[ProfileClassifier] = None
_classifier_lock = threading.Lock()


def get_question_source() -> QuestionSource:
    """Question source for a new session (configured in settings)."""
    return build_question_source(settings)


def get_classifier() -> ProfileClassifier:
    """Shared classifier, created on first use."""
    global _classifier
    with _classifier_lock:
        if _classifier is None:
            _classifier = build_classifier(settings)
        return _classifier


HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="he" dir="rtl">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0, viewport-fit=cover">
    <meta name="theme-color" content="#f5f5f7">
    <title>FUTURE.AI - פרופיל פיננסי</title>
    <style>
        :root {
            --bg: #f5f5f7;
            --surface: #ffffff;
            --border: rgba(0,0,0,0.07);
            --text-1: #1d1d1f;
            --text-2: #6e6e73;
            --accent: #0071e3;
            --accent-bg: rgba(0,113,227,0.08);
            --red-bg: rgba(255,59,48,0.09);
            --red-text: #c62828;
            --font: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Rubik', system-ui, sans-serif;
            --r: 14px; --r-lg: 20px;
        }
        *, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: var(--font);
            background: var(--bg);
            color: var(--text-1);
            line-height: 1.5; font-size: 15px;
            min-height: 100vh;
            display: flex; justify-content: center;
        }
        .hidden { display: none !important; }
        .app { width: 100%; max-width: 720px; display: flex; flex-direction: column; min-height: 100vh; }
        header { padding: 18px 20px 8px; }
        header h1 { font-size: 20px; font-weight: 700; }
        .progress { margin-top: 10px; }
        .progress-label { font-size: 12px; color: var(--text-2); margin-bottom: 4px; }
        .progress-track { height: 6px; background: var(--border); border-radius: 3px; overflow: hidden; }
        .progress-fill { height: 100%; width: 0; background: var(--accent); transition: width .3s; }
        #chat { flex: 1; padding: 16px 20px; display: flex; flex-direction: column; gap: 10px; overflow-y: auto; }
        .bubble { max-width: 80%; padding: 10px 14px; border-radius: var(--r); white-space: pre-line; }
        .bubble.bot { align-self: flex-start; background: var(--surface); border: 1px solid var(--border); }
        .bubble.user { align-self: flex-end; background: var(--accent); color: #fff; }
        .bubble.error { background: var(--red-bg); color: var(--red-text); }
        .status { align-self: flex-start; color: var(--text-2); font-size: 13px; }
        footer { padding: 12px 20px 20px; background: var(--bg); }
        .options { display: flex; flex-wrap: wrap; gap: 8px; margin-bottom: 8px; }
        .options button, .primary {
            border: none; border-radius: var(--r-lg); padding: 10px 16px; cursor: pointer;
            font: inherit; background: var(--accent-bg); color: var(--accent);
        }
        .primary { background: var(--accent); color: #fff; }
        .input-row { display: flex; gap: 8px; }
        .input-row input {
            flex: 1; padding: 10px 14px; border-radius: var(--r-lg);
            border: 1px solid var(--border); font: inherit;
        }
        button:disabled { opacity: .5; cursor: default; }
        .link { background: none; border: none; color: var(--text-2); font: inherit; cursor: pointer; margin-top: 8px; }
    </style>
</head>
<body>
<div class="app">
    <header>
        <h1>FUTURE.AI</h1>
        <div class="progress">
            <div class="progress-label" id="progress-label"></div>
            <div class="progress-track"><div class="progress-fill" id="progress-fill"></div></div>
        </div>
    </header>

    <div id="chat"></div>

    <footer>
        <button class="primary hidden" id="start-btn">יאללה!</button>
        <div class="options hidden" id="options"></div>
        <form class="input-row hidden" id="answer-form">
            <input id="answer-input" autocomplete="off" placeholder="הקלד את תשובתך...">
            <button class="primary" type="submit">שלח</button>
        </form>
        <form class="input-row hidden" id="email-form">
            <input id="email-input" type="email" autocomplete="email" placeholder="הכנס את כתובת המייל שלך">
            <button class="primary" type="submit">שלח</button>
        </form>
        <button class="link hidden" id="reset-btn">התחל מחדש</button>
    </footer>
</div>

<script>
    let sessionId = null;
    let pending = [];
    let busy = false;

    const chat = document.getElementById('chat');
    const startBtn = document.getElementById('start-btn');
    const optionsEl = document.getElementById('options');
    const answerForm = document.getElementById('answer-form');
    const answerInput = document.getElementById('answer-input');
    const emailForm = document.getElementById('email-form');
    const emailInput = document.getElementById('email-input');
    const resetBtn = document.getElementById('reset-btn');

    function addBubble(role, content, kind) {
        const el = document.createElement('div');
        el.className = 'bubble ' + role + (kind === 'error' ? ' error' : '');
        el.textContent = content;
        chat.appendChild(el);
        chat.scrollTop = chat.scrollHeight;
    }

    function showStatus(text) {
        hideStatus();
        const el = document.createElement('div');
        el.className = 'status';
        el.id = 'status';
        el.textContent = text;
        chat.appendChild(el);
    }

    function hideStatus() {
        const el = document.getElementById('status');
        if (el) el.remove();
    }

    function renderMessages(list) {
        (list || []).forEach(m => addBubble(m.role, m.content, m.kind));
    }

    function renderProgress(progress) {
        if (!progress || !progress.total) return;
        document.getElementById('progress-label').textContent =
            'שאלה ' + progress.current + ' מתוך ' + progress.total;
        document.getElementById('progress-fill').style.width = progress.percent + '%';
    }

    function renderInput(state) {
        optionsEl.innerHTML = '';
        optionsEl.classList.add('hidden');
        answerForm.classList.add('hidden');
        emailForm.classList.add('hidden');
        resetBtn.classList.toggle('hidden', !sessionId);

        if (state.awaiting_contact) {
            emailForm.classList.remove('hidden');
            return;
        }
        const q = state.question;
        if (!q) return;
        if (q.type === 'multiple_choice' && q.options) {
            q.options.forEach(option => {
                const b = document.createElement('button');
                b.textContent = option;
                b.onclick = () => submitAnswer(option);
                optionsEl.appendChild(b);
            });
            optionsEl.classList.remove('hidden');
        } else {
            const numeric = q.type === 'integer' || q.type === 'currency_amount';
            answerInput.inputMode = numeric ? 'numeric' : 'text';
            answerInput.placeholder = numeric ? 'הכנס מספר...' : 'הקלד את תשובתך...';
            answerForm.classList.remove('hidden');
            answerInput.focus();
        }
    }

    function render(state) {
        renderMessages(state.messages);
        renderProgress(state.progress);
        renderInput(state);
    }

    async function post(url, body) {
        const res = await fetch(url, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(body || {})
        });
        const data = await res.json();
        return { ok: res.ok, data };
    }

    async function init() {
        const { ok, data } = await post('/api/start');
        if (!ok) {
            renderMessages(data.messages || [{ role: 'bot', content: data.error, kind: 'error' }]);
            return;
        }
        sessionId = data.session_id;
        renderMessages(data.welcome);
        pending = data;
        startBtn.classList.remove('hidden');
    }

    startBtn.onclick = () => {
        startBtn.classList.add('hidden');
        addBubble('user', 'יאללה!');
        render(pending);
    };

    async function submitAnswer(answer) {
        if (busy || !answer.trim()) return;
        busy = true;
        addBubble('user', answer);
        optionsEl.classList.add('hidden');
        answerForm.classList.add('hidden');
        showStatus('מעבד את התשובה שלך...');
        const slow = setTimeout(() => showStatus('מסיק מסקנות ומעבד את התשובות...'), 1500);
        try {
            const { ok, data } = await post('/api/answer', { session_id: sessionId, answer });
            clearTimeout(slow);
            hideStatus();
            if (!ok) {
                addBubble('bot', data.error, 'error');
                return;
            }
            render(data);
        } finally {
            busy = false;
        }
    }

    answerForm.onsubmit = (e) => {
        e.preventDefault();
        const value = answerInput.value;
        answerInput.value = '';
        submitAnswer(value);
    };

    emailForm.onsubmit = async (e) => {
        e.preventDefault();
        const email = emailInput.value.trim();
        if (!email) return;
        addBubble('user', email);
        emailForm.classList.add('hidden');
        const { ok, data } = await post('/api/contact', { session_id: sessionId, email });
        if (!ok) {
            addBubble('bot', data.error, 'error');
            emailForm.classList.remove('hidden');
            return;
        }
        renderMessages(data.messages);
    };

    resetBtn.onclick = async () => {
        const { ok, data } = await post('/api/reset', { session_id: sessionId });
        chat.innerHTML = '';
        if (!ok) {
            addBubble('bot', data.error, 'error');
            return;
        }
        render(data);
    };

    init();
</script>
</body>
</html>
"""


def _session_payload(session_id: str, engine: ConversationEngine, emitted: list) -> dict:
    """Emitted messages plus everything the client needs to render the next input."""
    question = engine.current_question
    return {
        'session_id': session_id,
        'messages': [m.to_dict() for m in emitted if m.role == 'bot'],
        'question': question.to_dict() if question else None,
        'phase': engine.phase.value,
        'progress': engine.get_progress(),
        'profile': engine.result.to_dict() if engine.result else None,
        'awaiting_contact': engine.phase == ConversationPhase.CLASSIFIED and engine.contact_email is None,
    }


def _error(message: str, status: int):
    return jsonify({'error': message}), status


def _create_engine() -> ConversationEngine:
    try:
        source = get_question_source()
    except QuestionLoadError as e:
        logger.error(f"Question source unavailable: {e}")
        return ConversationEngine(None, None)
    return ConversationEngine.load(source, get_classifier())


def _acquire(session_id: Optional[str]):
    """Mark a session busy. Returns (entry, error response)."""
    with sessions_lock:
        entry = sessions.get(session_id)
        if entry is None:
            return None, _error('Invalid session', 400)
        if entry['busy']:
            return None, _error('A previous answer is still being processed', 409)
        entry['busy'] = True
    return entry, None


def _release(entry: dict):
    with sessions_lock:
        entry['busy'] = False


@app.route('/')
def index():
    return render_template_string(HTML_TEMPLATE)


@app.route('/api/questions', methods=['GET'])
def get_questions():
    """The configured questionnaire."""
    try:
        bank = load_question_bank(get_question_source())
    except QuestionLoadError as e:
        logger.error(f"Failed to load questions: {e}")
        return _error(messages.LOAD_ERROR, 500)
    return jsonify({'questions': bank.to_list()})


@app.route('/api/start', methods=['POST'])
def start_session():
    session_id = secrets.token_hex(8)
    set_session_id(session_id)

    try:
        engine = _create_engine()
    except ClassificationError as e:
        logger.error(f"Classifier unavailable: {e}")
        return _error(messages.GENERIC_ERROR, 503)

    emitted = engine.start()
    if engine.phase == ConversationPhase.FAILED:
        return jsonify({
            'error': messages.LOAD_ERROR,
            'messages': [m.to_dict() for m in emitted],
        }), 503

    with sessions_lock:
        sessions[session_id] = {'engine': engine, 'busy': False}
    logger.info("Session started")

    payload = _session_payload(session_id, engine, emitted)
    payload['welcome'] = [m.to_dict() for m in messages.welcome_messages()]
    return jsonify(payload)


@app.route('/api/answer', methods=['POST'])
def answer():
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    answer_text = str(data.get('answer') or '').strip()
    set_session_id(session_id)

    if not answer_text:
        return _error('Answer must not be empty', 400)

    entry, error_response = _acquire(session_id)
    if error_response:
        return error_response

    engine = entry['engine']
    try:
        emitted = engine.submit_answer(answer_text)
    except EngineStateError as e:
        logger.warning(str(e))
        return _error('The questionnaire is not waiting for an answer', 409)
    finally:
        _release(entry)

    return jsonify(_session_payload(session_id, engine, emitted))


@app.route('/api/reset', methods=['POST'])
def reset():
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    set_session_id(session_id)

    entry, error_response = _acquire(session_id)
    if error_response:
        return error_response

    engine = entry['engine']
    try:
        engine.reset()
        emitted = engine.start()
    finally:
        _release(entry)

    if engine.phase == ConversationPhase.FAILED:
        return _error(messages.LOAD_ERROR, 503)
    return jsonify(_session_payload(session_id, engine, emitted))


@app.route('/api/contact', methods=['POST'])
def contact():
    """Email hand-off after the profile was shown."""
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    email = str(data.get('email') or '').strip()
    set_session_id(session_id)

    if '@' not in email:
        return _error('A valid email address is required', 400)

    entry, error_response = _acquire(session_id)
    if error_response:
        return error_response

    engine = entry['engine']
    try:
        emitted = engine.submit_contact(email)
    except EngineStateError as e:
        logger.warning(str(e))
        return _error('Contact details are accepted after the profile is ready', 409)
    finally:
        _release(entry)

    forwarded = False
    if settings.contact_webhook_url:
        try:
            resp = requests.post(settings.contact_webhook_url, json=engine.to_payload(), timeout=10)
            resp.raise_for_status()
            forwarded = True
        except requests.RequestException as e:
            logger.error(f"Contact webhook failed: {e}")

    return jsonify({
        'messages': [m.to_dict() for m in emitted],
        'forwarded': forwarded,
    })


@app.route('/api/financial-profile', methods=['POST'])
def financial_profile():
    """Classify a posted transcript without a session."""
    data = request.get_json(silent=True) or {}
    pairs = data.get('questionsAndAnswers')
    if not pairs or not isinstance(pairs, list):
        return _error('questionsAndAnswers must be a non-empty list', 400)

    transcript = [
        AnsweredQuestion.from_dict(pair, sequence_index=i)
        for i, pair in enumerate(pairs, start=1)
        if isinstance(pair, dict)
    ]

    try:
        result = get_classifier().classify(transcript)
    except ClassificationError as e:
        logger.error(f"Financial profile request failed: {e}")
        return _error(messages.GENERIC_ERROR, 500)

    return jsonify(result.to_dict())


if __name__ == '__main__':
    problems = settings.validate()
    for problem in problems:
        logger.warning(f"Configuration: {problem}")

    print(f"""
╔═══════════════════════════════════════════════════════════════╗
║     FINANCIAL PROFILE QUESTIONNAIRE                            ║
╠═══════════════════════════════════════════════════════════════╣
║  Questions:  {settings.question_source:<49}║
║  Classifier: {settings.classifier_backend:<49}║
╚═══════════════════════════════════════════════════════════════╝

Open your browser to: http://localhost:{settings.port}

Press Ctrl+C to stop the server.
    """)

    app.run(debug=True, host='0.0.0.0', port=settings.port)
