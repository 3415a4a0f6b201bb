import json

import pytest
import requests

from skillrecord.models.user import Role
from skillrecord.utils.ai_client import build_system_prompt
from skillrecord.utils.permissions import Principal
from skillrecord.utils import career


class FakeStreamResponse:
    def __init__(self, lines, status_code=200):
        self.lines = lines
        self.status_code = status_code
        self.text = ''
        self.closed = False

    def iter_lines(self, decode_unicode=False):
        yield from self.lines

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


@pytest.fixture
def ai_enabled(app):
    app.config['AI_API_KEY'] = 'test-key'
    return app


def events(response):
    return [json.loads(chunk[len('data: '):]) for chunk in response.get_data(as_text=True).split('\n\n') if chunk]


def test_chat_unavailable_without_key(student):
    response = student.post('/api/ai/chat', json={'message': 'hello'})
    assert response.status_code == 503


def test_chat_requires_login(client):
    assert client.post('/api/ai/chat', json={'message': 'hello'}).status_code == 401


def test_chat_streams_deltas(ai_enabled, student, monkeypatch):
    captured = {}
    upstream = FakeStreamResponse([
        'data: ' + json.dumps({'choices': [{'delta': {'content': 'مرحبا'}}]}),
        '',
        'data: ' + json.dumps({'choices': [{'delta': {'content': ' بك'}}]}),
        'data: ' + json.dumps({'choices': [{'delta': {}}]}),
        'data: [DONE]',
    ])

    def fake_post(self, url, headers=None, json=None, stream=False, timeout=None):
        captured.update(url=url, headers=headers, payload=json, stream=stream)
        return upstream

    monkeypatch.setattr(requests.Session, 'post', fake_post)
    response = student.post('/api/ai/chat', json={'message': 'كيف أكمل ساعاتي؟'})
    assert response.status_code == 200
    assert response.mimetype == 'text/event-stream'
    assert events(response) == [{'content': 'مرحبا'}, {'content': ' بك'}, {'done': True}]

    assert captured['url'].endswith('/chat/completions')
    assert captured['stream'] is True
    assert captured['headers']['Authorization'] == 'Bearer test-key'
    assert captured['payload']['messages'][1]['content'] == 'كيف أكمل ساعاتي؟'
    assert upstream.closed


def test_chat_reports_upstream_failure(ai_enabled, student, monkeypatch):
    def fake_post(self, url, **kwargs):
        raise requests.exceptions.ConnectionError('refused')

    monkeypatch.setattr(requests.Session, 'post', fake_post)
    response = student.post('/api/ai/chat', json={'message': 'hi', 'language': 'en'})
    assert events(response) == [{'error': 'AI error'}]


def test_chat_reports_upstream_error_status(ai_enabled, student, monkeypatch):
    monkeypatch.setattr(requests.Session, 'post',
                        lambda self, url, **kwargs: FakeStreamResponse([], status_code=500))
    response = student.post('/api/ai/chat', json={'message': 'hi'})
    assert events(response) == [{'error': 'AI error'}]


def test_chat_validates_body(ai_enabled, student):
    assert student.post('/api/ai/chat', json={'message': ''}).status_code == 400
    assert student.post('/api/ai/chat', json={'message': 'hi', 'language': 'fr'}).status_code == 400


def test_system_prompt_is_role_aware(app, make_user, make_course):
    from skillrecord import db
    from skillrecord.models.user import User

    make_course(title_ar='بايثون', title_en='Python')
    student_id, _ = make_user(Role.STUDENT)
    supervisor_id, _ = make_user(Role.SUPERVISOR)
    with app.app_context():
        student = db.session.get(User, student_id)
        prompt = build_system_prompt(Principal(student, student.role), 'en')
        assert 'Role: Student' in prompt
        assert '- Python (10 hours)' in prompt
        assert '- volunteer_work: 25 hours' in prompt
        assert 'Supervision Info' not in prompt

        supervisor = db.session.get(User, supervisor_id)
        prompt = build_system_prompt(Principal(supervisor, supervisor.role), 'ar')
        assert 'معلومات الإشراف' in prompt
        assert 'معلومات المدرب' in prompt


@pytest.mark.parametrize('answers, major', [
    ([], 'it'),
    (['unknown'], 'it'),
    (['design', 'math', 'coding'], 'engineering'),
    (['helping'], 'health'),
    (['helping', 'teaching'], 'education'),
    (['creative', 'images'], 'arts'),
])
def test_suggest_major(answers, major):
    assert career.suggest_major(answers) == major


def test_career_analyze_endpoint(student):
    response = student.post('/api/career/analyze', json={'answers': [
        {'question_id': 1, 'answer': 'research'},
        {'question_id': 2, 'answer': 'lab'},
    ]})
    assert response.status_code == 200
    body = response.get_json()
    assert body['suggested_major'] == 'Computer Science'
    assert body['major_ar'] == 'علوم الحاسب'
    assert 'Data Scientist' in body['career_paths']


def test_career_analyze_validates_answers(student):
    response = student.post('/api/career/analyze', json={'answers': [{'question_id': 'one', 'answer': 'x'}]})
    assert response.status_code == 400
