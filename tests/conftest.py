import os
import sys
from types import SimpleNamespace

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from config import Config
from extensions import db
from services import ai


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    AUTO_SETUP_DB = True
    BCRYPT_LOG_ROUNDS = 4
    JWT_SECRET = 'test-jwt-secret'
    GEMINI_API_KEY = 'test-gemini-key'
    FRONTEND_URL = 'http://localhost:5173'
    ENVIRONMENT = 'testing'
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, username, email=None, password='secret-pass', **extra):
    payload = {'username': username, 'email': email or f'{username}@example.com', 'password': password}
    payload.update(extra)
    resp = client.post('/api/auth/register', json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def alice(client):
    data = register(client, 'alice', fullName='Alice Example')
    return SimpleNamespace(id=data['user']['id'], token=data['token'], headers=bearer(data['token']))


@pytest.fixture
def bob(client):
    data = register(client, 'bob')
    return SimpleNamespace(id=data['user']['id'], token=data['token'], headers=bearer(data['token']))


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeChat:
    def __init__(self, gemini, history):
        self.gemini = gemini
        self.history = history

    def send_message(self, message):
        self.gemini.calls.append({'kind': 'chat', 'message': message, 'history': self.history})
        return self.gemini.respond()


class FakeModel:
    def __init__(self, gemini, system_prompt, kwargs):
        self.gemini = gemini
        self.system_prompt = system_prompt
        self.kwargs = kwargs

    def generate_content(self, prompt):
        self.gemini.calls.append({'kind': 'generate', 'prompt': prompt, 'system': self.system_prompt})
        return self.gemini.respond()

    def start_chat(self, history=None):
        self.gemini.calls.append({'kind': 'start_chat', 'system': self.system_prompt})
        return FakeChat(self.gemini, history or [])


class FakeGemini:
    """Stands in for the Gemini model factory; set ``reply`` or ``error``."""

    def __init__(self):
        self.reply = ''
        self.error = None
        self.calls = []

    def respond(self):
        if self.error is not None:
            raise self.error
        return FakeResponse(self.reply)

    def build(self, system_prompt, **kwargs):
        return FakeModel(self, system_prompt, kwargs)


@pytest.fixture
def fake_gemini(monkeypatch):
    gemini = FakeGemini()
    monkeypatch.setattr(ai, 'build_gemini_model', gemini.build)
    return gemini
