import uuid
from types import SimpleNamespace

from fastapi.testclient import TestClient


def register_and_login(client: TestClient, name: str = "Ada", password: str = "Pass123!"):
    """Create a fresh user and return (email, auth headers)."""
    email = f"user_{uuid.uuid4().hex[:8]}@example.com"
    r = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 200
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    return email, {"Authorization": f"Bearer {r.json()['token']}"}


def task_payload(**overrides):
    payload = {
        "name": "Write report",
        "description": "Quarterly numbers",
        "priority": "high",
        "deadline": "2030-01-15T12:00:00",
        "duration": 2,
        "category": "Work",
        "tags": ["writing", "q1"],
    }
    payload.update(overrides)
    return payload


class FakeCompletions:
    """Stands in for ``client.chat.completions`` and records prompts."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, model, messages):
        self.calls.append({"model": model, "messages": messages})
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai(reply=None, error=None):
    completions = FakeCompletions(reply=reply, error=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))
