import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from types import SimpleNamespace

import pytest
import requests
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from cmdb import notifications
from cmdb.db import get_session, make_engine
from cmdb.main import app
from cmdb.models import ConfigurationItem, User


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    SQLModel.metadata.create_all(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(session):
    def _session_override():
        return session

    app.dependency_overrides[get_session] = _session_override
    notifications.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    notifications.clear()


@pytest.fixture
def alice(session):
    user = User(name="Alice Martins", email="alice@example.com", role="Admin", created_at="2025-01-01T10:00:00+00:00")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def web_server(session, alice):
    item = ConfigurationItem(
        name="web-01",
        item_type="Server",
        status="Active",
        environment="Production",
        item_owner=alice.name,
        host_name="web-01.local",
        created_at="2025-01-02T10:00:00+00:00",
    )
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = reason
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


@pytest.fixture
def http_calls(monkeypatch):
    """Replace requests.post; queue responses (or exceptions) on .responses."""
    calls = []
    responses = []

    def _post(url, **kwargs):
        calls.append({"url": url, **kwargs})
        resp = responses.pop(0) if responses else FakeResponse()
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr(requests, "post", _post)
    return SimpleNamespace(calls=calls, responses=responses, Response=FakeResponse)
