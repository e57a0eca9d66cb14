from sqlmodel import select

from cmdb import notifications, settings_api
from cmdb.models import LogEntry, Setting
from cmdb.repository import BackendError, TableRepository
from cmdb.schemas import WEBHOOK_SETTING_KEY


def test_create_user_and_options(client, alice):
    resp = client.post("/users", json={"name": "Bruno Costa", "email": "bruno@example.com", "role": "Operator"})
    assert resp.status_code == 201

    options = client.get("/users/options").json()
    assert [o["name"] for o in options] == ["Alice Martins", "Bruno Costa"]
    assert notifications.list_all() == []


def test_user_validation(client):
    assert client.post("/users", json={"name": "Bo", "email": "bo@example.com", "role": "Admin"}).status_code == 422
    assert client.post("/users", json={"name": "Bruno", "email": "not-an-email", "role": "Admin"}).status_code == 422
    assert client.post("/users", json={"name": "Bruno", "email": "b@example.com", "role": ""}).status_code == 422


def test_user_search(client, alice):
    client.post("/users", json={"name": "Bruno Costa", "email": "bruno@example.com", "role": "Operator"})

    assert [u["name"] for u in client.get("/users", params={"q": "admin"}).json()] == ["Alice Martins"]
    assert [u["name"] for u in client.get("/users", params={"q": "bruno@"}).json()] == ["Bruno Costa"]


def test_update_and_delete_user(client, session, alice):
    body = {"name": "Alice M.", "email": "alice@example.com", "role": "Owner"}
    assert client.put(f"/users/{alice.id}", json=body).json()["role"] == "Owner"
    assert client.delete(f"/users/{alice.id}").status_code == 200
    assert client.get(f"/users/{alice.id}").status_code == 404

    logs = session.exec(select(LogEntry).order_by(LogEntry.id)).all()
    assert [log.description for log in logs] == [
        "User 'Alice M.' was updated.",
        "User 'Alice M.' was deleted.",
    ]


def test_settings_default_empty(client):
    assert client.get("/settings").json() == {"workflow_webhook_url": ""}


def test_settings_rejects_bad_url(client):
    resp = client.put("/settings", json={"workflow_webhook_url": "not-a-url"})
    assert resp.status_code == 422


def test_settings_save_and_audit(client, session):
    url = "https://flows.example.com/webhook/reports"
    assert client.put("/settings", json={"workflow_webhook_url": url}).status_code == 200
    assert client.get("/settings").json() == {"workflow_webhook_url": url}

    assert client.put("/settings", json={"workflow_webhook_url": ""}).status_code == 200
    assert session.get(Setting, WEBHOOK_SETTING_KEY).value == ""

    logs = session.exec(select(LogEntry).order_by(LogEntry.id)).all()
    assert [log.record_id for log in logs] == [WEBHOOK_SETTING_KEY, WEBHOOK_SETTING_KEY]
    assert '"value": null' in logs[0].old_data_json
    assert url in logs[1].old_data_json


def test_create_and_update_return_the_saved_user(client):
    body = {"name": "Bruno Costa", "email": "bruno@example.com", "role": "Operator"}
    created = client.post("/users", json=body).json()
    assert created["id"]
    assert created["email"] == "bruno@example.com"
    assert created["created_at"]

    body["email"] = "bruno.costa@example.com"
    updated = client.put(f"/users/{created['id']}", json=body).json()
    assert updated["id"] == created["id"]
    assert updated["name"] == "Bruno Costa"
    assert updated["email"] == "bruno.costa@example.com"


def test_settings_backend_failure_is_audited(client, session, monkeypatch):
    class FailingRepository(TableRepository):
        def insert(self, values):
            raise BackendError(self.table, "disk I/O error")

    monkeypatch.setattr(settings_api, "TableRepository", FailingRepository)

    resp = client.put("/settings", json={"workflow_webhook_url": "https://flows.example.com/webhook/reports"})

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Error saving settings: disk I/O error"
    log = session.exec(select(LogEntry)).one()
    assert log.is_error
    assert log.record_id == WEBHOOK_SETTING_KEY
    assert session.get(Setting, WEBHOOK_SETTING_KEY) is None
