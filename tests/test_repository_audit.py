import json
import logging

import pytest
from sqlmodel import select

from cmdb import audit
from cmdb.audit import log_activity, recent_changes
from cmdb.models import ConfigurationItem, LogEntry, User
from cmdb.repository import BackendError, RecordNotFound, TableRepository


@pytest.fixture
def users(session):
    repo = TableRepository(session, User)
    for i, name in enumerate(["Carla", "Alice", "Bruno"]):
        repo.insert({"name": name, "email": f"{name.lower()}@example.com", "role": "Admin" if i else "Viewer",
                     "created_at": f"2025-01-0{i + 1}T00:00:00+00:00"})
    return repo


def test_select_filters_order_and_limit(users):
    assert [u.name for u in users.select(order_by="name")] == ["Alice", "Bruno", "Carla"]
    assert [u.name for u in users.select(order_by="created_at", descending=True, limit=2)] == ["Bruno", "Alice"]
    assert [u.name for u in users.select({"role": "Admin"}, order_by="name")] == ["Alice", "Bruno"]
    assert [u.name for u in users.select(gte={"created_at": "2025-01-02"}, order_by="name")] == ["Alice", "Bruno"]


def test_select_not_null(session, alice, web_server):
    repo = TableRepository(session, ConfigurationItem)
    repo.insert({"name": "orphan", "item_type": "Website", "status": "Active", "environment": "Dev",
                 "item_owner": "x", "host_name": None})
    assert [i.name for i in repo.select(not_null=["host_name"])] == ["web-01"]


def test_single_and_get(users):
    assert users.single({"name": "Bruno"}).email == "bruno@example.com"
    with pytest.raises(RecordNotFound):
        users.single({"name": "Nobody"})
    with pytest.raises(RecordNotFound):
        users.get("missing")


def test_count_update_delete(users):
    carla = users.single({"name": "Carla"})
    assert users.count() == 3

    assert users.update(carla.id, {"role": "Owner"}).role == "Owner"
    with pytest.raises(ValueError):
        users.update(carla.id, {"shoe_size": 42})

    snapshot = users.delete(carla.id)
    assert snapshot["name"] == "Carla"
    assert users.count() == 2


def test_unknown_filter_column(users):
    with pytest.raises(ValueError):
        users.select({"nope": 1})


def test_backend_error_rolls_back(session, users):
    carla = users.single({"name": "Carla"})
    with pytest.raises(BackendError) as err:
        users.insert({"id": carla.id, "name": "Dup", "email": "d@example.com", "role": "Admin"})
    assert err.value.table == "users"
    assert users.count() == 3


def test_log_activity_serializes_payloads(session):
    entry = log_activity(
        session,
        action="UPDATE",
        table_name="settings",
        record_id=7,
        old_data={"value": None},
        new_data={"value": "https://x.example"},
        description="changed",
        user_id="u-9",
    )

    stored = session.exec(select(LogEntry)).one()
    assert stored.id == entry.id
    assert stored.record_id == "7"
    assert json.loads(stored.new_data_json) == {"value": "https://x.example"}
    assert stored.error_details_json is None


def test_log_activity_failure_does_not_raise(session, monkeypatch, caplog):
    class FailingRepository(TableRepository):
        def insert(self, values):
            raise BackendError(self.table, "read-only database")

    monkeypatch.setattr(audit, "TableRepository", FailingRepository)

    with caplog.at_level(logging.ERROR):
        assert log_activity(session, action="DELETE", table_name="users", description="gone") is None
    assert "Error logging activity" in caplog.text


def test_recent_changes_newest_first(session):
    for i in range(3):
        session.add(LogEntry(action="INSERT", table_name="users", description=str(i),
                             created_at=f"2025-01-0{i + 1}T00:00:00+00:00"))
    session.commit()

    changes = recent_changes(session, limit=2)
    assert [c.created_at[:10] for c in changes] == ["2025-01-03", "2025-01-02"]
