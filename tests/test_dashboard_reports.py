from datetime import datetime, timedelta

import requests

from cmdb.dashboard_api import ci_type_summary
from cmdb.models import ReportText, Setting
from cmdb.reports_api import assemble_report, start_of_today
from cmdb.schemas import WEBHOOK_SETTING_KEY


def _configure_webhook(session, url="https://flows.example.com/webhook/reports"):
    session.add(Setting(key=WEBHOOK_SETTING_KEY, value=url))
    session.commit()
    return url


def test_ci_type_summary_counts_undefined():
    summary = ci_type_summary(["Server", None, "Server", "", "Website"])
    assert [(t.name, t.value) for t in summary] == [("Server", 2), ("Undefined", 2), ("Website", 1)]


def test_stats(client, web_server):
    client.post("/incidents", json={"title": "Disk full"})

    stats = client.get("/dashboard/stats").json()

    assert stats["config_items"] == 1
    assert stats["users"] == 1
    assert stats["incidents"] == 1
    assert stats["changes"] == 1
    assert stats["ci_type_summary"] == [{"name": "Server", "value": 1}]


def test_report_requires_webhook(client, http_calls):
    resp = client.post("/dashboard/report")

    assert resp.status_code == 400
    assert "not configured" in resp.json()["detail"]
    assert http_calls.calls == []


def test_report_posts_metrics(client, session, web_server, http_calls):
    url = _configure_webhook(session)

    resp = client.post("/dashboard/report")

    assert resp.status_code == 200
    assert len(http_calls.calls) == 1
    call = http_calls.calls[0]
    assert call["url"] == url
    payload = call["json"]
    assert payload["type"] == "report_request"
    assert payload["metrics"] == {"config_items": 1, "incidents": 0, "changes": 0, "users": 1}
    assert payload["ci_type_summary"] == [{"name": "Server", "value": 1}]
    assert "requested_at" in payload


def test_report_webhook_failure(client, session, http_calls):
    _configure_webhook(session)
    http_calls.responses.append(http_calls.Response(500, reason="Internal Server Error"))

    resp = client.post("/dashboard/report")

    assert resp.status_code == 502
    assert "status 500" in resp.json()["detail"]


def test_assemble_report_restores_order():
    assert assemble_report(["part 3", "part 2", "part 1"]) == "part 1\n\npart 2\n\npart 3"


def test_latest_report_uses_three_newest_parts_of_today(client, session):
    midnight = datetime.fromisoformat(start_of_today())
    session.add(ReportText(content="yesterday", created_at=(midnight - timedelta(hours=1)).isoformat()))
    for i in range(4):
        session.add(ReportText(content=f"part {i}", created_at=(midnight + timedelta(seconds=i)).isoformat()))
    session.commit()

    resp = client.get("/reports/latest").json()

    assert resp == {"found": True, "content": "part 1\n\npart 2\n\npart 3"}


def test_latest_report_missing(client):
    assert client.get("/reports/latest").json() == {"found": False, "content": "No report found for today."}


def test_report_parts_write_back(client):
    assert client.post("/reports/parts", json={"content": "Summary"}).status_code == 201
    assert client.post("/reports/parts", json={"content": ""}).status_code == 422
    assert client.get("/reports/latest").json()["content"] == "Summary"


def test_report_webhook_unreachable(client, session, http_calls):
    _configure_webhook(session)
    http_calls.responses.append(requests.ConnectionError("connection refused"))

    resp = client.post("/dashboard/report")

    assert resp.status_code == 502
    assert resp.json()["detail"].startswith("Could not reach webhook")
