from datetime import date, datetime

import pytest

from form_graph.api import app as api
from form_graph.config import reset_settings_cache
from form_graph.persistence import EntriesRepository, FormsRepository, FormViewsRepository, db
from form_graph.reports.errors import DataSourceError, InvalidRequest, NoData


@pytest.fixture()
def dsn(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'api.sqlite'}"
    monkeypatch.setenv("FG_DB_DSN", url)
    monkeypatch.setenv("FG_MAX_WORKERS", "1")
    reset_settings_cache()
    engine = db.get_engine(url)
    tables = db.init_db(engine)
    with db.session(engine) as conn:
        FormsRepository(conn, tables).upsert(1, "Contact Form")
        FormsRepository(conn, tables).upsert(2, "Newsletter Signup")
        EntriesRepository(conn, tables).bulk_insert(
            1, [datetime(2024, 1, 1, 9), datetime(2024, 1, 3, 10)]
        )
        FormViewsRepository(conn, tables).bulk_insert(1, [(datetime(2024, 1, 1, 8), 4)])
    engine.dispose()
    yield url
    reset_settings_cache()


def test_generate_report(dsn):
    data = api.generate_report(
        {"form_ids": [1, 2], "grouping": "daily", "start_date": "2024-01-01", "end_date": "2024-01-03"}
    )
    assert data["labels"] == ["Jan 1, 2024", "Jan 2, 2024", "Jan 3, 2024"]
    assert [d["label"] for d in data["datasets"]] == ["Contact Form", "Newsletter Signup"]
    assert data["datasets"][0]["data"] == [1, 0, 1]
    assert data["summary"]["grand_total"] == 2
    assert data["conversion"]["summary"]["conversion_rate"] == 50.0


def test_generate_report_with_preset(dsn):
    data = api.generate_report({"form_id": 1, "date_range": "7"}, today=date(2024, 1, 5))
    assert data["start_date"] == "2023-12-29"
    assert data["end_date"] == "2024-01-05"
    assert sum(data["datasets"][0]["data"]) == 2


def test_generate_report_rejects_bad_requests(dsn):
    with pytest.raises(InvalidRequest):
        api.generate_report({"start_date": "2024-01-01", "end_date": "2024-01-03"})
    with pytest.raises(NoData):
        api.generate_report({"form_ids": [1], "start_date": "2024-01-03", "end_date": "2024-01-01"})


def test_list_forms(dsn):
    assert api.list_forms() == [
        {"id": 1, "title": "Contact Form"},
        {"id": 2, "title": "Newsletter Signup"},
    ]


def test_status_codes_and_error_payload():
    assert api.status_code_for(InvalidRequest("x")) == 400
    assert api.status_code_for(NoData("x")) == 404
    assert api.status_code_for(DataSourceError("x")) == 502
    assert api.error_payload(InvalidRequest("Please select a form")) == {
        "success": False,
        "data": {"message": "Please select a form", "kind": "invalid_request"},
    }


def test_http_endpoints(dsn):
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    client = TestClient(api.app)
    resp = client.post(
        "/reports",
        json={"form_ids": [1], "grouping": "monthly", "start_date": "2024-01-01", "end_date": "2024-01-31"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["labels"] == ["Jan 2024"]
    assert body["data"]["datasets"][0]["data"] == [2]

    resp = client.post("/reports", json={"start_date": "2024-01-01", "end_date": "2024-01-31"})
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "data": {"message": "Please select a form", "kind": "invalid_request"},
    }

    resp = client.post(
        "/reports", json={"form_ids": 1.5, "start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert resp.status_code == 400
    assert resp.json()["data"]["message"] == "Please select a form"

    resp = client.post(
        "/reports", json={"form_ids": [1], "start_date": "2024-02-01", "end_date": "2024-01-01"}
    )
    assert resp.status_code == 404
    assert resp.json()["data"]["kind"] == "no_data"

    resp = client.get("/forms")
    assert resp.status_code == 200
    assert [f["title"] for f in resp.json()] == ["Contact Form", "Newsletter Signup"]
