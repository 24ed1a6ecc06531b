"""Tests for the usage log and the metering middleware"""

from conftest import signup_and_signin
from flippy.stores import Database, UsageLogger


def _log_rows(app):
    with app.state.db.connect() as conn:
        return [
            dict(r)
            for r in conn.execute(
                "SELECT user_id, method, endpoint, status_code, response_time_ms FROM api_usage_log ORDER BY id"
            ).fetchall()
        ]


def test_record_never_raises(tmp_path):
    # no schema: every insert fails
    usage = UsageLogger(Database(tmp_path / "empty.sqlite3"))
    usage.record(1, "GET", "/profile", 200, 5, "127.0.0.1")


def test_stats_on_empty_log(tmp_path):
    db = Database(tmp_path / "stats.sqlite3")
    db.init_schema()
    usage = UsageLogger(db)
    assert usage.endpoint_stats() == []
    assert usage.user_api_usage() == []


def test_endpoint_stats_aggregate(tmp_path):
    db = Database(tmp_path / "agg.sqlite3")
    db.init_schema()
    usage = UsageLogger(db)
    usage.record(None, "GET", "/card-groups", 200, 10, None)
    usage.record(None, "GET", "/card-groups", 401, 20, None)
    usage.record(None, "POST", "/signin", 200, 30, None)

    stats = usage.endpoint_stats()
    assert stats[0]["endpoint"] == "/card-groups"
    assert stats[0]["requestCount"] == 2
    assert stats[0]["avgResponseTime"] == 15.0
    assert stats[1] == {
        "method": "POST",
        "endpoint": "/signin",
        "requestCount": 1,
        "avgResponseTime": 30.0,
        "lastRequest": stats[1]["lastRequest"],
    }


def test_middleware_logs_failed_requests_anonymously(client, app):
    res = client.get("/profile")
    assert res.status_code == 401

    rows = _log_rows(app)
    assert len(rows) == 1
    assert rows[0]["user_id"] is None
    assert rows[0]["method"] == "GET"
    assert rows[0]["endpoint"] == "/profile"
    assert rows[0]["status_code"] == 401
    assert rows[0]["response_time_ms"] >= 0


def test_middleware_attributes_requests_to_caller(client, app):
    user_id = signup_and_signin(client, "metered@example.com")
    client.get("/profile")
    client.post("/create-card-group", json={"name": "Bad"})

    rows = _log_rows(app)
    assert [(r["method"], r["endpoint"], r["status_code"]) for r in rows] == [
        ("POST", "/signup", 200),
        ("POST", "/signin", 200),
        ("GET", "/profile", 200),
        ("POST", "/create-card-group", 400),
    ]
    assert all(r["user_id"] == user_id for r in rows)


def test_middleware_skips_health(client, app):
    client.get("/health")
    assert _log_rows(app) == []


def test_logging_failure_does_not_affect_response(client, app):
    def broken_record(*args, **kwargs):
        raise RuntimeError("log table gone")

    app.state.usage.record = broken_record
    res = client.get("/health")
    assert res.status_code == 200
    res = client.get("/verify-session")
    assert res.status_code == 401
    assert res.json() == {"valid": False}
