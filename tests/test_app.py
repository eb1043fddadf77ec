import logging

from fastapi.testclient import TestClient

from reading_list_api.app.core.config import Settings
from reading_list_api.app.main import create_app
from reading_list_api.app.storage import MemoryStorage, SqliteStorage


def test_version(client):
    response = client.get("/api/version")
    assert response.status_code == 200
    assert response.json() == {"version": "0.0.1", "builtAt": "2024-09-01T00:00:00+00:00"}


def test_debug_status_warns_about_memory_storage(client):
    body = client.get("/api/debug/status").json()
    assert body["status"] == "OK"
    assert body["storage"] == "In-memory (temporary)"
    assert "warning" in body


def test_debug_users_and_reset(client, store):
    client.post("/api/account/create", json={"username": "alice", "password": "pw"})
    client.post("/api/loans", json={"id": "b1", "username": "alice", "title": "Matilda", "author": "Roald Dahl"})

    users = client.get("/api/debug/users").json()
    assert users["usersCount"] == 1
    assert users["users"][0]["username"] == "alice"
    assert "password_hash" not in users["users"][0]

    response = client.get("/api/debug/reset")
    assert response.status_code == 200
    assert "dreamseak" in response.json()["message"]
    assert store.list("users") == []
    assert store.list("loans") == []


def test_debug_routes_can_be_disabled(settings, store):
    settings.enable_debug_routes = False
    client = TestClient(create_app(settings=settings, store=store))
    assert client.get("/api/debug/status").status_code == 404
    assert client.get("/api/version").status_code == 200


def test_unknown_api_path_returns_json_404(client):
    response = client.get("/api/nothing/here")
    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}


def test_unknown_api_path_returns_json_404_for_every_method(client):
    for method, path in [
        ("POST", "/api/nothing"),
        ("PUT", "/api/nothing/here"),
        ("DELETE", "/api/account/alice"),
        ("PATCH", "/api/loans/b1/extend"),
    ]:
        response = client.request(method, path, json={})
        assert response.status_code == 404, (method, path)
        assert response.json() == {"error": "Not found"}


def test_debug_routes_are_not_shadowed_by_api_404(client):
    assert client.get("/api/debug/status").status_code == 200


def test_log_level_follows_settings():
    root = logging.getLogger()
    previous = root.level
    try:
        create_app(settings=Settings(storage_backend="memory", log_level="WARNING"), store=MemoryStorage())
        assert root.level == logging.WARNING
        create_app(settings=Settings(storage_backend="memory", log_level="debug"), store=MemoryStorage())
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)


def test_static_files_and_spa_fallback(settings, client, tmp_path):
    static = tmp_path / "static"
    static.mkdir()
    (static / "index.html").write_text("<html>reading list</html>", encoding="utf-8")
    (static / "app.js").write_text("console.log('hi')", encoding="utf-8")

    assert client.get("/app.js").text == "console.log('hi')"
    assert "reading list" in client.get("/").text
    fallback = client.get("/books/42")
    assert fallback.status_code == 200
    assert "reading list" in fallback.text


def test_missing_frontend_returns_404(client):
    response = client.get("/")
    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}


def test_invalid_json_body_is_rejected(client):
    response = client.post(
        "/api/account/create",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


class BrokenStorage(MemoryStorage):
    def list(self, collection):
        raise RuntimeError("disk on fire")


def test_unexpected_errors_become_500(settings):
    client = TestClient(create_app(settings=settings, store=BrokenStorage()), raise_server_exceptions=False)
    response = client.get("/api/loans")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_cors_headers(client):
    response = client.get("/api/version", headers={"Origin": "http://example.org"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_lifespan_builds_and_closes_configured_storage(tmp_path):
    db_path = str(tmp_path / "library.db")
    settings = Settings(
        storage_backend="sqlite",
        database_url=db_path,
        static_dir=str(tmp_path / "static"),
        log_level="WARNING",
    )
    with TestClient(create_app(settings=settings)) as client:
        assert client.post("/api/account/create", json={"username": "alice", "password": "pw"}).status_code == 200
        assert "SQLite" in client.get("/api/debug/status").json()["storage"]

    assert SqliteStorage(db_path).get("users", "alice")["role"] == "student"
