import threading

import pytest

from reading_list_client import ReadingListAPI
from reading_list_sync import LocalCache, ReadingListSync


@pytest.fixture
def api(session):
    return ReadingListAPI(base_url="http://testserver", session=session)


@pytest.fixture
def cache(tmp_path):
    return LocalCache(str(tmp_path / "cache.json"))


@pytest.fixture
def sync(api, cache, clock):
    return ReadingListSync(api, cache, clock=clock)


@pytest.fixture
def alice(sync):
    sync.register("Alice", "pw")
    sync.login("Alice", "pw")
    return sync


def test_client_reports_server_errors(api):
    api.create_account("alice", "pw")
    data, error = api.login("alice", "wrong")
    assert data is None
    assert error == {"status_code": 401, "message": "Invalid username or password"}


def test_client_reports_unreachable_server(api, session):
    session.offline = True
    loans, error = api.list_loans()
    assert loans == []
    assert error["status_code"] is None


def test_client_version(api):
    data, error = api.get_version()
    assert error is None
    assert data["version"] == "0.0.1"


def test_register_reports_role(sync):
    assert sync.register("dreamseak", "pw") == ("admin", None)
    role, error = sync.register("DreamSeak", "pw")
    assert role is None
    assert error["status_code"] == 409


def test_login_remembers_user(alice, cache):
    assert alice.current_user == "Alice"
    assert alice.role == "student"
    assert cache.get("currentUser") == "Alice"
    assert cache.get("currentUserRole") == "student"


def test_logout_forgets_user(alice, cache):
    alice.logout()
    assert alice.current_user is None
    assert cache.get("currentUser") is None


def test_role_change_is_picked_up(alice, client):
    assert alice.refresh_role() is False
    client.put("/api/account/alice/role", json={"role": "teacher"})
    assert alice.refresh_role() is True
    assert alice.role == "teacher"
    assert alice.cache.get("currentUserRole") == "teacher"


def test_restore_session_reads_role_from_server(alice, api, client, tmp_path, clock):
    client.put("/api/account/alice/role", json={"role": "admin"})
    restored = ReadingListSync(api, LocalCache(str(tmp_path / "cache.json")), clock=clock)
    assert restored.restore_session() == "Alice"
    assert restored.role == "admin"


def test_restore_session_unknown_user_falls_back_to_student(api, cache, clock):
    cache.set("currentUser", "ghost")
    cache.set("currentUserRole", "admin")
    sync = ReadingListSync(api, cache, clock=clock)
    sync.restore_session()
    assert sync.role == "student"


def test_borrow_and_return(alice, client):
    assert alice.borrow("b1", "Matilda", "Roald Dahl") == (True, None)
    assert alice.is_borrowed("b1")
    assert [loan["id"] for loan in client.get("/api/loans").json()["loans"]] == ["b1"]
    assert [loan["id"] for loan in alice.my_loans()] == ["b1"]

    ok, error = alice.return_book("b1")
    assert ok and error is None
    assert client.get("/api/loans").json()["loans"] == []
    assert not alice.is_borrowed("b1")


def test_borrow_rejected_by_server_changes_nothing(alice, client, cache):
    client.post("/api/loans", json={"id": "b1", "username": "bob", "title": "Matilda", "author": "Roald Dahl"})
    ok, error = alice.borrow("b1", "Matilda", "Roald Dahl")
    assert ok is False
    assert error["status_code"] == 409
    assert cache.get("borrowedBooks") in (None, [])


def test_borrow_offline_is_kept_locally(alice, session, client, cache):
    session.offline = True
    assert alice.borrow("b2", "Holes", "Louis Sachar") == (True, None)
    assert [loan["id"] for loan in cache.get("borrowedBooks")] == ["b2"]
    session.offline = False
    assert client.get("/api/loans").json()["loans"] == []


def test_borrow_requires_login(sync):
    ok, error = sync.borrow("b1", "Matilda", "Roald Dahl")
    assert ok is False
    assert error["message"] == "Not logged in"


def test_fetch_loans_falls_back_to_cache(alice, session):
    alice.borrow("b1", "Matilda", "Roald Dahl")
    assert [loan["id"] for loan in alice.fetch_loans()] == ["b1"]
    session.offline = True
    assert [loan["id"] for loan in alice.fetch_loans()] == ["b1"]


def test_cached_loans_are_normalised_and_expired_ones_dropped(sync, cache, clock):
    cache.set(
        "borrowedBooks",
        [
            "b1",
            {"id": 7, "user": "Alice", "endDate": "2024-09-10T00:00:00.000Z"},
            {"id": "old", "username": "bob", "endDate": "2024-09-01T00:00:00.000Z"},
        ],
    )
    loans = sync.load_cached_loans()
    assert loans == [
        {"id": "b1", "username": "", "endDate": None},
        {"id": "7", "username": "alice", "endDate": "2024-09-10T00:00:00.000Z"},
    ]
    assert cache.get("borrowedBooks") == loans

    clock.advance(days=8)
    assert [loan["id"] for loan in sync.load_cached_loans()] == ["b1"]


def test_cached_loans_without_an_id_are_dropped(sync, cache):
    cache.set(
        "borrowedBooks",
        [None, "", "  ", {"id": None, "username": "alice"}, {"username": "bob"}, {"id": "b9"}],
    )
    assert [loan["id"] for loan in sync.load_cached_loans()] == ["b9"]
    assert [loan["id"] for loan in cache.get("borrowedBooks")] == ["b9"]


def test_only_teachers_post_announcements(alice, client):
    ok, error = alice.post_announcement("Library closed", "Friday")
    assert ok is False
    assert error["status_code"] is None

    client.put("/api/account/alice/role", json={"role": "teacher"})
    alice.refresh_role()
    assert alice.post_announcement("Library closed", "Friday") == (True, None)
    assert [a["title"] for a in alice.announcements] == ["Library closed"]


def test_announcements_fall_back_to_cache(alice, client, session):
    client.post("/api/announcements", json={"title": "Book fair", "body": "Monday"})
    assert len(alice.fetch_announcements()) == 1
    session.offline = True
    assert [a["title"] for a in alice.fetch_announcements()] == ["Book fair"]


def test_poll_once_follows_intervals(alice):
    assert alice.poll_once(now=100.0) == ["role", "loans", "announcements"]
    assert alice.poll_once(now=105.0) == []
    assert alice.poll_once(now=110.0) == ["announcements"]
    assert alice.poll_once(now=130.0) == ["role", "loans", "announcements"]


def test_poll_survives_unreachable_server(alice, session):
    session.offline = True
    assert alice.poll_once(now=0.0) == ["role", "loans", "announcements"]


def test_run_stops_after_max_iterations(alice, session):
    before = len(session.calls)
    alice.run(threading.Event(), tick=0, max_iterations=2)
    # the first tick runs all three tasks, the second finds nothing due
    assert len(session.calls) - before == 3


def test_local_cache_survives_reload(tmp_path):
    path = str(tmp_path / "nested" / "cache.json")
    LocalCache(path).set("announcements", [{"id": "ann_1"}])
    assert LocalCache(path).get("announcements") == [{"id": "ann_1"}]


def test_local_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("][", encoding="utf-8")
    assert LocalCache(str(path)).get("currentUser") is None
