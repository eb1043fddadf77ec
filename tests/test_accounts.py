from reading_list_api.app.core.security import verify_password


def create(client, username, password="pw"):
    return client.post("/api/account/create", json={"username": username, "password": password})


def test_create_account_defaults_to_student(client):
    response = create(client, "alice")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Account created", "role": "student"}


def test_superuser_gets_admin_role(client):
    response = create(client, "DreamSeak")
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_usernames_are_unique_case_insensitively(client):
    assert create(client, "Foo").status_code == 200
    response = create(client, "foo")
    assert response.status_code == 409
    assert response.json() == {"error": "User already exists"}


def test_create_requires_username_and_password(client):
    assert create(client, "", "pw").status_code == 400
    assert create(client, "bob", "").status_code == 400
    response = client.post("/api/account/create", json={"username": "bob"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_password_is_stored_hashed(client, store):
    create(client, "alice", "secret")
    record = store.get("users", "alice")
    assert record["password_hash"] != "secret"
    assert "secret" not in record["password_hash"]
    assert verify_password("secret", record["password_hash"])


def test_login_is_case_insensitive(client):
    create(client, "Teacher1", "pw")
    response = client.post("/api/account/login", json={"username": "teacher1", "password": "pw"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["username"] == "teacher1"
    assert body["role"] == "student"


def test_login_failures_do_not_reveal_unknown_usernames(client):
    create(client, "alice", "right")
    wrong_password = client.post("/api/account/login", json={"username": "alice", "password": "wrong"})
    unknown_user = client.post("/api/account/login", json={"username": "nobody", "password": "wrong"})
    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()


def test_login_requires_fields(client):
    response = client.post("/api/account/login", json={"username": "alice"})
    assert response.status_code == 400


def test_me_returns_role_and_created_at(client):
    create(client, "alice")
    response = client.get("/api/account/me", params={"username": "ALICE"})
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "alice"
    assert body["role"] == "student"
    assert body["createdAt"]
    assert "password_hash" not in body


def test_me_errors(client):
    assert client.get("/api/account/me").status_code == 400
    response = client.get("/api/account/me", params={"username": "ghost"})
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_list_accounts(client):
    create(client, "dreamseak")
    create(client, "alice")
    response = client.get("/api/accounts")
    assert response.status_code == 200
    accounts = response.json()["accounts"]
    assert [(a["username"], a["role"]) for a in accounts] == [("dreamseak", "admin"), ("alice", "student")]
    assert all("createdAt" in a for a in accounts)


def test_list_accounts_empty(client):
    assert client.get("/api/accounts").json() == {"accounts": []}


def test_role_promotion_scenario(client):
    assert create(client, "Teacher1", "pw").json()["role"] == "student"
    login = client.post("/api/account/login", json={"username": "teacher1", "password": "pw"})
    assert login.json()["role"] == "student"

    response = client.put("/api/account/teacher1/role", json={"role": "teacher"})
    assert response.status_code == 200
    assert response.json()["success"] is True

    me = client.get("/api/account/me", params={"username": "teacher1"})
    assert me.json()["role"] == "teacher"


def test_set_role_validation(client):
    create(client, "alice")
    assert client.put("/api/account/alice/role", json={"role": "principal"}).status_code == 400
    assert client.put("/api/account/alice/role", json={}).status_code == 400
    assert client.put("/api/account/ghost/role", json={"role": "teacher"}).status_code == 404


def test_set_role_accepts_mixed_case(client):
    create(client, "alice")
    assert client.put("/api/account/Alice/role", json={"role": "Admin"}).status_code == 200
    assert client.get("/api/account/me", params={"username": "alice"}).json()["role"] == "admin"
