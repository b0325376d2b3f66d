from conftest import SHIPPING, auth, run, seed_user


def _register(client, phone="01812345678", email="karim@example.com", name="Karim Mia"):
    return client.post("/api/auth/register", json={
        "name": name,
        "phone_number": phone,
        "email": email,
        "password": "secret123",
    })


def test_register_login_and_me(client):
    r = _register(client, phone="+880 1812-345678")
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["phone_number"] == "01812345678"
    assert user["id"].startswith("karimmia")
    assert user["is_admin"] is False
    assert "password_hash" not in user

    r = client.post("/api/auth/login", json={"identifier": "KARIM@example.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = client.post("/api/auth/login", json={"identifier": "01812345678", "password": "secret123"})
    assert r.status_code == 200

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["id"] == user["id"]


def test_duplicate_registration_is_conflict(client):
    assert _register(client).status_code == 200
    r = _register(client, email="other@example.com")
    assert r.status_code == 409


def test_invalid_phone_and_bad_password(client):
    assert _register(client, phone="12345").status_code == 400

    _register(client)
    r = client.post("/api/auth/login", json={"identifier": "01812345678", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}


def test_admin_phone_registers_admin(client):
    r = _register(client, phone="01700000000", email="admin@example.com", name="Admin")
    assert r.json()["user"]["is_admin"] is True


def test_bad_token_rejected(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_user_profile_access(client, db):
    run(seed_user(db, "user1"))
    run(seed_user(db, "user2"))
    run(seed_user(db, "admin1", is_admin=True))

    assert client.get("/api/users/user1", headers=auth("user1")).status_code == 200
    assert client.get("/api/users/user1", headers=auth("user2")).status_code == 403
    assert client.get("/api/users/user1", headers=auth("admin1", True)).status_code == 200

    assert client.get("/api/users", headers=auth("user1")).status_code == 403
    assert len(client.get("/api/users", headers=auth("admin1", True)).json()) == 3

    r = client.put("/api/users/user1", json={"name": "  New Name "}, headers=auth("user1"))
    assert r.json()["name"] == "New Name"


def test_shipping_addresses_keep_one_default(client, db):
    run(seed_user(db, "user1"))
    base = "/api/users/user1/shipping-addresses"

    first = client.post(base, json=SHIPPING, headers=auth("user1")).json()["address"]
    assert first["is_default"] is True

    second = client.post(
        base,
        json={**SHIPPING, "district": "Chittagong", "upazilla": "Hathazari", "is_default": True},
        headers=auth("user1"),
    ).json()["address"]

    addresses = client.get(base, headers=auth("user1")).json()
    assert [a["is_default"] for a in addresses] == [False, True]

    r = client.put(f"{base}/{first['id']}", json={"is_default": True, "road_number": "7"}, headers=auth("user1"))
    assert r.status_code == 200
    addresses = client.get(base, headers=auth("user1")).json()
    assert [a["is_default"] for a in addresses] == [True, False]
    assert addresses[0]["road_number"] == "7"

    assert client.delete(f"{base}/{first['id']}", headers=auth("user1")).status_code == 200
    addresses = client.get(base, headers=auth("user1")).json()
    assert [a["id"] for a in addresses] == [second["id"]]
    assert addresses[0]["is_default"] is True

    assert client.delete(f"{base}/missing", headers=auth("user1")).status_code == 404
