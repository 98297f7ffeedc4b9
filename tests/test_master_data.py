from __future__ import annotations


def test_supplier_crud(client, db_session):
    resp = client.post(
        "/suppliers",
        json={"nom": "Transports Martin", "telephone": "0601020304", "contact_nom": "Paul"},
    )
    assert resp.status_code == 201, resp.text
    supplier_id = resp.json()["id"]

    resp = client.patch(f"/suppliers/{supplier_id}", json={"email": "paul@martin.test"})
    assert resp.json()["email"] == "paul@martin.test"

    assert client.delete(f"/suppliers/{supplier_id}").status_code == 204
    assert client.get("/suppliers").json() == []
    assert len(client.get("/suppliers", params={"include_deleted": True}).json()) == 1


def test_vehicle_plate_is_unique(client, db_session):
    resp = client.post("/vehicles", json={"immatriculation": " ab-123-cd "})
    assert resp.status_code == 201, resp.text
    assert resp.json()["immatriculation"] == "AB-123-CD"

    assert client.post("/vehicles", json={"immatriculation": "AB-123-CD"}).status_code == 409


def test_inactive_vehicles_filter(client, db_session):
    first = client.post("/vehicles", json={"immatriculation": "AA-111-AA"}).json()
    client.post("/vehicles", json={"immatriculation": "BB-222-BB"})
    client.delete(f"/vehicles/{first['id']}")

    active = client.get("/vehicles", params={"is_active": True}).json()
    assert [v["immatriculation"] for v in active] == ["BB-222-BB"]


def test_users_roles_and_me(client, db_session):
    resp = client.post(
        "/users",
        json={"name": "Julie", "email": "Julie@SlipDesk.fr", "role": "compta"},
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["email"] == "julie@slipdesk.fr"

    assert client.post("/users", json={"name": "J2", "email": "julie@slipdesk.fr"}).status_code == 409
    assert client.post("/users", json={"name": "X", "email": "x@test.fr", "role": "boss"}).status_code == 422

    me = client.get("/users/me", headers={"X-User-Email": "julie@slipdesk.fr"})
    assert me.status_code == 200
    assert me.json()["role"] == "compta"

    listed = client.get("/users", params={"role": "compta"}).json()
    assert [u["name"] for u in listed] == ["Julie"]


def test_smtp_settings_roundtrip(client, db_session):
    assert client.get("/settings/smtp").status_code == 404
    payload = {
        "smtp_host": "smtp.test",
        "smtp_port": 465,
        "smtp_user": "u@test.fr",
        "smtp_pass": "pw",
        "smtp_from": "",
    }
    assert client.put("/settings/smtp", json=payload).status_code == 200
    payload["smtp_host"] = "smtp2.test"
    client.put("/settings/smtp", json=payload)
    assert client.get("/settings/smtp").json()["smtp_host"] == "smtp2.test"


def test_email_settings_default(client, db_session):
    assert client.get("/settings/email").json() == {"template": None, "signature": None}


def test_health(client):
    assert client.get("/health").json() == {"status": "up"}
