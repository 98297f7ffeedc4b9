from __future__ import annotations


def _client_payload(**overrides):
    payload = {
        "nom": "Boulangerie Dupont",
        "email": "contact@dupont.test",
        "telephone": "0491000000",
        "adresse": "3 cours Julien, Marseille",
        "facturation": "Facture mensuelle",
        "contacts": [{"name": "Marie Dupont", "email": "marie@dupont.test", "role": "Logistique"}],
        "accounting_contact": {"name": "Service compta", "email": "compta@dupont.test"},
    }
    payload.update(overrides)
    return payload


def test_create_client_with_contacts(client, db_session):
    resp = client.post(
        "/clients",
        json=_client_payload(),
        headers={"X-User-Email": "admin@slipdesk.test"},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["nom"] == "Boulangerie Dupont"
    assert [c["name"] for c in data["contacts"]] == ["Marie Dupont"]
    assert data["accounting_contact"]["email"] == "compta@dupont.test"
    assert data["created_by"] == "admin@slipdesk.test"


def test_list_clients_search(client, db_session):
    client.post("/clients", json=_client_payload(nom="Boulangerie Dupont"))
    client.post("/clients", json=_client_payload(nom="Primeurs du Sud"))

    resp = client.get("/clients", params={"q": "dupont"})
    assert resp.status_code == 200
    assert [row["nom"] for row in resp.json()] == ["Boulangerie Dupont"]


def test_update_client_replaces_contacts(client, db_session):
    created = client.post("/clients", json=_client_payload()).json()
    resp = client.patch(
        f"/clients/{created['id']}",
        json={
            "telephone": "0600000000",
            "contacts": [{"name": "Luc"}, {"name": "Anne", "role": "Quai"}],
            "accounting_contact": {"name": "Cabinet Fiduciaire"},
        },
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["telephone"] == "0600000000"
    assert [c["name"] for c in data["contacts"]] == ["Luc", "Anne"]
    assert data["accounting_contact"]["name"] == "Cabinet Fiduciaire"
    assert data["nom"] == "Boulangerie Dupont"


def test_contact_routes(client, db_session):
    created = client.post("/clients", json=_client_payload(contacts=[])).json()
    client_id = created["id"]

    resp = client.post(f"/clients/{client_id}/contacts", json={"name": "Marc"})
    assert resp.status_code == 201, resp.text
    contact_id = resp.json()["id"]

    resp = client.put(
        f"/clients/{client_id}/contacts/{contact_id}",
        json={"name": "Marc Leroy", "telephone": "0612345678"},
    )
    assert resp.json()["name"] == "Marc Leroy"

    assert client.delete(f"/clients/{client_id}/contacts/{contact_id}").status_code == 204
    assert client.get(f"/clients/{client_id}").json()["contacts"] == []
    assert client.post("/clients/999/contacts", json={"name": "X"}).status_code == 404


def test_client_referenced_by_slip_cannot_be_deleted(client, db_session):
    created = client.post("/clients", json=_client_payload()).json()
    client.post(
        "/api/v1/transport-slips",
        json={"client_id": created["id"], "loading_date": "2025-05-12", "delivery_date": "2025-05-12"},
    )
    assert client.delete(f"/clients/{created['id']}").status_code == 409


def test_delete_client(client, db_session):
    created = client.post("/clients", json=_client_payload()).json()
    assert client.delete(f"/clients/{created['id']}").status_code == 204
    assert client.get(f"/clients/{created['id']}").status_code == 404
