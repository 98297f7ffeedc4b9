from __future__ import annotations

from datetime import date

import pytest

from app.models.client import Client
from app.models.enums import SlipType
from app.models.slip import FreightSlip, TransportSlip
from app.models.slip_number_config import SlipNumberConfig
from app.models.supplier import Supplier
from app.models.vehicle import Vehicle
from app.schemas.slip import TransportSlipCreate
from app.services.slip_number_service import SlipNumberAllocationError, SlipNumberService
from app.services.slip_service import SlipService, SlipValidationError, compute_margin

YEAR = str(date.today().year)


def _seed_minimal(db):
    db.add_all(
        [
            Client(id=1, nom="Carrefour Logistique", email="transport@carrefour.test"),
            Supplier(id=1, nom="Transports Martin", telephone="0601020304", contact_nom="Paul"),
            Vehicle(id=1, immatriculation="AB-123-CD"),
        ]
    )
    db.commit()


def _transport_payload(**overrides):
    payload = {
        "client_id": 1,
        "vehicle_id": 1,
        "loading_date": "2025-05-12",
        "loading_time": "08:00",
        "loading_address": "12 rue du Port, Marseille",
        "delivery_date": "2025-05-12",
        "delivery_time_start": "14:00",
        "delivery_time_end": "16:00",
        "delivery_address": "ZI Nord, Avignon",
        "goods_description": "Palettes alimentaires",
        "volume": "12",
        "weight": "800",
        "price": "450",
        "kilometers": "100",
    }
    payload.update(overrides)
    return payload


def _freight_payload(**overrides):
    payload = {
        "client_id": 1,
        "supplier_id": 1,
        "loading_date": "2025-05-13",
        "delivery_date": "2025-05-14",
        "purchase_price": "800",
        "selling_price": "1000",
        "commercial_id": "sales@slipdesk.test",
    }
    payload.update(overrides)
    return payload


def test_create_transport_slip_assigns_number(client, db_session):
    _seed_minimal(db_session)
    resp = client.post(
        "/api/v1/transport-slips",
        json=_transport_payload(),
        headers={"X-User-Email": "Exploit@SlipDesk.test"},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["number"] == f"{YEAR} 0001"
    assert data["status"] == "pending"
    assert data["client"]["nom"] == "Carrefour Logistique"
    assert data["vehicle"]["immatriculation"] == "AB-123-CD"
    assert data["price_per_km"] == 4.5
    assert data["created_by"] == "exploit@slipdesk.test"

    second = client.post("/api/v1/transport-slips", json=_transport_payload())
    assert second.json()["number"] == f"{YEAR} 0002"


def test_form_payload_is_cleaned(client, db_session):
    _seed_minimal(db_session)
    payload = _transport_payload(vehicle_id="", price="abc", loading_time="", weight="")
    resp = client.post("/api/v1/transport-slips", json=payload)
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["vehicle_id"] is None
    assert data["price"] == 0
    assert data["loading_time"] is None
    assert data["weight"] == 0


def test_null_amounts_are_stored_as_zero(client, db_session):
    _seed_minimal(db_session)
    resp = client.post("/api/v1/transport-slips", json=_transport_payload(price=None, kilometers=None))
    assert resp.status_code == 201, resp.text
    assert resp.json()["price"] == 0
    assert resp.json()["kilometers"] == 0

    created = client.post("/api/v1/freight-slips", json=_freight_payload()).json()
    resp = client.patch(f"/api/v1/freight-slips/{created['id']}", json={"selling_price": None})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["selling_price"] == 0
    assert data["margin"] == -800
    assert data["margin_rate"] == 0


def test_create_freight_slip_computes_margin(client, db_session):
    _seed_minimal(db_session)
    resp = client.post("/api/v1/freight-slips", json=_freight_payload())
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["number"] == f"{YEAR} 0001"
    assert data["margin"] == 200
    assert data["margin_rate"] == 20
    assert data["payment_method"] == "Virement 30j FDM"
    assert data["supplier"]["nom"] == "Transports Martin"


def test_transport_and_freight_numbers_do_not_interfere(client, db_session):
    _seed_minimal(db_session)
    client.post("/api/v1/transport-slips", json=_transport_payload())
    client.post("/api/v1/transport-slips", json=_transport_payload())
    resp = client.post("/api/v1/freight-slips", json=_freight_payload())
    assert resp.json()["number"] == f"{YEAR} 0001"


def test_unknown_reference_is_rejected(client, db_session):
    _seed_minimal(db_session)
    resp = client.post("/api/v1/freight-slips", json=_freight_payload(supplier_id=99))
    assert resp.status_code == 400
    assert db_session.query(FreightSlip).count() == 0


def test_allocation_failure_returns_503_and_persists_nothing(monkeypatch, client, db_session):
    _seed_minimal(db_session)

    def unavailable(self, slip_type):
        raise SlipNumberAllocationError("Could not allocate a transport slip number after 10 attempts.")

    monkeypatch.setattr(SlipNumberService, "allocate", unavailable)
    resp = client.post("/api/v1/transport-slips", json=_transport_payload())
    assert resp.status_code == 503
    assert db_session.query(TransportSlip).count() == 0


def test_update_keeps_number(client, db_session):
    _seed_minimal(db_session)
    created = client.post("/api/v1/freight-slips", json=_freight_payload()).json()

    resp = client.patch(
        f"/api/v1/freight-slips/{created['id']}",
        json={"number": "9999 9999", "selling_price": 1200},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["number"] == created["number"]
    assert data["margin"] == 400
    assert round(data["margin_rate"], 2) == 33.33


def test_update_status(client, db_session):
    _seed_minimal(db_session)
    created = client.post("/api/v1/transport-slips", json=_transport_payload()).json()
    resp = client.patch(
        f"/api/v1/transport-slips/{created['id']}/status",
        json={"status": "delivered"},
        headers={"X-User-Email": "compta@slipdesk.test"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "delivered"
    assert resp.json()["last_changed_by"] == "compta@slipdesk.test"

    assert client.patch("/api/v1/transport-slips/999/status", json={"status": "delivered"}).status_code == 404


def test_list_filters_on_loading_date(client, db_session):
    _seed_minimal(db_session)
    client.post("/api/v1/transport-slips", json=_transport_payload(loading_date="2025-05-01"))
    client.post("/api/v1/transport-slips", json=_transport_payload(loading_date="2025-05-10"))
    client.post("/api/v1/transport-slips", json=_transport_payload(loading_date="2025-06-01"))

    resp = client.get(
        "/api/v1/transport-slips",
        params={"start_date": "2025-05-01", "end_date": "2025-05-31"},
    )
    assert resp.status_code == 200
    assert sorted(row["loading_date"] for row in resp.json()) == ["2025-05-01", "2025-05-10"]


def test_custom_vehicle_type_only_kept_for_other(client, db_session):
    _seed_minimal(db_session)
    resp = client.post(
        "/api/v1/transport-slips",
        json=_transport_payload(vehicle_type="T1", custom_vehicle_type="Plateau"),
    )
    assert resp.json()["custom_vehicle_type"] is None

    resp = client.post(
        "/api/v1/transport-slips",
        json=_transport_payload(vehicle_type="Autre", custom_vehicle_type="Plateau"),
    )
    assert resp.json()["custom_vehicle_type"] == "Plateau"


def test_failed_insert_leaves_a_gap(db_session):
    _seed_minimal(db_session)
    numbers = SlipNumberService(db_session, today=lambda: date(2025, 1, 2))
    service = SlipService(db_session, number_service=numbers)
    data = TransportSlipCreate(**_transport_payload())

    assert service.create_transport_slip(data, "a@slipdesk.test").number == "2025 0001"

    # A row already holding the next number makes the insert fail after allocation.
    db_session.add(
        TransportSlip(
            number="2025 0002",
            loading_date=date(2025, 5, 12),
            delivery_date=date(2025, 5, 12),
        )
    )
    db_session.commit()

    with pytest.raises(SlipValidationError):
        service.create_transport_slip(data, "a@slipdesk.test")
    assert service.create_transport_slip(data, "a@slipdesk.test").number == "2025 0003"

    config = db_session.query(SlipNumberConfig).filter_by(type=SlipType.TRANSPORT).one()
    assert config.current_number == 3


def test_compute_margin_without_selling_price():
    assert compute_margin(100, 0) == (-100.0, 0.0)
    assert compute_margin(None, None) == (0.0, 0.0)
