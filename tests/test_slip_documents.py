from __future__ import annotations

from datetime import date, time

import pytest

from app.models.client import Client
from app.models.enums import SlipType
from app.models.slip import FreightSlip, TransportSlip
from app.models.supplier import Supplier
from app.services.slip_document_service import (
    SlipDocumentService,
    SlipTemplateError,
    build_slip_context,
    render_pdf,
    render_template,
)


def _transport_slip(**overrides) -> TransportSlip:
    values = dict(
        number="2025 0007",
        client=Client(nom="Boulangerie Dupont"),
        loading_date=date(2025, 5, 12),
        loading_time_start=time(8, 0),
        loading_time_end=time(9, 30),
        loading_address="12 rue du Port, Marseille",
        delivery_date=date(2025, 5, 13),
        delivery_address="ZI Nord, Avignon",
        goods_description="Farine",
        volume=12.0,
        weight=850.5,
        exchange_type="Oui",
        vehicle_type="Autre",
        custom_vehicle_type="Plateau",
        tailgate=True,
        price=450.0,
        payment_method="Virement",
        kilometers=120.0,
    )
    values.update(overrides)
    return TransportSlip(**values)


def _freight_slip(**overrides) -> FreightSlip:
    values = dict(
        number="2025 0003",
        client=Client(nom="Boulangerie Dupont"),
        supplier=Supplier(nom="Transports Martin", telephone="0601020304", contact_nom="Paul"),
        loading_date=date(2025, 5, 12),
        loading_time=time(7, 15),
        delivery_date=date(2025, 5, 12),
        delivery_time=time(18, 0),
        price=0.0,
        purchase_price=800.0,
        selling_price=1000.0,
        metre=6.5,
        exchange_type="Non",
        tailgate=False,
        vehicle_type="Semi",
    )
    values.update(overrides)
    return FreightSlip(**values)


def test_render_template_replaces_and_blanks_unknown_keys():
    out = render_template("<p>{{ number }} / {{missing}} / {{client}}</p>", {"number": "2025 0001", "client": "A & B"})
    assert out == "<p>2025 0001 /  / A &amp; B</p>"


def test_render_template_without_escaping():
    assert render_template("{{x}}", {"x": "<b>"}, escape=False) == "<b>"


def test_transport_context():
    ctx = build_slip_context(_transport_slip(), SlipType.TRANSPORT, today=date(2025, 5, 10))
    assert ctx["number"] == "2025 0007"
    assert ctx["donneur_ordre"] == "Boulangerie Dupont"
    assert ctx["date"] == "10/05/2025"
    assert ctx["date_heure_chargement"] == "12/05/2025 08:00 à 09:30"
    # no delivery time at all
    assert ctx["date_heure_livraison"] == "13/05/2025 Livraison foulée"
    assert ctx["volume"] == "12"
    assert ctx["poids"] == "850.5"
    assert ctx["metre"] == "-"
    assert ctx["echange"] == "oui"
    assert ctx["vehicle_type"] == "Plateau"
    assert ctx["tailgate"] == "HAYON"
    assert ctx["price"] == "450"
    assert ctx["transporteur"] == ""
    assert ctx["nom_interlocuteur"] == ""


def test_freight_context_uses_purchase_price_and_supplier():
    ctx = build_slip_context(_freight_slip(), "freight", today=date(2025, 5, 10))
    assert ctx["price"] == "800"
    assert ctx["transporteur"] == "Transports Martin"
    assert ctx["tel_transporteur"] == "0601020304"
    assert ctx["contact_fournisseur"] == "Paul"
    assert ctx["date_heure_chargement"] == "12/05/2025 07:15"
    assert ctx["date_heure_livraison"] == "12/05/2025 18:00"
    assert ctx["nom_interlocuteur"] == "NON RENSEIGNÉ"
    assert ctx["echange"] == "non"
    assert ctx["metre"] == "6.5"
    assert ctx["tailgate"] == ""


def test_missing_number_placeholder():
    ctx = build_slip_context(_freight_slip(number=None), SlipType.FREIGHT)
    assert ctx["number"] == "SANS NUMÉRO"


def test_render_pdf_returns_single_page_document():
    content = render_pdf("<h1>Bordereau</h1><p>Prix : 450 EUR - édité à Marseille</p>")
    assert content.startswith(b"%PDF")
    assert b"/Count 1" in content


@pytest.mark.parametrize("slip_type", [SlipType.TRANSPORT, SlipType.FREIGHT])
def test_packaged_templates_render(slip_type):
    slip = _transport_slip() if slip_type == SlipType.TRANSPORT else _freight_slip()
    service = SlipDocumentService(today=lambda: date(2025, 5, 10))
    html = service.render_html(slip, slip_type)
    assert "{{" not in html
    assert slip.number in html
    assert service.generate_pdf(slip, slip_type).startswith(b"%PDF")


def test_custom_templates_dir(tmp_path):
    (tmp_path / "cmr.html").write_text("<p>{{number}} {{donneur_ordre}}</p>", encoding="utf-8")
    service = SlipDocumentService(templates_dir=tmp_path)
    assert service.render_html(_transport_slip(), SlipType.TRANSPORT) == "<p>2025 0007 Boulangerie Dupont</p>"

    with pytest.raises(SlipTemplateError):
        service.load_template(SlipType.FREIGHT)


def test_pdf_filename():
    assert SlipDocumentService.pdf_filename(_freight_slip()) == "bordereau_2025 0003.pdf"


def test_pdf_download_route(client, db_session):
    db_session.add(Client(id=1, nom="Boulangerie Dupont"))
    db_session.commit()
    created = client.post(
        "/api/v1/transport-slips",
        json={"client_id": 1, "loading_date": "2025-05-12", "delivery_date": "2025-05-12"},
    ).json()

    resp = client.get(f"/api/v1/transport-slips/{created['id']}/pdf")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert f"bordereau_{created['number']}.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")

    assert client.get("/api/v1/transport-slips/999/pdf").status_code == 404
