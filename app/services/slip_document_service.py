from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable, Mapping
from datetime import date, time
from pathlib import Path

from fpdf import FPDF

from app.core.config import settings
from app.models.enums import SlipType
from app.models.slip import FreightSlip, TransportSlip
from app.services.slip_number_service import normalize_slip_type

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")
_PACKAGE_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

TEMPLATE_FILES = {
    SlipType.TRANSPORT: "cmr.html",
    SlipType.FREIGHT: "affretement.html",
}

# A4 portrait (210 x 297 mm)
PAGE_FORMAT = "A4"


class SlipTemplateError(RuntimeError):
    pass


def render_template(template: str, mapping: Mapping[str, object], *, escape: bool = True) -> str:
    """
    Replace every {{key}} with mapping[key]; unknown keys render as "".
    """

    def _substitute(match: re.Match) -> str:
        value = mapping.get(match.group(1))
        if value is None:
            return ""
        text = str(value)
        return html.escape(text) if escape else text

    return _PLACEHOLDER.sub(_substitute, template)


def _fmt_date(value: date | None) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def _fmt_time(value: time | None) -> str:
    return value.strftime("%H:%M") if value else ""


def _fmt_number(value: float | int | None) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _time_window(fixed: time | None, start: time | None, end: time | None) -> str:
    if start and end:
        return f"{_fmt_time(start)} à {_fmt_time(end)}"
    return _fmt_time(fixed)


def build_slip_context(
    slip: TransportSlip | FreightSlip,
    slip_type: SlipType | str,
    *,
    today: date | None = None,
) -> dict[str, str]:
    slip_type = normalize_slip_type(slip_type)
    is_freight = slip_type == SlipType.FREIGHT
    supplier = getattr(slip, "supplier", None) if is_freight else None
    client = slip.client

    loading_time = _time_window(slip.loading_time, slip.loading_time_start, slip.loading_time_end)
    delivery_time = _time_window(
        slip.delivery_time, slip.delivery_time_start, slip.delivery_time_end
    ) or "Livraison foulée"

    if slip.vehicle_type == "Autre":
        vehicle_type = slip.custom_vehicle_type or ""
    else:
        vehicle_type = slip.vehicle_type or ""

    price = slip.purchase_price if is_freight else slip.price

    return {
        "donneur_ordre": client.nom if client else "",
        "transporteur": (supplier.nom or "") if supplier else "",
        "tel_transporteur": (supplier.telephone or "") if supplier else "",
        "contact_fournisseur": (supplier.contact_nom or "") if supplier else "",
        "date": _fmt_date(today or date.today()),
        "date_heure_chargement": f"{_fmt_date(slip.loading_date)} {loading_time}".strip(),
        "date_heure_livraison": f"{_fmt_date(slip.delivery_date)} {delivery_time}".strip(),
        "adresse_chargement": slip.loading_address or "",
        "adresse_livraison": slip.delivery_address or "",
        "contact_chargement": slip.loading_contact or "",
        "contact_livraison": slip.delivery_contact or "",
        "marchandise": slip.goods_description or "",
        "volume": _fmt_number(slip.volume),
        "poids": _fmt_number(slip.weight),
        "metre": _fmt_number(getattr(slip, "metre", None)),
        "echange": "oui" if slip.exchange_type == "Oui" else "non",
        "price": _fmt_number(price),
        "mode_reglement": slip.payment_method or "",
        "nom_interlocuteur": (slip.commercial_id or "NON RENSEIGNÉ") if is_freight else "",
        "number": slip.number or "SANS NUMÉRO",
        "instructions": slip.instructions or "",
        "loading_instructions": getattr(slip, "loading_instructions", None) or "",
        "unloading_instructions": getattr(slip, "unloading_instructions", None) or "",
        "vehicle_type": vehicle_type,
        "tailgate": "HAYON" if slip.tailgate else "",
        "kilometers": _fmt_number(getattr(slip, "kilometers", None)),
    }


def _to_core_font_text(value: str) -> str:
    # Core PDF fonts only cover latin-1.
    return value.encode("latin-1", "replace").decode("latin-1")


def render_pdf(document_html: str) -> bytes:
    """Lay out the HTML on a single A4 portrait page."""
    pdf = FPDF(orientation="P", unit="mm", format=PAGE_FORMAT)
    pdf.set_auto_page_break(auto=False)
    pdf.set_margins(12, 12, 12)
    pdf.add_page()
    pdf.set_font("helvetica", size=10)
    pdf.write_html(_to_core_font_text(document_html))
    return bytes(pdf.output())


class SlipDocumentService:
    def __init__(
        self,
        *,
        templates_dir: str | Path | None = None,
        today: Callable[[], date] = date.today,
    ):
        configured = templates_dir or settings.SLIP_TEMPLATES_DIR
        self.templates_dir = Path(configured) if configured else _PACKAGE_TEMPLATES_DIR
        self._today = today

    def load_template(self, slip_type: SlipType | str) -> str:
        path = self.templates_dir / TEMPLATE_FILES[normalize_slip_type(slip_type)]
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SlipTemplateError(f"Cannot read slip template {path}: {exc}") from exc

    def render_html(self, slip: TransportSlip | FreightSlip, slip_type: SlipType | str) -> str:
        template = self.load_template(slip_type)
        context = build_slip_context(slip, slip_type, today=self._today())
        return render_template(template, context)

    def generate_pdf(self, slip: TransportSlip | FreightSlip, slip_type: SlipType | str) -> bytes:
        document = render_pdf(self.render_html(slip, slip_type))
        logger.info("slip_pdf_generated number=%s bytes=%s", slip.number, len(document))
        return document

    @staticmethod
    def pdf_filename(slip: TransportSlip | FreightSlip) -> str:
        return f"bordereau_{slip.number}.pdf"
