from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import Any

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.clients import get_client_by_nom
from app.models.client import Client, ClientAccountingContact
from app.schemas.client import ClientImportIssue, ClientImportResult

logger = logging.getLogger(__name__)

_MAX_ISSUES = 400
_MANDATORY_FILL = PatternFill("solid", fgColor="FCE4D6")
_MANDATORY_FONT = Font(bold=True, color="9C0006")
_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

CLIENT_SHEET = "CLIENTS"
_README_SHEET = "README"

CLIENT_COLUMNS = [
    "nom",
    "email",
    "telephone",
    "adresse",
    "facturation",
    "compta_nom",
    "compta_email",
    "compta_telephone",
]
CLIENT_MANDATORY = {"nom"}
_CLIENT_FIELDS = ("email", "telephone", "adresse", "facturation")


def _normalize_header(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", (value or "").strip().lower()).strip("_")


def _safe_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, float) and raw.is_integer():
        # phone numbers typed as numbers
        raw = int(raw)
    text = str(raw).strip()
    return text or None


def _issue(*, row: int, error_code: str, reason: str, field: str | None = None) -> ClientImportIssue:
    return ClientImportIssue(
        sheet=CLIENT_SHEET,
        row=row,
        error_code=error_code,
        reason=reason,
        field=field,
    )


def _append_header(ws, columns: list[str], mandatory: set[str]) -> None:
    ws.append(columns)
    ws.freeze_panes = "A2"
    for idx, column_name in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx)
        if column_name in mandatory:
            cell.fill = _MANDATORY_FILL
            cell.font = _MANDATORY_FONT
        ws.column_dimensions[get_column_letter(idx)].width = max(14, min(36, len(column_name) + 5))


def build_client_template() -> StreamingResponse:
    wb = Workbook()
    ws = wb.active
    ws.title = CLIENT_SHEET
    _append_header(ws, CLIENT_COLUMNS, CLIENT_MANDATORY)

    readme = wb.create_sheet(_README_SHEET)
    readme.append(["Instruction"])
    for line in (
        "One client per row. Column 'nom' is mandatory (highlighted in orange).",
        "Rows whose 'nom' matches an existing client (case-insensitive) update that client.",
        "compta_* columns fill the accounting contact; compta_nom is required to create it.",
    ):
        readme.append([line])
    readme.column_dimensions["A"].width = 120

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return StreamingResponse(
        buffer,
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="clients_template.xlsx"'},
    )


def _read_client_rows(workbook) -> tuple[list[dict[str, Any]], list[ClientImportIssue]]:
    if CLIENT_SHEET in workbook.sheetnames:
        ws = workbook[CLIENT_SHEET]
    else:
        ws = workbook.worksheets[0]

    rows = list(ws.iter_rows(values_only=True))
    if not rows:
        return [], [_issue(row=1, error_code="EMPTY_SHEET", reason="Workbook has no header row.")]

    header_pos = {
        name: idx
        for idx, name in enumerate(_normalize_header(str(cell or "")) for cell in rows[0])
        if name
    }
    if "nom" not in header_pos:
        return [], [
            _issue(
                row=1,
                error_code="MISSING_COLUMN",
                reason="Column 'nom' is required in sheet header.",
                field="nom",
            )
        ]

    parsed: list[dict[str, Any]] = []
    for row_index, values in enumerate(rows[1:], start=2):
        row_data: dict[str, Any] = {}
        for column_name in CLIENT_COLUMNS:
            idx = header_pos.get(column_name)
            if idx is None or idx >= len(values):
                row_data[column_name] = None
                continue
            row_data[column_name] = _safe_text(values[idx])
        if not any(row_data.values()):
            continue
        parsed.append({"row": row_index, "data": row_data})
    return parsed, []


def _apply_accounting_contact(client: Client, data: dict[str, Any]) -> None:
    name = data.get("compta_nom")
    email = data.get("compta_email")
    telephone = data.get("compta_telephone")
    if client.accounting_contact is not None:
        contact = client.accounting_contact
        if name:
            contact.name = name
        if email:
            contact.email = email
        if telephone:
            contact.telephone = telephone
    elif name:
        client.accounting_contact = ClientAccountingContact(name=name, email=email, telephone=telephone)


def _import_row(
    db: Session,
    result: ClientImportResult,
    seen: set[str],
    *,
    row_no: int,
    data: dict[str, Any],
    user_email: str,
) -> None:
    nom = data.get("nom")
    if not nom:
        result.skipped += 1
        result.issues.append(
            _issue(row=row_no, error_code="MANDATORY_MISSING", reason="'nom' is required.", field="nom")
        )
        return
    key = nom.lower()
    if key in seen:
        result.skipped += 1
        result.issues.append(
            _issue(
                row=row_no,
                error_code="DUPLICATE_ROW",
                reason=f"Client '{nom}' appears more than once in the file.",
                field="nom",
            )
        )
        return
    seen.add(key)

    client = get_client_by_nom(db, nom)
    if client is None:
        client = Client(nom=nom, created_by=user_email, last_changed_by=user_email)
        db.add(client)
        result.created += 1
    else:
        result.updated += 1
    for field in _CLIENT_FIELDS:
        if data.get(field) is not None:
            setattr(client, field, data[field])
    client.last_changed_by = user_email
    _apply_accounting_contact(client, data)
    db.flush()


def import_clients_workbook(
    db: Session,
    *,
    payload: bytes,
    filename: str,
    user_email: str,
) -> ClientImportResult:
    if not payload:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    try:
        workbook = load_workbook(filename=BytesIO(payload), data_only=True)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Invalid workbook: {exc}") from exc

    rows, issues = _read_client_rows(workbook)
    result = ClientImportResult(total_rows=len(rows), issues=issues)
    seen: set[str] = set()

    try:
        for entry in rows:
            _import_row(db, result, seen, row_no=entry["row"], data=entry["data"], user_email=user_email)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Client import rejected: {exc.orig}") from exc

    result.issues = result.issues[:_MAX_ISSUES]

    logger.info(
        "client_workbook_imported filename=%s created=%s updated=%s skipped=%s",
        filename,
        result.created,
        result.updated,
        result.skipped,
    )
    return result
