from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps.request_identity import get_request_email
from app.api.v1.endpoints.slip_errors import slip_errors
from app.db.session import get_db
from app.models.enums import SlipType
from app.schemas.mail import MailSendResult, SlipEmailRequest
from app.schemas.slip import (
    SlipStatusUpdate,
    TransportSlipCreate,
    TransportSlipOut,
    TransportSlipUpdate,
)
from app.services.slip_document_service import SlipDocumentService
from app.services.slip_email_service import SlipEmailService
from app.services.slip_service import SlipService

router = APIRouter()


@router.post("", response_model=TransportSlipOut, status_code=status.HTTP_201_CREATED)
def create_transport_slip(
    payload: TransportSlipCreate,
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    """Create a delivery slip; its number is allocated from the transport sequence."""
    with slip_errors():
        return SlipService(db).create_transport_slip(payload, user_email)


@router.get("", response_model=list[TransportSlipOut])
def list_transport_slips(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: Session = Depends(get_db),
):
    return SlipService(db).list_slips(SlipType.TRANSPORT, start_date, end_date)


@router.get("/{slip_id}", response_model=TransportSlipOut)
def get_transport_slip(slip_id: int, db: Session = Depends(get_db)):
    with slip_errors():
        return SlipService(db).get_slip(SlipType.TRANSPORT, slip_id)


@router.patch("/{slip_id}", response_model=TransportSlipOut)
def update_transport_slip(
    slip_id: int,
    payload: TransportSlipUpdate,
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    with slip_errors():
        return SlipService(db).update_transport_slip(slip_id, payload, user_email)


@router.patch("/{slip_id}/status", response_model=TransportSlipOut)
def update_transport_slip_status(
    slip_id: int,
    payload: SlipStatusUpdate,
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    with slip_errors():
        return SlipService(db).update_slip_status(
            slip_id, payload.status, SlipType.TRANSPORT, user_email
        )


@router.get("/{slip_id}/pdf")
def download_transport_slip_pdf(slip_id: int, db: Session = Depends(get_db)):
    with slip_errors():
        slip = SlipService(db).get_slip(SlipType.TRANSPORT, slip_id)
        documents = SlipDocumentService()
        content = documents.generate_pdf(slip, SlipType.TRANSPORT)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{documents.pdf_filename(slip)}"'},
    )


@router.post("/{slip_id}/email", response_model=MailSendResult)
def email_transport_slip(
    slip_id: int,
    payload: SlipEmailRequest,
    db: Session = Depends(get_db),
):
    with slip_errors():
        request = SlipEmailService(db).email_slip(SlipType.TRANSPORT, slip_id, payload)
    return MailSendResult(
        recipients=request.to,
        subject=request.subject,
        attachments=[a.filename for a in request.attachments],
    )
