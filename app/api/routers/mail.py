import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.mail import SendEmailRequest, SmtpTestRequest
from app.services.mail_relay import (
    MailRelay,
    MailRelayFailure,
    MailRequest,
    normalize_recipients,
    resolve_smtp_config,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["mail"])


def _failure_response(exc: MailRelayFailure) -> JSONResponse:
    # Same body shape as the standalone relay: message/error/details at the top level.
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "code": exc.code,
            "message": "Error sending email" if exc.code.startswith("SMTP") else exc.message,
            "error": exc.message,
            "details": exc.details,
        },
    )


@router.post("/send-email")
def send_email(payload: SendEmailRequest, db: Session = Depends(get_db)):
    try:
        relay = MailRelay(resolve_smtp_config(db))
        relay.send(
            MailRequest(
                to=normalize_recipients(payload.to),
                subject=payload.subject,
                body=payload.body,
                attachments=[a.to_attachment() for a in payload.attachments],
            )
        )
    except MailRelayFailure as exc:
        logger.warning("send_email_rejected code=%s", exc.code)
        return _failure_response(exc)
    return {"success": True}


@router.post("/test-smtp")
def test_smtp(payload: SmtpTestRequest):
    config = payload.to_config(timeout=settings.SMTP_TIMEOUT_SECONDS)
    try:
        MailRelay(config).test_connection()
    except MailRelayFailure as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "code": exc.code, "error": exc.message, "details": exc.details},
        )
    return {"success": True, "message": "Configuration SMTP valide"}
