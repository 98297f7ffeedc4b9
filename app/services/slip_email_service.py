from __future__ import annotations

import base64
import logging
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.app_setting import AppSetting
from app.models.enums import SlipType
from app.models.slip import FreightSlip, TransportSlip
from app.schemas.mail import SlipEmailRequest
from app.services.mail_relay import (
    MailAttachment,
    MailRelay,
    MailRequest,
    SmtpConfig,
    normalize_recipients,
    resolve_smtp_config,
)
from app.services.mail_relay_client import post_send_email
from app.services.slip_document_service import SlipDocumentService
from app.services.slip_number_service import normalize_slip_type
from app.services.slip_service import SlipService

logger = logging.getLogger(__name__)

EMAIL_SETTING_TYPE = "email"


def default_subject(slip: TransportSlip | FreightSlip, slip_type: SlipType) -> str:
    client_name = slip.client.nom if slip.client else "Client"
    if slip_type == SlipType.TRANSPORT:
        return f"Bordereau de transport - {client_name} - {slip.number}"
    return f"Confirmation d'affrètement - {client_name} - {slip.number}"


def default_body(
    slip: TransportSlip | FreightSlip,
    slip_type: SlipType,
    email_settings: dict | None = None,
) -> str:
    """
    Saved template placeholders: {signature}, {client}, {number}.
    """
    email_settings = email_settings or {}
    template = email_settings.get("template")
    signature = email_settings.get("signature") or settings.COMPANY_SIGNATURE
    client_name = slip.client.nom if slip.client else "Client"
    if template:
        return (
            str(template)
            .replace("{signature}", str(signature))
            .replace("{client}", client_name)
            .replace("{number}", slip.number)
        )

    label = "de transport" if slip_type == SlipType.TRANSPORT else "d'affrètement"
    return (
        "Bonjour,\n\n"
        f"Veuillez trouver ci-joint le bordereau {label}.\n\n"
        f"Cordialement,\n{signature}"
    )


class SlipEmailService:
    def __init__(
        self,
        db: Session,
        *,
        documents: SlipDocumentService | None = None,
        relay_factory: Callable[[SmtpConfig], MailRelay] = MailRelay,
    ):
        self.db = db
        self.documents = documents or SlipDocumentService()
        self.relay_factory = relay_factory

    def _email_settings(self) -> dict:
        row = self.db.execute(
            select(AppSetting).where(AppSetting.type == EMAIL_SETTING_TYPE)
        ).scalar_one_or_none()
        if row is None or not isinstance(row.config, dict):
            return {}
        return row.config

    def build_request(self, slip_type: SlipType | str, slip_id: int, data: SlipEmailRequest) -> MailRequest:
        slip_type = normalize_slip_type(slip_type)
        slip = SlipService(self.db).get_slip(slip_type, slip_id)
        recipients = normalize_recipients(data.to)

        pdf = self.documents.generate_pdf(slip, slip_type)
        attachments = [
            MailAttachment(
                filename=self.documents.pdf_filename(slip),
                content=base64.b64encode(pdf).decode("ascii"),
                content_type="application/pdf",
            )
        ]
        attachments.extend(extra.to_attachment() for extra in data.attachments)

        return MailRequest(
            to=recipients,
            subject=data.subject or default_subject(slip, slip_type),
            body=data.body or default_body(slip, slip_type, self._email_settings()),
            attachments=attachments,
        )

    def email_slip(self, slip_type: SlipType | str, slip_id: int, data: SlipEmailRequest) -> MailRequest:
        request = self.build_request(slip_type, slip_id, data)
        if settings.MAIL_RELAY_URL:
            post_send_email(request)
        else:
            self.relay_factory(resolve_smtp_config(self.db)).send(request)
        logger.info(
            "slip_emailed type=%s slip_id=%s recipients=%s",
            normalize_slip_type(slip_type).value,
            slip_id,
            len(request.to),
        )
        return request
