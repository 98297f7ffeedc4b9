from __future__ import annotations

from typing import Any

import requests

from app.core.config import settings
from app.services.mail_relay import MailRelayFailure, MailRequest


def _send_email_payload(request: MailRequest) -> dict[str, Any]:
    return {
        "to": ", ".join(request.to),
        "subject": request.subject,
        "body": request.body,
        "attachments": [
            {
                "filename": attachment.filename,
                "content": attachment.content,
                "contentType": attachment.content_type,
            }
            for attachment in request.attachments
        ],
    }


def post_send_email(
    request: MailRequest,
    *,
    relay_url: str | None = None,
    timeout_seconds: float | None = None,
) -> dict[str, Any]:
    """
    Forward a message to a remote mail relay ("POST /api/send-email").
    The relay answers {"success": true} or an error object with error/message/details.
    """
    base_url = (relay_url or settings.MAIL_RELAY_URL).rstrip("/")
    if not base_url:
        raise MailRelayFailure(
            code="MAIL_RELAY_NOT_CONFIGURED",
            message="Mail relay URL is not configured",
            status_code=500,
        )
    url = f"{base_url}/api/send-email"

    try:
        response = requests.post(
            url,
            json=_send_email_payload(request),
            timeout=timeout_seconds or settings.MAIL_RELAY_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise MailRelayFailure(
            code="MAIL_RELAY_UNREACHABLE",
            message="Mail relay unreachable",
            details=str(exc),
            status_code=502,
        ) from exc

    try:
        body = response.json()
    except ValueError as exc:
        raise MailRelayFailure(
            code="MAIL_RELAY_INVALID_RESPONSE",
            message=f"Invalid response from server: {response.text}",
            status_code=502,
        ) from exc
    if not isinstance(body, dict):
        raise MailRelayFailure(
            code="MAIL_RELAY_INVALID_RESPONSE",
            message=f"Invalid response from server: {response.text}",
            status_code=502,
        )

    if not response.ok or body.get("success") is not True:
        raise MailRelayFailure(
            code=str(body.get("code") or "MAIL_RELAY_ERROR"),
            message=str(body.get("error") or body.get("message") or "Error sending email"),
            details=str(body.get("details") or ""),
            status_code=502,
        )
    return body
