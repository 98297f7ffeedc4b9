from __future__ import annotations

import base64
import binascii
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.flow_logging import flow_info
from app.models.app_setting import AppSetting

logger = logging.getLogger(__name__)

SMTP_SETTING_TYPE = "smtp"
IMPLICIT_TLS_PORT = 465
TEST_SUBJECT = "Test de connexion SMTP"
TEST_BODY = "Si vous recevez cet email, la configuration SMTP est correcte."

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class MailRelayFailure(Exception):
    code: str
    message: str
    details: str = ""
    status_code: int = 500

    def __str__(self) -> str:
        return f"{self.message}: {self.details}" if self.details else self.message

    def to_detail(self) -> dict:
        detail = {"code": self.code, "error": self.message}
        if self.details:
            detail["details"] = self.details
        return detail


@dataclass
class SmtpConfig:
    host: str
    port: int
    user: str = ""
    password: str = ""
    sender: str = ""
    timeout: float = 20.0

    @property
    def from_address(self) -> str:
        return self.sender or self.user

    @property
    def implicit_tls(self) -> bool:
        return self.port == IMPLICIT_TLS_PORT


@dataclass
class MailAttachment:
    filename: str
    content: str  # base64
    content_type: str = "application/octet-stream"


@dataclass
class MailRequest:
    to: list[str]
    subject: str
    body: str
    attachments: list[MailAttachment] = field(default_factory=list)


def normalize_recipients(to: list[str] | str) -> list[str]:
    """Split "a@x.fr, b@y.fr", trim, drop duplicates (keeping order) and validate."""
    raw = to.split(",") if isinstance(to, str) else list(to or [])
    recipients: list[str] = []
    for value in raw:
        address = (value or "").strip()
        if not address or address in recipients:
            continue
        if not _EMAIL_PATTERN.match(address):
            raise MailRelayFailure(
                code="INVALID_RECIPIENT",
                message="Adresse email invalide",
                details=address,
                status_code=400,
            )
        recipients.append(address)
    if not recipients:
        raise MailRelayFailure(
            code="NO_RECIPIENT",
            message="Veuillez ajouter au moins un destinataire",
            status_code=400,
        )
    return recipients


def _decode_attachment(attachment: MailAttachment) -> tuple[bytes, str, str]:
    try:
        payload = base64.b64decode(attachment.content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MailRelayFailure(
            code="INVALID_ATTACHMENT",
            message="Pièce jointe invalide",
            details=f"{attachment.filename}: {exc}",
            status_code=400,
        ) from exc
    content_type = (attachment.content_type or "").strip().lower()
    maintype, _, subtype = content_type.partition("/")
    if not maintype or not subtype:
        maintype, subtype = "application", "octet-stream"
    return payload, maintype, subtype


def _smtp_error_text(exc: BaseException) -> str:
    if isinstance(exc, smtplib.SMTPResponseException):
        error = exc.smtp_error
        if isinstance(error, bytes):
            error = error.decode("utf-8", errors="replace")
        return f"{exc.smtp_code} {error}".strip()
    return str(exc) or exc.__class__.__name__


def classify_smtp_error(exc: BaseException) -> MailRelayFailure:
    details = _smtp_error_text(exc)
    lowered = details.lower()

    if isinstance(exc, smtplib.SMTPAuthenticationError) or "authentication" in lowered:
        return MailRelayFailure(
            code="SMTP_AUTH_FAILED",
            message="Authentification échouée - vérifiez les identifiants",
            details=details,
            status_code=401,
        )
    if isinstance(exc, ConnectionRefusedError) or "connection refused" in lowered:
        return MailRelayFailure(
            code="SMTP_CONNECTION_REFUSED",
            message="Connexion refusée - vérifiez l'hôte et le port",
            details=details,
            status_code=400,
        )
    if isinstance(exc, ssl.SSLError) or "certificate" in lowered:
        return MailRelayFailure(
            code="SMTP_TLS_ERROR",
            message="Erreur de certificat SSL/TLS - vérifiez les paramètres de sécurité",
            details=details,
            status_code=400,
        )
    if isinstance(exc, TimeoutError) or "timed out" in lowered or "timeout" in lowered:
        return MailRelayFailure(
            code="SMTP_TIMEOUT",
            message="Délai d'attente dépassé - le serveur SMTP ne répond pas",
            details=details,
            status_code=408,
        )
    return MailRelayFailure(
        code="SMTP_ERROR",
        message="Erreur de connexion SMTP",
        details=details,
        status_code=500,
    )


def resolve_smtp_config(db: Session | None = None) -> SmtpConfig:
    """
    SMTP settings saved from the settings screen win over environment values.
    """
    stored: dict = {}
    if db is not None:
        row = db.execute(
            select(AppSetting).where(AppSetting.type == SMTP_SETTING_TYPE)
        ).scalar_one_or_none()
        if row is not None and isinstance(row.config, dict):
            stored = row.config

    if stored.get("smtp_host"):
        try:
            port = int(stored.get("smtp_port") or settings.SMTP_PORT)
        except (TypeError, ValueError):
            port = settings.SMTP_PORT
        config = SmtpConfig(
            host=str(stored["smtp_host"]).strip(),
            port=port,
            user=str(stored.get("smtp_user") or "").strip(),
            password=str(stored.get("smtp_pass") or ""),
            sender=str(stored.get("smtp_from") or "").strip(),
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )
    else:
        config = SmtpConfig(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    if not config.host:
        raise MailRelayFailure(
            code="SMTP_NOT_CONFIGURED",
            message="SMTP transporter not initialized",
            details="No SMTP settings found",
            status_code=500,
        )
    return config


class MailRelay:
    """
    Hands messages to an SMTP server. One attempt per call: failures are
    reported to the caller, never retried here.
    """

    def __init__(
        self,
        config: SmtpConfig,
        *,
        smtp_class: type[smtplib.SMTP] = smtplib.SMTP,
        smtp_ssl_class: type[smtplib.SMTP_SSL] = smtplib.SMTP_SSL,
    ):
        self.config = config
        self._smtp_class = smtp_class
        self._smtp_ssl_class = smtp_ssl_class

    def _open(self) -> smtplib.SMTP:
        if self.config.implicit_tls:
            return self._smtp_ssl_class(
                self.config.host,
                self.config.port,
                timeout=self.config.timeout,
                context=ssl.create_default_context(),
            )
        return self._smtp_class(self.config.host, self.config.port, timeout=self.config.timeout)

    def _secure_and_login(self, client: smtplib.SMTP) -> None:
        if not self.config.implicit_tls:
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls(context=ssl.create_default_context())
                client.ehlo()
        if self.config.user:
            client.login(self.config.user, self.config.password)

    def build_message(self, request: MailRequest) -> EmailMessage:
        recipients = normalize_recipients(request.to)
        decoded = [(att.filename, *_decode_attachment(att)) for att in request.attachments]

        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = ", ".join(recipients)
        message["Subject"] = request.subject
        message.set_content(request.body)
        message.add_alternative(request.body.replace("\n", "<br>"), subtype="html")
        for filename, payload, maintype, subtype in decoded:
            message.add_attachment(payload, maintype=maintype, subtype=subtype, filename=filename)
        return message

    def send(self, request: MailRequest) -> None:
        # Validation happens before connecting: a bad attachment sends nothing.
        message = self.build_message(request)
        try:
            with self._open() as client:
                self._secure_and_login(client)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            failure = classify_smtp_error(exc)
            failure.status_code = 500
            logger.warning(
                "mail_send_failed host=%s code=%s details=%s",
                self.config.host,
                failure.code,
                failure.details,
            )
            raise failure from exc

        flow_info(
            logger,
            "mail_sent host=%s to=%s attachments=%s",
            self.config.host,
            message["To"],
            len(request.attachments),
            category="mail",
        )

    def test_connection(self) -> None:
        """Log in and send a test message to the configured user."""
        if not (self.config.host and self.config.port and self.config.user and self.config.password):
            raise MailRelayFailure(
                code="SMTP_INCOMPLETE",
                message="Configuration SMTP incomplète. Veuillez remplir tous les champs.",
                status_code=400,
            )

        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = self.config.user
        message["Subject"] = TEST_SUBJECT
        message.set_content(TEST_BODY)

        flow_info(
            logger,
            "smtp_test_started host=%s port=%s user=%s",
            self.config.host,
            self.config.port,
            self.config.user,
            category="mail",
        )
        try:
            with self._open() as client:
                self._secure_and_login(client)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            failure = classify_smtp_error(exc)
            logger.warning(
                "smtp_test_failed host=%s code=%s details=%s",
                self.config.host,
                failure.code,
                failure.details,
            )
            raise failure from exc
