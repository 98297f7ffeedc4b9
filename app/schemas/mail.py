from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.services.mail_relay import MailAttachment, SmtpConfig


class MailAttachmentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(min_length=1, max_length=255)
    content: str  # base64
    content_type: str = Field(default="application/octet-stream", alias="contentType")

    def to_attachment(self) -> MailAttachment:
        return MailAttachment(
            filename=self.filename,
            content=self.content,
            content_type=self.content_type,
        )


class SendEmailRequest(BaseModel):
    # Either a list or a comma-separated string ("a@x.fr, b@y.fr").
    to: Union[list[str], str]
    subject: str = ""
    body: str = ""
    attachments: list[MailAttachmentIn] = Field(default_factory=list)


class SmtpTestRequest(BaseModel):
    smtp_host: str = ""
    smtp_port: Optional[Union[int, str]] = None
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = ""

    def to_config(self, timeout: float) -> SmtpConfig:
        try:
            port = int(self.smtp_port or 0)
        except (TypeError, ValueError):
            port = 0
        return SmtpConfig(
            host=self.smtp_host.strip(),
            port=port,
            user=self.smtp_user.strip(),
            password=self.smtp_pass,
            sender=self.smtp_from.strip(),
            timeout=timeout,
        )


class SlipEmailRequest(BaseModel):
    to: Union[list[str], str]
    subject: Optional[str] = None
    body: Optional[str] = None
    attachments: list[MailAttachmentIn] = Field(default_factory=list)


class MailSendResult(BaseModel):
    success: bool = True
    recipients: list[str] = Field(default_factory=list)
    subject: Optional[str] = None
    attachments: list[str] = Field(default_factory=list)
