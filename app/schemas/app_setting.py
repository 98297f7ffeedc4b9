from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AppSettingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    config: dict[str, Any]
    updated_at: datetime


class SmtpSettings(BaseModel):
    smtp_host: str = ""
    smtp_port: Optional[Union[int, str]] = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = ""


class EmailSettings(BaseModel):
    # Placeholders: {signature}, {client}, {number}
    template: Optional[str] = None
    signature: Optional[str] = Field(default=None, max_length=500)
