from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClientContactIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)
    role: Optional[str] = Field(default=None, max_length=100)


class ClientContactOut(ClientContactIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class AccountingContactIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)


class AccountingContactOut(AccountingContactIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class ClientBase(BaseModel):
    nom: str = Field(min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)
    adresse: Optional[str] = Field(default=None, max_length=500)
    facturation: Optional[str] = None


class ClientCreate(ClientBase):
    contacts: list[ClientContactIn] = Field(default_factory=list)
    accounting_contact: Optional[AccountingContactIn] = None


class ClientUpdate(BaseModel):
    nom: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    telephone: Optional[str] = Field(default=None, max_length=50)
    adresse: Optional[str] = Field(default=None, max_length=500)
    facturation: Optional[str] = None

    # When provided, replaces the whole list / the accounting contact.
    contacts: Optional[list[ClientContactIn]] = None
    accounting_contact: Optional[AccountingContactIn] = None


class ClientOut(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contacts: list[ClientContactOut] = Field(default_factory=list)
    accounting_contact: Optional[AccountingContactOut] = None
    created_at: datetime
    updated_at: datetime
    created_by: str
    last_changed_by: str


class ClientImportIssue(BaseModel):
    sheet: str
    row: int
    error_code: str
    reason: str
    field: Optional[str] = None


class ClientImportResult(BaseModel):
    total_rows: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    issues: list[ClientImportIssue] = Field(default_factory=list)
