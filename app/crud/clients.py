from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.client import Client, ClientAccountingContact, ClientContact
from app.schemas.client import (
    AccountingContactIn,
    ClientContactIn,
    ClientCreate,
    ClientUpdate,
)


class DuplicateError(Exception):
    """Raised when a unique constraint is violated (e.g., one accounting contact per client)."""


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError(message) from e


def _set_accounting_contact(obj: Client, data: AccountingContactIn) -> None:
    if obj.accounting_contact is None:
        obj.accounting_contact = ClientAccountingContact(**data.model_dump())
        return
    for k, v in data.model_dump().items():
        setattr(obj.accounting_contact, k, v)


def create_client(db: Session, data: ClientCreate, user_email: str = "system@local") -> Client:
    obj = Client(
        **data.model_dump(exclude={"contacts", "accounting_contact"}),
        created_by=user_email,
        last_changed_by=user_email,
    )
    obj.contacts = [ClientContact(**c.model_dump()) for c in data.contacts]
    if data.accounting_contact is not None:
        _set_accounting_contact(obj, data.accounting_contact)

    db.add(obj)
    _commit(db, "Client already exists (unique constraint hit).")
    db.refresh(obj)
    return obj


def get_client(db: Session, client_id: int) -> Client | None:
    return db.get(Client, client_id)


def get_client_by_nom(db: Session, nom: str) -> Client | None:
    stmt = (
        select(Client)
        .where(func.lower(Client.nom) == nom.strip().lower())
        .order_by(Client.id)
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def list_clients(
    db: Session,
    skip: int = 0,
    limit: int = 50,
    q: str | None = None,
) -> list[Client]:
    stmt = (
        select(Client)
        .options(selectinload(Client.contacts), selectinload(Client.accounting_contact))
        .order_by(Client.nom.asc(), Client.id.asc())
        .offset(skip)
        .limit(limit)
    )
    if q:
        stmt = stmt.where(Client.nom.ilike(f"%{q.strip()}%"))
    return list(db.execute(stmt).scalars().all())


def update_client(
    db: Session,
    client_id: int,
    data: ClientUpdate,
    user_email: str = "system@local",
) -> Client | None:
    obj = db.get(Client, client_id)
    if not obj:
        return None

    patch = data.model_dump(exclude_unset=True, exclude={"contacts", "accounting_contact"})
    for k, v in patch.items():
        setattr(obj, k, v)

    if data.contacts is not None:
        obj.contacts = [ClientContact(**c.model_dump()) for c in data.contacts]
    if data.accounting_contact is not None:
        _set_accounting_contact(obj, data.accounting_contact)
    obj.last_changed_by = user_email

    _commit(db, "Update violates unique constraint.")
    db.refresh(obj)
    return obj


def delete_client(db: Session, client_id: int) -> bool:
    obj = db.get(Client, client_id)
    if not obj:
        return False
    db.delete(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateError("Client is still referenced by slips.") from e
    return True


def add_contact(db: Session, client_id: int, data: ClientContactIn) -> ClientContact | None:
    if db.get(Client, client_id) is None:
        return None
    obj = ClientContact(client_id=client_id, **data.model_dump())
    db.add(obj)
    _commit(db, "Contact violates unique constraint.")
    db.refresh(obj)
    return obj


def update_contact(
    db: Session,
    client_id: int,
    contact_id: int,
    data: ClientContactIn,
) -> ClientContact | None:
    obj = db.get(ClientContact, contact_id)
    if not obj or obj.client_id != client_id:
        return None
    for k, v in data.model_dump().items():
        setattr(obj, k, v)
    _commit(db, "Contact violates unique constraint.")
    db.refresh(obj)
    return obj


def delete_contact(db: Session, client_id: int, contact_id: int) -> bool:
    obj = db.get(ClientContact, contact_id)
    if not obj or obj.client_id != client_id:
        return False
    db.delete(obj)
    db.commit()
    return True
