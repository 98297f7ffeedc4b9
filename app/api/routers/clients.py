from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps.request_identity import get_request_email
from app.crud.clients import (
    DuplicateError,
    add_contact,
    create_client,
    delete_client,
    delete_contact,
    get_client,
    list_clients,
    update_client,
    update_contact,
)
from app.db.session import get_db
from app.schemas.client import (
    ClientContactIn,
    ClientContactOut,
    ClientCreate,
    ClientImportResult,
    ClientOut,
    ClientUpdate,
)
from app.services.client_workbook_service import build_client_template, import_clients_workbook

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
def create_client_api(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    try:
        return create_client(db, payload, user_email)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=list[ClientOut])
def list_clients_api(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    q: str | None = Query(None, description="Case-insensitive search on nom"),
    db: Session = Depends(get_db),
):
    return list_clients(db, skip=skip, limit=limit, q=q)


@router.get("/template.xlsx")
def download_client_template():
    return build_client_template()


@router.post("/import", response_model=ClientImportResult)
def import_clients_api(
    payload: bytes = Body(..., media_type="application/octet-stream"),
    filename: str = Query("clients.xlsx"),
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    return import_clients_workbook(db, payload=payload, filename=filename, user_email=user_email)


@router.get("/{client_id}", response_model=ClientOut)
def get_client_api(client_id: int, db: Session = Depends(get_db)):
    obj = get_client(db, client_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Client not found")
    return obj


@router.patch("/{client_id}", response_model=ClientOut)
def update_client_api(
    client_id: int,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    user_email: str = Depends(get_request_email),
):
    try:
        obj = update_client(db, client_id, payload, user_email)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not obj:
        raise HTTPException(status_code=404, detail="Client not found")
    return obj


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client_api(client_id: int, db: Session = Depends(get_db)):
    try:
        ok = delete_client(db, client_id)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not ok:
        raise HTTPException(status_code=404, detail="Client not found")
    return None


@router.post(
    "/{client_id}/contacts",
    response_model=ClientContactOut,
    status_code=status.HTTP_201_CREATED,
)
def add_contact_api(client_id: int, payload: ClientContactIn, db: Session = Depends(get_db)):
    try:
        obj = add_contact(db, client_id, payload)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not obj:
        raise HTTPException(status_code=404, detail="Client not found")
    return obj


@router.put("/{client_id}/contacts/{contact_id}", response_model=ClientContactOut)
def update_contact_api(
    client_id: int,
    contact_id: int,
    payload: ClientContactIn,
    db: Session = Depends(get_db),
):
    try:
        obj = update_contact(db, client_id, contact_id, payload)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not obj:
        raise HTTPException(status_code=404, detail="Contact not found")
    return obj


@router.delete("/{client_id}/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact_api(client_id: int, contact_id: int, db: Session = Depends(get_db)):
    if not delete_contact(db, client_id, contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return None
