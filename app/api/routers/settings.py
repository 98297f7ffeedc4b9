from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.crud.app_settings import get_setting, upsert_setting
from app.db.session import get_db
from app.schemas.app_setting import EmailSettings, SmtpSettings
from app.services.mail_relay import SMTP_SETTING_TYPE
from app.services.slip_email_service import EMAIL_SETTING_TYPE

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/smtp", response_model=SmtpSettings)
def get_smtp_settings(db: Session = Depends(get_db)):
    row = get_setting(db, SMTP_SETTING_TYPE)
    if not row:
        raise HTTPException(status_code=404, detail="SMTP settings not found")
    return SmtpSettings.model_validate(row.config)


@router.put("/smtp", response_model=SmtpSettings)
def save_smtp_settings(payload: SmtpSettings, db: Session = Depends(get_db)):
    row = upsert_setting(db, SMTP_SETTING_TYPE, payload.model_dump())
    return SmtpSettings.model_validate(row.config)


@router.get("/email", response_model=EmailSettings)
def get_email_settings(db: Session = Depends(get_db)):
    row = get_setting(db, EMAIL_SETTING_TYPE)
    if not row:
        return EmailSettings()
    return EmailSettings.model_validate(row.config)


@router.put("/email", response_model=EmailSettings)
def save_email_settings(payload: EmailSettings, db: Session = Depends(get_db)):
    row = upsert_setting(db, EMAIL_SETTING_TYPE, payload.model_dump())
    return EmailSettings.model_validate(row.config)
