from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.app_setting import AppSetting


def get_setting(db: Session, setting_type: str) -> AppSetting | None:
    stmt = select(AppSetting).where(AppSetting.type == setting_type)
    return db.execute(stmt).scalar_one_or_none()


def upsert_setting(db: Session, setting_type: str, config: dict[str, Any]) -> AppSetting:
    obj = get_setting(db, setting_type)
    if obj is None:
        obj = AppSetting(type=setting_type, config=dict(config))
        db.add(obj)
    else:
        # new dict so the JSON column is flagged dirty
        obj.config = dict(config)
    db.commit()
    db.refresh(obj)
    return obj
