from datetime import date

from app.db.session import SessionLocal
from app.models.enums import SlipType
from app.models.slip_number_config import SlipNumberConfig


def _ensure_config(db, slip_type: SlipType, prefix: str):
    existing = (
        db.query(SlipNumberConfig)
        .filter(SlipNumberConfig.type == slip_type)
        .first()
    )
    if existing:
        return False
    db.add(SlipNumberConfig(type=slip_type, prefix=prefix, current_number=0))
    return True


def main():
    db = SessionLocal()
    try:
        prefix = f"{date.today().year:04d}"
        created = 0
        for slip_type in SlipType:
            if _ensure_config(db, slip_type, prefix):
                created += 1
        db.commit()
        print(f"Slip number configs created: {created}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
