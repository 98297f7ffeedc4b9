from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.flow_logging import flow_info
from app.models.enums import SlipType
from app.models.slip_number_config import SlipNumberConfig
from app.schemas.slip_number_config import SlipNumberConfigUpdate

logger = logging.getLogger(__name__)


class SlipNumberAllocationError(Exception):
    """Raised when no number could be issued; the caller must not persist the slip."""


def format_slip_number(prefix: str, value: int) -> str:
    return f"{prefix} {str(value).zfill(4)}"


def normalize_slip_type(value: SlipType | str) -> SlipType:
    if isinstance(value, SlipType):
        return value
    try:
        return SlipType((value or "").strip().lower())
    except ValueError as exc:
        raise ValueError("slip type must be 'transport' or 'freight'.") from exc


class SlipNumberService:
    """
    Issues "<prefix> <NNNN>" numbers per slip type.

    The counter is advanced with a conditional UPDATE (compare-and-swap on
    current_number) and re-read on conflict, so concurrent callers never get
    the same number. Each successful allocation is committed on its own: a
    slip insert failing afterwards leaves a gap, never a duplicate.
    """

    def __init__(
        self,
        db: Session,
        *,
        today: Callable[[], date] = date.today,
        max_retries: int | None = None,
    ):
        self.db = db
        self._today = today
        if max_retries is None:
            max_retries = max(1, settings.SLIP_NUMBER_MAX_RETRIES)
        elif max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.max_retries = max_retries

    def allocate(self, slip_type: SlipType | str) -> str:
        slip_type = normalize_slip_type(slip_type)
        try:
            self._ensure_config(slip_type)
            for attempt in range(1, self.max_retries + 1):
                prefix, current = self._read_counter(slip_type)
                next_number = current + 1
                if self._compare_and_swap(slip_type, current, next_number):
                    self.db.commit()
                    number = format_slip_number(prefix, next_number)
                    flow_info(
                        logger,
                        "slip_number_allocated type=%s number=%s attempt=%s",
                        slip_type.value,
                        number,
                        attempt,
                        category="slip_number",
                    )
                    return number
                # Counter moved since our read: end the transaction and retry on fresh data.
                self.db.rollback()
                logger.warning(
                    "slip_number_conflict type=%s expected=%s attempt=%s max_retries=%s",
                    slip_type.value,
                    current,
                    attempt,
                    self.max_retries,
                )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("slip_number_store_error type=%s error=%s", slip_type.value, exc)
            raise SlipNumberAllocationError(
                f"Error allocating {slip_type.value} slip number: {exc}"
            ) from exc

        raise SlipNumberAllocationError(
            f"Could not allocate a {slip_type.value} slip number after {self.max_retries} attempts."
        )

    def _ensure_config(self, slip_type: SlipType) -> None:
        existing = self.db.execute(
            select(SlipNumberConfig.id).where(SlipNumberConfig.type == slip_type)
        ).first()
        if existing is not None:
            return

        values = {
            "type": slip_type,
            "prefix": f"{self._today().year:04d}",
            "current_number": 0,
        }
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(SlipNumberConfig).values(**values)
            self.db.execute(stmt.on_conflict_do_nothing(index_elements=["type"]))
        elif dialect == "sqlite":
            stmt = sqlite.insert(SlipNumberConfig).values(**values)
            self.db.execute(stmt.on_conflict_do_nothing(index_elements=["type"]))
        else:
            try:
                with self.db.begin_nested():
                    self.db.add(SlipNumberConfig(**values))
            except IntegrityError:
                logger.info("slip_number_config_created_concurrently type=%s", slip_type.value)
        self.db.commit()
        flow_info(
            logger,
            "slip_number_config_initialized type=%s prefix=%s",
            slip_type.value,
            values["prefix"],
            category="slip_number",
        )

    def _read_counter(self, slip_type: SlipType) -> tuple[str, int]:
        row = self.db.execute(
            select(SlipNumberConfig.prefix, SlipNumberConfig.current_number).where(
                SlipNumberConfig.type == slip_type
            )
        ).one_or_none()
        if row is None:
            raise SlipNumberAllocationError(
                f"No slip number configuration found for {slip_type.value}."
            )
        return row.prefix, int(row.current_number)

    def _compare_and_swap(self, slip_type: SlipType, expected: int, new_value: int) -> bool:
        result = self.db.execute(
            update(SlipNumberConfig)
            .where(SlipNumberConfig.type == slip_type)
            .where(SlipNumberConfig.current_number == expected)
            .values(current_number=new_value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_configs(self) -> list[SlipNumberConfig]:
        return list(
            self.db.execute(select(SlipNumberConfig).order_by(SlipNumberConfig.type)).scalars().all()
        )

    def get_config(self, slip_type: SlipType | str) -> SlipNumberConfig | None:
        slip_type = normalize_slip_type(slip_type)
        return self.db.execute(
            select(SlipNumberConfig).where(SlipNumberConfig.type == slip_type)
        ).scalar_one_or_none()

    def update_config(
        self,
        slip_type: SlipType | str,
        data: SlipNumberConfigUpdate,
    ) -> SlipNumberConfig | None:
        """Manual reset of prefix and/or counter (e.g. at a year boundary)."""
        config = self.get_config(slip_type)
        if config is None:
            return None

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(config, key, value)
        self.db.commit()
        self.db.refresh(config)
        logger.info(
            "slip_number_config_updated type=%s prefix=%s current_number=%s",
            config.type.value,
            config.prefix,
            config.current_number,
        )
        return config
