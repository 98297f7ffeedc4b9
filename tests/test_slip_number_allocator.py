from __future__ import annotations

import threading
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.models.enums import SlipType
from app.models.slip_number_config import SlipNumberConfig
from app.schemas.slip_number_config import SlipNumberConfigUpdate
from app.services.slip_number_service import (
    SlipNumberAllocationError,
    SlipNumberService,
    format_slip_number,
    normalize_slip_type,
)


def _service(db, year: int = 2025, **kwargs) -> SlipNumberService:
    return SlipNumberService(db, today=lambda: date(year, 3, 14), **kwargs)


def _config(db, slip_type: SlipType) -> SlipNumberConfig:
    db.expire_all()
    return db.query(SlipNumberConfig).filter_by(type=slip_type).one()


def test_format_pads_to_four_digits():
    assert format_slip_number("2025", 1) == "2025 0001"
    assert format_slip_number("2025", 42) == "2025 0042"
    assert format_slip_number("2025", 12345) == "2025 12345"


def test_normalize_slip_type_rejects_unknown():
    assert normalize_slip_type(" Freight ") == SlipType.FREIGHT
    with pytest.raises(ValueError):
        normalize_slip_type("invoice")


def test_first_allocations_are_sequential(db_session):
    service = _service(db_session)
    assert service.allocate(SlipType.TRANSPORT) == "2025 0001"
    assert service.allocate(SlipType.TRANSPORT) == "2025 0002"

    config = _config(db_session, SlipType.TRANSPORT)
    assert config.prefix == "2025"
    assert config.current_number == 2


def test_sequences_are_independent(db_session):
    service = _service(db_session)
    assert service.allocate("transport") == "2025 0001"
    assert service.allocate("freight") == "2025 0001"
    assert service.allocate("transport") == "2025 0002"
    assert _config(db_session, SlipType.FREIGHT).current_number == 1


def test_prefix_is_kept_after_year_change(db_session):
    assert _service(db_session, year=2025).allocate(SlipType.FREIGHT) == "2025 0001"
    assert _service(db_session, year=2026).allocate(SlipType.FREIGHT) == "2025 0002"


def test_existing_counter_continues(db_session):
    db_session.add(SlipNumberConfig(type=SlipType.TRANSPORT, prefix="2024", current_number=41))
    db_session.commit()
    assert _service(db_session).allocate(SlipType.TRANSPORT) == "2024 0042"


def test_allocation_retries_when_counter_moves(monkeypatch, db_session):
    db_session.add(SlipNumberConfig(type=SlipType.TRANSPORT, prefix="2025", current_number=5))
    db_session.commit()

    first = _service(db_session)
    second = _service(db_session)
    original_read = first._read_counter
    reads = []

    def racing_read(slip_type):
        result = original_read(slip_type)
        reads.append(result)
        if len(reads) == 1:
            # Another writer takes 0006 between our read and our conditional update.
            assert second.allocate(slip_type) == "2025 0006"
        return result

    monkeypatch.setattr(first, "_read_counter", racing_read)

    assert first.allocate(SlipType.TRANSPORT) == "2025 0007"
    assert reads == [("2025", 5), ("2025", 6)]
    assert _config(db_session, SlipType.TRANSPORT).current_number == 7


def test_allocation_gives_up_after_max_retries(monkeypatch, db_session):
    service = _service(db_session, max_retries=3)
    attempts = []

    def always_conflict(slip_type, expected, new_value):
        attempts.append(expected)
        return False

    monkeypatch.setattr(service, "_compare_and_swap", always_conflict)
    with pytest.raises(SlipNumberAllocationError):
        service.allocate(SlipType.FREIGHT)
    assert len(attempts) == 3
    assert _config(db_session, SlipType.FREIGHT).current_number == 0


def test_store_error_is_reported_as_allocation_error(monkeypatch, db_session):
    service = _service(db_session)

    def broken(*_args, **_kwargs):
        raise OperationalError("UPDATE slip_number_configs", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "_compare_and_swap", broken)
    with pytest.raises(SlipNumberAllocationError) as exc_info:
        service.allocate(SlipType.TRANSPORT)
    assert "database is locked" in str(exc_info.value)


def test_update_config_resets_counter(db_session):
    service = _service(db_session)
    service.allocate(SlipType.TRANSPORT)
    service.allocate(SlipType.TRANSPORT)

    updated = service.update_config(
        SlipType.TRANSPORT, SlipNumberConfigUpdate(prefix="2026", current_number=0)
    )
    assert updated.prefix == "2026"
    assert service.allocate(SlipType.TRANSPORT) == "2026 0001"


def test_update_config_unknown_sequence_returns_none(db_session):
    assert _service(db_session).update_config(
        SlipType.FREIGHT, SlipNumberConfigUpdate(current_number=3)
    ) is None


def test_slip_number_routes(client, db_session):
    resp = client.post("/api/v1/slip-numbers/transport/allocate")
    assert resp.status_code == 201, resp.text
    assert resp.json()["number"].endswith(" 0001")

    resp = client.get("/api/v1/slip-numbers")
    assert [row["type"] for row in resp.json()] == ["transport"]

    resp = client.patch("/api/v1/slip-numbers/transport", json={"current_number": 9})
    assert resp.status_code == 200, resp.text
    assert resp.json()["current_number"] == 9

    assert client.get("/api/v1/slip-numbers/freight").status_code == 404
    assert client.get("/api/v1/slip-numbers/invoice").status_code == 400


def test_explicit_max_retries_must_be_positive(db_session):
    assert _service(db_session, max_retries=1).max_retries == 1
    with pytest.raises(ValueError):
        _service(db_session, max_retries=0)


@pytest.fixture
def file_sessions(tmp_path):
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'slip_numbers.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(file_engine)
    SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    yield SessionFactory
    file_engine.dispose()


class _MissingRow:
    def first(self):
        return None


def test_first_use_tolerates_row_created_by_another_session(monkeypatch, file_sessions):
    db = file_sessions()
    other = file_sessions()
    service = _service(db)
    original_execute = db.execute
    calls = []

    def execute_with_late_row(statement, *args, **kwargs):
        calls.append(statement)
        if len(calls) == 1:
            # The existence check misses, then another process creates the row.
            other.add(SlipNumberConfig(type=SlipType.FREIGHT, prefix="2025", current_number=0))
            other.commit()
            return _MissingRow()
        return original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute_with_late_row)
    try:
        assert service.allocate(SlipType.FREIGHT) == "2025 0001"
    finally:
        db.close()

    other.expire_all()
    rows = other.query(SlipNumberConfig).filter_by(type=SlipType.FREIGHT).all()
    assert [(row.prefix, row.current_number) for row in rows] == [("2025", 1)]
    other.close()


def test_parallel_allocations_get_distinct_numbers(file_sessions):
    with file_sessions() as setup:
        setup.add(SlipNumberConfig(type=SlipType.TRANSPORT, prefix="2025", current_number=5))
        setup.commit()

    barrier = threading.Barrier(2, timeout=10)
    results: list[str] = []
    errors: list[Exception] = []

    def worker():
        db = file_sessions()
        service = _service(db)
        original_read = service._read_counter
        first_read = []

        def read_then_wait(slip_type):
            result = original_read(slip_type)
            if not first_read:
                first_read.append(result)
                # Both workers hold the same counter value before either writes.
                barrier.wait()
            return result

        service._read_counter = read_then_wait
        try:
            results.append(service.allocate(SlipType.TRANSPORT))
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)
        finally:
            db.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    assert sorted(results) == ["2025 0006", "2025 0007"]
    with file_sessions() as check:
        config = check.query(SlipNumberConfig).filter_by(type=SlipType.TRANSPORT).one()
        assert config.current_number == 7
