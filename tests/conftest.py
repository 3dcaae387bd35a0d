"""Test fixtures and utilities."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gate_ledger.delivery import DeliveryError, FileDelivery
from gate_ledger.schemas.access_record import AccessRecord, RecordType
from gate_ledger.schemas.report import encode_photo

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000000049454e44ae426082"
)

BASE_TIME = datetime(2024, 11, 18, 10, 30, 0, tzinfo=timezone.utc)


def make_record(
    index: int = 0,
    photo: bool = False,
    record_type: RecordType = RecordType.ENTRY,
    **overrides,
) -> AccessRecord:
    """Build a deterministic record; index shifts the timestamp by minutes."""
    fields = dict(
        id=f"rec-{index}",
        fleet_number=f"F{100 + index}",
        collaborator_name=f"Maria Silva {index}",
        collaborator_code=f"C{index:03d}",
        type=record_type,
        timestamp=BASE_TIME + timedelta(minutes=index),
        destination="Pátio 2",
        observation="",
        material_exit=False,
        registered_by="op-1",
        photo=encode_photo(PNG_BYTES) if photo else None,
    )
    fields.update(overrides)
    return AccessRecord(**fields)


class RecordingDelivery(FileDelivery):
    """Delivery double that records every call and can fail on demand."""

    def __init__(self, fail_on: str | None = None, fail_at_call: int | None = None):
        self.calls: list[tuple[str, bytes, str]] = []
        self.fail_on = fail_on
        self.fail_at_call = fail_at_call

    @property
    def file_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def deliver(self, content: bytes, file_name: str, media_type: str) -> None:
        call_number = len(self.calls) + 1
        if self.fail_at_call == call_number or (self.fail_on and self.fail_on in file_name):
            raise DeliveryError(file_name, "simulated failure")
        self.calls.append((file_name, content, media_type))


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_ledger.db"


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def sample_record_dict() -> dict:
    """Sample record as persisted in storage."""
    return {
        "id": "0b8e2c4e-6d1f-4b59-9a57-4f0e1c2d3a4b",
        "fleetNumber": "1234",
        "collaboratorName": "João Souza",
        "collaboratorCode": "7788",
        "type": "ENTRADA",
        "timestamp": "2024-11-18T10:30:00.000Z",
        "destination": "Oficina",
        "observation": "Carga, lacrada",
        "materialExit": True,
        "registeredBy": "op-1",
    }
