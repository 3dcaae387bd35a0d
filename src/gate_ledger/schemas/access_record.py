"""
Canonical access record (SSOT).

This is THE single source of truth for a gate-access event.
The persisted layout uses the camelCase field names below; changing them
breaks rehydration of ledgers already on disk.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# Persisted field names, in declaration order
RECORD_FIELDS = (
    "id",
    "fleetNumber",
    "collaboratorName",
    "collaboratorCode",
    "type",
    "timestamp",
    "destination",
    "observation",
    "materialExit",
    "registeredBy",
)

TEXT_FIELDS = (
    "id",
    "fleetNumber",
    "collaboratorName",
    "collaboratorCode",
    "destination",
    "observation",
    "registeredBy",
)


class RecordSchemaError(ValueError):
    """Raised when a stored record does not match the expected schema."""

    pass


class RecordType(str, Enum):
    """Direction of a gate passage."""

    ENTRY = "ENTRADA"
    EXIT = "SAIDA"


class OperatorRole(str, Enum):
    """Role of the operator registering records."""

    OPERATOR = "OPERADOR"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Operator:
    """Logged-in operator. Only id and name are consumed by the ledger."""

    id: str
    name: str
    role: OperatorRole = OperatorRole.OPERATOR


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, matching what is persisted."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class AccessRecord:
    """
    One entry or exit at the gate.

    Immutable once created. Free-text fields may be empty but are never None.
    photo is a data URL (or bare base64) captured at registration time.
    """

    id: str
    fleet_number: str
    collaborator_name: str
    collaborator_code: str
    type: RecordType
    timestamp: datetime
    destination: str
    observation: str
    material_exit: bool
    registered_by: str
    photo: Optional[str] = None

    @property
    def has_photo(self) -> bool:
        return bool(self.photo)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        data: dict[str, Any] = {
            "id": self.id,
            "fleetNumber": self.fleet_number,
            "collaboratorName": self.collaborator_name,
            "collaboratorCode": self.collaborator_code,
            "type": self.type.value,
            "timestamp": format_timestamp(self.timestamp),
            "destination": self.destination,
            "observation": self.observation,
            "materialExit": self.material_exit,
            "registeredBy": self.registered_by,
        }
        if self.photo:
            data["photo"] = self.photo
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "AccessRecord":
        """Deserialize from dictionary.

        Raises:
            RecordSchemaError: if a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise RecordSchemaError(f"Record must be an object, got {type(data).__name__}")

        missing = [name for name in RECORD_FIELDS if name not in data]
        if missing:
            raise RecordSchemaError(f"Record is missing fields: {', '.join(missing)}")

        for name in TEXT_FIELDS:
            if not isinstance(data[name], str):
                raise RecordSchemaError(f"Field {name} must be a string")
        if not isinstance(data["materialExit"], bool):
            raise RecordSchemaError("Field materialExit must be a boolean")

        photo = data.get("photo")
        if photo is not None and not isinstance(photo, str):
            raise RecordSchemaError("Field photo must be a string")

        try:
            record_type = RecordType(data["type"])
        except ValueError as e:
            raise RecordSchemaError(f"Unknown record type: {data['type']!r}") from e

        if not isinstance(data["timestamp"], str):
            raise RecordSchemaError("Field timestamp must be a string")
        try:
            timestamp = parse_timestamp(data["timestamp"])
        except ValueError as e:
            raise RecordSchemaError(f"Invalid timestamp: {data['timestamp']!r}") from e

        return cls(
            id=data["id"],
            fleet_number=data["fleetNumber"],
            collaborator_name=data["collaboratorName"],
            collaborator_code=data["collaboratorCode"],
            type=record_type,
            timestamp=timestamp,
            destination=data["destination"],
            observation=data["observation"],
            material_exit=data["materialExit"],
            registered_by=data["registeredBy"],
            photo=photo or None,
        )


def new_access_record(
    record_type: RecordType,
    registered_by: str,
    fleet_number: str = "",
    collaborator_name: str = "",
    collaborator_code: str = "",
    destination: str = "",
    observation: str = "",
    material_exit: bool = False,
    photo: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> AccessRecord:
    """Create a record with a fresh id, stamped with the current UTC time.

    Timestamps are kept at millisecond precision so a reloaded record equals
    the one created here.
    """
    return AccessRecord(
        id=str(uuid.uuid4()),
        fleet_number=fleet_number,
        collaborator_name=collaborator_name,
        collaborator_code=collaborator_code,
        type=record_type,
        timestamp=truncate_to_millis(timestamp or utc_now()),
        destination=destination,
        observation=observation,
        material_exit=material_exit,
        registered_by=registered_by,
        photo=photo or None,
    )
