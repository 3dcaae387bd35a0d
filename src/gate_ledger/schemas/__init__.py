"""
Data schemas for the gate ledger.

- AccessRecord: canonical gate-access event (persisted layout)
- Operator: who registers records
- report: CSV report and photo artifacts built at export time
"""

from .access_record import (
    AccessRecord,
    Operator,
    OperatorRole,
    RecordSchemaError,
    RecordType,
    new_access_record,
)
from .report import (
    Artifact,
    PhotoDecodeError,
    build_photo_artifact,
    build_report_artifact,
)

__all__ = [
    "AccessRecord",
    "Artifact",
    "Operator",
    "OperatorRole",
    "PhotoDecodeError",
    "RecordSchemaError",
    "RecordType",
    "build_photo_artifact",
    "build_report_artifact",
    "new_access_record",
]
