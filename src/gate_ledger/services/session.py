"""Session controller.

Owns the operator session and the confirmation gates around ledger mutation
and export. The ledger and pipeline are passed in explicitly; there is no
module-level session state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from gate_ledger.schemas.access_record import (
    AccessRecord,
    Operator,
    RecordType,
    new_access_record,
)
from gate_ledger.services.export_pipeline import ExportOutcome, ExportResult

if TYPE_CHECKING:
    from gate_ledger.services.export_pipeline import ExportPipeline
    from gate_ledger.services.ledger import Ledger

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]

LOGOUT_WARNING = "There are records pending export. Log out anyway?"


class NotLoggedInError(RuntimeError):
    """Raised when an action needs an operator and none is logged in."""

    pass


class SessionController:
    """Orchestrates user confirmation around ledger mutation and export."""

    def __init__(
        self,
        ledger: Ledger,
        pipeline: ExportPipeline,
        confirm: ConfirmFn,
    ) -> None:
        self.ledger = ledger
        self.pipeline = pipeline
        self.confirm = confirm
        self.operator: Operator | None = None

    @property
    def is_logged_in(self) -> bool:
        return self.operator is not None

    def login(self, operator: Operator) -> None:
        self.operator = operator
        logger.info("Operator %s (%s) logged in", operator.name, operator.id)

    def logout(self) -> bool:
        """Log out, asking first when unexported records remain.

        Returns:
            False if the operator declined
        """
        if not self.ledger.is_empty and not self.confirm(LOGOUT_WARNING):
            return False
        if self.operator:
            logger.info("Operator %s logged out", self.operator.id)
        self.operator = None
        return True

    def register(
        self,
        record_type: RecordType,
        fleet_number: str = "",
        collaborator_name: str = "",
        collaborator_code: str = "",
        destination: str = "",
        observation: str = "",
        material_exit: bool = False,
        photo: str | None = None,
    ) -> AccessRecord:
        """Create a record for the logged-in operator and append it."""
        if self.operator is None:
            raise NotLoggedInError("An operator must be logged in to register records")

        record = new_access_record(
            record_type=record_type,
            registered_by=self.operator.id,
            fleet_number=fleet_number,
            collaborator_name=collaborator_name,
            collaborator_code=collaborator_code,
            destination=destination,
            observation=observation,
            material_exit=material_exit,
            photo=photo,
        )
        if not self.ledger.append(record):
            logger.warning("Record %s kept in memory only; storage write failed", record.id)
        return record

    def pending_notice(self) -> str | None:
        """Warning shown while the ledger holds unexported records."""
        if self.ledger.is_empty:
            return None
        return (
            f"You have {len(self.ledger)} unexported record(s). "
            "Run the export before leaving."
        )

    def export(self) -> ExportResult | None:
        """Confirm and run the export.

        Returns:
            None if the operator declined, otherwise the export result
        """
        count = len(self.ledger)
        if count == 0:
            return ExportResult(outcome=ExportOutcome.NOTHING_TO_EXPORT)

        if not self.confirm(
            f"Export {count} record(s) and their photos now? "
            "Local storage will be cleared after delivery."
        ):
            logger.info("Export declined by operator")
            return None

        return self.pipeline.run()

    def clear(self) -> bool:
        """Discard every record without exporting, after confirmation.

        Returns:
            False if the operator declined or there was nothing to clear
        """
        count = len(self.ledger)
        if count == 0:
            return False
        if not self.confirm(f"Discard {count} unexported record(s) without exporting?"):
            return False
        self.ledger.clear()
        return True
