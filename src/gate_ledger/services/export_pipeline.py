"""Batch export pipeline.

Turns a ledger snapshot into delivered artifacts:
1. One CSV report covering the whole snapshot
2. One photo file per photo-bearing record, in snapshot order

The report is delivered before any photo. When every delivery succeeds the
exported records are removed from the ledger; any failure aborts the remaining
deliveries and leaves the ledger untouched. Delivered artifacts are not rolled
back, so a retry re-delivers everything.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from gate_ledger.config import ExportConfig
from gate_ledger.schemas.access_record import AccessRecord, utc_now
from gate_ledger.schemas.report import (
    Artifact,
    build_photo_artifact,
    build_report_artifact,
    unique_file_name,
)

if TYPE_CHECKING:
    from gate_ledger.delivery import FileDelivery
    from gate_ledger.services.ledger import Ledger

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Export failed. No records were cleared; please try again."


class ExportInProgressError(RuntimeError):
    """Raised when an export is started while another one is running."""

    pass


class PipelineState(str, Enum):
    """State of the pipeline between invocations."""

    IDLE = "IDLE"
    EXPORTING = "EXPORTING"


class ExportOutcome(str, Enum):
    """Terminal outcome of a single export invocation."""

    NOTHING_TO_EXPORT = "NOTHING_TO_EXPORT"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class ExportResult:
    """Result of an export run."""

    outcome: ExportOutcome
    records_exported: int = 0
    photos_delivered: int = 0
    artifacts: list[str] = field(default_factory=list)
    error: str | None = None
    # False when the ledger was cleared in memory but the store write failed
    persisted: bool = True
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.outcome == ExportOutcome.SUCCESS

    @property
    def message(self) -> str:
        """Single user-facing message for the outcome."""
        if self.outcome == ExportOutcome.NOTHING_TO_EXPORT:
            return "No records to export."
        if self.outcome == ExportOutcome.FAILED:
            return FAILURE_MESSAGE
        return (
            f"Export completed: {self.records_exported} record(s) "
            f"and {self.photos_delivered} photo(s) delivered."
        )


class ExportPipeline:
    """Delivers a ledger snapshot and clears it on full success.

    Only one run may be in flight per pipeline; a second call to run() while
    EXPORTING raises ExportInProgressError.

    Usage:
        pipeline = ExportPipeline(ledger, delivery, config.export)
        result = pipeline.run()
    """

    def __init__(
        self,
        ledger: Ledger,
        delivery: FileDelivery,
        config: ExportConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the export pipeline.

        Args:
            ledger: Ledger the snapshot comes from and is cleared from.
            delivery: File-delivery side channel.
            config: Export settings (report prefix, photo delay, time format).
            clock: Source of the export time used in the report name.
            sleep: Called with the inter-photo delay in seconds.
        """
        self.ledger = ledger
        self.delivery = delivery
        self.config = config or ExportConfig()
        self.clock = clock
        self.sleep = sleep
        self._state = PipelineState.IDLE

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def photo_delay_seconds(self) -> float:
        return self.config.photo_delay_ms / 1000.0

    def run(self, snapshot: Sequence[AccessRecord] | None = None) -> ExportResult:
        """Export the snapshot (the current ledger contents by default).

        Operator confirmation must already have been obtained.

        Returns:
            ExportResult with the outcome and delivery counts.
        """
        if self._state == PipelineState.EXPORTING:
            raise ExportInProgressError("An export is already in progress")

        records = tuple(self.ledger.snapshot() if snapshot is None else snapshot)
        if not records:
            logger.info("Export requested with an empty ledger; nothing to do")
            return ExportResult(outcome=ExportOutcome.NOTHING_TO_EXPORT)

        start_time = time.time()
        self._state = PipelineState.EXPORTING
        try:
            result = self._export(records)
        finally:
            self._state = PipelineState.IDLE

        result.duration_ms = int((time.time() - start_time) * 1000)
        return result

    def _export(self, records: tuple[AccessRecord, ...]) -> ExportResult:
        delivered: list[str] = []
        photos = 0

        logger.info("Starting export of %d record(s)", len(records))
        try:
            report = build_report_artifact(
                records,
                prefix=self.config.report_prefix,
                export_time=self.clock(),
                timestamp_format=self.config.timestamp_format,
            )
            self._deliver(report)
            delivered.append(report.file_name)

            for record in records:
                if not record.has_photo:
                    continue
                if photos and self.photo_delay_seconds > 0:
                    self.sleep(self.photo_delay_seconds)
                artifact = build_photo_artifact(record)
                file_name = unique_file_name(artifact.file_name, record.id, set(delivered))
                if file_name != artifact.file_name:
                    artifact = replace(artifact, file_name=file_name)
                self._deliver(artifact)
                delivered.append(artifact.file_name)
                photos += 1

        except Exception as e:
            logger.exception(
                "Export aborted after %d artifact(s); ledger left unchanged: %s",
                len(delivered),
                e,
            )
            return ExportResult(outcome=ExportOutcome.FAILED, error=str(e))

        persisted = self.ledger.discard(records)
        logger.info(
            "Export completed: %d record(s), %d photo(s) delivered",
            len(records),
            photos,
        )
        return ExportResult(
            outcome=ExportOutcome.SUCCESS,
            records_exported=len(records),
            photos_delivered=photos,
            artifacts=delivered,
            persisted=persisted,
        )

    def _deliver(self, artifact: Artifact) -> None:
        logger.debug("Delivering %s (%d bytes)", artifact.file_name, len(artifact.content))
        self.delivery.deliver(artifact.content, artifact.file_name, artifact.media_type)
