"""Services for the gate ledger."""

from gate_ledger.services.export_pipeline import (
    ExportInProgressError,
    ExportOutcome,
    ExportPipeline,
    ExportResult,
    PipelineState,
)
from gate_ledger.services.ledger import Ledger, LedgerSummary
from gate_ledger.services.session import NotLoggedInError, SessionController

__all__ = [
    "ExportInProgressError",
    "ExportOutcome",
    "ExportPipeline",
    "ExportResult",
    "Ledger",
    "LedgerSummary",
    "NotLoggedInError",
    "PipelineState",
    "SessionController",
]
