"""Business logic services for the PAYE RTI engine."""

from paye_rti.services.filing_builder import FilingBuilder, recompute_totals
from paye_rti.services.format_validator import (
    is_valid_ni_number,
    is_valid_tax_code,
    validate_worker_record,
    validate_worker_records,
)
from paye_rti.services.locking_service import SubmissionBusyError, SubmissionLocks
from paye_rti.services.report_renderer import ReportRenderer, report_filename
from paye_rti.services.state_machine import (
    InvalidTransitionError,
    SubmissionEvent,
    SubmissionStateMachine,
    SubmissionStatus,
)
from paye_rti.services.submission_repository import (
    ConcurrentModificationError,
    SubmissionRepository,
)
from paye_rti.services.submission_service import SubmissionService
from paye_rti.services.transition_scheduler import TransitionScheduler, TransitionState
from paye_rti.services.transition_worker import TransitionWorker

__all__ = [
    "ConcurrentModificationError",
    "FilingBuilder",
    "InvalidTransitionError",
    "ReportRenderer",
    "SubmissionBusyError",
    "SubmissionEvent",
    "SubmissionLocks",
    "SubmissionRepository",
    "SubmissionService",
    "SubmissionStateMachine",
    "SubmissionStatus",
    "TransitionScheduler",
    "TransitionState",
    "TransitionWorker",
    "is_valid_ni_number",
    "is_valid_tax_code",
    "recompute_totals",
    "report_filename",
    "validate_worker_record",
    "validate_worker_records",
]
