"""RTI submission state machine with an explicit transition table."""

from __future__ import annotations

from enum import Enum


class SubmissionStatus(str, Enum):
    """Submission status values."""

    DRAFT = "draft"
    READY = "ready"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CORRECTED = "corrected"


class SubmissionEvent(str, Enum):
    """Lifecycle events that move a submission between statuses."""

    MARK_READY = "mark_ready"
    SUBMIT = "submit"
    ACCEPT = "accept"
    REJECT = "reject"
    CORRECT = "correct"


class InvalidTransitionError(Exception):
    """Raised when an event is not allowed in the current status."""

    def __init__(self, from_status: str, event: str, reason: str | None = None):
        self.from_status = from_status
        self.event = event
        self.reason = reason
        msg = f"Event '{event}' is not allowed in status '{from_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SubmissionStateMachine:
    """State machine for submission status transitions.

    Allowed transitions:
    - draft --mark_ready--> ready
    - draft --submit--> submitted
    - ready --submit--> submitted
    - submitted --accept--> accepted
    - submitted --reject--> rejected
    - accepted --correct--> corrected
    - rejected --correct--> corrected
    """

    # (from_status, event) -> to_status
    TRANSITIONS: dict[tuple[SubmissionStatus, SubmissionEvent], SubmissionStatus] = {
        (SubmissionStatus.DRAFT, SubmissionEvent.MARK_READY): SubmissionStatus.READY,
        (SubmissionStatus.DRAFT, SubmissionEvent.SUBMIT): SubmissionStatus.SUBMITTED,
        (SubmissionStatus.READY, SubmissionEvent.SUBMIT): SubmissionStatus.SUBMITTED,
        (SubmissionStatus.SUBMITTED, SubmissionEvent.ACCEPT): SubmissionStatus.ACCEPTED,
        (SubmissionStatus.SUBMITTED, SubmissionEvent.REJECT): SubmissionStatus.REJECTED,
        (SubmissionStatus.ACCEPTED, SubmissionEvent.CORRECT): SubmissionStatus.CORRECTED,
        (SubmissionStatus.REJECTED, SubmissionEvent.CORRECT): SubmissionStatus.CORRECTED,
    }

    # Not yet sent to the gateway
    PENDING = {
        SubmissionStatus.DRAFT,
        SubmissionStatus.READY,
    }

    # Sent, and not rejected
    SUBMITTED = {
        SubmissionStatus.SUBMITTED,
        SubmissionStatus.ACCEPTED,
    }

    @classmethod
    def next_status(cls, from_status: str, event: str) -> SubmissionStatus:
        """Resolve the target status, raising InvalidTransitionError if invalid."""
        try:
            key = (SubmissionStatus(from_status), SubmissionEvent(event))
        except ValueError as exc:
            raise InvalidTransitionError(str(from_status), str(event), str(exc)) from exc

        to_status = cls.TRANSITIONS.get(key)
        if to_status is None:
            raise InvalidTransitionError(key[0].value, key[1].value)
        return to_status

    @classmethod
    def can_apply(cls, from_status: str, event: str) -> bool:
        """Check if an event is allowed in a status."""
        try:
            cls.next_status(from_status, event)
        except InvalidTransitionError:
            return False
        return True
