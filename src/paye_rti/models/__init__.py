"""ORM models."""

from paye_rti.models.base import Base, TimestampMixin, UTCDateTime, utcnow
from paye_rti.models.filing import EpsFiling, FpsEmployee, FpsFiling
from paye_rti.models.scheduling import ScheduledTransition
from paye_rti.models.submission import RtiAuditEvent, RtiSubmission

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "utcnow",
    "EpsFiling",
    "FpsEmployee",
    "FpsFiling",
    "ScheduledTransition",
    "RtiAuditEvent",
    "RtiSubmission",
]
