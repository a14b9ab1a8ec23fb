"""Base protocol and types for filing-authority gateways.

All gateway adapters must implement the FilingGateway protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class GatewayStatus:
    """Status values reported by a gateway for a submitted filing."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GatewaySubmitResult:
    """Result of sending a filing to the gateway."""

    reference: str
    accepted: bool
    message: str = ""
    correlation_id: str | None = None


@dataclass(frozen=True)
class GatewayStatusResult:
    """Result of polling a previously submitted filing."""

    status: str  # pending/accepted/rejected/unknown
    message: str = ""
    errors: list[dict[str, Any]] = field(default_factory=list)


class GatewayError(Exception):
    """Raised by adapters when the gateway cannot be reached or refuses a request."""


class FilingGateway(Protocol):
    """Protocol for filing-authority adapters.

    The lifecycle manager talks to HMRC (or a stand-in) only through this
    interface. Production adapters must add authentication, timeouts and
    retries around the real API.
    """

    gateway_name: str

    async def submit(self, document: dict[str, Any]) -> GatewaySubmitResult:
        """Send a filing document.

        Args:
            document: Filing payload including:
                - submission_id: str
                - submission_type: "FPS" | "EPS" | "EAS" | "NVR"
                - employer_ref: str
                - tax_year: str
                - tax_month: int
                - totals: dict of Decimal strings
                - body: type-specific filing body

        Returns:
            GatewaySubmitResult carrying the gateway reference.
        """
        ...

    async def poll_status(self, reference: str) -> GatewayStatusResult:
        """Fetch the processing status of a submitted filing."""
        ...
