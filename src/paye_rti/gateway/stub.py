"""HMRC gateway stub for local development and testing.

Replace with an authenticated RTI submission adapter for production.
"""

from __future__ import annotations

import asyncio
import datetime
import uuid
from typing import Any

from paye_rti.gateway.base import (
    GatewayError,
    GatewayStatus,
    GatewayStatusResult,
    GatewaySubmitResult,
)


class HmrcGatewayStub:
    """Stub filing gateway.

    Every submission is acknowledged after ``submit_delay`` seconds and
    reported as accepted when polled, unless a rejection or an outage has
    been simulated.
    """

    gateway_name = "hmrc_stub"

    def __init__(self, submit_delay: float = 2.0):
        self.submit_delay = submit_delay
        # In-memory tracking for stub
        self._submitted: dict[str, dict[str, Any]] = {}
        self._status_overrides: dict[str, GatewayStatusResult] = {}
        self._outage: str | None = None

    async def submit(self, document: dict[str, Any]) -> GatewaySubmitResult:
        """Acknowledge a filing (stub implementation)."""
        if self.submit_delay > 0:
            await asyncio.sleep(self.submit_delay)

        if self._outage is not None:
            raise GatewayError(self._outage)

        now = datetime.datetime.now(datetime.timezone.utc)
        reference = f"HMRC-{now.strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8].upper()}"

        self._submitted[reference] = {
            "document": document,
            "submitted_at": now,
        }

        return GatewaySubmitResult(
            reference=reference,
            accepted=True,
            message="HMRC stub acknowledged",
            correlation_id=uuid.uuid4().hex,
        )

    async def poll_status(self, reference: str) -> GatewayStatusResult:
        """Report the processing status of a filing.

        References the stub has not seen (for example after a process
        restart) are reported as accepted too.
        """
        override = self._status_overrides.get(reference)
        if override is not None:
            return override

        return GatewayStatusResult(
            status=GatewayStatus.ACCEPTED,
            message="HMRC stub accepted",
        )

    def submitted_documents(self) -> list[dict[str, Any]]:
        """Documents received so far (for testing)."""
        return [entry["document"] for entry in self._submitted.values()]

    def simulate_rejection(
        self,
        reference: str,
        code: str = "RTI_BUSINESS_RULE",
        message: str = "Submission failed business validation",
    ) -> None:
        """Make a later poll report the filing as rejected (for testing)."""
        self._status_overrides[reference] = GatewayStatusResult(
            status=GatewayStatus.REJECTED,
            message=message,
            errors=[{"code": code, "message": message, "field": None, "severity": "error"}],
        )

    def simulate_pending(self, reference: str) -> None:
        """Make a later poll report the filing as still processing (for testing)."""
        self._status_overrides[reference] = GatewayStatusResult(
            status=GatewayStatus.PENDING,
            message="HMRC stub still processing",
        )

    def simulate_outage(self, message: str = "Gateway unavailable") -> None:
        """Make subsequent submits fail (for testing)."""
        self._outage = message

    def clear_outage(self) -> None:
        self._outage = None
