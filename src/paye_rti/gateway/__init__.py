"""Filing-authority gateway adapters."""

from paye_rti.gateway.base import (
    FilingGateway,
    GatewayError,
    GatewayStatus,
    GatewayStatusResult,
    GatewaySubmitResult,
)
from paye_rti.gateway.stub import HmrcGatewayStub

__all__ = [
    "FilingGateway",
    "GatewayError",
    "GatewayStatus",
    "GatewayStatusResult",
    "GatewaySubmitResult",
    "HmrcGatewayStub",
]
