"""API routes."""

from paye_rti.api.routes.filings import router as filings_router
from paye_rti.api.routes.health import router as health_router
from paye_rti.api.routes.submissions import router as submissions_router

__all__ = ["filings_router", "health_router", "submissions_router"]
