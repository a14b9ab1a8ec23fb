"""API endpoint integration tests.

Tests the FastAPI endpoints for filings and the submission lifecycle.
"""

from decimal import Decimal
from uuid import uuid4

from httpx import AsyncClient

from tests.integration.conftest import worker_payload


async def build_fps(client: AsyncClient, workers: list[dict] | None = None) -> dict:
    response = await client.post(
        "/api/v1/filings/fps",
        json={
            "payroll_run_id": "run-1",
            "payment_date": "2024-05-31",
            "workers": workers if workers is not None else [worker_payload()],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_submission(client: AsyncClient, submission_type: str, filing_id=None) -> dict:
    body = {"submission_type": submission_type, "payroll_run_id": "run-1"}
    if filing_id:
        body["filing_id"] = filing_id
    response = await client.post("/api/v1/submissions", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["transition_worker"] == "disabled"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestFilingEndpoints:
    async def test_build_fps(self, client: AsyncClient):
        data = await build_fps(
            client,
            [
                worker_payload(),
                worker_payload(
                    ni_number="CE654321A",
                    gross_pay="2000.00",
                    income_tax="200.00",
                    employee_ni="100.00",
                    employer_ni="150.00",
                ),
            ],
        )

        assert data["tax_year"] == "2024/2025"
        assert data["tax_month"] == 2
        assert data["total_payment"] == "5000.00"
        assert data["total_tax"] == "600.00"
        assert data["total_employee_ni"] == "250.00"
        assert data["total_employer_ni"] == "350.00"
        assert [e["line_number"] for e in data["employees"]] == [1, 2]

        response = await client.get(f"/api/v1/filings/fps/{data['fps_id']}")
        assert response.status_code == 200
        assert response.json()["submission_id"] == data["submission_id"]

    async def test_build_fps_rejects_bad_gender(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/filings/fps",
            json={
                "payroll_run_id": "run-1",
                "payment_date": "2024-05-31",
                "workers": [worker_payload(gender="Q")],
            },
        )
        assert response.status_code == 422

    async def test_build_eps(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/filings/eps",
            json={
                "tax_year": "2024/2025",
                "tax_month": 3,
                "statutory_sick_pay": "100.00",
                "cis_deductions_suffered": "50.00",
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["total_reclaimed"] == "150.00"
        assert Decimal(data["statutory_adoption_pay"]) == 0

    async def test_build_eps_rejects_bad_month(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/filings/eps",
            json={"tax_year": "2024/2025", "tax_month": 13},
        )
        assert response.status_code == 422

    async def test_missing_filing(self, client: AsyncClient):
        response = await client.get(f"/api/v1/filings/fps/{uuid4()}")
        assert response.status_code == 404


class TestCalculationEndpoints:
    async def test_tax_period(self, client: AsyncClient):
        response = await client.get("/api/v1/tax-period", params={"date": "2024-04-06"})
        assert response.status_code == 200
        assert response.json() == {"day": "2024-04-06", "tax_year": "2024/2025", "tax_month": 1}

    async def test_levy(self, client: AsyncClient):
        response = await client.post("/api/v1/levy", json={"total_payroll": "4000000"})
        assert response.status_code == 200
        data = response.json()
        assert data["levy"] == "5000.00"
        assert data["liable"] is True

    async def test_levy_rejects_negative(self, client: AsyncClient):
        response = await client.post("/api/v1/levy", json={"total_payroll": "-1"})
        assert response.status_code == 422


class TestSubmissionLifecycle:
    async def test_full_lifecycle(self, client: AsyncClient):
        fps = await build_fps(client)
        submission = await create_submission(client, "FPS", fps["fps_id"])
        submission_id = submission["submission_id"]

        assert submission_id == fps["submission_id"]
        assert submission["status"] == "draft"
        assert submission["total_payment"] == "3000.00"
        assert submission["total_ni"] == "350.00"

        response = await client.post(f"/api/v1/submissions/{submission_id}/validate")
        assert response.json()["can_submit"] is True

        response = await client.post(f"/api/v1/submissions/{submission_id}/ready")
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/submissions/{submission_id}")).json()[
            "status"
        ] == "ready"

        response = await client.post(f"/api/v1/submissions/{submission_id}/submit")
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert result["gateway_reference"].startswith("HMRC-")

        data = (await client.get(f"/api/v1/submissions/{submission_id}")).json()
        assert data["status"] == "submitted"
        assert data["gateway_reference"] == result["gateway_reference"]

        response = await client.post("/api/v1/submissions/process-due")
        assert response.json() == {"applied": 1}

        data = (await client.get(f"/api/v1/submissions/{submission_id}")).json()
        assert data["status"] == "accepted"
        assert data["accepted_at"] is not None

        response = await client.post(f"/api/v1/submissions/{submission_id}/correct")
        assert response.status_code == 200
        assert response.json()["status"] == "corrected"

        response = await client.get(f"/api/v1/submissions/{submission_id}/audit")
        assert [e["action"] for e in response.json()] == [
            "created",
            "status_change:draft:ready",
            "status_change:ready:submitted",
            "status_change:submitted:accepted",
            "status_change:accepted:corrected",
        ]

    async def test_invalid_submission_is_not_sent(self, client: AsyncClient, gateway):
        fps = await build_fps(client, [worker_payload(ni_number="BAD", tax_code=None)])
        submission = await create_submission(client, "FPS", fps["fps_id"])

        response = await client.post(f"/api/v1/submissions/{submission['submission_id']}/submit")

        result = response.json()
        assert result["success"] is False
        assert {e["code"] for e in result["errors"]} == {"INVALID_NI", "INVALID_TAX_CODE"}
        assert gateway.submitted_documents() == []

    async def test_create_requires_filing_for_fps(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/submissions",
            json={"submission_type": "FPS", "payroll_run_id": "run-1"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"

    async def test_unknown_type_is_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/submissions",
            json={"submission_type": "P45", "payroll_run_id": "run-1"},
        )
        assert response.status_code == 422

    async def test_invalid_transition_is_conflict(self, client: AsyncClient):
        submission = await create_submission(client, "NVR")

        response = await client.post(f"/api/v1/submissions/{submission['submission_id']}/correct")

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"

    async def test_missing_submission(self, client: AsyncClient):
        missing = uuid4()
        assert (await client.get(f"/api/v1/submissions/{missing}")).status_code == 404

        response = await client.post(f"/api/v1/submissions/{missing}/validate")
        assert response.json()["errors"][0]["code"] == "SUBMISSION_NOT_FOUND"

    async def test_list_filters(self, client: AsyncClient):
        nvr = await create_submission(client, "NVR")
        eas = await create_submission(client, "EAS")
        await client.post(f"/api/v1/submissions/{eas['submission_id']}/submit")

        data = (await client.get("/api/v1/submissions")).json()
        assert data["total"] == 2

        data = (await client.get("/api/v1/submissions", params={"status": "draft"})).json()
        assert [s["submission_id"] for s in data["items"]] == [nvr["submission_id"]]

        data = (await client.get("/api/v1/submissions", params={"type": "EAS"})).json()
        assert [s["submission_id"] for s in data["items"]] == [eas["submission_id"]]

        pending = (await client.get("/api/v1/submissions/pending")).json()
        assert [s["submission_id"] for s in pending["items"]] == [nvr["submission_id"]]

        submitted = (await client.get("/api/v1/submissions/submitted")).json()
        assert [s["submission_id"] for s in submitted["items"]] == [eas["submission_id"]]

    async def test_bad_status_filter(self, client: AsyncClient):
        response = await client.get("/api/v1/submissions", params={"status": "archived"})
        assert response.status_code == 422


class TestReportEndpoint:
    async def test_download_fps_report(self, client: AsyncClient):
        fps = await build_fps(client)
        submission = await create_submission(client, "FPS", fps["fps_id"])
        submission_id = submission["submission_id"]

        response = await client.get(f"/api/v1/submissions/{submission_id}/report")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert (
            f'filename="RTI_FPS_{submission_id}.txt"'
            in response.headers["content-disposition"]
        )
        assert response.text.startswith("FULL PAYMENT SUBMISSION (FPS)")
        assert "Total Gross Pay: £3000.00" in response.text

    async def test_missing_submission_report(self, client: AsyncClient):
        response = await client.get(f"/api/v1/submissions/{uuid4()}/report")
        assert response.status_code == 404
