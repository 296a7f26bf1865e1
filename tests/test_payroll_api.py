"""
Paywise Payroll Engine - Payroll API Tests

Endpoint tests through httpx.AsyncClient.
"""

import json
from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.payroll import Payroll, PayrollStatus
from tests.fixtures.payroll_data import month_attendance


class TestHealthEndpoints:
    """Test application endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_api_info(self, client):
        response = await client.get("/api")

        assert response.status_code == 200
        assert response.json()["status"] == "running"


class TestPayrollEndpoints:
    """Test /api/payroll endpoints."""

    @pytest.mark.asyncio
    async def test_preview(
        self, client, db_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period, absent_days=(15, 16)))
        await db_session.commit()

        response = await client.post("/api/payroll/preview", json={"month": 1, "year": 2024})

        assert response.status_code == 200
        data = response.json()
        assert data["employee_count"] == 1
        assert Decimal(data["total_gross"]) == Decimal("60000")
        assert Decimal(data["total_net"]) == Decimal("56000")
        result = data["results"][0]
        assert result["employee_code"] == "EMP-001"
        assert Decimal(result["attendance_deduction"]) == Decimal("4000")

    @pytest.mark.asyncio
    async def test_stream_preview_as_ndjson(
        self, client, db_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period, absent_days=(15, 16)))
        await db_session.commit()

        response = await client.post("/api/payroll/preview/stream", json={"month": 1, "year": 2024})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        records = [json.loads(line) for line in response.text.splitlines()]
        assert [r["employee_code"] for r in records] == ["EMP-001"]
        assert Decimal(records[0]["net_salary"]) == Decimal("56000")

    @pytest.mark.asyncio
    async def test_stream_preview_without_employees(self, client):
        response = await client.post("/api/payroll/preview/stream", json={"month": 1, "year": 2024})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_EMPLOYEES"

    @pytest.mark.asyncio
    async def test_preview_invalid_month(self, client):
        response = await client.post("/api/payroll/preview", json={"month": 13, "year": 2024})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_preview_without_employees(self, client):
        response = await client.post("/api/payroll/preview", json={"month": 1, "year": 2024})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "NO_EMPLOYEES"
        assert error["message"] == "No active employees found to generate payroll for."

    @pytest.mark.asyncio
    async def test_confirm_then_get_and_list(
        self, client, db_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        await db_session.commit()
        preview = (await client.post("/api/payroll/preview", json={"month": 1, "year": 2024})).json()

        response = await client.post("/api/payroll/confirm", json={
            "month": 1,
            "year": 2024,
            "generated_by": str(uuid4()),
            "details": preview["results"],
        })

        assert response.status_code == 201
        payroll = response.json()
        assert payroll["status"] == PayrollStatus.CONFIRMED.value
        assert Decimal(payroll["total_amount"]) == Decimal("60000")
        assert len(payroll["details"]) == 1
        assert payroll["details"][0]["employee_name"] == "Ayesha Khan"

        response = await client.get(f"/api/payroll/{payroll['id']}")
        assert response.status_code == 200
        assert response.json()["details"][0]["bank_info"]["bank_name"] == "Meezan Bank"

        response = await client.get("/api/payroll", params={"year": 2024})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [payroll["id"]]

    @pytest.mark.asyncio
    async def test_confirm_rejects_duplicate_employees(self, client, test_employee):
        detail = {"employee_id": str(test_employee.id), "net_salary": "100.00"}

        response = await client.post("/api/payroll/confirm", json={
            "month": 1, "year": 2024, "details": [detail, detail],
        })

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_confirm_closed_period(self, client, db_session, test_employee):
        employee_id = str(test_employee.id)
        db_session.add(Payroll(month=1, year=2024, status=PayrollStatus.APPROVED, total_amount=Decimal("0")))
        await db_session.commit()

        response = await client.post("/api/payroll/confirm", json={
            "month": 1,
            "year": 2024,
            "details": [{"employee_id": employee_id, "gross_salary": "100.00", "net_salary": "100.00"}],
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "ALREADY_PROCESSED"

    @pytest.mark.asyncio
    async def test_get_missing_payroll(self, client):
        response = await client.get(f"/api/payroll/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PAYROLL_NOT_FOUND"
