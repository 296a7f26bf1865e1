"""
Paywise Payroll Engine - Test Configuration

Pytest fixtures and configuration.

Tests run against a throw-away SQLite database (aiosqlite). The URL is set
before the application is imported so the app engine points at it too.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="paywise-tests-")
os.environ["DATABASE_URL_ASYNC"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'payroll.db')}"
os.environ["APP_ENV"] = "testing"

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

import app.models  # noqa: F401
from app.database import Base, engine, async_session_maker
from app.models.attendance import WorkingHoursPolicy, DeductionType
from app.models.compensation import SalaryBreakup
from app.models.employee import Employee, EmployeeBankAccount, EmployeeStatus
from app.models.enums import RecordStatus
from app.models.statutory import TaxSlab
from app.services.payroll_data_service import PayrollPeriod
from main import app
from tests.fixtures.payroll_data import JANUARY_2024


# ===========================================
# DATABASE
# ===========================================

@pytest_asyncio.fixture(scope="function")
async def setup_database() -> AsyncGenerator[None, None]:
    """Create all tables for one test and drop them afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """Session used to seed data and inspect results."""
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def service_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """Separate session handed to the service under test."""
    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(setup_database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def test_policy(db_session: AsyncSession) -> WorkingHoursPolicy:
    """Create a working hours policy."""
    policy = WorkingHoursPolicy(
        id=uuid4(),
        name="Standard 9-5",
        start_working_hours="09:00",
        end_working_hours="17:00",
        half_day_deduction_type=DeductionType.PERCENTAGE.value,
        half_day_deduction_amount=Decimal("50"),
        apply_deduction_after_half_days=1,
        short_day_deduction_type=DeductionType.AMOUNT.value,
        short_day_deduction_amount=Decimal("500"),
        apply_deduction_after_short_days=2,
        late_deduction_type=DeductionType.PERCENTAGE.value,
        late_deduction_percent=Decimal("10"),
        apply_deduction_after_lates=3,
        overtime_rate=Decimal("1.5"),
        gazetted_overtime_rate=Decimal("2"),
        status=RecordStatus.ACTIVE,
    )
    db_session.add(policy)
    await db_session.commit()
    return policy


@pytest_asyncio.fixture
async def basic_salary_breakup(db_session: AsyncSession) -> SalaryBreakup:
    """Single 'Basic Salary' component covering the whole package."""
    component = SalaryBreakup(
        id=uuid4(),
        name="Basic Salary",
        percentage=Decimal("100"),
        details={"isTaxable": True},
        sort_order=1,
        status=RecordStatus.ACTIVE,
    )
    db_session.add(component)
    await db_session.commit()
    return component


@pytest_asyncio.fixture
async def zero_rate_slab(db_session: AsyncSession) -> TaxSlab:
    """Slab matching any income with no tax."""
    slab = TaxSlab(
        id=uuid4(),
        name="Exempt",
        min_amount=Decimal("0"),
        max_amount=Decimal("999999999"),
        rate=Decimal("0"),
        fixed_amount=Decimal("0"),
        status=RecordStatus.ACTIVE,
    )
    db_session.add(slab)
    await db_session.commit()
    return slab


@pytest_asyncio.fixture
async def test_employee(db_session: AsyncSession, test_policy: WorkingHoursPolicy) -> Employee:
    """Create an employee on a 60,000 package with a salary account."""
    employee = Employee(
        id=uuid4(),
        employee_code="EMP-001",
        employee_name="Ayesha Khan",
        email="ayesha@example.com",
        department="Finance",
        designation="Accountant",
        joining_date=date(2022, 3, 1),
        status=EmployeeStatus.ACTIVE,
        employee_salary=Decimal("60000.00"),
        overtime_applicable=False,
        eobi=False,
        provident_fund=False,
        working_hours_policy_id=test_policy.id,
    )
    employee.bank_accounts = [
        EmployeeBankAccount(
            id=uuid4(),
            bank_name="Meezan Bank",
            branch_code="0101",
            account_number="01010101010",
            account_title="Ayesha Khan",
            iban="PK36MEZN0001010101010101",
            is_primary=True,
            is_active=True,
        )
    ]
    db_session.add(employee)
    await db_session.commit()
    return employee


@pytest.fixture
def payroll_period() -> PayrollPeriod:
    return JANUARY_2024
