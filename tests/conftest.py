"""Pytest fixtures for ATO payroll engine tests."""

from __future__ import annotations

import pytest

from ato_payroll.calculators.tax_calculator import TaxEngine
from ato_payroll.calculators.tax_tables import FY_2024_25
from ato_payroll.config import get_settings


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Pin settings so a local .env cannot change results."""
    monkeypatch.setenv("ATO_FINANCIAL_YEAR", "2024-25")
    monkeypatch.setenv("ATO_REQUIRE_TFN_CHECKSUM", "false")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine() -> TaxEngine:
    """Engine using the 2024-25 rules."""
    return TaxEngine(FY_2024_25)


@pytest.fixture
def employee() -> dict:
    """Employee document as stored by the web layer."""
    return {
        "employeeId": "EMP-001",
        "taxFileNumber": "123 456 782",
        "firstName": "Jane",
        "surname": "Citizen",
        "address": "1 George St, Sydney NSW 2000",
    }


@pytest.fixture
def payslips() -> list[dict]:
    """Stored payslips spanning two financial years."""
    return [
        {
            "employeeId": "EMP-001",
            "payrunId": "PR-2024-06",
            "payDate": "2024-06-28T00:00:00.000Z",
            "earnings": 1000,
            "taxAmount": 141.67,
            "superannuationAmount": 110,
        },
        {
            "employeeId": "EMP-001",
            "payrunId": "PR-2024-07",
            "payDate": "2024-07-05T00:00:00.000Z",
            "earnings": 1000,
            "taxAmount": 141.67,
            "superannuationAmount": 115,
        },
        {
            "employeeId": "EMP-001",
            "payrunId": "PR-2025-06",
            "payDate": "2025-06-27",
            "earnings": 1200.50,
            "taxAmount": 206.71,
            "superannuationAmount": 138.06,
        },
    ]
