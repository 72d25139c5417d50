"""Type definitions for the ATO calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from ato_payroll.calculators.money import ZERO, money_to_json


class PaymentFrequency(str, Enum):
    """Pay period frequencies."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def periods_per_year(self) -> int:
        return PERIODS_PER_YEAR[self]

    @classmethod
    def parse(cls, value: Any) -> PaymentFrequency | None:
        """Return the matching frequency, or None if unrecognized."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


PERIODS_PER_YEAR: dict[PaymentFrequency, int] = {
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.FORTNIGHTLY: 26,
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.YEARLY: 1,
}


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation.

    ``threshold`` is the amount income must exceed for the bracket to apply,
    so the published row "18,201 - 45,000" is stored with threshold 18,200.
    """

    threshold: Decimal
    upper: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.19 for 19%
    base_tax: Decimal = ZERO  # Tax on income up to threshold

    def taxable_in_bracket(self, income: Decimal) -> Decimal:
        """Portion of income that falls inside this bracket."""
        if income <= self.threshold:
            return ZERO
        top = income if self.upper is None else min(income, self.upper)
        return top - self.threshold


@dataclass(frozen=True)
class EmployeeTaxDetails:
    """Employee declaration flags that affect Medicare levy."""

    has_private_health_insurance: bool = False
    marital_status: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> EmployeeTaxDetails:
        """Build from None, an existing instance, a model or a mapping.

        Only a literal ``True`` counts as holding private health insurance.
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            insured = value.get(
                "has_private_health_insurance",
                value.get("hasPrivateHealthInsurance"),
            )
            status = value.get("marital_status", value.get("maritalStatus"))
        else:
            insured = getattr(value, "has_private_health_insurance", None)
            status = getattr(value, "marital_status", None)
        return cls(
            has_private_health_insurance=insured is True,
            marital_status=status if isinstance(status, str) else None,
        )


@dataclass(frozen=True)
class TaxBreakdown:
    """Per-period amounts as shown on a payslip."""

    gross_amount: Decimal = ZERO
    tax_withheld: Decimal = ZERO
    medicare_levy: Decimal = ZERO
    net_pay: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "grossAmount": money_to_json(self.gross_amount),
            "taxWithheld": money_to_json(self.tax_withheld),
            "medicareLevy": money_to_json(self.medicare_levy),
            "netPay": money_to_json(self.net_pay),
        }


@dataclass(frozen=True)
class TaxCalculationResult:
    """Result of a PAYG withholding calculation for one pay period."""

    tax_withheld: Decimal
    medicare_levy: Decimal
    net_pay: Decimal
    breakdown: TaxBreakdown = field(default_factory=TaxBreakdown)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape (camelCase keys, money as numbers)."""
        return {
            "taxWithheld": money_to_json(self.tax_withheld),
            "medicareLevy": money_to_json(self.medicare_levy),
            "netPay": money_to_json(self.net_pay),
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass(frozen=True)
class PayslipCalculation:
    """PAYG withholding plus superannuation for one payslip."""

    tax_calculation: TaxCalculationResult
    superannuation_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "taxCalculation": self.tax_calculation.to_dict(),
            "superannuationAmount": money_to_json(self.superannuation_amount),
        }


@dataclass(frozen=True)
class PaymentSummaryRecord:
    """Financial year totals for one employee."""

    employee_id: str | None
    tfn: str | None
    name: str
    address: str | None
    financial_year: str
    total_gross: Decimal
    total_tax_withheld: Decimal
    total_superannuation: Decimal
    net_pay: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "tfn": self.tfn,
            "name": self.name,
            "address": self.address,
            "financialYear": self.financial_year,
            "totalGross": money_to_json(self.total_gross),
            "totalTaxWithheld": money_to_json(self.total_tax_withheld),
            "totalSuperannuation": money_to_json(self.total_superannuation),
            "netPay": money_to_json(self.net_pay),
        }


@dataclass(frozen=True)
class STPEmployeeLine:
    """One employee's figures within an STP pay event."""

    employee_id: str | None
    tfn: str | None
    gross_amount: Decimal
    tax_withheld: Decimal
    superannuation: Decimal
    net_pay: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "tfn": self.tfn,
            "grossAmount": money_to_json(self.gross_amount),
            "taxWithheld": money_to_json(self.tax_withheld),
            "superannuation": money_to_json(self.superannuation),
            "netPay": money_to_json(self.net_pay),
        }


@dataclass(frozen=True)
class STPTotals:
    """Pay-run level totals for an STP pay event."""

    total_gross: Decimal = ZERO
    total_tax_withheld: Decimal = ZERO
    total_superannuation: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalGross": money_to_json(self.total_gross),
            "totalTaxWithheld": money_to_json(self.total_tax_withheld),
            "totalSuperannuation": money_to_json(self.total_superannuation),
        }


@dataclass(frozen=True)
class STPRecord:
    """Single Touch Payroll pay event for one pay run."""

    business_id: str | None
    payrun_id: str | None
    pay_date: str | None
    employees: tuple[STPEmployeeLine, ...]
    totals: STPTotals

    def to_dict(self) -> dict[str, Any]:
        return {
            "businessId": self.business_id,
            "payrunId": self.payrun_id,
            "payDate": self.pay_date,
            "employees": [line.to_dict() for line in self.employees],
            "totals": self.totals.to_dict(),
        }


@dataclass(frozen=True)
class PayRunTotals:
    """Aggregated payslip figures for one pay run."""

    total_earnings: Decimal = ZERO
    total_tax: Decimal = ZERO
    total_superannuation: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    payslip_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEarnings": money_to_json(self.total_earnings),
            "totalTax": money_to_json(self.total_tax),
            "totalSuperannuation": money_to_json(self.total_superannuation),
            "totalNetPay": money_to_json(self.total_net_pay),
            "payslipCount": self.payslip_count,
        }
