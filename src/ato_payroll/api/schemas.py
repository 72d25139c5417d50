"""Pydantic schemas for request payloads and persisted pay records."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ato_payroll.calculators.money import amount_or_zero, to_decimal

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
        coerce_numbers_to_str=True,
    )


def _parse_pay_date(value: Any) -> Any:
    """Reduce a pay date to a date; unreadable values become None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip().split("T", 1)[0]
        try:
            return date.fromisoformat(text)
        except ValueError:
            if text:
                logger.warning("Ignoring unreadable pay date %r", value)
            return None
    if value is None or isinstance(value, date):
        return value
    logger.warning("Ignoring unreadable pay date %r", value)
    return None


# ============================================================================
# Calculation requests
# ============================================================================


class EmployeeDetails(CamelModel):
    """Employee declaration flags supplied with a PAYG request."""

    has_private_health_insurance: Any = None  # only a literal True counts
    marital_status: str | None = None


class PAYGCalculationRequest(CamelModel):
    """Schema for a PAYG withholding request."""

    gross_amount: Decimal | None = None
    pay_frequency: str | None = None
    employee_details: EmployeeDetails | None = None

    @field_validator("gross_amount", mode="before")
    @classmethod
    def _coerce_gross(cls, value: Any) -> Decimal | None:
        return to_decimal(value)


class TFNValidationRequest(CamelModel):
    """Schema for a TFN validation request."""

    tfn: Any = None


# ============================================================================
# Persisted records
# ============================================================================


class EmployeeRecord(CamelModel):
    """Employee fields used on a payment summary."""

    employee_id: str | None = None
    tax_file_number: str | None = None
    first_name: str | None = None
    surname: str | None = None
    address: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.surname or ''}".strip()


class PayPeriodRecord(CamelModel):
    """One pay period's figures for an employee."""

    employee_id: str | None = None
    pay_date: date | None = None
    gross_amount: Decimal = Decimal("0")
    tax_withheld: Decimal = Decimal("0")
    superannuation: Decimal = Decimal("0")

    @field_validator("gross_amount", "tax_withheld", "superannuation", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return amount_or_zero(value)

    @field_validator("pay_date", mode="before")
    @classmethod
    def _coerce_pay_date(cls, value: Any) -> Any:
        return _parse_pay_date(value)


class Payslip(CamelModel):
    """Stored payslip for one employee in one pay run."""

    employee_id: str | None = None
    pay_date: date | None = None
    earnings: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    superannuation_amount: Decimal = Decimal("0")

    @field_validator("earnings", "tax_amount", "superannuation_amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return amount_or_zero(value)

    @field_validator("pay_date", mode="before")
    @classmethod
    def _coerce_pay_date(cls, value: Any) -> Any:
        return _parse_pay_date(value)

    @property
    def net_pay(self) -> Decimal:
        """Earnings less tax; zero when there are no earnings."""
        if not self.earnings:
            return Decimal("0")
        return self.earnings - self.tax_amount

    def to_pay_period_record(self) -> PayPeriodRecord:
        return PayPeriodRecord(
            employee_id=self.employee_id,
            pay_date=self.pay_date,
            gross_amount=self.earnings,
            tax_withheld=self.tax_amount,
            superannuation=self.superannuation_amount,
        )


class STPEmployeeEntry(CamelModel):
    """Per-employee input line for an STP pay event."""

    employee_id: str | None = None
    tax_file_number: str | None = None
    gross_amount: Decimal = Decimal("0")
    tax_withheld: Decimal = Decimal("0")
    superannuation: Decimal = Decimal("0")
    net_pay: Decimal = Decimal("0")

    @field_validator(
        "gross_amount", "tax_withheld", "superannuation", "net_pay", mode="before"
    )
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return amount_or_zero(value)


class STPPayrollData(CamelModel):
    """Pay run input for an STP pay event."""

    business_id: str | None = None
    payrun_id: str | None = None
    pay_date: str | None = None
    employees: list[STPEmployeeEntry] = Field(default_factory=list)

    @field_validator("pay_date", mode="before")
    @classmethod
    def _pay_date_text(cls, value: Any) -> Any:
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str
    field: str | None = None
