"""ATO reporting: payment summaries, STP pay events and pay run totals.

All functions here are pure aggregation. Amounts are summed at full
precision and rounded to cents once, on the totals.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from ato_payroll.api.schemas import (
    EmployeeRecord,
    PayPeriodRecord,
    Payslip,
    STPEmployeeEntry,
    STPPayrollData,
)
from ato_payroll.calculators.money import ZERO, round_to_cents
from ato_payroll.calculators.tax_tables import normalize_financial_year
from ato_payroll.calculators.types import (
    PaymentSummaryRecord,
    PayRunTotals,
    STPEmployeeLine,
    STPRecord,
    STPTotals,
)
from ato_payroll.config import get_settings

logger = logging.getLogger(__name__)


def _coerce(model: type[BaseModel], value: Any) -> Any:
    if isinstance(value, model):
        return value
    if isinstance(value, Mapping):
        return model.model_validate(dict(value))
    return model.model_validate(value, from_attributes=True)


def financial_year_bounds(financial_year: str) -> tuple[date, date]:
    """Return [start, end) dates for a financial year.

    "2024-25" and "2024" both give (2024-07-01, 2025-07-01).
    """
    label = normalize_financial_year(financial_year)
    start_year = int(label[:4]) if label[:4].isdigit() else None
    if start_year is None:
        raise ValueError(f"Unrecognized financial year '{financial_year}'")
    return date(start_year, 7, 1), date(start_year + 1, 7, 1)


def filter_records_for_financial_year(
    records: Iterable[Any], financial_year: str
) -> list[PayPeriodRecord]:
    """Keep records whose pay date falls inside the financial year.

    Records without a pay date are excluded.
    """
    start, end = financial_year_bounds(financial_year)
    kept: list[PayPeriodRecord] = []
    for raw in records:
        record = _coerce(PayPeriodRecord, raw)
        if record.pay_date is not None and start <= record.pay_date < end:
            kept.append(record)
    return kept


def generate_payment_summary(
    employee_data: Any,
    payroll_records: Iterable[Any],
    financial_year: str | None = None,
) -> PaymentSummaryRecord:
    """Aggregate one employee's pay period records into a payment summary.

    Missing amount fields count as zero.
    """
    employee = _coerce(EmployeeRecord, employee_data)
    label = normalize_financial_year(financial_year or get_settings().financial_year)

    total_gross = ZERO
    total_tax = ZERO
    total_super = ZERO
    count = 0
    for raw in payroll_records:
        record = _coerce(PayPeriodRecord, raw)
        total_gross += record.gross_amount
        total_tax += record.tax_withheld
        total_super += record.superannuation
        count += 1

    logger.debug(
        "Payment summary for employee %s (%s): %d records",
        employee.employee_id,
        label,
        count,
    )

    return PaymentSummaryRecord(
        employee_id=employee.employee_id,
        tfn=employee.tax_file_number,
        name=employee.full_name,
        address=employee.address,
        financial_year=label,
        total_gross=round_to_cents(total_gross),
        total_tax_withheld=round_to_cents(total_tax),
        total_superannuation=round_to_cents(total_super),
        net_pay=round_to_cents(total_gross - total_tax),
    )


def generate_stp_data(payroll_data: Any) -> STPRecord:
    """Shape a pay run into an STP pay event with pay-run totals."""
    payroll = _coerce(STPPayrollData, payroll_data)

    lines = tuple(
        STPEmployeeLine(
            employee_id=entry.employee_id,
            tfn=entry.tax_file_number,
            gross_amount=entry.gross_amount,
            tax_withheld=entry.tax_withheld,
            superannuation=entry.superannuation,
            net_pay=entry.net_pay,
        )
        for entry in payroll.employees
    )
    totals = STPTotals(
        total_gross=round_to_cents(sum((line.gross_amount for line in lines), ZERO)),
        total_tax_withheld=round_to_cents(sum((line.tax_withheld for line in lines), ZERO)),
        total_superannuation=round_to_cents(
            sum((line.superannuation for line in lines), ZERO)
        ),
    )

    return STPRecord(
        business_id=payroll.business_id,
        payrun_id=payroll.payrun_id,
        pay_date=payroll.pay_date,
        employees=lines,
        totals=totals,
    )


def stp_employee_from_payslip(payslip: Any, tfn: str | None = None) -> STPEmployeeEntry:
    """Build an STP employee entry from a stored payslip."""
    slip = _coerce(Payslip, payslip)
    return STPEmployeeEntry(
        employee_id=slip.employee_id,
        tax_file_number=tfn,
        gross_amount=slip.earnings,
        tax_withheld=slip.tax_amount,
        superannuation=slip.superannuation_amount,
        net_pay=slip.earnings - slip.tax_amount,
    )


def summarize_payrun(payslips: Iterable[Any]) -> PayRunTotals:
    """Total earnings, tax, super and net pay across a pay run's payslips."""
    earnings = ZERO
    tax = ZERO
    superannuation = ZERO
    net = ZERO
    count = 0
    for raw in payslips:
        slip = _coerce(Payslip, raw)
        earnings += slip.earnings
        tax += slip.tax_amount
        superannuation += slip.superannuation_amount
        net += slip.net_pay
        count += 1

    return PayRunTotals(
        total_earnings=round_to_cents(earnings),
        total_tax=round_to_cents(tax),
        total_superannuation=round_to_cents(superannuation),
        total_net_pay=round_to_cents(net),
        payslip_count=count,
    )


def payslips_to_records(payslips: Iterable[Any]) -> list[PayPeriodRecord]:
    """Convert stored payslips to pay period records."""
    return [_coerce(Payslip, raw).to_pay_period_record() for raw in payslips]
