"""Request handlers for the ATO calculation endpoints.

Each handler takes a decoded JSON payload and returns the response body as a
plain dict. Routing and status codes belong to the web layer; the only error
raised here is MissingFieldError, which maps to a 400.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping

from ato_payroll.api.schemas import (
    ErrorResponse,
    PAYGCalculationRequest,
    Payslip,
    STPPayrollData,
    TFNValidationRequest,
)
from ato_payroll.calculators.money import money_to_json
from ato_payroll.calculators.tax_calculator import TaxEngine, get_engine
from ato_payroll.calculators.tfn import check_tfn
from ato_payroll.config import get_settings
from ato_payroll.services.reporting_service import (
    filter_records_for_financial_year,
    generate_payment_summary,
    generate_stp_data,
    payslips_to_records,
    stp_employee_from_payslip,
)

logger = logging.getLogger(__name__)


class MissingFieldError(Exception):
    """Raised when a required request field is missing."""

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        super().__init__(message or f"Missing required fields: {', '.join(fields)}")

    def to_response(self) -> dict[str, Any]:
        return ErrorResponse(error=str(self), field=",".join(self.fields)).model_dump(
            exclude_none=True
        )


def to_json(body: Mapping[str, Any]) -> str:
    """Render a response body deterministically."""
    return json.dumps(body, sort_keys=True, separators=(",", ":"))


def handle_calculate_payg(
    payload: Mapping[str, Any], engine: TaxEngine | None = None
) -> dict[str, Any]:
    """Calculate PAYG withholding and superannuation for one pay period.

    Raises:
        MissingFieldError: If gross amount or pay frequency is missing
    """
    request = PAYGCalculationRequest.model_validate(dict(payload))
    if not request.gross_amount or not request.pay_frequency:
        raise MissingFieldError(
            ["grossAmount", "payFrequency"],
            "Gross amount and pay frequency are required",
        )

    engine = engine or get_engine()
    calculation = engine.calculate_payg_withholding(
        request.gross_amount, request.pay_frequency, request.employee_details
    )
    superannuation = engine.calculate_superannuation_guarantee(request.gross_amount)
    return {
        "success": True,
        "calculation": calculation.to_dict(),
        "superannuation": money_to_json(superannuation),
    }


def handle_payslip_calculation(
    payload: Mapping[str, Any], engine: TaxEngine | None = None
) -> dict[str, Any]:
    """Recalculate a payslip's tax and super; frequency defaults to weekly."""
    request = PAYGCalculationRequest.model_validate(dict(payload))
    engine = engine or get_engine()
    result = engine.calculate_payslip(
        request.gross_amount, request.pay_frequency, request.employee_details
    )
    return {"success": True, "calculations": result.to_dict()}


def handle_validate_tfn(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a TFN and return a flag plus message."""
    request = TFNValidationRequest.model_validate(dict(payload))
    result = check_tfn(request.tfn, require_checksum=get_settings().require_tfn_checksum)
    return {"success": True, "isValid": result.is_valid, "message": result.message}


def handle_payment_summary(
    employee: Mapping[str, Any],
    payslips: Iterable[Any],
    financial_year: str | None = None,
) -> dict[str, Any]:
    """Build an employee's payment summary from their stored payslips.

    Only payslips dated inside the financial year are included.
    """
    label = financial_year or get_settings().financial_year
    records = filter_records_for_financial_year(payslips_to_records(payslips), label)
    summary = generate_payment_summary(employee, records, label)
    return {"success": True, "paymentSummary": summary.to_dict()}


def handle_stp_data(
    payrun: Mapping[str, Any],
    payslips: Iterable[Any],
    business_id: str | None = None,
    tfns: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build the STP pay event for a stored pay run and its payslips."""
    tfns = tfns or {}
    entries = []
    for raw in payslips:
        slip = raw if isinstance(raw, Payslip) else Payslip.model_validate(dict(raw))
        tfn = tfns.get(slip.employee_id or "")
        if tfn is None:
            logger.warning("No TFN on file for employee %s", slip.employee_id)
        entries.append(stp_employee_from_payslip(slip, tfn))

    payroll = STPPayrollData(
        business_id=business_id,
        payrun_id=payrun.get("payrunId", payrun.get("payrun_id")),
        pay_date=payrun.get("paymentDate", payrun.get("payment_date")),
        employees=entries,
    )
    return {"success": True, "stpData": generate_stp_data(payroll).to_dict()}

