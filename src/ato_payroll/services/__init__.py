"""ATO payroll services."""

from ato_payroll.services.ato_service import MissingFieldError
from ato_payroll.services.reporting_service import (
    generate_payment_summary,
    generate_stp_data,
    summarize_payrun,
)

__all__ = [
    "MissingFieldError",
    "generate_payment_summary",
    "generate_stp_data",
    "summarize_payrun",
]
