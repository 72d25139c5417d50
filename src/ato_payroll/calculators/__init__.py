"""ATO tax calculation engine."""

from ato_payroll.calculators.tax_calculator import TaxEngine, get_engine
from ato_payroll.calculators.tax_tables import (
    TaxTableError,
    TaxYearNotFoundError,
    TaxYearRules,
    get_tax_year_rules,
    register_tax_year,
)
from ato_payroll.calculators.tfn import check_tfn, validate_tfn, validate_tfn_checksum

__all__ = [
    "TaxEngine",
    "get_engine",
    "TaxTableError",
    "TaxYearNotFoundError",
    "TaxYearRules",
    "get_tax_year_rules",
    "register_tax_year",
    "check_tfn",
    "validate_tfn",
    "validate_tfn_checksum",
]
