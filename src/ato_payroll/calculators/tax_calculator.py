"""PAYG withholding, Medicare levy and superannuation calculation."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from ato_payroll.calculators.money import ZERO, round_to_cents, to_decimal
from ato_payroll.calculators.tax_tables import TaxYearRules, get_tax_year_rules
from ato_payroll.calculators.types import (
    EmployeeTaxDetails,
    PaymentFrequency,
    PayslipCalculation,
    TaxBreakdown,
    TaxCalculationResult,
)
from ato_payroll.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = PaymentFrequency.WEEKLY


class TaxEngine:
    """Calculates ATO PAYG withholding using one financial year's rules.

    Calculation pipeline (per pay period):
    1) Annualize gross by the pay frequency multiplier
    2) Progressive bracket tax on the annual amount
    3) Subtract Low Income Tax Offset, floored at zero
    4) Medicare levy (plus surcharge when applicable) on the annual amount
    5) De-annualize tax and levy back to the pay period
    6) Net = gross - tax - levy, everything rounded to cents

    The engine holds no mutable state. Invalid amounts degrade to zeroed
    results instead of raising.
    """

    def __init__(self, rules: TaxYearRules | None = None):
        if rules is None:
            rules = get_tax_year_rules(get_settings().financial_year)
        self.rules = rules

    def calculate_payg_withholding(
        self,
        gross_amount: Any,
        pay_frequency: Any,
        employee_details: Any = None,
    ) -> TaxCalculationResult:
        """Calculate tax withheld, Medicare levy and net pay for one period."""
        gross = to_decimal(gross_amount)
        if gross is None or gross <= 0:
            return TaxCalculationResult(
                tax_withheld=ZERO,
                medicare_levy=ZERO,
                net_pay=round_to_cents(gross) if gross is not None else ZERO,
                breakdown=TaxBreakdown(),
            )

        periods = Decimal(self.periods_per_year(pay_frequency))
        details = EmployeeTaxDetails.from_value(employee_details)

        annual_gross = gross * periods
        annual_tax = self.calculate_annual_tax(annual_gross)
        tax_withheld = annual_tax / periods

        medicare_levy = self.calculate_medicare_levy(annual_gross, details) / periods

        net_pay = gross - tax_withheld - medicare_levy

        breakdown = TaxBreakdown(
            gross_amount=round_to_cents(gross),
            tax_withheld=round_to_cents(tax_withheld),
            medicare_levy=round_to_cents(medicare_levy),
            net_pay=round_to_cents(net_pay),
        )
        return TaxCalculationResult(
            tax_withheld=breakdown.tax_withheld,
            medicare_levy=breakdown.medicare_levy,
            net_pay=breakdown.net_pay,
            breakdown=breakdown,
        )

    def calculate_annual_tax(self, annual_income: Any) -> Decimal:
        """Calculate annual income tax after LITO, rounded to cents."""
        income = to_decimal(annual_income)
        if income is None or income <= 0:
            return ZERO

        tax = max(ZERO, self.calculate_bracket_tax(income) - self.calculate_lito(income))
        return round_to_cents(tax)

    def calculate_bracket_tax(self, annual_income: Any) -> Decimal:
        """Progressive tax before offsets, unrounded."""
        income = to_decimal(annual_income)
        if income is None or income <= 0:
            return ZERO

        tax = ZERO
        for bracket in self.rules.brackets:
            tax += bracket.taxable_in_bracket(income) * bracket.rate
        return tax

    def calculate_lito(self, annual_income: Any) -> Decimal:
        """Calculate the Low Income Tax Offset.

        Full offset up to the threshold, tapering below the cut-out; nothing
        at or above the cut-out.
        """
        income = to_decimal(annual_income)
        rules = self.rules
        if income is None:
            return ZERO
        if income <= rules.lito_threshold:
            return rules.lito_max
        if income >= rules.lito_cutout:
            return ZERO

        offset = rules.lito_max - (income - rules.lito_threshold) * rules.lito_taper_rate
        return min(rules.lito_max, max(ZERO, offset))

    def calculate_medicare_levy(
        self, annual_income: Any, employee_details: Any = None
    ) -> Decimal:
        """Calculate annual Medicare levy including any surcharge."""
        income = to_decimal(annual_income)
        if income is None or income <= 0:
            return ZERO

        rules = self.rules
        details = EmployeeTaxDetails.from_value(employee_details)
        levy = income * rules.medicare_levy_rate

        if not details.has_private_health_insurance:
            category = rules.surcharge_category(details.marital_status)
            if category is not None:
                threshold = rules.medicare_surcharge_thresholds[category]
                if income > threshold:
                    levy += income * rules.medicare_surcharge_rate
            elif details.marital_status is not None:
                logger.debug(
                    "Marital status %r has no surcharge category; surcharge skipped",
                    details.marital_status,
                )

        return round_to_cents(levy)

    def calculate_superannuation_guarantee(self, gross_amount: Any) -> Decimal:
        """Calculate employer superannuation guarantee on gross pay."""
        gross = to_decimal(gross_amount)
        if gross is None:
            return ZERO
        return round_to_cents(gross * self.rules.superannuation_guarantee_rate)

    def calculate_payslip(
        self,
        gross_amount: Any,
        pay_frequency: Any = None,
        employee_details: Any = None,
    ) -> PayslipCalculation:
        """Calculate withholding and superannuation for a payslip.

        Frequency defaults to weekly when not supplied.
        """
        return PayslipCalculation(
            tax_calculation=self.calculate_payg_withholding(
                gross_amount,
                pay_frequency or DEFAULT_FREQUENCY,
                employee_details,
            ),
            superannuation_amount=self.calculate_superannuation_guarantee(gross_amount),
        )

    @staticmethod
    def periods_per_year(pay_frequency: Any) -> int:
        """Annualization multiplier; unrecognized frequencies count as weekly."""
        frequency = PaymentFrequency.parse(pay_frequency)
        if frequency is None:
            logger.warning(
                "Unrecognized pay frequency %r, treating as %s",
                pay_frequency,
                DEFAULT_FREQUENCY.value,
            )
            frequency = DEFAULT_FREQUENCY
        return frequency.periods_per_year


_default_engines: dict[str, TaxEngine] = {}


def get_engine(financial_year: str | None = None) -> TaxEngine:
    """Get a shared engine for a financial year (configured year by default)."""
    label = financial_year or get_settings().financial_year
    rules = get_tax_year_rules(label)
    engine = _default_engines.get(rules.financial_year)
    if engine is None or engine.rules is not rules:
        engine = TaxEngine(rules)
        _default_engines[rules.financial_year] = engine
    return engine


def calculate_payg_withholding(
    gross_amount: Any, pay_frequency: Any, employee_details: Any = None
) -> TaxCalculationResult:
    return get_engine().calculate_payg_withholding(
        gross_amount, pay_frequency, employee_details
    )


def calculate_annual_tax(annual_income: Any) -> Decimal:
    return get_engine().calculate_annual_tax(annual_income)


def calculate_lito(annual_income: Any) -> Decimal:
    return get_engine().calculate_lito(annual_income)


def calculate_medicare_levy(annual_income: Any, employee_details: Any = None) -> Decimal:
    return get_engine().calculate_medicare_levy(annual_income, employee_details)


def calculate_superannuation_guarantee(gross_amount: Any) -> Decimal:
    return get_engine().calculate_superannuation_guarantee(gross_amount)


def calculate_payslip(
    gross_amount: Any, pay_frequency: Any = None, employee_details: Any = None
) -> PayslipCalculation:
    return get_engine().calculate_payslip(gross_amount, pay_frequency, employee_details)
