"""Unit tests for TaxEngine.

Expected figures are worked by hand from the 2024-25 resident rates.
"""

import json
import logging
from dataclasses import replace
from decimal import Decimal

import pytest

from ato_payroll.calculators import tax_calculator
from ato_payroll.calculators.money import round_to_cents
from ato_payroll.calculators.tax_calculator import TaxEngine
from ato_payroll.calculators.tax_tables import FY_2024_25
from ato_payroll.calculators.types import EmployeeTaxDetails, PaymentFrequency


class TestAnnualTax:
    """Test progressive bracket tax with LITO applied."""

    @pytest.mark.parametrize(
        "income,expected",
        [
            ("0", "0"),
            ("18200", "0.00"),
            ("20000", "0.00"),  # 342 bracket tax, fully offset by LITO
            ("30000", "1542.00"),  # 2242 - 700
            ("40000", "3567.00"),  # 4142 - 575
            ("44999", "4766.76"),  # 5091.81 - 325.05
            ("45000", "5092.00"),
            ("52000", "7367.00"),
            ("95000", "21342.00"),
            ("120000", "29467.00"),
            ("180000", "51667.00"),
            ("200000", "60667.00"),
        ],
    )
    def test_known_incomes(self, engine, income, expected):
        """Tax matches the published bracket table."""
        assert engine.calculate_annual_tax(Decimal(income)) == Decimal(expected)

    def test_negative_income_returns_zero(self, engine):
        """Negative income should return zero tax."""
        assert engine.calculate_annual_tax(Decimal("-1000")) == Decimal("0")

    def test_accepts_plain_numbers(self, engine):
        """Ints, floats and strings are coerced to Decimal."""
        assert engine.calculate_annual_tax(52000) == Decimal("7367.00")
        assert engine.calculate_annual_tax(52000.0) == Decimal("7367.00")
        assert engine.calculate_annual_tax("52000") == Decimal("7367.00")

    def test_invalid_income_returns_zero(self, engine):
        """Unparseable or non-finite income degrades to zero."""
        assert engine.calculate_annual_tax(None) == Decimal("0")
        assert engine.calculate_annual_tax("abc") == Decimal("0")
        assert engine.calculate_annual_tax(float("nan")) == Decimal("0")
        assert engine.calculate_annual_tax(float("inf")) == Decimal("0")

    def test_bracket_tax_matches_base_amounts(self, engine):
        """Tax at each threshold equals the next bracket's base tax."""
        for bracket in FY_2024_25.brackets[1:]:
            assert engine.calculate_bracket_tax(bracket.threshold) == bracket.base_tax


class TestLowIncomeTaxOffset:
    """Test LITO boundaries and taper."""

    def test_full_offset_at_threshold(self, engine):
        assert engine.calculate_lito(Decimal("37500")) == Decimal("700")

    def test_full_offset_below_threshold(self, engine):
        assert engine.calculate_lito(Decimal("10000")) == Decimal("700")

    def test_tapered_offset(self, engine):
        """700 - 2500 * 0.05 = 575."""
        assert engine.calculate_lito(Decimal("40000")) == Decimal("575")

    def test_no_offset_at_cutout(self, engine):
        assert engine.calculate_lito(Decimal("45000")) == Decimal("0")

    def test_no_offset_above_cutout(self, engine):
        assert engine.calculate_lito(Decimal("80000")) == Decimal("0")


class TestMedicareLevy:
    """Test Medicare levy and surcharge gating."""

    def test_base_levy(self, engine):
        """2% with no surcharge when details are absent."""
        assert engine.calculate_medicare_levy(Decimal("52000")) == Decimal("1040.00")

    def test_single_uninsured_above_threshold_pays_surcharge(self, engine):
        levy = engine.calculate_medicare_levy(
            Decimal("95000"), {"maritalStatus": "single", "hasPrivateHealthInsurance": False}
        )
        assert levy == Decimal("2850.00")  # 1900 + 950

    def test_single_insured_no_surcharge(self, engine):
        levy = engine.calculate_medicare_levy(
            Decimal("95000"), {"maritalStatus": "single", "hasPrivateHealthInsurance": True}
        )
        assert levy == Decimal("1900.00")

    def test_single_at_threshold_no_surcharge(self, engine):
        """Surcharge applies only above the threshold."""
        levy = engine.calculate_medicare_levy(Decimal("90000"), {"maritalStatus": "single"})
        assert levy == Decimal("1800.00")

    def test_family_below_family_threshold_no_surcharge(self, engine):
        for insured in (True, False):
            levy = engine.calculate_medicare_levy(
                Decimal("95000"),
                {"maritalStatus": "family", "hasPrivateHealthInsurance": insured},
            )
            assert levy == Decimal("1900.00")

    def test_family_above_family_threshold_pays_surcharge(self, engine):
        levy = engine.calculate_medicare_levy(Decimal("200000"), {"maritalStatus": "family"})
        assert levy == Decimal("6000.00")

    @pytest.mark.parametrize("status", ["married", "de_facto", "widowed", "divorced"])
    def test_unmapped_marital_status_skips_surcharge(self, engine, status):
        """Statuses without a surcharge category never attract the surcharge."""
        levy = engine.calculate_medicare_levy(Decimal("200000"), {"maritalStatus": status})
        assert levy == Decimal("4000.00")

    def test_only_literal_true_counts_as_insured(self, engine):
        """Truthy non-bool values do not count as private cover."""
        for flag in ("true", 1, "yes"):
            levy = engine.calculate_medicare_levy(
                Decimal("100000"),
                {"marital_status": "single", "has_private_health_insurance": flag},
            )
            assert levy == Decimal("3000.00")

    def test_accepts_details_dataclass(self, engine):
        details = EmployeeTaxDetails(has_private_health_insurance=True, marital_status="single")
        assert engine.calculate_medicare_levy(Decimal("100000"), details) == Decimal("2000.00")

    def test_custom_status_mapping(self):
        """The marital status table is configuration, not code."""
        rules = replace(
            FY_2024_25,
            financial_year="2099-00",
            marital_status_categories={
                "single": "single",
                "family": "family",
                "married": "family",
            },
        )
        engine = TaxEngine(rules)
        levy = engine.calculate_medicare_levy(Decimal("200000"), {"maritalStatus": "married"})
        assert levy == Decimal("6000.00")


class TestSuperannuationGuarantee:
    """Test superannuation guarantee."""

    def test_flat_rate(self, engine):
        assert engine.calculate_superannuation_guarantee(2000) == Decimal("230.00")

    def test_rounds_half_up_to_cents(self, engine):
        # 1234.56 * 0.115 = 141.9744
        assert engine.calculate_superannuation_guarantee(Decimal("1234.56")) == Decimal("141.97")
        # 10.10 * 0.115 = 1.1615
        assert engine.calculate_superannuation_guarantee(Decimal("10.10")) == Decimal("1.16")

    def test_no_cap_on_high_earnings(self, engine):
        assert engine.calculate_superannuation_guarantee(100000) == Decimal("11500.00")

    def test_missing_gross_returns_zero(self, engine):
        assert engine.calculate_superannuation_guarantee(None) == Decimal("0")

    def test_rate_comes_from_rules(self):
        engine = TaxEngine(
            replace(
                FY_2024_25,
                financial_year="2099-00",
                superannuation_guarantee_rate=Decimal("0.12"),
            )
        )
        assert engine.calculate_superannuation_guarantee(2000) == Decimal("240.00")


class TestPAYGWithholding:
    """Test per-period PAYG withholding."""

    def test_weekly(self, engine):
        """52,000 annual: 7367 tax, 1040 levy."""
        result = engine.calculate_payg_withholding(1000, "weekly", {})
        assert result.tax_withheld == Decimal("141.67")
        assert result.medicare_levy == Decimal("20.00")
        assert result.net_pay == Decimal("838.33")
        assert result.breakdown.gross_amount == Decimal("1000.00")
        assert result.breakdown.tax_withheld == result.tax_withheld
        assert result.breakdown.net_pay == result.net_pay

    def test_fortnightly(self, engine):
        result = engine.calculate_payg_withholding(2000, "fortnightly", {})
        assert result.tax_withheld == Decimal("283.35")
        assert result.medicare_levy == Decimal("40.00")
        assert result.net_pay == Decimal("1676.65")

    def test_monthly(self, engine):
        """60,000 annual: 9967 tax, 1200 levy."""
        result = engine.calculate_payg_withholding(5000, "monthly", {})
        assert result.tax_withheld == Decimal("830.58")
        assert result.medicare_levy == Decimal("100.00")
        assert result.net_pay == Decimal("4069.42")

    def test_yearly_single_uninsured(self, engine):
        result = engine.calculate_payg_withholding(
            95000, "yearly", {"maritalStatus": "single"}
        )
        assert result.tax_withheld == Decimal("21342.00")
        assert result.medicare_levy == Decimal("2850.00")
        assert result.net_pay == Decimal("70808.00")

    def test_frequency_enum_accepted(self, engine):
        by_enum = engine.calculate_payg_withholding(1000, PaymentFrequency.WEEKLY)
        by_text = engine.calculate_payg_withholding(1000, " Weekly ")
        assert by_enum == by_text

    def test_unknown_frequency_treated_as_weekly(self, engine, caplog):
        with caplog.at_level(logging.WARNING):
            unknown = engine.calculate_payg_withholding(1000, "daily", {})
        weekly = engine.calculate_payg_withholding(1000, "weekly", {})
        assert unknown == weekly
        assert "Unrecognized pay frequency" in caplog.text

    def test_zero_gross_returns_zeroed_result(self, engine):
        result = engine.calculate_payg_withholding(0, "weekly", {})
        assert result.to_dict() == {
            "taxWithheld": 0,
            "medicareLevy": 0,
            "netPay": 0,
            "breakdown": {
                "grossAmount": 0,
                "taxWithheld": 0,
                "medicareLevy": 0,
                "netPay": 0,
            },
        }

    def test_negative_gross_passes_through(self, engine):
        result = engine.calculate_payg_withholding(-5, "weekly", {})
        assert result.tax_withheld == Decimal("0")
        assert result.medicare_levy == Decimal("0")
        assert result.net_pay == Decimal("-5.00")
        assert result.breakdown.gross_amount == Decimal("0")

    @pytest.mark.parametrize("gross", [None, "abc", float("nan")])
    def test_invalid_gross_returns_zeroed_result(self, engine, gross):
        result = engine.calculate_payg_withholding(gross, "weekly", {})
        assert result.tax_withheld == Decimal("0")
        assert result.net_pay == Decimal("0")

    def test_very_large_gross_rounds_to_cents(self, engine):
        """Amounts wider than the default Decimal precision still round."""
        result = engine.calculate_payg_withholding(1e300, "weekly", {})
        assert result.tax_withheld > 0
        assert result.medicare_levy > 0
        assert result.tax_withheld == result.tax_withheld.quantize(Decimal("0.01"))
        assert result.breakdown.gross_amount == Decimal("1E+300")
        assert result.to_dict()["breakdown"]["grossAmount"] == 10**300

    def test_annualization_round_trip(self, engine):
        """Per-period tax x 52 is within rounding of the annual figure."""
        result = engine.calculate_payg_withholding(1000, "weekly", {})
        annual = engine.calculate_annual_tax(52000)
        assert abs(result.tax_withheld * 52 - annual) <= Decimal("0.01") * 52

    def test_identical_inputs_give_identical_json(self, engine):
        details = {"maritalStatus": "single"}
        first = engine.calculate_payg_withholding(1234.56, "fortnightly", details)
        second = engine.calculate_payg_withholding(1234.56, "fortnightly", details)
        assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(
            second.to_dict(), sort_keys=True
        )


class TestPayslipCalculation:
    """Test combined payslip calculation."""

    def test_defaults_to_weekly(self, engine):
        result = engine.calculate_payslip(1000)
        assert result.tax_calculation == engine.calculate_payg_withholding(1000, "weekly")
        assert result.superannuation_amount == Decimal("115.00")

    def test_to_dict(self, engine):
        body = engine.calculate_payslip(2000, "fortnightly").to_dict()
        assert body["superannuationAmount"] == 230
        assert body["taxCalculation"]["taxWithheld"] == 283.35


class TestModuleFunctions:
    """Module-level functions use the configured financial year."""

    def test_delegates_to_configured_engine(self):
        result = tax_calculator.calculate_payg_withholding(1000, "weekly", {})
        assert result.tax_withheld == Decimal("141.67")
        assert tax_calculator.calculate_lito(40000) == Decimal("575")
        assert tax_calculator.calculate_superannuation_guarantee(2000) == Decimal("230.00")
        assert tax_calculator.calculate_annual_tax(52000) == Decimal("7367.00")
        assert tax_calculator.calculate_medicare_levy(52000) == Decimal("1040.00")

    def test_get_engine_is_shared(self):
        assert tax_calculator.get_engine() is tax_calculator.get_engine("2024-25")
        assert tax_calculator.get_engine("2024").rules is FY_2024_25


class TestRoundToCents:
    """Cent rounding at result boundaries."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("2.345", "2.35"),
            ("2.344", "2.34"),
            ("-2.345", "-2.35"),
            ("1E+40", "1E+40"),
            ("123456789012345678901234567890.125", "123456789012345678901234567890.13"),
        ],
    )
    def test_half_up(self, amount, expected):
        assert round_to_cents(Decimal(amount)) == Decimal(expected)
