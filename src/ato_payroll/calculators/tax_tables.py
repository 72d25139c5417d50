"""Versioned ATO rates and thresholds, keyed by financial year.

Each financial year is an immutable ``TaxYearRules`` object. Adding a new
year means registering a new object; calculation logic does not change.

Source: https://www.ato.gov.au/rates/individual-income-tax-rates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from ato_payroll.calculators.types import TaxBracket


class TaxTableError(ValueError):
    """Raised when a tax year's configuration is internally inconsistent."""

    def __init__(self, financial_year: str, reason: str):
        self.financial_year = financial_year
        self.reason = reason
        super().__init__(f"Invalid tax table for {financial_year}: {reason}")


class TaxYearNotFoundError(LookupError):
    """Raised when no rules are registered for a financial year."""

    def __init__(self, financial_year: str):
        self.financial_year = financial_year
        super().__init__(
            f"No tax rules registered for financial year '{financial_year}'"
        )


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TaxYearRules:
    """
    Rates and thresholds for one financial year.

    Attributes:
        financial_year: Label such as "2024-25".
        brackets: Resident income tax brackets, ascending and contiguous.
        medicare_levy_rate: Base Medicare levy as a fraction of income.
        medicare_surcharge_rate: Surcharge for uninsured earners above the
            threshold of their surcharge category.
        medicare_surcharge_thresholds: Income thresholds keyed by surcharge
            category ("single", "family").
        marital_status_categories: Maps a declared marital status to a
            surcharge category. Statuses absent from this table never
            attract the surcharge.
        superannuation_guarantee_rate: Employer super as a fraction of gross.
        lito_max: Maximum Low Income Tax Offset.
        lito_threshold: Income up to which the full offset applies.
        lito_cutout: Income above which no offset applies.
        lito_taper_rate: Offset reduction per dollar above lito_threshold.
    """

    financial_year: str
    brackets: tuple[TaxBracket, ...]
    medicare_levy_rate: Decimal
    medicare_surcharge_rate: Decimal
    medicare_surcharge_thresholds: Mapping[str, Decimal]
    superannuation_guarantee_rate: Decimal
    lito_max: Decimal
    lito_threshold: Decimal
    lito_cutout: Decimal
    lito_taper_rate: Decimal
    marital_status_categories: Mapping[str, str] = field(
        default_factory=lambda: _frozen({"single": "single", "family": "family"})
    )

    def __post_init__(self) -> None:
        """Validate configuration."""
        object.__setattr__(self, "brackets", tuple(self.brackets))
        object.__setattr__(
            self,
            "medicare_surcharge_thresholds",
            _frozen(self.medicare_surcharge_thresholds),
        )
        object.__setattr__(
            self, "marital_status_categories", _frozen(self.marital_status_categories)
        )
        self._validate_brackets()

        for name in (
            "medicare_levy_rate",
            "medicare_surcharge_rate",
            "superannuation_guarantee_rate",
            "lito_taper_rate",
        ):
            rate = getattr(self, name)
            if not Decimal("0") <= rate <= Decimal("1"):
                raise TaxTableError(self.financial_year, f"{name} must be in [0, 1]")

        if self.lito_threshold > self.lito_cutout:
            raise TaxTableError(
                self.financial_year, "lito_threshold cannot exceed lito_cutout"
            )

        unknown = set(self.marital_status_categories.values()) - set(
            self.medicare_surcharge_thresholds
        )
        if unknown:
            raise TaxTableError(
                self.financial_year,
                f"marital status maps to categories without thresholds: {sorted(unknown)}",
            )

    def _validate_brackets(self) -> None:
        if not self.brackets:
            raise TaxTableError(self.financial_year, "at least one bracket is required")

        first = self.brackets[0]
        if first.threshold != 0 or first.base_tax != 0:
            raise TaxTableError(self.financial_year, "first bracket must start at 0")

        expected_base = Decimal("0")
        for current, following in zip(self.brackets, self.brackets[1:]):
            if current.upper is None:
                raise TaxTableError(
                    self.financial_year, "only the last bracket may be unbounded"
                )
            if current.upper != following.threshold:
                raise TaxTableError(
                    self.financial_year,
                    f"gap or overlap between {current.upper} and {following.threshold}",
                )
            if not Decimal("0") <= current.rate <= Decimal("1"):
                raise TaxTableError(self.financial_year, "bracket rates must be in [0, 1]")
            expected_base += (current.upper - current.threshold) * current.rate
            if following.base_tax != expected_base:
                raise TaxTableError(
                    self.financial_year,
                    f"base tax {following.base_tax} at {following.threshold} "
                    f"should be {expected_base}",
                )

        last = self.brackets[-1]
        if last.upper is not None:
            raise TaxTableError(self.financial_year, "last bracket must be unbounded")
        if not Decimal("0") <= last.rate <= Decimal("1"):
            raise TaxTableError(self.financial_year, "bracket rates must be in [0, 1]")

    def surcharge_category(self, marital_status: str | None) -> str | None:
        """Surcharge category for a declared marital status, if any."""
        if marital_status is None:
            return None
        return self.marital_status_categories.get(marital_status)


FY_2024_25 = TaxYearRules(
    financial_year="2024-25",
    brackets=(
        TaxBracket(Decimal("0"), Decimal("18200"), Decimal("0")),
        TaxBracket(Decimal("18200"), Decimal("45000"), Decimal("0.19")),
        TaxBracket(Decimal("45000"), Decimal("120000"), Decimal("0.325"), Decimal("5092")),
        TaxBracket(Decimal("120000"), Decimal("180000"), Decimal("0.37"), Decimal("29467")),
        TaxBracket(Decimal("180000"), None, Decimal("0.45"), Decimal("51667")),
    ),
    medicare_levy_rate=Decimal("0.02"),
    medicare_surcharge_rate=Decimal("0.01"),
    medicare_surcharge_thresholds={
        "single": Decimal("90000"),
        "family": Decimal("180000"),
    },
    superannuation_guarantee_rate=Decimal("0.115"),
    lito_max=Decimal("700"),
    lito_threshold=Decimal("37500"),
    lito_cutout=Decimal("45000"),
    lito_taper_rate=Decimal("0.05"),
)

_TAX_YEARS: dict[str, TaxYearRules] = {FY_2024_25.financial_year: FY_2024_25}


def normalize_financial_year(label: str) -> str:
    """Normalize "2024", "2024-2025" or "2024-25" to "2024-25"."""
    text = str(label).strip()
    start, _, end = text.partition("-")
    if not start.isdigit() or len(start) != 4:
        return text
    if end and not end.isdigit():
        return text
    following = (int(start) + 1) % 100
    return f"{start}-{following:02d}"


def register_tax_year(rules: TaxYearRules, replace: bool = False) -> None:
    """Register rules for a financial year."""
    label = normalize_financial_year(rules.financial_year)
    if label in _TAX_YEARS and not replace:
        raise TaxTableError(label, "financial year is already registered")
    _TAX_YEARS[label] = rules


def get_tax_year_rules(financial_year: str) -> TaxYearRules:
    """Get rules for a financial year.

    Raises:
        TaxYearNotFoundError: If no rules are registered for that year
    """
    label = normalize_financial_year(financial_year)
    try:
        return _TAX_YEARS[label]
    except KeyError:
        raise TaxYearNotFoundError(label) from None


def available_tax_years() -> list[str]:
    """Registered financial years, oldest first."""
    return sorted(_TAX_YEARS)
