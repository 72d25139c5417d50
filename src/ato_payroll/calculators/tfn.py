"""Tax File Number validation.

``validate_tfn`` is a format check only: nine digits once separators are
removed. ``validate_tfn_checksum`` additionally applies the ATO weighted
modulus 11 check and uses the format check as a pre-filter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

TFN_LENGTH = 9
TFN_WEIGHTS = (1, 4, 3, 7, 5, 8, 6, 9, 10)

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class TFNValidationResult:
    """Outcome of validating a TFN."""

    is_valid: bool
    message: str
    checksum_valid: bool | None = None  # None = checksum not evaluated


def clean_tfn(tfn: str) -> str:
    """Strip spaces, dashes and any other non-digit characters."""
    return _NON_DIGITS.sub("", tfn)


def validate_tfn(tfn: Any) -> bool:
    """Return True if the TFN has exactly nine digits after cleaning."""
    if not tfn or not isinstance(tfn, str):
        return False
    return len(clean_tfn(tfn)) == TFN_LENGTH


def validate_tfn_checksum(tfn: Any) -> bool:
    """Return True if the TFN passes the format check and modulus 11."""
    if not validate_tfn(tfn):
        return False
    digits = clean_tfn(tfn)
    total = sum(int(d) * w for d, w in zip(digits, TFN_WEIGHTS))
    return total % 11 == 0


def check_tfn(tfn: Any, require_checksum: bool = False) -> TFNValidationResult:
    """Validate a TFN and describe the outcome."""
    if not validate_tfn(tfn):
        return TFNValidationResult(is_valid=False, message="Invalid TFN format")

    if not require_checksum:
        return TFNValidationResult(is_valid=True, message="Valid TFN format")

    if validate_tfn_checksum(tfn):
        return TFNValidationResult(
            is_valid=True, message="Valid TFN", checksum_valid=True
        )
    return TFNValidationResult(
        is_valid=False, message="TFN failed checksum validation", checksum_valid=False
    )
