"""ATO payroll command line interface.

Provides calculation and reporting tools:
- PAYG withholding for one pay period
- Superannuation guarantee
- TFN validation
- Bracket table listing
- Payment summary and STP pay event from JSON exports

Usage:
    python -m ato_payroll payg --gross 1000 --frequency weekly
    python -m ato_payroll super --gross 2000
    python -m ato_payroll validate-tfn 123-456-782 --checksum
    python -m ato_payroll brackets --financial-year 2024-25
    python -m ato_payroll payment-summary --input summary.json
    python -m ato_payroll stp --input payrun.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

from ato_payroll.calculators.money import money_to_json
from ato_payroll.calculators.tax_calculator import get_engine
from ato_payroll.calculators.tax_tables import (
    TaxYearNotFoundError,
    available_tax_years,
    get_tax_year_rules,
)
from ato_payroll.calculators.tfn import check_tfn
from ato_payroll.config import configure_logging, get_settings
from ato_payroll.services.ato_service import (
    MissingFieldError,
    handle_calculate_payg,
    handle_payment_summary,
    handle_stp_data,
    to_json,
)


class ATOCli:
    """ATO payroll command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m ato_payroll",
            description="ATO PAYG withholding and reporting tools",
        )
        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {get_settings().engine_version}",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            default=None,
            help="Logging level (default: $LOG_LEVEL or INFO)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # payg command
        payg = subparsers.add_parser(
            "payg",
            help="Calculate PAYG withholding for one pay period",
        )
        payg.add_argument("--gross", type=str, required=True, help="Gross pay amount")
        payg.add_argument(
            "--frequency",
            type=str,
            default="weekly",
            help="weekly, fortnightly, monthly or yearly (default: weekly)",
        )
        payg.add_argument(
            "--private-health",
            action="store_true",
            help="Employee holds private health insurance",
        )
        payg.add_argument(
            "--marital-status",
            type=str,
            default=None,
            help="Declared marital status (single, family, ...)",
        )
        payg.add_argument(
            "--financial-year",
            type=str,
            help="Financial year rules to apply (default: $ATO_FINANCIAL_YEAR)",
        )

        # super command
        sg = subparsers.add_parser(
            "super",
            help="Calculate superannuation guarantee",
        )
        sg.add_argument("--gross", type=str, required=True, help="Gross pay amount")
        sg.add_argument("--financial-year", type=str, help="Financial year rules to apply")

        # validate-tfn command
        tfn = subparsers.add_parser(
            "validate-tfn",
            help="Validate a Tax File Number",
        )
        tfn.add_argument("tfn", type=str, help="Tax File Number")
        tfn.add_argument(
            "--checksum",
            action="store_true",
            help="Also apply the ATO modulus 11 checksum",
        )

        # brackets command
        brackets = subparsers.add_parser(
            "brackets",
            help="Show the bracket table for a financial year",
        )
        brackets.add_argument("--financial-year", type=str, help="Financial year")

        # payment-summary command
        summary = subparsers.add_parser(
            "payment-summary",
            help="Build a payment summary from an employee export",
        )
        summary.add_argument(
            "--input",
            type=Path,
            required=True,
            help='JSON file: {"employee": {...}, "payslips": [...]}',
        )
        summary.add_argument("--financial-year", type=str, help="Financial year")

        # stp command
        stp = subparsers.add_parser(
            "stp",
            help="Build an STP pay event from a pay run export",
        )
        stp.add_argument(
            "--input",
            type=Path,
            required=True,
            help='JSON file: {"payrun": {...}, "payslips": [...], "tfns": {...}}',
        )
        stp.add_argument("--business-id", type=str, help="Reporting business ABN")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "payg": self._cmd_payg,
            "super": self._cmd_super,
            "validate-tfn": self._cmd_validate_tfn,
            "brackets": self._cmd_brackets,
            "payment-summary": self._cmd_payment_summary,
            "stp": self._cmd_stp,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except TaxYearNotFoundError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            print(f"Available: {', '.join(available_tax_years())}", file=sys.stderr)
            return 1
        except MissingFieldError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        except (OSError, ValueError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _emit(self, body: dict[str, Any]) -> int:
        print(to_json(body))
        return 0

    def _cmd_payg(self, args: argparse.Namespace) -> int:
        """Calculate PAYG withholding."""
        payload = {
            "grossAmount": args.gross,
            "payFrequency": args.frequency,
            "employeeDetails": {
                "hasPrivateHealthInsurance": args.private_health,
                "maritalStatus": args.marital_status,
            },
        }
        return self._emit(
            handle_calculate_payg(payload, engine=get_engine(args.financial_year))
        )

    def _cmd_super(self, args: argparse.Namespace) -> int:
        """Calculate superannuation guarantee."""
        engine = get_engine(args.financial_year)
        amount = engine.calculate_superannuation_guarantee(args.gross)
        return self._emit(
            {
                "financialYear": engine.rules.financial_year,
                "superannuation": money_to_json(amount),
            }
        )

    def _cmd_validate_tfn(self, args: argparse.Namespace) -> int:
        """Validate a TFN; exit status reflects validity."""
        require = args.checksum or get_settings().require_tfn_checksum
        result = check_tfn(args.tfn, require_checksum=require)
        self._emit({"isValid": result.is_valid, "message": result.message})
        return 0 if result.is_valid else 2

    def _cmd_brackets(self, args: argparse.Namespace) -> int:
        """Show a financial year's brackets and rates."""
        rules = get_tax_year_rules(args.financial_year or get_settings().financial_year)
        return self._emit(
            {
                "financialYear": rules.financial_year,
                "brackets": [
                    {
                        "over": str(b.threshold),
                        "upTo": str(b.upper) if b.upper is not None else None,
                        "rate": str(b.rate),
                        "baseTax": str(b.base_tax),
                    }
                    for b in rules.brackets
                ],
                "medicareLevyRate": str(rules.medicare_levy_rate),
                "medicareSurchargeRate": str(rules.medicare_surcharge_rate),
                "medicareSurchargeThresholds": {
                    k: str(v) for k, v in rules.medicare_surcharge_thresholds.items()
                },
                "superannuationGuaranteeRate": str(rules.superannuation_guarantee_rate),
                "lito": {
                    "max": str(rules.lito_max),
                    "threshold": str(rules.lito_threshold),
                    "cutout": str(rules.lito_cutout),
                    "taperRate": str(rules.lito_taper_rate),
                },
            }
        )

    def _cmd_payment_summary(self, args: argparse.Namespace) -> int:
        """Build a payment summary from a JSON export."""
        data = _load_json(args.input)
        return self._emit(
            handle_payment_summary(
                data.get("employee", {}),
                data.get("payslips", []),
                args.financial_year,
            )
        )

    def _cmd_stp(self, args: argparse.Namespace) -> int:
        """Build an STP pay event from a JSON export."""
        data = _load_json(args.input)
        return self._emit(
            handle_stp_data(
                data.get("payrun", {}),
                data.get("payslips", []),
                business_id=args.business_id or data.get("businessId"),
                tfns=data.get("tfns"),
            )
        )


def _load_json(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


def main() -> int:
    """CLI entry point."""
    cli = ATOCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
