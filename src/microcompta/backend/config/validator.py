"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Sequence

from .year_config import (
    BracketConfig,
    ConfigurationError,
    YearConfiguration,
    available_years,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_brackets(brackets: Sequence[BracketConfig]) -> list[str]:
    """Check that brackets tile ``[0, inf)`` with a single unbounded tail."""

    errors: list[str] = []
    if not brackets:
        return [_format_scope("brackets", "no brackets defined")]

    bounds = [bracket.min_income for bracket in brackets]
    if bounds != sorted(bounds):
        errors.append(_format_scope("brackets", "brackets should be sorted by lower bound"))

    ordered = sorted(brackets, key=lambda bracket: bracket.min_income)

    if ordered[0].min_income != 0:
        errors.append(
            _format_scope("brackets[0]", f"first bracket starts at {ordered[0].min_income}, expected 0")
        )

    for index, (current, following) in enumerate(zip(ordered, ordered[1:])):
        scope = f"brackets[{index}]"
        if current.max_income is None:
            errors.append(_format_scope(scope, "only the last bracket may be unbounded"))
            continue
        if current.max_income < following.min_income:
            errors.append(
                _format_scope(
                    scope,
                    f"gap between {current.max_income} and {following.min_income}",
                )
            )
        elif current.max_income > following.min_income:
            errors.append(
                _format_scope(
                    scope,
                    f"overlaps next bracket starting at {following.min_income}",
                )
            )

    if ordered[-1].max_income is not None:
        errors.append(
            _format_scope(
                f"brackets[{len(ordered) - 1}]",
                "last bracket must be unbounded (omit 'max')",
            )
        )

    rates = [bracket.rate for bracket in ordered]
    if rates != sorted(rates):
        errors.append(_format_scope("brackets", "rates should not decrease as income grows"))

    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []
    errors.extend(_validate_brackets(config.brackets))
    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured income tax years and report bracket issues."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
