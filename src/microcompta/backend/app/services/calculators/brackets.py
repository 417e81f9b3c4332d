"""Progressive income tax allocation across an ordered bracket set."""

from __future__ import annotations

from collections.abc import Sequence

from microcompta.backend.app.models.records import TaxBracket
from microcompta.backend.app.models.summaries import AllocationResult, BracketAllocation
from microcompta.backend.app.models.values import Money, Percentage
from microcompta.backend.errors import ConfigurationError, InputError


def validate_partition(brackets: Sequence[TaxBracket]) -> tuple[TaxBracket, ...]:
    """Return ``brackets`` sorted by lower bound after checking they tile ``[0, inf)``.

    The set must start at zero, each upper bound must equal the next lower
    bound, and only the last bracket may be unbounded.
    """

    if not brackets:
        raise ConfigurationError("Income tax bracket set is empty")

    ordered = tuple(sorted(brackets, key=lambda bracket: bracket.min_income))

    keys = {(bracket.year, bracket.scope) for bracket in ordered}
    if len(keys) > 1:
        raise ConfigurationError("Bracket set mixes several years or scopes")

    if not ordered[0].min_income.is_zero:
        raise ConfigurationError(
            f"Bracket set starts at {ordered[0].min_income} instead of 0"
        )

    for current, following in zip(ordered, ordered[1:]):
        if current.max_income is None:
            raise ConfigurationError(
                f"Unbounded bracket starting at {current.min_income} is not the last one"
            )
        if current.max_income < following.min_income:
            raise ConfigurationError(
                f"Gap between {current.max_income} and {following.min_income} in bracket set"
            )
        if current.max_income > following.min_income:
            raise ConfigurationError(
                f"Brackets overlap between {following.min_income} and {current.max_income}"
            )

    if ordered[-1].max_income is not None:
        raise ConfigurationError(
            f"Last bracket is capped at {ordered[-1].max_income}; it must be unbounded"
        )

    return ordered


def allocate(taxable_income: Money, brackets: Sequence[TaxBracket]) -> AllocationResult:
    """Split ``taxable_income`` over ``brackets`` and tax each slice.

    Each slice's tax is rounded half-up to the cent before summing, so
    ``total_tax`` always equals the sum of the breakdown.
    """

    if taxable_income.is_negative:
        raise InputError(f"Taxable income cannot be negative (got {taxable_income})")

    ordered = validate_partition(brackets)

    breakdown: list[BracketAllocation] = []
    total_tax = Money.zero()
    exhausted = False

    for bracket in ordered:
        if exhausted or taxable_income <= bracket.min_income:
            exhausted = True
            breakdown.append(
                BracketAllocation(
                    min_income=bracket.min_income,
                    max_income=bracket.max_income,
                    rate=bracket.rate,
                    taxable_amount=Money.zero(),
                    tax_amount=Money.zero(),
                )
            )
            continue

        ceiling = taxable_income
        if bracket.max_income is not None and bracket.max_income < ceiling:
            ceiling = bracket.max_income
        portion = ceiling - bracket.min_income
        if portion.is_negative:
            portion = Money.zero()

        tax = portion.apply_rate(bracket.rate)
        total_tax = total_tax + tax
        breakdown.append(
            BracketAllocation(
                min_income=bracket.min_income,
                max_income=bracket.max_income,
                rate=bracket.rate,
                taxable_amount=portion,
                tax_amount=tax,
            )
        )

    return AllocationResult(
        taxable_income=taxable_income,
        total_tax=total_tax,
        breakdown=tuple(breakdown),
    )


def effective_rate(total_tax: Money, taxable_income: Money) -> Percentage:
    """Return the average rate paid on ``taxable_income``."""

    return Percentage.from_ratio(total_tax, taxable_income)


__all__ = ["allocate", "effective_rate", "validate_partition"]
