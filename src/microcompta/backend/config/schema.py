"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class BracketConfig(ImmutableModel):
    """A single progressive income tax bracket as declared in YAML."""

    min_income: Decimal = Field(alias="min", max_digits=12, decimal_places=2)
    max_income: Decimal | None = Field(
        default=None, alias="max", max_digits=12, decimal_places=2
    )
    rate: Decimal = Field(max_digits=5, decimal_places=2)

    @model_validator(mode="after")
    def _validate_values(self) -> BracketConfig:
        if self.min_income < 0:
            raise ConfigurationError("Bracket lower bounds must be non-negative")
        if self.max_income is not None and self.max_income <= self.min_income:
            raise ConfigurationError("Bracket upper bounds must exceed lower bounds")
        if self.rate < 0 or self.rate > 100:
            raise ConfigurationError("Bracket rates must be between 0 and 100")
        return self


class DefaultRates(ImmutableModel):
    """Per-year default settings used when a user has not configured their own."""

    urssaf_rate: Decimal = Field(default=Decimal("22.00"), max_digits=5, decimal_places=2)
    estimated_tax_rate: Decimal = Field(
        default=Decimal("11.00"), max_digits=5, decimal_places=2
    )
    revenue_deduction_rate: Decimal = Field(
        default=Decimal("34.00"), max_digits=5, decimal_places=2
    )
    monthly_salary: Decimal = Field(
        default=Decimal("3000.00"), max_digits=12, decimal_places=2
    )
    tva_due_day: int = Field(default=19, ge=1, le=28)

    @model_validator(mode="after")
    def _validate_rates(self) -> DefaultRates:
        for label, value in {
            "urssaf_rate": self.urssaf_rate,
            "estimated_tax_rate": self.estimated_tax_rate,
            "revenue_deduction_rate": self.revenue_deduction_rate,
        }.items():
            if value < 0 or value > 100:
                raise ConfigurationError(f"Default {label} must be between 0 and 100")
        if self.monthly_salary < 0:
            raise ConfigurationError("Default monthly salary must be non-negative")
        return self


class YearConfiguration(ImmutableModel):
    """Complete configuration for a single tax year."""

    year: int
    brackets: Sequence[BracketConfig]
    defaults: DefaultRates = Field(default_factory=DefaultRates)
    meta: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_brackets(self) -> YearConfiguration:
        if not self.brackets:
            raise ConfigurationError(f"Year {self.year} declares no income tax brackets")
        return self


class TaxYearManifestEntry(ImmutableModel):
    """Manifest entry pointing at the configuration file for a year."""

    year: int
    filename: str | None = None
    description: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "BracketConfig",
    "ConfigurationError",
    "DefaultRates",
    "ImmutableModel",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "ValidationError",
    "YearConfiguration",
]
