"""Helpers shared by the reference-data loaders for projecting amounts forward."""

import math


def round_dollars(amount: float) -> float:
    """Round half up to the nearest dollar."""
    return float(math.floor(amount + 0.5))


def round_cents(amount: float) -> float:
    """Round half up to the nearest cent."""
    return math.floor(amount * 100 + 0.5) / 100


def inflation_factor(rate: float, years: int) -> float:
    """Compound growth factor for the given number of years."""
    return (1 + rate) ** max(0, years)


def index_threshold(amount, factor: float):
    """Project a threshold, leaving zero and missing thresholds untouched."""
    if amount is None or amount == 0:
        return amount
    return round_dollars(amount * factor)


def validate_tax_years(tax_years: list, file_name: str) -> list:
    """Sort a reference file's taxYears entries and check they are sequential.

    Args:
        tax_years: The raw 'taxYears' list from a reference file.
        file_name: Name used in error messages.

    Returns:
        The entries sorted by year.
    """
    if not tax_years:
        raise ValueError(f"{file_name} must contain a 'taxYears' array with at least one entry")

    # Sort tax years to ensure they're in order
    tax_years = sorted(tax_years, key=lambda x: x["year"])

    # Validate that years are sequential
    for i in range(1, len(tax_years)):
        if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
            raise ValueError(f"Tax years must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")
    return tax_years
