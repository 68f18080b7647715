"""Corporate tax on active business income and the passive-income SBD grind.

Every $1 of adjusted aggregate investment income (AAII) above $50,000 reduces
the $500,000 small business limit by $5, so the limit is gone at $150,000.
"""

from model.ProjectionData import GrindResult

SBD_LIMIT = 500000
AAII_THRESHOLD = 50000
GRIND_RATIO = 5
CAPITAL_GAINS_INCLUSION_RATE = 0.5


def calculate_reduced_sbd_limit(aaii: float) -> float:
    excess = max(0.0, aaii - AAII_THRESHOLD)
    return max(0.0, SBD_LIMIT - excess * GRIND_RATIO)


def calculate_aaii(foreign_income: float, realized_capital_gain: float, other_passive_income: float = 0.0) -> float:
    """AAII counts interest, foreign dividends and taxable capital gains.

    Canadian eligible dividends are excluded since they flow out through GRIP.
    """
    return foreign_income + realized_capital_gain * CAPITAL_GAINS_INCLUSION_RATE + other_passive_income


def calculate_passive_income_grind(passive_income: float, active_income: float,
                                   small_business_rate: float, general_rate: float) -> GrindResult:
    """Work out how far passive income has ground down the small business limit.

    Args:
        passive_income: Adjusted aggregate investment income for the year.
        active_income: Active business income eligible for the small business rate.
        small_business_rate: Combined small business rate.
        general_rate: Combined general rate.

    Returns:
        GrindResult; additional_tax_from_grind is the extra corporate tax from
        active income pushed from the small business rate to the general rate.
    """
    excess = max(0.0, passive_income - AAII_THRESHOLD)
    reduction = min(SBD_LIMIT, excess * GRIND_RATIO)
    reduced_limit = max(0.0, SBD_LIMIT - reduction)
    grind_percentage = min(100.0, reduction / SBD_LIMIT * 100)
    affected_income = min(active_income, reduction)
    additional_tax = max(0.0, affected_income * (general_rate - small_business_rate))

    return GrindResult(
        total_passive_income=passive_income,
        excess_passive_income=excess,
        sbd_reduction=reduction,
        reduced_sbd_limit=reduced_limit,
        is_fully_grounded=reduced_limit == 0,
        grind_percentage=grind_percentage,
        additional_tax_from_grind=additional_tax,
    )


def calculate_active_income_tax(taxable_business_income: float, sbd_limit: float,
                                small_business_rate: float, general_rate: float) -> float:
    if taxable_business_income <= 0:
        return 0.0
    at_small_business_rate = min(taxable_business_income, sbd_limit)
    at_general_rate = max(0.0, taxable_business_income - sbd_limit)
    return at_small_business_rate * small_business_rate + at_general_rate * general_rate


def calculate_passive_tax(taxable_investment_income: float, passive_investment_rate: float) -> float:
    return max(0.0, taxable_investment_income) * passive_investment_rate
