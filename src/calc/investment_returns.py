"""Split a corporate portfolio's annual return into its tax characters.

Each asset class has an empirical income yield and a turnover-driven realized
gain; whatever is left of the total return is unrealized appreciation.
"""

from dataclasses import dataclass

from model.ProjectionData import InvestmentReturns

RDTOH_ON_ELIGIBLE_DIVIDENDS = 0.3833  # Part IV tax on Canadian dividends
NRDTOH_RATE = 0.3067  # Refundable portion of tax on investment income
FOREIGN_WITHHOLDING_RATE = 0.15
CAPITAL_GAINS_INCLUSION_RATE = 0.5


@dataclass(frozen=True)
class AssetClassRates:
    canadian_dividend_yield: float = 0.0
    foreign_dividend_yield: float = 0.0
    interest_yield: float = 0.0
    realized_gain_rate: float = 0.0  # Turnover-based, independent of price moves
    expected_return: float = 0.0


CANADIAN_EQUITY = AssetClassRates(canadian_dividend_yield=0.028, realized_gain_rate=0.003, expected_return=0.063)
US_EQUITY = AssetClassRates(foreign_dividend_yield=0.015, realized_gain_rate=0.003, expected_return=0.063)
INTERNATIONAL_EQUITY = AssetClassRates(foreign_dividend_yield=0.03, realized_gain_rate=0.004, expected_return=0.063)
FIXED_INCOME = AssetClassRates(interest_yield=0.0405, expected_return=0.0405)


def blended_return_rate(canadian_equity_percent: float, us_equity_percent: float,
                        international_equity_percent: float, fixed_income_percent: float) -> float:
    """Weighted expected return for an allocation given in percent."""
    return (canadian_equity_percent * CANADIAN_EQUITY.expected_return
            + us_equity_percent * US_EQUITY.expected_return
            + international_equity_percent * INTERNATIONAL_EQUITY.expected_return
            + fixed_income_percent * FIXED_INCOME.expected_return) / 100


def calculate_investment_returns(balance: float, return_rate: float,
                                 canadian_equity_percent: float, us_equity_percent: float,
                                 international_equity_percent: float,
                                 fixed_income_percent: float) -> InvestmentReturns:
    """Decompose a year's return on the corporate portfolio.

    Args:
        balance: Corporate investment balance at the start of the year.
        return_rate: Total expected return for the year.
        canadian_equity_percent: Allocation to Canadian equities (0-100).
        us_equity_percent: Allocation to US equities (0-100).
        international_equity_percent: Allocation to international equities (0-100).
        fixed_income_percent: Allocation to fixed income (0-100).

    Returns:
        InvestmentReturns with the income split and notional account increases.
    """
    if balance <= 0:
        return InvestmentReturns()

    weights = (
        (CANADIAN_EQUITY, canadian_equity_percent / 100),
        (US_EQUITY, us_equity_percent / 100),
        (INTERNATIONAL_EQUITY, international_equity_percent / 100),
        (FIXED_INCOME, fixed_income_percent / 100),
    )

    total_return = balance * return_rate
    canadian_dividends = sum(balance * w * rates.canadian_dividend_yield for rates, w in weights)
    foreign_dividends = sum(balance * w * rates.foreign_dividend_yield for rates, w in weights)
    interest = sum(balance * w * rates.interest_yield for rates, w in weights)
    realized_gain = sum(balance * w * rates.realized_gain_rate for rates, w in weights)

    foreign_income = foreign_dividends + interest
    unrealized_gain = max(0.0, total_return - canadian_dividends - foreign_income - realized_gain)

    taxable_gain = realized_gain * CAPITAL_GAINS_INCLUSION_RATE
    # Foreign tax credit reduces the refundable portion on foreign dividends
    nrdtoh_increase = max(0.0, (foreign_income + taxable_gain) * NRDTOH_RATE
                          - foreign_dividends * FOREIGN_WITHHOLDING_RATE)

    return InvestmentReturns(
        total_return=total_return,
        canadian_dividends=canadian_dividends,
        foreign_dividends=foreign_dividends,
        foreign_income=foreign_income,
        realized_capital_gain=realized_gain,
        unrealized_capital_gain=unrealized_gain,
        cda_increase=realized_gain * (1 - CAPITAL_GAINS_INCLUSION_RATE),
        nrdtoh_increase=nrdtoh_increase,
        erdtoh_increase=canadian_dividends * RDTOH_ON_ELIGIBLE_DIVIDENDS,
        grip_increase=canadian_dividends,
    )
