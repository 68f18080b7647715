"""Pure state transitions over the corporation's notional accounts.

Investment returns flow in through update_accounts_from_returns; dividends and
salary flow out through deplete_accounts and process_salary_payment. Each
function returns a new NotionalAccounts and leaves its input untouched.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence

from model.ProjectionData import DividendFunding, InvestmentReturns, NotionalAccounts

logger = logging.getLogger(__name__)

CAPITAL = "capital"
ELIGIBLE = "eligible"
NON_ELIGIBLE = "non_eligible"

CAPITAL_GAINS_INCLUSION_RATE = 0.5


@dataclass(frozen=True)
class FundingSource:
    """One step of the dividend waterfall.

    capacity(accounts, refund_rate) is the largest gross dividend the source can
    pay from the notional accounts; draw(accounts, gross, refund) reduces the
    pools backing it. Cash leaving the portfolio is handled by the waterfall.
    """
    name: str
    kind: str
    capacity: Callable[[NotionalAccounts, float], float]
    draw: Callable[[NotionalAccounts, float, float], NotionalAccounts]
    refundable: bool = False
    retained_earnings: bool = False


@dataclass
class FundingDraw:
    source: str
    kind: str
    gross_dividend: float
    refund: float
    after_tax: float
    corporate_cost: float


@dataclass
class WaterfallResult:
    funding: DividendFunding
    accounts: NotionalAccounts
    rdtoh_refund: float = 0.0
    draws: List[FundingDraw] = field(default_factory=list)


@dataclass
class DividendCapacity:
    capital_dividend_capacity: float
    eligible_dividend_capacity: float
    non_eligible_dividend_capacity: float
    total_capacity: float


def _refund_capacity(pool: float, refund_rate: float) -> float:
    if refund_rate <= 0:
        return 0.0
    return max(0.0, pool) / refund_rate


DIVIDEND_WATERFALL = (
    FundingSource(
        name="Capital dividends (CDA)",
        kind=CAPITAL,
        capacity=lambda a, rr: max(0.0, a.cda),
        draw=lambda a, gross, refund: replace(a, cda=max(0.0, a.cda - gross)),
    ),
    FundingSource(
        name="Eligible dividends (eRDTOH + GRIP)",
        kind=ELIGIBLE,
        capacity=lambda a, rr: min(_refund_capacity(a.erdtoh, rr), max(0.0, a.grip)),
        draw=lambda a, gross, refund: replace(a, erdtoh=max(0.0, a.erdtoh - refund),
                                              grip=max(0.0, a.grip - gross)),
        refundable=True,
    ),
    FundingSource(
        name="Non-eligible dividends (nRDTOH)",
        kind=NON_ELIGIBLE,
        capacity=lambda a, rr: _refund_capacity(a.nrdtoh, rr),
        draw=lambda a, gross, refund: replace(a, nrdtoh=max(0.0, a.nrdtoh - refund)),
        refundable=True,
    ),
    # ITA s.129(1): non-eligible dividends also recover eRDTOH once nRDTOH is gone
    FundingSource(
        name="Non-eligible dividends (eRDTOH cascade)",
        kind=NON_ELIGIBLE,
        capacity=lambda a, rr: _refund_capacity(a.erdtoh, rr),
        draw=lambda a, gross, refund: replace(a, erdtoh=max(0.0, a.erdtoh - refund)),
        refundable=True,
    ),
    FundingSource(
        name="Eligible dividends (GRIP)",
        kind=ELIGIBLE,
        capacity=lambda a, rr: max(0.0, a.grip),
        draw=lambda a, gross, refund: replace(a, grip=max(0.0, a.grip - gross)),
    ),
    FundingSource(
        name="Non-eligible dividends (retained earnings)",
        kind=NON_ELIGIBLE,
        capacity=lambda a, rr: float('inf'),
        draw=lambda a, gross, refund: a,
        retained_earnings=True,
    ),
)


def withdraw_from_corporation(accounts: NotionalAccounts, amount: float) -> NotionalAccounts:
    """Take cash out of the portfolio, reducing ACB in proportion to the balance sold."""
    if amount <= 0:
        return accounts
    balance = accounts.corporate_investments
    acb = accounts.corporate_acb
    if balance > 0:
        acb -= acb * min(1.0, amount / balance)
    new_balance = balance - amount
    acb = min(max(0.0, acb), max(0.0, new_balance))
    return replace(accounts, corporate_investments=new_balance, corporate_acb=acb)


def update_accounts_from_returns(accounts: NotionalAccounts, returns: InvestmentReturns,
                                 passive_investment_rate: float) -> NotionalAccounts:
    """Apply a year of investment returns to the accounts.

    The portfolio grows by the total return less the non-refundable part of the
    tax on investment income; the refundable part is tracked in nRDTOH. ACB grows
    by everything except unrealized appreciation.
    """
    taxable_investment_income = (returns.foreign_income
                                 + returns.realized_capital_gain * CAPITAL_GAINS_INCLUSION_RATE)
    total_passive_tax = taxable_investment_income * passive_investment_rate
    non_refundable_tax = max(0.0, total_passive_tax - returns.nrdtoh_increase)
    after_tax_return = returns.total_return - non_refundable_tax

    return replace(
        accounts,
        cda=accounts.cda + returns.cda_increase,
        erdtoh=accounts.erdtoh + returns.erdtoh_increase,
        nrdtoh=accounts.nrdtoh + returns.nrdtoh_increase,
        grip=accounts.grip + returns.grip_increase,
        corporate_investments=accounts.corporate_investments + after_tax_return,
        corporate_acb=max(0.0, accounts.corporate_acb + after_tax_return - returns.unrealized_capital_gain),
    )


def deposit_to_corporation(accounts: NotionalAccounts, amount: float) -> NotionalAccounts:
    """Add after-tax cash to the portfolio.

    Deposited cash is fully cost-based, but only the part that lifts the balance
    above zero buys securities; the rest repays an overdraft. A negative amount
    is a withdrawal.
    """
    if amount < 0:
        return withdraw_from_corporation(accounts, -amount)
    balance = accounts.corporate_investments + amount
    acb = min(accounts.corporate_acb + amount, max(0.0, balance))
    return replace(accounts, corporate_investments=balance, corporate_acb=acb)


def process_salary_payment(accounts: NotionalAccounts, salary: float, employer_cost: float) -> NotionalAccounts:
    """Pay a salary and the employer's payroll contributions out of the corporation."""
    return withdraw_from_corporation(accounts, salary + employer_cost)


def dividend_capacity(accounts: NotionalAccounts, refund_rate: float) -> DividendCapacity:
    """Gross dividends the notional accounts can support before touching retained earnings.

    Each waterfall source is drawn to its full capacity in order, so pools shared
    between sources (GRIP, eRDTOH) are only counted once.
    """
    totals = {CAPITAL: 0.0, ELIGIBLE: 0.0, NON_ELIGIBLE: 0.0}
    for source in DIVIDEND_WATERFALL:
        if source.retained_earnings:
            continue
        capacity = source.capacity(accounts, refund_rate)
        if capacity <= 0:
            continue
        refund = capacity * refund_rate if source.refundable else 0.0
        accounts = source.draw(accounts, capacity, refund)
        totals[source.kind] += capacity
    return DividendCapacity(
        capital_dividend_capacity=totals[CAPITAL],
        eligible_dividend_capacity=totals[ELIGIBLE],
        non_eligible_dividend_capacity=totals[NON_ELIGIBLE],
        total_capacity=sum(totals.values()),
    )


def deplete_accounts(required_income: float, accounts: NotionalAccounts, refund_rate: float,
                     eligible_effective_rate: float, non_eligible_effective_rate: float,
                     allow_retained_earnings: bool = False, additional_cash: float = 0.0,
                     sources: Optional[Sequence[FundingSource]] = None) -> WaterfallResult:
    """Fund an after-tax amount with dividends, in waterfall priority order.

    Each source pays the gross dividend that would cover the remaining need at
    its effective personal rate, capped by the source's capacity and by the cash
    the corporation has left. Refundable sources only cost the corporation
    (1 - refund_rate) per dollar paid.

    Args:
        required_income: After-tax amount to fund.
        accounts: Accounts before the payout; not modified.
        refund_rate: RDTOH dividend refund rate.
        eligible_effective_rate: Personal tax rate on eligible dividends.
        non_eligible_effective_rate: Personal tax rate on non-eligible dividends.
        allow_retained_earnings: Whether to pay non-eligible dividends from
            retained earnings once the notional accounts are exhausted.
        additional_cash: Cash available beyond the portfolio (this year's
            after-tax business income).
        sources: Waterfall order; defaults to DIVIDEND_WATERFALL.

    Returns:
        WaterfallResult with the funding breakdown and the updated accounts.
    """
    sources = DIVIDEND_WATERFALL if sources is None else sources
    rates = {CAPITAL: 0.0, ELIGIBLE: eligible_effective_rate, NON_ELIGIBLE: non_eligible_effective_rate}

    remaining = required_income
    cash = max(0.0, accounts.corporate_investments) + max(0.0, additional_cash)
    totals = {CAPITAL: 0.0, ELIGIBLE: 0.0, NON_ELIGIBLE: 0.0}
    regular = 0.0
    after_tax_total = 0.0
    total_refund = 0.0
    draws = []

    for source in sources:
        if remaining <= 0 or cash <= 0:
            break
        if source.retained_earnings and not allow_retained_earnings:
            continue

        capacity = source.capacity(accounts, refund_rate)
        if capacity <= 0:
            continue

        rate = rates[source.kind]
        refund_share = refund_rate if source.refundable else 0.0
        needed = remaining / (1 - rate) if rate < 1 else capacity
        cost_per_dollar = 1 - refund_share
        cash_cap = cash / cost_per_dollar if cost_per_dollar > 0 else capacity
        gross = min(needed, capacity, cash_cap)
        if gross <= 0:
            continue

        refund = gross * refund_share
        after_tax = gross * (1 - rate) if rate < 1 else 0.0
        cost = gross - refund

        accounts = withdraw_from_corporation(source.draw(accounts, gross, refund), cost)
        cash -= cost
        remaining -= after_tax
        after_tax_total += after_tax
        total_refund += refund
        totals[source.kind] += gross
        if source.kind != CAPITAL and not source.refundable:
            regular += gross

        draws.append(FundingDraw(source.name, source.kind, gross, refund, after_tax, cost))
        logger.debug("%s: gross %.2f, refund %.2f, after-tax %.2f", source.name, gross, refund, after_tax)

    funding = DividendFunding(
        capital_dividends=totals[CAPITAL],
        eligible_dividends=totals[ELIGIBLE],
        non_eligible_dividends=totals[NON_ELIGIBLE],
        regular_dividends=regular,
        gross_dividends=totals[CAPITAL] + totals[ELIGIBLE] + totals[NON_ELIGIBLE],
        after_tax_income=after_tax_total,
    )
    return WaterfallResult(funding=funding, accounts=accounts, rdtoh_refund=total_refund, draws=draws)
