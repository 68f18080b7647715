"""Run the same inputs through preset salary strategies and pick winners.

Only the salary strategy changes between runs; province, income needs,
balances, spouse and IPP settings are kept as entered.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from calc.projection_calculator import ProjectionCalculator
from model.ProjectionData import ProjectionSummary
from model.UserInputs import UserInputs

CORPORATE_LIQUIDATION_RATE = 0.40  # Non-eligible dividend rate on winding up
DEFAULT_WITHDRAWAL_RATE = 0.35
LOWER_RATE_REDUCTION = 0.10
LOWER_RATE_FLOOR = 0.20
TAX_SCORE_WEIGHT = 0.6
BALANCE_SCORE_WEIGHT = 0.4


@dataclass
class AfterTaxWealth:
    """Wealth if everything were liquidated at the end of the horizon.

    Registered balances held before the projection are left out; they are the
    same under every strategy.
    """
    at_current_rate: float
    at_lower_rate: float
    at_top_rate: float
    current_rrsp_withdrawal_rate: float
    lower_rrsp_withdrawal_rate: float
    top_rrsp_withdrawal_rate: float
    corporate_liquidation_rate: float = CORPORATE_LIQUIDATION_RATE


@dataclass
class StrategyResult:
    id: str
    label: str
    description: str
    summary: ProjectionSummary
    tax_savings: float = 0.0  # vs best overall; negative pays more tax
    balance_difference: float = 0.0
    rrsp_room_difference: float = 0.0
    after_tax_wealth: Optional[AfterTaxWealth] = None
    is_current_setup: bool = False


@dataclass
class StrategyComparison:
    strategies: List[StrategyResult] = field(default_factory=list)
    lowest_tax: str = ""
    highest_balance: str = ""
    best_overall: str = ""

    def get_strategy(self, strategy_id: str) -> StrategyResult:
        for strategy in self.strategies:
            if strategy.id == strategy_id:
                return strategy
        raise ValueError(f"No strategy named '{strategy_id}' in this comparison")


def calculate_after_tax_wealth(summary: ProjectionSummary, top_rate: float,
                               current_rate: float) -> AfterTaxWealth:
    lower_rate = max(current_rate - LOWER_RATE_REDUCTION, LOWER_RATE_FLOOR)
    base_wealth = summary.total_compensation - summary.total_tax
    corporate = summary.final_corporate_balance * (1 - CORPORATE_LIQUIDATION_RATE)
    rrsp = summary.total_rrsp_contributions

    return AfterTaxWealth(
        at_current_rate=base_wealth + rrsp * (1 - current_rate) + corporate,
        at_lower_rate=base_wealth + rrsp * (1 - lower_rate) + corporate,
        at_top_rate=base_wealth + rrsp * (1 - top_rate) + corporate,
        current_rrsp_withdrawal_rate=current_rate,
        lower_rrsp_withdrawal_rate=lower_rate,
        top_rrsp_withdrawal_rate=top_rate,
    )


def _score(summary: ProjectionSummary, max_tax: float, max_balance: float) -> float:
    score = 0.0
    if max_tax > 0:
        score += (1 - summary.total_tax / max_tax) * TAX_SCORE_WEIGHT
    if max_balance > 0:
        score += summary.final_corporate_balance / max_balance * BALANCE_SCORE_WEIGHT
    return score


def run_strategy_comparison(inputs: UserInputs,
                            calculator: Optional[ProjectionCalculator] = None) -> StrategyComparison:
    """Compare salary at YMPE, dividends only and the dynamic optimizer.

    When the user's own setup is a fixed salary or dividends only, it is run as
    a fourth strategy, "current-setup".

    Args:
        inputs: The user's inputs.
        calculator: Calculator to run projections with; a default one is built
            when omitted.

    Returns:
        StrategyComparison with results, diffs against the best overall
        strategy, and the winner ids.
    """
    calculator = calculator or ProjectionCalculator()
    provider = calculator.provider_for(inputs)
    first_year = provider.get_tax_year_data(inputs.starting_year, inputs.province)
    ympe = first_year.payroll.ympe

    definitions = []
    if (inputs.salary_strategy == "fixed" and inputs.fixed_salary_amount > 0) \
            or inputs.salary_strategy == "dividends-only":
        if inputs.salary_strategy == "dividends-only":
            description = "Your current dividends-only setup"
        else:
            description = f"Your current fixed salary of ${inputs.fixed_salary_amount:,.0f}"
        definitions.append(("current-setup", "My Current Setup", description, inputs, True))

    definitions.extend([
        ("salary-at-ympe", "Salary at YMPE",
         f"Fixed salary at ${ympe:,.0f} (maximizes CPP, generates RRSP room)",
         replace(inputs, salary_strategy="fixed", fixed_salary_amount=ympe), False),
        ("dividends-only", "Dividends Only",
         "Zero salary, all compensation via dividends (no CPP, no RRSP room)",
         replace(inputs, salary_strategy="dividends-only"), False),
        ("dynamic", "Dynamic Optimizer",
         "Notional accounts first, salary for the rest",
         replace(inputs, salary_strategy="dynamic"), False),
    ])

    results = []
    for strategy_id, label, description, strategy_inputs, is_current in definitions:
        summary = calculator.calculate(strategy_inputs)
        results.append(StrategyResult(strategy_id, label, description, summary, is_current_setup=is_current))

    lowest_tax = results[0]
    highest_balance = results[0]
    for result in results[1:]:
        if result.summary.total_tax < lowest_tax.summary.total_tax:
            lowest_tax = result
        if result.summary.final_corporate_balance > highest_balance.summary.final_corporate_balance:
            highest_balance = result

    max_tax = max(r.summary.total_tax for r in results)
    max_balance = max(r.summary.final_corporate_balance for r in results)
    best = results[0]
    for result in results[1:]:
        if _score(result.summary, max_tax, max_balance) > _score(best.summary, max_tax, max_balance):
            best = result

    for result in results:
        summary = result.summary
        result.tax_savings = best.summary.total_tax - summary.total_tax
        result.balance_difference = summary.final_corporate_balance - best.summary.final_corporate_balance
        result.rrsp_room_difference = summary.total_rrsp_room_generated - best.summary.total_rrsp_room_generated
        current_rate = summary.total_tax / summary.total_compensation if summary.total_compensation > 0 \
            else DEFAULT_WITHDRAWAL_RATE
        result.after_tax_wealth = calculate_after_tax_wealth(summary, first_year.top_combined_rate, current_rate)

    return StrategyComparison(
        strategies=results,
        lowest_tax=lowest_tax.id,
        highest_balance=highest_balance.id,
        best_overall=best.id,
    )
