"""Renderer classes for displaying projection results.

Most renderers take the ProjectionSummary produced by ProjectionCalculator
and print a table or breakdown to stdout. The retirement and strategy
renderers take the RetirementOutlook and StrategyComparison built on top of
a projection. Table renderers accept an optional range of calendar years.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from model.ProjectionData import ProjectionSummary, YearlyResult
from model.field_metadata import get_short_name, get_field_value, wrap_header

logger = logging.getLogger(__name__)

# Table definitions shipped with the package, registered as extra output modes
CUSTOM_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config', 'custom.json')

LABEL_WIDTH = 40
YEAR_WIDTH = 6


def _banner(title: str, width: int) -> None:
    print()
    print("=" * width)
    print(f"{title:^{width}}")
    print("=" * width)


def _section(title: str, width: int = 60) -> None:
    print()
    print("-" * width)
    print(title)
    print("-" * width)


def _money(label: str, amount: float, width: int = 14) -> None:
    print(f"  {label + ':':<{LABEL_WIDTH}} ${amount:>{width},.2f}")


def _rate(label: str, rate: float, width: int = 15) -> None:
    print(f"  {label + ':':<{LABEL_WIDTH}} {rate:>{width}.2%}")


def _rule(width: int = LABEL_WIDTH) -> None:
    print(f"  {'-' * width}")


def format_multiline_headers(columns: List[Tuple[str, int]], year_width: int = YEAR_WIDTH) -> Tuple[List[str], str]:
    """Lay out column headers, wrapping long ones over several lines.

    Args:
        columns: (header_text, width) for each column after the Year column
        year_width: Width of the Year column

    Returns:
        Tuple of (header lines, separator line). Shorter headers are padded at
        the top so every header ends on the last line, next to "Year".
    """
    wrapped = [(wrap_header(header, width), width) for header, width in columns]
    depth = max((len(lines) for lines, _ in wrapped), default=1)

    header_lines = []
    for line_idx in range(depth):
        label = "Year" if line_idx == depth - 1 else ""
        line = f"  {label:<{year_width}}"
        for lines, width in wrapped:
            offset = line_idx - (depth - len(lines))
            text = lines[offset] if offset >= 0 else ""
            line += f" {text:>{width}}"
        header_lines.append(line)

    sep_line = f"  {'-' * year_width}" + "".join(f" {'-' * width}" for _, width in columns)
    return header_lines, sep_line


def _print_table_header(columns: List[Tuple[str, int]], year_width: int = YEAR_WIDTH) -> str:
    header_lines, sep_line = format_multiline_headers(columns, year_width)
    for line in header_lines:
        print(line)
    print(sep_line)
    return sep_line


def parse_year_range(year_range: str, data: ProjectionSummary) -> Tuple[int, int]:
    """Parse '2027', '2027-2029', '2028-' or '-2028' into (start, end).

    Open ends fall back to the projection's first or last year.

    Raises:
        ValueError: If a year is not an integer.
    """
    if '-' not in year_range:
        year = int(year_range)
        return year, year

    start, _, end = year_range.partition('-')
    return (int(start) if start else data.first_year,
            int(end) if end else data.last_year)


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data) -> None:
        """Print the data to stdout."""


class YearRangeRenderer(BaseRenderer):
    """Base for table renderers that show a range of projection years."""

    def __init__(self, start_year: Optional[int] = None, end_year: Optional[int] = None):
        self.start_year = start_year
        self.end_year = end_year

    def years_in_range(self, data: ProjectionSummary) -> List[YearlyResult]:
        start = self.start_year if self.start_year is not None else data.first_year
        end = self.end_year if self.end_year is not None else data.last_year
        return [yr for yr in data.yearly_results if start <= yr.calendar_year <= end]


class YearDetailsRenderer(BaseRenderer):
    """Full tax and cash-flow breakdown for one calendar year."""

    def __init__(self, tax_year: int):
        self.tax_year = tax_year

    def render(self, data: ProjectionSummary) -> None:
        try:
            yr = data.get_year(self.tax_year)
        except ValueError:
            print(f"No data available for year {self.tax_year}")
            return

        _banner(f"PROJECTION DETAILS FOR {self.tax_year}", 60)

        divs = yr.dividends
        _section("COMPENSATION")
        _money("Required After-Tax Income", yr.required_income)
        _money("Salary", yr.salary)
        for label, amount in (("Capital Dividends (CDA)", divs.capital_dividends),
                              ("Eligible Dividends", divs.eligible_dividends),
                              ("Non-Eligible Dividends", divs.non_eligible_dividends)):
            if amount > 0:
                _money(label, amount)
        _rule()
        _money("Total Compensation", yr.salary + divs.gross_dividends)

        _section("PERSONAL TAX")
        _money("Federal Tax", yr.federal_tax)
        _money("Provincial Tax", yr.provincial_tax)
        if yr.provincial_surtax > 0:
            _money("  incl. Provincial Surtax", yr.provincial_surtax)
        if yr.health_premium > 0:
            _money("Health Premium", yr.health_premium)
        _rule()
        _money("Total Personal Tax", yr.personal_tax)

        _section("PAYROLL")
        _money("CPP/QPP", yr.cpp)
        _money("CPP2/QPP2", yr.cpp2)
        _money("EI", yr.ei)
        if yr.qpip > 0:
            _money("QPIP", yr.qpip)
        _money("Employer Contributions", yr.employer_payroll_cost)
        if yr.employer_health_tax > 0:
            _money("Employer Health Tax", yr.employer_health_tax)

        _section("CORPORATE TAX")
        _money("Taxable Business Income", yr.taxable_business_income)
        _money("Tax on Active Income", yr.corporate_tax_on_active)
        _money("Tax on Investment Income", yr.corporate_tax_on_passive)
        _money("RDTOH Refund", yr.rdtoh_refund)
        grind = yr.passive_income_grind
        if grind and grind.sbd_reduction > 0:
            _money("Reduced SBD Limit", grind.reduced_sbd_limit)
            _money("Additional Tax from Grind", grind.additional_tax_from_grind)

        if yr.ipp:
            _section("INDIVIDUAL PENSION PLAN")
            _money("Contribution", yr.ipp.contribution)
            _money("Admin Costs", yr.ipp.admin_costs)
            _money("Pension Adjustment", yr.ipp.pension_adjustment)
            _money("Projected Annual Pension", yr.ipp.projected_annual_pension)

        if yr.spouse:
            sp = yr.spouse
            _section("SPOUSE")
            _money("Salary", sp.salary)
            _money("Dividends", sp.dividends.gross_dividends)
            _money("Personal Tax", sp.personal_tax)
            _money("After-Tax Income", sp.after_tax_income)

        _banner("SUMMARY", 60)
        _money("After-Tax Income", yr.after_tax_income)
        _money("Total Tax", yr.total_tax)
        _rate("Integrated Tax Rate", yr.effective_integrated_rate)
        _money("RRSP Room Generated", yr.rrsp_room_generated)
        if yr.rrsp_contribution > 0:
            _money("RRSP Contribution", yr.rrsp_contribution)
        if yr.tfsa_contribution > 0:
            _money("TFSA Contribution", yr.tfsa_contribution)
        _money("Corporate Balance (end of year)", yr.notional_accounts.corporate_investments)
        print("=" * 60)
        print()


class AnnualSummaryRenderer(YearRangeRenderer):
    """Year-by-year compensation and tax table, followed by projection totals."""

    WIDTH = 118

    def render(self, data: ProjectionSummary) -> None:
        _banner("ANNUAL COMPENSATION AND TAX SUMMARY", self.WIDTH)
        print()
        sep_line = _print_table_header([
            (get_short_name("salary"), 12),
            (get_short_name("dividends.gross_dividends"), 12),
            (get_short_name("personal_tax"), 12),
            (get_short_name("corporate_tax"), 12),
            (get_short_name("total_tax"), 12),
            (get_short_name("effective_integrated_rate"), 11),
            (get_short_name("after_tax_income"), 14),
            (get_short_name("notional_accounts.corporate_investments"), 14),
        ])

        totals = dict.fromkeys(("salary", "dividends", "personal", "corporate", "tax", "after_tax"), 0.0)
        last_balance = 0.0
        for yr in self.years_in_range(data):
            divs = yr.dividends.gross_dividends
            last_balance = yr.notional_accounts.corporate_investments
            print(f"  {yr.calendar_year:<6} ${yr.salary:>11,.0f} ${divs:>11,.0f} ${yr.personal_tax:>11,.0f} ${yr.corporate_tax:>11,.0f} ${yr.total_tax:>11,.0f} {yr.effective_integrated_rate:>11.1%} ${yr.after_tax_income:>13,.0f} ${last_balance:>13,.0f}")
            totals["salary"] += yr.salary
            totals["dividends"] += divs
            totals["personal"] += yr.personal_tax
            totals["corporate"] += yr.corporate_tax
            totals["tax"] += yr.total_tax
            totals["after_tax"] += yr.after_tax_income

        print(sep_line)
        compensation = totals["salary"] + totals["dividends"]
        overall_rate = totals["personal"] / compensation if compensation > 0 else 0
        print(f"  {'TOTAL':<6} ${totals['salary']:>11,.0f} ${totals['dividends']:>11,.0f} ${totals['personal']:>11,.0f} ${totals['corporate']:>11,.0f} ${totals['tax']:>11,.0f} {overall_rate:>11.1%} ${totals['after_tax']:>13,.0f} ${last_balance:>13,.0f}")
        print()

        _banner("PROJECTION SUMMARY", self.WIDTH)
        _money("Total Compensation", data.total_compensation, 18)
        _money("Total Personal Tax", data.total_personal_tax, 18)
        _money("Total Corporate Tax", data.total_corporate_tax, 18)
        _money("Total RDTOH Refunds", data.total_rdtoh_refund, 18)
        _money("Total Payroll Contributions", data.total_payroll_contributions, 18)
        _rate("Effective Tax Rate", data.effective_tax_rate, 19)
        _rate("Effective Compensation Rate", data.effective_compensation_rate, 19)
        _rate("Effective Passive Rate", data.effective_passive_rate, 19)
        _money("RRSP Room Generated", data.total_rrsp_room_generated, 18)
        if data.ipp:
            _money("IPP Contributions", data.ipp.total_contributions, 18)
            _money("IPP Pension at End", data.ipp.projected_annual_pension_at_end, 18)
        if data.spouse:
            _money("Spouse Compensation", data.spouse.total_salary + data.spouse.total_dividends, 18)
        _rule(60)
        _money("FINAL CORPORATE BALANCE", data.final_corporate_balance, 18)
        print("=" * self.WIDTH)
        print()


class NotionalAccountsRenderer(YearRangeRenderer):
    """End-of-year notional account and portfolio balances."""

    WIDTH = 112

    def render(self, data: ProjectionSummary) -> None:
        _banner("CORPORATE NOTIONAL ACCOUNTS", self.WIDTH)
        print()
        _print_table_header([
            (get_short_name("notional_accounts.cda"), 12),
            (get_short_name("notional_accounts.erdtoh"), 12),
            (get_short_name("notional_accounts.nrdtoh"), 12),
            (get_short_name("notional_accounts.grip"), 12),
            (get_short_name("rdtoh_refund"), 12),
            (get_short_name("investment_returns.total_return"), 12),
            (get_short_name("notional_accounts.corporate_investments"), 14),
            (get_short_name("notional_accounts.corporate_acb"), 14),
        ])

        for yr in self.years_in_range(data):
            acc = yr.notional_accounts
            print(f"  {yr.calendar_year:<6} ${acc.cda:>11,.0f} ${acc.erdtoh:>11,.0f} ${acc.nrdtoh:>11,.0f} ${acc.grip:>11,.0f} ${yr.rdtoh_refund:>11,.0f} ${yr.investment_returns.total_return:>11,.0f} ${acc.corporate_investments:>13,.0f} ${acc.corporate_acb:>13,.0f}")

        print()
        print("=" * self.WIDTH)
        print()


class RetirementRenderer(BaseRenderer):
    """CPP, OAS and the RRIF minimum withdrawal schedule."""

    def render(self, outlook) -> None:
        """Render the retirement outlook.

        Args:
            outlook: RetirementOutlook built from a projection
        """
        cpp = outlook.cpp
        oas = outlook.oas

        _banner("RETIREMENT OUTLOOK", 60)

        _section(f"CPP (starting at age {outlook.cpp_start_age})")
        _money("Base CPP", cpp.base_cpp)
        _money("Enhanced CPP", cpp.enhanced_cpp)
        _money("CPP2 Benefit", cpp.cpp2_benefit)
        _rule()
        _money("Annual CPP", cpp.total_annual_benefit)
        _money("Monthly CPP", cpp.monthly_benefit)
        print(f"  {'Contributory Months (after dropout):':<{LABEL_WIDTH}} {cpp.contributory_months:>15}")

        _section(f"OAS (starting at age {outlook.oas_start_age})")
        _money("Gross OAS", oas.gross_oas)
        _money("Recovery Tax", oas.clawback)
        _money("Net OAS", oas.net_oas)

        _section(f"RRIF MINIMUM WITHDRAWALS (from age {outlook.rrif_start_age})")
        _money("Balance at Conversion", outlook.rrsp_balance_at_conversion)
        if outlook.rrif_schedule:
            print()
            print(f"  {'Age':<6} {'Opening':>14} {'Withdrawal':>14} {'Closing':>14}")
            print(f"  {'-' * 6} {'-' * 14} {'-' * 14} {'-' * 14}")
            for year in outlook.rrif_schedule:
                print(f"  {year.age:<6} ${year.opening_balance:>13,.0f} ${year.withdrawal:>13,.0f} ${year.balance_after_growth:>13,.0f}")

        print()
        print("=" * 60)
        _money("First-Year Retirement Income", outlook.first_year_income)
        print("=" * 60)
        print()


class StrategyComparisonRenderer(BaseRenderer):
    """Side-by-side salary strategy comparison with winners."""

    WIDTH = 124

    def render(self, comparison) -> None:
        _banner("SALARY STRATEGY COMPARISON", self.WIDTH)
        print()
        print(f"  {'Strategy':<22} {'Salary':>13} {'Dividends':>13} {'Total Tax':>13} {'Eff Rate':>9} {'Corp Balance':>14} {'RRSP Room':>12} {'After-Tax Wealth':>18}")
        print(f"  {'-' * 22} {'-' * 13} {'-' * 13} {'-' * 13} {'-' * 9} {'-' * 14} {'-' * 12} {'-' * 18}")
        for result in comparison.strategies:
            s = result.summary
            wealth = result.after_tax_wealth.at_current_rate if result.after_tax_wealth else 0.0
            label = result.label + (" *" if result.id == comparison.best_overall else "")
            print(f"  {label:<22} ${s.total_salary:>12,.0f} ${s.total_dividends:>12,.0f} ${s.total_tax:>12,.0f} {s.effective_tax_rate:>9.1%} ${s.final_corporate_balance:>13,.0f} ${s.total_rrsp_room_generated:>11,.0f} ${wealth:>17,.0f}")

        print()
        for label, strategy_id in (("Lowest Tax:", comparison.lowest_tax),
                                   ("Highest Corporate Balance:", comparison.highest_balance),
                                   ("Best Overall (*):", comparison.best_overall)):
            print(f"  {label:<{LABEL_WIDTH}} {comparison.get_strategy(strategy_id).label}")

        _section("DIFFERENCE VS BEST OVERALL", self.WIDTH)
        for result in comparison.strategies:
            print(f"  {result.label:<22} {'Tax Savings:':<14} ${result.tax_savings:>12,.0f}   {'Balance:':<10} ${result.balance_difference:>12,.0f}   {'RRSP Room:':<12} ${result.rrsp_room_difference:>10,.0f}")
        print()
        print("=" * self.WIDTH)
        print()


class CustomRenderer(YearRangeRenderer):
    """A table of arbitrary YearlyResult fields, one row per year.

    Fields may be dotted paths into nested results (e.g.
    "notional_accounts.cda"); a path through a missing IPP or spouse shows
    N/A. Money columns are totalled; rates are not.
    """

    # Headers longer than this wrap onto several lines
    MAX_HEADER_WIDTH = 14

    def __init__(self, title: str, fields: List[str], start_year: Optional[int] = None,
                 end_year: Optional[int] = None, show_totals: bool = True):
        super().__init__(start_year, end_year)
        self.title = title
        self.fields = fields
        self.show_totals = show_totals

    @staticmethod
    def _is_rate(field: str) -> bool:
        return 'rate' in field.lower() or 'percentage' in field.lower()

    def _column_width(self, field: str) -> int:
        short_name = get_short_name(field)
        if len(short_name) > self.MAX_HEADER_WIDTH:
            return max(max(len(line) for line in wrap_header(short_name, self.MAX_HEADER_WIDTH)), 12)
        return max(len(short_name) + 2, 12)

    def _format_value(self, value: Any, field: str, width: int) -> str:
        if value is None:
            return f"{'N/A':>{width}}"
        if isinstance(value, bool):
            return f"{'Yes' if value else 'No':>{width}}"
        if isinstance(value, float):
            if self._is_rate(field):
                return f"{value:>{width}.1%}"
            return f"${value:>{width - 1},.0f}"
        if isinstance(value, int):
            return f"{value:>{width},}"
        return f"{str(value):>{width}}"

    def _is_totalled(self, field: str) -> bool:
        return not self._is_rate(field) and field not in ('year', 'calendar_year')

    def render(self, data: ProjectionSummary) -> None:
        widths = {field: self._column_width(field) for field in self.fields}
        total_width = max(YEAR_WIDTH + 2 + sum(widths.values()) + len(self.fields) * 2, len(self.title) + 10)

        _banner(self.title.upper(), total_width)
        print()
        sep_line = _print_table_header([(get_short_name(field), widths[field]) for field in self.fields])

        totals = dict.fromkeys(self.fields, 0.0)
        rows = self.years_in_range(data)
        for yr in rows:
            row = f"  {yr.calendar_year:<{YEAR_WIDTH}}"
            for field in self.fields:
                value = get_field_value(yr, field)
                row += f" {self._format_value(value, field, widths[field])}"
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    totals[field] += value
            print(row)

        if self.show_totals and rows:
            print(sep_line)
            total_row = f"  {'TOTAL':<{YEAR_WIDTH}}"
            for field in self.fields:
                width = widths[field]
                total_row += f" ${totals[field]:>{width - 1},.0f}" if self._is_totalled(field) else f" {'':>{width}}"
            print(total_row)

        print()
        print("=" * total_width)
        print()


def load_custom_renderers(config_path: str = CUSTOM_CONFIG_PATH) -> Dict[str, dict]:
    """Load custom table definitions keyed by mode name.

    A missing or unreadable file yields no custom modes.
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, 'r') as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not load custom renderers from %s: %s", config_path, e)
        return {}


def custom_renderer_factory(name: str, config: dict) -> Callable[..., CustomRenderer]:
    """Build a registry factory for one custom table definition.

    Args:
        name: Mode name, used as the title when the config has none
        config: Dict with 'fields', and optionally 'title' and 'show_totals'

    Returns:
        A callable taking (start_year, end_year) and returning a CustomRenderer
    """
    def factory(start_year: Optional[int] = None, end_year: Optional[int] = None) -> CustomRenderer:
        return CustomRenderer(config.get('title', name), config.get('fields', []),
                              start_year, end_year, config.get('show_totals', True))
    return factory


# Registry mapping mode names to renderer classes
RENDERER_REGISTRY = {
    'YearDetails': YearDetailsRenderer,
    'AnnualSummary': AnnualSummaryRenderer,
    'NotionalAccounts': NotionalAccountsRenderer,
    'Retirement': RetirementRenderer,
    'StrategyComparison': StrategyComparisonRenderer,
}

for _name, _config in load_custom_renderers().items():
    RENDERER_REGISTRY[_name] = custom_renderer_factory(_name, _config)
