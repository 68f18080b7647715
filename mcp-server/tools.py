"""CCPC Planner Tools for MCP Server.

This module provides the tool implementations that wrap the projection
calculators and expose their data through MCP.
"""

import os
import sys
import json
import logging
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.projection_calculator import ProjectionCalculator
from calc.retirement_outlook import project_retirement_outlook
from calc.strategy_comparison import run_strategy_comparison
from model.ProjectionData import ProjectionSummary, YearlyResult
from model.UserInputs import UserInputs
from model.field_metadata import get_description, get_field_value
from tax.TaxYearProvider import TaxYearProvider

logger = logging.getLogger(__name__)


def _round(value):
    return round(value, 2) if isinstance(value, float) else value


# metric key -> (description, get_projection_summary key, higher is better)
COMPARISON_METRICS = {
    "total_compensation": ("Total Compensation", "total_compensation", True),
    "total_tax": ("Total Personal + Corporate Tax", "total_tax", False),
    "personal_tax": ("Total Personal Tax", "total_personal_tax", False),
    "corporate_tax": ("Total Corporate Tax", "total_corporate_tax", False),
    "effective_tax_rate": ("Effective Tax Rate (%)", "effective_tax_rate", False),
    "final_corporate_balance": ("Final Corporate Balance", "final_corporate_balance", True),
    "rrsp_room": ("RRSP Room Generated", "total_rrsp_room_generated", True),
}


def _better(v1: float, v2: float, higher_is_better: bool) -> int:
    """1 or 2 for the better value, 0 for a tie."""
    if v1 == v2:
        return 0
    return 1 if (v1 > v2) == higher_is_better else 2


class PlannerTools:
    """Tools that wrap the projection calculators for MCP access."""

    def __init__(self, base_path: str, program_name: str):
        """Initialize with paths and run the projection.

        Args:
            base_path: Path to the ccpc-comp-planner root directory
            program_name: Name of the program folder in input-parameters
        """
        self.base_path = base_path
        self.program_name = program_name
        self.spec = self._load_spec()
        self.inputs = UserInputs.from_spec(self.spec)
        self._init_calculators()
        self._calculate_projection()

    def _load_spec(self) -> dict:
        """Load the program specification."""
        spec_path = os.path.join(
            self.base_path, 'input-parameters', self.program_name, 'spec.json'
        )
        with open(spec_path, 'r') as f:
            return json.load(f)

    def _init_calculators(self):
        """Initialize the tax data provider and projection calculator."""
        self.reference_dir = os.path.join(self.base_path, 'reference')
        self.provider = TaxYearProvider(self.inputs.expected_inflation_rate, self.inputs.final_year,
                                        self.reference_dir)
        self.calculator = ProjectionCalculator(self.provider)

        self.first_year = self.inputs.starting_year
        self.last_year = self.inputs.final_year

    def _calculate_projection(self):
        """Run the multi-year projection."""
        self.summary: ProjectionSummary = self.calculator.calculate(self.inputs)

    def _year(self, year: int) -> Optional[YearlyResult]:
        try:
            return self.summary.get_year(year)
        except ValueError:
            return None

    def _out_of_range(self, year: int) -> dict:
        return {"error": f"Year {year} is not in the projection ({self.first_year}-{self.last_year})"}

    def get_program_overview(self) -> dict:
        """Get an overview of the projection inputs."""
        inputs = self.inputs
        overview = {
            "program_name": self.program_name,
            "province": inputs.province,
            "province_name": self.provider.province_name(inputs.province),
            "planning_horizon": {
                "first_year": self.first_year,
                "last_year": self.last_year,
                "years": inputs.planning_horizon
            },
            "compensation": {
                "required_income": inputs.required_income,
                "inflate_spending_needs": inputs.inflate_spending_needs,
                "salary_strategy": inputs.salary_strategy,
                "fixed_salary_amount": inputs.fixed_salary_amount
            },
            "corporation": {
                "investment_balance": inputs.corporate_investment_balance,
                "annual_active_income": inputs.annual_corporate_retained_earnings,
                "cda_balance": inputs.cda_balance,
                "erdtoh_balance": inputs.erdtoh_balance,
                "nrdtoh_balance": inputs.nrdtoh_balance,
                "grip_balance": inputs.grip_balance
            },
            "options": {
                "maximize_tfsa": inputs.maximize_tfsa,
                "contribute_to_rrsp": inputs.contribute_to_rrsp,
                "consider_ipp": inputs.consider_ipp,
                "has_spouse": inputs.has_spouse
            },
            "inflation_assumption": self.provider.inflation_rate
        }
        return overview

    def list_available_years(self) -> dict:
        """List all years in the projection."""
        years = [yr.calendar_year for yr in self.summary.yearly_results]
        salary_years = [yr.calendar_year for yr in self.summary.yearly_results if yr.salary > 0]
        return {
            "years": years,
            "salary_years": salary_years,
            "total_years": len(years)
        }

    def get_annual_summary(self, year: int) -> dict:
        """Get compensation and tax summary for a specific year."""
        yr = self._year(year)
        if yr is None:
            return self._out_of_range(year)

        return {
            "year": year,
            "required_income": round(yr.required_income, 2),
            "salary": round(yr.salary, 2),
            "dividends": round(yr.dividends.gross_dividends, 2),
            "personal_tax": round(yr.personal_tax, 2),
            "corporate_tax": round(yr.corporate_tax, 2),
            "payroll": round(yr.cpp + yr.cpp2 + yr.ei + yr.qpip, 2),
            "total_tax": round(yr.total_tax, 2),
            "effective_integrated_rate": round(yr.effective_integrated_rate * 100, 1),
            "after_tax_income": round(yr.after_tax_income, 2),
            "corporate_balance": round(yr.notional_accounts.corporate_investments, 2)
        }

    def get_tax_details(self, year: int) -> dict:
        """Get detailed personal, payroll and corporate tax for a specific year."""
        yr = self._year(year)
        if yr is None:
            return self._out_of_range(year)

        details = {
            "year": year,
            "dividends": {
                "capital": round(yr.dividends.capital_dividends, 2),
                "eligible": round(yr.dividends.eligible_dividends, 2),
                "non_eligible": round(yr.dividends.non_eligible_dividends, 2)
            },
            "personal": {
                "federal_tax": round(yr.federal_tax, 2),
                "provincial_tax": round(yr.provincial_tax, 2),
                "provincial_surtax": round(yr.provincial_surtax, 2),
                "health_premium": round(yr.health_premium, 2),
                "total_personal_tax": round(yr.personal_tax, 2)
            },
            "payroll": {
                "cpp": round(yr.cpp, 2),
                "cpp2": round(yr.cpp2, 2),
                "ei": round(yr.ei, 2),
                "qpip": round(yr.qpip, 2),
                "employer_cost": round(yr.employer_payroll_cost, 2),
                "employer_health_tax": round(yr.employer_health_tax, 2)
            },
            "corporate": {
                "taxable_business_income": round(yr.taxable_business_income, 2),
                "tax_on_active_income": round(yr.corporate_tax_on_active, 2),
                "tax_on_passive_income": round(yr.corporate_tax_on_passive, 2),
                "rdtoh_refund": round(yr.rdtoh_refund, 2)
            }
        }
        grind = yr.passive_income_grind
        if grind:
            details["corporate"]["reduced_sbd_limit"] = round(grind.reduced_sbd_limit, 2)
            details["corporate"]["additional_tax_from_grind"] = round(grind.additional_tax_from_grind, 2)
        if yr.spouse:
            details["spouse"] = {
                "salary": round(yr.spouse.salary, 2),
                "dividends": round(yr.spouse.dividends.gross_dividends, 2),
                "personal_tax": round(yr.spouse.personal_tax, 2),
                "payroll": round(yr.spouse.cpp + yr.spouse.cpp2 + yr.spouse.ei + yr.spouse.qpip, 2)
            }
        return details

    def get_notional_accounts(self, year: Optional[int] = None) -> dict:
        """Get end-of-year notional account balances."""
        def balances(yr: YearlyResult) -> dict:
            acc = yr.notional_accounts
            return {
                "cda": round(acc.cda, 2),
                "erdtoh": round(acc.erdtoh, 2),
                "nrdtoh": round(acc.nrdtoh, 2),
                "grip": round(acc.grip, 2),
                "corporate_investments": round(acc.corporate_investments, 2),
                "corporate_acb": round(acc.corporate_acb, 2)
            }

        if year is not None:
            yr = self._year(year)
            if yr is None:
                return self._out_of_range(year)
            return {"year": year, "accounts": balances(yr)}

        return {
            "yearly_accounts": [
                {"year": yr.calendar_year, **balances(yr)}
                for yr in self.summary.yearly_results
            ]
        }

    def get_projection_summary(self) -> dict:
        """Get totals and effective rates across the projection."""
        s = self.summary
        result = {
            "total_compensation": round(s.total_compensation, 2),
            "total_salary": round(s.total_salary, 2),
            "total_dividends": round(s.total_dividends, 2),
            "total_personal_tax": round(s.total_personal_tax, 2),
            "total_corporate_tax": round(s.total_corporate_tax, 2),
            "total_rdtoh_refund": round(s.total_rdtoh_refund, 2),
            "total_payroll_contributions": round(s.total_payroll_contributions, 2),
            "total_tax": round(s.total_tax, 2),
            "effective_tax_rate": round(s.effective_tax_rate * 100, 1),
            "effective_compensation_rate": round(s.effective_compensation_rate * 100, 1),
            "effective_passive_rate": round(s.effective_passive_rate * 100, 1),
            "final_corporate_balance": round(s.final_corporate_balance, 2),
            "total_rrsp_room_generated": round(s.total_rrsp_room_generated, 2),
            "average_annual_income": round(s.average_annual_income, 2)
        }
        if s.ipp:
            result["ipp"] = {
                "total_contributions": round(s.ipp.total_contributions, 2),
                "total_admin_costs": round(s.ipp.total_admin_costs, 2),
                "projected_annual_pension_at_end": round(s.ipp.projected_annual_pension_at_end, 2)
            }
        if s.spouse:
            result["spouse"] = {
                "total_salary": round(s.spouse.total_salary, 2),
                "total_dividends": round(s.spouse.total_dividends, 2),
                "total_personal_tax": round(s.spouse.total_personal_tax, 2)
            }
        return result

    def get_retirement_outlook(self) -> dict:
        """Get projected CPP, OAS and RRIF minimums."""
        outlook = project_retirement_outlook(self.inputs, self.summary, self.provider, self.reference_dir)
        return {
            "cpp": {
                "start_age": outlook.cpp_start_age,
                "annual_benefit": round(outlook.cpp.total_annual_benefit, 2),
                "monthly_benefit": round(outlook.cpp.monthly_benefit, 2),
                "base": round(outlook.cpp.base_cpp, 2),
                "enhanced": round(outlook.cpp.enhanced_cpp, 2),
                "cpp2": round(outlook.cpp.cpp2_benefit, 2)
            },
            "oas": {
                "start_age": outlook.oas_start_age,
                "gross": round(outlook.oas.gross_oas, 2),
                "clawback": round(outlook.oas.clawback, 2),
                "net": round(outlook.oas.net_oas, 2)
            },
            "rrif": {
                "start_age": outlook.rrif_start_age,
                "balance_at_conversion": round(outlook.rrsp_balance_at_conversion, 2),
                "schedule": [
                    {"age": y.age, "withdrawal": round(y.withdrawal, 2), "balance": round(y.balance_after_growth, 2)}
                    for y in outlook.rrif_schedule
                ]
            },
            "first_year_income": round(outlook.first_year_income, 2)
        }

    def compare_years(self, year1: int, year2: int) -> dict:
        """Compare key metrics between two years."""
        yr1 = self._year(year1)
        if yr1 is None:
            return self._out_of_range(year1)
        yr2 = self._year(year2)
        if yr2 is None:
            return self._out_of_range(year2)

        def compare_metric(v1: float, v2: float) -> dict:
            diff = v2 - v1
            pct = (diff / v1 * 100) if v1 != 0 else 0
            return {
                f"year_{year1}": round(v1, 2),
                f"year_{year2}": round(v2, 2),
                "difference": round(diff, 2),
                "percent_change": round(pct, 1)
            }

        return {
            "comparison": f"{year1} vs {year2}",
            "salary": compare_metric(yr1.salary, yr2.salary),
            "dividends": compare_metric(yr1.dividends.gross_dividends, yr2.dividends.gross_dividends),
            "personal_tax": compare_metric(yr1.personal_tax, yr2.personal_tax),
            "total_tax": compare_metric(yr1.total_tax, yr2.total_tax),
            "after_tax_income": compare_metric(yr1.after_tax_income, yr2.after_tax_income),
            "corporate_balance": compare_metric(yr1.notional_accounts.corporate_investments,
                                                yr2.notional_accounts.corporate_investments)
        }

    def search_projection_data(self, query: str, year: Optional[int] = None) -> dict:
        """Search for projection metrics based on a query."""
        query_lower = query.lower()

        # Map common terms to YearlyResult field paths
        term_mapping = {
            "salary": ["salary"],
            "dividend": ["dividends.capital_dividends", "dividends.eligible_dividends",
                         "dividends.non_eligible_dividends", "dividends.gross_dividends"],
            "capital dividend": ["dividends.capital_dividends", "notional_accounts.cda"],
            "federal": ["federal_tax"],
            "provincial": ["provincial_tax", "provincial_surtax"],
            "surtax": ["provincial_surtax"],
            "health": ["health_premium", "employer_health_tax"],
            "personal tax": ["personal_tax"],
            "cpp": ["cpp", "cpp2"],
            "qpp": ["cpp", "cpp2"],
            "ei": ["ei"],
            "qpip": ["qpip"],
            "payroll": ["cpp", "cpp2", "ei", "qpip", "employer_payroll_cost"],
            "corporate": ["corporate_tax_on_active", "corporate_tax_on_passive", "corporate_tax",
                          "notional_accounts.corporate_investments"],
            "passive": ["corporate_tax_on_passive", "investment_returns.total_return"],
            "grind": ["passive_income_grind.reduced_sbd_limit", "passive_income_grind.additional_tax_from_grind"],
            "rdtoh": ["notional_accounts.erdtoh", "notional_accounts.nrdtoh", "rdtoh_refund"],
            "refund": ["rdtoh_refund"],
            "cda": ["notional_accounts.cda"],
            "grip": ["notional_accounts.grip"],
            "acb": ["notional_accounts.corporate_acb"],
            "balance": ["notional_accounts.corporate_investments"],
            "return": ["investment_returns.total_return", "investment_returns.realized_capital_gain"],
            "rrsp": ["rrsp_room_generated", "rrsp_contribution"],
            "tfsa": ["tfsa_contribution"],
            "resp": ["resp_contribution"],
            "debt": ["debt_paydown"],
            "ipp": ["ipp.contribution", "ipp.admin_costs", "ipp.pension_adjustment"],
            "pension": ["ipp.contribution", "ipp.pension_adjustment"],
            "spouse": ["spouse.salary", "spouse.dividends.gross_dividends", "spouse.personal_tax"],
            "after tax": ["after_tax_income"],
            "take home": ["after_tax_income"],
            "total tax": ["total_tax"],
            "rate": ["effective_integrated_rate"]
        }

        matched_keys = []
        for term, keys in term_mapping.items():
            if term in query_lower:
                for key in keys:
                    if key not in matched_keys:
                        matched_keys.append(key)

        if not matched_keys:
            return {
                "query": query,
                "message": "No matching projection metrics found. Try terms like: salary, dividend, CPP, EI, "
                           "corporate, passive, grind, RDTOH, CDA, GRIP, RRSP, TFSA, IPP, spouse, after tax, etc."
            }

        def collect(yr: YearlyResult) -> dict:
            found = {}
            for key in matched_keys:
                value = get_field_value(yr, key)
                if value is not None:
                    found[key] = _round(value)
            return found

        if year is not None:
            yr = self._year(year)
            if yr is None:
                return self._out_of_range(year)
            return {
                "year": year,
                "query": query,
                "results": collect(yr),
                "descriptions": {k: get_description(k) for k in matched_keys if get_description(k)}
            }

        all_years_data = {"query": query, "years": {}}
        for yr in self.summary.yearly_results:
            year_data = collect(yr)
            if year_data:
                all_years_data["years"][yr.calendar_year] = year_data
        return all_years_data

    def compare_strategies(self) -> dict:
        """Compare salary at YMPE, dividends only and the dynamic strategy for this program."""
        comparison = run_strategy_comparison(self.inputs, self.calculator)
        strategies = []
        for result in comparison.strategies:
            s = result.summary
            wealth = result.after_tax_wealth
            strategies.append({
                "id": result.id,
                "label": result.label,
                "description": result.description,
                "is_current_setup": result.is_current_setup,
                "total_salary": round(s.total_salary, 2),
                "total_dividends": round(s.total_dividends, 2),
                "total_tax": round(s.total_tax, 2),
                "final_corporate_balance": round(s.final_corporate_balance, 2),
                "total_rrsp_room_generated": round(s.total_rrsp_room_generated, 2),
                "vs_best_overall": {
                    "tax_savings": round(result.tax_savings, 2),
                    "balance_difference": round(result.balance_difference, 2),
                    "rrsp_room_difference": round(result.rrsp_room_difference, 2)
                },
                "after_tax_wealth": {
                    "at_current_rate": round(wealth.at_current_rate, 2),
                    "at_lower_rate": round(wealth.at_lower_rate, 2),
                    "at_top_rate": round(wealth.at_top_rate, 2)
                }
            })
        return {
            "strategies": strategies,
            "winner": {
                "lowest_tax": comparison.lowest_tax,
                "highest_balance": comparison.highest_balance,
                "best_overall": comparison.best_overall
            }
        }


class MultiProgramTools:
    """Manager for multiple projection programs.

    Discovers all available programs and caches their projections,
    allowing queries to specify which program to use.
    """

    def __init__(self, base_path: str, default_program: Optional[str] = None):
        """Initialize and discover all available programs.

        Args:
            base_path: Path to the ccpc-comp-planner root directory
            default_program: Default program to use when none specified
        """
        self.base_path = base_path
        self.programs: Dict[str, PlannerTools] = {}
        self.default_program = default_program
        self._discover_programs()

    def _discover_programs(self):
        """Discover and load all available programs."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            program_dir = os.path.join(input_params_path, name)
            spec_path = os.path.join(program_dir, 'spec.json')

            if os.path.isdir(program_dir) and os.path.exists(spec_path):
                try:
                    self.programs[name] = PlannerTools(self.base_path, name)
                except (OSError, ValueError) as e:
                    # Skip programs that fail to load
                    logger.warning("Failed to load program '%s': %s", name, e)

        if self.default_program is None and self.programs:
            self.default_program = list(self.programs.keys())[0]

    def _get_program(self, program: Optional[str] = None, require_explicit: bool = False) -> PlannerTools:
        """Get the specified program or default.

        Args:
            program: Program name to use, or None for default
            require_explicit: If True, raise error when program not specified and multiple exist
        """
        if program is None and len(self.programs) > 1 and require_explicit:
            available = list(self.programs.keys())
            raise ValueError(
                f"Multiple programs available: {available}. Please specify which program to query."
            )

        program_name = program or self.default_program

        if program_name not in self.programs:
            available = list(self.programs.keys())
            raise ValueError(
                f"Program '{program_name}' not found. Available programs: {available}"
            )

        return self.programs[program_name]

    def list_programs(self) -> dict:
        """List all available programs."""
        programs_info = {}
        for name, tools in self.programs.items():
            programs_info[name] = {
                "province": tools.inputs.province,
                "first_year": tools.first_year,
                "last_year": tools.last_year,
                "salary_strategy": tools.inputs.salary_strategy,
                "required_income": tools.inputs.required_income
            }

        return {
            "available_programs": list(self.programs.keys()),
            "default_program": self.default_program,
            "programs_info": programs_info
        }

    def reload_programs(self) -> dict:
        """Reload all programs from disk, refreshing the cache.

        Use this after adding, modifying, or removing program spec.json files
        to pick up changes without restarting the server.
        """
        old_programs = set(self.programs.keys())

        self.programs.clear()
        self.default_program = None

        self._discover_programs()

        new_programs = set(self.programs.keys())

        added = new_programs - old_programs
        removed = old_programs - new_programs
        unchanged = old_programs & new_programs

        return {
            "status": "success",
            "message": f"Reloaded {len(self.programs)} programs",
            "programs_loaded": list(self.programs.keys()),
            "default_program": self.default_program,
            "changes": {
                "added": sorted(added),
                "removed": sorted(removed),
                "reloaded": sorted(unchanged)
            }
        }

    def _with_program(self, result: dict, program: Optional[str]) -> dict:
        result["program"] = program or self.default_program
        return result

    def get_program_overview(self, program: Optional[str] = None) -> dict:
        """Get an overview of the specified program."""
        return self._with_program(self._get_program(program, require_explicit=True).get_program_overview(), program)

    def list_available_years(self, program: Optional[str] = None) -> dict:
        """List all years in the specified projection."""
        return self._with_program(self._get_program(program, require_explicit=True).list_available_years(), program)

    def get_annual_summary(self, year: int, program: Optional[str] = None) -> dict:
        """Get compensation and tax summary for a specific year."""
        return self._with_program(self._get_program(program, require_explicit=True).get_annual_summary(year), program)

    def get_tax_details(self, year: int, program: Optional[str] = None) -> dict:
        """Get detailed tax breakdown for a specific year."""
        return self._with_program(self._get_program(program, require_explicit=True).get_tax_details(year), program)

    def get_notional_accounts(self, year: Optional[int] = None, program: Optional[str] = None) -> dict:
        """Get notional account balances."""
        return self._with_program(self._get_program(program, require_explicit=True).get_notional_accounts(year), program)

    def get_projection_summary(self, program: Optional[str] = None) -> dict:
        """Get totals across the projection."""
        return self._with_program(self._get_program(program, require_explicit=True).get_projection_summary(), program)

    def get_retirement_outlook(self, program: Optional[str] = None) -> dict:
        """Get projected CPP, OAS and RRIF minimums."""
        return self._with_program(self._get_program(program, require_explicit=True).get_retirement_outlook(), program)

    def compare_years(self, year1: int, year2: int, program: Optional[str] = None) -> dict:
        """Compare key metrics between two years."""
        return self._with_program(self._get_program(program, require_explicit=True).compare_years(year1, year2), program)

    def search_projection_data(self, query: str, year: Optional[int] = None, program: Optional[str] = None) -> dict:
        """Search for specific projection metrics based on a query."""
        return self._with_program(
            self._get_program(program, require_explicit=True).search_projection_data(query, year), program)

    def compare_strategies(self, program: Optional[str] = None) -> dict:
        """Compare preset salary strategies for the specified program."""
        return self._with_program(self._get_program(program, require_explicit=True).compare_strategies(), program)

    def compare_programs(self, program1: str, program2: str, metrics: Optional[List[str]] = None) -> dict:
        """Compare projection totals of two programs and recommend one.

        Args:
            program1: First program name to compare
            program2: Second program name to compare
            metrics: Optional subset of COMPARISON_METRICS keys; all of them when omitted
        """
        for name in (program1, program2):
            if name not in self.programs:
                return {"error": f"Program '{name}' not found. Available: {list(self.programs.keys())}"}

        if metrics:
            selected = {k: v for k, v in COMPARISON_METRICS.items() if k in metrics}
            if not selected:
                return {"error": f"No valid metrics specified. Available metrics: {list(COMPARISON_METRICS.keys())}"}
        else:
            selected = COMPARISON_METRICS

        totals1 = self.programs[program1].get_projection_summary()
        totals2 = self.programs[program2].get_projection_summary()
        names = {1: program1, 2: program2, 0: "tie"}

        compared = {}
        wins = {program1: 0, program2: 0, "tie": 0}
        for key, (description, summary_key, higher_is_better) in selected.items():
            v1 = totals1.get(summary_key, 0)
            v2 = totals2.get(summary_key, 0)
            diff = v2 - v1
            if v1 != 0:
                pct_diff = diff / abs(v1) * 100
            else:
                pct_diff = 100 if v2 > 0 else (-100 if v2 < 0 else 0)
            better = names[_better(v1, v2, higher_is_better)]
            wins[better] += 1
            compared[key] = {
                "description": description,
                program1: round(v1, 2),
                program2: round(v2, 2),
                "difference": round(diff, 2),
                "percent_difference": round(pct_diff, 1),
                "better": better,
                "higher_is_better": higher_is_better
            }

        overall = names[_better(wins[program1], wins[program2], True)]
        if overall == "tie":
            recommendation = f"Both programs are roughly equivalent, each winning {wins[program1]} metrics."
        else:
            other = program2 if overall == program1 else program1
            recommendation = (f"'{overall}' appears better overall, winning {wins[overall]} of "
                              f"{len(selected)} metrics compared to {wins[other]} for '{other}'.")
            tax = compared.get("total_tax")
            if tax and tax["better"] != "tie":
                recommendation += f" '{tax['better']}' pays ${abs(tax['difference']):,.0f} less tax over the projection."

        return {
            "programs": {name: f"{self.programs[name].first_year}-{self.programs[name].last_year}"
                         for name in (program1, program2)},
            "metrics": compared,
            "summary": {
                "metrics_compared": len(selected),
                "wins": {program1: wins[program1], program2: wins[program2], "tied": wins["tie"]},
                "overall_better": overall
            },
            "recommendation": recommendation
        }
