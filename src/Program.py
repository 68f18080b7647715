import sys
import os
import json
import logging
import argparse
from calc.projection_calculator import ProjectionCalculator
from calc.retirement_outlook import project_retirement_outlook
from calc.strategy_comparison import run_strategy_comparison
from model.UserInputs import UserInputs
from render.renderers import (
    YearDetailsRenderer, RetirementRenderer, StrategyComparisonRenderer, RENDERER_REGISTRY, parse_year_range,
)
from tax.TaxYearProvider import TaxYearProvider


def load_spec(program_name: str) -> dict:
    """Load input-parameters/<program_name>/spec.json, exiting if it is missing."""
    spec_path = os.path.join(os.path.dirname(__file__), '../input-parameters', program_name, 'spec.json')
    if not os.path.exists(spec_path):
        print(f"Spec file not found: {spec_path}")
        sys.exit(1)
    with open(spec_path, 'r') as f:
        return json.load(f)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='CCPC salary and dividend projection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  YearDetails         Print the full tax breakdown for one year (default: first year)
  AnnualSummary       Print compensation, tax and corporate balance for each year
  NotionalAccounts    Print CDA, RDTOH, GRIP and portfolio balances for each year
  Retirement          Print projected CPP, OAS and RRIF minimum withdrawals
  StrategyComparison  Compare salary at YMPE, dividends only and the dynamic strategy

Examples:
  python src/Program.py ontario-dynamic
  python src/Program.py ontario-dynamic --mode AnnualSummary
  python src/Program.py ontario-dynamic --mode NotionalAccounts --years 2028-
  python src/Program.py ontario-dynamic --mode YearDetails --year 2028
  python src/Program.py ontario-dividends-only --mode StrategyComparison -v
        """
    )
    parser.add_argument('program_name', help='Name of the program (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='YearDetails',
                        help='Output mode (default: YearDetails)')
    parser.add_argument('--year', '-y', type=int,
                        help='Calendar year to show in YearDetails mode')
    parser.add_argument('--years',
                        help="Year range for table modes: '2027-2029', '2028-' or '-2028'")
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log calculation details to stderr')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    spec = load_spec(args.program_name)
    try:
        inputs = UserInputs.from_spec(spec)
    except ValueError as e:
        print(f"Invalid spec for {args.program_name}: {e}")
        sys.exit(1)

    provider = TaxYearProvider(inputs.expected_inflation_rate, inputs.final_year)
    calculator = ProjectionCalculator(provider)

    # Calculate and render based on mode
    if args.mode == 'StrategyComparison':
        comparison = run_strategy_comparison(inputs, calculator)
        StrategyComparisonRenderer().render(comparison)
        return

    summary = calculator.calculate(inputs)
    if args.mode == 'YearDetails':
        year = args.year if args.year is not None else inputs.starting_year
        YearDetailsRenderer(year).render(summary)
    elif args.mode == 'Retirement':
        outlook = project_retirement_outlook(inputs, summary, provider)
        RetirementRenderer().render(outlook)
    else:
        start_year = end_year = None
        if args.years:
            try:
                start_year, end_year = parse_year_range(args.years, summary)
            except ValueError:
                print(f"Invalid year range: {args.years}")
                sys.exit(1)
        renderer = RENDERER_REGISTRY[args.mode](start_year, end_year)
        renderer.render(summary)


if __name__ == "__main__":
    main()
