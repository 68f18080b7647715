"""Tests for renderer year range functionality."""

import pytest
import sys
import os
from io import StringIO

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from render.renderers import (
    AnnualSummaryRenderer,
    NotionalAccountsRenderer,
    YearDetailsRenderer,
    parse_year_range,
    RENDERER_REGISTRY,
)
from model.ProjectionData import (
    DividendFunding,
    GrindResult,
    NotionalAccounts,
    ProjectionSummary,
    YearlyResult,
)


def capture(renderer, data):
    output = StringIO()
    old_stdout = sys.stdout
    sys.stdout = output
    try:
        renderer.render(data)
    finally:
        sys.stdout = old_stdout
    return output.getvalue()


@pytest.fixture
def summary():
    """A ten-year projection with simple, distinguishable values."""
    data = ProjectionSummary()
    for index, year in enumerate(range(2026, 2036)):
        data.yearly_results.append(YearlyResult(
            year=index + 1,
            calendar_year=year,
            required_income=100000.0,
            salary=50000.0,
            dividends=DividendFunding(eligible_dividends=20000.0, gross_dividends=20000.0),
            personal_tax=10000.0,
            corporate_tax=5000.0,
            total_tax=15000.0,
            after_tax_income=60000.0,
            effective_integrated_rate=0.2,
            notional_accounts=NotionalAccounts(cda=1000.0 * (index + 1),
                                               corporate_investments=500000.0 + 1000.0 * index),
        ))
    return data


class TestParseYearRange:
    """Test the parse_year_range function."""

    def test_parse_single_year(self, summary):
        assert parse_year_range("2030", summary) == (2030, 2030)

    def test_parse_full_range(self, summary):
        assert parse_year_range("2028-2032", summary) == (2028, 2032)

    def test_parse_open_start_range(self, summary):
        assert parse_year_range("-2030", summary) == (2026, 2030)

    def test_parse_open_end_range(self, summary):
        assert parse_year_range("2030-", summary) == (2030, 2035)

    def test_parse_full_open_range(self, summary):
        assert parse_year_range("-", summary) == (2026, 2035)

    def test_parse_invalid(self, summary):
        with pytest.raises(ValueError):
            parse_year_range("next-year", summary)


class TestAnnualSummaryRendererYearRange:

    def test_renderer_no_year_range(self, summary):
        result = capture(AnnualSummaryRenderer(), summary)
        assert "2026" in result
        assert "2035" in result

    def test_renderer_with_year_range(self, summary):
        result = capture(AnnualSummaryRenderer(start_year=2028, end_year=2030), summary)
        assert "2028" in result
        assert "2030" in result
        assert "2027" not in result
        assert "2031" not in result

    def test_totals_reflect_filtered_range(self, summary):
        """Three years of $50,000 salary total $150,000."""
        result = capture(AnnualSummaryRenderer(start_year=2028, end_year=2030), summary)
        assert "150,000" in result
        assert "500,000" not in result.split("TOTAL")[1].split("\n")[0]


class TestNotionalAccountsRendererYearRange:

    def test_renderer_start_year_only(self, summary):
        result = capture(NotionalAccountsRenderer(start_year=2033), summary)
        assert "2033" in result
        assert "2035" in result
        assert "2032" not in result

    def test_renderer_end_year_only(self, summary):
        result = capture(NotionalAccountsRenderer(end_year=2027), summary)
        assert "2026" in result
        assert "2027" in result
        assert "2028" not in result


class TestYearDetailsRenderer:

    def test_renders_selected_year(self, summary):
        result = capture(YearDetailsRenderer(2027), summary)
        assert "PROJECTION DETAILS FOR 2027" in result
        assert "Eligible Dividends:" in result
        assert "Capital Dividends" not in result
        assert "SPOUSE" not in result

    def test_grind_shown_only_when_reducing(self, summary):
        summary.yearly_results[0].passive_income_grind = GrindResult(
            total_passive_income=75000, excess_passive_income=25000, sbd_reduction=125000,
            reduced_sbd_limit=375000, is_fully_grounded=False, grind_percentage=0.25,
            additional_tax_from_grind=17875)
        result = capture(YearDetailsRenderer(2026), summary)
        assert "Reduced SBD Limit:" in result
        assert "17,875.00" in result

    def test_unknown_year(self, summary):
        result = capture(YearDetailsRenderer(2050), summary)
        assert "No data available for year 2050" in result


class TestRegistryFactories:
    """Table modes in the registry accept a year range."""

    @pytest.mark.parametrize("mode", ["AnnualSummary", "NotionalAccounts", "PayrollDetails"])
    def test_registry_accepts_year_range(self, summary, mode):
        renderer = RENDERER_REGISTRY[mode](2030, 2031)
        result = capture(renderer, summary)
        assert "2030" in result
        assert "2031" in result
        assert "2029" not in result
