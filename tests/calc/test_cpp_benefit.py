import os
import sys
import math
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from calc.cpp_benefit import (
    CPPBenefitCalculator,
    CPPProjectionInputs,
    apply_general_dropout,
    calculate_base_cpp,
    early_late_factor,
)


@pytest.fixture
def calculator():
    return CPPBenefitCalculator(0.02)


def make_inputs(**overrides):
    values = dict(
        birth_year=1981,
        salary_start_age=22,
        average_historical_salary=90000,
        current_age=45,
        cpp_start_age=65,
        projected_salaries=[90000] * 20,
    )
    values.update(overrides)
    return CPPProjectionInputs(**values)


class TestAdjustments:
    def test_early_late_factor(self):
        assert early_late_factor(65) == 1.0
        assert math.isclose(early_late_factor(60), 0.64)
        assert math.isclose(early_late_factor(70), 1.42)

    def test_start_age_is_clamped(self):
        assert math.isclose(early_late_factor(55), 0.64)
        assert math.isclose(early_late_factor(75), 1.42)

    def test_base_cpp_is_quarter_of_ampe(self):
        assert math.isclose(calculate_base_cpp(5000), 15000)

    def test_general_dropout(self):
        kept, dropped = apply_general_dropout(list(range(100)))
        assert dropped == 17
        assert kept[0] == 17
        assert len(kept) == 83


class TestHistory:
    def test_published_ympe(self, calculator):
        assert calculator.get_ympe(1966) == 5000
        assert calculator.get_ympe(2026) == 74600

    def test_projected_ympe(self, calculator):
        assert calculator.get_ympe(2027) == round(74600 * 1.02)

    def test_basic_exemption_frozen(self, calculator):
        assert calculator.get_basic_exemption(2040) == 3500

    def test_no_yampe_before_cpp2(self, calculator):
        assert calculator.get_yampe(2020) == 0.0
        assert calculator.get_yampe(2026) == 85000


class TestProjection:
    def test_contributory_period(self, calculator):
        earnings, years = calculator.build_contributory_earnings(make_inputs())
        # Age 18 to 64
        assert years[0] == 1999
        assert years[-1] == 2045
        assert len(earnings) == 47

    def test_benefit_components(self, calculator):
        result = calculator.project_benefit(make_inputs())
        assert result.base_cpp > 0
        assert result.enhanced_cpp > 0
        assert result.cpp2_benefit > 0
        assert math.isclose(result.total_annual_benefit,
                            result.base_cpp + result.enhanced_cpp + result.cpp2_benefit)
        assert math.isclose(result.monthly_benefit, result.total_annual_benefit / 12)

    def test_late_start_increases_base_only(self, calculator):
        at_65 = calculator.project_benefit(make_inputs())
        at_70 = calculator.project_benefit(make_inputs(cpp_start_age=70))
        assert at_70.base_cpp > at_65.base_cpp

    def test_no_cpp2_below_ympe(self, calculator):
        result = calculator.project_benefit(make_inputs(average_historical_salary=60000, projected_salaries=[0] * 20))
        assert result.base_cpp > 0
        assert result.cpp2_benefit == 0.0

    def test_salary_below_exemption_earns_nothing(self, calculator):
        result = calculator.project_benefit(make_inputs(average_historical_salary=0, projected_salaries=[]))
        assert result.total_annual_benefit == 0.0
