import unittest
import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from model.TaxYearData import TaxDataUnavailableError
from tax.ProvincialDetails import ProvincialDetails


class TestProvincialDetails(unittest.TestCase):
    def setUp(self):
        self.prov = ProvincialDetails(0.03, 2028)

    def test_all_provinces_and_territories_loaded(self):
        codes = self.prov.province_codes()
        self.assertEqual(len(codes), 13)
        self.assertIn("ON", codes)
        self.assertIn("QC", codes)
        self.assertEqual(self.prov.get_province("ON")["name"], "Ontario")

    def test_ontario_published_year(self):
        data = self.prov.get_data_for_year("ON", 2026)
        self.assertEqual(data["basicPersonalAmount"], 12989)
        self.assertEqual(data["brackets"][1]["threshold"], 53891)
        self.assertEqual(data["surtax"]["firstThreshold"], 5818)

    def test_frozen_brackets_are_not_indexed(self):
        data = self.prov.get_data_for_year("ON", 2027)
        thresholds = [b["threshold"] for b in data["brackets"]]
        # 53891 * 1.03 = 55507.73
        self.assertEqual(thresholds[1], 55508)
        self.assertEqual(thresholds[3], 150000)
        self.assertEqual(thresholds[4], 220000)

    def test_surtax_thresholds_indexed(self):
        data = self.prov.get_data_for_year("ON", 2027)
        self.assertEqual(data["surtax"]["firstThreshold"], 5993)
        self.assertEqual(data["surtax"]["firstRate"], 0.20)

    def test_health_premium_not_indexed(self):
        published = self.prov.get_data_for_year("ON", 2026)["healthPremium"]
        projected = self.prov.get_data_for_year("ON", 2028)["healthPremium"]
        self.assertEqual(published["brackets"], projected["brackets"])

    def test_unknown_province(self):
        with self.assertRaises(TaxDataUnavailableError):
            self.prov.get_data_for_year("XX", 2026)

    def test_year_before_published_data(self):
        with self.assertRaises(TaxDataUnavailableError):
            self.prov.get_data_for_year("ON", 2024)


class TestEmployerHealthTax(unittest.TestCase):
    def setUp(self):
        self.prov = ProvincialDetails(0.02, 2027)

    def test_no_levy_province(self):
        self.assertEqual(self.prov.employer_health_tax("AB", 2000000, 2026), 0.0)

    def test_under_exemption(self):
        self.assertEqual(self.prov.employer_health_tax("BC", 500000, 2026), 0.0)

    def test_notch_rate_between_exemption_and_upper_threshold(self):
        self.assertAlmostEqual(self.prov.employer_health_tax("BC", 1200000, 2026), 200000 * 0.0585, places=2)

    def test_full_rate_above_upper_threshold(self):
        self.assertAlmostEqual(self.prov.employer_health_tax("BC", 2000000, 2026), 2000000 * 0.0195, places=2)

    def test_thresholds_follow_effective_year(self):
        # Manitoba exemption rises from 2.25M to 2.5M in 2026
        self.assertAlmostEqual(self.prov.employer_health_tax("MB", 2400000, 2025), 150000 * 0.043, places=2)
        self.assertEqual(self.prov.employer_health_tax("MB", 2400000, 2026), 0.0)

    def test_zero_payroll(self):
        self.assertEqual(self.prov.employer_health_tax("BC", 0, 2026), 0.0)


if __name__ == '__main__':
    unittest.main()
