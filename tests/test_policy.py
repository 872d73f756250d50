"""Tests for the budget policy table and account profiles."""
import json
import shutil
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

from grantaudit.budget.models import AccountType, Tranche
from grantaudit.budget.policy import BudgetPolicy, parse_account_type
from grantaudit.config.settings import RESOURCES_DIR
from grantaudit.utils.exceptions import ConfigError, ValidationError


class TestBudgetPolicy(unittest.TestCase):
    """Test the packaged policy table."""

    def setUp(self):
        self.policy = BudgetPolicy.load(RESOURCES_DIR / "policy.json")

    def test_savings_caps(self):
        profile = self.policy.profile_for(AccountType.SAVINGS)
        first = profile.caps_for(Tranche.TRANCHE_1)

        self.assertEqual(first.total_grant, Decimal("1200000"))
        self.assertEqual(first.non_recurring_cap, Decimal("1000000"))
        self.assertEqual(first.recurring_cap, Decimal("200000"))
        for tranche in (Tranche.TRANCHE_2, Tranche.TRANCHE_3):
            caps = profile.caps_for(tranche)
            self.assertEqual(caps.total_grant, Decimal("400000"))
            self.assertEqual(caps.non_recurring_cap, Decimal(0))
            self.assertEqual(caps.recurring_cap, Decimal("400000"))
        self.assertEqual(profile.total_grant, Decimal("2000000"))

    def test_current_caps_withhold_tds(self):
        profile = self.policy.profile_for("current")
        first = profile.caps_for(Tranche.TRANCHE_1)

        self.assertEqual(profile.account_type, AccountType.CURRENT)
        self.assertEqual(first.total_grant, Decimal("1176000"))
        self.assertEqual(first.non_recurring_cap, Decimal("976000"))
        self.assertEqual(first.recurring_cap, Decimal("200000"))
        self.assertEqual(profile.caps_for(Tranche.TRANCHE_2).recurring_cap, Decimal("392000"))
        self.assertEqual(profile.caps_for(Tranche.TRANCHE_3).total_grant, Decimal("392000"))
        self.assertEqual(profile.non_recurring_cap, Decimal("976000"))

    def test_cumulative_recurring_caps(self):
        profile = self.policy.profile_for(AccountType.SAVINGS)
        self.assertEqual(profile.cumulative_recurring_cap(Tranche.TRANCHE_1), Decimal("200000"))
        self.assertEqual(profile.cumulative_recurring_cap(Tranche.TRANCHE_2), Decimal("600000"))
        self.assertEqual(profile.cumulative_recurring_cap(Tranche.TRANCHE_3), Decimal("1000000"))

    def test_tranche_for_recurring_boundaries(self):
        profile = self.policy.profile_for(AccountType.SAVINGS)
        self.assertEqual(profile.tranche_for_recurring(Decimal(0)), Tranche.TRANCHE_1)
        self.assertEqual(profile.tranche_for_recurring(Decimal("199999.99")), Tranche.TRANCHE_1)
        self.assertEqual(profile.tranche_for_recurring(Decimal("200000")), Tranche.TRANCHE_2)
        self.assertEqual(profile.tranche_for_recurring(Decimal("600000")), Tranche.TRANCHE_3)
        self.assertEqual(profile.tranche_for_recurring(Decimal("5000000")), Tranche.TRANCHE_3)


class TestPolicyLoading(unittest.TestCase):
    """Test policy file validation."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        with open(RESOURCES_DIR / "policy.json", "r", encoding="utf-8") as f:
            self.data = json.load(f)

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write(self, data) -> Path:
        path = self.test_dir / "policy.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            BudgetPolicy.load(self.test_dir / "missing.json")

    def test_unknown_category(self):
        self.data["debit_keyword_groups"][0]["category"] = "Snacks"
        with self.assertRaises(ConfigError):
            BudgetPolicy.load(self._write(self.data))

    def test_credit_category_in_debit_groups(self):
        self.data["debit_keyword_groups"][0]["category"] = "Interest"
        with self.assertRaises(ConfigError):
            BudgetPolicy.load(self._write(self.data))

    def test_no_tranches(self):
        self.data["tranches"] = []
        with self.assertRaises(ConfigError):
            BudgetPolicy.load(self._write(self.data))

    def test_keywords_lowercased(self):
        self.data["interest_keywords"] = ["SB INT"]
        policy = BudgetPolicy.load(self._write(self.data))
        self.assertEqual(policy.interest_keywords, ("sb int",))


class TestParseAccountType(unittest.TestCase):

    def test_case_insensitive(self):
        self.assertEqual(parse_account_type("SAVINGS"), AccountType.SAVINGS)
        self.assertEqual(parse_account_type(" Current "), AccountType.CURRENT)
        self.assertEqual(parse_account_type(AccountType.CURRENT), AccountType.CURRENT)

    def test_unknown(self):
        with self.assertRaises(ValidationError):
            parse_account_type("Fixed Deposit")


if __name__ == "__main__":
    unittest.main()
