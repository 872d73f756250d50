"""Tests for compliance evaluation."""
import unittest
from decimal import Decimal

from grantaudit.budget.compliance import (
    INELIGIBLE_EXPENDITURE,
    NON_RECURRING_OVERSPEND,
    RECURRING_OVERSPEND,
    ComplianceEvaluator,
)
from grantaudit.budget.models import AccountType, AuditMode, ChecklistStatus, RiskLevel, Tranche
from grantaudit.budget.policy import BudgetPolicy
from grantaudit.config.settings import RESOURCES_DIR


class TestComplianceEvaluator(unittest.TestCase):
    """Test ComplianceEvaluator."""

    def setUp(self):
        policy = BudgetPolicy.load(RESOURCES_DIR / "policy.json")
        self.savings = policy.profile_for(AccountType.SAVINGS)
        self.current = policy.profile_for(AccountType.CURRENT)
        self.evaluator = ComplianceEvaluator(AuditMode.SCHOOL)

    def test_within_caps(self):
        observations = self.evaluator.evaluate(Decimal("500000"), Decimal("150000"), self.savings, Tranche.TRANCHE_1)
        self.assertEqual(observations, [])

    def test_spend_equal_to_cap_is_not_flagged(self):
        observations = self.evaluator.evaluate(
            Decimal("1000000"), Decimal("200000"), self.savings, Tranche.TRANCHE_1
        )
        self.assertEqual(observations, [])

    def test_non_recurring_overspend(self):
        observations = self.evaluator.evaluate(Decimal("1000000.01"), Decimal(0), self.savings)
        self.assertEqual(len(observations), 1)
        self.assertEqual(observations[0].type, NON_RECURRING_OVERSPEND)
        self.assertEqual(observations[0].severity, RiskLevel.HIGH)

    def test_current_account_cap_is_lower(self):
        """₹980,000 of capital spend is fine on Savings but over the Current cap."""
        self.assertEqual(self.evaluator.evaluate(Decimal("980000"), Decimal(0), self.savings), [])
        observations = self.evaluator.evaluate(Decimal("980000"), Decimal(0), self.current)
        self.assertEqual([obs.type for obs in observations], [NON_RECURRING_OVERSPEND])
        self.assertIn("₹4,000.00", observations[0].observation)

    def test_recurring_overspend_up_to_reached_tranche(self):
        observations = self.evaluator.evaluate(Decimal(0), Decimal("240000"), self.savings, Tranche.TRANCHE_1)
        self.assertEqual([obs.type for obs in observations], [RECURRING_OVERSPEND])
        self.assertIn("Tranche 1", observations[0].observation)

    def test_recurring_cap_of_all_tranches_without_reached_tranche(self):
        self.assertEqual(self.evaluator.evaluate(Decimal(0), Decimal("240000"), self.savings), [])
        observations = self.evaluator.evaluate(Decimal(0), Decimal("1000001"), self.savings)
        self.assertEqual([obs.type for obs in observations], [RECURRING_OVERSPEND])

    def test_mode_changes_wording_only(self):
        school = self.evaluator.evaluate(Decimal("1100000"), Decimal(0), self.savings)
        auditor = ComplianceEvaluator(AuditMode.AUDITOR).evaluate(Decimal("1100000"), Decimal(0), self.savings)

        self.assertEqual([obs.type for obs in school], [obs.type for obs in auditor])
        self.assertEqual(school[0].observation, auditor[0].observation)
        self.assertNotEqual(school[0].recommendation, auditor[0].recommendation)

    def test_checklist(self):
        checklist = self.evaluator.build_checklist(
            Decimal("400000"), Decimal("240000"), self.savings, Tranche.TRANCHE_1
        )
        self.assertEqual(len(checklist), 2)
        self.assertEqual(checklist[0].status, ChecklistStatus.COMPLIANT)
        self.assertEqual(checklist[0].cap, Decimal("1000000"))
        self.assertEqual(checklist[1].status, ChecklistStatus.NON_COMPLIANT)
        self.assertEqual(checklist[1].cap, Decimal("200000"))
        self.assertIn("over by", checklist[1].comment)

    def test_ineligible_observation(self):
        self.assertIsNone(self.evaluator.ineligible_observation(Decimal(0), 0))
        observation = self.evaluator.ineligible_observation(Decimal("1250"), 2)
        self.assertEqual(observation.type, INELIGIBLE_EXPENDITURE)
        self.assertEqual(observation.severity, RiskLevel.MEDIUM)
        self.assertIn("₹1,250.00", observation.observation)


if __name__ == "__main__":
    unittest.main()
