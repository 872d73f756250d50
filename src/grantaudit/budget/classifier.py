"""Keyword-based transaction classification."""
import re
from typing import List, Pattern, Tuple

from .models import Category, ClassifiedTransaction, RiskLevel, VerificationStatus
from .policy import BudgetPolicy
from grantaudit.llm.models import Direction, RawTransaction


def _keyword_pattern(keywords) -> Pattern:
    """Match whole keywords, allowing a plural "s"/"es" ("wage" matches "wages", "kit" not "kitchen")."""
    alternatives = "|".join(re.escape(keyword) for keyword in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<![a-z0-9])(?:{alternatives})(?:s|es)?(?![a-z])")


def risk_for(category: Category) -> RiskLevel:
    return RiskLevel.HIGH if category == Category.INELIGIBLE else RiskLevel.LOW


def verification_for(category: Category) -> VerificationStatus:
    return VerificationStatus.DOUBTFUL if category == Category.INELIGIBLE else VerificationStatus.VERIFIED


class Classifier:
    """
    Maps a transaction to a funding category.

    Credits are grant receipts unless the narration reads as bank interest.
    Debits are matched against the policy's keyword groups in order and the
    first group that matches wins, so "workshop kit" stays Recurring even
    though a later reader might argue for capital. Anything unmatched is
    Ineligible. Stateless: the same input always yields the same output.
    """

    def __init__(self, policy: BudgetPolicy):
        self.policy = policy
        self._interest = _keyword_pattern(policy.interest_keywords)
        self._groups: List[Tuple[Category, Pattern]] = [
            (group.category, _keyword_pattern(group.keywords))
            for group in policy.debit_keyword_groups
            if group.keywords
        ]

    def category_for(self, narration: str, direction: Direction) -> Category:
        text = (narration or "").lower()

        if direction == Direction.CREDIT:
            return Category.INTEREST if self._interest.search(text) else Category.GRANT_RECEIPT

        for category, pattern in self._groups:
            if pattern.search(text):
                return category
        return Category.INELIGIBLE

    def classify(self, txn: RawTransaction) -> Tuple[Category, RiskLevel, VerificationStatus]:
        """Return (category, risk score, verification status) for a transaction."""
        category = self.category_for(txn.narration, txn.direction)
        return category, risk_for(category), verification_for(category)

    def classify_transaction(self, txn: RawTransaction) -> ClassifiedTransaction:
        """Build the classified record; the tranche is left for the allocator."""
        category, risk, status = self.classify(txn)
        return ClassifiedTransaction.from_raw(txn, category, risk, status, self.policy.financial_year)
