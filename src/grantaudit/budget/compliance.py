"""Compliance evaluation of accumulated spend against tranche caps."""
from decimal import Decimal
from typing import List, Optional

from .models import (
    AccountProfile,
    AuditMode,
    ChecklistItem,
    ChecklistStatus,
    ComplianceObservation,
    RiskLevel,
    Tranche,
)

NON_RECURRING_OVERSPEND = "NON_RECURRING_OVERSPEND"
RECURRING_OVERSPEND = "RECURRING_OVERSPEND"
INELIGIBLE_EXPENDITURE = "INELIGIBLE_EXPENDITURE"


def _inr(amount: Decimal) -> str:
    return f"₹{amount:,.2f}"


class ComplianceEvaluator:
    """Turns final totals into observations and a checklist. Pure functions of the inputs."""

    def __init__(self, mode: AuditMode = AuditMode.SCHOOL):
        self.mode = mode

    def recurring_cap(self, profile: AccountProfile, tranche_reached: Optional[Tranche]) -> Decimal:
        """Cumulative recurring cap up to `tranche_reached`, or of all tranches when None."""
        if tranche_reached is None or tranche_reached == Tranche.UNASSIGNED:
            return profile.cumulative_recurring_cap(profile.tranches[-1].tranche)
        return profile.cumulative_recurring_cap(tranche_reached)

    def evaluate(
        self,
        non_recurring_spent: Decimal,
        recurring_spent: Decimal,
        profile: AccountProfile,
        tranche_reached: Optional[Tranche] = None
    ) -> List[ComplianceObservation]:
        """
        Flag category totals that exceed their caps.

        Args:
            non_recurring_spent: Total capital spend
            recurring_spent: Total recurring spend
            profile: Cap table of the account
            tranche_reached: Highest tranche the recurring spend was allocated to

        Returns:
            HIGH severity observations; a total equal to its cap is not flagged
        """
        observations = []
        account = profile.account_type.value

        non_recurring_cap = profile.non_recurring_cap
        if non_recurring_spent > non_recurring_cap:
            excess = non_recurring_spent - non_recurring_cap
            observations.append(ComplianceObservation(
                type=NON_RECURRING_OVERSPEND,
                severity=RiskLevel.HIGH,
                observation=(
                    f"Non-recurring (capital) expenditure of {_inr(non_recurring_spent)} exceeds the "
                    f"{account} account cap of {_inr(non_recurring_cap)} by {_inr(excess)}."
                ),
                recommendation=self._recommend(
                    school=(
                        f"Review capital purchases worth {_inr(excess)}; items that are consumables or "
                        f"maintenance may be reclassified as recurring with supporting vouchers."
                    ),
                    auditor=f"Raise an audit objection for the capital overspend of {_inr(excess)}."
                )
            ))

        recurring_cap = self.recurring_cap(profile, tranche_reached)
        if recurring_spent > recurring_cap:
            excess = recurring_spent - recurring_cap
            scope = tranche_reached.value if tranche_reached and tranche_reached != Tranche.UNASSIGNED else "all tranches"
            observations.append(ComplianceObservation(
                type=RECURRING_OVERSPEND,
                severity=RiskLevel.HIGH,
                observation=(
                    f"Recurring expenditure of {_inr(recurring_spent)} exceeds the cumulative cap of "
                    f"{_inr(recurring_cap)} up to {scope} by {_inr(excess)}."
                ),
                recommendation=self._recommend(
                    school=(
                        f"Defer {_inr(excess)} of recurring spend to the next tranche or show it as "
                        f"funded from the school's own resources."
                    ),
                    auditor=f"Recurring overspend of {_inr(excess)} is not admissible against the grant released so far."
                )
            ))

        return observations

    def build_checklist(
        self,
        non_recurring_spent: Decimal,
        recurring_spent: Decimal,
        profile: AccountProfile,
        tranche_reached: Optional[Tranche] = None
    ) -> List[ChecklistItem]:
        """One spent-vs-cap entry per tracked category."""
        entries = [
            ("Non-Recurring (Capital) expenditure within cap", non_recurring_spent, profile.non_recurring_cap),
            ("Recurring expenditure within cap", recurring_spent, self.recurring_cap(profile, tranche_reached)),
        ]
        checklist = []
        for label, spent, cap in entries:
            compliant = spent <= cap
            checklist.append(ChecklistItem(
                label=label,
                status=ChecklistStatus.COMPLIANT if compliant else ChecklistStatus.NON_COMPLIANT,
                comment=f"Spent {_inr(spent)} of {_inr(cap)}" + ("" if compliant else f", over by {_inr(spent - cap)}"),
                spent=spent,
                cap=cap
            ))
        return checklist

    def ineligible_observation(self, ineligible_spent: Decimal, count: int) -> Optional[ComplianceObservation]:
        """MEDIUM observation for debits that match no eligible category."""
        if count == 0:
            return None
        return ComplianceObservation(
            type=INELIGIBLE_EXPENDITURE,
            severity=RiskLevel.MEDIUM,
            observation=f"{count} debit(s) totalling {_inr(ineligible_spent)} match no eligible expense head.",
            recommendation=self._recommend(
                school="Attach vouchers showing how each of these payments relates to lab activity, or refund them to the grant account.",
                auditor="Treat these payments as ineligible unless supporting vouchers are produced."
            )
        )

    def _recommend(self, school: str, auditor: str) -> str:
        return auditor if self.mode == AuditMode.AUDITOR else school
