"""Sequential tranche allocation of classified transactions."""
import dataclasses
from decimal import Decimal
from typing import Iterable, List, Optional

from .models import AccountProfile, Category, ClassifiedTransaction, Tranche
from grantaudit.llm.models import Direction, TrancheContext


class TrancheAllocator:
    """
    Stateful left fold over transactions in their given order.

    Capital (non-recurring) spend is always attributed to Tranche 1.
    Recurring spend fills the tranches in funding order: the tranche is chosen
    from the running total *before* the transaction is added, so the debit
    that crosses a cap stays in the tranche it was filling. Other categories
    and credits consume no capacity and stay Unassigned.

    One instance per request; never share it between requests.
    """

    def __init__(self, profile: AccountProfile, financial_year: str = ""):
        self.profile = profile
        self.financial_year = financial_year
        self.non_recurring_spent = Decimal(0)
        self.recurring_spent = Decimal(0)
        self.highest_recurring_tranche: Optional[Tranche] = None

    def assign(self, txn: ClassifiedTransaction) -> ClassifiedTransaction:
        """Return a copy of `txn` with its tranche set, updating the running totals."""
        if txn.direction != Direction.DEBIT:
            return dataclasses.replace(txn, tranche=Tranche.UNASSIGNED)

        # Negative or unreadable amounts never reduce the totals.
        amount = max(txn.amount, Decimal(0))

        if txn.category == Category.NON_RECURRING:
            self.non_recurring_spent += amount
            return dataclasses.replace(txn, tranche=self.profile.tranches[0].tranche)

        if txn.category == Category.RECURRING:
            tranche = self.profile.tranche_for_recurring(self.recurring_spent)
            self.recurring_spent += amount
            self._note_recurring_tranche(tranche)
            return dataclasses.replace(txn, tranche=tranche)

        return dataclasses.replace(txn, tranche=Tranche.UNASSIGNED)

    def assign_all(self, transactions: Iterable[ClassifiedTransaction]) -> List[ClassifiedTransaction]:
        return [self.assign(txn) for txn in transactions]

    def context(self) -> TrancheContext:
        """Snapshot of the running state, used as a hint for the next extraction."""
        current = self.profile.tranche_for_recurring(self.recurring_spent)
        remaining = self.profile.cumulative_recurring_cap(current) - self.recurring_spent
        return TrancheContext(
            account_type=self.profile.account_type.value,
            financial_year=self.financial_year,
            current_tranche=current.value,
            non_recurring_spent=self.non_recurring_spent,
            recurring_spent=self.recurring_spent,
            recurring_cap_remaining=max(remaining, Decimal(0))
        )

    def _note_recurring_tranche(self, tranche: Tranche) -> None:
        order = [caps.tranche for caps in self.profile.tranches]
        if self.highest_recurring_tranche is None or order.index(tranche) > order.index(self.highest_recurring_tranche):
            self.highest_recurring_tranche = tranche


def allocate(transactions: Iterable[ClassifiedTransaction], profile: AccountProfile) -> List[ClassifiedTransaction]:
    """Assign tranches to `transactions` with a fresh allocator."""
    return TrancheAllocator(profile).assign_all(transactions)
