"""Budget policy table: tranche caps per account type and keyword rules."""
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Tuple, Union

from .models import AccountProfile, AccountType, Category, Tranche, TrancheCaps
from grantaudit.utils.exceptions import ConfigError, ValidationError
from grantaudit.utils.logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class KeywordGroup:
    category: Category
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class BudgetPolicy:
    """
    Authoritative policy table.

    The tranche caps in the file are the gross (Savings account) values. The
    Current account profile is derived from them: TDS withheld on the Tranche-1
    grant is taken out of the capital (non-recurring) cap, and the later
    tranches, which are entirely recurring, shrink by the same rate.
    """
    financial_year: str
    tds_rate: Decimal
    savings_tranches: Tuple[TrancheCaps, ...]
    interest_keywords: Tuple[str, ...]
    debit_keyword_groups: Tuple[KeywordGroup, ...]

    @classmethod
    def load(cls, policy_path: Path) -> "BudgetPolicy":
        """Load the policy table from JSON."""
        try:
            with open(policy_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load policy {policy_path}: {e}")

        try:
            return cls.from_dict(data)
        except (KeyError, ValueError, InvalidOperation) as e:
            raise ConfigError(f"Invalid policy {policy_path}: {e}")

    @classmethod
    def from_dict(cls, data: Dict) -> "BudgetPolicy":
        tranches = tuple(
            TrancheCaps(
                tranche=Tranche(entry["tranche"]),
                total_grant=Decimal(str(entry["total_grant"])),
                non_recurring_cap=Decimal(str(entry["non_recurring_cap"])),
                recurring_cap=Decimal(str(entry["recurring_cap"]))
            )
            for entry in data["tranches"]
        )
        if not tranches:
            raise ValueError("policy defines no tranches")
        if Tranche.UNASSIGNED in (caps.tranche for caps in tranches):
            raise ValueError("'Unassigned' is not a funding tranche")

        groups = tuple(
            KeywordGroup(
                category=Category(group["category"]),
                keywords=tuple(keyword.lower() for keyword in group["keywords"])
            )
            for group in data["debit_keyword_groups"]
        )
        for group in groups:
            if group.category not in (Category.NON_RECURRING, Category.RECURRING, Category.INELIGIBLE):
                raise ValueError(f"debit keyword group cannot map to {group.category.value}")

        tds_rate = Decimal(str(data.get("tds_rate", "0")))
        if not Decimal(0) <= tds_rate < Decimal(1):
            raise ValueError(f"tds_rate out of range: {tds_rate}")

        return cls(
            financial_year=data["financial_year"],
            tds_rate=tds_rate,
            savings_tranches=tranches,
            interest_keywords=tuple(keyword.lower() for keyword in data["interest_keywords"]),
            debit_keyword_groups=groups
        )

    def profile_for(self, account_type: Union[AccountType, str]) -> AccountProfile:
        """Build the cap table for an account type."""
        account_type = parse_account_type(account_type)
        if account_type == AccountType.SAVINGS:
            return AccountProfile(account_type=account_type, tranches=self.savings_tranches)

        net = Decimal(1) - self.tds_rate
        current: List[TrancheCaps] = []
        for index, caps in enumerate(self.savings_tranches):
            if index == 0:
                withheld = caps.total_grant * self.tds_rate
                current.append(TrancheCaps(
                    tranche=caps.tranche,
                    total_grant=caps.total_grant - withheld,
                    non_recurring_cap=caps.non_recurring_cap - withheld,
                    recurring_cap=caps.recurring_cap
                ))
            else:
                current.append(TrancheCaps(
                    tranche=caps.tranche,
                    total_grant=caps.total_grant * net,
                    non_recurring_cap=caps.non_recurring_cap * net,
                    recurring_cap=caps.recurring_cap * net
                ))

        logger.debug(f"Derived Current account profile with TDS rate {self.tds_rate}")
        return AccountProfile(account_type=account_type, tranches=tuple(current))


def parse_account_type(value: Union[AccountType, str]) -> AccountType:
    if isinstance(value, AccountType):
        return value
    for account_type in AccountType:
        if str(value).strip().lower() == account_type.value.lower():
            return account_type
    raise ValidationError(f"Unknown account type '{value}' (expected Savings or Current)")
