"""Data models for classification, tranche allocation and compliance."""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from grantaudit.llm.models import Direction, RawTransaction


class Category(str, Enum):
    NON_RECURRING = "Non-Recurring"
    RECURRING = "Recurring"
    INTEREST = "Interest"
    GRANT_RECEIPT = "Grant Receipt"
    INELIGIBLE = "Ineligible"


class Tranche(str, Enum):
    TRANCHE_1 = "Tranche 1"
    TRANCHE_2 = "Tranche 2"
    TRANCHE_3 = "Tranche 3"
    UNASSIGNED = "Unassigned"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VerificationStatus(str, Enum):
    VERIFIED = "Verified"
    MISSING = "Missing"
    DOUBTFUL = "Doubtful"


class AccountType(str, Enum):
    SAVINGS = "Savings"
    CURRENT = "Current"


class AuditMode(str, Enum):
    """Tone of observations; never changes classification or allocation."""
    SCHOOL = "School"
    AUDITOR = "Auditor"


class ChecklistStatus(str, Enum):
    COMPLIANT = "Compliant"
    WARNING = "Warning"
    NON_COMPLIANT = "Non-Compliant"


@dataclass(frozen=True)
class TrancheCaps:
    """Caps of a single funding installment."""
    tranche: Tranche
    total_grant: Decimal
    non_recurring_cap: Decimal
    recurring_cap: Decimal


@dataclass(frozen=True)
class AccountProfile:
    """Immutable cap table for one account type, tranches in funding order."""
    account_type: AccountType
    tranches: Tuple[TrancheCaps, ...]

    @property
    def non_recurring_cap(self) -> Decimal:
        return self.cumulative_non_recurring_cap(self.tranches[-1].tranche)

    @property
    def total_grant(self) -> Decimal:
        return sum((caps.total_grant for caps in self.tranches), Decimal(0))

    def caps_for(self, tranche: Tranche) -> TrancheCaps:
        for caps in self.tranches:
            if caps.tranche == tranche:
                return caps
        raise KeyError(tranche)

    def cumulative_recurring_cap(self, tranche: Tranche) -> Decimal:
        """Sum of recurring caps from the first tranche up to and including `tranche`."""
        total = Decimal(0)
        for caps in self.tranches:
            total += caps.recurring_cap
            if caps.tranche == tranche:
                return total
        raise KeyError(tranche)

    def cumulative_non_recurring_cap(self, tranche: Tranche) -> Decimal:
        total = Decimal(0)
        for caps in self.tranches:
            total += caps.non_recurring_cap
            if caps.tranche == tranche:
                return total
        raise KeyError(tranche)

    def tranche_for_recurring(self, recurring_spent: Decimal) -> Tranche:
        """Tranche being filled while the running recurring total is `recurring_spent`."""
        cumulative = Decimal(0)
        for caps in self.tranches:
            cumulative += caps.recurring_cap
            if recurring_spent < cumulative:
                return caps.tranche
        return self.tranches[-1].tranche


@dataclass
class ClassifiedTransaction:
    """Extracted transaction with its policy classification."""
    date: Optional[str]
    narration: str
    amount: Decimal
    direction: Direction
    category: Category
    risk_score: RiskLevel
    verification_status: VerificationStatus
    financial_year: str
    tranche: Tranche = Tranche.UNASSIGNED
    gst_no: Optional[str] = None
    voucher_no: Optional[str] = None
    raw_amount: Optional[str] = None
    low_confidence: bool = False

    @classmethod
    def from_raw(
        cls,
        raw: RawTransaction,
        category: Category,
        risk_score: RiskLevel,
        verification_status: VerificationStatus,
        financial_year: str
    ) -> "ClassifiedTransaction":
        return cls(
            date=raw.date,
            narration=raw.narration,
            amount=raw.amount,
            direction=raw.direction,
            category=category,
            risk_score=risk_score,
            verification_status=verification_status,
            financial_year=financial_year,
            gst_no=raw.gst_no,
            voucher_no=raw.voucher_no,
            raw_amount=raw.raw_amount,
            low_confidence=raw.low_confidence
        )

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "narration": self.narration,
            "amount": float(self.amount),
            "type": self.direction.label,
            "category": self.category.value,
            "tranche": self.tranche.value,
            "financialYear": self.financial_year,
            "riskScore": self.risk_score.value,
            "verificationStatus": self.verification_status.value,
            "isFlagged": self.category == Category.INELIGIBLE,
            "gstNo": self.gst_no,
            "voucherNo": self.voucher_no,
            "rawAmount": self.raw_amount,
            "lowConfidence": self.low_confidence
        }


@dataclass(frozen=True)
class ComplianceObservation:
    type: str
    severity: RiskLevel
    observation: str
    recommendation: str

    def to_dict(self) -> Dict:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "observation": self.observation,
            "recommendation": self.recommendation
        }


@dataclass(frozen=True)
class ChecklistItem:
    label: str
    status: ChecklistStatus
    comment: str
    spent: Decimal
    cap: Decimal

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "status": self.status.value,
            "comment": self.comment,
            "spent": float(self.spent),
            "cap": float(self.cap)
        }


@dataclass
class AuditReport:
    """Outcome of one pipeline invocation."""
    account_type: AccountType
    mode: AuditMode
    transactions: List[ClassifiedTransaction]
    observations: List[ComplianceObservation]
    compliance_checklist: List[ChecklistItem]
    warnings: List[str] = field(default_factory=list)
    failed_chunks: int = 0

    def totals_by_category(self) -> Dict[Category, Decimal]:
        totals = {category: Decimal(0) for category in Category}
        for txn in self.transactions:
            totals[txn.category] += max(txn.amount, Decimal(0))
        return totals

    def summary(self) -> Dict:
        totals = self.totals_by_category()
        return {
            "accountType": self.account_type.value,
            "mode": self.mode.value,
            "transactionCount": len(self.transactions),
            "failedChunks": self.failed_chunks,
            "lowConfidenceCount": sum(1 for txn in self.transactions if txn.low_confidence),
            "grantReceived": float(totals[Category.GRANT_RECEIPT]),
            "interestEarned": float(totals[Category.INTEREST]),
            "totalsByCategory": {category.value: float(amount) for category, amount in totals.items()}
        }

    def to_dict(self) -> Dict:
        return {
            "transactions": [txn.to_dict() for txn in self.transactions],
            "observations": [obs.to_dict() for obs in self.observations],
            "complianceChecklist": [item.to_dict() for item in self.compliance_checklist],
            "warnings": list(self.warnings),
            "summary": self.summary()
        }
