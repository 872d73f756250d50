"""Budget policy, classification, tranche allocation and compliance."""
from .models import (
    AccountProfile,
    AccountType,
    AuditMode,
    AuditReport,
    Category,
    ChecklistItem,
    ChecklistStatus,
    ClassifiedTransaction,
    ComplianceObservation,
    RiskLevel,
    Tranche,
    TrancheCaps,
    VerificationStatus,
)
from .policy import BudgetPolicy, parse_account_type
from .classifier import Classifier
from .allocator import TrancheAllocator, allocate
from .compliance import ComplianceEvaluator

__all__ = [
    "AccountProfile",
    "AccountType",
    "AuditMode",
    "AuditReport",
    "Category",
    "ChecklistItem",
    "ChecklistStatus",
    "ClassifiedTransaction",
    "ComplianceObservation",
    "RiskLevel",
    "Tranche",
    "TrancheCaps",
    "VerificationStatus",
    "BudgetPolicy",
    "parse_account_type",
    "Classifier",
    "TrancheAllocator",
    "allocate",
    "ComplianceEvaluator",
]
