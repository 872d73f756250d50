"""Data models for transaction extraction."""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

_CURRENCY = re.compile(r"₹|\brs\.?|\binr\b|,|\s", re.IGNORECASE)
_NUMBER = re.compile(r"^(\()?([-+])?(\d+(?:\.\d+)?|\.\d+)\)?$")
_NULL_STRINGS = {"", "null", "none", "n/a", "na", "-", "—"}

_DEBIT_WORDS = {"debit", "dr", "d", "withdrawal", "withdraw", "payment", "paid", "out"}
_CREDIT_WORDS = {"credit", "cr", "c", "deposit", "receipt", "received", "in"}


class Direction(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a producer-emitted amount into a signed Decimal.

    Accepts numbers and strings such as "₹1,20,000.00", "Rs. 500", "-250" or
    "(1,000)". Returns None when nothing numeric can be read.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None

    if not isinstance(value, str):
        return None

    cleaned = _CURRENCY.sub("", value)
    match = _NUMBER.match(cleaned)
    if not match:
        return None

    amount = Decimal(match.group(3))
    if match.group(1) or match.group(2) == "-":
        amount = -amount
    return amount


def normalize_direction(value: Any) -> Optional[str]:
    """Map producer spellings (Debit, DR, withdrawal, ...) onto DEBIT/CREDIT."""
    if not isinstance(value, str):
        return None
    word = value.strip().lower().rstrip(".")
    if word in _DEBIT_WORDS:
        return Direction.DEBIT.value
    if word in _CREDIT_WORDS:
        return Direction.CREDIT.value
    return None


@dataclass(frozen=True)
class RawTransaction:
    """A transaction as extracted, before classification."""
    date: Optional[str]
    narration: str
    amount: Decimal
    direction: Direction
    gst_no: Optional[str] = None
    voucher_no: Optional[str] = None
    raw_amount: Optional[str] = None
    low_confidence: bool = False


@dataclass(frozen=True)
class TrancheContext:
    """Running allocation state handed to the extractor as a prompt hint."""
    account_type: str
    financial_year: str
    current_tranche: str
    non_recurring_spent: Decimal = Decimal(0)
    recurring_spent: Decimal = Decimal(0)
    recurring_cap_remaining: Decimal = Decimal(0)

    def describe(self) -> str:
        return (
            f"Account type: {self.account_type}. Financial year: {self.financial_year}. "
            f"Recurring spend so far: {self.recurring_spent:,.2f} "
            f"(currently filling {self.current_tranche}, "
            f"{self.recurring_cap_remaining:,.2f} left in it). "
            f"Non-recurring spend so far: {self.non_recurring_spent:,.2f}."
        )


class TransactionRecord(BaseModel):
    """Pydantic schema for one transaction emitted by the model."""
    date: Optional[str] = Field(default=None, description="Transaction date as printed, null if illegible")
    narration: Optional[str] = Field(default=None, description="Narration/description copied verbatim from the statement")
    amount: Optional[float] = Field(default=None, description="Absolute transaction amount, null if unreadable")
    direction: Optional[Literal["DEBIT", "CREDIT"]] = Field(default=None, description="DEBIT for withdrawals, CREDIT for deposits")
    gstNo: Optional[str] = Field(default=None, description="GST number if printed, else null")
    voucherNo: Optional[str] = Field(default=None, description="Voucher/cheque/reference number if printed, else null")

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value):
        amount = parse_amount(value)
        return float(amount) if amount is not None else None

    @field_validator("direction", mode="before")
    @classmethod
    def _coerce_direction(cls, value):
        return normalize_direction(value)

    @field_validator("date", "narration", "gstNo", "voucherNo", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            return None
        return None if value.strip().lower() in _NULL_STRINGS else value.strip()

    def to_raw_transaction(self, raw_amount: Any = None) -> RawTransaction:
        """Normalise into a RawTransaction; unreadable amounts become 0 and low-confidence."""
        low_confidence = False
        signed = Decimal(str(self.amount)) if self.amount is not None else None
        if signed is None:
            signed = Decimal(0)
            low_confidence = True

        if self.direction is not None:
            direction = Direction(self.direction)
        elif signed < 0:
            direction = Direction.DEBIT
        else:
            direction = Direction.CREDIT
            low_confidence = True

        return RawTransaction(
            date=self.date,
            narration=self.narration or "",
            amount=abs(signed),
            direction=direction,
            gst_no=self.gstNo,
            voucher_no=self.voucherNo,
            raw_amount=None if raw_amount is None else str(raw_amount),
            low_confidence=low_confidence
        )


class ExtractionResponse(BaseModel):
    """Pydantic schema for the model response."""
    transactions: List[TransactionRecord]
