"""Local parsing of text submissions that are already itemized rows."""
import re
from typing import List, Optional

from .models import Direction, RawTransaction, normalize_direction, parse_amount

_DATE = re.compile(
    r"^\s*(\d{1,2}[/.-](?:\d{1,2}|[A-Za-z]{3,9})[/.-]\d{2,4}|\d{4}-\d{2}-\d{2})\s+"
)
_DIRECTION = re.compile(r"\b(DEBIT|CREDIT|DR|CR)\b\.?", re.IGNORECASE)
_AMOUNT = re.compile(r"(?:₹|\bRs\.?|\bINR)?\s*-?\d[\d,]*(?:\.\d+)?(?![\w/.-])", re.IGNORECASE)


def _is_standalone(body: str, match) -> bool:
    """True when the amount token is not glued to a preceding word."""
    token = match.group(0)
    lead = match.start() + (len(token) - len(token.lstrip()))
    return lead == 0 or body[lead - 1].isspace()


def parse_itemized_row(line: str) -> Optional[RawTransaction]:
    """
    Parse one row such as ``UPI-SALARY-HONORARIUM 50000 DEBIT`` or
    ``01/04/2024 NEFT GRANT CREDIT 1200000``.

    The amount is the single number before the DEBIT/CREDIT marker, or the
    first one after it when the marker comes first (a trailing balance column
    is ignored). The narration is the text before both markers, so it is
    always a verbatim slice of the line with no amount in it.

    Rows that cannot be read unambiguously return None: two markers (a
    balance printed with its own Dr/Cr sign) or two numbers before the
    marker (amount and balance columns).
    """
    body_start = 0
    date = None
    date_match = _DATE.match(line)
    if date_match:
        date = date_match.group(1)
        body_start = date_match.end()
    body = line[body_start:]

    directions = list(_DIRECTION.finditer(body))
    if len(directions) != 1:
        return None
    direction_match = directions[0]

    amounts = [m for m in _AMOUNT.finditer(body) if _is_standalone(body, m)]
    before = [m for m in amounts if m.end() <= direction_match.start()]
    after = [m for m in amounts if m.start() >= direction_match.end()]
    if len(before) > 1:
        return None
    if before:
        amount_match = before[0]
    elif after:
        amount_match = after[0]
    else:
        return None

    narration = body[:min(direction_match.start(), amount_match.start())].strip()
    if not narration:
        return None

    amount = parse_amount(amount_match.group(0))
    if amount is None:
        return None

    return RawTransaction(
        date=date,
        narration=narration,
        amount=abs(amount),
        direction=Direction(normalize_direction(direction_match.group(1))),
        raw_amount=amount_match.group(0).strip()
    )


def parse_itemized_rows(text: str) -> Optional[List[RawTransaction]]:
    """
    Parse text where every non-blank line is an itemized transaction row.

    Returns None (so the caller falls back to model extraction) as soon as a
    single line does not look like a row.
    """
    rows: List[RawTransaction] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        row = parse_itemized_row(line)
        if row is None:
            return None
        rows.append(row)
    return rows or None
