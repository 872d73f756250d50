"""Parsing of model JSON output, with best-effort repair of truncated responses."""
import json
import re
from typing import Any, List, Optional

from grantaudit.utils.logger import get_logger

logger = get_logger()

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")


def strip_fences(text: str) -> str:
    """Remove surrounding markdown code fences (```json ... ```)."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    # Normalize smart quotes to standard double-quote
    return cleaned.replace("“", '"').replace("”", '"').strip()


def repair_truncated_json(text: str) -> Optional[str]:
    """
    Repair JSON cut off mid-output.

    Drops everything after the last complete record (an object directly inside
    the first array opened; objects in arrays nested within a record do not
    count) and appends the closers still open at that point. Returns None when
    no complete record exists or the brackets are mismatched. Nothing else is
    fixed.
    """
    stack: List[str] = []
    in_string = False
    escaped = False
    cut = None
    open_at_cut: List[str] = []
    records_depth = None

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append(char)
            if char == "[" and records_depth is None:
                records_depth = len(stack)
        elif char in "}]":
            if not stack:
                return None
            opener = stack.pop()
            if (opener == "{") != (char == "}"):
                return None
            if char == "}" and len(stack) == records_depth:
                cut = index + 1
                open_at_cut = list(stack)

    if cut is None:
        return None

    closers = "".join("]" if opener == "[" else "}" for opener in reversed(open_at_cut))
    return text[:cut] + closers


def load_transaction_payload(text: str) -> Optional[List[Any]]:
    """
    Parse a model response into its list of raw transaction items.

    Accepts either ``{"transactions": [...]}`` or a bare list. A syntactically
    broken response gets exactly one repair attempt. Returns None when the
    response cannot be parsed or has the wrong shape.
    """
    if not text or not text.strip():
        return None

    cleaned = _TRAILING_COMMA.sub(r"\1", strip_fences(text))

    try:
        data = json.loads(cleaned, strict=False)
    except json.JSONDecodeError as e:
        repaired = repair_truncated_json(cleaned)
        if repaired is None:
            logger.debug(f"Unrepairable JSON response ({e}): {text[:200]}")
            return None
        try:
            data = json.loads(repaired, strict=False)
        except json.JSONDecodeError as repair_error:
            logger.debug(f"Repaired JSON still invalid ({repair_error}): {repaired[-200:]}")
            return None
        logger.info(f"Recovered truncated JSON response, kept {len(repaired)} of {len(cleaned)} chars")

    if isinstance(data, dict):
        data = data.get("transactions")
    if not isinstance(data, list):
        return None
    return data
