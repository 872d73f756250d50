"""Structured transaction extraction with repair, configuration fallback and chunk bisection."""
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .chunker import split_in_half
from .models import ExtractionResponse, RawTransaction, TrancheContext, TransactionRecord
from .repair import load_transaction_payload
from grantaudit.config.settings import ModelConfiguration
from grantaudit.gemini.client import GeminiClient
from grantaudit.utils.exceptions import LLMError, StructuredOutputFailure
from grantaudit.utils.logger import get_logger

logger = get_logger()

EXTRACTION_INSTRUCTION = """You are a transaction parser for Indian bank statements of school grant accounts.

Extract every transaction row from the statement text you are given and return a JSON object:
{"transactions": [{"date": "...", "narration": "...", "amount": 1234.5, "direction": "DEBIT", "gstNo": null, "voucherNo": null}]}

Fields:
- date: the transaction date exactly as printed, or null if illegible
- narration: the description copied verbatim from the statement; do not paraphrase, expand or translate it
- amount: the absolute amount as a plain number without currency symbols or separators, or null if unreadable
- direction: "DEBIT" for withdrawals/payments, "CREDIT" for deposits/receipts (grant releases, interest)
- gstNo, voucherNo: GST number and voucher/cheque/reference number if printed, else null

Budget heads used downstream (for context only, do not output them): Non-Recurring (capital equipment,
furniture, infrastructure), Recurring (salaries, honorarium, maintenance, kits, workshops), Interest,
Grant Receipt, Ineligible.

Rules:
- Do not invent transactions. Every transaction must correspond to a row in the text.
- Skip opening/closing balance lines, page headers, totals and running-balance-only lines.
- Use null for any unknown field. Never guess amounts.
- Keep the order in which rows appear in the text.
- Return only the JSON object, without markdown or commentary."""


@dataclass
class ExtractionOutcome:
    """Result of extracting one chunk."""
    chunk: str
    succeeded: bool
    transactions: List[RawTransaction] = field(default_factory=list)
    configuration: Optional[str] = None
    reason: Optional[str] = None
    rejected: int = 0

    @classmethod
    def success(
        cls,
        chunk: str,
        transactions: List[RawTransaction],
        configuration: Optional[str] = None,
        rejected: int = 0
    ) -> "ExtractionOutcome":
        return cls(chunk=chunk, succeeded=True, transactions=transactions, configuration=configuration, rejected=rejected)

    @classmethod
    def failure(cls, chunk: str, reason: str) -> "ExtractionOutcome":
        return cls(chunk=chunk, succeeded=False, reason=reason)


def ground_narration(narration: str, source: str) -> Optional[str]:
    """
    Locate `narration` in `source`, ignoring case and whitespace differences.

    Returns the verbatim slice of `source` that matched, "" for an empty
    narration, or None when the narration does not occur in the source.
    """
    tokens = narration.split()
    if not tokens:
        return ""
    pattern = r"\s+".join(re.escape(token) for token in tokens)
    match = re.search(pattern, source, re.IGNORECASE)
    return match.group(0) if match else None


def low_yield_warning(source_chars: int, transaction_count: int, threshold: int) -> Optional[str]:
    """Warning text when extracted transactions are implausibly sparse for the input size."""
    if transaction_count == 0:
        return None
    density = source_chars / transaction_count
    if density <= threshold:
        return None
    return (
        f"Low extraction yield: {transaction_count} transaction(s) from {source_chars} characters "
        f"({density:.0f} chars per transaction, expected at most {threshold}). "
        f"Some rows may have been missed; check the statement against the report."
    )


class StructuredExtractor:
    """Turns statement text chunks into RawTransactions using a generative model."""

    def __init__(
        self,
        client: GeminiClient,
        configurations: Sequence[ModelConfiguration],
        min_chunk_chars: int = 400
    ):
        """
        Initialize extractor.

        Args:
            client: Generative client (already carries retry/backoff for transient errors)
            configurations: Model configurations, tried in order
            min_chunk_chars: Failed chunks at or below this size are not split further
        """
        if not configurations:
            raise ValueError("At least one model configuration is required")
        self.client = client
        self.configurations = list(configurations)
        self.min_chunk_chars = min_chunk_chars

    def extract_chunk(self, chunk: str, context: TrancheContext) -> ExtractionOutcome:
        """
        Extract transactions from one chunk, trying each configuration in turn.

        The first configuration that returns a parseable, non-empty list of
        traceable transactions wins. When every configuration returns a valid
        but empty list the chunk simply holds no transactions.
        """
        if not chunk.strip():
            return ExtractionOutcome.success(chunk, [])

        prompt = self._build_prompt(chunk, context)
        failures: List[str] = []
        all_empty = True

        for configuration in self.configurations:
            try:
                response_text = self.client.generate(
                    EXTRACTION_INSTRUCTION, prompt, configuration, ExtractionResponse
                )
                transactions, rejected = self._parse_response(response_text, chunk)
            except LLMError as e:
                logger.warning(f"{configuration.name}: {e}")
                failures.append(f"{configuration.name}: {e}")
                all_empty = False
                continue

            if transactions:
                logger.info(
                    f"{configuration.name}: extracted {len(transactions)} transactions "
                    f"from {len(chunk)} chars" + (f", rejected {rejected} untraceable" if rejected else "")
                )
                return ExtractionOutcome.success(chunk, transactions, configuration.name, rejected)

            failures.append(f"{configuration.name}: no transactions")

        if all_empty:
            logger.info(f"No transactions in chunk of {len(chunk)} chars (all configurations agree)")
            return ExtractionOutcome.success(chunk, [])

        return ExtractionOutcome.failure(chunk, "; ".join(failures))

    def extract_all(
        self,
        chunks: Iterable[str],
        context_provider: Callable[[], TrancheContext]
    ) -> Iterator[ExtractionOutcome]:
        """
        Extract chunks in order, bisecting failures.

        A failed chunk larger than `min_chunk_chars` is split in two and both
        halves are processed next, in place of the original. The context is
        fetched right before each extraction, so consumers that allocate each
        yielded outcome before resuming the generator keep it current.
        """
        queue = deque(chunks)
        while queue:
            current = queue.popleft()
            outcome = self.extract_chunk(current, context_provider())

            if not outcome.succeeded and len(current) > self.min_chunk_chars:
                first, second = split_in_half(current)
                if second:
                    logger.info(
                        f"Splitting failed chunk of {len(current)} chars into "
                        f"{len(first)} + {len(second)} chars"
                    )
                    queue.appendleft(second)
                    queue.appendleft(first)
                    continue

            if not outcome.succeeded:
                logger.warning(f"Giving up on chunk of {len(current)} chars: {outcome.reason}")
            yield outcome

    def _build_prompt(self, chunk: str, context: TrancheContext) -> str:
        return (
            f"{context.describe()}\n\n"
            f"Statement text:\n"
            f"<<<\n{chunk}\n>>>"
        )

    def _parse_response(self, response_text: str, chunk: str) -> Tuple[List[RawTransaction], int]:
        """
        Turn one model response into traceable transactions.

        Raises:
            StructuredOutputFailure: If the response is not transaction JSON, or
                every record in it is missing from the chunk
        """
        items = load_transaction_payload(response_text)
        if items is None:
            raise StructuredOutputFailure("response is not valid transaction JSON")

        transactions, rejected = self._build_transactions(items, chunk)
        if not transactions and rejected:
            raise StructuredOutputFailure(f"all {rejected} records are untraceable to the text")
        return transactions, rejected

    def _build_transactions(self, items: List[Any], chunk: str) -> Tuple[List[RawTransaction], int]:
        """Validate items one by one; returns (transactions, rejected_count)."""
        transactions: List[RawTransaction] = []
        rejected = 0

        for item in items:
            if not isinstance(item, dict):
                logger.debug(f"Skipping non-object record: {item!r}")
                continue

            try:
                record = TransactionRecord.model_validate(item)
            except ValidationError as e:
                logger.debug(f"Skipping invalid record {item!r}: {e}")
                continue

            if record.narration is None and record.amount is None:
                continue

            narration = ground_narration(record.narration or "", chunk)
            if narration is None:
                logger.debug(f"Rejecting record not found in source text: {record.narration!r}")
                rejected += 1
                continue

            txn = record.model_copy(update={"narration": narration}).to_raw_transaction(item.get("amount"))
            if txn.low_confidence:
                logger.warning(f"Low-confidence record kept (amount={item.get('amount')!r}): {narration!r}")
            transactions.append(txn)

        return transactions, rejected
