"""End-to-end audit pipeline: text -> transactions -> tranches -> compliance.

One ``AuditPipeline`` is built per process with its injected clients. Every
call to ``analyze_text`` / ``analyze_document`` creates its own allocator and
chunk queue, so concurrent requests never share running totals.
"""
import uuid
from decimal import Decimal
from typing import List, Optional, Union

from grantaudit.budget.allocator import TrancheAllocator
from grantaudit.budget.classifier import Classifier
from grantaudit.budget.compliance import ComplianceEvaluator
from grantaudit.budget.models import AccountType, AuditMode, AuditReport, Category, ClassifiedTransaction
from grantaudit.budget.policy import BudgetPolicy, parse_account_type
from grantaudit.config.settings import AppSettings
from grantaudit.gemini.client import GeminiClient
from grantaudit.llm.chunker import chunk
from grantaudit.llm.extractor import StructuredExtractor, low_yield_warning
from grantaudit.llm.models import Direction, RawTransaction
from grantaudit.llm.rows import parse_itemized_rows
from grantaudit.pdf.ocr import build_ocr_client
from grantaudit.pdf.processor import TextAcquirer
from grantaudit.utils.exceptions import NoTransactionsExtracted, ValidationError
from grantaudit.utils.logger import get_logger, reset_request_context, set_request_context

logger = get_logger()


def parse_mode(value: Union[AuditMode, str]) -> AuditMode:
    if isinstance(value, AuditMode):
        return value
    for mode in AuditMode:
        if str(value).strip().lower() == mode.value.lower():
            return mode
    raise ValidationError(f"Unknown mode '{value}' (expected School or Auditor)")


class AuditPipeline:
    """Runs acquisition, extraction, classification, allocation and evaluation."""

    def __init__(
        self,
        settings: AppSettings,
        policy: BudgetPolicy,
        extractor: StructuredExtractor,
        text_acquirer: TextAcquirer
    ):
        self.settings = settings
        self.policy = policy
        self.extractor = extractor
        self.text_acquirer = text_acquirer
        self.classifier = Classifier(policy)

    def analyze_document(
        self,
        document: bytes,
        mime_type: str,
        account_type: Union[AccountType, str] = AccountType.SAVINGS,
        mode: Union[AuditMode, str] = AuditMode.SCHOOL
    ) -> AuditReport:
        """
        Audit an uploaded statement (PDF or image).

        Raises:
            ExtractionFailure: If the document yields no readable text
            NoTransactionsExtracted: If readable text yields no transactions
        """
        account_type = parse_account_type(account_type)
        mode = parse_mode(mode)
        token = set_request_context(uuid.uuid4().hex[:8])
        try:
            logger.info(f"Analyzing {mime_type} document ({len(document)} bytes), {account_type.value} account")
            text = self.text_acquirer.acquire_text(document, mime_type)
            return self._run(text, account_type, mode, allow_itemized=False)
        finally:
            reset_request_context(token)

    def analyze_text(
        self,
        text: str,
        account_type: Union[AccountType, str] = AccountType.SAVINGS,
        mode: Union[AuditMode, str] = AuditMode.SCHOOL
    ) -> AuditReport:
        """
        Audit pasted statement text.

        Text whose every line is an itemized row is parsed locally; anything
        else goes through model extraction.
        """
        account_type = parse_account_type(account_type)
        mode = parse_mode(mode)
        if not text or not text.strip():
            raise ValidationError("No text data provided")

        token = set_request_context(uuid.uuid4().hex[:8])
        try:
            logger.info(f"Analyzing {len(text)} chars of text, {account_type.value} account")
            return self._run(text, account_type, mode, allow_itemized=True)
        finally:
            reset_request_context(token)

    def _run(self, text: str, account_type: AccountType, mode: AuditMode, allow_itemized: bool) -> AuditReport:
        profile = self.policy.profile_for(account_type)
        allocator = TrancheAllocator(profile, self.policy.financial_year)
        transactions: List[ClassifiedTransaction] = []
        warnings: List[str] = []
        failed_chunks = 0

        rows = parse_itemized_rows(text) if allow_itemized else None
        if rows is not None:
            logger.info(f"Parsed {len(rows)} itemized rows without model extraction")
            transactions.extend(self._classify_and_allocate(rows, allocator))
        else:
            chunks = chunk(text, self.settings.chunk_max_chars)
            logger.info(f"Split {len(text)} chars into {len(chunks)} chunks")
            # Lazy generator: each outcome is allocated before the next chunk
            # is extracted, so the next prompt sees the updated totals.
            for outcome in self.extractor.extract_all(chunks, allocator.context):
                if outcome.succeeded:
                    transactions.extend(self._classify_and_allocate(outcome.transactions, allocator))
                else:
                    failed_chunks += 1

        if not transactions:
            if failed_chunks:
                message = (
                    f"No transactions could be extracted: {failed_chunks} part(s) of the statement "
                    f"could not be read by the model. Please retry or upload a clearer document."
                )
            else:
                message = (
                    "No transactions found in the statement. Please check that it contains "
                    "transaction rows (date, narration, amount, debit/credit)."
                )
            raise NoTransactionsExtracted(message, failed_chunks=failed_chunks)

        if rows is None:
            warning = low_yield_warning(
                len(text), len(transactions), self.settings.low_yield_chars_per_transaction
            )
            if warning:
                logger.warning(warning)
                warnings.append(warning)
        if failed_chunks:
            warnings.append(
                f"{failed_chunks} part(s) of the statement could not be extracted; "
                f"their transactions are missing from this report."
            )

        evaluator = ComplianceEvaluator(mode)
        tranche_reached = allocator.highest_recurring_tranche
        observations = evaluator.evaluate(
            allocator.non_recurring_spent, allocator.recurring_spent, profile, tranche_reached
        )
        ineligible = [
            txn for txn in transactions
            if txn.category == Category.INELIGIBLE and txn.direction == Direction.DEBIT
        ]
        ineligible_observation = evaluator.ineligible_observation(
            sum((max(txn.amount, Decimal(0)) for txn in ineligible), Decimal(0)), len(ineligible)
        )
        if ineligible_observation:
            observations.append(ineligible_observation)

        checklist = evaluator.build_checklist(
            allocator.non_recurring_spent, allocator.recurring_spent, profile, tranche_reached
        )

        logger.info(
            f"Audit complete: {len(transactions)} transactions, {len(observations)} observations, "
            f"{failed_chunks} failed chunks"
        )
        return AuditReport(
            account_type=account_type,
            mode=mode,
            transactions=transactions,
            observations=observations,
            compliance_checklist=checklist,
            warnings=warnings,
            failed_chunks=failed_chunks
        )

    def _classify_and_allocate(
        self,
        raw_transactions: List[RawTransaction],
        allocator: TrancheAllocator
    ) -> List[ClassifiedTransaction]:
        return [allocator.assign(self.classifier.classify_transaction(raw)) for raw in raw_transactions]


def build_pipeline(settings: AppSettings, api_key: str, policy: Optional[BudgetPolicy] = None) -> AuditPipeline:
    """Wire the production pipeline: one Gemini client shared by extraction and OCR."""
    gemini = GeminiClient(api_key, settings)
    return AuditPipeline(
        settings=settings,
        policy=policy or BudgetPolicy.load(settings.policy_file),
        extractor=StructuredExtractor(gemini, settings.llm_configurations, settings.min_chunk_chars),
        text_acquirer=TextAcquirer(build_ocr_client(settings, gemini), settings.min_text_length)
    )
