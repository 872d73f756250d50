"""Transaction extraction module."""
from .models import Direction, RawTransaction, TrancheContext, TransactionRecord, ExtractionResponse
from .chunker import chunk, split_in_half
from .repair import load_transaction_payload, repair_truncated_json
from .rows import parse_itemized_rows
from .extractor import ExtractionOutcome, StructuredExtractor

__all__ = [
    "Direction",
    "RawTransaction",
    "TrancheContext",
    "TransactionRecord",
    "ExtractionResponse",
    "chunk",
    "split_in_half",
    "load_transaction_payload",
    "repair_truncated_json",
    "parse_itemized_rows",
    "ExtractionOutcome",
    "StructuredExtractor",
]
