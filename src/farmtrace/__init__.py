"""FarmTrace: supply-chain stage ledger for food traceability."""

from farmtrace.client import TraceClient
from farmtrace.ledger.blocks import block_hash, format_timestamp
from farmtrace.ledger.integrity import IntegrityReport, check_chronology

__all__ = [
    "TraceClient",
    "block_hash",
    "format_timestamp",
    "IntegrityReport",
    "check_chronology",
]
__version__ = "0.1.0"
