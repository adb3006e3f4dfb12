"""Chronological integrity check over a product's stage sequence."""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from farmtrace.ledger.blocks import as_utc

VERIFIED_MESSAGE = "Blockchain integrity verified"
COMPROMISED_MESSAGE = "Blockchain integrity compromised"


@dataclass(frozen=True)
class IntegrityReport:
    is_valid: bool
    total_stages: int
    message: str


def check_chronology(timestamps: Sequence[datetime]) -> IntegrityReport:
    """Walk adjacent pairs and stop at the first one that goes backwards.

    Only monotonicity is checked; the sequence is taken as given, never
    re-sorted.
    """
    is_valid = True
    for previous, current in zip(timestamps, timestamps[1:]):
        if as_utc(current) < as_utc(previous):
            is_valid = False
            break

    return IntegrityReport(
        is_valid=is_valid,
        total_stages=len(timestamps),
        message=VERIFIED_MESSAGE if is_valid else COMPROMISED_MESSAGE,
    )
