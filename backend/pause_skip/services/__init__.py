"""
Pause/skip services package.

- RequestLedgerService: submission, decision and cancellation of pause, skip
  and withdraw-pause requests, plus effective pause range reads
"""

from .ledger_service import RequestLedgerService

__all__ = [
    'RequestLedgerService',
]
