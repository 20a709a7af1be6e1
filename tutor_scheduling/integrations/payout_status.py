"""
Payout readiness lookup.

Confirming a paid booking requires the provider to have a payout account
that can receive transfers. The payment processor owns that state; the
scheduling core only asks a yes/no question through this protocol.
"""

import logging
import threading
from typing import Iterable, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class PayoutStatusProvider(Protocol):
    def is_payout_ready(self, provider_id: str) -> bool:
        ...


class InMemoryPayoutStatus:
    """Payout readiness kept in process memory, for embedding and tests."""

    def __init__(self, ready_providers: Optional[Iterable[str]] = None) -> None:
        self._ready: Set[str] = set(ready_providers or ())
        self._lock = threading.Lock()

    def is_payout_ready(self, provider_id: str) -> bool:
        with self._lock:
            return provider_id in self._ready

    def set_ready(self, provider_id: str, ready: bool = True) -> None:
        with self._lock:
            if ready:
                self._ready.add(provider_id)
            else:
                self._ready.discard(provider_id)
        logger.info(f"Payout readiness for {provider_id} set to {ready}")
