from .payout_status import InMemoryPayoutStatus, PayoutStatusProvider

__all__ = ["InMemoryPayoutStatus", "PayoutStatusProvider"]
