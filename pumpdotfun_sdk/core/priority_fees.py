"""
Priority Fee Calculator for the pump.fun SDK
Prices compute units from recent prioritization fees of the accounts a create touches
"""

from typing import Any, Dict, List, Optional, Sequence

from solders.pubkey import Pubkey

from pumpdotfun_sdk.core.addresses import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    EVENT_AUTHORITY,
    GLOBAL_ACCOUNT,
    METADATA_PROGRAM_ID,
    MINT_AUTHORITY,
    PUMP_FUN_PROGRAM_ID,
    RENT,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from pumpdotfun_sdk.core.errors import NoFeeDataError
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


# Accounts written or read by a create transaction, besides the user
CREATE_FEE_ACCOUNTS = [
    PUMP_FUN_PROGRAM_ID,
    MINT_AUTHORITY,
    GLOBAL_ACCOUNT,
    METADATA_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    RENT,
    EVENT_AUTHORITY,
]


def estimate_priority_fee(samples: Sequence[int]) -> int:
    """
    Mean of recent prioritization fee samples

    Args:
        samples: Prioritization fees (micro-lamports per compute unit)

    Returns:
        Compute unit price in micro-lamports (floored)

    Raises:
        NoFeeDataError: If there are no samples
    """
    if not samples:
        raise NoFeeDataError("no recent prioritization fees returned")

    return sum(samples) // len(samples)


class PriorityFeeCalculator:
    """
    Calculates the compute unit price for create transactions

    Usage:
        calculator = PriorityFeeCalculator(ledger)
        price = await calculator.calculate_priority_fee(wallet.pubkey())
    """

    def __init__(self, ledger):
        """
        Initialize priority fee calculator

        Args:
            ledger: LedgerClient for getRecentPrioritizationFees
        """
        self.ledger = ledger
        self._last_estimate: Optional[Dict[str, Any]] = None

    def fee_accounts(self, user: Pubkey) -> List[Pubkey]:
        """Accounts whose recent fees are sampled"""
        return [user, *CREATE_FEE_ACCOUNTS]

    async def calculate_priority_fee(self, user: Pubkey) -> int:
        """
        Fetch recent fees and return their mean

        Raises:
            NoFeeDataError: If the node returned no samples
        """
        samples = await self.ledger.get_recent_prioritization_fees(self.fee_accounts(user))
        fee = estimate_priority_fee(samples)

        self._last_estimate = {
            "fee_micro_lamports": fee,
            "sample_count": len(samples),
            "min": min(samples),
            "max": max(samples),
        }

        logger.debug(
            "priority_fee_calculated",
            **self._last_estimate
        )
        metrics.increment_counter("priority_fees_calculated")

        return fee

    def get_stats(self) -> Dict[str, Any]:
        """Last estimate, if any"""
        return {"last_estimate": self._last_estimate}
