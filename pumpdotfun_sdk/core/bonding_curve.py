"""
Bonding Curve quotes for Pump.fun
Decodes reserve state and prices buys/sells with exact on-chain integer math
"""

import struct
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

from solders.pubkey import Pubkey

from pumpdotfun_sdk.core.config import TradeConfig
from pumpdotfun_sdk.core.errors import (
    AccountLookupError,
    DivisionByZeroError,
    InsufficientDataError,
)
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


BPS_DENOMINATOR = 10_000
RESERVES_LAYOUT = struct.Struct("<QQQ")  # real token, virtual token, virtual SOL


@dataclass(frozen=True)
class ReserveSnapshot:
    """Bonding curve reserves at a point in time

    - Token values: base token units (6 decimals for pump.fun)
    - SOL values: lamports (9 decimals)
    """
    real_token_reserves: int
    virtual_token_reserves: int
    virtual_sol_reserves: int

    def __str__(self) -> str:
        return (
            f"RealTokenReserves={self.real_token_reserves}, "
            f"VirtualTokenReserves={self.virtual_token_reserves}, "
            f"VirtualSolReserves={self.virtual_sol_reserves}"
        )


def decode_reserves(data: bytes) -> ReserveSnapshot:
    """
    Decode reserve state from raw bonding curve account data

    Layout (little-endian u64, no padding):
        0-7   real token reserves
        8-15  virtual token reserves
        16-23 virtual SOL reserves
    Anything after byte 24 is ignored.

    Raises:
        InsufficientDataError: If fewer than 24 bytes are supplied
    """
    if len(data) < RESERVES_LAYOUT.size:
        raise InsufficientDataError(
            f"insufficient bonding curve data length: {len(data)} < {RESERVES_LAYOUT.size}"
        )

    real_token, virtual_token, virtual_sol = RESERVES_LAYOUT.unpack_from(data, 0)

    return ReserveSnapshot(
        real_token_reserves=real_token,
        virtual_token_reserves=virtual_token,
        virtual_sol_reserves=virtual_sol
    )


def initial_reserves(trade_config: Optional[TradeConfig] = None) -> ReserveSnapshot:
    """
    Reserves of a freshly created curve, before any buy

    The create flow quotes its initial buy against these since the curve
    account does not exist yet when the transaction is assembled.
    """
    trade_config = trade_config or TradeConfig()
    return ReserveSnapshot(
        real_token_reserves=trade_config.initial_real_token_reserves,
        virtual_token_reserves=trade_config.initial_virtual_token_reserves,
        virtual_sol_reserves=trade_config.initial_virtual_sol_reserves
    )


def basis_points_to_multiplier(slippage_bps: int) -> float:
    """
    Convert a slippage tolerance in basis points to a quote multiplier

    0 -> 1.0 (no slippage), 100 -> 0.99, 10_000 -> 0.0.
    Values above 10_000 give a negative multiplier and are passed through.
    """
    return 1.0 - slippage_bps / BPS_DENOMINATOR


def apply_slippage(amount: int, multiplier: float) -> int:
    """Scale amount by multiplier, truncating toward zero"""
    return int(Fraction(amount) * Fraction(multiplier))


def _check_reserves(snapshot: ReserveSnapshot) -> None:
    if snapshot.virtual_sol_reserves <= 0 or snapshot.virtual_token_reserves <= 0:
        raise DivisionByZeroError(
            f"uninitialized bonding curve, virtual reserves must be > 0 ({snapshot})"
        )


def quote_buy(sol_in: int, snapshot: ReserveSnapshot, multiplier: float) -> int:
    """
    Minimum tokens to accept when spending sol_in lamports

    Constant product (x * y = k) with on-chain truncating division:
        new_sol = vs + sol_in
        new_token = (vs * vt) // new_sol
        tokens_out = (vt - new_token) * multiplier

    Args:
        sol_in: SOL to spend (lamports)
        snapshot: Current reserves
        multiplier: Slippage multiplier from basis_points_to_multiplier()

    Returns:
        Token amount (base units) bounded by slippage

    Raises:
        DivisionByZeroError: If the snapshot has zero virtual reserves
        ValueError: If sol_in is negative
    """
    _check_reserves(snapshot)
    if sol_in < 0:
        raise ValueError("Amount must be non-negative")

    virtual_sol = snapshot.virtual_sol_reserves
    virtual_token = snapshot.virtual_token_reserves

    new_virtual_sol = virtual_sol + sol_in
    invariant = virtual_sol * virtual_token
    new_virtual_token = invariant // new_virtual_sol

    tokens_out = virtual_token - new_virtual_token
    final_tokens = apply_slippage(tokens_out, multiplier)

    logger.debug(
        "buy_quote_calculated",
        sol_in=sol_in,
        tokens_out=tokens_out,
        min_tokens_out=final_tokens,
        multiplier=multiplier
    )
    metrics.increment_counter("bonding_curve_buy_quotes")

    return final_tokens


def quote_sell(tokens_in: int, snapshot: ReserveSnapshot, multiplier: float) -> int:
    """
    Minimum SOL to accept when selling tokens_in tokens

    Spot-price approximation against the unmodified reserves; the program
    applies the authoritative reserve update on-chain:
        sol_out = (vs * tokens_in) // (vt + tokens_in) * multiplier

    Args:
        tokens_in: Tokens to sell (base units)
        snapshot: Current reserves
        multiplier: Slippage multiplier from basis_points_to_multiplier()

    Returns:
        SOL amount (lamports) bounded by slippage

    Raises:
        DivisionByZeroError: If the snapshot has zero virtual reserves
        ValueError: If tokens_in is negative
    """
    _check_reserves(snapshot)
    if tokens_in < 0:
        raise ValueError("Amount must be non-negative")

    x = snapshot.virtual_sol_reserves * tokens_in
    y = snapshot.virtual_token_reserves + tokens_in
    sol_out = x // y
    min_sol_out = apply_slippage(sol_out, multiplier)

    logger.debug(
        "sell_quote_calculated",
        tokens_in=tokens_in,
        sol_out=sol_out,
        min_sol_out=min_sol_out,
        multiplier=multiplier
    )
    metrics.increment_counter("bonding_curve_sell_quotes")

    return min_sol_out


async def fetch_reserves(ledger, bonding_curve: Pubkey) -> ReserveSnapshot:
    """
    Fetch and decode the reserves of a bonding curve account

    Args:
        ledger: LedgerClient used for the account read
        bonding_curve: Bonding curve PDA

    Raises:
        AccountLookupError: If the account does not exist
        InsufficientDataError: If the account data is too short
    """
    data = await ledger.get_account_info(bonding_curve)
    if data is None:
        raise AccountLookupError(f"can't fetch bonding curve: account {bonding_curve} not found")

    snapshot = decode_reserves(data)

    logger.debug(
        "bonding_curve_fetched",
        bonding_curve=str(bonding_curve),
        virtual_token_reserves=snapshot.virtual_token_reserves,
        virtual_sol_reserves=snapshot.virtual_sol_reserves
    )
    metrics.increment_counter("bonding_curve_fetches")

    return snapshot
