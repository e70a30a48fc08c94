"""
Unit tests for Bonding Curve quotes
Tests reserve decoding, exact constant-product math and slippage bounds
"""

from unittest.mock import AsyncMock, Mock

import pytest
from solders.pubkey import Pubkey

from pumpdotfun_sdk.core.bonding_curve import (
    RESERVES_LAYOUT,
    ReserveSnapshot,
    apply_slippage,
    basis_points_to_multiplier,
    decode_reserves,
    fetch_reserves,
    initial_reserves,
    quote_buy,
    quote_sell,
)
from pumpdotfun_sdk.core.config import TradeConfig
from pumpdotfun_sdk.core.errors import (
    AccountLookupError,
    DivisionByZeroError,
    InsufficientDataError,
)


@pytest.fixture
def small_snapshot():
    """Small curve used for hand-checked examples"""
    return ReserveSnapshot(
        real_token_reserves=0,
        virtual_token_reserves=1_000_000_000,
        virtual_sol_reserves=1_000_000
    )


# =============================================================================
# DECODING
# =============================================================================

def test_decode_reserves_little_endian():
    """Each 8-byte little-endian field maps to one reserve"""
    data = bytes([1] + [0] * 7 + [2] + [0] * 7 + [3] + [0] * 7)

    snapshot = decode_reserves(data)

    assert snapshot.real_token_reserves == 1
    assert snapshot.virtual_token_reserves == 2
    assert snapshot.virtual_sol_reserves == 3


def test_decode_reserves_ignores_trailing_bytes():
    """Fields after the reserves are ignored"""
    data = RESERVES_LAYOUT.pack(10, 20, 30) + b"\xff" * 25

    snapshot = decode_reserves(data)

    assert snapshot == ReserveSnapshot(10, 20, 30)


def test_decode_reserves_full_u64_range():
    """Maximum u64 values decode without sign issues"""
    max_u64 = 2**64 - 1
    snapshot = decode_reserves(RESERVES_LAYOUT.pack(max_u64, max_u64, max_u64))

    assert snapshot.virtual_sol_reserves == max_u64


def test_decode_reserves_short_buffer():
    """23 bytes is not enough"""
    with pytest.raises(InsufficientDataError):
        decode_reserves(bytes(23))


def test_decode_reserves_empty_buffer():
    with pytest.raises(InsufficientDataError):
        decode_reserves(b"")


def test_snapshot_is_immutable(small_snapshot):
    with pytest.raises(AttributeError):
        small_snapshot.virtual_sol_reserves = 0


# =============================================================================
# SLIPPAGE
# =============================================================================

def test_basis_points_to_multiplier():
    assert basis_points_to_multiplier(0) == 1.0
    assert basis_points_to_multiplier(100) == 0.99
    assert basis_points_to_multiplier(10_000) == 0.0


def test_basis_points_above_max_pass_through():
    """Values above 10_000 give a negative multiplier rather than an error"""
    assert basis_points_to_multiplier(20_000) == -1.0


def test_basis_points_multiplier_matches_float_reference():
    for bps in (1, 37, 250, 333, 9_999):
        assert basis_points_to_multiplier(bps) == 1.0 - bps / 10e3


def test_apply_slippage_truncates_toward_zero():
    assert apply_slippage(999_001, 0.99) == 989_010
    assert apply_slippage(1_000, 1.0) == 1_000
    assert apply_slippage(1_000, 0.0) == 0
    assert apply_slippage(1_001, -0.5) == -500


# =============================================================================
# BUY QUOTES
# =============================================================================

def test_quote_buy_exact_formula(small_snapshot):
    """Buy quote matches the constant-product formula with floor division"""
    sol_in = 1_000

    tokens_out = quote_buy(sol_in, small_snapshot, 1.0)

    new_sol = 1_000_000 + sol_in
    invariant = 1_000_000 * 1_000_000_000
    new_token = invariant // new_sol
    assert new_sol == 1_001_000
    assert invariant == 1_000_000_000_000_000
    assert tokens_out == 1_000_000_000 - new_token
    assert tokens_out == 999_001


def test_quote_buy_applies_slippage(small_snapshot):
    tokens_out = quote_buy(1_000, small_snapshot, basis_points_to_multiplier(100))

    assert tokens_out == 989_010


def test_quote_buy_zero_input(small_snapshot):
    assert quote_buy(0, small_snapshot, 1.0) == 0


def test_quote_buy_full_slippage_gives_zero(small_snapshot):
    assert quote_buy(1_000, small_snapshot, basis_points_to_multiplier(10_000)) == 0


def test_quote_buy_negative_multiplier_passes_through(small_snapshot):
    """A senseless multiplier yields a negative bound, not an error"""
    assert quote_buy(1_000, small_snapshot, basis_points_to_multiplier(20_000)) == -999_001


def test_quote_buy_does_not_mutate_snapshot(small_snapshot):
    before = ReserveSnapshot(**vars(small_snapshot))

    quote_buy(500_000, small_snapshot, 1.0)

    assert small_snapshot == before


def test_quote_buy_rejects_negative_amount(small_snapshot):
    with pytest.raises(ValueError):
        quote_buy(-1, small_snapshot, 1.0)


@pytest.mark.parametrize("snapshot", [
    ReserveSnapshot(0, 1_000, 0),
    ReserveSnapshot(0, 0, 1_000),
    ReserveSnapshot(0, 0, 0),
])
def test_quote_buy_uninitialized_curve(snapshot):
    with pytest.raises(DivisionByZeroError):
        quote_buy(1_000, snapshot, 1.0)


def test_division_by_zero_error_is_zero_division_error():
    with pytest.raises(ZeroDivisionError):
        quote_buy(1_000, ReserveSnapshot(0, 0, 0), 1.0)


# =============================================================================
# SELL QUOTES
# =============================================================================

def test_quote_sell_exact_formula(small_snapshot):
    """Sell quote is a spot-price approximation on unmodified reserves"""
    tokens_in = 999_001

    sol_out = quote_sell(tokens_in, small_snapshot, 1.0)

    assert sol_out == (1_000_000 * tokens_in) // (1_000_000_000 + tokens_in)


def test_quote_sell_applies_slippage(reserve_snapshot):
    tokens_in = 10_000_000_000
    raw = quote_sell(tokens_in, reserve_snapshot, 1.0)

    bounded = quote_sell(tokens_in, reserve_snapshot, basis_points_to_multiplier(500))

    assert bounded == apply_slippage(raw, basis_points_to_multiplier(500))
    assert bounded < raw


def test_quote_sell_zero_tokens(small_snapshot):
    assert quote_sell(0, small_snapshot, 0.99) == 0


def test_quote_sell_rejects_negative_amount(small_snapshot):
    with pytest.raises(ValueError):
        quote_sell(-5, small_snapshot, 1.0)


def test_quote_sell_uninitialized_curve():
    with pytest.raises(DivisionByZeroError):
        quote_sell(1_000, ReserveSnapshot(0, 1_000, 0), 1.0)


# =============================================================================
# ROUND TRIP
# =============================================================================

@pytest.mark.parametrize("sol_in", [1, 1_000, 10_000_000, 1_000_000_000, 85_000_000_000])
def test_buy_then_sell_never_returns_more_sol(reserve_snapshot, sol_in):
    """Selling the bought tokens back into the same snapshot returns <= sol_in"""
    tokens = quote_buy(sol_in, reserve_snapshot, 1.0)

    sol_back = quote_sell(tokens, reserve_snapshot, 1.0)

    assert sol_back <= sol_in


def test_buy_then_sell_small_curve(small_snapshot):
    tokens = quote_buy(1_000, small_snapshot, 1.0)

    assert quote_sell(tokens, small_snapshot, 1.0) <= 1_000


# =============================================================================
# INITIAL RESERVES & FETCH
# =============================================================================

def test_initial_reserves_defaults():
    snapshot = initial_reserves()

    assert snapshot.virtual_token_reserves == 1_073_000_000_000_000
    assert snapshot.virtual_sol_reserves == 30_000_000_000
    assert snapshot.real_token_reserves == 793_100_000_000_000


def test_initial_reserves_from_config():
    config = TradeConfig(
        initial_virtual_token_reserves=2_000,
        initial_virtual_sol_reserves=3_000,
        initial_real_token_reserves=1_000
    )

    assert initial_reserves(config) == ReserveSnapshot(1_000, 2_000, 3_000)


@pytest.mark.asyncio
async def test_fetch_reserves_decodes_account(curve_account_data, reserve_snapshot):
    ledger = Mock()
    ledger.get_account_info = AsyncMock(return_value=curve_account_data)
    bonding_curve = Pubkey.new_unique()

    snapshot = await fetch_reserves(ledger, bonding_curve)

    assert snapshot == reserve_snapshot
    ledger.get_account_info.assert_awaited_once_with(bonding_curve)


@pytest.mark.asyncio
async def test_fetch_reserves_missing_account():
    ledger = Mock()
    ledger.get_account_info = AsyncMock(return_value=None)

    with pytest.raises(AccountLookupError, match="can't fetch bonding curve"):
        await fetch_reserves(ledger, Pubkey.new_unique())


@pytest.mark.asyncio
async def test_fetch_reserves_short_account():
    ledger = Mock()
    ledger.get_account_info = AsyncMock(return_value=bytes(16))

    with pytest.raises(InsufficientDataError):
        await fetch_reserves(ledger, Pubkey.new_unique())
