"""
pump.fun SDK
Quote, create, buy and sell tokens on pump.fun bonding curves
"""

from pumpdotfun_sdk.clients.ledger_client import LedgerClient, RpcLedgerClient
from pumpdotfun_sdk.clients.metadata_uploader import (
    TokenMetadataRequest,
    TokenMetadataResponse,
    upload_token_metadata,
)
from pumpdotfun_sdk.core.addresses import (
    CurveAddresses,
    derive_curve_addresses,
    derive_metadata_address,
)
from pumpdotfun_sdk.core.bonding_curve import (
    ReserveSnapshot,
    basis_points_to_multiplier,
    decode_reserves,
    quote_buy,
    quote_sell,
)
from pumpdotfun_sdk.core.config import ConfigurationManager, NetworkMode, SDKConfig
from pumpdotfun_sdk.core.errors import (
    AccountLookupError,
    DerivationError,
    DivisionByZeroError,
    InsufficientDataError,
    NoFeeDataError,
    PumpFunError,
    SigningKeyMismatchError,
    SubmissionError,
    UnconfirmedTransactionError,
)
from pumpdotfun_sdk.core.priority_fees import estimate_priority_fee
from pumpdotfun_sdk.core.trade_orchestrator import TradeOrchestrator
from pumpdotfun_sdk.core.tx_builder import SELL_ALL, TradePlan


__version__ = "0.1.0"
