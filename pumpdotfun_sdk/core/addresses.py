"""
Pump.fun program addresses and deterministic account derivation
"""

from dataclasses import dataclass

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from pumpdotfun_sdk.core.config import NetworkMode
from pumpdotfun_sdk.core.errors import DerivationError
from pumpdotfun_sdk.core.logger import get_logger


logger = get_logger(__name__)


# Program IDs
PUMP_FUN_PROGRAM_ID = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")

# Pump.fun accounts not exposed by the program IDL
GLOBAL_ACCOUNT = Pubkey.from_string("4wTV1YmiEkRvAtNtsSGPtUrqRYQMe5SKy2uB4Jjaxnjf")
MINT_AUTHORITY = Pubkey.from_string("TSLvdd1pWpHVjahSpsvCXUbgwsL3JAcvokwaKt1eokM")
EVENT_AUTHORITY = Pubkey.from_string("Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1")

# The mainnet fee recipient is not initialized on devnet
MAINNET_FEE_RECIPIENT = Pubkey.from_string("CebN5WGQ4jvEPvsVU4EoHEpgzq1VV7AbicfhtW4xC9iM")
DEVNET_FEE_RECIPIENT = Pubkey.from_string("68yFSZxzLWJXkxxRGydZ63C6mHx1NLEDWmwN9Lb5yySg")

# Seeds for PDA derivation
BONDING_CURVE_SEED = b"bonding-curve"
METADATA_SEED = b"metadata"


@dataclass(frozen=True)
class CurveAddresses:
    """Bonding curve account and the token account holding its reserves"""
    bonding_curve: Pubkey
    associated_bonding_curve: Pubkey


def fee_recipient_for(network: NetworkMode) -> Pubkey:
    """Fee recipient account for a network (mainnet unless devnet is explicit)"""
    if network is NetworkMode.DEVNET:
        return DEVNET_FEE_RECIPIENT
    return MAINNET_FEE_RECIPIENT


def _find_program_address(seeds: list, program_id: Pubkey, what: str) -> Pubkey:
    try:
        address, _ = Pubkey.find_program_address(seeds, program_id)
    except Exception as e:
        raise DerivationError(f"failed to derive {what} address: {e}") from e
    return address


def derive_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """
    Derive the associated token account of owner for mint

    Raises:
        DerivationError: If no valid bump seed exists
    """
    try:
        return get_associated_token_address(owner, mint)
    except Exception as e:
        raise DerivationError(
            f"failed to derive associated token account for {owner}: {e}"
        ) from e


def derive_curve_addresses(mint: Pubkey) -> CurveAddresses:
    """
    Derive bonding curve PDA and its associated token account

    Args:
        mint: Token mint address

    Returns:
        CurveAddresses

    Raises:
        DerivationError: If either derivation fails
    """
    bonding_curve = _find_program_address(
        [BONDING_CURVE_SEED, bytes(mint)],
        PUMP_FUN_PROGRAM_ID,
        "bonding curve"
    )
    associated_bonding_curve = derive_associated_token_address(bonding_curve, mint)

    logger.debug(
        "curve_addresses_derived",
        mint=str(mint),
        bonding_curve=str(bonding_curve),
        associated_bonding_curve=str(associated_bonding_curve)
    )

    return CurveAddresses(
        bonding_curve=bonding_curve,
        associated_bonding_curve=associated_bonding_curve
    )


def derive_metadata_address(mint: Pubkey) -> Pubkey:
    """
    Derive the Metaplex metadata account of a mint

    Raises:
        DerivationError: If derivation fails
    """
    return _find_program_address(
        [METADATA_SEED, bytes(METADATA_PROGRAM_ID), bytes(mint)],
        METADATA_PROGRAM_ID,
        "token metadata"
    )
