"""
Pump.fun Program Client
Encodes create/buy/sell instructions for the pump.fun program
"""

import hashlib
import struct
from dataclasses import dataclass
from typing import ClassVar, Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from spl.token.instructions import create_associated_token_account

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
    CurveAddresses,
)
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


# Instruction discriminators (first 8 bytes of SHA256("global:<name>"))
BUY_DISCRIMINATOR = bytes.fromhex("66063d1201daebea")
SELL_DISCRIMINATOR = bytes.fromhex("33e685a4017f83ad")
CREATE_DISCRIMINATOR = hashlib.sha256(b"global:create").digest()[:8]

U64_MAX = 2**64 - 1


def _encode_u64(value: int, name: str) -> bytes:
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} out of u64 range: {value}")
    return struct.pack("<Q", value)


def _encode_string(value: str) -> bytes:
    """Borsh string: u32 little-endian length + UTF-8 bytes"""
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


@dataclass
class PumpFunConfig:
    """Pump.fun program configuration"""
    program_id: Pubkey = PUMP_FUN_PROGRAM_ID
    global_account: Pubkey = GLOBAL_ACCOUNT
    event_authority: Pubkey = EVENT_AUTHORITY
    mint_authority: Pubkey = MINT_AUTHORITY


class PumpFunClient:
    """
    Pump.fun program client for encoding instructions

    Only the byte layout and account order live here; which instructions go
    into a transaction, and with what amounts, is decided by the assembler.

    Usage:
        client = PumpFunClient()
        buy_ix = client.build_buy_instruction(
            mint=mint,
            user=wallet.pubkey(),
            curve=derive_curve_addresses(mint),
            user_token_account=ata,
            fee_recipient=MAINNET_FEE_RECIPIENT,
            amount_tokens=min_tokens,
            max_sol_cost=500_000_000
        )
    """

    PROGRAM_ID: ClassVar[Pubkey] = PUMP_FUN_PROGRAM_ID

    def __init__(self, config: Optional[PumpFunConfig] = None):
        self.config = config or PumpFunConfig()

    def build_buy_instruction(
        self,
        mint: Pubkey,
        user: Pubkey,
        curve: CurveAddresses,
        user_token_account: Pubkey,
        fee_recipient: Pubkey,
        amount_tokens: int,
        max_sol_cost: int
    ) -> Instruction:
        """
        Build buy instruction

        Args:
            mint: Token mint
            user: Buyer (signer, pays SOL)
            curve: Bonding curve addresses of the mint
            user_token_account: Buyer's associated token account
            fee_recipient: Protocol fee recipient for the network
            amount_tokens: Tokens to receive (base units)
            max_sol_cost: Maximum SOL to spend (lamports)

        Raises:
            ValueError: If an amount does not fit in a u64
        """
        data = (
            BUY_DISCRIMINATOR
            + _encode_u64(amount_tokens, "amount_tokens")
            + _encode_u64(max_sol_cost, "max_sol_cost")
        )

        # Account order matters
        accounts = [
            AccountMeta(pubkey=self.config.global_account, is_signer=False, is_writable=False),
            AccountMeta(pubkey=fee_recipient, is_signer=False, is_writable=True),
            AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
            AccountMeta(pubkey=curve.bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=curve.associated_bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=user_token_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=user, is_signer=True, is_writable=True),
            AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.event_authority, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.program_id, is_signer=False, is_writable=False),
        ]

        metrics.increment_counter("buy_instructions_built")

        return Instruction(
            program_id=self.config.program_id,
            accounts=accounts,
            data=data
        )

    def build_sell_instruction(
        self,
        mint: Pubkey,
        user: Pubkey,
        curve: CurveAddresses,
        user_token_account: Pubkey,
        fee_recipient: Pubkey,
        amount_tokens: int,
        min_sol_output: int
    ) -> Instruction:
        """
        Build sell instruction

        Args:
            amount_tokens: Tokens to sell (base units)
            min_sol_output: Minimum SOL to receive (lamports)

        Raises:
            ValueError: If an amount does not fit in a u64
        """
        data = (
            SELL_DISCRIMINATOR
            + _encode_u64(amount_tokens, "amount_tokens")
            + _encode_u64(min_sol_output, "min_sol_output")
        )

        accounts = [
            AccountMeta(pubkey=self.config.global_account, is_signer=False, is_writable=False),
            AccountMeta(pubkey=fee_recipient, is_signer=False, is_writable=True),
            AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
            AccountMeta(pubkey=curve.bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=curve.associated_bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=user_token_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=user, is_signer=True, is_writable=True),
            AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.event_authority, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.program_id, is_signer=False, is_writable=False),
        ]

        metrics.increment_counter("sell_instructions_built")

        return Instruction(
            program_id=self.config.program_id,
            accounts=accounts,
            data=data
        )

    def build_create_instruction(
        self,
        name: str,
        symbol: str,
        uri: str,
        mint: Pubkey,
        user: Pubkey,
        curve: CurveAddresses,
        metadata: Pubkey
    ) -> Instruction:
        """
        Build create instruction (new mint + bonding curve + metadata)

        Both the mint and the user sign.
        """
        data = (
            CREATE_DISCRIMINATOR
            + _encode_string(name)
            + _encode_string(symbol)
            + _encode_string(uri)
        )

        accounts = [
            AccountMeta(pubkey=mint, is_signer=True, is_writable=True),
            AccountMeta(pubkey=self.config.mint_authority, is_signer=False, is_writable=False),
            AccountMeta(pubkey=curve.bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=curve.associated_bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(pubkey=self.config.global_account, is_signer=False, is_writable=False),
            AccountMeta(pubkey=METADATA_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=metadata, is_signer=False, is_writable=True),
            AccountMeta(pubkey=user, is_signer=True, is_writable=True),
            AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.event_authority, is_signer=False, is_writable=False),
            AccountMeta(pubkey=self.config.program_id, is_signer=False, is_writable=False),
        ]

        logger.debug(
            "create_instruction_built",
            mint=str(mint),
            name=name,
            symbol=symbol,
            uri=uri
        )
        metrics.increment_counter("create_instructions_built")

        return Instruction(
            program_id=self.config.program_id,
            accounts=accounts,
            data=data
        )

    def build_create_ata_instruction(self, payer: Pubkey, owner: Pubkey, mint: Pubkey) -> Instruction:
        """Create owner's associated token account for mint, paid by payer"""
        return create_associated_token_account(payer=payer, owner=owner, mint=mint)
