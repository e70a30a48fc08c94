"""
Trade Instruction Assembler for the pump.fun SDK
Sequences compute budget, account creation and trade instructions per flow
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from pumpdotfun_sdk.clients.pumpfun_client import PumpFunClient
from pumpdotfun_sdk.core.addresses import (
    derive_associated_token_address,
    derive_curve_addresses,
    derive_metadata_address,
    fee_recipient_for,
)
from pumpdotfun_sdk.core.bonding_curve import (
    ReserveSnapshot,
    basis_points_to_multiplier,
    fetch_reserves,
    initial_reserves,
    quote_buy,
    quote_sell,
)
from pumpdotfun_sdk.core.config import NetworkMode, TradeConfig
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import LatencyTimer, get_metrics
from pumpdotfun_sdk.core.priority_fees import PriorityFeeCalculator


logger = get_logger(__name__)
metrics = get_metrics()


class TradeFlow(Enum):
    """Kind of transaction a plan describes"""
    BUY = "buy"
    SELL = "sell"
    CREATE = "create"


class SellAmount(Enum):
    """Symbolic sell amounts"""
    ALL = "all"


# Sell the whole balance of the seller's associated token account
SELL_ALL = SellAmount.ALL


@dataclass
class TradePlan:
    """Ordered instructions and required signers for one transaction"""
    flow: TradeFlow
    payer: Pubkey
    instructions: List[Instruction] = field(default_factory=list)
    signers: List[Pubkey] = field(default_factory=list)
    token_amount: int = 0  # min tokens out (buy) or tokens sold (sell)
    sol_amount: int = 0  # max SOL in (buy) or min SOL out (sell)


class TradeInstructionAssembler:
    """
    Builds the instruction list and signer set for create/buy/sell

    Both the associated token account check and the sell-all balance read
    are point-in-time reads; the chain state may change before the
    transaction lands.

    Usage:
        assembler = TradeInstructionAssembler(ledger, network=NetworkMode.DEVNET)
        plan = await assembler.build_buy_plan(user, mint, 10_000_000, slippage_bps=500)
    """

    def __init__(
        self,
        ledger,
        network: NetworkMode = NetworkMode.MAINNET,
        trade_config: Optional[TradeConfig] = None,
        fee_calculator: Optional[PriorityFeeCalculator] = None,
        program_client: Optional[PumpFunClient] = None
    ):
        """
        Initialize instruction assembler

        Args:
            ledger: LedgerClient for account, balance and fee reads
            network: Selects the fee recipient account
            trade_config: Compute budget settings (optional)
            fee_calculator: Priority fee source for create (optional)
            program_client: Instruction encoder (optional)
        """
        self.ledger = ledger
        self.network = network
        self.trade_config = trade_config or TradeConfig()
        self.fee_calculator = fee_calculator or PriorityFeeCalculator(ledger)
        self.program_client = program_client or PumpFunClient()
        self.fee_recipient = fee_recipient_for(network)

    async def should_create_ata(self, user_token_account: Pubkey) -> bool:
        """True when the account does not exist yet; lookup errors propagate"""
        data = await self.ledger.get_account_info(user_token_account)
        return data is None

    def _compute_budget(self, compute_unit_price: int) -> List[Instruction]:
        return [
            set_compute_unit_limit(self.trade_config.compute_unit_limit),
            set_compute_unit_price(compute_unit_price),
        ]

    def _buy_instructions(
        self,
        user: Pubkey,
        mint: Pubkey,
        lamports_in: int,
        snapshot: ReserveSnapshot,
        multiplier: float,
        create_ata: bool
    ) -> Tuple[List[Instruction], int]:
        curve = derive_curve_addresses(mint)
        user_token_account = derive_associated_token_address(user, mint)
        min_tokens = quote_buy(lamports_in, snapshot, multiplier)

        instructions = []
        if create_ata:
            instructions.append(
                self.program_client.build_create_ata_instruction(
                    payer=user, owner=user, mint=mint
                )
            )

        instructions.append(
            self.program_client.build_buy_instruction(
                mint=mint,
                user=user,
                curve=curve,
                user_token_account=user_token_account,
                fee_recipient=self.fee_recipient,
                amount_tokens=min_tokens,
                max_sol_cost=lamports_in
            )
        )

        return instructions, min_tokens

    async def build_buy_plan(
        self,
        user: Pubkey,
        mint: Pubkey,
        lamports_in: int,
        slippage_bps: int
    ) -> TradePlan:
        """
        Plan a buy of mint for lamports_in

        Instructions: compute limit, compute price, create ATA (only when
        missing), buy(min tokens out, max SOL = lamports_in).
        """
        with LatencyTimer(metrics, "plan_build", labels={"flow": "buy"}):
            curve = derive_curve_addresses(mint)
            user_token_account = derive_associated_token_address(user, mint)

            snapshot = await fetch_reserves(self.ledger, curve.bonding_curve)
            create_ata = await self.should_create_ata(user_token_account)

            trade_instructions, min_tokens = self._buy_instructions(
                user,
                mint,
                lamports_in,
                snapshot,
                basis_points_to_multiplier(slippage_bps),
                create_ata
            )

            plan = TradePlan(
                flow=TradeFlow.BUY,
                payer=user,
                instructions=[
                    *self._compute_budget(self.trade_config.buy_compute_unit_price),
                    *trade_instructions,
                ],
                signers=[user],
                token_amount=min_tokens,
                sol_amount=lamports_in
            )

        logger.info(
            "buy_plan_built",
            mint=str(mint),
            lamports_in=lamports_in,
            min_tokens_out=min_tokens,
            create_ata=create_ata,
            instruction_count=len(plan.instructions)
        )
        metrics.increment_counter("plans_built", labels={"flow": "buy"})

        return plan

    async def build_sell_plan(
        self,
        user: Pubkey,
        mint: Pubkey,
        token_amount: Union[int, SellAmount],
        slippage_bps: int
    ) -> TradePlan:
        """
        Plan a sell of token_amount tokens (or SELL_ALL)

        Instructions: compute limit, compute price, sell(tokens, min SOL out).
        The seller's token account is expected to exist.
        """
        with LatencyTimer(metrics, "plan_build", labels={"flow": "sell"}):
            curve = derive_curve_addresses(mint)
            user_token_account = derive_associated_token_address(user, mint)

            if token_amount is SELL_ALL:
                token_amount = await self.ledger.get_token_account_balance(user_token_account)
                logger.debug(
                    "sell_all_balance_fetched",
                    mint=str(mint),
                    balance=token_amount
                )

            snapshot = await fetch_reserves(self.ledger, curve.bonding_curve)
            min_sol_out = quote_sell(
                token_amount, snapshot, basis_points_to_multiplier(slippage_bps)
            )

            sell_ix = self.program_client.build_sell_instruction(
                mint=mint,
                user=user,
                curve=curve,
                user_token_account=user_token_account,
                fee_recipient=self.fee_recipient,
                amount_tokens=token_amount,
                min_sol_output=min_sol_out
            )

            plan = TradePlan(
                flow=TradeFlow.SELL,
                payer=user,
                instructions=[
                    *self._compute_budget(self.trade_config.sell_compute_unit_price),
                    sell_ix,
                ],
                signers=[user],
                token_amount=token_amount,
                sol_amount=min_sol_out
            )

        logger.info(
            "sell_plan_built",
            mint=str(mint),
            token_amount=token_amount,
            min_sol_out=min_sol_out
        )
        metrics.increment_counter("plans_built", labels={"flow": "sell"})

        return plan

    async def build_create_plan(
        self,
        user: Pubkey,
        mint: Pubkey,
        name: str,
        symbol: str,
        uri: str,
        initial_buy_lamports: int = 0,
        slippage_bps: int = 0
    ) -> TradePlan:
        """
        Plan a token creation, optionally followed by the creator's first buy

        Instructions: compute limit, compute price (mean of recent fees),
        create, then create ATA + buy when initial_buy_lamports > 0. The
        initial buy is quoted against the reserves of a fresh curve.
        """
        with LatencyTimer(metrics, "plan_build", labels={"flow": "create"}):
            compute_unit_price = await self.fee_calculator.calculate_priority_fee(user)

            curve = derive_curve_addresses(mint)
            metadata = derive_metadata_address(mint)

            create_ix = self.program_client.build_create_instruction(
                name=name,
                symbol=symbol,
                uri=uri,
                mint=mint,
                user=user,
                curve=curve,
                metadata=metadata
            )

            instructions = [*self._compute_budget(compute_unit_price), create_ix]
            min_tokens = 0

            if initial_buy_lamports > 0:
                buy_instructions, min_tokens = self._buy_instructions(
                    user,
                    mint,
                    initial_buy_lamports,
                    initial_reserves(self.trade_config),
                    basis_points_to_multiplier(slippage_bps),
                    create_ata=True
                )
                instructions.extend(buy_instructions)

            plan = TradePlan(
                flow=TradeFlow.CREATE,
                payer=user,
                instructions=instructions,
                signers=[user, mint],
                token_amount=min_tokens,
                sol_amount=initial_buy_lamports
            )

        logger.info(
            "create_plan_built",
            mint=str(mint),
            name=name,
            symbol=symbol,
            compute_unit_price=compute_unit_price,
            initial_buy_lamports=initial_buy_lamports,
            min_tokens_out=min_tokens
        )
        metrics.increment_counter("plans_built", labels={"flow": "create"})

        return plan

    def build_message(self, plan: TradePlan, recent_blockhash: Hash) -> Message:
        """
        Compile a plan into a message paid by the plan's payer

        Raises:
            ValueError: If the transaction would exceed the size limit
        """
        message = Message.new_with_blockhash(plan.instructions, plan.payer, recent_blockhash)

        tx_size = len(bytes(Transaction.new_unsigned(message)))
        if tx_size > self.trade_config.max_tx_size_bytes:
            raise ValueError(
                f"Transaction size {tx_size} exceeds limit {self.trade_config.max_tx_size_bytes}"
            )

        logger.debug(
            "message_built",
            flow=plan.flow.value,
            instruction_count=len(plan.instructions),
            tx_size_bytes=tx_size
        )

        return message
