"""
Trade Orchestrator for the pump.fun SDK
Runs create/buy/sell end to end: blockhash, plan, message, sign, submit
"""

from functools import partial
from typing import Awaitable, Callable, Optional, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from pumpdotfun_sdk.clients.ledger_client import LedgerClient, RpcLedgerClient
from pumpdotfun_sdk.core.config import NetworkMode, SDKConfig, TradeConfig, load_keypair
from pumpdotfun_sdk.core.logger import get_logger, setup_logging
from pumpdotfun_sdk.core.metrics import LatencyTimer, get_metrics, init_metrics
from pumpdotfun_sdk.core.tx_builder import (
    SellAmount,
    TradeInstructionAssembler,
    TradePlan,
)
from pumpdotfun_sdk.core.tx_signer import TransactionSigner


logger = get_logger(__name__)
metrics = get_metrics()


class TradeOrchestrator:
    """
    Public entry point for trading on pump.fun bonding curves

    Every call is a single attempt: nothing is retried, and the first failing
    step aborts the call with its original exception. create_token waits for
    finalization; buy_token and sell_token return once the node accepted
    the transaction.

    Usage:
        orchestrator = TradeOrchestrator(ledger, wallet, network=NetworkMode.DEVNET)
        signature = await orchestrator.buy_token(mint, 10_000_000, slippage_bps=500)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        wallet: Keypair,
        network: NetworkMode = NetworkMode.MAINNET,
        trade_config: Optional[TradeConfig] = None,
        signer: Optional[TransactionSigner] = None,
        assembler: Optional[TradeInstructionAssembler] = None
    ):
        """
        Initialize trade orchestrator

        Args:
            ledger: Ledger client for reads and submission
            wallet: Fee payer and trading wallet
            network: Mainnet unless devnet is explicitly selected
            trade_config: Compute budget settings (optional)
            signer: Transaction signer (optional, defaults to the wallet only)
            assembler: Instruction assembler (optional)
        """
        self.ledger = ledger
        self.wallet = wallet
        self.user: Pubkey = wallet.pubkey()
        self.network = network
        self.signer = signer or TransactionSigner([wallet])
        self.assembler = assembler or TradeInstructionAssembler(
            ledger,
            network=network,
            trade_config=trade_config
        )

        logger.info(
            "trade_orchestrator_initialized",
            user=str(self.user),
            network=network.value
        )

    @classmethod
    def from_config(cls, config: SDKConfig) -> "TradeOrchestrator":
        """
        Build an orchestrator over JSON-RPC from a loaded configuration

        Applies the logging and metrics sections before anything is built.

        Raises:
            ValueError: If no wallet private key is configured
        """
        if not config.wallet_private_key:
            raise ValueError("No wallet private key configured")

        setup_logging(
            level=config.log_config.level,
            format=config.log_config.format,
            output_file=config.log_config.output_file
        )
        init_metrics(enable_histogram=config.metrics_config.enable_histogram)

        return cls(
            ledger=RpcLedgerClient(config.rpc_config),
            wallet=load_keypair(config.wallet_private_key),
            network=config.network,
            trade_config=config.trade_config
        )

    async def create_token(
        self,
        name: str,
        symbol: str,
        uri: str,
        initial_buy_lamports: int = 0,
        slippage_bps: int = 0,
        mint: Optional[Keypair] = None
    ) -> str:
        """
        Create a token with its bonding curve, optionally buying in the same tx

        Args:
            name: Token name
            symbol: Token symbol
            uri: Metadata URI (see upload_token_metadata)
            initial_buy_lamports: SOL for the creator's first buy (0 skips it)
            slippage_bps: Slippage tolerance for the first buy
            mint: Mint keypair (a fresh one is generated if omitted)

        Returns:
            Signature of the finalized transaction

        Raises:
            UnconfirmedTransactionError: If sent but finalization was not observed
        """
        mint = mint or Keypair()
        mint_pubkey = mint.pubkey()

        self.signer.add_keypair(mint)
        try:
            signature = await self._execute(
                "create",
                partial(
                    self.assembler.build_create_plan,
                    self.user,
                    mint_pubkey,
                    name,
                    symbol,
                    uri,
                    initial_buy_lamports=initial_buy_lamports,
                    slippage_bps=slippage_bps
                ),
                confirm=True,
                mint=str(mint_pubkey)
            )
        finally:
            self.signer.remove_keypair(mint_pubkey)

        return signature

    async def buy_token(self, mint: Pubkey, lamports_in: int, slippage_bps: int) -> str:
        """
        Buy mint with lamports_in SOL; returns once the node accepted the tx
        """
        return await self._execute(
            "buy",
            partial(self.assembler.build_buy_plan, self.user, mint, lamports_in, slippage_bps),
            confirm=False,
            mint=str(mint)
        )

    async def sell_token(
        self,
        mint: Pubkey,
        token_amount: Union[int, SellAmount],
        slippage_bps: int
    ) -> str:
        """
        Sell token_amount tokens of mint (or SELL_ALL for the whole balance)
        """
        return await self._execute(
            "sell",
            partial(self.assembler.build_sell_plan, self.user, mint, token_amount, slippage_bps),
            confirm=False,
            mint=str(mint)
        )

    async def _execute(
        self,
        flow: str,
        build_plan: Callable[[], Awaitable[TradePlan]],
        confirm: bool,
        mint: str
    ) -> str:
        step = "blockhash"
        try:
            with LatencyTimer(metrics, "trade", labels={"flow": flow}):
                blockhash = await self.ledger.get_latest_blockhash()

                step = "plan"
                plan = await build_plan()

                step = "message"
                message = self.assembler.build_message(plan, blockhash)

                step = "sign"
                transaction = self.signer.sign_transaction(message, plan.signers)

                step = "submit"
                if confirm:
                    signature = await self.ledger.submit_and_confirm(transaction)
                else:
                    signature = await self.ledger.submit_transaction(transaction)
        except Exception as e:
            metrics.increment_counter("trades_failed", labels={"flow": flow, "step": step})
            logger.error(
                "trade_failed",
                flow=flow,
                step=step,
                mint=mint,
                error=str(e),
                error_type=type(e).__name__,
                signature=getattr(e, "signature", None)
            )
            raise

        metrics.increment_counter("trades_submitted", labels={"flow": flow})
        logger.info(
            "trade_submitted",
            flow=flow,
            mint=mint,
            signature=signature,
            token_amount=plan.token_amount,
            sol_amount=plan.sol_amount,
            confirmed=confirm
        )

        return signature
