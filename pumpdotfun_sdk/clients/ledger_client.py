"""
Ledger Client for the pump.fun SDK
Solana JSON-RPC access: account reads, blockhash, fees, balances and submission
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import aiohttp
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from pumpdotfun_sdk.core.config import RPCConfig
from pumpdotfun_sdk.core.errors import (
    AccountLookupError,
    RpcError,
    SubmissionError,
    UnconfirmedTransactionError,
)
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import LatencyTimer, get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


class LedgerClient(ABC):
    """Network operations the trade orchestrator depends on"""

    @abstractmethod
    async def get_account_info(self, address: Pubkey) -> Optional[bytes]:
        """Raw account data, or None if the account does not exist"""

    @abstractmethod
    async def get_latest_blockhash(self) -> Hash:
        """Latest finalized blockhash"""

    @abstractmethod
    async def get_recent_prioritization_fees(self, addresses: Sequence[Pubkey]) -> List[int]:
        """Recent prioritization fees (micro-lamports per CU) touching addresses"""

    @abstractmethod
    async def get_token_account_balance(self, address: Pubkey) -> int:
        """Raw token amount held by a token account"""

    @abstractmethod
    async def submit_transaction(self, transaction: Transaction) -> str:
        """Send a signed transaction and return its signature"""

    @abstractmethod
    async def submit_and_confirm(self, transaction: Transaction) -> str:
        """Send a signed transaction and wait until it is finalized"""


class RpcLedgerClient(LedgerClient):
    """
    LedgerClient over Solana HTTP JSON-RPC

    Timeouts are enforced here (per request and for the confirmation wait);
    callers above this layer add none of their own.

    Usage:
        ledger = RpcLedgerClient(RPCConfig(url="https://api.devnet.solana.com"))
        blockhash = await ledger.get_latest_blockhash()
    """

    def __init__(self, config: RPCConfig):
        """
        Initialize ledger client

        Args:
            config: RPC endpoint and confirmation settings
        """
        self.config = config
        self._request_id = 0

        logger.info(
            "ledger_client_initialized",
            url=config.url,
            skip_preflight=config.skip_preflight,
            confirmation_timeout_s=config.confirmation_timeout_s
        )

    async def call(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call and return its "result"

        Raises:
            RpcError: If the node answered with a non-2xx status, a body that
                is not JSON, an error payload, or no "result"
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params
        }

        with LatencyTimer(metrics, "rpc_request", labels={"method": method}):
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_s)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.config.url, json=payload) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        metrics.increment_counter("rpc_errors", labels={"method": method})
                        raise RpcError(f"{method} failed: HTTP {response.status}: {body[:200]}")

                    try:
                        result = await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        metrics.increment_counter("rpc_errors", labels={"method": method})
                        raise RpcError(f"{method} failed: response is not JSON: {e}") from e

        if not isinstance(result, dict):
            metrics.increment_counter("rpc_errors", labels={"method": method})
            raise RpcError(f"{method} failed: unexpected response {result!r}")

        if "error" in result:
            error = result["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            metrics.increment_counter("rpc_errors", labels={"method": method})
            raise RpcError(f"{method} failed: {message}")

        if "result" not in result:
            metrics.increment_counter("rpc_errors", labels={"method": method})
            raise RpcError(f"{method} failed: response has no result")

        return result["result"]

    async def get_account_info(self, address: Pubkey, commitment: str = "processed") -> Optional[bytes]:
        try:
            result = await self.call(
                "getAccountInfo",
                [str(address), {"encoding": "base64", "commitment": commitment}]
            )
        except RpcError as e:
            raise AccountLookupError(f"failed to get account info for {address}: {e}") from e

        value = (result or {}).get("value")
        if value is None:
            return None

        return base64.b64decode(value["data"][0])

    async def get_latest_blockhash(self, commitment: str = "finalized") -> Hash:
        result = await self.call("getLatestBlockhash", [{"commitment": commitment}])
        return Hash.from_string(result["value"]["blockhash"])

    async def get_recent_prioritization_fees(self, addresses: Sequence[Pubkey]) -> List[int]:
        result = await self.call(
            "getRecentPrioritizationFees",
            [[str(address) for address in addresses]]
        )
        return [
            item["prioritizationFee"]
            for item in (result or [])
            if "prioritizationFee" in item
        ]

    async def get_token_account_balance(self, address: Pubkey, commitment: str = "confirmed") -> int:
        try:
            result = await self.call(
                "getTokenAccountBalance",
                [str(address), {"commitment": commitment}]
            )
            return int(result["value"]["amount"])
        except (RpcError, KeyError, TypeError, ValueError) as e:
            raise AccountLookupError(
                f"can't get amount of token in balance of {address}: {e}"
            ) from e

    async def submit_transaction(self, transaction: Transaction) -> str:
        tx_base64 = base64.b64encode(bytes(transaction)).decode("utf-8")

        try:
            signature = await self.call(
                "sendTransaction",
                [
                    tx_base64,
                    {
                        "encoding": "base64",
                        "skipPreflight": self.config.skip_preflight
                    }
                ]
            )
        except RpcError as e:
            metrics.increment_counter("transactions_submitted_failed")
            raise SubmissionError(f"can't send transaction: {e}") from e

        metrics.increment_counter("transactions_submitted_success")
        logger.info("transaction_submitted", signature=signature)

        return signature

    async def submit_and_confirm(self, transaction: Transaction) -> str:
        signature = await self.submit_transaction(transaction)

        try:
            await self._wait_for_confirmation(signature)
        except UnconfirmedTransactionError:
            raise
        except SubmissionError:
            raise
        except (RpcError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UnconfirmedTransactionError(
                f"transaction {signature} sent but confirmation failed: {e}",
                signature=signature
            ) from e

        return signature

    async def _wait_for_confirmation(self, signature: str) -> None:
        """
        Poll getSignatureStatuses until the transaction is finalized

        Raises:
            SubmissionError: If the transaction landed with an error
            UnconfirmedTransactionError: If the wait timed out
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.confirmation_timeout_s

        while loop.time() < deadline:
            result = await self.call(
                "getSignatureStatuses",
                [[signature], {"searchTransactionHistory": True}]
            )
            statuses = (result or {}).get("value") or [None]
            status = statuses[0]

            if status is not None:
                if status.get("err"):
                    metrics.increment_counter(
                        "transaction_confirmations", labels={"status": "failed"}
                    )
                    raise SubmissionError(
                        f"transaction {signature} failed: {status['err']}",
                        signature=signature
                    )

                if status.get("confirmationStatus") == "finalized":
                    metrics.increment_counter(
                        "transaction_confirmations", labels={"status": "finalized"}
                    )
                    logger.info(
                        "transaction_finalized",
                        signature=signature,
                        slot=status.get("slot")
                    )
                    return

            await asyncio.sleep(self.config.confirmation_poll_interval_s)

        metrics.increment_counter("transaction_confirmations_timeout")
        raise UnconfirmedTransactionError(
            f"transaction {signature} not finalized after {self.config.confirmation_timeout_s}s",
            signature=signature
        )
