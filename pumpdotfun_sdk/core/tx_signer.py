"""
Transaction Signer for the pump.fun SDK
Maps required signer public keys to in-memory keypairs and signs messages
"""

from typing import Dict, List, Optional

from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from pumpdotfun_sdk.core.errors import SigningKeyMismatchError
from pumpdotfun_sdk.core.logger import get_logger
from pumpdotfun_sdk.core.metrics import LatencyTimer, get_metrics


logger = get_logger(__name__)
metrics = get_metrics()


class TransactionSigner:
    """
    Signs transaction messages with Ed25519 keypairs

    Keypairs are held in memory only. A create registers the fresh mint
    keypair next to the wallet for the duration of the call.

    Usage:
        signer = TransactionSigner([wallet])
        signed_tx = signer.sign_transaction(message, [wallet.pubkey()])
    """

    def __init__(self, keypairs: Optional[List[Keypair]] = None):
        self._keypairs: Dict[Pubkey, Keypair] = {}

        if keypairs:
            for keypair in keypairs:
                self.add_keypair(keypair)

        logger.info(
            "transaction_signer_initialized",
            keypair_count=len(self._keypairs)
        )

    def add_keypair(self, keypair: Keypair) -> None:
        """Register a keypair for signing"""
        self._keypairs[keypair.pubkey()] = keypair

    def remove_keypair(self, pubkey: Pubkey) -> None:
        """Forget a keypair (no-op if unknown)"""
        self._keypairs.pop(pubkey, None)

    def has_keypair(self, pubkey: Pubkey) -> bool:
        return pubkey in self._keypairs

    def get_all_pubkeys(self) -> List[Pubkey]:
        return list(self._keypairs.keys())

    def sign_transaction(self, message: Message, signers: List[Pubkey]) -> Transaction:
        """
        Sign a message with every required signer

        Args:
            message: Compiled message (carries the recent blockhash)
            signers: Public keys that must sign

        Returns:
            Fully signed transaction

        Raises:
            SigningKeyMismatchError: If a signer has no registered keypair
        """
        with LatencyTimer(metrics, "tx_sign", labels={"signer_count": str(len(signers))}):
            for signer_pubkey in signers:
                if signer_pubkey not in self._keypairs:
                    raise SigningKeyMismatchError(f"no signer found for key {signer_pubkey}")

            keypairs = [self._keypairs[signer_pubkey] for signer_pubkey in signers]
            signed_tx = Transaction(keypairs, message, message.recent_blockhash)

        metrics.increment_counter("transactions_signed")
        logger.debug(
            "transaction_signed",
            signer_count=len(signers),
            signers=[str(s) for s in signers]
        )

        return signed_tx
