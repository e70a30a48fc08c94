"""
Exception hierarchy for the pump.fun SDK
"""

from typing import Optional


class PumpFunError(Exception):
    """Base class for every error raised by the SDK"""


class DerivationError(PumpFunError):
    """Program-derived or associated token address could not be derived"""


class CurveStateError(PumpFunError):
    """Bonding curve state is malformed or uninitialized"""


class InsufficientDataError(CurveStateError):
    """Bonding curve account data is shorter than the reserve layout"""


class DivisionByZeroError(CurveStateError, ZeroDivisionError):
    """Quote requested against a curve with zero virtual reserves"""


class NoFeeDataError(PumpFunError):
    """No recent prioritization fee samples were returned"""


class RpcError(PumpFunError):
    """JSON-RPC node returned an error payload"""


class AccountLookupError(RpcError):
    """Account or token balance lookup failed"""


class SigningKeyMismatchError(PumpFunError):
    """A required signer has no keypair registered"""


class SubmissionError(RpcError):
    """Transaction could not be sent, or landed with an error"""

    def __init__(self, message: str, signature: Optional[str] = None):
        super().__init__(message)
        self.signature = signature


class UnconfirmedTransactionError(SubmissionError):
    """
    Transaction was sent but waiting for confirmation failed

    The outcome is unknown: look the signature up before retrying.
    """

    def __init__(self, message: str, signature: str):
        super().__init__(message, signature=signature)


class MetadataUploadError(PumpFunError):
    """Token image download or metadata upload failed"""
