from enum import Enum

import httpx
from web3.exceptions import Web3Exception


class ErrorClass(str, Enum):
    CONFIG = "config"
    TRANSPORT = "transport"
    SIMULATION = "simulation"
    CONFIRMATION = "confirmation"
    DATA = "data"
    UNKNOWN = "unknown"


class SwapRunError(Exception):
    """Base for every error the runner knows how to classify."""
    kind: ErrorClass = ErrorClass.UNKNOWN


class ConfigurationError(SwapRunError):
    """
    Missing or malformed credential/URL/key.
    Raised before any network call is made.
    """
    kind = ErrorClass.CONFIG


class AggregatorHttpError(SwapRunError):
    """
    Raised when the swap API answers with a non-2xx status, or when the
    request never got an answer (status_code is None then).
    The response body is kept for logging only.
    """
    kind = ErrorClass.TRANSPORT

    def __init__(self, url: str, status_code: int | None, body: str = "", msg: str | None = None):
        super().__init__(msg or f"Error fetching data from {url}: HTTP {status_code}")
        self.url = url
        self.status_code = status_code
        self.body = body


class RpcError(SwapRunError):
    """Read-only contract call failed at the RPC layer."""
    kind = ErrorClass.TRANSPORT


class ApprovalSimulationError(SwapRunError):
    """
    Raised when the approve() dry-run is rejected by current chain state.
    Nothing was broadcast.
    """
    kind = ErrorClass.SIMULATION

    def __init__(self, token: str, spender: str, reason: str):
        super().__init__(f"approve({spender}) simulation failed on {token}: {reason}")
        self.token = token
        self.spender = spender
        self.reason = reason


class ApprovalConfirmationError(SwapRunError):
    """
    The approval was broadcast but no successful receipt was observed
    (timeout, RPC failure while waiting, or revert).
    """
    kind = ErrorClass.CONFIRMATION

    def __init__(self, tx_hash: str, reason: str):
        super().__init__(f"tx {tx_hash} not confirmed: {reason}")
        self.tx_hash = tx_hash
        self.reason = reason


class TransactionRevertedError(ApprovalConfirmationError):
    """
    Raised when the tx was actually sent on-chain, mined, and status == 0.
    Gas was already paid; the chain executed and reverted.
    """
    def __init__(self, tx_hash: str, receipt: dict):
        super().__init__(tx_hash, "reverted (status=0)")
        self.receipt = receipt


class ReportDataError(SwapRunError):
    """Malformed numeric field in fills or tax metadata."""
    kind = ErrorClass.DATA


class SwapRunAborted(SwapRunError):
    """A fatal step failed; carries the step name and the original cause."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"run aborted at step '{step}': {cause}")
        self.step = step
        self.cause = cause
        self.kind = classify(cause)


def classify(exc: BaseException) -> ErrorClass:
    if isinstance(exc, SwapRunError):
        return exc.kind
    if isinstance(exc, (httpx.HTTPError, Web3Exception, ConnectionError, TimeoutError)):
        return ErrorClass.TRANSPORT
    if isinstance(exc, ValueError):
        return ErrorClass.DATA
    return ErrorClass.UNKNOWN
