import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from web3.exceptions import Web3Exception

from swapbot.chain import Chain, MAX_UINT256
from swapbot.domain.models import AllowanceIssue
from swapbot.exceptions import (
    ApprovalConfirmationError,
    ApprovalSimulationError,
    RpcError,
    SwapRunError,
)
from swapbot.services.tx_service import TxService
from swapbot.utils.log import log_info, log_ok, log_warn, log_error


class ApprovalState(str, Enum):
    NOT_CHECKED = "not_checked"
    NO_ACTION_NEEDED = "no_action_needed"
    APPROVAL_REQUIRED = "approval_required"
    SIMULATING = "simulating"
    SIMULATION_FAILED = "simulation_failed"
    APPROVED = "approved"                  # simulation passed, tx prepared
    SKIPPED_READ_ONLY = "skipped_read_only"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    CONFIRMATION_FAILED = "confirmation_failed"


TERMINAL_STATES = {
    ApprovalState.NO_ACTION_NEEDED,
    ApprovalState.SIMULATION_FAILED,
    ApprovalState.SKIPPED_READ_ONLY,
    ApprovalState.CONFIRMED,
    ApprovalState.CONFIRMATION_FAILED,
}

# what web3/httpx-level failures look like while talking to the node
_NODE_ERRORS = (Web3Exception, OSError, ValueError)


@dataclass
class ApprovalResult:
    token: str
    spender: Optional[str] = None
    amount: Optional[int] = None
    onchain_allowance: Optional[int] = None
    tx_hash: Optional[str] = None
    receipt: Optional[dict] = None
    error: Optional[SwapRunError] = None
    history: List[ApprovalState] = field(default_factory=lambda: [ApprovalState.NOT_CHECKED])

    @property
    def state(self) -> ApprovalState:
        return self.history[-1]

    @property
    def ok(self) -> bool:
        return self.state in (ApprovalState.NO_ACTION_NEEDED, ApprovalState.CONFIRMED)

    def advance(self, state: ApprovalState):
        self.history.append(state)


class ApprovalCoordinator:
    """
    Decides whether the taker must authorize a spender before the swap can run,
    and if so grants it an unbounded allowance (one approval instead of one per swap).

    Flow:
      issue is None          -> NO_ACTION_NEEDED
      issue has a spender    -> simulate approve(spender, MAX_UINT256)
                                  failed  -> SIMULATION_FAILED (never submitted)
                                  ok      -> submit -> wait receipt
                                               -> CONFIRMED | CONFIRMATION_FAILED

    Failures are reported on the result. With strict=True they are raised
    instead, so the caller aborts the run.
    """

    def __init__(
        self,
        chain: Chain,
        tx_service: TxService,
        *,
        strict: bool = False,
        read_only: bool = False,
        receipt_timeout: int = 120,
    ):
        self.chain = chain
        self.tx = tx_service
        self.strict = strict
        self.read_only = read_only
        self.receipt_timeout = receipt_timeout
        self._logger = logging.getLogger(self.__class__.__name__)

    def reconcile(self, token: str, issue: Optional[AllowanceIssue]) -> ApprovalResult:
        res = ApprovalResult(token=token)

        if issue is None:
            res.advance(ApprovalState.NO_ACTION_NEEDED)
            log_ok(f"{token} already approved for the spender")
            return res

        res.advance(ApprovalState.APPROVAL_REQUIRED)
        res.spender = issue.spender
        res.amount = MAX_UINT256
        res.onchain_allowance = self._read_allowance(token, issue.spender)
        log_info(
            f"Approval required: spender={issue.spender} "
            f"reported_allowance={issue.actual} onchain_allowance={res.onchain_allowance}"
        )

        # 1) dry-run
        res.advance(ApprovalState.SIMULATING)
        try:
            tx = self.tx.simulate(self.chain.fn_approve(token, issue.spender, MAX_UINT256))
        except _NODE_ERRORS as exc:
            return self._fail(
                res, ApprovalState.SIMULATION_FAILED,
                ApprovalSimulationError(token, issue.spender, str(exc)),
            )
        res.advance(ApprovalState.APPROVED)
        log_info(f"Approving {issue.spender} to spend {token}... gas={tx.get('gas')} nonce={tx.get('nonce')}")

        if self.read_only:
            res.advance(ApprovalState.SKIPPED_READ_ONLY)
            log_warn("READ_ONLY_MODE: approval simulated but not broadcast")
            return res

        # 2) broadcast + wait
        try:
            res.tx_hash = self.tx.submit(tx)
            res.advance(ApprovalState.SUBMITTED)
            log_info(f"Approval submitted: {res.tx_hash}")
            res.receipt = self.tx.wait(res.tx_hash, timeout=self.receipt_timeout)
        except ApprovalConfirmationError as exc:
            return self._fail(res, ApprovalState.CONFIRMATION_FAILED, exc)
        except _NODE_ERRORS as exc:
            return self._fail(
                res, ApprovalState.CONFIRMATION_FAILED,
                ApprovalConfirmationError(res.tx_hash or "<not broadcast>", str(exc)),
            )

        res.advance(ApprovalState.CONFIRMED)
        log_ok(f"Approved {issue.spender} to spend {token} (block={res.receipt.get('blockNumber')})")
        return res

    def _read_allowance(self, token: str, spender: str) -> Optional[int]:
        # informational only; the aggregator's issue is what drives the decision
        try:
            return self.chain.allowance(token, spender)
        except RpcError as exc:
            self._logger.warning("allowance read failed for %s/%s: %s", token, spender, exc)
            return None

    def _fail(self, res: ApprovalResult, state: ApprovalState, err: SwapRunError) -> ApprovalResult:
        res.error = err
        res.advance(state)
        log_error(f"Error approving {res.spender}: {err}")
        if self.strict:
            raise err
        return res
