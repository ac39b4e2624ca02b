import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from swapbot.chain import MAX_UINT256
from swapbot.domain.models import AllowanceIssue
from swapbot.exceptions import (
    ApprovalConfirmationError,
    ApprovalSimulationError,
    ErrorClass,
    RpcError,
    TransactionRevertedError,
)
from swapbot.services.approval import ApprovalCoordinator, ApprovalState

from conftest import WETH, PERMIT2


def _issue(spender=PERMIT2, actual="0"):
    return AllowanceIssue.model_validate({"spender": spender, "actual": actual})


def test_no_issue_means_no_action(chain, tx_service) -> None:
    res = ApprovalCoordinator(chain, tx_service).reconcile(WETH, None)

    assert res.state is ApprovalState.NO_ACTION_NEEDED
    assert res.ok
    assert res.history == [ApprovalState.NOT_CHECKED, ApprovalState.NO_ACTION_NEEDED]
    chain.fn_approve.assert_not_called()
    assert tx_service.method_calls == []


def test_issue_triggers_unbounded_approval_simulate_then_submit_then_wait(chain, tx_service) -> None:
    res = ApprovalCoordinator(chain, tx_service, receipt_timeout=30).reconcile(WETH, _issue())

    chain.fn_approve.assert_called_once_with(WETH, PERMIT2, MAX_UINT256)
    assert [name for name, _, _ in tx_service.method_calls] == ["simulate", "submit", "wait"]
    tx_service.simulate.assert_called_once_with(chain.fn_approve.return_value)
    tx_service.submit.assert_called_once_with(tx_service.simulate.return_value)
    tx_service.wait.assert_called_once_with(tx_service.submit.return_value, timeout=30)

    assert res.state is ApprovalState.CONFIRMED
    assert res.ok
    assert res.amount == MAX_UINT256
    assert res.spender == PERMIT2
    assert res.receipt == {"status": 1, "blockNumber": 42}
    assert res.history == [
        ApprovalState.NOT_CHECKED,
        ApprovalState.APPROVAL_REQUIRED,
        ApprovalState.SIMULATING,
        ApprovalState.APPROVED,
        ApprovalState.SUBMITTED,
        ApprovalState.CONFIRMED,
    ]


def test_current_allowance_alias_is_accepted() -> None:
    issue = AllowanceIssue.model_validate({"spender": PERMIT2, "currentAllowance": "5"})
    assert issue.actual == 5


def test_failed_simulation_blocks_submission(chain, tx_service) -> None:
    tx_service.simulate.side_effect = ContractLogicError("execution reverted: insufficient balance")

    res = ApprovalCoordinator(chain, tx_service).reconcile(WETH, _issue())

    assert res.state is ApprovalState.SIMULATION_FAILED
    assert not res.ok
    assert isinstance(res.error, ApprovalSimulationError)
    assert res.error.kind is ErrorClass.SIMULATION
    tx_service.submit.assert_not_called()
    tx_service.wait.assert_not_called()


def test_confirmation_timeout_is_reported_not_raised(chain, tx_service) -> None:
    tx_service.wait.side_effect = TimeExhausted("not in chain after 120 seconds")

    res = ApprovalCoordinator(chain, tx_service).reconcile(WETH, _issue())

    assert res.state is ApprovalState.CONFIRMATION_FAILED
    assert isinstance(res.error, ApprovalConfirmationError)
    assert res.error.kind is ErrorClass.CONFIRMATION
    assert res.tx_hash == tx_service.submit.return_value


def test_reverted_approval_keeps_receipt(chain, tx_service) -> None:
    revert = TransactionRevertedError("0xdead", {"status": 0})
    tx_service.wait.side_effect = revert

    res = ApprovalCoordinator(chain, tx_service).reconcile(WETH, _issue())

    assert res.state is ApprovalState.CONFIRMATION_FAILED
    assert res.error is revert
    assert res.error.receipt == {"status": 0}


def test_strict_mode_raises_on_simulation_failure(chain, tx_service) -> None:
    tx_service.simulate.side_effect = ContractLogicError("execution reverted")

    with pytest.raises(ApprovalSimulationError):
        ApprovalCoordinator(chain, tx_service, strict=True).reconcile(WETH, _issue())
    tx_service.submit.assert_not_called()


def test_strict_mode_raises_on_confirmation_failure(chain, tx_service) -> None:
    tx_service.wait.side_effect = TimeExhausted("timeout")

    with pytest.raises(ApprovalConfirmationError):
        ApprovalCoordinator(chain, tx_service, strict=True).reconcile(WETH, _issue())


def test_read_only_simulates_but_never_broadcasts(chain, tx_service) -> None:
    res = ApprovalCoordinator(chain, tx_service, read_only=True).reconcile(WETH, _issue())

    assert res.state is ApprovalState.SKIPPED_READ_ONLY
    tx_service.simulate.assert_called_once()
    tx_service.submit.assert_not_called()


def test_allowance_read_failure_does_not_block_approval(chain, tx_service) -> None:
    chain.allowance.side_effect = RpcError("allowance failed")

    res = ApprovalCoordinator(chain, tx_service).reconcile(WETH, _issue())

    assert res.onchain_allowance is None
    assert res.state is ApprovalState.CONFIRMED
