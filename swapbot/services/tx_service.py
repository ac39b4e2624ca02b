from web3.contract.contract import ContractFunction

from swapbot.chain import Chain
from swapbot.exceptions import TransactionRevertedError
from swapbot.utils.serialization import to_json_safe


class TxService:
    """
    Transaction plumbing on top of a Chain context.

    Responsibilities:
    - Dry-run a contract call from the account and build the tx (simulate).
    - Sign and broadcast a prepared tx (submit).
    - Wait for the receipt and normalize reverts into TransactionRevertedError (wait).

    Errors from web3 are not swallowed here; callers decide what they mean.
    """

    def __init__(self, chain: Chain):
        self.chain = chain
        self.w3 = chain.w3

    # ---------- internal helpers ----------

    def _next_nonce(self) -> int:
        return self.w3.eth.get_transaction_count(self.chain.address)

    def _pad_gas(self, base_estimate: int) -> int:
        # +25% and a flat 10k on top of the node estimate
        return int(base_estimate * 1.25) + 10_000

    def _finalize_fee_fields(self, tx: dict) -> dict:
        """
        If the caller didn't specify EIP-1559 style fields, fallback to legacy gasPrice.
        """
        if "maxFeePerGas" in tx or "maxPriorityFeePerGas" in tx:
            return tx
        if "gasPrice" not in tx:
            tx["gasPrice"] = self.w3.eth.gas_price
        return tx

    # ---------- public API ----------

    def simulate(self, fn: ContractFunction, value: int = 0) -> dict:
        """
        eth_call the function from our account against the latest block, then
        build the transaction dict ready to sign. Raises whatever web3 raises
        (ContractLogicError on revert); nothing is broadcast.
        """
        params = {"from": self.chain.address, "value": int(value or 0)}
        fn.call(params)

        tx = fn.build_transaction({
            **params,
            "nonce": self._next_nonce(),
            "chainId": self.chain.chain_id,
        })
        base_estimate = int(self.w3.eth.estimate_gas(tx))
        tx["gas"] = self._pad_gas(base_estimate)
        return self._finalize_fee_fields(tx)

    def submit(self, tx: dict) -> str:
        signed = self.w3.eth.account.sign_transaction(tx, self.chain.account.key)
        txh = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return self.w3.to_hex(txh)

    def wait(self, tx_hash: str, timeout: int = 120) -> dict:
        """
        Block until the tx is mined. web3's TimeExhausted propagates on timeout.

        Raises:
            TransactionRevertedError: mined with status == 0.
        """
        rcpt = to_json_safe(self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout))
        if int(rcpt.get("status", 0)) == 0:
            raise TransactionRevertedError(tx_hash=tx_hash, receipt=rcpt)
        return rcpt
