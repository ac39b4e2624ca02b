from web3 import Web3
from web3.exceptions import Web3Exception
from eth_account import Account

from swapbot.domain.models import TokenRef
from swapbot.exceptions import RpcError

# ABIs mínimos: somente o que é usado
ABI_ERC20 = [
  {"name":"decimals","outputs":[{"type":"uint8"}],"inputs":[],"stateMutability":"view","type":"function"},
  {"name":"allowance","outputs":[{"type":"uint256"}],
   "inputs":[{"type":"address","name":"owner"},{"type":"address","name":"spender"}],
   "stateMutability":"view","type":"function"},
  {"name":"approve","outputs":[{"type":"bool"}],
   "inputs":[{"type":"address","name":"spender"},{"type":"uint256","name":"amount"}],
   "stateMutability":"nonpayable","type":"function"},
]

MAX_UINT256 = (1 << 256) - 1


class Chain:
    """
    Per-run chain context: RPC handle, signing account and chain id.
    Built once in main() and handed to every component that talks to the chain.
    """

    def __init__(self, rpc_url: str, private_key: str, chain_id: int, w3: Web3 | None = None):
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))
        self.account = Account.from_key(private_key)
        self.chain_id = int(chain_id)

    @property
    def address(self) -> str:
        return self.account.address

    def erc20(self, addr: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(addr), abi=ABI_ERC20)

    # -------- basic reads --------

    def _read(self, what: str, fn):
        try:
            return fn.call()
        except (Web3Exception, OSError, ValueError) as exc:
            raise RpcError(f"{what} failed: {exc}") from exc

    def decimals(self, token: str) -> int:
        return int(self._read(f"decimals({token})", self.erc20(token).functions.decimals()))

    def allowance(self, token: str, spender: str, owner: str | None = None) -> int:
        owner = Web3.to_checksum_address(owner or self.address)
        spender = Web3.to_checksum_address(spender)
        fn = self.erc20(token).functions.allowance(owner, spender)
        return int(self._read(f"allowance({token},{spender})", fn))

    def token_ref(self, addr: str) -> TokenRef:
        return TokenRef(address=Web3.to_checksum_address(addr), decimals=self.decimals(addr))

    # -------- write builders --------

    def fn_approve(self, token: str, spender: str, amount: int = MAX_UINT256):
        """Return the approve ContractFunction; nothing is sent here."""
        return self.erc20(token).functions.approve(Web3.to_checksum_address(spender), int(amount))
